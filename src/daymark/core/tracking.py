"""Pure time-tracking domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from .daymath import local_date, parse_instant
from .errors import InvalidDurationError, InvalidGoalError

DEFAULT_EMOJI = "⏱️"
DEFAULT_WEEKLY_GOAL = 180


class Period(Enum):
    """Aggregation window for logged time."""

    WEEK = "week"
    MONTH = "month"
    ALL = "all"


@dataclass
class Activity:
    """Something time is logged against, with a weekly goal."""

    id: str
    name: str
    weekly_goal_minutes: int
    emoji: str | None = None
    color: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Activity":
        created = row.get("created_at")
        return cls(
            id=row["id"],
            name=row["name"],
            weekly_goal_minutes=int(row.get("weekly_goal_minutes") or 0),
            emoji=row.get("emoji") or None,
            color=row.get("color") or None,
            created_at=parse_instant(created) if created else None,
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "weekly_goal_minutes": self.weekly_goal_minutes,
            "emoji": self.emoji,
            "color": self.color,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class TimeEntry:
    """A completed, immutable block of logged time."""

    id: str
    activity_id: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    date: date
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "TimeEntry":
        created = row.get("created_at")
        return cls(
            id=row["id"],
            activity_id=row["activity_id"],
            start_time=parse_instant(row["start_time"]),
            end_time=parse_instant(row["end_time"]),
            duration_minutes=int(row["duration_minutes"]),
            date=date.fromisoformat(row["date"][:10]),
            created_at=parse_instant(created) if created else None,
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "activity_id": self.activity_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "date": self.date.isoformat(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ActivityProgress:
    """Logged minutes for one activity over a period."""

    activity: Activity
    total_minutes: int
    goal_minutes: int | None
    percent: int | None


def validate_goal(minutes) -> int:
    """Return the goal as an int, or raise InvalidGoalError if it is not positive."""
    try:
        value = int(minutes)
    except (TypeError, ValueError):
        raise InvalidGoalError(minutes)
    if value <= 0:
        raise InvalidGoalError(minutes)
    return value


def validate_duration(minutes) -> int:
    """Return a quick-entry duration as an int, or raise InvalidDurationError."""
    try:
        value = int(minutes)
    except (TypeError, ValueError):
        raise InvalidDurationError(minutes)
    if value <= 0:
        raise InvalidDurationError(minutes)
    return value


def period_start(period: Period, reference: datetime | date, tz: tzinfo | None = None) -> date | None:
    """
    First local date of the window containing reference.

    Weeks start on Monday, so a Sunday reference maps back six days.
    Returns None for Period.ALL (no lower bound).
    """
    today = local_date(reference, tz)
    if period is Period.WEEK:
        return today - timedelta(days=today.weekday())
    if period is Period.MONTH:
        return today.replace(day=1)
    return None


def filter_entries(
    entries: list[TimeEntry],
    period: Period,
    reference: datetime | date,
    tz: tzinfo | None = None,
) -> list[TimeEntry]:
    """Entries whose attributed date falls within [period start, today]."""
    start = period_start(period, reference, tz)
    end = local_date(reference, tz)
    return [e for e in entries if (start is None or e.date >= start) and e.date <= end]


def aggregate_minutes(
    entries: list[TimeEntry],
    period: Period,
    reference: datetime | date,
    tz: tzinfo | None = None,
) -> dict[str, int]:
    """
    Total minutes per activity id within the period.

    Pure function - no I/O.
    """
    totals: dict[str, int] = {}
    for entry in filter_entries(entries, period, reference, tz):
        totals[entry.activity_id] = totals.get(entry.activity_id, 0) + entry.duration_minutes
    return totals


def period_goal(weekly_goal_minutes: int, period: Period) -> int | None:
    """Goal for a period. Months approximate as four weeks; ALL has no goal."""
    if period is Period.WEEK:
        return weekly_goal_minutes
    if period is Period.MONTH:
        return weekly_goal_minutes * 4
    return None


def goal_progress(total_minutes: int, weekly_goal_minutes: int, period: Period) -> int | None:
    """
    Percent of the period goal reached, capped at 100.

    Returns None for Period.ALL or a non-positive goal.
    """
    goal = period_goal(weekly_goal_minutes, period)
    if not goal or goal <= 0:
        return None
    percent = (Decimal(100) * total_minutes / goal).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return min(100, int(percent))


def summarize(
    activities: list[Activity],
    entries: list[TimeEntry],
    period: Period,
    reference: datetime | date,
    tz: tzinfo | None = None,
) -> list[ActivityProgress]:
    """One progress row per activity, in the given activity order."""
    totals = aggregate_minutes(entries, period, reference, tz)
    rows = []
    for activity in activities:
        total = totals.get(activity.id, 0)
        rows.append(
            ActivityProgress(
                activity=activity,
                total_minutes=total,
                goal_minutes=period_goal(activity.weekly_goal_minutes, period),
                percent=goal_progress(total, activity.weekly_goal_minutes, period),
            )
        )
    return rows


def format_minutes(minutes: int) -> str:
    """Format minutes as "1h 30m", "2h" or "45m"."""
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
