"""Pure countdown domain logic - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from enum import Enum

from .daymath import calendar_day, day_difference, parse_instant, to_local
from .recurrence import RepeatRule, next_occurrence

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#0ea5e9"


class UrgencyBucket(Enum):
    """Display category derived from days until the next occurrence."""

    EXPIRED = "expired"
    TODAY = "today"
    URGENT = "urgent"  # 1-3 days
    SOON = "soon"  # 4-7 days
    FUTURE = "future"  # 8+ days

    @property
    def label(self) -> str:
        labels = {
            UrgencyBucket.EXPIRED: "Expired",
            UrgencyBucket.TODAY: "Today",
            UrgencyBucket.URGENT: "Within 3 days",
            UrgencyBucket.SOON: "This week",
            UrgencyBucket.FUTURE: "Later",
        }
        return labels[self]


@dataclass
class Countdown:
    """A target date, optionally repeating weekly or yearly."""

    id: str
    title: str
    target_date: datetime
    color: str | None = None
    repeat: RepeatRule = RepeatRule.NONE
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Countdown":
        """Create Countdown from a storage row (snake_case columns)."""
        created = row.get("created_at")
        return cls(
            id=row["id"],
            title=row["title"],
            target_date=parse_instant(row["target_date"]),
            color=row.get("color") or None,
            repeat=RepeatRule.parse(row.get("repeat_type")),
            created_at=parse_instant(created) if created else None,
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "target_date": self.target_date.isoformat(),
            "color": self.color,
            "repeat_type": self.repeat.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class CountdownView:
    """A countdown resolved against a specific "now"."""

    countdown: Countdown
    occurrence: datetime
    days: int
    bucket: UrgencyBucket

    def describe(self) -> str:
        return describe_days(self.days)


@dataclass
class CountdownBoard:
    """Sorted and bucketed countdowns."""

    items: list[CountdownView] = field(default_factory=list)
    buckets: dict[UrgencyBucket, list[CountdownView]] = field(default_factory=dict)


def classify(
    resolved: datetime,
    rule: RepeatRule,
    now: datetime,
    tz: tzinfo | None = None,
) -> UrgencyBucket:
    """
    Bucket a resolved occurrence by whole days until it.

    Pure function - no I/O.
    """
    days = day_difference(resolved, now, tz)
    if days < 0:
        if rule.is_recurring:
            # next_occurrence never resolves a recurring countdown into the past
            logger.warning(f"Recurring occurrence {resolved.isoformat()} is {-days} days in the past")
            return UrgencyBucket.TODAY
        return UrgencyBucket.EXPIRED
    if days == 0:
        return UrgencyBucket.TODAY
    if days <= 3:
        return UrgencyBucket.URGENT
    if days <= 7:
        return UrgencyBucket.SOON
    return UrgencyBucket.FUTURE


def resolve(countdown: Countdown, now: datetime, tz: tzinfo | None = None) -> CountdownView:
    """Resolve a single countdown against now."""
    occurrence = next_occurrence(countdown.target_date, countdown.repeat, now, tz)
    return CountdownView(
        countdown=countdown,
        occurrence=occurrence,
        days=day_difference(occurrence, now, tz),
        bucket=classify(occurrence, countdown.repeat, now, tz),
    )


def build_board(
    countdowns: list[Countdown],
    now: datetime,
    tz: tzinfo | None = None,
) -> CountdownBoard:
    """
    Sort countdowns by next occurrence and split them into urgency buckets.

    Pure function - no I/O. Recomputed on every call since "now" moves.

    Args:
        countdowns: Countdown records in storage order
        now: Evaluation instant
        tz: Local timezone used for calendar-day arithmetic

    Returns:
        CountdownBoard with every bucket present (possibly empty)
    """
    views = [resolve(c, now, tz) for c in countdowns]

    def sort_key(view: CountdownView) -> tuple[int, datetime]:
        # Ties on the same day fall back to the anchor's local wall-clock time, compared
        # naive so date-only rows mix with aware ones; sorted() is stable after that
        anchor = to_local(view.countdown.target_date, tz).replace(tzinfo=None)
        return (calendar_day(view.occurrence, tz), anchor)

    items = sorted(views, key=sort_key)
    buckets: dict[UrgencyBucket, list[CountdownView]] = {b: [] for b in UrgencyBucket}
    for view in items:
        buckets[view.bucket].append(view)

    return CountdownBoard(items=items, buckets=buckets)


def describe_days(days: int) -> str:
    """Human-readable relative day label."""
    if days > 1:
        return f"in {days} days"
    if days == 1:
        return "tomorrow"
    if days == 0:
        return "today"
    if days == -1:
        return "yesterday"
    return f"{abs(days)} days ago"
