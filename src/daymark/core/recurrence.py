"""Repeat rules for countdowns - no I/O dependencies."""

from datetime import date, datetime, timedelta, tzinfo
from enum import Enum

from .daymath import calendar_day, local_date, local_midnight, to_local


class RepeatRule(Enum):
    """How a countdown's anchor date repeats."""

    NONE = "none"
    WEEKLY = "weekly"
    YEARLY = "yearly"

    @property
    def is_recurring(self) -> bool:
        return self is not RepeatRule.NONE

    @classmethod
    def parse(cls, value: "str | RepeatRule | None") -> "RepeatRule":
        """Parse a stored repeat_type. Missing or unknown values mean no repeat."""
        if isinstance(value, RepeatRule):
            return value
        if not value:
            return cls.NONE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NONE


def _in_year(anchor: datetime, year: int) -> datetime:
    """Move an anchor to another year. Feb 29 becomes Mar 1 in non-leap years."""
    try:
        return anchor.replace(year=year)
    except ValueError:
        return anchor.replace(year=year, month=3, day=1)


def next_occurrence(
    anchor: datetime,
    rule: RepeatRule,
    now: datetime,
    tz: tzinfo | None = None,
) -> datetime:
    """
    Effective date of a countdown as of now.

    Pure function - no I/O.

    NONE returns the anchor unchanged, even if it is in the past.
    WEEKLY returns local midnight of the next day with the anchor's weekday;
    a match on today resolves to today, not a week out.
    YEARLY returns the anchor's month/day in now's year, or next year when that
    date is already behind today (compared by calendar day, not instant).

    Returns:
        An aware datetime (if inputs are aware) at or after today for recurring rules
    """
    if rule is RepeatRule.NONE:
        return anchor

    if rule is RepeatRule.WEEKLY:
        today = local_date(now, tz)
        delta = (local_date(anchor, tz).weekday() - today.weekday()) % 7
        return local_midnight(today + timedelta(days=delta), tz if now.tzinfo else None)

    local_anchor = to_local(anchor, tz)
    local_now = to_local(now, tz)
    candidate = _in_year(local_anchor, local_now.year)
    if calendar_day(candidate, tz) < calendar_day(local_now, tz):
        candidate = _in_year(local_anchor, local_now.year + 1)
    return candidate


def occurrence_date(
    anchor: datetime,
    rule: RepeatRule,
    now: datetime,
    tz: tzinfo | None = None,
) -> date:
    """Local calendar date of next_occurrence."""
    return local_date(next_occurrence(anchor, rule, now, tz), tz)
