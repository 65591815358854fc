"""Timezone-safe calendar day arithmetic - no I/O dependencies.

Subtracting two instants and dividing by 24h drifts by a day around DST
transitions (23h/25h days). Everything here normalizes to the UTC midnight of
the local calendar date first, so day differences are always whole numbers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone, tzinfo
from typing import Callable

from dateutil.parser import isoparse
from tzlocal import get_localzone

DAY_MS = 86_400_000


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_timezone() -> tzinfo:
    """The machine's local timezone, following its DST rules rather than today's offset."""
    return get_localzone()


@dataclass(frozen=True)
class Clock:
    """Injectable source of "now" and of the local timezone."""

    tz: tzinfo = field(default_factory=local_timezone)
    now_fn: Callable[[], datetime] = _utc_now

    def now(self) -> datetime:
        """Current instant as an aware datetime in the local timezone."""
        current = self.now_fn()
        if current.tzinfo is None:
            return current.replace(tzinfo=self.tz)
        return current.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()


def to_local(instant: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert an instant to local wall-clock time. Naive values are already local."""
    if instant.tzinfo is None or tz is None:
        return instant
    return instant.astimezone(tz)


def local_date(instant: datetime | date, tz: tzinfo | None = None) -> date:
    """Local calendar date of an instant."""
    if not isinstance(instant, datetime):
        return instant
    return to_local(instant, tz).date()


def local_midnight(day: date, tz: tzinfo | None = None) -> datetime:
    """Start of a local calendar day."""
    return datetime.combine(day, time(0, 0), tzinfo=tz)


def calendar_day(instant: datetime | date, tz: tzinfo | None = None) -> int:
    """
    UTC-midnight representation (epoch ms) of the instant's local date.

    Pure function - no I/O.
    """
    d = local_date(instant, tz)
    utc_midnight = datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    return int(utc_midnight.timestamp()) * 1000


def day_difference(a: datetime | date, b: datetime | date, tz: tzinfo | None = None) -> int:
    """
    Whole calendar days from b to a (negative if a is earlier).

    Pure function - no I/O.
    """
    diff = (calendar_day(a, tz) - calendar_day(b, tz)) / DAY_MS
    return int(diff)


def parse_instant(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp as JS and Postgres emit it.

    Accepts a trailing "Z", a space separator, short "+00" offsets and
    fractional seconds of any precision. Date-only values parse as naive
    local midnight.
    """
    return isoparse(value)
