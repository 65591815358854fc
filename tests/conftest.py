"""Shared fixtures: a controllable clock and in-memory stores."""

import time
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
import tzlocal

from daymark.core.daymath import Clock
from daymark.core.errors import StorageError


class FakeNow:
    """Mutable "now" for Clock.now_fn."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def __call__(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> None:
        self.instant += timedelta(**kwargs)


class MemoryTimerStore:
    def __init__(self):
        self.saved = None
        self.saves = 0
        self.fail_save = False
        self.fail_clear = False

    def load(self):
        return self.saved

    def save(self, session):
        if self.fail_save:
            raise StorageError("disk full")
        self.saves += 1
        self.saved = session

    def clear(self):
        if self.fail_clear:
            raise StorageError("disk full")
        self.saved = None


class MemoryEntryRepo:
    def __init__(self):
        self.entries = []
        self.fail_add = False

    def fetch_entries(self, since: date | None = None):
        return [e for e in self.entries if since is None or e.date >= since]

    def add(self, entry):
        if self.fail_add:
            raise StorageError("connection refused")
        if any(e.id == entry.id for e in self.entries):
            return
        self.entries.append(entry)

    def delete(self, entry_id):
        self.entries = [e for e in self.entries if e.id != entry_id]

    def delete_for_activity(self, activity_id):
        self.entries = [e for e in self.entries if e.activity_id != activity_id]


class MemoryRecordRepo:
    """Countdown/activity repository backed by a list."""

    def __init__(self):
        self.records = []

    def fetch_all(self):
        return list(self.records)

    def add(self, record):
        self.records.append(record)

    def update(self, record):
        self.records = [record if r.id == record.id else r for r in self.records]

    def delete(self, record_id):
        self.records = [r for r in self.records if r.id != record_id]


@pytest.fixture
def tz():
    return ZoneInfo("America/New_York")


@pytest.fixture
def fake_now(tz):
    return FakeNow(datetime(2024, 3, 6, 14, 30, tzinfo=tz))


@pytest.fixture
def clock(tz, fake_now):
    return Clock(tz=tz, now_fn=fake_now)


@pytest.fixture
def timer_store():
    return MemoryTimerStore()


@pytest.fixture
def entry_repo():
    return MemoryEntryRepo()


@pytest.fixture
def record_repo_factory():
    return MemoryRecordRepo


@pytest.fixture
def system_tz_new_york(monkeypatch):
    """Run with the process-wide local zone set to America/New_York."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    tzlocal.reload_localzone()
    yield
    monkeypatch.undo()
    time.tzset()
    tzlocal.reload_localzone()
