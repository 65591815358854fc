"""Tests for the single-timer state machine."""

from datetime import date, timedelta

import pytest

from daymark.core.errors import ConflictError, NoActiveTimerError, StorageError
from daymark.core.timer import TimerSession, format_clock
from daymark.core.tracking import Activity
from daymark.timer import TimerStateMachine


@pytest.fixture
def reading():
    return Activity(id="read", name="Reading", weekly_goal_minutes=180)


@pytest.fixture
def piano():
    return Activity(id="piano", name="Piano", weekly_goal_minutes=60)


@pytest.fixture
def machine(timer_store, entry_repo, clock):
    return TimerStateMachine(timer_store, entry_repo, clock)


class TestStart:
    def test_creates_and_persists_session(self, machine, timer_store, reading, fake_now):
        session = machine.start(reading)
        assert machine.is_running
        assert session.activity_name == "Reading"
        assert session.start_time == fake_now.instant
        assert session.elapsed_seconds == 0
        assert timer_store.saved is session

    def test_second_start_conflicts(self, machine, timer_store, reading, piano, fake_now):
        first = machine.start(reading)
        fake_now.advance(seconds=30)
        with pytest.raises(ConflictError):
            machine.start(piano)
        assert machine.session is first
        assert timer_store.saved.activity_id == "read"
        assert timer_store.saved.start_time == first.start_time

    def test_failed_save_stays_idle(self, machine, timer_store, reading):
        timer_store.fail_save = True
        with pytest.raises(StorageError):
            machine.start(reading)
        assert machine.session is None


class TestTick:
    def test_increments_and_persists(self, machine, timer_store, reading):
        machine.start(reading)
        for _ in range(3):
            machine.tick()
        assert machine.session.elapsed_seconds == 3
        assert timer_store.saved.elapsed_seconds == 3
        assert timer_store.saves == 4

    def test_idle_tick_is_noop(self, machine, timer_store):
        machine.tick()
        assert machine.session is None
        assert timer_store.saves == 0

    def test_failed_save_rolls_back(self, machine, timer_store, reading):
        machine.start(reading)
        machine.tick()
        timer_store.fail_save = True
        with pytest.raises(StorageError):
            machine.tick()
        assert machine.session.elapsed_seconds == 1


class TestReconstructOnLoad:
    def test_recomputes_elapsed_from_start(self, timer_store, entry_repo, clock, fake_now):
        start = fake_now.instant - timedelta(seconds=125)
        # The stored counter is stale: the process was gone most of that time
        timer_store.saved = TimerSession("read", "Reading", start, elapsed_seconds=7)

        machine = TimerStateMachine(timer_store, entry_repo, clock)
        session = machine.reconstruct_on_load()

        assert session.elapsed_seconds == 125
        assert machine.session is session
        assert timer_store.saved.elapsed_seconds == 125

    def test_nothing_persisted(self, machine):
        assert machine.reconstruct_on_load() is None
        assert not machine.is_running

    def test_start_in_future_clamps_to_zero(self, timer_store, entry_repo, clock, fake_now):
        timer_store.saved = TimerSession("read", "Reading", fake_now.instant + timedelta(minutes=5))
        machine = TimerStateMachine(timer_store, entry_repo, clock)
        assert machine.reconstruct_on_load().elapsed_seconds == 0

    def test_conflict_after_reload(self, timer_store, entry_repo, clock, fake_now, piano):
        timer_store.saved = TimerSession("read", "Reading", fake_now.instant - timedelta(minutes=1))
        machine = TimerStateMachine(timer_store, entry_repo, clock)
        machine.reconstruct_on_load()
        with pytest.raises(ConflictError):
            machine.start(piano)


class TestStop:
    def test_short_session_counts_one_minute(self, machine, entry_repo, reading, fake_now):
        machine.start(reading)
        for _ in range(10):
            fake_now.advance(seconds=1)
            machine.tick()
        entry = machine.stop()
        assert entry.duration_minutes == 1
        assert entry_repo.entries == [entry]

    def test_duration_floors_to_minutes(self, machine, reading, fake_now):
        machine.start(reading)
        machine.session.elapsed_seconds = 179
        fake_now.advance(seconds=179)
        assert machine.stop().duration_minutes == 2

    def test_entry_fields(self, machine, timer_store, reading, fake_now):
        session = machine.start(reading)
        fake_now.advance(minutes=45)
        machine.session.elapsed_seconds = 45 * 60
        entry = machine.stop()

        assert entry.activity_id == "read"
        assert entry.start_time == session.start_time
        assert entry.end_time == fake_now.instant
        assert entry.duration_minutes == 45
        assert entry.date == date(2024, 3, 6)
        assert machine.session is None
        assert timer_store.saved is None

    def test_date_is_local_date_of_stop(self, machine, reading, fake_now):
        # 23:50 in New York is already the next day in UTC
        fake_now.instant = fake_now.instant.replace(hour=23, minute=50)
        machine.start(reading)
        assert machine.stop().date == date(2024, 3, 6)

    def test_stop_after_reload_uses_wall_clock(self, timer_store, entry_repo, clock, fake_now):
        timer_store.saved = TimerSession("read", "Reading", fake_now.instant - timedelta(minutes=90))
        machine = TimerStateMachine(timer_store, entry_repo, clock)
        machine.reconstruct_on_load()
        assert machine.stop().duration_minutes == 90

    def test_idle_stop_raises(self, machine):
        with pytest.raises(NoActiveTimerError):
            machine.stop()

    def test_failed_entry_write_keeps_session(self, machine, timer_store, entry_repo, reading):
        session = machine.start(reading)
        entry_repo.fail_add = True
        with pytest.raises(StorageError):
            machine.stop()
        assert machine.session is session
        assert timer_store.saved is session

        entry_repo.fail_add = False
        machine.stop()
        assert len(entry_repo.entries) == 1

    def test_failed_clear_keeps_running_and_retry_logs_once(self, machine, timer_store, entry_repo, reading, fake_now):
        session = machine.start(reading)
        fake_now.advance(minutes=30)
        timer_store.fail_clear = True
        with pytest.raises(StorageError):
            machine.stop()
        assert machine.session is session
        assert len(entry_repo.entries) == 1

        timer_store.fail_clear = False
        fake_now.advance(minutes=1)
        machine.stop()
        assert len(entry_repo.entries) == 1
        assert machine.session is None
        assert timer_store.saved is None

    def test_failed_clear_then_stop_from_new_process_logs_once(
        self, machine, timer_store, entry_repo, clock, reading, fake_now
    ):
        machine.start(reading)
        fake_now.advance(minutes=30)
        timer_store.fail_clear = True
        with pytest.raises(StorageError):
            machine.stop()

        timer_store.fail_clear = False
        # Round-trip through the persisted form, as a fresh process would
        timer_store.saved = TimerSession.from_dict(timer_store.saved.to_dict())
        fresh = TimerStateMachine(timer_store, entry_repo, clock)
        assert fresh.reconstruct_on_load() is not None
        fresh.stop()

        assert len(entry_repo.entries) == 1
        assert timer_store.saved is None

    def test_entry_id_is_derived_from_session(self, fake_now):
        a = TimerSession("read", "Reading", fake_now.instant)
        b = TimerSession.from_dict(a.to_dict())
        c = TimerSession("read", "Reading", fake_now.instant + timedelta(seconds=1))
        assert a.entry_id() == b.entry_id()
        assert a.entry_id() != c.entry_id()

    def test_can_start_again_after_stop(self, machine, reading, piano):
        machine.start(reading)
        machine.stop()
        assert machine.start(piano).activity_id == "piano"


class TestDiscard:
    def test_clears_without_entry(self, machine, timer_store, entry_repo, reading):
        machine.start(reading)
        discarded = machine.discard()
        assert discarded.activity_id == "read"
        assert machine.session is None
        assert timer_store.saved is None
        assert entry_repo.entries == []

    def test_idle_discard_raises(self, machine):
        with pytest.raises(NoActiveTimerError):
            machine.discard()

    def test_failed_clear_keeps_session(self, machine, timer_store, reading):
        machine.start(reading)
        timer_store.fail_clear = True
        with pytest.raises(StorageError):
            machine.discard()
        assert machine.is_running


class TestTimerSession:
    def test_dict_round_trip(self, fake_now):
        session = TimerSession("read", "Reading", fake_now.instant, 42)
        assert TimerSession.from_dict(session.to_dict()) == session

    @pytest.mark.parametrize(
        "seconds,text",
        [(0, "00:00:00"), (59, "00:00:59"), (125, "00:02:05"), (3 * 3600 + 61, "03:01:01")],
    )
    def test_format_clock(self, seconds, text):
        assert format_clock(seconds) == text
