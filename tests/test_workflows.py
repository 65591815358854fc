"""Tests for the shared workflow layer."""

from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from daymark.adapters.json_store import JsonActivityStore, JsonCountdownStore, JsonTodoStore
from daymark.adapters.postgrest import PostgrestCountdownStore, PostgrestTodoStore
from daymark.config import Config
from daymark.core.countdowns import UrgencyBucket
from daymark.core.errors import InvalidDurationError, InvalidGoalError, NotFoundError
from daymark.core.recurrence import RepeatRule
from daymark.core.tracking import Period, TimeEntry
from daymark.workflows import (
    Stores,
    add_activity,
    add_countdown,
    add_todo,
    compile_board,
    compile_summary,
    edit_activity,
    edit_countdown,
    edit_todo,
    find_activity,
    get_stores,
    list_entries,
    list_todos,
    load_timer,
    quick_log,
    remove_activity,
    remove_entry,
    remove_todo,
)


@pytest.fixture
def stores(record_repo_factory, entry_repo, timer_store):
    return Stores(
        countdowns=record_repo_factory(),
        activities=record_repo_factory(),
        entries=entry_repo,
        timer=timer_store,
        todos=record_repo_factory(),
    )


class TestGetStores:
    def test_uses_configured_data_dir(self, tmp_path):
        stores = get_stores(Config(data_dir=str(tmp_path)))
        assert isinstance(stores.countdowns, JsonCountdownStore)
        assert isinstance(stores.activities, JsonActivityStore)
        assert stores.countdowns.table.path == tmp_path / "countdowns.json"
        assert isinstance(stores.todos, JsonTodoStore)

    def test_expands_user_path(self):
        stores = get_stores(Config(data_dir="~/some/data"))
        assert stores.countdowns.table.path == Path.home() / "some" / "data" / "countdowns.json"

    def test_rest_backend(self):
        stores = get_stores(Config(rest_url="https://example.supabase.co", rest_api_key="k"))
        assert isinstance(stores.countdowns, PostgrestCountdownStore)
        assert isinstance(stores.todos, PostgrestTodoStore)


class TestCountdowns:
    def test_add_and_board(self, stores, clock, tz):
        add_countdown(stores, clock, "  Trip  ", datetime(2024, 3, 8, tzinfo=tz))
        add_countdown(stores, clock, "Standup", datetime(2024, 3, 1, tzinfo=tz), repeat=RepeatRule.WEEKLY)
        board = compile_board(stores, clock)
        assert [v.countdown.title for v in board.buckets[UrgencyBucket.URGENT]] == ["Standup", "Trip"]

    def test_empty_title_rejected(self, stores, clock, tz):
        with pytest.raises(ValueError):
            add_countdown(stores, clock, "   ", datetime(2024, 3, 8, tzinfo=tz))
        assert stores.countdowns.fetch_all() == []

    def test_edit(self, stores, clock, tz):
        created = add_countdown(stores, clock, "Trip", datetime(2024, 3, 8, tzinfo=tz))
        edit_countdown(stores, created.id, repeat=RepeatRule.YEARLY, color="#ef4444")
        updated = stores.countdowns.fetch_all()[0]
        assert updated.repeat is RepeatRule.YEARLY
        assert updated.color == "#ef4444"
        assert updated.title == "Trip"

    def test_edit_unknown(self, stores):
        with pytest.raises(NotFoundError):
            edit_countdown(stores, "missing", title="x")


class TestActivities:
    def test_add_validates_goal_first(self, stores, clock):
        with pytest.raises(InvalidGoalError):
            add_activity(stores, clock, "Reading", 0)
        assert stores.activities.fetch_all() == []

    def test_find_by_name_or_id(self, stores, clock):
        created = add_activity(stores, clock, "Reading", 180)
        assert find_activity(stores, "reading") == created
        assert find_activity(stores, created.id) == created
        with pytest.raises(NotFoundError):
            find_activity(stores, "Piano")

    def test_edit_rejects_bad_goal_without_changes(self, stores, clock):
        add_activity(stores, clock, "Reading", 180)
        with pytest.raises(InvalidGoalError):
            edit_activity(stores, "Reading", name="Books", weekly_goal_minutes=-5)
        assert stores.activities.fetch_all()[0].name == "Reading"

    def test_edit_goal(self, stores, clock):
        add_activity(stores, clock, "Reading", 180)
        edit_activity(stores, "Reading", weekly_goal_minutes=300)
        assert stores.activities.fetch_all()[0].weekly_goal_minutes == 300

    def test_remove_deletes_entries(self, stores, clock):
        reading = add_activity(stores, clock, "Reading", 180)
        piano = add_activity(stores, clock, "Piano", 60)
        quick_log(stores, clock, reading, 30)
        quick_log(stores, clock, piano, 15)

        remove_activity(stores, "Reading")

        assert [a.name for a in stores.activities.fetch_all()] == ["Piano"]
        assert [e.activity_id for e in stores.entries.fetch_entries()] == [piano.id]


class TestQuickLog:
    def test_entry_ends_now(self, stores, clock, fake_now):
        reading = add_activity(stores, clock, "Reading", 180)
        entry = quick_log(stores, clock, reading, 30)
        assert entry.end_time == fake_now.instant
        assert entry.start_time == fake_now.instant - timedelta(minutes=30)
        assert entry.date == date(2024, 3, 6)

    def test_rejects_non_positive(self, stores, clock):
        reading = add_activity(stores, clock, "Reading", 180)
        with pytest.raises(InvalidDurationError):
            quick_log(stores, clock, reading, 0)
        assert stores.entries.fetch_entries() == []


class TestSummary:
    def test_week_summary(self, stores, clock, tz):
        reading = add_activity(stores, clock, "Reading", 120)
        quick_log(stores, clock, reading, 60)
        # Last week's entry must not count
        stores.entries.add(
            TimeEntry(
                id="old",
                activity_id=reading.id,
                start_time=datetime(2024, 3, 1, 9, 0, tzinfo=tz),
                end_time=datetime(2024, 3, 1, 10, 0, tzinfo=tz),
                duration_minutes=60,
                date=date(2024, 3, 1),
            )
        )
        rows = compile_summary(stores, clock, Period.WEEK)
        assert rows[0].total_minutes == 60
        assert rows[0].percent == 50

        rows = compile_summary(stores, clock, Period.ALL)
        assert rows[0].total_minutes == 120
        assert rows[0].percent is None


class TestLoadTimer:
    def test_resumes_persisted_timer(self, stores, clock):
        reading = add_activity(stores, clock, "Reading", 120)
        load_timer(stores, clock).start(reading)
        resumed = load_timer(stores, clock)
        assert resumed.session.activity_id == reading.id


class TestEntries:
    def test_list_newest_first_and_by_activity(self, stores, clock, fake_now):
        reading = add_activity(stores, clock, "Reading", 120)
        piano = add_activity(stores, clock, "Piano", 60)
        first = quick_log(stores, clock, reading, 20)
        fake_now.advance(minutes=30)
        second = quick_log(stores, clock, piano, 10)

        assert [e.id for e in list_entries(stores, clock, Period.WEEK)] == [second.id, first.id]
        assert [e.id for e in list_entries(stores, clock, Period.WEEK, reading)] == [first.id]

    def test_remove_single_entry(self, stores, clock):
        reading = add_activity(stores, clock, "Reading", 120)
        keep = quick_log(stores, clock, reading, 20)
        drop = quick_log(stores, clock, reading, 10)

        remove_entry(stores, drop.id)

        assert [e.id for e in stores.entries.fetch_entries()] == [keep.id]
        assert compile_summary(stores, clock, Period.WEEK)[0].total_minutes == 20


class TestTodos:
    def test_add_and_list_order(self, stores, clock, tz):
        undated = add_todo(stores, clock, "Tidy desk")
        due = add_todo(stores, clock, "  File taxes ", notes="  ", due_at=datetime(2024, 4, 15, tzinfo=tz))
        assert due.title == "File taxes"
        assert due.notes is None
        assert [t.id for t in list_todos(stores)] == [due.id, undated.id]

    def test_done_moves_to_end_and_can_be_hidden(self, stores, clock, tz, fake_now):
        first = add_todo(stores, clock, "Call plumber", due_at=datetime(2024, 3, 7, tzinfo=tz))
        second = add_todo(stores, clock, "Buy milk")
        fake_now.advance(minutes=5)

        done = edit_todo(stores, clock, first.id, is_done=True)

        assert done.updated_at == fake_now.instant
        assert [t.id for t in list_todos(stores)] == [second.id, first.id]
        assert [t.id for t in list_todos(stores, include_done=False)] == [second.id]

    def test_empty_title_rejected(self, stores, clock):
        with pytest.raises(ValueError):
            add_todo(stores, clock, "  ")
        created = add_todo(stores, clock, "Buy milk")
        with pytest.raises(ValueError):
            edit_todo(stores, clock, created.id, title="")
        assert stores.todos.fetch_all()[0].title == "Buy milk"

    def test_edit_unknown(self, stores, clock):
        with pytest.raises(NotFoundError):
            edit_todo(stores, clock, "missing", is_done=True)

    def test_remove(self, stores, clock):
        created = add_todo(stores, clock, "Buy milk")
        remove_todo(stores, created.id)
        assert list_todos(stores) == []
