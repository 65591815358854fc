"""Shared workflow layer between the CLI and the scheduler.

Resolves stores from config, validates input before anything is written, and
compiles the read-only countdown board and period summaries.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from .adapters.json_store import (
    FileTimerStore,
    JsonActivityStore,
    JsonCountdownStore,
    JsonTimeEntryStore,
    JsonTodoStore,
)
from .adapters.postgrest import (
    PostgrestActivityStore,
    PostgrestClient,
    PostgrestCountdownStore,
    PostgrestTimeEntryStore,
    PostgrestTodoStore,
)
from .config import DATA_DIR, TIMER_FILE, Config
from .core.countdowns import Countdown, CountdownBoard, build_board
from .core.daymath import Clock
from .core.errors import NotFoundError
from .core.recurrence import RepeatRule
from .core.todos import Todo, sort_todos
from .core.tracking import (
    Activity,
    ActivityProgress,
    Period,
    TimeEntry,
    filter_entries,
    period_start,
    summarize,
    validate_duration,
    validate_goal,
)
from .ports import (
    ActivityRepository,
    CountdownRepository,
    TimeEntryRepository,
    TimerStore,
    TodoRepository,
)
from .timer import TimerStateMachine

logger = logging.getLogger(__name__)


@dataclass
class Stores:
    """The storage collaborators the core reads from and writes to."""

    countdowns: CountdownRepository
    activities: ActivityRepository
    entries: TimeEntryRepository
    timer: TimerStore
    todos: TodoRepository


def get_stores(config: Config) -> Stores:
    """Resolve storage backends from config."""
    timer_store = FileTimerStore(TIMER_FILE)

    if config.rest_url:
        client = PostgrestClient(config.rest_url, config.rest_api_key)
        return Stores(
            countdowns=PostgrestCountdownStore(client),
            activities=PostgrestActivityStore(client),
            entries=PostgrestTimeEntryStore(client),
            timer=timer_store,
            todos=PostgrestTodoStore(client),
        )

    data_dir = Path(config.data_dir).expanduser() if config.data_dir else DATA_DIR
    return Stores(
        countdowns=JsonCountdownStore(data_dir),
        activities=JsonActivityStore(data_dir),
        entries=JsonTimeEntryStore(data_dir),
        timer=timer_store,
        todos=JsonTodoStore(data_dir),
    )


def get_clock(config: Config) -> Clock:
    return Clock(tz=config.resolve_timezone())


def load_timer(stores: Stores, clock: Clock) -> TimerStateMachine:
    """Build the timer state machine and resume any persisted session."""
    machine = TimerStateMachine(stores.timer, stores.entries, clock)
    machine.reconstruct_on_load()
    return machine


# ============== Countdowns ==============


def compile_board(stores: Stores, clock: Clock) -> CountdownBoard:
    """Fetch countdowns and resolve them against the current instant."""
    return build_board(stores.countdowns.fetch_all(), clock.now(), clock.tz)


def find_countdown(stores: Stores, countdown_id: str) -> Countdown:
    for countdown in stores.countdowns.fetch_all():
        if countdown.id == countdown_id:
            return countdown
    raise NotFoundError(f"No countdown with id {countdown_id}")


def add_countdown(
    stores: Stores,
    clock: Clock,
    title: str,
    target: datetime,
    color: str | None = None,
    repeat: RepeatRule = RepeatRule.NONE,
) -> Countdown:
    title = title.strip()
    if not title:
        raise ValueError("Countdown title cannot be empty")
    countdown = Countdown(
        id=str(uuid.uuid4()),
        title=title,
        target_date=target,
        color=color,
        repeat=repeat,
        created_at=clock.now(),
    )
    stores.countdowns.add(countdown)
    return countdown


def edit_countdown(
    stores: Stores,
    countdown_id: str,
    title: str | None = None,
    target: datetime | None = None,
    color: str | None = None,
    repeat: RepeatRule | None = None,
) -> Countdown:
    countdown = find_countdown(stores, countdown_id)
    if title is not None:
        if not title.strip():
            raise ValueError("Countdown title cannot be empty")
        countdown.title = title.strip()
    if target is not None:
        countdown.target_date = target
    if color is not None:
        countdown.color = color
    if repeat is not None:
        countdown.repeat = repeat
    stores.countdowns.update(countdown)
    return countdown


# ============== Activities ==============


def find_activity(stores: Stores, key: str) -> Activity:
    """Find an activity by id, or by case-insensitive name."""
    activities = stores.activities.fetch_all()
    for activity in activities:
        if activity.id == key:
            return activity
    for activity in activities:
        if activity.name.lower() == key.strip().lower():
            return activity
    raise NotFoundError(f"No activity named or with id {key!r}")


def add_activity(
    stores: Stores,
    clock: Clock,
    name: str,
    weekly_goal_minutes,
    emoji: str | None = None,
    color: str | None = None,
) -> Activity:
    goal = validate_goal(weekly_goal_minutes)
    name = name.strip()
    if not name:
        raise ValueError("Activity name cannot be empty")
    activity = Activity(
        id=str(uuid.uuid4()),
        name=name,
        weekly_goal_minutes=goal,
        emoji=emoji,
        color=color,
        created_at=clock.now(),
    )
    stores.activities.add(activity)
    return activity


def edit_activity(
    stores: Stores,
    key: str,
    name: str | None = None,
    weekly_goal_minutes=None,
    emoji: str | None = None,
    color: str | None = None,
) -> Activity:
    activity = find_activity(stores, key)
    # Validate everything before touching the record
    goal = validate_goal(weekly_goal_minutes) if weekly_goal_minutes is not None else None
    if name is not None and not name.strip():
        raise ValueError("Activity name cannot be empty")

    if name is not None:
        activity.name = name.strip()
    if goal is not None:
        activity.weekly_goal_minutes = goal
    if emoji is not None:
        activity.emoji = emoji
    if color is not None:
        activity.color = color
    stores.activities.update(activity)
    return activity


def remove_activity(stores: Stores, key: str) -> Activity:
    """Delete an activity together with its logged time."""
    activity = find_activity(stores, key)
    stores.entries.delete_for_activity(activity.id)
    stores.activities.delete(activity.id)
    return activity


# ============== Time tracking ==============


def quick_log(stores: Stores, clock: Clock, activity: Activity, minutes) -> TimeEntry:
    """Log a block of minutes for an activity, ending now."""
    duration = validate_duration(minutes)
    now = clock.now()
    entry = TimeEntry(
        id=str(uuid.uuid4()),
        activity_id=activity.id,
        start_time=now - timedelta(minutes=duration),
        end_time=now,
        duration_minutes=duration,
        date=now.date(),
        created_at=now,
    )
    stores.entries.add(entry)
    logger.info(f"Logged {duration} min for {activity.name}")
    return entry


def compile_summary(stores: Stores, clock: Clock, period: Period) -> list[ActivityProgress]:
    """Per-activity totals and goal progress for a period ending now."""
    now = clock.now()
    entries = stores.entries.fetch_entries(since=period_start(period, now, clock.tz))
    return summarize(stores.activities.fetch_all(), entries, period, now, clock.tz)


def list_entries(
    stores: Stores,
    clock: Clock,
    period: Period,
    activity: Activity | None = None,
) -> list[TimeEntry]:
    """Logged entries in a period ending now, newest first."""
    now = clock.now()
    entries = stores.entries.fetch_entries(since=period_start(period, now, clock.tz))
    entries = filter_entries(entries, period, now, clock.tz)
    if activity is not None:
        entries = [e for e in entries if e.activity_id == activity.id]
    return sorted(entries, key=lambda e: e.start_time.timestamp(), reverse=True)


def remove_entry(stores: Stores, entry_id: str) -> None:
    stores.entries.delete(entry_id)
    logger.info(f"Deleted time entry {entry_id}")


# ============== Todos ==============


def list_todos(stores: Stores, include_done: bool = True) -> list[Todo]:
    todos = sort_todos(stores.todos.fetch_all())
    if not include_done:
        todos = [t for t in todos if not t.is_done]
    return todos


def find_todo(stores: Stores, todo_id: str) -> Todo:
    for todo in stores.todos.fetch_all():
        if todo.id == todo_id:
            return todo
    raise NotFoundError(f"No todo with id {todo_id}")


def add_todo(
    stores: Stores,
    clock: Clock,
    title: str,
    notes: str | None = None,
    due_at: datetime | None = None,
) -> Todo:
    title = title.strip()
    if not title:
        raise ValueError("Todo title cannot be empty")
    now = clock.now()
    todo = Todo(
        id=str(uuid.uuid4()),
        title=title,
        notes=(notes or "").strip() or None,
        is_done=False,
        due_at=due_at,
        created_at=now,
        updated_at=now,
    )
    stores.todos.add(todo)
    return todo


def edit_todo(
    stores: Stores,
    clock: Clock,
    todo_id: str,
    title: str | None = None,
    notes: str | None = None,
    due_at: datetime | None = None,
    is_done: bool | None = None,
) -> Todo:
    todo = find_todo(stores, todo_id)
    if title is not None and not title.strip():
        raise ValueError("Todo title cannot be empty")

    if title is not None:
        todo.title = title.strip()
    if notes is not None:
        todo.notes = notes.strip() or None
    if due_at is not None:
        todo.due_at = due_at
    if is_done is not None:
        todo.is_done = is_done
    todo.updated_at = clock.now()
    stores.todos.update(todo)
    return todo


def remove_todo(stores: Stores, todo_id: str) -> None:
    stores.todos.delete(todo_id)
