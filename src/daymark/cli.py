"""Daymark CLI - countdowns and time tracking."""

import json
import logging
import sys
from datetime import datetime

import click

from .config import load_config
from .core.countdowns import CountdownBoard, UrgencyBucket
from .core.daymath import local_date, local_midnight
from .core.errors import DaymarkError, NoActiveTimerError
from .core.recurrence import RepeatRule
from .core.tracking import Period, format_minutes
from .core.todos import Todo
from .scheduling import TimerTicker, build_scheduler, setup_refresh_jobs
from .workflows import (
    add_activity,
    add_countdown,
    add_todo,
    compile_board,
    compile_summary,
    edit_activity,
    edit_countdown,
    edit_todo,
    find_activity,
    get_clock,
    get_stores,
    list_entries,
    list_todos,
    load_timer,
    quick_log,
    remove_activity,
    remove_entry,
    remove_todo,
)

REPEAT_CHOICE = click.Choice([r.value for r in RepeatRule])
PERIOD_CHOICE = click.Choice([p.value for p in Period])
DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])
DUE_TYPE = click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"])


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _context():
    config = load_config()
    return config, get_stores(config), get_clock(config)


@click.group()
@click.version_option()
def main():
    """Daymark - countdowns and time tracking."""
    pass


# ============== Countdowns ==============


@main.group()
def countdown():
    """Manage countdowns."""
    pass


def _show_board(board: CountdownBoard, as_json: bool) -> None:
    """Shared board display logic."""
    if as_json:
        click.echo(
            json.dumps(
                {
                    bucket.value: [
                        {
                            "id": v.countdown.id,
                            "title": v.countdown.title,
                            "target_date": v.countdown.target_date.isoformat(),
                            "occurrence": v.occurrence.isoformat(),
                            "days": v.days,
                            "repeat": v.countdown.repeat.value,
                            "color": v.countdown.color,
                        }
                        for v in views
                    ]
                    for bucket, views in board.buckets.items()
                },
                indent=2,
            )
        )
        return

    if not board.items:
        click.echo("No countdowns.")
        return

    first = True
    for bucket in (UrgencyBucket.TODAY, UrgencyBucket.URGENT, UrgencyBucket.SOON, UrgencyBucket.FUTURE, UrgencyBucket.EXPIRED):
        views = board.buckets[bucket]
        if not views:
            continue
        if not first:
            click.echo()
        first = False
        click.echo(f"### {bucket.label}")
        for v in views:
            repeat = f" ({v.countdown.repeat.value})" if v.countdown.repeat.is_recurring else ""
            click.echo(f"  {v.occurrence.date().isoformat()}  {v.countdown.title}{repeat} - {v.describe()}")
            click.echo(f"    id: {v.countdown.id}")


@countdown.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def countdown_list(as_json: bool):
    """List countdowns grouped by urgency."""
    _, stores, clock = _context()
    try:
        board = compile_board(stores, clock)
    except DaymarkError as e:
        _fail(e)
    _show_board(board, as_json)


@countdown.command("add")
@click.argument("title")
@click.argument("target", type=DATE_TYPE)
@click.option("--color", default=None, help="Display color, e.g. #0ea5e9")
@click.option("--repeat", type=REPEAT_CHOICE, default="none", show_default=True)
def countdown_add(title: str, target: datetime, color: str | None, repeat: str):
    """Add a countdown to TARGET (YYYY-MM-DD)."""
    config, stores, clock = _context()
    try:
        created = add_countdown(
            stores,
            clock,
            title,
            local_midnight(target.date(), clock.tz),
            color=color or config.default_color,
            repeat=RepeatRule(repeat),
        )
    except (DaymarkError, ValueError) as e:
        _fail(e)
    click.echo(f"Added countdown {created.title} ({created.id})")


@countdown.command("edit")
@click.argument("countdown_id")
@click.option("--title", default=None)
@click.option("--date", "target", type=DATE_TYPE, default=None)
@click.option("--color", default=None)
@click.option("--repeat", type=REPEAT_CHOICE, default=None)
def countdown_edit(countdown_id: str, title: str | None, target: datetime | None, color: str | None, repeat: str | None):
    """Edit a countdown."""
    _, stores, clock = _context()
    try:
        updated = edit_countdown(
            stores,
            countdown_id,
            title=title,
            target=local_midnight(target.date(), clock.tz) if target else None,
            color=color,
            repeat=RepeatRule(repeat) if repeat else None,
        )
    except (DaymarkError, ValueError) as e:
        _fail(e)
    click.echo(f"Updated countdown {updated.title}")


@countdown.command("remove")
@click.argument("countdown_id")
@click.confirmation_option(prompt="Delete this countdown?")
def countdown_remove(countdown_id: str):
    """Delete a countdown."""
    _, stores, _ = _context()
    try:
        stores.countdowns.delete(countdown_id)
    except DaymarkError as e:
        _fail(e)
    click.echo("Deleted.")


# ============== Activities ==============


@main.group()
def activity():
    """Manage tracked activities."""
    pass


@activity.command("list")
@click.option("--period", type=PERIOD_CHOICE, default="week", show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def activity_list(period: str, as_json: bool):
    """List activities with logged time for a period."""
    _show_summary(Period(period), as_json)


@activity.command("add")
@click.argument("name")
@click.option("--goal", type=int, default=None, help="Weekly goal in minutes")
@click.option("--emoji", default=None)
@click.option("--color", default=None)
def activity_add(name: str, goal: int | None, emoji: str | None, color: str | None):
    """Add an activity."""
    config, stores, clock = _context()
    try:
        created = add_activity(
            stores,
            clock,
            name,
            goal if goal is not None else config.default_weekly_goal,
            emoji=emoji or config.default_emoji,
            color=color or config.default_color,
        )
    except (DaymarkError, ValueError) as e:
        _fail(e)
    click.echo(f"Added activity {created.name} ({format_minutes(created.weekly_goal_minutes)}/week)")


@activity.command("edit")
@click.argument("key")
@click.option("--name", default=None)
@click.option("--goal", type=int, default=None, help="Weekly goal in minutes")
@click.option("--emoji", default=None)
@click.option("--color", default=None)
def activity_edit(key: str, name: str | None, goal: int | None, emoji: str | None, color: str | None):
    """Edit an activity (by id or name)."""
    _, stores, _ = _context()
    try:
        updated = edit_activity(stores, key, name=name, weekly_goal_minutes=goal, emoji=emoji, color=color)
    except (DaymarkError, ValueError) as e:
        _fail(e)
    click.echo(f"Updated activity {updated.name}")


@activity.command("remove")
@click.argument("key")
@click.confirmation_option(prompt="Delete this activity and all of its logged time?")
def activity_remove(key: str):
    """Delete an activity and its time entries."""
    _, stores, _ = _context()
    try:
        removed = remove_activity(stores, key)
    except DaymarkError as e:
        _fail(e)
    click.echo(f"Deleted {removed.name}.")


# ============== Time tracking ==============


@main.group()
def timer():
    """Start and stop the activity timer."""
    pass


@timer.command("start")
@click.argument("key")
def timer_start(key: str):
    """Start timing an activity (by id or name)."""
    _, stores, clock = _context()
    try:
        machine = load_timer(stores, clock)
        session = machine.start(find_activity(stores, key))
    except DaymarkError as e:
        _fail(e)
    click.echo(f"Timing {session.activity_name} since {session.start_time.strftime('%H:%M')}")


@timer.command("stop")
def timer_stop():
    """Stop the timer and log the time."""
    _, stores, clock = _context()
    try:
        machine = load_timer(stores, clock)
        entry = machine.stop()
    except NoActiveTimerError as e:
        click.echo(str(e))
        return
    except DaymarkError as e:
        _fail(e)
    click.echo(f"Logged {format_minutes(entry.duration_minutes)}.")


@timer.command("discard")
def timer_discard():
    """Abandon the timer without logging anything."""
    _, stores, clock = _context()
    try:
        machine = load_timer(stores, clock)
        session = machine.discard()
    except NoActiveTimerError as e:
        click.echo(str(e))
        return
    except DaymarkError as e:
        _fail(e)
    click.echo(f"Discarded timer for {session.activity_name} ({session.format_elapsed()}).")


@timer.command("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def timer_status(as_json: bool):
    """Show the running timer."""
    _, stores, clock = _context()
    try:
        session = load_timer(stores, clock).session
    except DaymarkError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(session.to_dict() if session else None, indent=2))
    elif session is None:
        click.echo("No timer is running.")
    else:
        click.echo(f"{session.activity_name}: {session.format_elapsed()}")


@main.command("log")
@click.argument("key")
@click.argument("minutes", type=int)
def log_time(key: str, minutes: int):
    """Log MINUTES for an activity, ending now."""
    _, stores, clock = _context()
    try:
        entry = quick_log(stores, clock, find_activity(stores, key), minutes)
    except DaymarkError as e:
        _fail(e)
    click.echo(f"Logged {format_minutes(entry.duration_minutes)}.")


@main.group()
def entry():
    """Inspect and delete logged time entries."""
    pass


@entry.command("list")
@click.option("--activity", "key", default=None, help="Only entries for this activity (id or name)")
@click.option("--period", type=PERIOD_CHOICE, default="week", show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def entry_list(key: str | None, period: str, as_json: bool):
    """List logged entries, newest first."""
    _, stores, clock = _context()
    try:
        activity = find_activity(stores, key) if key else None
        entries = list_entries(stores, clock, Period(period), activity)
        names = {a.id: a.name for a in stores.activities.fetch_all()}
    except DaymarkError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([e.to_row() for e in entries], indent=2, ensure_ascii=False))
        return

    if not entries:
        click.echo("No time entries.")
        return

    for e in entries:
        start = e.start_time.astimezone(clock.tz).strftime("%H:%M")
        click.echo(f"  {e.date.isoformat()} {start}  {names.get(e.activity_id, e.activity_id)}: {format_minutes(e.duration_minutes)}")
        click.echo(f"    id: {e.id}")


@entry.command("remove")
@click.argument("entry_id")
@click.confirmation_option(prompt="Delete this time entry?")
def entry_remove(entry_id: str):
    """Delete one time entry."""
    _, stores, _ = _context()
    try:
        remove_entry(stores, entry_id)
    except DaymarkError as e:
        _fail(e)
    click.echo("Deleted.")


def _show_summary(period: Period, as_json: bool) -> None:
    _, stores, clock = _context()
    try:
        rows = compile_summary(stores, clock, period)
    except DaymarkError as e:
        _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": r.activity.id,
                        "name": r.activity.name,
                        "total_minutes": r.total_minutes,
                        "goal_minutes": r.goal_minutes,
                        "percent": r.percent,
                    }
                    for r in rows
                ],
                indent=2,
            )
        )
        return

    if not rows:
        click.echo("No activities.")
        return

    for r in rows:
        emoji = r.activity.emoji or ""
        spent = format_minutes(r.total_minutes)
        if r.goal_minutes is None:
            click.echo(f"{emoji} {r.activity.name}: {spent}".strip())
        else:
            click.echo(f"{emoji} {r.activity.name}: {spent} / {format_minutes(r.goal_minutes)} ({r.percent}%)".strip())


@main.command()
@click.option("--period", type=PERIOD_CHOICE, default="week", show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(period: str, as_json: bool):
    """Show logged time against goals."""
    _show_summary(Period(period), as_json)


# ============== Todos ==============


@main.group()
def todo():
    """Manage the todo list."""
    pass


def _todo_dict(t: Todo) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "notes": t.notes,
        "is_done": t.is_done,
        "due_at": t.due_at.isoformat() if t.due_at else None,
    }


@todo.command("list")
@click.option("--open", "open_only", is_flag=True, help="Hide finished items")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def todo_list(open_only: bool, as_json: bool):
    """List todos: open first, then by due date."""
    _, stores, clock = _context()
    try:
        todos = list_todos(stores, include_done=not open_only)
    except DaymarkError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([_todo_dict(t) for t in todos], indent=2, ensure_ascii=False))
        return

    if not todos:
        click.echo("No todos.")
        return

    for t in todos:
        box = "[x]" if t.is_done else "[ ]"
        due = f" (due {t.due_at.astimezone(clock.tz).strftime('%Y-%m-%d %H:%M')})" if t.due_at else ""
        click.echo(f"  {box} {t.title}{due}")
        if t.notes:
            click.echo(f"      {t.notes}")
        click.echo(f"      id: {t.id}")


@todo.command("add")
@click.argument("title")
@click.option("--notes", default=None)
@click.option("--due", type=DUE_TYPE, default=None, help="YYYY-MM-DD [HH:MM], local time")
def todo_add(title: str, notes: str | None, due: datetime | None):
    """Add a todo."""
    _, stores, clock = _context()
    try:
        created = add_todo(stores, clock, title, notes=notes, due_at=due.replace(tzinfo=clock.tz) if due else None)
    except (DaymarkError, ValueError) as e:
        _fail(e)
    click.echo(f"Added todo {created.title} ({created.id})")


@todo.command("edit")
@click.argument("todo_id")
@click.option("--title", default=None)
@click.option("--notes", default=None)
@click.option("--due", type=DUE_TYPE, default=None)
def todo_edit(todo_id: str, title: str | None, notes: str | None, due: datetime | None):
    """Edit a todo."""
    _, stores, clock = _context()
    try:
        updated = edit_todo(
            stores,
            clock,
            todo_id,
            title=title,
            notes=notes,
            due_at=due.replace(tzinfo=clock.tz) if due else None,
        )
    except (DaymarkError, ValueError) as e:
        _fail(e)
    click.echo(f"Updated todo {updated.title}")


@todo.command("done")
@click.argument("todo_id")
@click.option("--undo", is_flag=True, help="Mark as not done")
def todo_done(todo_id: str, undo: bool):
    """Mark a todo as done."""
    _, stores, clock = _context()
    try:
        updated = edit_todo(stores, clock, todo_id, is_done=not undo)
    except DaymarkError as e:
        _fail(e)
    click.echo(f"{'Reopened' if undo else 'Done'}: {updated.title}")


@todo.command("remove")
@click.argument("todo_id")
@click.confirmation_option(prompt="Delete this todo?")
def todo_remove(todo_id: str):
    """Delete a todo."""
    _, stores, _ = _context()
    try:
        remove_todo(stores, todo_id)
    except DaymarkError as e:
        _fail(e)
    click.echo("Deleted.")


@main.command()
def watch():
    """Keep the countdown board fresh and tick the running timer."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    config, stores, clock = _context()
    scheduler = build_scheduler(clock.tz)
    try:
        machine = load_timer(stores, clock)
    except DaymarkError as e:
        _fail(e)

    def show_tick(session):
        click.echo(f"\r{session.activity_name}: {session.format_elapsed()}", nl=False)

    ticker = TimerTicker(scheduler, machine, on_tick=show_tick)

    def refresh():
        click.echo()
        click.echo(f"== {local_date(clock.now(), clock.tz).strftime('%A, %B %d')} ==")
        _show_board(compile_board(stores, clock), as_json=False)
        # Pick up a timer started from another shell
        machine.reconstruct_on_load()
        ticker.resume()

    setup_refresh_jobs(scheduler, refresh, config)
    try:
        refresh()
    except DaymarkError as e:
        _fail(e)

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        pass
    finally:
        ticker.shutdown()
        click.echo()
