"""JSON file storage adapters."""

import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path

from daymark.core.countdowns import Countdown
from daymark.core.errors import NotFoundError, StorageError
from daymark.core.timer import TimerSession
from daymark.core.todos import Todo
from daymark.core.tracking import Activity, TimeEntry

logger = logging.getLogger(__name__)


def _atomic_write(path: Path, text: str) -> None:
    """Write via a uniquely named sibling temp file, then rename over path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except OSError:
        Path(tmp).unlink(missing_ok=True)
        raise


class JsonTable:
    """A list of rows kept in one JSON file."""

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def read_rows(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"Failed to read {self.path}: expected a list of rows")
        return data

    def write_rows(self, rows: list[dict]) -> None:
        try:
            _atomic_write(self.path, json.dumps(rows, indent=2, ensure_ascii=False))
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def append(self, row: dict) -> None:
        rows = self.read_rows()
        rows.append(row)
        self.write_rows(rows)

    def replace(self, row: dict) -> None:
        rows = self.read_rows()
        for i, existing in enumerate(rows):
            if existing.get("id") == row["id"]:
                rows[i] = row
                self.write_rows(rows)
                return
        raise NotFoundError(f"No record with id {row['id']} in {self.path.name}")

    def remove(self, predicate) -> int:
        rows = self.read_rows()
        kept = [r for r in rows if not predicate(r)]
        if len(kept) != len(rows):
            self.write_rows(kept)
        return len(rows) - len(kept)


def _load_rows(table: JsonTable, factory):
    """Parse rows, skipping (and logging) any that are malformed."""
    records = []
    for row in table.read_rows():
        try:
            records.append(factory(row))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed row in {table.path.name}: {e}")
    return records


class JsonCountdownStore:
    """
    File-based countdown storage.

    Implements CountdownRepository protocol.
    """

    def __init__(self, data_dir: Path | str):
        self.table = JsonTable(Path(data_dir) / "countdowns.json")

    def fetch_all(self) -> list[Countdown]:
        return _load_rows(self.table, Countdown.from_row)

    def add(self, countdown: Countdown) -> None:
        self.table.append(countdown.to_row())

    def update(self, countdown: Countdown) -> None:
        self.table.replace(countdown.to_row())

    def delete(self, countdown_id: str) -> None:
        if not self.table.remove(lambda r: r.get("id") == countdown_id):
            raise NotFoundError(f"No countdown with id {countdown_id}")


class JsonActivityStore:
    """
    File-based activity storage.

    Implements ActivityRepository protocol.
    """

    def __init__(self, data_dir: Path | str):
        self.table = JsonTable(Path(data_dir) / "activities.json")

    def fetch_all(self) -> list[Activity]:
        return _load_rows(self.table, Activity.from_row)

    def add(self, activity: Activity) -> None:
        self.table.append(activity.to_row())

    def update(self, activity: Activity) -> None:
        self.table.replace(activity.to_row())

    def delete(self, activity_id: str) -> None:
        if not self.table.remove(lambda r: r.get("id") == activity_id):
            raise NotFoundError(f"No activity with id {activity_id}")


class JsonTimeEntryStore:
    """
    File-based time entry storage.

    Implements TimeEntryRepository protocol.
    """

    def __init__(self, data_dir: Path | str):
        self.table = JsonTable(Path(data_dir) / "time_entries.json")

    def fetch_entries(self, since: date | None = None) -> list[TimeEntry]:
        entries = _load_rows(self.table, TimeEntry.from_row)
        if since is not None:
            entries = [e for e in entries if e.date >= since]
        return entries

    def add(self, entry: TimeEntry) -> None:
        rows = self.table.read_rows()
        if any(r.get("id") == entry.id for r in rows):
            logger.info(f"Time entry {entry.id} already logged, skipping")
            return
        rows.append(entry.to_row())
        self.table.write_rows(rows)

    def delete(self, entry_id: str) -> None:
        if not self.table.remove(lambda r: r.get("id") == entry_id):
            raise NotFoundError(f"No time entry with id {entry_id}")

    def delete_for_activity(self, activity_id: str) -> None:
        removed = self.table.remove(lambda r: r.get("activity_id") == activity_id)
        logger.info(f"Deleted {removed} time entries for activity {activity_id}")


class FileTimerStore:
    """
    Single-file persistence for the in-flight timer.

    Implements TimerStore protocol. The file exists only while a timer runs.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def load(self) -> TimerSession | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
        except OSError as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable timer state in {self.path}: {e}")
            return None
        try:
            return TimerSession.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding invalid timer state in {self.path}: {e}")
            return None

    def save(self, session: TimerSession) -> None:
        try:
            _atomic_write(self.path, json.dumps(session.to_dict()))
        except OSError as e:
            raise StorageError(f"Failed to save timer state: {e}") from e

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to clear timer state: {e}") from e


class JsonTodoStore:
    """
    File-based todo storage.

    Implements TodoRepository protocol.
    """

    def __init__(self, data_dir: Path | str):
        self.table = JsonTable(Path(data_dir) / "todos.json")

    def fetch_all(self) -> list[Todo]:
        return _load_rows(self.table, Todo.from_row)

    def add(self, todo: Todo) -> None:
        self.table.append(todo.to_row())

    def update(self, todo: Todo) -> None:
        self.table.replace(todo.to_row())

    def delete(self, todo_id: str) -> None:
        if not self.table.remove(lambda r: r.get("id") == todo_id):
            raise NotFoundError(f"No todo with id {todo_id}")
