"""PostgREST (Supabase) storage adapter - HTTP client for hosted tables."""

import logging
from datetime import date

import requests

from daymark.core.countdowns import Countdown
from daymark.core.errors import NotFoundError, StorageError
from daymark.core.todos import Todo
from daymark.core.tracking import Activity, TimeEntry

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"


class PostgrestClient:
    """
    Thin PostgREST client.

    Handles headers and error mapping. No business logic - just I/O.
    Row-level security on the server decides which rows are visible.
    """

    def __init__(self, url: str, api_key: str, timeout: int = 15, session: requests.Session | None = None):
        self.base_url = url.rstrip("/") + REST_PATH
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def _headers(self, prefer: str | None = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def request(
        self,
        method: str,
        table: str,
        params: dict | None = None,
        json_body: dict | None = None,
        prefer: str | None = None,
    ) -> list[dict]:
        """Make an API request and return the JSON rows (empty for no-content replies)."""
        try:
            resp = self._session.request(
                method,
                f"{self.base_url}/{table}",
                params=params,
                json=json_body,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"{method} {table} failed: {e}")
            raise StorageError(f"{method} {table} failed: {e}") from e

        if resp.status_code == 204 or not resp.content:
            return []
        try:
            return resp.json()
        except ValueError as e:
            raise StorageError(f"{method} {table} returned invalid JSON") from e

    def select(self, table: str, params: dict | None = None) -> list[dict]:
        query = {"select": "*"}
        query.update(params or {})
        return self.request("GET", table, params=query)

    def insert(self, table: str, row: dict, ignore_duplicates: bool = False) -> None:
        prefer = "return=minimal"
        if ignore_duplicates:
            # Upsert on the primary key that keeps the stored row
            prefer = "resolution=ignore-duplicates," + prefer
        self.request("POST", table, json_body=_without_empty(row), prefer=prefer)

    def update(self, table: str, row_id: str, row: dict) -> None:
        rows = self.request(
            "PATCH",
            table,
            params={"id": f"eq.{row_id}"},
            json_body=_without_empty(row),
            prefer="return=representation",
        )
        if not rows:
            raise NotFoundError(f"No row with id {row_id} in {table}")

    def delete(self, table: str, params: dict) -> None:
        self.request("DELETE", table, params=params, prefer="return=minimal")


def _without_empty(row: dict) -> dict:
    # Let the database fill defaults (created_at, id) instead of sending nulls
    return {k: v for k, v in row.items() if v is not None}


def _parse_rows(rows: list[dict], factory, table: str) -> list:
    records = []
    for row in rows:
        try:
            records.append(factory(row))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {table} row: {e}")
    return records


class PostgrestCountdownStore:
    """
    Countdowns stored in the `countdowns` table.

    Implements CountdownRepository protocol.
    """

    table = "countdowns"

    def __init__(self, client: PostgrestClient):
        self.client = client

    def fetch_all(self) -> list[Countdown]:
        rows = self.client.select(self.table, {"order": "target_date.asc"})
        return _parse_rows(rows, Countdown.from_row, self.table)

    def add(self, countdown: Countdown) -> None:
        self.client.insert(self.table, countdown.to_row())

    def update(self, countdown: Countdown) -> None:
        row = countdown.to_row()
        row.pop("id")
        row.pop("created_at")
        self.client.update(self.table, countdown.id, row)

    def delete(self, countdown_id: str) -> None:
        self.client.delete(self.table, {"id": f"eq.{countdown_id}"})


class PostgrestActivityStore:
    """
    Activities stored in the `activities` table.

    Implements ActivityRepository protocol.
    """

    table = "activities"

    def __init__(self, client: PostgrestClient):
        self.client = client

    def fetch_all(self) -> list[Activity]:
        rows = self.client.select(self.table, {"order": "created_at.asc"})
        return _parse_rows(rows, Activity.from_row, self.table)

    def add(self, activity: Activity) -> None:
        self.client.insert(self.table, activity.to_row())

    def update(self, activity: Activity) -> None:
        row = activity.to_row()
        row.pop("id")
        row.pop("created_at")
        self.client.update(self.table, activity.id, row)

    def delete(self, activity_id: str) -> None:
        self.client.delete(self.table, {"id": f"eq.{activity_id}"})


class PostgrestTimeEntryStore:
    """
    Time entries stored in the `time_entries` table.

    Implements TimeEntryRepository protocol.
    """

    table = "time_entries"

    def __init__(self, client: PostgrestClient):
        self.client = client

    def fetch_entries(self, since: date | None = None) -> list[TimeEntry]:
        params = {"order": "created_at.desc"}
        if since is not None:
            params["date"] = f"gte.{since.isoformat()}"
        rows = self.client.select(self.table, params)
        return _parse_rows(rows, TimeEntry.from_row, self.table)

    def add(self, entry: TimeEntry) -> None:
        self.client.insert(self.table, entry.to_row(), ignore_duplicates=True)

    def delete(self, entry_id: str) -> None:
        self.client.delete(self.table, {"id": f"eq.{entry_id}"})

    def delete_for_activity(self, activity_id: str) -> None:
        self.client.delete(self.table, {"activity_id": f"eq.{activity_id}"})


class PostgrestTodoStore:
    """
    Todos stored in the `todos` table.

    Implements TodoRepository protocol.
    """

    table = "todos"

    def __init__(self, client: PostgrestClient):
        self.client = client

    def fetch_all(self) -> list[Todo]:
        rows = self.client.select(self.table, {"order": "created_at.desc"})
        return _parse_rows(rows, Todo.from_row, self.table)

    def add(self, todo: Todo) -> None:
        self.client.insert(self.table, todo.to_row())

    def update(self, todo: Todo) -> None:
        row = todo.to_row()
        row.pop("id")
        row.pop("created_at")
        self.client.update(self.table, todo.id, row)

    def delete(self, todo_id: str) -> None:
        self.client.delete(self.table, {"id": f"eq.{todo_id}"})
