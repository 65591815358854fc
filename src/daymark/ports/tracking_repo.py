"""Activity and time entry repository interfaces."""

from datetime import date
from typing import Protocol

from daymark.core.tracking import Activity, TimeEntry


class ActivityRepository(Protocol):
    """Interface for reading and writing activities in any backend."""

    def fetch_all(self) -> list[Activity]:
        """Fetch all activities, oldest first."""
        ...

    def add(self, activity: Activity) -> None:
        """Create an activity."""
        ...

    def update(self, activity: Activity) -> None:
        """Replace an existing activity with the same id."""
        ...

    def delete(self, activity_id: str) -> None:
        """Delete an activity by id."""
        ...


class TimeEntryRepository(Protocol):
    """Interface for reading and appending time entries."""

    def fetch_entries(self, since: date | None = None) -> list[TimeEntry]:
        """Fetch entries with date >= since (all entries if None)."""
        ...

    def add(self, entry: TimeEntry) -> None:
        """Append an entry. Entries are never edited; an id already stored is left as is."""
        ...

    def delete(self, entry_id: str) -> None:
        """Delete a single entry by id."""
        ...

    def delete_for_activity(self, activity_id: str) -> None:
        """Delete every entry logged against an activity."""
        ...
