"""Todo list model and ordering - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime

from .daymath import parse_instant


@dataclass
class Todo:
    """A to-do item with an optional due instant."""

    id: str
    title: str
    notes: str | None = None
    is_done: bool = False
    due_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Todo":
        """Create Todo from a storage row (snake_case columns)."""
        due = row.get("due_at")
        created = row.get("created_at")
        updated = row.get("updated_at")
        return cls(
            id=row["id"],
            title=row["title"],
            notes=row.get("notes") or None,
            is_done=bool(row.get("is_done")),
            due_at=parse_instant(due) if due else None,
            created_at=parse_instant(created) if created else None,
            updated_at=parse_instant(updated) if updated else None,
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "notes": self.notes,
            "is_done": self.is_done,
            "due_at": self.due_at.isoformat() if self.due_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def _instant_key(value: datetime | None) -> float:
    if value is None:
        return float("inf")
    return value.timestamp()


def sort_todos(todos: list[Todo]) -> list[Todo]:
    """
    Open items first, then by due instant (undated last), then oldest first.

    Pure function - no I/O.
    """
    return sorted(
        todos,
        key=lambda t: (t.is_done, _instant_key(t.due_at), _instant_key(t.created_at)),
    )
