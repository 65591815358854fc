"""Ports - interfaces/protocols for external dependencies."""

from .countdown_repo import CountdownRepository
from .tracking_repo import ActivityRepository, TimeEntryRepository
from .timer_store import TimerStore
from .todo_repo import TodoRepository

__all__ = [
    "CountdownRepository",
    "ActivityRepository",
    "TimeEntryRepository",
    "TimerStore",
    "TodoRepository",
]
