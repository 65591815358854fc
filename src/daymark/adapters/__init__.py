"""Adapters - I/O implementations of ports."""

from .json_store import (
    FileTimerStore,
    JsonActivityStore,
    JsonCountdownStore,
    JsonTimeEntryStore,
    JsonTodoStore,
)
from .postgrest import (
    PostgrestActivityStore,
    PostgrestClient,
    PostgrestCountdownStore,
    PostgrestTimeEntryStore,
    PostgrestTodoStore,
)

__all__ = [
    "FileTimerStore",
    "JsonActivityStore",
    "JsonCountdownStore",
    "JsonTimeEntryStore",
    "JsonTodoStore",
    "PostgrestActivityStore",
    "PostgrestClient",
    "PostgrestCountdownStore",
    "PostgrestTimeEntryStore",
    "PostgrestTodoStore",
]
