"""Timer session persistence interface."""

from typing import Protocol

from daymark.core.timer import TimerSession


class TimerStore(Protocol):
    """Interface for persisting the single in-flight timer."""

    def load(self) -> TimerSession | None:
        """Load the persisted session. Returns None if no timer is running."""
        ...

    def save(self, session: TimerSession) -> None:
        """Persist the session snapshot."""
        ...

    def clear(self) -> None:
        """Remove the persisted session."""
        ...
