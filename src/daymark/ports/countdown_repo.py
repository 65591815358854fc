"""Countdown repository interface."""

from typing import Protocol

from daymark.core.countdowns import Countdown


class CountdownRepository(Protocol):
    """Interface for reading and writing countdowns in any backend."""

    def fetch_all(self) -> list[Countdown]:
        """Fetch all countdowns in storage order."""
        ...

    def add(self, countdown: Countdown) -> None:
        """Create a countdown."""
        ...

    def update(self, countdown: Countdown) -> None:
        """Replace an existing countdown with the same id."""
        ...

    def delete(self, countdown_id: str) -> None:
        """Delete a countdown by id."""
        ...
