"""Todo repository interface."""

from typing import Protocol

from daymark.core.todos import Todo


class TodoRepository(Protocol):
    """Interface for reading and writing todos in any backend."""

    def fetch_all(self) -> list[Todo]:
        """Fetch all todos (display order is applied by sort_todos)."""
        ...

    def add(self, todo: Todo) -> None:
        ...

    def update(self, todo: Todo) -> None:
        """Replace an existing todo with the same id."""
        ...

    def delete(self, todo_id: str) -> None:
        ...
