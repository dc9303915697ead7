"""Repository protocol for task storage backends."""

from typing import Protocol

from ..models import Board, Task, User


class TaskRepositoryProtocol(Protocol):
    """Interface for task storage backends.

    This protocol defines the contract that all repository implementations
    must follow. It supports:
    - The remote task store (REST API)
    - A local YAML file, used before signing in

    Every method either returns the parsed result or raises a
    ``BlobbyError`` subclass. Task and board ids passed in are the
    store's own ids (``PersistedId.value``), never temporary ids.
    """

    async def get_user(self) -> User | None:
        """Get the current user with nested boards, or None if unknown."""
        ...

    async def ensure_user(self, username: str | None, email: str | None) -> User:
        """Create the current user (with default boards) or update it."""
        ...

    async def list_boards(self) -> list[Board]:
        """Load all boards of the current user, with their tasks."""
        ...

    async def create_board(self, name: str) -> Board:
        """Create an empty board."""
        ...

    async def list_tasks(self, board_id: str) -> list[Task]:
        """Load the tasks of one board, in creation order."""
        ...

    async def create_task(
        self, board_id: str, label: str, x: float, y: float, size: float
    ) -> Task:
        """Create a task and return it with its persisted id."""
        ...

    async def update_task(
        self,
        task_id: str,
        *,
        label: str | None = None,
        x: float | None = None,
        y: float | None = None,
        size: float | None = None,
    ) -> Task | None:
        """Update only the given fields of a task.

        Returns:
            The updated task, or None if the store acknowledged without one.
        """
        ...

    async def delete_task(self, task_id: str) -> None:
        """Delete a task."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        ...
