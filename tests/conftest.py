"""Shared fixtures: an in-memory repository with failure switches and gates."""

from __future__ import annotations

import asyncio
import itertools

import pytest

from blobby.errors import BlobbyError, NotFoundError
from blobby.models import Board, PersistedId, Task, User


class FakeRepository:
    """In-memory TaskRepositoryProtocol for driving the synchronizer.

    - ``calls`` records every call as ``(operation, *args)``.
    - ``failures[op]`` is raised by every later ``op`` call until removed.
    - ``gates[op]`` holds ``op`` calls until the event is set, so a test can
      inspect state while a remote phase is in flight.
    """

    def __init__(self, boards: dict[str, tuple[str, list[Task]]] | None = None) -> None:
        self.boards: dict[str, str] = {}
        self.tasks: dict[str, list[Task]] = {}
        for board_id, (name, tasks) in (boards or {}).items():
            self.boards[board_id] = name
            self.tasks[board_id] = list(tasks)
        self.calls: list[tuple] = []
        self.failures: dict[str, BaseException] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self._ids = itertools.count(1)
        self.closed = False

    def calls_for(self, operation: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == operation]

    async def _step(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def _locate(self, task_id: str) -> tuple[list[Task], int]:
        for tasks in self.tasks.values():
            for index, task in enumerate(tasks):
                if str(task.id) == task_id:
                    return tasks, index
        raise NotFoundError("Task not found")

    async def get_user(self) -> User | None:
        await self._step("get_user")
        return User(id="user-1", boards=await self._boards())

    async def ensure_user(self, username: str | None, email: str | None) -> User:
        await self._step("ensure_user", username, email)
        return User(id="user-1", username=username, email=email, boards=await self._boards())

    async def _boards(self) -> list[Board]:
        return [
            Board(id=board_id, name=name, tasks=list(self.tasks[board_id]))
            for board_id, name in self.boards.items()
        ]

    async def list_boards(self) -> list[Board]:
        await self._step("list_boards")
        return await self._boards()

    async def create_board(self, name: str) -> Board:
        await self._step("create_board", name)
        board_id = f"board-{next(self._ids)}"
        self.boards[board_id] = name
        self.tasks[board_id] = []
        return Board(id=board_id, name=name)

    async def list_tasks(self, board_id: str) -> list[Task]:
        await self._step("list_tasks", board_id)
        if board_id not in self.tasks:
            raise NotFoundError("Board not found")
        return list(self.tasks[board_id])

    async def create_task(self, board_id: str, label: str, x: float, y: float, size: float) -> Task:
        await self._step("create_task", board_id, label, x, y, size)
        task = Task(id=PersistedId(value=f"task-{next(self._ids)}"), label=label, x=x, y=y, size=size)
        self.tasks.setdefault(board_id, []).append(task)
        return task

    async def update_task(
        self,
        task_id: str,
        *,
        label: str | None = None,
        x: float | None = None,
        y: float | None = None,
        size: float | None = None,
    ) -> Task | None:
        changes = {
            k: v for k, v in (("label", label), ("x", x), ("y", y), ("size", size)) if v is not None
        }
        await self._step("update_task", task_id, changes)
        tasks, index = self._locate(task_id)
        tasks[index] = tasks[index].model_copy(update=changes)
        return tasks[index]

    async def delete_task(self, task_id: str) -> None:
        await self._step("delete_task", task_id)
        tasks, index = self._locate(task_id)
        del tasks[index]

    async def close(self) -> None:
        self.closed = True


def make_task(task_id: str, label: str = "", x: float = 0, y: float = 0, size: float = 100) -> Task:
    return Task(id=PersistedId(value=task_id), label=label, x=x, y=y, size=size)


@pytest.fixture
def repo() -> FakeRepository:
    """Two boards: Home with three tasks, Work with one."""
    return FakeRepository(
        {
            "home": (
                "Home",
                [
                    make_task("a", "Alpha", 100, 100),
                    make_task("b", "Beta", 300, 200),
                    make_task("c", "Gamma", 500, 150),
                ],
            ),
            "work": ("Work", [make_task("w", "Report", 50, 60)]),
        }
    )


class Boom(BlobbyError):
    """Failure injected by tests."""
