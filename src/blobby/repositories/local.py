"""Local YAML repository, used before signing in and as the migration source."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any

import yaml

from ..errors import LocalStoreError, NotFoundError
from ..models import DEFAULT_TASK_SIZE, Board, PersistedId, Task, User

logger = logging.getLogger(__name__)

LOCAL_USER_ID = "local"


def _default_boards() -> dict[str, list[dict[str, Any]]]:
    """Boards shown on first run, before anything was saved."""
    return {
        "Home": [
            {"id": "1", "label": "Circle 1", "x": 100, "y": 100, "size": 100},
            {"id": "2", "label": "Circle 2", "x": 300, "y": 200, "size": 100},
            {"id": "3", "label": "Circle 3", "x": 500, "y": 150, "size": 100},
        ],
        "Work": [],
    }


def _parse_entry(entry: dict[str, Any]) -> Task:
    """Parse a stored entry, tolerating missing fields."""
    return Task(
        id=PersistedId(value=str(entry.get("id") or uuid.uuid4().hex)),
        label=entry.get("label") or "",
        x=entry.get("x") or 0,
        y=entry.get("y") or 0,
        size=entry.get("size") or DEFAULT_TASK_SIZE,
    )


def _to_entry(task: Task) -> dict[str, Any]:
    return {"id": str(task.id), **task.to_api()}


class LocalRepository:
    """
    Repository for boards stored in a single YAML file.

    Boards are keyed by name; a board's id is its name. Every mutation
    rewrites the whole file.
    """

    def __init__(self, path: Path) -> None:
        """
        Initialize repository.

        Args:
            path: Path to the YAML file (need not exist yet)
        """
        self.path = path

    async def close(self) -> None:
        """Nothing to release."""
        pass

    # --- File access ---

    def _read(self) -> dict[str, list[dict[str, Any]]] | None:
        """Read stored boards, or None if nothing was ever saved."""
        if not self.path.exists():
            return None
        try:
            with self.path.open() as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to read local boards from %s: %s", self.path, e)
            raise LocalStoreError(f"Cannot read {self.path}: {e}") from e

        boards = data.get("boards") if isinstance(data, dict) else None
        if not isinstance(boards, dict):
            return {}
        return {str(name): list(entries or []) for name, entries in boards.items()}

    def _boards(self) -> dict[str, list[dict[str, Any]]]:
        stored = self._read()
        return _default_boards() if stored is None else stored

    def _write(self, boards: dict[str, list[dict[str, Any]]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w") as f:
                yaml.dump(
                    {"version": 1, "boards": boards},
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                )
        except OSError as e:
            logger.error("Failed to write local boards to %s: %s", self.path, e)
            raise LocalStoreError(f"Cannot write {self.path}: {e}") from e

    def _find_task(
        self, boards: dict[str, list[dict[str, Any]]], task_id: str
    ) -> tuple[list[dict[str, Any]], int]:
        for entries in boards.values():
            for index, entry in enumerate(entries):
                if str(entry.get("id")) == task_id:
                    return entries, index
        raise NotFoundError("Task not found")

    # --- Migration source ---

    def has_data(self) -> bool:
        """Whether any task was ever saved locally."""
        stored = self._read()
        return bool(stored) and any(stored.values())

    def board_names(self) -> list[str]:
        """Names of the boards saved locally."""
        return list((self._read() or {}).keys())

    def load_board_tasks(self, name: str) -> list[Task]:
        """Tasks saved locally for one board (first-run defaults excluded)."""
        return [_parse_entry(e) for e in (self._read() or {}).get(name, [])]

    def clear(self) -> None:
        """Remove all locally saved boards."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise LocalStoreError(f"Cannot remove {self.path}: {e}") from e
        logger.info("Local boards cleared: %s", self.path)

    # --- Repository protocol ---

    async def get_user(self) -> User | None:
        return User(id=LOCAL_USER_ID, boards=await self.list_boards())

    async def ensure_user(self, username: str | None, email: str | None) -> User:
        user = await self.get_user()
        return user.model_copy(update={"username": username, "email": email})

    async def list_boards(self) -> list[Board]:
        return [
            Board(id=name, name=name, tasks=[_parse_entry(e) for e in entries])
            for name, entries in self._boards().items()
        ]

    async def create_board(self, name: str) -> Board:
        boards = self._boards()
        entries = boards.setdefault(name, [])
        self._write(boards)
        return Board(id=name, name=name, tasks=[_parse_entry(e) for e in entries])

    async def list_tasks(self, board_id: str) -> list[Task]:
        boards = self._boards()
        if board_id not in boards:
            raise NotFoundError("Board not found")
        return [_parse_entry(e) for e in boards[board_id]]

    async def create_task(
        self, board_id: str, label: str, x: float, y: float, size: float
    ) -> Task:
        boards = self._boards()
        if board_id not in boards:
            raise NotFoundError("Board not found")
        task = Task(id=PersistedId(value=uuid.uuid4().hex), label=label, x=x, y=y, size=size)
        boards[board_id].append(_to_entry(task))
        self._write(boards)
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
        boards = self._boards()
        entries, index = self._find_task(boards, task_id)
        entry = dict(entries[index])
        for key, value in (("label", label), ("x", x), ("y", y), ("size", size)):
            if value is not None:
                entry[key] = value
        entries[index] = entry
        self._write(boards)
        return _parse_entry(entry)

    async def delete_task(self, task_id: str) -> None:
        boards = self._boards()
        entries, index = self._find_task(boards, task_id)
        del entries[index]
        self._write(boards)
