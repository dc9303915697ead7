"""sqlite3 persistence for the task store."""

from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BOARDS = ("Home", "Work")

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    username TEXT,
    email TEXT,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS boards (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS tasks (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    board_id TEXT NOT NULL REFERENCES boards(id) ON DELETE CASCADE,
    label TEXT NOT NULL DEFAULT '',
    x REAL NOT NULL DEFAULT 0,
    y REAL NOT NULL DEFAULT 0,
    size REAL NOT NULL DEFAULT 100,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_boards_user ON boards(user_id);
CREATE INDEX IF NOT EXISTS idx_tasks_board ON tasks(board_id);
"""

TASK_FIELDS = ("label", "x", "y", "size")


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def _task_row(row: sqlite3.Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "boardId": row["board_id"],
        "label": row["label"],
        "x": row["x"],
        "y": row["y"],
        "size": row["size"],
        "createdAt": row["created_at"],
    }


def _board_row(row: sqlite3.Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "name": row["name"],
        "createdAt": row["created_at"],
    }


class TaskStore:
    """Users, boards and tasks in one sqlite database.

    Safe to share between the server's worker threads; every public
    method runs under one lock.
    """

    def __init__(self, database: Path | str) -> None:
        """
        Args:
            database: Path to the database file, or ":memory:"
        """
        self.database = database
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(database), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(SCHEMA)
        logger.info("Task store opened: %s", database)

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock, self._conn:
            yield self._conn

    # --- Users ---

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        """Get a user with nested boards and tasks."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            if row is None:
                return None
            boards = self._boards_with_tasks(conn, user_id, order="seq")
        return {
            "id": row["id"],
            "username": row["username"],
            "email": row["email"],
            "boards": boards,
        }

    def upsert_user(self, user_id: str, username: str | None, email: str | None) -> dict[str, Any]:
        """Create the user with its default boards, or update its details."""
        with self._transaction() as conn:
            exists = conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone()
            if exists:
                conn.execute(
                    "UPDATE users SET username = ?, email = ? WHERE id = ?",
                    (username, email, user_id),
                )
            else:
                conn.execute(
                    "INSERT INTO users (id, username, email, created_at) VALUES (?, ?, ?, ?)",
                    (user_id, username, email, _now()),
                )
                for name in DEFAULT_BOARDS:
                    conn.execute(
                        "INSERT INTO boards (id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
                        (_new_id(), user_id, name, _now()),
                    )
                logger.info("User created: %s", user_id)
            boards = [
                _board_row(r)
                for r in conn.execute(
                    "SELECT * FROM boards WHERE user_id = ? ORDER BY seq", (user_id,)
                )
            ]
        return {"id": user_id, "username": username, "email": email, "boards": boards}

    # --- Boards ---

    def list_boards(self, user_id: str) -> list[dict[str, Any]]:
        """Boards of a user ordered by name, each with tasks in creation order."""
        with self._transaction() as conn:
            return self._boards_with_tasks(conn, user_id, order="name, seq")

    def _boards_with_tasks(
        self, conn: sqlite3.Connection, user_id: str, order: str
    ) -> list[dict[str, Any]]:
        boards = []
        for row in conn.execute(
            f"SELECT * FROM boards WHERE user_id = ? ORDER BY {order}", (user_id,)
        ):
            board = _board_row(row)
            board["tasks"] = [
                _task_row(t)
                for t in conn.execute(
                    "SELECT * FROM tasks WHERE board_id = ? ORDER BY seq", (row["id"],)
                )
            ]
            boards.append(board)
        return boards

    def create_board(self, user_id: str, name: str) -> dict[str, Any]:
        board_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO users (id, created_at) VALUES (?, ?)",
                (user_id, _now()),
            )
            conn.execute(
                "INSERT INTO boards (id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
                (board_id, user_id, name, _now()),
            )
            row = conn.execute("SELECT * FROM boards WHERE id = ?", (board_id,)).fetchone()
        board = _board_row(row)
        board["tasks"] = []
        return board

    def find_board(self, board_id: str, user_id: str) -> dict[str, Any] | None:
        """Get a board only if the user owns it."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM boards WHERE id = ? AND user_id = ?", (board_id, user_id)
            ).fetchone()
        return _board_row(row) if row else None

    # --- Tasks ---

    def list_tasks(self, board_id: str) -> list[dict[str, Any]]:
        with self._transaction() as conn:
            return [
                _task_row(r)
                for r in conn.execute(
                    "SELECT * FROM tasks WHERE board_id = ? ORDER BY seq", (board_id,)
                )
            ]

    def create_task(
        self, board_id: str, label: str, x: float, y: float, size: float = 100
    ) -> dict[str, Any]:
        task_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO tasks (id, board_id, label, x, y, size, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (task_id, board_id, label, x, y, size, _now()),
            )
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return _task_row(row)

    def find_task(self, task_id: str, user_id: str) -> dict[str, Any] | None:
        """Get a task only if it sits on a board the user owns."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT tasks.* FROM tasks JOIN boards ON boards.id = tasks.board_id "
                "WHERE tasks.id = ? AND boards.user_id = ?",
                (task_id, user_id),
            ).fetchone()
        return _task_row(row) if row else None

    def update_task(self, task_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        """Apply the given fields (label, x, y, size) and return the task."""
        fields = {k: v for k, v in changes.items() if k in TASK_FIELDS}
        with self._transaction() as conn:
            if fields:
                assignments = ", ".join(f"{k} = ?" for k in fields)
                conn.execute(
                    f"UPDATE tasks SET {assignments} WHERE id = ?",
                    (*fields.values(), task_id),
                )
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return _task_row(row) if row else None

    def delete_task(self, task_id: str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
