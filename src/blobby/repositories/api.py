"""Repository backed by the remote Blobby task store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import ValidationError

from ..api.client import BlobbyApiClient
from ..errors import StoreUnavailableError, TransportError
from ..models import Board, Task, User

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse(parse: Callable[[dict[str, Any]], T], payload: dict[str, Any]) -> T:
    """Build a model from a store payload; a malformed one is a transport failure."""
    try:
        return parse(payload)
    except (ValidationError, KeyError, TypeError) as e:
        raise TransportError(f"Unexpected response from store: {e}") from e


class ApiRepository:
    """Repository implementation for the REST task store.

    Concurrent identical reads share one in-flight request. The map of
    in-flight reads belongs to this instance and lives as long as it
    does; finished reads are never cached.
    """

    def __init__(self, client: BlobbyApiClient) -> None:
        self.client = client
        self._inflight: dict[tuple[Any, ...], asyncio.Future[Any]] = {}

    async def close(self) -> None:
        """Close the underlying client."""
        await self.client.close()

    def reset_cache(self) -> None:
        """Forget in-flight reads; the next call issues a fresh request."""
        self._inflight.clear()

    @property
    def inflight_count(self) -> int:
        """Number of reads currently shared by callers."""
        return len(self._inflight)

    async def _dedupe(self, key: tuple[Any, ...], fetch: Callable[[], Awaitable[T]]) -> T:
        """Run fetch once for all concurrent callers using the same key."""
        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(fetch())
            self._inflight[key] = future
            future.add_done_callback(lambda f, k=key: self._forget(k, f))
        else:
            logger.debug("Joining in-flight read: %s", key)
        return await asyncio.shield(future)

    def _forget(self, key: tuple[Any, ...], future: asyncio.Future[Any]) -> None:
        if self._inflight.get(key) is future:
            del self._inflight[key]

    # --- Users ---

    async def get_user(self) -> User | None:
        async def fetch() -> User | None:
            data = await self.client.get("/user")
            payload = data.get("user")
            return _parse(User.from_api, payload) if payload else None

        return await self._dedupe(("user",), fetch)

    async def ensure_user(self, username: str | None, email: str | None) -> User:
        data = await self.client.post("/user", json={"username": username, "email": email})
        payload = data.get("user")
        if not payload:
            raise StoreUnavailableError("Store did not return a user")
        return _parse(User.from_api, payload)

    # --- Boards ---

    async def list_boards(self) -> list[Board]:
        async def fetch() -> list[Board]:
            data = await self.client.get("/boards")
            return [_parse(Board.from_api, b) for b in data.get("boards") or []]

        return await self._dedupe(("boards",), fetch)

    async def create_board(self, name: str) -> Board:
        data = await self.client.post("/boards", json={"name": name})
        payload = data.get("board")
        if not payload:
            raise StoreUnavailableError(f"Store did not create board '{name}'")
        logger.info("Board created: %s (%s)", payload.get("id"), name)
        return _parse(Board.from_api, payload)

    # --- Tasks ---

    async def list_tasks(self, board_id: str) -> list[Task]:
        async def fetch() -> list[Task]:
            data = await self.client.get("/tasks", params={"boardId": board_id})
            return [_parse(Task.from_api, t) for t in data.get("tasks") or []]

        return await self._dedupe(("tasks", board_id), fetch)

    async def create_task(
        self, board_id: str, label: str, x: float, y: float, size: float
    ) -> Task:
        data = await self.client.post(
            "/tasks",
            json={"boardId": board_id, "label": label, "x": x, "y": y, "size": size},
        )
        payload = data.get("task")
        if not payload:
            raise StoreUnavailableError("Store did not persist the task")
        task = _parse(Task.from_api, payload)
        logger.info("Task created: %s on board %s", task.id, board_id)
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
            key: value
            for key, value in (("label", label), ("x", x), ("y", y), ("size", size))
            if value is not None
        }
        data = await self.client.put("/tasks", json={"id": task_id, **changes})
        payload = data.get("task")
        return _parse(Task.from_api, payload) if payload else None

    async def delete_task(self, task_id: str) -> None:
        await self.client.delete("/tasks", params={"id": task_id})
        logger.info("Task deleted: %s", task_id)
