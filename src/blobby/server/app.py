"""
Blobby Task Store API
=====================
FastAPI routes for boards, tasks and the current user.

Every route requires ``Authorization: Bearer <token>``; tokens map to
user ids through ServerSettings.server_tokens. Boards and tasks owned by
someone else are reported as not found.

When no database is configured every route answers with its empty
payload, so a deployment without storage still serves the client.
"""

import hmac
import logging
import sqlite3
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ServerSettings
from .store import TaskStore

logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST MODELS
# =============================================================================


class BoardCreate(BaseModel):
    """Request body for creating a board."""

    name: str


class TaskCreate(BaseModel):
    """Request body for creating a task."""

    boardId: str | None = None
    label: str = ""
    x: float = 0
    y: float = 0
    size: float = Field(default=100, gt=0)


class TaskUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    id: str | None = None
    label: str | None = None
    x: float | None = None
    y: float | None = None
    size: float | None = Field(default=None, gt=0)


class UserUpsert(BaseModel):
    """Request body for creating or updating the current user."""

    username: str | None = None
    email: str | None = None


class StoreHTTPError(Exception):
    """Rendered as ``{"error": message}`` with the given status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


# =============================================================================
# APP
# =============================================================================


def create_app(settings: ServerSettings | None = None, store: TaskStore | None = None) -> FastAPI:
    """Build the API application.

    Args:
        settings: Server settings (read from the environment if omitted)
        store: Store to use; opened from settings.database_path if omitted
    """
    settings = settings or ServerSettings()
    if store is None and settings.database_path is not None:
        store = TaskStore(settings.database_path)
    if store is None:
        logger.warning("No database configured; every request returns empty data")

    app = FastAPI(title="Blobby Task Store")
    tokens = dict(settings.server_tokens)

    @app.exception_handler(StoreHTTPError)
    async def store_error_handler(request: Request, exc: StoreHTTPError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"] if part != "body")
        message = f"{field}: {first['msg']}" if field else first["msg"]
        return JSONResponse({"error": message}, status_code=400)

    @app.exception_handler(sqlite3.Error)
    async def database_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    def current_user(request: Request) -> str:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() == "bearer" and token:
            for known, user_id in tokens.items():
                if hmac.compare_digest(token.strip(), known):
                    return user_id
        raise StoreHTTPError(401, "Unauthorized")

    def require_board(board_id: str | None, user_id: str) -> dict[str, Any]:
        board = store.find_board(board_id, user_id) if board_id else None
        if board is None:
            raise StoreHTTPError(404, "Board not found")
        return board

    def require_task(task_id: str | None, user_id: str) -> dict[str, Any]:
        task = store.find_task(task_id, user_id) if task_id else None
        if task is None:
            raise StoreHTTPError(404, "Task not found")
        return task

    # --- Boards ---

    @app.get("/boards")
    def list_boards(request: Request) -> dict[str, Any]:
        if store is None:
            return {"boards": []}
        user_id = current_user(request)
        return {"boards": store.list_boards(user_id)}

    @app.post("/boards")
    def create_board(request: Request, body: BoardCreate) -> dict[str, Any]:
        if store is None:
            return {"board": None}
        user_id = current_user(request)
        board = store.create_board(user_id, body.name)
        logger.info("Board created: %s (%s) for %s", board["id"], body.name, user_id)
        return {"board": board}

    # --- Tasks ---

    @app.get("/tasks")
    def list_tasks(request: Request, boardId: str | None = None) -> dict[str, Any]:
        if store is None:
            return {"tasks": []}
        user_id = current_user(request)
        if not boardId:
            raise StoreHTTPError(400, "Board ID required")
        require_board(boardId, user_id)
        return {"tasks": store.list_tasks(boardId)}

    @app.post("/tasks")
    def create_task(request: Request, body: TaskCreate) -> dict[str, Any]:
        if store is None:
            return {"task": None}
        user_id = current_user(request)
        board = require_board(body.boardId, user_id)
        task = store.create_task(board["id"], body.label, body.x, body.y, body.size)
        logger.info("Task created: %s on board %s", task["id"], board["id"])
        return {"task": task}

    @app.put("/tasks")
    def update_task(request: Request, body: TaskUpdate) -> dict[str, Any]:
        if store is None:
            return {"task": None}
        user_id = current_user(request)
        task = require_task(body.id, user_id)
        changes = body.model_dump(exclude={"id"}, exclude_none=True)
        return {"task": store.update_task(task["id"], changes)}

    @app.delete("/tasks")
    def delete_task(request: Request, id: str | None = None) -> dict[str, Any]:
        if store is None:
            return {"success": True}
        user_id = current_user(request)
        if not id:
            raise StoreHTTPError(400, "Task ID required")
        require_task(id, user_id)
        store.delete_task(id)
        logger.info("Task deleted: %s", id)
        return {"success": True}

    # --- User ---

    @app.get("/user")
    def get_user(request: Request) -> dict[str, Any]:
        if store is None:
            return {"user": None}
        user_id = current_user(request)
        return {"user": store.get_user(user_id)}

    @app.post("/user")
    def upsert_user(request: Request, body: UserUpsert) -> dict[str, Any]:
        if store is None:
            return {"user": None}
        user_id = current_user(request)
        return {"user": store.upsert_user(user_id, body.username, body.email)}

    return app
