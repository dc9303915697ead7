"""Task domain model.

A task is identified by a discriminated union on ``kind``:

- ``TemporaryId`` - created locally for a blob the store has not
  acknowledged yet.
- ``PersistedId`` - issued by the task store.

The two variants never compare equal, so a temporary id can never
collide with a store-issued one.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TASK_SIZE = 100.0
DEFAULT_TASK_LABEL = "New Task"


class TemporaryId(BaseModel):
    """Client-generated placeholder identity."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["temporary"] = "temporary"
    counter: int

    def __str__(self) -> str:
        return f"tmp-{self.counter}"


class PersistedId(BaseModel):
    """Identity issued by the task store."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["persisted"] = "persisted"
    value: str

    def __str__(self) -> str:
        return self.value


TaskId = Annotated[TemporaryId | PersistedId, Field(discriminator="kind")]


class Task(BaseModel):
    """A positioned, labeled circular blob on a board."""

    model_config = ConfigDict(frozen=True)

    id: TaskId
    label: str = ""
    x: float = 0.0
    y: float = 0.0
    size: float = Field(default=DEFAULT_TASK_SIZE, gt=0)

    @property
    def is_temporary(self) -> bool:
        """True until the store has acknowledged this task."""
        return isinstance(self.id, TemporaryId)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Task:
        """Create a Task from the store's JSON shape."""
        return cls(
            id=PersistedId(value=str(payload["id"])),
            label=payload.get("label") or "",
            x=payload.get("x") or 0.0,
            y=payload.get("y") or 0.0,
            size=payload.get("size") or DEFAULT_TASK_SIZE,
        )

    def to_api(self) -> dict[str, Any]:
        """Convert to the store's JSON shape (without the id)."""
        return {"label": self.label, "x": self.x, "y": self.y, "size": self.size}


class Board(BaseModel):
    """A named collection of tasks owned by one user."""

    id: str
    name: str
    tasks: list[Task] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Board:
        """Create a Board (and its nested tasks, if any) from JSON."""
        return cls(
            id=str(payload["id"]),
            name=payload.get("name", ""),
            tasks=[Task.from_api(t) for t in payload.get("tasks") or []],
        )


class User(BaseModel):
    """An authenticated identity owning boards."""

    id: str
    username: str | None = None
    email: str | None = None
    boards: list[Board] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> User:
        """Create a User from JSON."""
        return cls(
            id=str(payload["id"]),
            username=payload.get("username"),
            email=payload.get("email"),
            boards=[Board.from_api(b) for b in payload.get("boards") or []],
        )
