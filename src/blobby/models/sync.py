"""Result models for synchronization and migration."""

from dataclasses import dataclass, field
from enum import Enum

from .task import PersistedId, TemporaryId


class SyncOperation(str, Enum):
    """Mutation kinds the synchronizer forwards to a repository."""

    MOVE = "move"
    CREATE = "create"
    RENAME = "rename"
    DELETE = "delete"
    CLEAR_ALL = "clear_all"
    SWITCH_BOARD = "switch_board"
    LOAD = "load"


@dataclass
class SyncFailure:
    """A failed remote phase, surfaced once to the user."""

    operation: SyncOperation
    message: str
    task_id: TemporaryId | PersistedId | None = None
    board_id: str | None = None
    blocking: bool = True  # False when local state was kept (failed moves)


@dataclass
class MigrationResult:
    """Result of moving local board data into the remote store."""

    success: bool
    message: str
    migrated: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Whether any task failed to migrate."""
        return len(self.errors) > 0
