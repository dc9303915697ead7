"""Data models."""

from .blobby_config import BlobbyConfig, CanvasConfig, SyncConfig
from .sync import MigrationResult, SyncFailure, SyncOperation
from .task import (
    DEFAULT_TASK_LABEL,
    DEFAULT_TASK_SIZE,
    Board,
    PersistedId,
    Task,
    TaskId,
    TemporaryId,
    User,
)

__all__ = [
    "DEFAULT_TASK_LABEL",
    "DEFAULT_TASK_SIZE",
    "BlobbyConfig",
    "Board",
    "CanvasConfig",
    "MigrationResult",
    "PersistedId",
    "SyncConfig",
    "SyncFailure",
    "SyncOperation",
    "Task",
    "TaskId",
    "TemporaryId",
    "User",
]
