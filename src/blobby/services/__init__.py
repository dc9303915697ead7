"""Service layer for business logic."""

from .config_service import ConfigService
from .migration_service import MigrationService
from .synchronizer import TaskSynchronizer

__all__ = [
    "ConfigService",
    "MigrationService",
    "TaskSynchronizer",
]
