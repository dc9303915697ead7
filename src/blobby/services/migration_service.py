"""One-time transfer of locally saved boards into the task store."""

from __future__ import annotations

import logging

from ..errors import BlobbyError
from ..models import Board, MigrationResult
from ..repositories import LocalRepository, TaskRepositoryProtocol

logger = logging.getLogger(__name__)


class MigrationService:
    """Copies tasks from the local YAML store to a remote repository."""

    def __init__(self, local: LocalRepository, remote: TaskRepositoryProtocol) -> None:
        self.local = local
        self.remote = remote

    def has_local_data(self) -> bool:
        """Whether there is anything worth offering to migrate."""
        return self.local.has_data()

    def count_local_tasks(self) -> int:
        return sum(len(self.local.load_board_tasks(name)) for name in self.local.board_names())

    async def migrate(self) -> MigrationResult:
        """Create every local task on the matching remote board.

        Boards are matched by name and created remotely when missing.
        A task that fails is logged and skipped; the local store is
        cleared only if at least one task made it across.
        """
        try:
            local_boards = {
                name: self.local.load_board_tasks(name) for name in self.local.board_names()
            }
            if not any(local_boards.values()):
                return MigrationResult(success=True, message="No local data found to migrate")

            remote_boards = {b.name: b for b in await self.remote.list_boards()}
        except BlobbyError as e:
            logger.error("Migration failed: %s", e)
            return MigrationResult(success=False, message=f"Migration failed: {e}")

        migrated = 0
        errors: list[str] = []

        for name, tasks in local_boards.items():
            if not tasks:
                continue
            try:
                board = await self._remote_board(name, remote_boards)
            except BlobbyError as e:
                logger.error("Error creating board %s for migration: %s", name, e)
                errors.append(f"{name}: {e}")
                continue

            for task in tasks:
                try:
                    await self.remote.create_task(board.id, task.label, task.x, task.y, task.size)
                    migrated += 1
                except BlobbyError as e:
                    logger.error("Error migrating %s task %s: %s", name, task.id, e)
                    errors.append(f"{name}/{task.label}: {e}")

        if migrated > 0:
            try:
                self.local.clear()
            except BlobbyError as e:
                logger.error("Migrated %d tasks but couldn't clear local boards: %s", migrated, e)
                errors.append(f"Local boards were kept: {e}")

        logger.info("Migrated %d tasks (%d errors)", migrated, len(errors))
        return MigrationResult(
            success=True,
            message=f"Successfully migrated {migrated} tasks to cloud storage",
            migrated=migrated,
            errors=errors,
        )

    async def _remote_board(self, name: str, remote_boards: dict[str, Board]) -> Board:
        board = remote_boards.get(name)
        if board is None:
            logger.info("Creating missing board %s for migration", name)
            board = await self.remote.create_board(name)
            remote_boards[name] = board
        return board
