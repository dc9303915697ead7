"""Migrate command: copy locally saved boards into the task store."""

import asyncio
import logging

from ..api import BlobbyApiClient
from ..config import Settings
from ..errors import BlobbyError
from ..repositories import ApiRepository, LocalRepository
from ..services import MigrationService
from .output import detail, error, header, info, success, warning

logger = logging.getLogger(__name__)


def run_migrate(settings: Settings) -> int:
    """
    Move local boards to the signed-in account.

    Args:
        settings: Settings with api_url, api_token and local_store

    Returns:
        Exit code (0 = success or nothing to do, 1 = failure)
    """
    local = LocalRepository(settings.local_store)
    try:
        if not local.has_data():
            info("No local data found to migrate")
            return 0
    except BlobbyError as e:
        error(str(e))
        return 1

    try:
        client = BlobbyApiClient.from_settings(settings)
    except BlobbyError as e:
        error(str(e))
        return 1

    header(f"Migrating {settings.local_store} to {settings.api_url}")
    return asyncio.run(_migrate(local, client, settings))


async def _migrate(local: LocalRepository, client: BlobbyApiClient, settings: Settings) -> int:
    async with client:
        remote = ApiRepository(client)
        try:
            await remote.ensure_user(settings.username, settings.email)
        except BlobbyError as e:
            logger.error("Sign-in failed: %s", e)
            error(f"Migration failed: {e}")
            return 1

        result = await MigrationService(local, remote).migrate()

    if not result.success:
        error(result.message)
        return 1

    success(result.message)
    if result.has_errors:
        warning(f"{len(result.errors)} tasks were not migrated:")
        detail(result.errors)
        return 1
    return 0
