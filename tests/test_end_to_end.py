"""Synchronizer, ApiRepository and the task store wired together in-process."""

import asyncio

import httpx

from blobby.api import BlobbyApiClient
from blobby.config import ServerSettings
from blobby.models import PersistedId
from blobby.repositories import ApiRepository
from blobby.server import TaskStore, create_app
from blobby.services import TaskSynchronizer


def in_process_repository(store: TaskStore, token: str = "tok") -> ApiRepository:
    settings = ServerSettings(database_path=None, server_tokens={"tok": "alice", "other": "bob"})
    transport = httpx.ASGITransport(app=create_app(settings, store=store))
    client = BlobbyApiClient("http://store.test", token, transport=transport)
    return ApiRepository(client)


class TestEndToEnd:
    """Full round trips through the REST surface."""

    def test_create_move_rename_delete(self):
        """Every mutation reaches the store."""
        store = TaskStore(":memory:")

        async def scenario():
            repo = in_process_repository(store)
            await repo.ensure_user("alice", "alice@example.com")
            sync = TaskSynchronizer(repo)
            await sync.load()
            assert [b.name for b in sync.boards] == ["Home", "Work"]

            temp_id = sync.begin_create(40, 50)
            sync.confirm_create(temp_id, "Ship it")
            await sync.wait_idle()
            created = sync.tasks[0]
            assert isinstance(created.id, PersistedId)

            sync.move(created.id, 120, 80)
            sync.rename(created.id, "Shipped")
            await sync.wait_idle()

            home = sync.active_board_id
            stored = store.list_tasks(home)
            assert [(t["label"], t["x"], t["y"]) for t in stored] == [("Shipped", 120, 80)]

            sync.delete(created.id)
            await sync.wait_idle()
            assert store.list_tasks(home) == []
            assert sync.failures == []
            await repo.close()

        asyncio.run(scenario())

    def test_rejected_rename_rolls_back(self):
        """A 404 from the store reverts the rename."""
        store = TaskStore(":memory:")
        store.upsert_user("alice", None, None)
        home = next(b for b in store.list_boards("alice") if b["name"] == "Home")
        task = store.create_task(home["id"], "Original", 0, 0)

        async def scenario():
            repo = in_process_repository(store)
            sync = TaskSynchronizer(repo)
            await sync.load()
            sync.rename(task["id"], "Renamed")
            await sync.wait_idle()
            assert sync.get_task(task["id"]).label == "Renamed"

            # Removed behind the client's back
            store.delete_task(task["id"])
            sync.rename(task["id"], "Again")
            await sync.wait_idle()

            assert sync.get_task(task["id"]).label == "Renamed"
            assert sync.failures[0].message == "Couldn't rename 'Renamed': Task not found"
            await repo.close()

        asyncio.run(scenario())

    def test_other_users_token_sees_nothing(self):
        """Boards belong to the token's user."""
        store = TaskStore(":memory:")
        store.upsert_user("alice", None, None)

        async def scenario():
            repo = in_process_repository(store, token="other")
            sync = TaskSynchronizer(repo)
            await sync.load()
            assert sync.boards == []
            await repo.close()

        asyncio.run(scenario())

    def test_clear_all_round_trip(self):
        """Clearing a board deletes every stored task."""
        store = TaskStore(":memory:")
        store.upsert_user("alice", None, None)
        home = next(b for b in store.list_boards("alice") if b["name"] == "Home")
        for label in ("A", "B", "C"):
            store.create_task(home["id"], label, 0, 0)

        async def scenario():
            repo = in_process_repository(store)
            sync = TaskSynchronizer(repo)
            await sync.load()
            assert len(sync.tasks) == 3

            sync.clear_all()
            await sync.wait_idle()
            assert sync.tasks == []
            assert store.list_tasks(home["id"]) == []
            await repo.close()

        asyncio.run(scenario())

    def test_store_without_database(self):
        """A store with no database yields no boards and nowhere to create."""

        async def scenario():
            settings = ServerSettings(database_path=None, server_tokens={})
            transport = httpx.ASGITransport(app=create_app(settings))
            repo = ApiRepository(BlobbyApiClient("http://store.test", "tok", transport=transport))
            sync = TaskSynchronizer(repo)
            await sync.load()
            assert sync.boards == []
            assert sync.active_board_id is None
            assert sync.begin_create(0, 0) is None
            await repo.close()

        asyncio.run(scenario())
