"""Tests for ApiRepository: payload parsing, null tolerance and read deduplication."""

import asyncio
import json

import httpx
import pytest

from blobby.api import BlobbyApiClient
from blobby.errors import ServerError, StoreUnavailableError, TransportError
from blobby.models import PersistedId
from blobby.repositories import ApiRepository


class FakeStore:
    """MockTransport handler recording requests and replying from a table."""

    def __init__(self, responses: dict[tuple[str, str], httpx.Response | dict]) -> None:
        self.responses = responses
        self.requests: list[httpx.Request] = []
        self.gate: asyncio.Event | None = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        reply = self.responses[(request.method, request.url.path)]
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if (r.method, r.url.path) == (method, path))


def repository(store: FakeStore) -> ApiRepository:
    client = BlobbyApiClient("https://store.test", "tok", transport=httpx.MockTransport(store))
    return ApiRepository(client)


BOARDS = {
    "boards": [
        {
            "id": "b1",
            "userId": "u1",
            "name": "Home",
            "tasks": [
                {"id": "t1", "boardId": "b1", "label": "Alpha", "x": 1, "y": 2, "size": 80},
            ],
        },
        {"id": "b2", "userId": "u1", "name": "Work", "tasks": []},
    ]
}


class TestApiRepositoryReads:
    """Tests for list and get operations."""

    def test_list_boards_with_nested_tasks(self):
        """Boards are parsed with their tasks."""
        store = FakeStore({("GET", "/boards"): BOARDS})

        async def scenario():
            repo = repository(store)
            boards = await repo.list_boards()
            await repo.close()
            return boards

        boards = asyncio.run(scenario())
        assert [b.name for b in boards] == ["Home", "Work"]
        task = boards[0].tasks[0]
        assert task.id == PersistedId(value="t1")
        assert (task.label, task.x, task.y, task.size) == ("Alpha", 1, 2, 80)

    def test_list_tasks_sends_board_id(self):
        """list_tasks passes the board id as a query parameter."""
        store = FakeStore({("GET", "/tasks"): {"tasks": [{"id": "t1", "label": "A"}]}})

        async def scenario():
            return await repository(store).list_tasks("b1")

        tasks = asyncio.run(scenario())
        assert store.requests[0].url.params["boardId"] == "b1"
        assert tasks[0].size == 100

    def test_empty_payloads_are_tolerated(self):
        """A store without a database answers with empty data."""
        store = FakeStore(
            {
                ("GET", "/boards"): {"boards": []},
                ("GET", "/tasks"): {"tasks": []},
                ("GET", "/user"): {"user": None},
            }
        )

        async def scenario():
            repo = repository(store)
            return await repo.list_boards(), await repo.list_tasks("b1"), await repo.get_user()

        assert asyncio.run(scenario()) == ([], [], None)


class TestApiRepositoryWrites:
    """Tests for create, update and delete."""

    def test_create_task(self):
        """create_task posts the full task and parses the reply."""
        store = FakeStore(
            {
                ("POST", "/tasks"): {
                    "task": {"id": "real-9", "label": "Ship it", "x": 10, "y": 10, "size": 100}
                }
            }
        )

        async def scenario():
            return await repository(store).create_task("b1", "Ship it", 10, 10, 100)

        task = asyncio.run(scenario())
        assert task.id == PersistedId(value="real-9")
        assert json.loads(store.requests[0].content) == {
            "boardId": "b1",
            "label": "Ship it",
            "x": 10,
            "y": 10,
            "size": 100,
        }

    def test_create_task_null_payload(self):
        """A create that persisted nothing raises instead of inventing a task."""
        store = FakeStore({("POST", "/tasks"): {"task": None}})

        with pytest.raises(StoreUnavailableError):
            asyncio.run(repository(store).create_task("b1", "A", 0, 0, 100))

    def test_create_board_null_payload(self):
        """A board create that persisted nothing raises."""
        store = FakeStore({("POST", "/boards"): {"board": None}})

        with pytest.raises(StoreUnavailableError):
            asyncio.run(repository(store).create_board("Garden"))

    @pytest.mark.parametrize(
        "payload",
        [
            {"id": "t1", "label": "A", "size": -5},
            {"label": "A", "size": 100},
        ],
    )
    def test_malformed_task_is_a_transport_error(self, payload):
        """A task the models can't hold surfaces as a store error, not a crash."""
        store = FakeStore(
            {("POST", "/tasks"): {"task": payload}, ("GET", "/tasks"): {"tasks": [payload]}}
        )

        with pytest.raises(TransportError, match="Unexpected response from store"):
            asyncio.run(repository(store).create_task("b1", "A", 0, 0, 100))
        with pytest.raises(TransportError):
            asyncio.run(repository(store).list_tasks("b1"))

    def test_update_sends_only_given_fields(self):
        """Partial updates omit unset fields."""
        store = FakeStore({("PUT", "/tasks"): {"task": {"id": "t1", "label": "A", "x": 5, "y": 6}}})

        async def scenario():
            return await repository(store).update_task("t1", x=5, y=6)

        task = asyncio.run(scenario())
        assert json.loads(store.requests[0].content) == {"id": "t1", "x": 5, "y": 6}
        assert (task.x, task.y) == (5, 6)

    def test_update_zero_coordinates_are_sent(self):
        """Zero is a coordinate, not a missing value."""
        store = FakeStore({("PUT", "/tasks"): {"task": None}})

        asyncio.run(repository(store).update_task("t1", x=0, y=0))
        assert json.loads(store.requests[0].content) == {"id": "t1", "x": 0, "y": 0}

    def test_delete_uses_query_id(self):
        """delete_task passes the id as a query parameter."""
        store = FakeStore({("DELETE", "/tasks"): {"success": True}})

        asyncio.run(repository(store).delete_task("t1"))
        assert store.requests[0].url.params["id"] == "t1"

    def test_failures_propagate(self):
        """Store failures are raised, never swallowed."""
        store = FakeStore(
            {("DELETE", "/tasks"): httpx.Response(500, json={"error": "Internal server error"})}
        )

        with pytest.raises(ServerError):
            asyncio.run(repository(store).delete_task("t1"))


class TestApiRepositoryDedupe:
    """Tests for sharing concurrent identical reads."""

    def test_concurrent_reads_share_one_request(self):
        """Two concurrent list_boards calls make one request."""
        store = FakeStore({("GET", "/boards"): BOARDS})

        async def scenario():
            repo = repository(store)
            first, second = await asyncio.gather(repo.list_boards(), repo.list_boards())
            assert first == second
            assert repo.inflight_count == 0

        asyncio.run(scenario())
        assert store.count("GET", "/boards") == 1

    def test_finished_reads_are_not_cached(self):
        """A read after the previous one finished goes to the store again."""
        store = FakeStore({("GET", "/boards"): BOARDS})

        async def scenario():
            repo = repository(store)
            await repo.list_boards()
            await repo.list_boards()

        asyncio.run(scenario())
        assert store.count("GET", "/boards") == 2

    def test_different_keys_are_separate(self):
        """Reads of different boards are not shared."""
        store = FakeStore({("GET", "/tasks"): {"tasks": []}})

        async def scenario():
            repo = repository(store)
            await asyncio.gather(repo.list_tasks("b1"), repo.list_tasks("b2"), repo.list_tasks("b1"))

        asyncio.run(scenario())
        assert store.count("GET", "/tasks") == 2

    def test_shared_failure_reaches_every_caller(self):
        """Every caller of a shared read sees its failure."""
        store = FakeStore({("GET", "/boards"): httpx.Response(500, json={"error": "down"})})

        async def scenario():
            repo = repository(store)
            return await asyncio.gather(
                repo.list_boards(), repo.list_boards(), return_exceptions=True
            )

        results = asyncio.run(scenario())
        assert all(isinstance(r, ServerError) for r in results)
        assert store.count("GET", "/boards") == 1

    def test_reset_cache_starts_a_fresh_request(self):
        """After reset_cache a new caller does not join the old read."""
        store = FakeStore({("GET", "/boards"): BOARDS})

        async def scenario():
            store.gate = asyncio.Event()
            repo = repository(store)
            first = asyncio.ensure_future(repo.list_boards())
            await asyncio.sleep(0)
            assert repo.inflight_count == 1

            repo.reset_cache()
            second = asyncio.ensure_future(repo.list_boards())
            await asyncio.sleep(0)
            store.gate.set()
            await asyncio.gather(first, second)

        asyncio.run(scenario())
        assert store.count("GET", "/boards") == 2
