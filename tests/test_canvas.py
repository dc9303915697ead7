"""Tests for canvas gestures in a running app.

Blobs are dragged by feeding mouse events straight to the widget, so the
whole path from widget to synchronizer to repository is exercised.
"""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock, patch

from conftest import FakeRepository
from textual.geometry import Offset
from textual.widgets import Input

from blobby.app import BlobbyApp
from blobby.config import Settings
from blobby.models import PersistedId
from blobby.ui.screens import CanvasScreen
from blobby.ui.screens.canvas import STILL_SAVING
from blobby.ui.widgets import LabelModal
from blobby.ui.widgets.blob import BlobWidget


def make_app(repo: FakeRepository, tmp_path: Path) -> BlobbyApp:
    settings = Settings(
        api_url=None,
        api_token=None,
        config_dir=tmp_path,
        local_store=tmp_path / "boards.yml",
    )
    return BlobbyApp(settings, repository=repo)


async def ready(app: BlobbyApp, pilot) -> CanvasScreen:
    """Wait for the boards to load and the blobs to be drawn."""
    await app.workers.wait_for_complete()
    await pilot.pause()
    screen = app.canvas_screen
    assert screen is not None
    return screen


def drag(blob: BlobWidget, to: Offset) -> None:
    """Press on the blob, move the pointer to a screen cell and release there."""
    start = blob.region.offset
    blob.on_mouse_down(MagicMock(button=1, screen_offset=start))
    blob.on_mouse_move(MagicMock(screen_offset=to))
    blob.on_mouse_up(MagicMock(screen_offset=to, screen_x=to.x, screen_y=to.y))


def offset_of(blob: BlobWidget) -> tuple[float, float]:
    return blob.styles.offset.x.value, blob.styles.offset.y.value


def inside_trash(screen: CanvasScreen) -> Offset:
    region = screen.query_one("#trash").region
    return Offset(region.x + 2, region.y + 2)


class TestDragToMove:
    """Tests for dropping a blob on the canvas."""

    def test_drop_moves_task(self, repo: FakeRepository, tmp_path: Path):
        """The drop cell becomes the task's new position in pixels."""

        async def scenario():
            app = make_app(repo, tmp_path)
            async with app.run_test(size=(120, 40)) as pilot:
                screen = await ready(app, pilot)
                blob = screen.blob_for(PersistedId(value="b"))
                assert offset_of(blob) == (30, 10)

                drag(blob, blob.region.offset + Offset(4, 2))
                await pilot.pause()
                await app.synchronizer.wait_idle()

                assert repo.calls_for("update_task") == [
                    ("update_task", "b", {"x": 340.0, "y": 240.0})
                ]
                assert offset_of(blob) == (34, 12)

        asyncio.run(scenario())


class TestDropOnTrash:
    """Tests for deleting by dropping on the trash zone."""

    def test_drop_deletes_task(self, repo: FakeRepository, tmp_path: Path):
        """A saved blob dropped on the trash is deleted."""

        async def scenario():
            app = make_app(repo, tmp_path)
            async with app.run_test(size=(120, 40)) as pilot:
                screen = await ready(app, pilot)
                blob = screen.blob_for(PersistedId(value="c"))

                drag(blob, inside_trash(screen))
                await pilot.pause()
                await app.synchronizer.wait_idle()

                assert repo.calls_for("delete_task") == [("delete_task", "c")]
                assert screen.blob_for(PersistedId(value="c")) is None
                assert [t.label for t in app.synchronizer.tasks] == ["Alpha", "Beta"]

        asyncio.run(scenario())

    def test_saving_blob_snaps_back(self, repo: FakeRepository, tmp_path: Path):
        """A blob still being created returns to its place and the user is told why."""

        async def scenario():
            app = make_app(repo, tmp_path)
            async with app.run_test(size=(120, 40)) as pilot:
                screen = await ready(app, pilot)
                sync = app.synchronizer
                repo.gates["create_task"] = gate = asyncio.Event()
                temp_id = sync.begin_create(200, 200)
                sync.confirm_create(temp_id, "Later")
                await pilot.pause()
                blob = screen.blob_for(temp_id)
                assert offset_of(blob) == (20, 10)

                with patch.object(app, "notify") as notify:
                    drag(blob, inside_trash(screen))
                    await pilot.pause()

                notify.assert_called_once_with(STILL_SAVING, timeout=2)
                assert offset_of(blob) == (20, 10)
                assert repo.calls_for("delete_task") == []
                assert sync.get_task(temp_id) is not None

                gate.set()
                await sync.wait_idle()
                await pilot.pause()

                assert screen.blob_for(PersistedId(value="task-1")) is not None
                assert [t.label for t in sync.tasks][-1] == "Later"

        asyncio.run(scenario())


class TestRightClickRename:
    """Tests for renaming with the right mouse button."""

    def test_right_click_opens_rename(self, repo: FakeRepository, tmp_path: Path):
        """The label entered in the prompt is saved."""

        async def scenario():
            app = make_app(repo, tmp_path)
            async with app.run_test(size=(120, 40)) as pilot:
                screen = await ready(app, pilot)
                blob = screen.blob_for(PersistedId(value="a"))

                blob.on_mouse_down(MagicMock(button=3))
                await pilot.pause()
                assert isinstance(app.screen, LabelModal)

                app.screen.query_one("#label-input", Input).value = "Omega"
                await pilot.press("enter")
                await pilot.pause()
                await app.synchronizer.wait_idle()

                assert app.synchronizer.get_task(PersistedId(value="a")).label == "Omega"
                assert repo.calls_for("update_task") == [
                    ("update_task", "a", {"label": "Omega"})
                ]

        asyncio.run(scenario())
