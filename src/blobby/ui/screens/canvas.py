"""Main canvas screen: the active board's blobs."""

from __future__ import annotations

import logging
from collections.abc import Callable

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from ...models import DEFAULT_TASK_SIZE, TaskId
from ...models.blobby_config import CanvasConfig
from ...services import TaskSynchronizer
from ..widgets.blob import BlobWidget

logger = logging.getLogger(__name__)

STILL_SAVING = "Still saving this blob, try again in a moment"


class CanvasScreen(Screen):
    """Draws the synchronizer's tasks and turns gestures into operations."""

    DEFAULT_CSS = """
    CanvasScreen #board-bar {
        height: 1;
        width: 100%;
        background: $primary-darken-2;
        padding: 0 1;
    }

    CanvasScreen #canvas {
        width: 1fr;
        height: 1fr;
        overflow: hidden hidden;
    }

    CanvasScreen #trash {
        dock: right;
        border: dashed $error;
        color: $error;
        content-align: center middle;
    }

    CanvasScreen #empty-hint {
        width: 100%;
        height: 100%;
        content-align: center middle;
        color: $text-muted;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._blobs: dict[TaskId, BlobWidget] = {}
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def synchronizer(self) -> TaskSynchronizer:
        return self.app.synchronizer  # pyrefly: ignore[missing-attribute]

    @property
    def canvas_config(self) -> CanvasConfig:
        return self.app.config_service.get_config().canvas  # pyrefly: ignore[missing-attribute]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="board-bar")
        with Container(id="canvas"):
            yield Static("Drop here\nto delete", id="trash")
            yield Static("", id="empty-hint")
        yield Footer()

    def on_mount(self) -> None:
        self._size_trash_zone()
        self._unsubscribe = self.synchronizer.subscribe(self.refresh_blobs)
        self.refresh_blobs()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _size_trash_zone(self) -> None:
        trash = self.query_one("#trash", Static)
        canvas = self.canvas_config
        if canvas.trash_zone_px <= 0:
            trash.display = False
            return
        width, height = canvas.to_cells(canvas.trash_zone_px, canvas.trash_zone_px)
        trash.styles.width = max(width, 12)
        trash.styles.height = max(height, 4)

    # --- Rendering ---

    def refresh_blobs(self) -> None:
        """Bring the blob widgets in line with the synchronizer's tasks."""
        sync = self.synchronizer
        tasks = sync.tasks
        current = {task.id for task in tasks}

        previous_order = list(self._blobs)
        focused = self.focused_blob()
        focus_index: int | None = None

        for task_id in previous_order:
            if task_id not in current:
                blob = self._blobs.pop(task_id)
                if blob is focused:
                    focus_index = previous_order.index(task_id)
                blob.remove()

        new_blobs: list[BlobWidget] = []
        for task in tasks:
            saving = sync.is_saving(task.id)
            blob = self._blobs.get(task.id)
            if blob is None:
                blob = BlobWidget(task, self.canvas_config)
                blob.set_class(saving, "-saving")
                self._blobs[task.id] = blob
                new_blobs.append(blob)
            else:
                blob.set_task(task, saving=saving)

        if new_blobs:
            self.query_one("#canvas", Container).mount_all(new_blobs)

        # A saved blob replaces its temporary widget; keep the focus on it
        if focus_index is not None and focus_index < len(tasks):
            replacement = self._blobs.get(tasks[focus_index].id)
            if replacement is not None:
                self.call_after_refresh(replacement.focus)

        self._update_board_bar()
        self._update_empty_hint(len(tasks))

    def _update_board_bar(self) -> None:
        sync = self.synchronizer
        names = []
        for board in sync.boards:
            if board.id == sync.active_board_id:
                names.append(f"[b reverse] {board.name} [/]")
            else:
                names.append(f" {board.name} ")
        text = "│".join(names) if names else "[dim]Loading boards…[/]"
        if sync.pending_count:
            text += f"  [dim]saving {sync.pending_count}…[/]"
        if not self.app.settings.is_signed_in:  # pyrefly: ignore[missing-attribute]
            text += "  [dim](local)[/]"
        self.query_one("#board-bar", Static).update(text)

    def _update_empty_hint(self, count: int) -> None:
        hint = self.query_one("#empty-hint", Static)
        if count or self.synchronizer.active_board_id is None:
            hint.display = False
        else:
            hint.update("Press n to add a blob")
            hint.display = True

    # --- Queries used by app actions ---

    def focused_blob(self) -> BlobWidget | None:
        focused = self.focused
        if isinstance(focused, BlobWidget):
            return focused
        return None

    def blob_for(self, task_id: TaskId) -> BlobWidget | None:
        return self._blobs.get(task_id)

    def new_blob_position(self) -> tuple[float, float]:
        """Canvas pixels that place a new blob near the middle of the view."""
        canvas = self.canvas_config
        size = self.query_one("#canvas", Container).size
        width, height = canvas.blob_cells(DEFAULT_TASK_SIZE)
        column = max(0, (size.width - width) // 2)
        row = max(0, (size.height - height) // 2)
        # Offset successive blobs so they don't stack exactly
        shift = len(self._blobs) % 5
        return canvas.to_pixels(column + shift * 2, row + shift)

    def focus_blob(self, task_id: TaskId) -> None:
        blob = self._blobs.get(task_id)
        if blob is not None:
            self.call_after_refresh(blob.focus)

    # --- Gestures ---

    def on_blob_widget_drag_ended(self, event: BlobWidget.DragEnded) -> None:
        event.stop()
        task_id = event.blob.task_id
        trash = self.query_one("#trash", Static)
        if trash.display and trash.region.contains(event.screen_x, event.screen_y):
            logger.debug("Blob %s dropped on trash", task_id)
            if self.synchronizer.is_saving(task_id):
                self.app.notify(STILL_SAVING, timeout=2)
            else:
                self.synchronizer.delete(task_id)
        else:
            x, y = self.canvas_config.to_pixels(event.offset.x, event.offset.y)
            self.synchronizer.move(task_id, x, y)
        self._snap_back(event.blob)

    def _snap_back(self, blob: BlobWidget) -> None:
        """Put a dropped widget where its task is, if the drop changed nothing."""
        task = self.synchronizer.get_task(blob.task_id)
        if task is None or self._blobs.get(blob.task_id) is not blob:
            return
        blob.set_task(task, saving=self.synchronizer.is_saving(blob.task_id))

    def on_blob_widget_rename_requested(self, event: BlobWidget.RenameRequested) -> None:
        event.stop()
        self.app.request_rename(event.blob.task_id)  # pyrefly: ignore[missing-attribute]
