"""Blob widget: one task drawn at its canvas position."""

from __future__ import annotations

from textual import events
from textual.geometry import Offset
from textual.message import Message
from textual.widget import Widget

from ...models import Task, TaskId
from ...models.blobby_config import CanvasConfig
from ...utils import hyphenate_text


class BlobWidget(Widget, can_focus=True):
    """A task drawn as a bordered blob that can be dragged around."""

    DEFAULT_CSS = """
    BlobWidget {
        position: absolute;
        border: round $primary;
        content-align: center middle;
        text-align: center;
        padding: 0 1;
    }

    BlobWidget:focus {
        border: double $accent;
        text-style: bold;
    }

    BlobWidget.-dragging {
        opacity: 70%;
    }

    BlobWidget.-saving {
        text-style: italic;
    }
    """

    class DragEnded(Message):
        """Posted when a drag is released."""

        def __init__(self, blob: BlobWidget, offset: Offset, screen_x: int, screen_y: int) -> None:
            super().__init__()
            self.blob = blob
            self.offset = offset
            self.screen_x = screen_x
            self.screen_y = screen_y

    class RenameRequested(Message):
        """Posted on right-click."""

        def __init__(self, blob: BlobWidget) -> None:
            super().__init__()
            self.blob = blob

    def __init__(self, task_data: Task, canvas: CanvasConfig, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._task_data = task_data
        self._canvas = canvas
        self._drag_start: Offset | None = None
        self._drag_origin = Offset(0, 0)

    @property
    def task(self) -> Task:  # pyrefly: ignore[bad-override]
        """Get the task for this blob."""
        return self._task_data

    @property
    def task_id(self) -> TaskId:
        return self._task_data.id

    @property
    def is_dragging(self) -> bool:
        return self._drag_start is not None

    def on_mount(self) -> None:
        self._apply_layout()

    def set_task(self, task_data: Task, saving: bool = False) -> None:
        """Show a newer version of the task."""
        self._task_data = task_data
        self.set_class(saving, "-saving")
        if not self.is_dragging:
            self._apply_layout()
        self.refresh()

    def _apply_layout(self) -> None:
        column, row = self._canvas.to_cells(self._task_data.x, self._task_data.y)
        width, height = self._canvas.blob_cells(self._task_data.size)
        self.styles.offset = (max(0, column), max(0, row))
        self.styles.width = width
        self.styles.height = height
        self.styles.border = ("round", self._canvas.color_for(self._task_data))

    def render(self) -> str:
        width, _ = self._canvas.blob_cells(self._task_data.size)
        return hyphenate_text(self._task_data.label, max_word_length=max(4, width - 4))

    # --- Mouse ---

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button == 3:
            event.stop()
            self.post_message(self.RenameRequested(self))
            return
        if event.button != 1:
            return
        event.stop()
        self.focus()
        self._drag_start = event.screen_offset
        offset = self.styles.offset
        self._drag_origin = Offset(int(offset.x.value), int(offset.y.value))
        self.add_class("-dragging")
        self.capture_mouse()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self._drag_start is None:
            return
        event.stop()
        delta = event.screen_offset - self._drag_start
        target = self._drag_origin + delta
        self.styles.offset = (max(0, target.x), max(0, target.y))

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self._drag_start is None:
            return
        event.stop()
        delta = event.screen_offset - self._drag_start
        self._drag_start = None
        self.remove_class("-dragging")
        self.release_mouse()
        if delta == Offset(0, 0):
            return
        target = self._drag_origin + delta
        self.post_message(
            self.DragEnded(
                self,
                Offset(max(0, target.x), max(0, target.y)),
                event.screen_x,
                event.screen_y,
            )
        )
