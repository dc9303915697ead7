"""Blobby TUI Application."""

from __future__ import annotations

import logging

from textual.app import App
from textual.binding import Binding

from .api import BlobbyApiClient
from .config import Settings
from .errors import BlobbyError
from .models import DEFAULT_TASK_LABEL, SyncFailure, TaskId, TemporaryId
from .repositories import ApiRepository, LocalRepository, TaskRepositoryProtocol
from .services import ConfigService, MigrationService, TaskSynchronizer
from .ui.screens import CanvasScreen, HelpScreen
from .ui.screens.canvas import STILL_SAVING
from .ui.widgets import ConfirmModal, LabelModal

logger = logging.getLogger(__name__)

# Actions that only make sense while the canvas is the active screen
CANVAS_ACTIONS = {
    "new_blob",
    "rename_blob",
    "delete_blob",
    "clear_board",
    "nudge",
    "next_board",
    "prev_board",
    "reload_board",
    "migrate",
}


class BlobbyApp(App):
    """Blobby - tasks as blobs on a canvas."""

    TITLE = "Blobby"

    BINDINGS = [
        # Core bindings
        Binding("q", "quit", "Quit", show=True),
        Binding("?", "help", "Help", show=True),
        # Blob actions
        Binding("n", "new_blob", "New", show=True),
        Binding("r", "rename_blob", "Rename", show=True),
        Binding("enter", "rename_blob", "Rename", show=False),
        Binding("d", "delete_blob", "Delete", show=True),
        Binding("X", "clear_board", "Clear", show=False),
        # Nudge - vim style
        Binding("h", "nudge(-1, 0)", "←", show=False),
        Binding("j", "nudge(0, 1)", "↓", show=False),
        Binding("k", "nudge(0, -1)", "↑", show=False),
        Binding("l", "nudge(1, 0)", "→", show=False),
        # Nudge - arrow keys
        Binding("left", "nudge(-1, 0)", "←", show=False),
        Binding("down", "nudge(0, 1)", "↓", show=False),
        Binding("up", "nudge(0, -1)", "↑", show=False),
        Binding("right", "nudge(1, 0)", "→", show=False),
        # Boards
        Binding("tab", "next_board", "Next board", show=True, priority=True),
        Binding("shift+tab", "prev_board", "Prev board", show=False, priority=True),
        Binding("R", "reload_board", "Reload", show=False),
        Binding("m", "migrate", "Migrate", show=False),
    ]

    SCREENS = {
        "canvas": CanvasScreen,
    }

    def __init__(
        self,
        settings: Settings | None = None,
        repository: TaskRepositoryProtocol | None = None,
    ) -> None:
        """
        Args:
            settings: Application settings (read from the environment if omitted)
            repository: Backend to use instead of the one the settings select
        """
        super().__init__()
        self.settings = settings or Settings()
        self._init_services(repository)

    def _init_services(self, repository: TaskRepositoryProtocol | None) -> None:
        """Initialize repository and services."""
        self.config_service = ConfigService(self.settings.config_dir)
        config = self.config_service.get_config()

        self.local_repository = LocalRepository(self.settings.local_store)
        if repository is None:
            if self.settings.is_signed_in:
                repository = ApiRepository(BlobbyApiClient.from_settings(self.settings))
            else:
                repository = self.local_repository
        self.repository: TaskRepositoryProtocol = repository

        self.migration_service: MigrationService | None = None
        if repository is not self.local_repository:
            self.migration_service = MigrationService(self.local_repository, repository)

        self.synchronizer = TaskSynchronizer(
            repository,
            rollback_failed_moves=config.sync.rollback_failed_moves,
            on_error=self._handle_sync_failure,
        )

    @property
    def canvas_screen(self) -> CanvasScreen | None:
        screen = self.screen
        if isinstance(screen, CanvasScreen):
            return screen
        return None

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Disable canvas actions while a modal is open."""
        if action in CANVAS_ACTIONS:
            return self.canvas_screen is not None
        return True

    def on_mount(self) -> None:
        """Called when app is mounted."""
        if self.config_service.has_config_error:
            self.notify(
                f"Using default settings: {self.config_service.config_error}",
                severity="warning",
                timeout=8,
            )
        self.push_screen("canvas")
        self.run_worker(self._load(), exclusive=True, group="load")

    async def on_unmount(self) -> None:
        await self.repository.close()

    async def _load(self) -> None:
        """Sign in, load every board, then offer migration if relevant."""
        config = self.config_service.get_config()
        preferred = self.settings.board or config.default_board
        try:
            if self.migration_service is not None:
                await self.repository.ensure_user(self.settings.username, self.settings.email)
            await self.synchronizer.load(preferred)
        except BlobbyError as e:
            logger.error("Loading boards failed: %s", e)
            self.notify(f"Couldn't load boards: {e}", severity="error", timeout=10)
            return

        if self.settings.board and self.synchronizer.active_board is not None:
            if self.synchronizer.active_board.name != self.settings.board:
                self.notify(f"No board named '{self.settings.board}'", severity="warning")

        self._offer_migration()

    def _handle_sync_failure(self, failure: SyncFailure) -> None:
        """Show a failed remote phase as a toast."""
        severity = "error" if failure.blocking else "warning"
        self.notify(failure.message, severity=severity, timeout=6)
        # The toast is the user's copy of the failure
        self.synchronizer.dismiss_failure(failure)

    def action_help(self) -> None:
        """Show help screen."""
        self.push_screen(HelpScreen(signed_in=self.settings.is_signed_in))

    # Blob actions
    def action_new_blob(self) -> None:
        """Add a draft blob, then ask for its label."""
        screen = self.canvas_screen
        if screen is None:
            return

        x, y = screen.new_blob_position()
        temp_id = self.synchronizer.begin_create(x, y)
        if temp_id is None:
            self.notify("No board loaded", severity="warning")
            return

        screen.focus_blob(temp_id)
        self.push_screen(  # pyrefly: ignore[no-matching-overload]
            LabelModal("New blob", DEFAULT_TASK_LABEL),
            callback=lambda label: self._finish_create(temp_id, label),
        )

    def _finish_create(self, temp_id: TemporaryId, label: str | None) -> None:
        """Handle the label modal for a draft."""
        if label is None:
            self.synchronizer.cancel_create(temp_id)
            return
        self.synchronizer.confirm_create(temp_id, label)

    def action_rename_blob(self) -> None:
        """Rename the focused blob."""
        screen = self.canvas_screen
        if screen is None:
            return
        blob = screen.focused_blob()
        if blob is None:
            return
        self.request_rename(blob.task_id)

    def request_rename(self, task_id: TaskId) -> None:
        """Prompt for a new label for a task."""
        task = self.synchronizer.get_task(task_id)
        if task is None:
            return
        if self.synchronizer.is_saving(task_id):
            self.notify(STILL_SAVING, timeout=2)
            return

        self.push_screen(  # pyrefly: ignore[no-matching-overload]
            LabelModal("Rename blob", task.label),
            callback=lambda label: self._finish_rename(task_id, task.label, label),
        )

    def _finish_rename(self, task_id: TaskId, old_label: str, label: str | None) -> None:
        if label is None or label == old_label:
            return
        self.synchronizer.rename(task_id, label)

    def action_delete_blob(self) -> None:
        """Delete the focused blob (with confirmation)."""
        screen = self.canvas_screen
        if screen is None:
            return
        blob = screen.focused_blob()
        if blob is None:
            return

        task_id = blob.task_id
        self.push_screen(  # pyrefly: ignore[no-matching-overload]
            ConfirmModal(f"Delete '{blob.task.label}'?"),
            callback=lambda confirmed: self._handle_delete_confirm(task_id, confirmed),
        )

    def _handle_delete_confirm(self, task_id: TaskId, confirmed: bool) -> None:
        """Handle delete confirmation result."""
        if confirmed:
            self.synchronizer.delete(task_id)

    def action_clear_board(self) -> None:
        """Delete every blob on the active board (with confirmation)."""
        board = self.synchronizer.active_board
        count = len(self.synchronizer.tasks)
        if board is None or count == 0:
            self.notify("Nothing to clear", timeout=2)
            return

        self.push_screen(  # pyrefly: ignore[no-matching-overload]
            ConfirmModal(
                f"Clear all {count} blobs from '{board.name}'?",
                detail="Everything comes back if any delete fails.",
            ),
            callback=self._handle_clear_confirm,
        )

    def _handle_clear_confirm(self, confirmed: bool) -> None:
        if confirmed:
            self.synchronizer.clear_all()

    def action_nudge(self, dx: int, dy: int) -> None:
        """Move the focused blob by one nudge step."""
        screen = self.canvas_screen
        if screen is None:
            return
        blob = screen.focused_blob()
        if blob is None:
            return

        step = self.config_service.get_config().canvas.nudge_px
        task = blob.task
        x = max(0.0, task.x + dx * step)
        y = max(0.0, task.y + dy * step)
        if (x, y) != (task.x, task.y):
            self.synchronizer.move(task.id, x, y)

    # Board actions
    def action_next_board(self) -> None:
        self._cycle_board(1)

    def action_prev_board(self) -> None:
        self._cycle_board(-1)

    def _cycle_board(self, delta: int) -> None:
        boards = self.synchronizer.boards
        if len(boards) < 2:
            return
        ids = [b.id for b in boards]
        try:
            index = ids.index(self.synchronizer.active_board_id)
        except ValueError:
            index = -delta
        target = ids[(index + delta) % len(ids)]
        self.run_worker(self.synchronizer.switch_board(target), group="switch")

    def action_reload_board(self) -> None:
        self.run_worker(self.synchronizer.reload_board(), group="reload")

    # Migration
    def _offer_migration(self) -> None:
        """Ask once per start whether to move local boards into the store."""
        if self.migration_service is None:
            return
        try:
            count = self.migration_service.count_local_tasks()
        except BlobbyError as e:
            logger.warning("Couldn't read local boards: %s", e)
            return
        if count == 0:
            return

        self.push_screen(  # pyrefly: ignore[no-matching-overload]
            ConfirmModal(
                f"Move {count} locally saved tasks to your account?",
                detail="Local boards are removed once they are copied.",
                destructive=False,
            ),
            callback=self._handle_migration_confirm,
        )

    def action_migrate(self) -> None:
        """Move local boards into the store."""
        if self.migration_service is None:
            self.notify(
                "Sign in (BLOBBY_API_URL and BLOBBY_API_TOKEN) to migrate local boards",
                severity="warning",
            )
            return
        try:
            has_data = self.migration_service.has_local_data()
        except BlobbyError as e:
            self.notify(f"Couldn't read local boards: {e}", severity="error")
            return
        if not has_data:
            self.notify("No local data found to migrate", timeout=2)
            return
        self._offer_migration()

    def _handle_migration_confirm(self, confirmed: bool) -> None:
        if confirmed:
            self.run_worker(self._migrate(), exclusive=True, group="migrate")

    async def _migrate(self) -> None:
        if self.migration_service is None:
            return
        result = await self.migration_service.migrate()
        if not result.success:
            self.notify(result.message, severity="error", timeout=8)
            return

        self.notify(result.message, timeout=4)
        if result.has_errors:
            self.notify(
                f"{len(result.errors)} tasks couldn't be migrated; see the log",
                severity="warning",
                timeout=8,
            )
        if result.migrated:
            active = self.synchronizer.active_board
            try:
                await self.synchronizer.load(active.name if active else None)
            except BlobbyError as e:
                self.notify(f"Couldn't reload boards: {e}", severity="error")


def run(settings: Settings | None = None) -> None:
    """Run the Blobby application."""
    app = BlobbyApp(settings)
    app.run()
