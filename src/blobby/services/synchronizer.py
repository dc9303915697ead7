"""Optimistic in-memory task state kept in step with a repository.

Every mutation runs in two phases:

1. A synchronous local phase, finished before the method returns, that
   changes the in-memory collection and notifies subscribers.
2. A remote phase, scheduled as an ``asyncio.Task`` on the running loop,
   that forwards the change to the repository and then reconciles (create)
   or rolls back (create, rename, delete, clear all) depending on the
   outcome.

All state lives on the event loop thread, so the local phase of one
operation always completes before any remote phase can observe the
collection.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import math
from collections.abc import Callable, Coroutine
from typing import Any

from ..errors import BlobbyError
from ..models import (
    DEFAULT_TASK_LABEL,
    DEFAULT_TASK_SIZE,
    Board,
    PersistedId,
    SyncFailure,
    SyncOperation,
    Task,
    TaskId,
    TemporaryId,
)
from ..repositories import TaskRepositoryProtocol

logger = logging.getLogger(__name__)

Listener = Callable[[], None]
ErrorHandler = Callable[[SyncFailure], None]


def _as_task_id(task_id: TaskId | str) -> TaskId:
    """Accept a bare store id string for persisted tasks."""
    if isinstance(task_id, str):
        return PersistedId(value=task_id)
    return task_id


def _check_finite(x: float, y: float) -> None:
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"Coordinates must be finite, got ({x}, {y})")


class TaskSynchronizer:
    """Owns the per-board task collections shown to the user."""

    def __init__(
        self,
        repository: TaskRepositoryProtocol,
        *,
        rollback_failed_moves: bool = False,
        on_error: ErrorHandler | None = None,
    ) -> None:
        """
        Args:
            repository: Backend receiving every mutation
            rollback_failed_moves: Revert a drag when saving it fails
            on_error: Called once for every failed remote phase
        """
        self.repository = repository
        self.rollback_failed_moves = rollback_failed_moves
        self._on_error = on_error
        self._listeners: list[Listener] = []

        self._boards: dict[str, Board] = {}  # metadata, tasks kept separately
        self._tasks_by_board: dict[str, list[Task]] = {}
        self._active_board_id: str | None = None
        self._switch_seq = 0

        self._counter = itertools.count(1)
        self._drafts: dict[TemporaryId, str] = {}  # awaiting a label -> board id
        self._creating: dict[TemporaryId, str] = {}  # create request in flight -> board id

        self._pending: set[asyncio.Task[None]] = set()
        self.failures: list[SyncFailure] = []

    # --- Read access ---

    @property
    def active_board_id(self) -> str | None:
        return self._active_board_id

    @property
    def active_board(self) -> Board | None:
        if self._active_board_id is None:
            return None
        return self._boards.get(self._active_board_id)

    @property
    def boards(self) -> list[Board]:
        """Known boards (without tasks), in load order."""
        return list(self._boards.values())

    @property
    def tasks(self) -> list[Task]:
        """Tasks of the active board, in display order."""
        if self._active_board_id is None:
            return []
        return list(self._tasks_by_board.get(self._active_board_id, []))

    @property
    def tasks_by_board(self) -> dict[str, list[Task]]:
        """Snapshot of every pre-loaded board's tasks."""
        return {board_id: list(tasks) for board_id, tasks in self._tasks_by_board.items()}

    @property
    def pending_count(self) -> int:
        """Number of remote phases still running."""
        return len(self._pending)

    @property
    def drafts(self) -> list[TemporaryId]:
        """Temporary tasks waiting for their label to be confirmed."""
        return list(self._drafts)

    def is_loaded(self, board_id: str) -> bool:
        """Whether switching to this board needs no network round-trip."""
        return board_id in self._tasks_by_board

    def is_saving(self, task_id: TaskId) -> bool:
        """Whether the create request for this temporary task is in flight."""
        return isinstance(task_id, TemporaryId) and task_id in self._creating

    def get_task(self, task_id: TaskId | str) -> Task | None:
        """Find a task on the active board."""
        found = self._find(_as_task_id(task_id))
        if found is None:
            return None
        board_id, index = found
        return self._tasks_by_board[board_id][index]

    # --- Subscribers and failures ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every visible change.

        Returns:
            A function that removes the callback again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dismiss_failure(self, failure: SyncFailure) -> None:
        if failure in self.failures:
            self.failures.remove(failure)

    def clear_failures(self) -> None:
        self.failures.clear()

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _fail(
        self,
        operation: SyncOperation,
        message: str,
        *,
        task_id: TaskId | None = None,
        board_id: str | None = None,
        blocking: bool = True,
    ) -> SyncFailure:
        failure = SyncFailure(
            operation=operation,
            message=message,
            task_id=task_id,
            board_id=board_id,
            blocking=blocking,
        )
        self.failures.append(failure)
        if self._on_error is not None:
            self._on_error(failure)
        return failure

    # --- Internal helpers ---

    def _cache_board(self, board: Board, tasks: list[Task]) -> None:
        """Keep board metadata in _boards and its tasks in _tasks_by_board.

        Entries already cached are left alone.
        """
        self._boards.setdefault(board.id, board.model_copy(update={"tasks": []}))
        self._tasks_by_board.setdefault(board.id, list(tasks))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _index(self, board_id: str, task_id: TaskId) -> int | None:
        for index, task in enumerate(self._tasks_by_board.get(board_id, [])):
            if task.id == task_id:
                return index
        return None

    def _find(self, task_id: TaskId) -> tuple[str, int] | None:
        """Locate a task on the active board."""
        if self._active_board_id is None:
            return None
        index = self._index(self._active_board_id, task_id)
        if index is None:
            return None
        return self._active_board_id, index

    def _remove(self, board_id: str, task_id: TaskId) -> Task | None:
        index = self._index(board_id, task_id)
        if index is None:
            return None
        return self._tasks_by_board[board_id].pop(index)

    async def wait_idle(self) -> None:
        """Wait until every scheduled remote phase has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # --- Loading and board switching ---

    async def load(self, preferred_board: str | None = "Home") -> None:
        """Fetch every board with its tasks so switching is instant.

        Raises:
            BlobbyError: If the boards cannot be fetched
        """
        boards = await self.repository.list_boards()
        self._boards = {}
        self._tasks_by_board = {}
        for board in boards:
            self._cache_board(board, board.tasks)
        self._drafts.clear()

        if self._active_board_id not in self._boards:
            by_name = {b.name: b.id for b in boards}
            if preferred_board in by_name:
                self._active_board_id = by_name[preferred_board]
            elif boards:
                self._active_board_id = boards[0].id
            else:
                self._active_board_id = None

        logger.info(
            "Loaded %d boards (active=%s, %d tasks)",
            len(boards),
            self._active_board_id,
            len(self.tasks),
        )
        self._emit()

    async def create_board(self, name: str) -> Board | None:
        """Create an empty board; it is pre-loaded, so switching to it is instant."""
        try:
            board = await self.repository.create_board(name)
        except BlobbyError as e:
            logger.warning("Creating board %s failed: %s", name, e)
            self._fail(SyncOperation.LOAD, f"Couldn't create board '{name}': {e}")
            return None

        self._cache_board(board, board.tasks)
        self._emit()
        return board

    async def switch_board(self, board_id: str) -> bool:
        """Make another board active.

        Pre-loaded boards switch without awaiting anything. Other boards
        are fetched first and only shown once their tasks arrived.

        Returns:
            True if the board is now active
        """
        if board_id == self._active_board_id:
            return True

        self._switch_seq += 1
        if board_id in self._tasks_by_board:
            self._active_board_id = board_id
            logger.debug("Switched to pre-loaded board %s", board_id)
            self._emit()
            return True

        seq = self._switch_seq
        try:
            tasks = await self.repository.list_tasks(board_id)
        except BlobbyError as e:
            logger.warning("Loading board %s failed: %s", board_id, e)
            self._fail(
                SyncOperation.SWITCH_BOARD,
                f"Couldn't open board: {e}",
                board_id=board_id,
            )
            return False

        self._cache_board(self._boards.get(board_id) or Board(id=board_id, name=board_id), tasks)
        if seq != self._switch_seq:
            logger.debug("Board %s loaded after a newer switch; not activating", board_id)
            return False

        self._active_board_id = board_id
        logger.info("Switched to board %s (%d tasks)", board_id, len(tasks))
        self._emit()
        return True

    async def switch_board_by_name(self, name: str) -> bool:
        """Switch to the board with the given name."""
        for board in self._boards.values():
            if board.name == name:
                return await self.switch_board(board.id)
        logger.warning("No board named %s", name)
        return False

    async def reload_board(self) -> bool:
        """Re-fetch the active board from the repository.

        Unsaved (temporary) tasks are kept after the fetched ones.
        """
        board_id = self._active_board_id
        if board_id is None:
            return False

        try:
            fetched = await self.repository.list_tasks(board_id)
        except BlobbyError as e:
            logger.warning("Reloading board %s failed: %s", board_id, e)
            self._fail(SyncOperation.LOAD, f"Couldn't reload board: {e}", board_id=board_id)
            return False

        unsaved = [t for t in self._tasks_by_board.get(board_id, []) if t.is_temporary]
        self._tasks_by_board[board_id] = list(fetched) + unsaved
        self._emit()
        return True

    # --- Move ---

    def move(self, task_id: TaskId | str, x: float, y: float) -> asyncio.Task[None] | None:
        """Place a task at new coordinates.

        The new position is kept even if saving it fails, unless
        rollback_failed_moves is set.

        Raises:
            ValueError: If a coordinate is not finite
        """
        _check_finite(x, y)
        task_id = _as_task_id(task_id)
        found = self._find(task_id)
        if found is None:
            logger.debug("move: task not found: %s", task_id)
            return None

        board_id, index = found
        tasks = self._tasks_by_board[board_id]
        previous = tasks[index]
        tasks[index] = previous.model_copy(update={"x": x, "y": y})
        self._emit()

        if isinstance(task_id, TemporaryId):
            # Drafts send their position on confirm; in-flight creates reconcile it.
            return None
        return self._spawn(self._commit_move(board_id, previous, x, y))

    async def _commit_move(self, board_id: str, previous: Task, x: float, y: float) -> None:
        try:
            await self.repository.update_task(str(previous.id), x=x, y=y)
        except BlobbyError as e:
            logger.warning("Saving position of %s failed: %s", previous.id, e)
            if self.rollback_failed_moves:
                self._revert_move(board_id, previous, x, y)
            self._fail(
                SyncOperation.MOVE,
                f"Couldn't save the position of '{previous.label}': {e}",
                task_id=previous.id,
                board_id=board_id,
                blocking=self.rollback_failed_moves,
            )
            return
        logger.debug("Position saved: %s -> (%s, %s)", previous.id, x, y)

    def _revert_move(self, board_id: str, previous: Task, x: float, y: float) -> None:
        index = self._index(board_id, previous.id)
        if index is None:
            return
        tasks = self._tasks_by_board[board_id]
        current = tasks[index]
        if (current.x, current.y) != (x, y):
            # A newer drag superseded this one
            return
        tasks[index] = current.model_copy(update={"x": previous.x, "y": previous.y})
        self._emit()

    # --- Create ---

    def begin_create(
        self,
        x: float,
        y: float,
        size: float = DEFAULT_TASK_SIZE,
        label: str = DEFAULT_TASK_LABEL,
    ) -> TemporaryId | None:
        """Show a new blob immediately under a temporary id.

        Nothing is sent until confirm_create() supplies the final label.

        Returns:
            The temporary id, or None if no board is active
        """
        _check_finite(x, y)
        board_id = self._active_board_id
        if board_id is None:
            logger.warning("begin_create: no active board")
            return None

        temp_id = TemporaryId(counter=next(self._counter))
        draft = Task(id=temp_id, label=label, x=x, y=y, size=size)
        self._tasks_by_board.setdefault(board_id, []).append(draft)
        self._drafts[temp_id] = board_id
        logger.debug("Draft created: %s on board %s", temp_id, board_id)
        self._emit()
        return temp_id

    def cancel_create(self, temp_id: TemporaryId) -> bool:
        """Drop a draft without any network call."""
        board_id = self._drafts.pop(temp_id, None)
        if board_id is None:
            logger.debug("cancel_create: no draft %s", temp_id)
            return False
        self._remove(board_id, temp_id)
        self._emit()
        return True

    def confirm_create(self, temp_id: TemporaryId, label: str) -> asyncio.Task[None] | None:
        """Name a draft and ask the repository to persist it."""
        board_id = self._drafts.pop(temp_id, None)
        if board_id is None:
            logger.debug("confirm_create: no draft %s", temp_id)
            return None
        index = self._index(board_id, temp_id)
        if index is None:
            logger.debug("confirm_create: draft %s no longer shown", temp_id)
            return None

        tasks = self._tasks_by_board[board_id]
        draft = tasks[index].model_copy(update={"label": label})
        tasks[index] = draft
        self._creating[temp_id] = board_id
        self._emit()
        return self._spawn(self._commit_create(board_id, draft))

    async def _commit_create(self, board_id: str, draft: Task) -> None:
        temp_id = draft.id
        try:
            created = await self.repository.create_task(
                board_id, draft.label, draft.x, draft.y, draft.size
            )
        except BlobbyError as e:
            self._creating.pop(temp_id, None)
            logger.warning("Creating '%s' failed, removing %s: %s", draft.label, temp_id, e)
            if self._remove(board_id, temp_id) is not None:
                self._emit()
            self._fail(
                SyncOperation.CREATE,
                f"Couldn't create '{draft.label}': {e}",
                task_id=temp_id,
                board_id=board_id,
            )
            return

        self._creating.pop(temp_id, None)
        index = self._index(board_id, temp_id)
        if index is None:
            logger.warning("Created %s but %s is no longer shown", created.id, temp_id)
            return

        tasks = self._tasks_by_board[board_id]
        if self._index(board_id, created.id) is not None:
            del tasks[index]
            logger.debug("Created %s was already present; dropped %s", created.id, temp_id)
            self._emit()
            return

        current = tasks[index]
        reconciled = created
        if (current.x, current.y) != (draft.x, draft.y):
            # Dragged while the create was in flight
            reconciled = created.model_copy(update={"x": current.x, "y": current.y})
        tasks[index] = reconciled
        logger.info("Task %s reconciled as %s", temp_id, created.id)
        self._emit()

        if reconciled is not created:
            self._spawn(self._commit_move(board_id, created, current.x, current.y))

    # --- Rename ---

    def rename(self, task_id: TaskId | str, label: str) -> asyncio.Task[None] | None:
        """Change a task's label, restoring the old one if saving fails."""
        task_id = _as_task_id(task_id)
        found = self._find(task_id)
        if found is None:
            logger.debug("rename: task not found: %s", task_id)
            return None

        board_id, index = found
        tasks = self._tasks_by_board[board_id]
        previous = tasks[index]

        if isinstance(task_id, TemporaryId):
            if task_id not in self._drafts:
                logger.warning("rename: %s is still being saved", task_id)
                return None
            tasks[index] = previous.model_copy(update={"label": label})
            self._emit()
            return None

        tasks[index] = previous.model_copy(update={"label": label})
        self._emit()
        return self._spawn(self._commit_rename(board_id, task_id, previous.label, label))

    async def _commit_rename(
        self, board_id: str, task_id: TaskId, old_label: str, new_label: str
    ) -> None:
        try:
            await self.repository.update_task(str(task_id), label=new_label)
        except BlobbyError as e:
            logger.warning("Renaming %s failed, restoring '%s': %s", task_id, old_label, e)
            index = self._index(board_id, task_id)
            if index is not None:
                tasks = self._tasks_by_board[board_id]
                if tasks[index].label == new_label:
                    tasks[index] = tasks[index].model_copy(update={"label": old_label})
                    self._emit()
            self._fail(
                SyncOperation.RENAME,
                f"Couldn't rename '{old_label}': {e}",
                task_id=task_id,
                board_id=board_id,
            )
            return
        logger.info("Task renamed: %s -> '%s'", task_id, new_label)

    # --- Delete ---

    def delete(self, task_id: TaskId | str) -> asyncio.Task[None] | None:
        """Remove a task, putting it back if the repository refuses."""
        task_id = _as_task_id(task_id)
        if isinstance(task_id, TemporaryId):
            if task_id in self._drafts:
                self.cancel_create(task_id)
            else:
                logger.warning("delete: %s is still being saved", task_id)
            return None

        found = self._find(task_id)
        if found is None:
            logger.debug("delete: task not found: %s", task_id)
            return None

        board_id, index = found
        removed = self._tasks_by_board[board_id].pop(index)
        self._emit()
        return self._spawn(self._commit_delete(board_id, index, removed))

    async def _commit_delete(self, board_id: str, index: int, removed: Task) -> None:
        try:
            await self.repository.delete_task(str(removed.id))
        except BlobbyError as e:
            logger.warning("Deleting %s failed, restoring it: %s", removed.id, e)
            tasks = self._tasks_by_board.get(board_id)
            if tasks is not None and self._index(board_id, removed.id) is None:
                tasks.insert(min(index, len(tasks)), removed)
                self._emit()
            self._fail(
                SyncOperation.DELETE,
                f"Couldn't delete '{removed.label}': {e}",
                task_id=removed.id,
                board_id=board_id,
            )
            return
        logger.info("Task deleted: %s", removed.id)

    # --- Clear all ---

    def clear_all(self) -> asyncio.Task[None] | None:
        """Empty the active board; everything comes back if any delete fails.

        Drafts are dropped without a network call. Tasks whose create is
        still in flight stay on the board.
        """
        board_id = self._active_board_id
        if board_id is None:
            return None

        tasks = self._tasks_by_board.setdefault(board_id, [])
        retained = [t for t in tasks if not t.is_temporary]
        for task in tasks:
            if isinstance(task.id, TemporaryId):
                self._drafts.pop(task.id, None)
        tasks[:] = [t for t in tasks if isinstance(t.id, TemporaryId) and t.id in self._creating]
        self._emit()

        if not retained:
            return None
        return self._spawn(self._commit_clear(board_id, retained))

    async def _commit_clear(self, board_id: str, retained: list[Task]) -> None:
        results = await asyncio.gather(
            *(self.repository.delete_task(str(t.id)) for t in retained),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if not errors:
            logger.info("Cleared %d tasks from board %s", len(retained), board_id)
            return

        logger.warning(
            "%d of %d deletes failed clearing board %s; restoring all",
            len(errors),
            len(retained),
            board_id,
        )
        tasks = self._tasks_by_board.get(board_id)
        if tasks is not None:
            retained_ids = {t.id for t in retained}
            added = [t for t in tasks if t.id not in retained_ids]
            tasks[:] = retained + added
            self._emit()

        self._fail(
            SyncOperation.CLEAR_ALL,
            f"Couldn't clear the board: {errors[0]}",
            board_id=board_id,
        )
        unexpected = [e for e in errors if not isinstance(e, BlobbyError)]
        if unexpected:
            logger.error("Unexpected error clearing board %s: %r", board_id, unexpected[0])
            raise unexpected[0]
