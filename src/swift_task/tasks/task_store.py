# src/swift_task/tasks/task_store.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime

from ..core.errors import EditLimitReached, NotFoundError, PersistenceError, ValidationError
from ..core.ports import StoreGateway
from .task_models import (
    MAX_EDITS,
    Board,
    Folder,
    Priority,
    Task,
    TaskDraft,
    TaskStatus,
    TaskTree,
    combine_datetime,
)

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = (
    ("title", "title"),
    ("start_date", "start date"),
    ("start_time", "start time"),
    ("due_date", "due date"),
    ("due_time", "due time"),
)


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class FolderLocation:
    board: Board
    folder: Folder


@dataclass(frozen=True, slots=True)
class TaskLocation:
    board: Board
    folder: Folder
    task: Task


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    completed: int

    @property
    def pending(self) -> int:
        return self.total - self.completed


@dataclass(frozen=True, slots=True)
class _CheckedDraft:
    title: str
    priority: Priority
    start_date: str
    start_time: str
    due_date: str
    due_time: str
    description: str


class TaskStore:
    """
    In-memory board -> folder -> task tree for one user.

    Every successful mutation is followed by gateway.save(). A failed save is
    logged and reported via on_save_error; the mutation stays applied.

    Unknown ids on mutations raise NotFoundError; find_* lookups return None.
    """

    def __init__(
        self,
        tree: TaskTree | None = None,
        *,
        gateway: StoreGateway | None = None,
        user_id: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = new_id,
        on_save_error: Callable[[PersistenceError], None] | None = None,
    ) -> None:
        self._tree = tree if tree is not None else TaskTree()
        self._gateway = gateway
        self._user_id = user_id
        self._clock = clock
        self._id_factory = id_factory
        self._on_save_error = on_save_error
        self._seen_ids: set[str] = set(self._iter_ids())
        self.last_save_error: PersistenceError | None = None

    @property
    def tree(self) -> TaskTree:
        return self._tree

    @property
    def boards(self) -> list[Board]:
        return self._tree.boards

    # ---- low-level helpers ----

    def _iter_ids(self) -> Iterator[str]:
        for board in self._tree.boards:
            yield board.id
            for folder in board.folders:
                yield folder.id
                for task in folder.tasks:
                    yield task.id

    def _next_id(self) -> str:
        # Ids are never reused, not even after the owner was deleted.
        while True:
            item_id = self._id_factory()
            if item_id not in self._seen_ids:
                self._seen_ids.add(item_id)
                return item_id

    def _persist(self) -> None:
        if self._gateway is None or self._user_id is None:
            return
        try:
            self._gateway.save(self._user_id, self._tree)
            self.last_save_error = None
        except PersistenceError as e:
            logger.warning("Save failed user=%s: %s (in-memory state kept)", self._user_id, e)
            self.last_save_error = e
            if self._on_save_error is not None:
                self._on_save_error(e)

    @staticmethod
    def _clean_name(name: str, what: str) -> str:
        clean = (name or "").strip()
        if not clean:
            raise ValidationError(f"Please enter a {what} name", rule="empty_name")
        return clean

    @staticmethod
    def _check_draft(
        draft: TaskDraft,
        folder: Folder,
        *,
        exclude_task_id: str | None = None,
    ) -> _CheckedDraft:
        missing = [label for attr, label in _REQUIRED_FIELDS if not (getattr(draft, attr) or "").strip()]
        if missing:
            raise ValidationError(
                f"Please fill in all required fields (missing: {', '.join(missing)})",
                rule="required",
            )

        priority = Priority.parse(draft.priority)

        try:
            start_at = combine_datetime(draft.start_date, draft.start_time)
        except ValueError:
            raise ValidationError(
                f"Invalid start date/time: {draft.start_date} {draft.start_time}",
                rule="date_format",
            ) from None
        try:
            due_at = combine_datetime(draft.due_date, draft.due_time)
        except ValueError:
            raise ValidationError(
                f"Invalid due date/time: {draft.due_date} {draft.due_time}",
                rule="date_format",
            ) from None

        if start_at > due_at:
            raise ValidationError("Start date/time cannot be after due date/time", rule="date_order")

        title = draft.title.strip()
        lowered = title.lower()
        for other in folder.tasks:
            if other.id != exclude_task_id and other.title.lower() == lowered:
                raise ValidationError(
                    "A task with this name already exists in this folder", rule="duplicate"
                )

        return _CheckedDraft(
            title=title,
            priority=priority,
            start_date=draft.start_date.strip(),
            start_time=draft.start_time.strip(),
            due_date=draft.due_date.strip(),
            due_time=draft.due_time.strip(),
            description=(draft.description or "").strip(),
        )

    # ---- lookups ----

    def find_board(self, board_id: str) -> Board | None:
        for board in self._tree.boards:
            if board.id == board_id:
                return board
        return None

    def find_folder(self, folder_id: str) -> FolderLocation | None:
        for board in self._tree.boards:
            for folder in board.folders:
                if folder.id == folder_id:
                    return FolderLocation(board=board, folder=folder)
        return None

    def find_task(self, task_id: str) -> TaskLocation | None:
        for loc in self.iter_tasks():
            if loc.task.id == task_id:
                return loc
        return None

    def iter_tasks(self) -> Iterator[TaskLocation]:
        for board in self._tree.boards:
            for folder in board.folders:
                for task in folder.tasks:
                    yield TaskLocation(board=board, folder=folder, task=task)

    def stats(self) -> TaskStats:
        total = 0
        completed = 0
        for loc in self.iter_tasks():
            total += 1
            if loc.task.status is TaskStatus.COMPLETED:
                completed += 1
        return TaskStats(total=total, completed=completed)

    # ---- boards ----

    def add_board(self, name: str) -> Board:
        clean = self._clean_name(name, "board")
        lowered = clean.lower()
        if any(b.name.lower() == lowered for b in self._tree.boards):
            raise ValidationError("Board already exists", rule="duplicate")

        board = Board(id=self._next_id(), name=clean, created_at=self._clock())
        self._tree.boards.append(board)
        logger.debug("Board added id=%s name=%s", board.id, board.name)
        self._persist()
        return board

    def delete_board(self, board_id: str) -> Board:
        board = self.find_board(board_id)
        if board is None:
            raise NotFoundError("board", board_id)
        self._tree.boards.remove(board)
        logger.debug("Board deleted id=%s folders=%d", board.id, len(board.folders))
        self._persist()
        return board

    # ---- folders ----

    def add_folder(self, board_id: str, name: str) -> Folder:
        board = self.find_board(board_id)
        if board is None:
            raise NotFoundError("board", board_id)
        clean = self._clean_name(name, "folder")
        lowered = clean.lower()
        if any(f.name.lower() == lowered for f in board.folders):
            raise ValidationError("Folder already exists in this board", rule="duplicate")

        folder = Folder(id=self._next_id(), name=clean, created_at=self._clock())
        board.folders.append(folder)
        logger.debug("Folder added id=%s board=%s name=%s", folder.id, board.id, folder.name)
        self._persist()
        return folder

    def delete_folder(self, board_id: str, folder_id: str) -> Folder:
        board = self.find_board(board_id)
        if board is None:
            raise NotFoundError("board", board_id)
        for folder in board.folders:
            if folder.id == folder_id:
                board.folders.remove(folder)
                logger.debug("Folder deleted id=%s tasks=%d", folder.id, len(folder.tasks))
                self._persist()
                return folder
        raise NotFoundError("folder", folder_id)

    # ---- tasks ----

    def add_task(self, board_id: str, folder_id: str, draft: TaskDraft) -> Task:
        board = self.find_board(board_id)
        if board is None:
            raise NotFoundError("board", board_id)
        folder = next((f for f in board.folders if f.id == folder_id), None)
        if folder is None:
            raise NotFoundError("folder", folder_id)

        checked = self._check_draft(draft, folder)
        task = Task(
            id=self._next_id(),
            title=checked.title,
            priority=checked.priority,
            status=TaskStatus.PENDING,
            start_date=checked.start_date,
            start_time=checked.start_time,
            due_date=checked.due_date,
            due_time=checked.due_time,
            description=checked.description,
            created_at=self._clock(),
        )
        folder.tasks.append(task)
        logger.debug("Task added id=%s folder=%s priority=%s", task.id, folder.id, task.priority.value)
        self._persist()
        return task

    def edit_task(self, task_id: str, draft: TaskDraft) -> Task:
        """
        Overwrite the editable fields of a task.

        The proposed values are validated before anything changes. Each
        successful edit consumes one of MAX_EDITS; status changes do not.
        """
        loc = self.find_task(task_id)
        if loc is None:
            raise NotFoundError("task", task_id)
        task = loc.task
        if task.edit_count >= MAX_EDITS:
            raise EditLimitReached(task.id, MAX_EDITS)

        checked = self._check_draft(draft, loc.folder, exclude_task_id=task.id)

        task.title = checked.title
        task.priority = checked.priority
        task.start_date = checked.start_date
        task.start_time = checked.start_time
        task.due_date = checked.due_date
        task.due_time = checked.due_time
        task.description = checked.description
        task.edit_count += 1
        task.last_edited_at = self._clock()
        logger.debug("Task edited id=%s edit_count=%d", task.id, task.edit_count)
        self._persist()
        return task

    def delete_task(self, task_id: str) -> Task:
        loc = self.find_task(task_id)
        if loc is None:
            raise NotFoundError("task", task_id)
        loc.folder.tasks.remove(loc.task)
        logger.debug("Task deleted id=%s folder=%s", task_id, loc.folder.id)
        self._persist()
        return loc.task

    def set_task_status(self, task_id: str, status: TaskStatus | str) -> Task:
        new_status = TaskStatus.parse(status)
        loc = self.find_task(task_id)
        if loc is None:
            raise NotFoundError("task", task_id)
        loc.task.status = new_status
        logger.debug("Task status id=%s -> %s", task_id, new_status.value)
        self._persist()
        return loc.task
