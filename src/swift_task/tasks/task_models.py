# src/swift_task/tasks/task_models.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from ..core.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_EDITS = 3

_EPOCH = datetime(1970, 1, 1)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        """Display rank: urgent=4 > high=3 > medium=2 > low=1."""
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, raw: str | Priority) -> Priority:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValidationError(
                f"Unknown priority {raw!r} (expected one of: {allowed})", rule="priority"
            ) from None

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


_PRIORITY_RANK = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}


class TaskStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: str | TaskStatus) -> TaskStatus:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(
                f"Unknown status {raw!r} (expected one of: {allowed})", rule="status"
            ) from None

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


def combine_datetime(date_s: str, time_s: str) -> datetime:
    """Build a naive local datetime from "YYYY-MM-DD" and "HH:MM[:SS]"."""
    return datetime.fromisoformat(f"{date_s.strip()}T{time_s.strip()}")


@dataclass(slots=True)
class Task:
    id: str
    title: str
    priority: Priority
    status: TaskStatus

    start_date: str
    start_time: str
    due_date: str
    due_time: str

    created_at: datetime
    description: str = ""
    edit_count: int = 0
    last_edited_at: datetime | None = None

    @property
    def start_at(self) -> datetime:
        return combine_datetime(self.start_date, self.start_time)

    @property
    def due_at(self) -> datetime:
        return combine_datetime(self.due_date, self.due_time)

    @property
    def is_locked(self) -> bool:
        return self.edit_count >= MAX_EDITS

    @property
    def remaining_edits(self) -> int:
        return max(0, MAX_EDITS - self.edit_count)


@dataclass(slots=True)
class Folder:
    id: str
    name: str
    created_at: datetime
    tasks: list[Task] = field(default_factory=list)


@dataclass(slots=True)
class Board:
    id: str
    name: str
    created_at: datetime
    folders: list[Folder] = field(default_factory=list)


@dataclass(slots=True)
class TaskTree:
    """Root of one user's data: the ordered boards."""

    boards: list[Board] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """
    Proposed task fields for add/edit.

    Values are raw user input; the store validates them before anything is
    written.
    """

    title: str
    start_date: str
    start_time: str
    due_date: str
    due_time: str
    priority: Priority | str = Priority.MEDIUM
    description: str = ""


def sort_tasks_by_priority(tasks: Iterable[Task]) -> list[Task]:
    """Highest priority first; equal priorities keep their store order."""
    return sorted(tasks, key=lambda t: -t.priority.rank)


# ---------------------------------------------------------------------
# Serialisation (camelCase keys, same shape as the browser version)
# ---------------------------------------------------------------------

def _ts_to_str(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


def _str_to_ts(raw: Any) -> datetime | None:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "priority": task.priority.value,
        "status": task.status.value,
        "startDate": task.start_date,
        "startTime": task.start_time,
        "dueDate": task.due_date,
        "dueTime": task.due_time,
        "description": task.description,
        "createdAt": _ts_to_str(task.created_at),
        "editCount": task.edit_count,
        "lastEdited": _ts_to_str(task.last_edited_at),
    }


def tree_to_dict(tree: TaskTree) -> dict[str, Any]:
    return {
        "boards": [
            {
                "id": board.id,
                "name": board.name,
                "createdAt": _ts_to_str(board.created_at),
                "folders": [
                    {
                        "id": folder.id,
                        "name": folder.name,
                        "createdAt": _ts_to_str(folder.created_at),
                        "tasks": [task_to_dict(t) for t in folder.tasks],
                    }
                    for folder in board.folders
                ],
            }
            for board in tree.boards
        ]
    }


def _task_from_dict(raw: dict[str, Any]) -> Task | None:
    task_id = raw.get("id")
    title = raw.get("title")
    if not task_id or not isinstance(title, str):
        return None
    try:
        edit_count = int(raw.get("editCount") or 0)
    except (TypeError, ValueError):
        edit_count = 0
    return Task(
        id=str(task_id),
        title=title,
        priority=Priority.from_db(raw.get("priority")),
        status=TaskStatus.from_db(raw.get("status")),
        start_date=str(raw.get("startDate") or ""),
        start_time=str(raw.get("startTime") or ""),
        due_date=str(raw.get("dueDate") or ""),
        due_time=str(raw.get("dueTime") or ""),
        created_at=_str_to_ts(raw.get("createdAt")) or _EPOCH,
        description=str(raw.get("description") or ""),
        edit_count=max(0, min(MAX_EDITS, edit_count)),
        last_edited_at=_str_to_ts(raw.get("lastEdited")),
    )


def tree_from_dict(data: Any) -> TaskTree:
    """
    Rebuild a TaskTree from its serialized form.

    Tolerant of older/partial documents: missing `folders`/`tasks` become
    empty lists and entries without an id or name are skipped.
    """
    tree = TaskTree()
    if not isinstance(data, dict):
        return tree

    for raw_board in data.get("boards") or []:
        if not isinstance(raw_board, dict) or not raw_board.get("id"):
            continue
        board = Board(
            id=str(raw_board["id"]),
            name=str(raw_board.get("name") or ""),
            created_at=_str_to_ts(raw_board.get("createdAt")) or _EPOCH,
        )
        for raw_folder in raw_board.get("folders") or []:
            if not isinstance(raw_folder, dict) or not raw_folder.get("id"):
                continue
            folder = Folder(
                id=str(raw_folder["id"]),
                name=str(raw_folder.get("name") or ""),
                created_at=_str_to_ts(raw_folder.get("createdAt")) or _EPOCH,
            )
            for raw_task in raw_folder.get("tasks") or []:
                if not isinstance(raw_task, dict):
                    continue
                task = _task_from_dict(raw_task)
                if task is None:
                    logger.debug("Skipping malformed task in folder=%s", folder.id)
                    continue
                folder.tasks.append(task)
            board.folders.append(folder)
        tree.boards.append(board)
    return tree
