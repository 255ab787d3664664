# src/swift_task/tasks/task_search.py

from __future__ import annotations

"""
Search over the board/folder/task tree.

search() returns a filtered copy of the tree plus the ids the presentation
layer has to force open so every match is visible. highlight() marks the
matched substrings for display.

Rules:
- board name match  -> whole board subtree, unfiltered; board not force-opened
- folder name match -> all tasks of that folder; folder + board force-opened
- task match        -> title/description/priority/status; only checked when
                       the folder itself did not match by name
"""

import re
from dataclasses import dataclass, replace
from enum import StrEnum

from ..core.errors import ValidationError
from .task_models import Board, Folder, Task, TaskTree

HIGHLIGHT_START = '<mark class="search-highlight">'
HIGHLIGHT_END = "</mark>"


class SearchScope(StrEnum):
    ALL = "all"
    BOARDS = "boards"
    FOLDERS = "folders"
    TASKS = "tasks"

    @classmethod
    def parse(cls, raw: str | SearchScope) -> SearchScope:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(
                f"Unknown search scope {raw!r} (expected one of: {allowed})", rule="scope"
            ) from None


@dataclass(frozen=True, slots=True)
class SearchResult:
    tree: TaskTree
    expand_boards: tuple[str, ...] = ()
    expand_folders: tuple[str, ...] = ()
    query: str = ""
    scope: SearchScope = SearchScope.ALL

    @property
    def is_filtered(self) -> bool:
        return bool(self.query)


def _task_matches(task: Task, term: str) -> bool:
    return (
        term in task.title.lower()
        or term in (task.description or "").lower()
        or term in task.priority.value
        or term in task.status.value
    )


def _copy_folder(folder: Folder, tasks: list[Task] | None = None) -> Folder:
    return replace(folder, tasks=list(folder.tasks if tasks is None else tasks))


def search(tree: TaskTree, query: str, scope: SearchScope | str = SearchScope.ALL) -> SearchResult:
    scope = SearchScope.parse(scope)
    term = (query or "").strip().lower()
    if not term:
        return SearchResult(tree=tree, scope=scope)

    match_boards = scope in (SearchScope.ALL, SearchScope.BOARDS)
    match_folders = scope in (SearchScope.ALL, SearchScope.FOLDERS)
    match_tasks = scope in (SearchScope.ALL, SearchScope.TASKS)

    # dicts keep insertion order and drop duplicates
    expand_boards: dict[str, None] = {}
    expand_folders: dict[str, None] = {}
    out = TaskTree()

    for board in tree.boards:
        board_hit = match_boards and term in board.name.lower()
        kept: list[Folder] = []

        for folder in board.folders:
            folder_hit = match_folders and term in folder.name.lower()
            if folder_hit:
                hits = list(folder.tasks)
            elif match_tasks:
                hits = [t for t in folder.tasks if _task_matches(t, term)]
            else:
                hits = []

            if folder_hit or hits:
                expand_boards[board.id] = None
                expand_folders[folder.id] = None
                kept.append(_copy_folder(folder, hits))

        filtered: Board | None = None
        if board_hit:
            filtered = replace(board, folders=[_copy_folder(f) for f in board.folders])
        elif kept:
            filtered = replace(board, folders=kept)
        if filtered is not None:
            out.boards.append(filtered)

    return SearchResult(
        tree=out,
        expand_boards=tuple(expand_boards),
        expand_folders=tuple(expand_folders),
        query=term,
        scope=scope,
    )


def highlight(
    text: str,
    query: str,
    *,
    start: str = HIGHLIGHT_START,
    end: str = HIGHLIGHT_END,
) -> str:
    """
    Wrap every case-insensitive occurrence of `query` in `text`.

    A blank query leaves `text` alone. Otherwise the query is matched as
    given, surrounding whitespace included.
    """
    if not (query or "").strip() or not text:
        return text
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    return pattern.sub(lambda m: f"{start}{m.group(0)}{end}", text)
