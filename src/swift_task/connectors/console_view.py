# src/swift_task/connectors/console_view.py

from __future__ import annotations

"""
Text rendering of the dashboard for the console connector.

ViewState is presentation state only (open boards/folders, active search).
The search engine feeds it through apply_expansion(); the store never sees it.
"""

import sys
from dataclasses import dataclass, field
from datetime import datetime

from ..core.users import User
from ..tasks.countdown import format_countdown, is_urgent, task_countdown
from ..tasks.task_models import Board, Folder, Task, sort_tasks_by_priority
from ..tasks.task_scheduler import RenderGuard
from ..tasks.task_search import SearchResult, SearchScope, highlight, search
from ..tasks.task_store import TaskLocation, TaskStats, TaskStore

SHORT_ID = 8
INDENT = "    "


def short_id(item_id: str) -> str:
    return item_id[:SHORT_ID]


def _highlight_markers() -> tuple[str, str]:
    """Reverse video on a TTY, plain brackets otherwise."""
    try:
        if sys.stdout.isatty():
            return "\033[7m", "\033[27m"
    except (AttributeError, ValueError):
        pass
    return "[", "]"


@dataclass
class ViewState:
    open_boards: set[str] = field(default_factory=set)
    open_folders: set[str] = field(default_factory=set)
    query: str = ""
    scope: SearchScope = SearchScope.ALL
    guard: RenderGuard = field(default_factory=RenderGuard)

    def close_all(self) -> None:
        self.open_boards.clear()
        self.open_folders.clear()

    def set_search(self, query: str, scope: SearchScope | str = SearchScope.ALL) -> None:
        new_query = (query or "").strip()
        # Clearing a previous search closes everything it opened.
        if self.query and not new_query:
            self.close_all()
        self.query = new_query
        self.scope = SearchScope.parse(scope)

    def clear_search(self) -> None:
        self.query = ""
        self.scope = SearchScope.ALL
        self.close_all()

    def apply_expansion(self, result: SearchResult) -> None:
        self.open_boards.update(result.expand_boards)
        self.open_folders.update(result.expand_folders)

    def toggle_board(self, board_id: str) -> bool:
        if board_id in self.open_boards:
            self.open_boards.discard(board_id)
            return False
        self.open_boards.add(board_id)
        return True

    def toggle_folder(self, folder_id: str) -> bool:
        if folder_id in self.open_folders:
            self.open_folders.discard(folder_id)
            return False
        self.open_folders.add(folder_id)
        return True

    def visible_result(self, store: TaskStore) -> SearchResult:
        result = search(store.tree, self.query, self.scope)
        self.apply_expansion(result)
        return result

    def visible_tasks(self, store: TaskStore) -> list[Task]:
        """Tasks currently on screen: inside an open folder of an open board."""
        result = search(store.tree, self.query, self.scope)
        out: list[Task] = []
        for board in result.tree.boards:
            if board.id not in self.open_boards:
                continue
            for folder in board.folders:
                if folder.id in self.open_folders:
                    out.extend(folder.tasks)
        return out


def countdown_text(task: Task, now: datetime | None = None) -> str:
    try:
        cd = task_countdown(task, now)
    except ValueError:
        return "Invalid due date"
    text = format_countdown(cd)
    return f"! {text}" if is_urgent(cd) else text


def render_task_line(task: Task, query: str = "", now: datetime | None = None) -> str:
    start, end = _highlight_markers()
    title = highlight(task.title, query, start=start, end=end)
    line = (
        f"[{task.priority.value.upper()}] {title} · {task.status.value} · "
        f"{countdown_text(task, now)}  ({short_id(task.id)})"
    )
    if task.description:
        line += "\n" + INDENT + highlight(task.description, query, start=start, end=end)
    return line


def _render_folder(folder: Folder, view: ViewState, query: str, now: datetime | None) -> list[str]:
    start, end = _highlight_markers()
    is_open = folder.id in view.open_folders
    marker = "▾" if is_open else "▸"
    lines = [
        f"{marker} Folder: {highlight(folder.name, query, start=start, end=end)} "
        f"({len(folder.tasks)} tasks)  ({short_id(folder.id)})"
    ]
    if not is_open:
        return lines
    if not folder.tasks:
        lines.append(INDENT + "No tasks in this folder")
        return lines
    for task in sort_tasks_by_priority(folder.tasks):
        for sub in render_task_line(task, query, now).splitlines():
            lines.append(INDENT + sub)
    return lines


def _render_board(board: Board, view: ViewState, query: str, now: datetime | None) -> list[str]:
    start, end = _highlight_markers()
    is_open = board.id in view.open_boards
    marker = "▾" if is_open else "▸"
    lines = [
        f"{marker} Board: {highlight(board.name, query, start=start, end=end)} "
        f"({len(board.folders)} folders)  ({short_id(board.id)})"
    ]
    if not is_open:
        return lines
    if not board.folders:
        lines.append(INDENT + "No folders in this board")
        return lines
    for folder in board.folders:
        for sub in _render_folder(folder, view, query, now):
            lines.append(INDENT + sub)
    return lines


def render_dashboard(store: TaskStore, view: ViewState, now: datetime | None = None) -> str:
    result = view.visible_result(store)

    if not result.tree.boards:
        if result.is_filtered:
            what = "items" if result.scope is SearchScope.ALL else result.scope.value
            return f'No results found. No {what} match "{view.query}". Use /clear to reset.'
        return "No boards created yet. Create your first board to get started! (/board add <name>)"

    lines: list[str] = []
    if result.is_filtered:
        lines.append(f'Search: "{view.query}" in {result.scope.value}')
    for board in result.tree.boards:
        lines.extend(_render_board(board, view, result.query, now))
    return "\n".join(lines)


def render_task_detail(loc: TaskLocation, now: datetime | None = None) -> str:
    task = loc.task
    last_edited = task.last_edited_at.strftime("%Y-%m-%d %H:%M") if task.last_edited_at else "never"
    return "\n".join(
        [
            f"Task: {task.title}  ({task.id})",
            f"  Board / Folder: {loc.board.name} / {loc.folder.name}",
            f"  Priority: {task.priority.value}   Status: {task.status.value}",
            f"  Start: {task.start_date} {task.start_time}   Due: {task.due_date} {task.due_time}",
            f"  Countdown: {countdown_text(task, now)}",
            f"  Description: {task.description or '-'}",
            f"  Edits left: {task.remaining_edits}   Last edited: {last_edited}",
        ]
    )


def render_profile(user: User, stats: TaskStats) -> str:
    return "\n".join(
        [
            f"Profile: {user.display_name} ({user.id})",
            f"  Member since: {user.join_date.isoformat()}",
            f"  Total tasks: {stats.total}",
            f"  Completed: {stats.completed}",
            f"  Pending: {stats.pending}",
        ]
    )
