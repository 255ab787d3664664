# tests/test_console_view.py

from __future__ import annotations

from datetime import datetime

from swift_task.connectors.console_view import (
    ViewState,
    countdown_text,
    render_dashboard,
    render_task_detail,
)
from swift_task.tasks.task_store import TaskStore

from .conftest import make_draft

NOW = datetime(2024, 1, 1, 12, 0, 0)


def test_closed_board_hides_folders(store: TaskStore, view: ViewState) -> None:
    board = store.add_board("Work")
    store.add_folder(board.id, "Sprint")

    out = render_dashboard(store, view, NOW)
    assert "Board: Work" in out
    assert "Sprint" not in out

    view.toggle_board(board.id)
    out = render_dashboard(store, view, NOW)
    assert "Folder: Sprint (0 tasks)" in out
    assert "No tasks in this folder" not in out


def test_open_folder_sorts_by_priority(store: TaskStore, view: ViewState) -> None:
    board = store.add_board("Work")
    folder = store.add_folder(board.id, "Sprint")
    store.add_task(board.id, folder.id, make_draft("Low one", priority="low"))
    store.add_task(board.id, folder.id, make_draft("Hot one", priority="urgent"))
    view.open_boards.add(board.id)
    view.open_folders.add(folder.id)

    out = render_dashboard(store, view, NOW)
    assert out.index("Hot one") < out.index("Low one")
    assert "[URGENT]" in out


def test_empty_states(store: TaskStore, view: ViewState) -> None:
    assert render_dashboard(store, view).startswith("No boards created yet.")

    board = store.add_board("Work")
    view.open_boards.add(board.id)
    assert "No folders in this board" in render_dashboard(store, view)

    view.set_search("zzz", "folders")
    assert render_dashboard(store, view) == 'No results found. No folders match "zzz". Use /clear to reset.'


def test_clearing_search_closes_everything(store: TaskStore, view: ViewState) -> None:
    board = store.add_board("Work")
    folder = store.add_folder(board.id, "Sprint")
    view.set_search("sprint")
    render_dashboard(store, view)
    assert board.id in view.open_boards
    assert folder.id in view.open_folders

    view.set_search("   ")
    assert view.query == ""
    assert not view.open_boards
    assert not view.open_folders


def test_search_highlights_matches(store: TaskStore, view: ViewState) -> None:
    board = store.add_board("Groceries")
    folder = store.add_folder(board.id, "Dairy")
    store.add_task(board.id, folder.id, make_draft("Buy milk"))

    view.set_search("MILK", "tasks")
    out = render_dashboard(store, view, NOW)
    # captured stdout is not a TTY, so plain brackets are used
    assert "Buy [milk]" in out


def test_countdown_text_marks_urgent(store: TaskStore) -> None:
    board = store.add_board("Work")
    folder = store.add_folder(board.id, "Sprint")
    task = store.add_task(board.id, folder.id, make_draft(due_date="2024-01-01", due_time="18:00"))

    assert countdown_text(task, NOW) == "! Due in 6 hours 0 minutes"
    assert countdown_text(task, datetime(2023, 12, 25, 18, 0)) == "Due in 7 days 0 hours 0 minutes"

    task.due_date = "garbage"
    assert countdown_text(task, NOW) == "Invalid due date"


def test_task_detail(store: TaskStore) -> None:
    board = store.add_board("Work")
    folder = store.add_folder(board.id, "Sprint")
    task = store.add_task(board.id, folder.id, make_draft("Review", description="PR 42"))

    out = render_task_detail(store.find_task(task.id), NOW)
    assert "Board / Folder: Work / Sprint" in out
    assert "Description: PR 42" in out
    assert "Edits left: 3   Last edited: never" in out
