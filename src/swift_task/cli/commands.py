# src/swift_task/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import shlex
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import TypeVar

from ..connectors.console_view import (
    ViewState,
    countdown_text,
    render_dashboard,
    render_profile,
    render_task_detail,
    short_id,
)
from ..core.errors import EditLimitReached, NotFoundError, SwiftTaskError, ValidationError
from ..core.state import Session
from ..tasks.countdown import Countdown, format_countdown
from ..tasks.task_models import Board, Folder, TaskDraft
from ..tasks.task_scheduler import run_countdown_ticker
from ..tasks.task_search import SearchScope
from ..tasks.task_store import TaskLocation, TaskStore

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[Session, ViewState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)

_Item = TypeVar("_Item", bound=Board | Folder)

_TASK_KEYS = {"start", "due", "priority", "desc", "title"}

_TASK_ADD_USAGE = (
    "Usage: /task add <board> <folder> <title> "
    "[start=YYYY-MM-DDTHH:MM] [due=YYYY-MM-DDTHH:MM] [priority=low|medium|high|urgent] [desc=...]"
)
_TASK_USAGE = "\n".join(
    [
        "Usage:",
        "  /task add <board> <folder> <title> [start=..] [due=..] [priority=..] [desc=..]",
        "  /task edit <task> [title=..] [start=..] [due=..] [priority=..] [desc=..]",
        "  /task status <task> pending|active|completed",
        "  /task show <task>",
        "  /task rm <task>",
    ]
)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /board, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        session: Session,
        view: ViewState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Application errors become the reply text; anything else propagates.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Could not parse command: {e}"
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(session, view, args, emit)
        except EditLimitReached as e:
            return f"[edit limit] {e}"
        except SwiftTaskError as e:
            return f"[error] {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------

def _clean_ref(ref: str, kind: str) -> str:
    clean = (ref or "").strip()
    if not clean:
        raise ValidationError(f"Please name the {kind} (name or id)", rule="required")
    return clean


def _pick(items: Iterable[_Item], ref: str, kind: str) -> _Item:
    """Match by exact id, then case-insensitive name, then unique id prefix."""
    ref = _clean_ref(ref, kind)
    pool = list(items)
    for item in pool:
        if item.id == ref:
            return item
    lowered = ref.lower()
    for item in pool:
        if item.name.lower() == lowered:
            return item
    by_prefix = [item for item in pool if item.id.startswith(ref)]
    if len(by_prefix) == 1:
        return by_prefix[0]
    if len(by_prefix) > 1:
        raise ValidationError(f"Ambiguous {kind} id prefix: {ref}", rule="ambiguous")
    raise NotFoundError(kind, ref)


def _resolve_task(store: TaskStore, ref: str) -> TaskLocation:
    ref = _clean_ref(ref, "task")
    loc = store.find_task(ref)
    if loc is not None:
        return loc
    lowered = ref.lower()
    by_title = [loc for loc in store.iter_tasks() if loc.task.title.lower() == lowered]
    if len(by_title) == 1:
        return by_title[0]
    if len(by_title) > 1:
        raise ValidationError(f"Several tasks are titled {ref!r}; use the id", rule="ambiguous")
    by_prefix = [loc for loc in store.iter_tasks() if loc.task.id.startswith(ref)]
    if len(by_prefix) == 1:
        return by_prefix[0]
    if len(by_prefix) > 1:
        raise ValidationError(f"Ambiguous task id prefix: {ref}", rule="ambiguous")
    raise NotFoundError("task", ref)


def _split_stamp(raw: str) -> tuple[str, str]:
    """'2024-01-02T17:30' or '2024-01-02 17:30' -> ('2024-01-02', '17:30')."""
    text = raw.strip().replace(" ", "T", 1)
    if "T" not in text:
        raise ValidationError(f"Expected YYYY-MM-DDTHH:MM, got {raw!r}", rule="date_format")
    date_s, time_s = text.split("T", 1)
    return date_s, time_s


def _parse_task_args(args: list[str]) -> tuple[list[str], dict[str, str]]:
    words: list[str] = []
    opts: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key.lower() in _TASK_KEYS:
            opts[key.lower()] = value
        else:
            words.append(arg)
    return words, opts


# ---------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------

def cmd_help(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    return registry.build_help()


def cmd_login(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    if not args:
        return "Usage: /login <display name>"
    user = session.login(" ".join(args))
    view.clear_search()
    return f"Welcome back, {user.display_name}!"


def cmd_logout(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    if not session.logged_in:
        return "Nobody is logged in."
    session.logout()
    view.clear_search()
    return "Logged out successfully."


def cmd_boards(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    store = session.require_store()
    out = view.guard.run(lambda: render_dashboard(store, view))
    return out if out is not None else "Render already in progress."


def cmd_board(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /board add <name>   -> create a board
    /board rm <board>   -> delete a board with all folders and tasks
    """
    store = session.require_store()
    if len(args) < 2:
        return "Usage: /board add <name> | /board rm <board>"

    sub = args[0].lower()
    if sub == "add":
        board = store.add_board(" ".join(args[1:]))
        return f'Board "{board.name}" created successfully ({short_id(board.id)}).'

    if sub in ("rm", "del", "delete"):
        board = _pick(store.boards, " ".join(args[1:]), "board")
        store.delete_board(board.id)
        view.open_boards.discard(board.id)
        return f'Board "{board.name}" deleted successfully.'

    return "Usage: /board add <name> | /board rm <board>"


def cmd_folder(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /folder add <board> <name>   -> create a folder (opens the board)
    /folder rm <board> <folder>  -> delete a folder with its tasks
    """
    store = session.require_store()
    if len(args) < 3:
        return "Usage: /folder add <board> <name> | /folder rm <board> <folder>"

    sub = args[0].lower()
    board = _pick(store.boards, args[1], "board")

    if sub == "add":
        folder = store.add_folder(board.id, " ".join(args[2:]))
        view.open_boards.add(board.id)
        return f'Folder "{folder.name}" added to board "{board.name}" ({short_id(folder.id)}).'

    if sub in ("rm", "del", "delete"):
        folder = _pick(board.folders, " ".join(args[2:]), "folder")
        store.delete_folder(board.id, folder.id)
        view.open_folders.discard(folder.id)
        return f'Folder "{folder.name}" deleted from board "{board.name}".'

    return "Usage: /folder add <board> <name> | /folder rm <board> <folder>"


def _task_add(store: TaskStore, view: ViewState, args: list[str]) -> str:
    words, opts = _parse_task_args(args)
    if len(words) < 2 or (len(words) < 3 and "title" not in opts):
        return _TASK_ADD_USAGE
    board = _pick(store.boards, words[0], "board")
    folder = _pick(board.folders, words[1], "folder")
    title = opts.get("title") or " ".join(words[2:])

    # Same defaults as the add-task form: start now, due this time tomorrow.
    now = datetime.now()
    start_date, start_time = (now.date().isoformat(), now.strftime("%H:%M"))
    due_date, due_time = ((now + timedelta(days=1)).date().isoformat(), now.strftime("%H:%M"))
    if "start" in opts:
        start_date, start_time = _split_stamp(opts["start"])
    if "due" in opts:
        due_date, due_time = _split_stamp(opts["due"])

    draft = TaskDraft(
        title=title,
        start_date=start_date,
        start_time=start_time,
        due_date=due_date,
        due_time=due_time,
        priority=opts.get("priority", "medium"),
        description=opts.get("desc", ""),
    )
    task = store.add_task(board.id, folder.id, draft)
    view.open_boards.add(board.id)
    view.open_folders.add(folder.id)
    return f'Task "{task.title}" created successfully ({short_id(task.id)}).'


def _task_edit(store: TaskStore, args: list[str]) -> str:
    words, opts = _parse_task_args(args)
    if not words or not opts:
        return "Usage: /task edit <task> [title=...] [start=...] [due=...] [priority=...] [desc=...]"
    loc = _resolve_task(store, " ".join(words))
    task = loc.task

    start_date, start_time = task.start_date, task.start_time
    due_date, due_time = task.due_date, task.due_time
    if "start" in opts:
        start_date, start_time = _split_stamp(opts["start"])
    if "due" in opts:
        due_date, due_time = _split_stamp(opts["due"])

    draft = TaskDraft(
        title=opts.get("title", task.title),
        start_date=start_date,
        start_time=start_time,
        due_date=due_date,
        due_time=due_time,
        priority=opts.get("priority", task.priority),
        description=opts.get("desc", task.description),
    )
    store.edit_task(task.id, draft)
    return f'Task "{task.title}" updated successfully ({task.remaining_edits} edits left).'


def cmd_task(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /task add <board> <folder> <title> [start=..] [due=..] [priority=..] [desc=..]
    /task edit <task> [title=..] [start=..] [due=..] [priority=..] [desc=..]
    /task status <task> pending|active|completed
    /task show <task>
    /task rm <task>
    """
    store = session.require_store()
    if not args:
        return _TASK_USAGE

    sub = args[0].lower()
    rest = args[1:]

    if sub == "add":
        return _task_add(store, view, rest)

    if sub == "edit":
        return _task_edit(store, rest)

    if sub == "status":
        if len(rest) < 2:
            return "Usage: /task status <task> pending|active|completed"
        loc = _resolve_task(store, " ".join(rest[:-1]))
        task = store.set_task_status(loc.task.id, rest[-1])
        return f"Task status changed to {task.status.value}."

    if sub == "show":
        if not rest:
            return "Usage: /task show <task>"
        return render_task_detail(_resolve_task(store, " ".join(rest)))

    if sub in ("rm", "del", "delete"):
        if not rest:
            return "Usage: /task rm <task>"
        loc = _resolve_task(store, " ".join(rest))
        store.delete_task(loc.task.id)
        return f'Task "{loc.task.title}" deleted successfully.'

    return "Unknown /task subcommand. Use /task for usage."


def cmd_search(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /search <query>                         -> search everything
    /search boards|folders|tasks <query>    -> restrict the scope
    """
    store = session.require_store()
    scope = SearchScope.ALL
    if args and args[0].lower() in {s.value for s in SearchScope}:
        scope = SearchScope.parse(args[0])
        args = args[1:]
    view.set_search(" ".join(args), scope)
    out = view.guard.run(lambda: render_dashboard(store, view))
    return out if out is not None else "Render already in progress."


def cmd_clear(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    view.clear_search()
    return "Search cleared."


def _toggle(session: Session, view: ViewState, args: list[str], want_open: bool) -> str:
    store = session.require_store()
    if not args:
        return "Usage: /open <board|folder> | /close <board|folder>"
    # boards first, so a board wins over a folder with the same name
    pool: list[Board | Folder] = [*store.boards, *(f for b in store.boards for f in b.folders)]
    item = _pick(pool, " ".join(args), "board or folder")
    verb = "opened" if want_open else "closed"

    if isinstance(item, Board):
        if want_open:
            view.open_boards.add(item.id)
        else:
            view.open_boards.discard(item.id)
        return f'Board "{item.name}" {verb}.'

    loc = store.find_folder(item.id)
    if want_open:
        view.open_folders.add(item.id)
        if loc is not None:
            view.open_boards.add(loc.board.id)
    else:
        view.open_folders.discard(item.id)
    return f'Folder "{item.name}" {verb}.'


def cmd_open(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    return _toggle(session, view, args, True)


def cmd_close(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    return _toggle(session, view, args, False)


def cmd_profile(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    store = session.require_store()
    if session.user is None:
        return "Please log in first"
    return render_profile(session.user, store.stats())


def cmd_watch(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /watch [seconds]  -> live countdowns of the visible tasks (default 10 s)
    """
    store = session.require_store()
    try:
        duration = float(args[0]) if args else 10.0
    except ValueError:
        return "Usage: /watch [seconds]"
    duration = max(1.0, min(600.0, duration))
    interval = float(getattr(session.settings, "countdown_interval_seconds", 1.0))

    titles = {t.id: t.title for t in view.visible_tasks(store)}
    if not titles:
        return "No visible tasks. Open a folder first (/open <folder>)."

    out = emit or print

    def on_tick(countdowns: dict[str, Countdown]) -> None:
        lines = [f"[{datetime.now().strftime('%H:%M:%S')}]"]
        for task_id, cd in countdowns.items():
            lines.append(f"  {titles.get(task_id, short_id(task_id))}: {format_countdown(cd)}")
        out("\n".join(lines))

    async def _watch() -> None:
        ticker = asyncio.create_task(
            run_countdown_ticker(
                lambda: view.visible_tasks(store),
                on_tick,
                interval_seconds=interval,
                guard=view.guard,
            )
        )
        await asyncio.sleep(duration)
        ticker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await ticker

    asyncio.run(_watch())
    return "Watch finished."


def cmd_due(
    session: Session,
    view: ViewState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """Countdown snapshot of the visible tasks."""
    store = session.require_store()
    tasks = view.visible_tasks(store)
    if not tasks:
        return "No visible tasks. Open a folder first (/open <folder>)."
    return "\n".join(f"{t.title}: {countdown_text(t)}" for t in tasks)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("login", cmd_login, help_text="Log in: /login <display name>.")
registry.register("logout", cmd_logout, help_text="Save and log out.")
registry.register("boards", cmd_boards, help_text="Show the dashboard.", aliases=["ls"])
registry.register("board", cmd_board, help_text="Boards: /board add <name> | /board rm <board>.")
registry.register(
    "folder", cmd_folder, help_text="Folders: /folder add <board> <name> | /folder rm <board> <folder>."
)
registry.register(
    "task", cmd_task, help_text="Tasks: /task add|edit|status|show|rm ... (see /task)."
)
registry.register(
    "search", cmd_search, help_text="Search: /search [all|boards|folders|tasks] <query>."
)
registry.register("clear", cmd_clear, help_text="Clear the search and close everything.")
registry.register("open", cmd_open, help_text="Open a board or folder: /open <board|folder>.")
registry.register("close", cmd_close, help_text="Close a board or folder: /close <board|folder>.")
registry.register("due", cmd_due, help_text="Countdowns of the visible tasks.")
registry.register("watch", cmd_watch, help_text="Live countdowns: /watch [seconds].")
registry.register("profile", cmd_profile, help_text="Show task statistics for the current user.")
