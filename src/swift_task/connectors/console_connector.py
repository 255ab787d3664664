# src/swift_task/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.errors import LoginError
from ..core.state import Session
from ..core.users import STATIC_USERS
from .console_view import ViewState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _login_prompt(session: Session, view: ViewState) -> bool:
    """Ask for a display name until login succeeds. False on EOF/Ctrl+C."""
    names = ", ".join(u.display_name for u in STATIC_USERS)
    _print_ts(f"[LOGIN] Demo users: {names}")
    while not session.logged_in:
        try:
            username = input("Username: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return False
        if not username:
            continue
        try:
            user = session.login(username)
        except LoginError as e:
            _print_ts(str(e))
            continue
        view.clear_search()
        _print_ts(f"Welcome back, {user.display_name}!")
    return True


def run_console_loop(session: Session, view: ViewState | None = None) -> None:
    view = view or ViewState()
    logger.info("Console connector started (user=%s).", session.user.id if session.user else None)
    _print_ts("[CONSOLE] Use /help for commands, /boards for the dashboard, /exit to quit.\n")

    def emit(text: str) -> None:
        print(text, flush=True)

    while True:
        if not session.logged_in and not _login_prompt(session, view):
            logger.info("Console login aborted, exiting.")
            break

        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = command_registry.handle(session, view, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "Commands start with '/'. Use /help to list available commands."
        print(f"{response}\n")

    logger.info("Console connector finished.")
