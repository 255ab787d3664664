# src/swift_task/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the Session, restores the remembered user and
runs the console REPL in the main thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_session, restore_login
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..connectors.console_view import ViewState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _notify(text: str) -> None:
    print(f"[!] {text}", flush=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    session = create_session(settings=settings, notify=_notify)
    if restore_login(session) and session.user is not None:
        print(f"Welcome back, {session.user.display_name}!")

    try:
        run_console_loop(session, ViewState())
    finally:
        # Keep the user remembered; only an explicit /logout forgets them.
        session.close()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
