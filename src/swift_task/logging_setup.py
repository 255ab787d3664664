# src/swift_task/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

NO_USER = "-"

_log_user = NO_USER


def set_log_user(user_id: str | None) -> None:
    """Tag every following record with the logged-in user (or '-' when nobody is)."""
    global _log_user
    _log_user = user_id or NO_USER


class _UserContextFilter(logging.Filter):
    """Adds `record.user` so both handlers can show whose tree a line is about."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "user"):
            record.user = _log_user
        return True


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable:
    - swift_task logs pass
    - storage logs every save and the scheduler logs every tick,
      so both only reach the console at WARNING+
    - Python warnings ('py.warnings') and third-party loggers only at ERROR+
    """

    _QUIET_PREFIXES = ("swift_task.storage.", "swift_task.tasks.task_scheduler")

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("swift_task."):
            if name.startswith(self._QUIET_PREFIXES):
                return record.levelno >= logging.WARNING
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/swift_task",
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler (stderr): filtered, so the REPL output stays readable
    - File handler: full logs for debugging, in <log_dir>/swift_task.log

    Both handlers prefix each line with the logged-in user id.
    Call this ONCE, very early (before first logger.info).
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "swift_task.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s [user=%(user)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    user_ctx = _UserContextFilter()

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(user_ctx)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    fh.addFilter(user_ctx)
    root.addHandler(fh)

    # warnings.warn(...) -> 'py.warnings' logger
    logging.captureWarnings(True)
