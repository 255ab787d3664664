# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from swift_task import logging_setup
from swift_task.core.state import Session


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)
    logging_setup.set_log_user(None)


@pytest.mark.parametrize(
    "name, level, shown",
    [
        ("swift_task.tasks.task_store", logging.DEBUG, True),
        ("swift_task.storage.kv_store", logging.INFO, False),
        ("swift_task.storage.kv_store", logging.WARNING, True),
        ("swift_task.tasks.task_scheduler", logging.DEBUG, False),
        ("swift_task.tasks.task_scheduler", logging.ERROR, True),
        ("py.warnings", logging.WARNING, False),
        ("asyncio", logging.WARNING, False),
        ("asyncio", logging.ERROR, True),
    ],
)
def test_console_noise_filter(name: str, level: int, shown: bool) -> None:
    assert logging_setup._ConsoleNoiseFilter().filter(_record(name, level)) is shown


def test_records_carry_logged_in_user(settings, gateway) -> None:
    ctx = logging_setup._UserContextFilter()
    s = Session(settings=settings, gateway=gateway)

    s.login("Elon Musk")
    rec = _record("swift_task.core.state", logging.INFO)
    ctx.filter(rec)
    assert rec.user == "user_3"

    s.logout()
    rec = _record("swift_task.core.state", logging.INFO)
    ctx.filter(rec)
    assert rec.user == logging_setup.NO_USER


def test_log_file_lines_include_user(tmp_path: Path, restore_root_logging) -> None:
    logging_setup.setup_logging(log_dir=tmp_path)
    logging_setup.set_log_user("user_1")

    logging.getLogger("swift_task.tests").info("board added")
    for h in logging.getLogger().handlers:
        h.flush()

    text = (tmp_path / "swift_task.log").read_text(encoding="utf-8")
    assert "swift_task.tests [user=user_1]: board added" in text
