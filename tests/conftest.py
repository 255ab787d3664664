# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from swift_task.connectors.console_view import ViewState
from swift_task.core.state import Session
from swift_task.tasks.task_models import TaskDraft
from swift_task.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeGateway


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with Session and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="SwiftTask",
        log_level="INFO",
        data_dir=tmp_path,
        db_path=tmp_path / "swift_task.sqlite3",
        countdown_interval_seconds=0.01,
        auto_login=True,
    )


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture()
def store(gateway: FakeGateway, clock: FakeClock) -> TaskStore:
    return TaskStore(gateway=gateway, user_id="user_1", clock=clock)


@pytest.fixture()
def session(settings: SimpleNamespace, gateway: FakeGateway) -> Session:
    s = Session(settings=settings, gateway=gateway)
    s.login("Ali Mehroz")
    return s


@pytest.fixture()
def view() -> ViewState:
    return ViewState()


def make_draft(title: str = "Write report", **overrides) -> TaskDraft:
    fields = dict(
        title=title,
        start_date="2024-01-01",
        start_time="09:00",
        due_date="2024-01-02",
        due_time="17:00",
        priority="medium",
        description="",
    )
    fields.update(overrides)
    return TaskDraft(**fields)
