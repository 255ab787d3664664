# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime, timedelta

import pytest

from swift_task.tasks.task_models import Priority, Task, TaskStatus
from swift_task.tasks.task_scheduler import (
    RenderGuard,
    SearchDebouncer,
    compute_countdowns,
    run_countdown_ticker,
)

NOW = datetime(2024, 1, 1, 12, 0, 0)


def _task(task_id: str, due_date: str = "2024-01-02", due_time: str = "12:00") -> Task:
    return Task(
        id=task_id,
        title=task_id,
        priority=Priority.MEDIUM,
        status=TaskStatus.PENDING,
        start_date="2024-01-01",
        start_time="09:00",
        due_date=due_date,
        due_time=due_time,
        created_at=NOW,
    )


def test_render_guard_drops_reentrant_calls() -> None:
    guard = RenderGuard()
    inner_results = []

    def render() -> str:
        inner_results.append(guard.run(lambda: "nested"))
        return "outer"

    assert guard.run(render) == "outer"
    assert inner_results == [None]
    assert guard.skipped == 1
    assert not guard.rendering


def test_render_guard_resets_after_error() -> None:
    guard = RenderGuard()

    def render() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        guard.run(render)
    assert not guard.rendering
    assert guard.run(lambda: 1) == 1


def test_compute_countdowns_skips_unreadable_dates() -> None:
    out = compute_countdowns([_task("ok"), _task("bad", due_date="not-a-date")], NOW)
    assert list(out) == ["ok"]
    assert out["ok"].days == 1


@pytest.mark.asyncio
async def test_debouncer_only_runs_last_value() -> None:
    seen: list[str] = []
    debouncer = SearchDebouncer(seen.append, delay_seconds=0.05)

    debouncer.submit("m")
    debouncer.submit("mi")
    last = debouncer.submit("milk")
    assert debouncer.pending

    await last
    assert seen == ["milk"]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_debouncer_cancel() -> None:
    seen: list[str] = []
    debouncer = SearchDebouncer(seen.append, delay_seconds=0.05)
    debouncer.submit("milk")
    debouncer.cancel()
    await asyncio.sleep(0.1)
    assert seen == []


@pytest.mark.asyncio
async def test_debouncer_logs_callback_errors() -> None:
    def boom(value: str) -> None:
        raise ValueError(value)

    debouncer = SearchDebouncer(boom, delay_seconds=0)
    await debouncer.submit("x")


@pytest.mark.asyncio
async def test_ticker_calls_on_tick_and_stops_on_cancel() -> None:
    ticks: list[dict] = []
    now = [NOW]

    def clock() -> datetime:
        now[0] = now[0] + timedelta(seconds=1)
        return now[0]

    ticker = asyncio.create_task(
        run_countdown_ticker(
            lambda: [_task("a")],
            ticks.append,
            interval_seconds=0.01,
            clock=clock,
        )
    )
    await asyncio.sleep(0.1)
    ticker.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await ticker

    assert ticker.cancelled()
    assert len(ticks) >= 2
    assert ticks[0]["a"].total_seconds > ticks[-1]["a"].total_seconds


@pytest.mark.asyncio
async def test_ticker_skips_while_rendering() -> None:
    ticks: list[dict] = []
    guard = RenderGuard()
    guard._rendering = True

    ticker = asyncio.create_task(
        run_countdown_ticker(lambda: [_task("a")], ticks.append, interval_seconds=0.01, guard=guard)
    )
    await asyncio.sleep(0.05)
    assert ticks == []

    guard._rendering = False
    await asyncio.sleep(0.05)
    ticker.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await ticker

    assert ticks


@pytest.mark.asyncio
async def test_ticker_survives_failing_callback() -> None:
    calls = 0

    def on_tick(_countdowns) -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("render failed")

    ticker = asyncio.create_task(
        run_countdown_ticker(lambda: [_task("a")], on_tick, interval_seconds=0.01)
    )
    await asyncio.sleep(0.05)
    ticker.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await ticker

    assert calls >= 2
