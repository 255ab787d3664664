# src/swift_task/tasks/task_scheduler.py

from __future__ import annotations

"""
Presentation-side scheduling helpers.

- RenderGuard: one render at a time; requests arriving mid-render are dropped
- SearchDebouncer: runs the search only after a quiet period; newer input
  cancels the pending call
- run_countdown_ticker: fixed-cadence loop that recomputes countdowns of the
  visible tasks without touching the store

The store itself is synchronous; these helpers belong to the driver.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any, TypeVar

from .countdown import Countdown, task_countdown
from .task_models import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RenderGuard:
    """Explicit "rendering" flag instead of a global."""

    def __init__(self) -> None:
        self._rendering = False
        self.skipped = 0

    @property
    def rendering(self) -> bool:
        return self._rendering

    def run(self, render: Callable[[], T]) -> T | None:
        """
        Call render() unless a render is already in flight.

        Returns render()'s result, or None when the request was dropped.
        """
        if self._rendering:
            self.skipped += 1
            logger.debug("Render requested while rendering; ignored (skipped=%d)", self.skipped)
            return None
        self._rendering = True
        try:
            return render()
        finally:
            self._rendering = False


class SearchDebouncer:
    """
    Debounce search input.

    submit() must be called from a running event loop. Each call cancels the
    previous pending one; the callback only sees the last value.
    """

    def __init__(self, callback: Callable[[str], Any], *, delay_seconds: float = 0.3) -> None:
        self._callback = callback
        self._delay = max(0.0, float(delay_seconds))
        self._pending: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def submit(self, value: str) -> asyncio.Task[None]:
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._fire(value))
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _fire(self, value: str) -> None:
        await asyncio.sleep(self._delay)
        try:
            self._callback(value)
        except Exception:
            logger.exception("Debounced search callback failed value=%r", value)


def compute_countdowns(tasks: Iterable[Task], now: datetime) -> dict[str, Countdown]:
    out: dict[str, Countdown] = {}
    for task in tasks:
        try:
            out[task.id] = task_countdown(task, now)
        except ValueError:
            logger.debug("Task %s has an unreadable due date; skipping countdown", task.id)
    return out


async def run_countdown_ticker(
        visible_tasks: Callable[[], Iterable[Task]],
        on_tick: Callable[[dict[str, Countdown]], None],
        *,
        interval_seconds: float = 1.0,
        guard: RenderGuard | None = None,
        clock: Callable[[], datetime] = datetime.now,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds:
    - skip the tick if a full render is in flight
    - compute countdowns for visible_tasks() at clock()
    - hand them to on_tick (only the countdown text gets refreshed)

    To stop the ticker, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        if guard is not None and guard.rendering:
            logger.debug("Countdown tick skipped: render in flight")
        else:
            try:
                countdowns = compute_countdowns(visible_tasks(), clock())
                on_tick(countdowns)
            except Exception:
                logger.exception("countdown tick failed")

        await asyncio.sleep(sleep_s)
