# src/swift_task/tasks/countdown.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .task_models import Task

_DAY = 86400
_HOUR = 3600
_MINUTE = 60


@dataclass(frozen=True, slots=True)
class Countdown:
    """Time left until (or, when overdue, time since) a due moment."""

    overdue: bool
    days: int
    hours: int
    minutes: int
    seconds: int

    @property
    def total_seconds(self) -> int:
        return self.days * _DAY + self.hours * _HOUR + self.minutes * _MINUTE + self.seconds


def countdown(due_at: datetime, now: datetime | None = None) -> Countdown:
    """
    Split `due_at - now` into days/hours/minutes/seconds (floor).

    diff is taken in whole seconds (fractions dropped); diff <= 0 is overdue
    and the overdue magnitude uses the same split on |diff|.
    """
    if now is None:
        now = datetime.now()
    diff = int((due_at - now).total_seconds())
    overdue = diff <= 0
    total = abs(diff)
    return Countdown(
        overdue=overdue,
        days=total // _DAY,
        hours=(total % _DAY) // _HOUR,
        minutes=(total % _HOUR) // _MINUTE,
        seconds=total % _MINUTE,
    )


def task_countdown(task: Task, now: datetime | None = None) -> Countdown:
    return countdown(task.due_at, now)


def format_countdown(cd: Countdown) -> str:
    if cd.overdue:
        parts = []
        if cd.days > 0:
            parts.append(f"{cd.days} days")
        if cd.hours > 0:
            parts.append(f"{cd.hours} hours")
        parts.append(f"{cd.minutes} minutes")
        return "Overdue by " + " ".join(parts)
    if cd.days == 0 and cd.hours == 0 and cd.minutes == 0:
        return f"Due in {cd.seconds} seconds"
    if cd.days == 0 and cd.hours == 0:
        return f"Due in {cd.minutes} minutes {cd.seconds} seconds"
    if cd.days == 0:
        return f"Due in {cd.hours} hours {cd.minutes} minutes"
    return f"Due in {cd.days} days {cd.hours} hours {cd.minutes} minutes"


def is_urgent(cd: Countdown) -> bool:
    """Overdue, or less than a day left."""
    return cd.overdue or cd.days == 0
