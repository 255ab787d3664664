# src/swift_task/core/errors.py

"""
Error hierarchy.

Every error raised by the store, the gateway or the session derives from
SwiftTaskError, so the console driver can report it without crashing.
"""

from __future__ import annotations


class SwiftTaskError(Exception):
    """Base class for all recoverable application errors."""


class ValidationError(SwiftTaskError):
    """
    Rejected input: missing field, empty name, duplicate, start-after-due, ...

    `rule` names the violated rule so callers can react without parsing text.
    """

    def __init__(self, message: str, *, rule: str = "invalid") -> None:
        super().__init__(message)
        self.rule = rule


class NotFoundError(SwiftTaskError):
    """An operation referenced an unknown board/folder/task id."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind.capitalize()} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class EditLimitReached(SwiftTaskError):
    """The task has already used all of its edits."""

    def __init__(self, task_id: str, limit: int) -> None:
        super().__init__(f"This task has reached its edit limit ({limit} times)")
        self.task_id = task_id
        self.limit = limit


class PersistenceError(SwiftTaskError):
    """Saving the store failed. The in-memory state is kept."""


class LoginError(SwiftTaskError):
    """Display name is not in the user directory."""


class SessionError(SwiftTaskError):
    """A store operation was attempted while nobody is logged in."""
