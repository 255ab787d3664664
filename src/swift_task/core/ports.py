# src/swift_task/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store and the session depend on Protocols instead of concrete storage.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import TaskTree

Notifier = Callable[[str], None]
# User-visible, non-fatal notification ("Error saving data", ...).


class StoreGateway(Protocol):
    """
    Per-user persistence of the serialized task tree.

    Contract:
    - load() never raises: nothing persisted or unreadable -> empty TaskTree
    - save() raises PersistenceError on failure; the caller keeps its in-memory state
    """

    def load(self, user_id: str) -> TaskTree: ...
    def save(self, user_id: str, tree: TaskTree) -> None: ...

    # Remembered login (auto-login on next start)
    def remember_user(self, user_id: str) -> None: ...
    def recall_user(self) -> str | None: ...
    def forget_user(self) -> None: ...
