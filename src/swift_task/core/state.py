# src/swift_task/core/state.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..logging_setup import set_log_user
from ..tasks.task_store import TaskStore
from .errors import LoginError, PersistenceError, SessionError
from .ports import Notifier, StoreGateway
from .users import User, find_user

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """
    Explicit session context: who is logged in and which store is loaded.

    Lifecycle:
    - login()  -> load the user's tree via the gateway, build a TaskStore
    - logout() -> save, forget the remembered user, drop user + store
    - close()  -> save only (process exit; the user stays remembered)
    """

    # Store Settings on the session for easy access in other modules later.
    settings: object
    gateway: StoreGateway
    notify: Notifier | None = None

    user: User | None = None
    store: TaskStore | None = None

    @property
    def logged_in(self) -> bool:
        return self.user is not None and self.store is not None

    def require_store(self) -> TaskStore:
        if self.store is None:
            raise SessionError("Please log in first")
        return self.store

    def _notify(self, text: str) -> None:
        if self.notify is None:
            return
        try:
            self.notify(text)
        except Exception:
            logger.debug("Notifier failed.", exc_info=True)

    def _on_save_error(self, err: PersistenceError) -> None:
        self._notify(f"Error saving data: {err}")

    def login(self, display_name: str) -> User:
        user = find_user(display_name)
        if user is None:
            raise LoginError("User not found. Please use one of the demo users.")

        if self.logged_in:
            self.logout()

        tree = self.gateway.load(user.id)
        self.user = user
        set_log_user(user.id)
        self.store = TaskStore(
            tree,
            gateway=self.gateway,
            user_id=user.id,
            on_save_error=self._on_save_error,
        )
        try:
            self.gateway.remember_user(user.id)
        except PersistenceError:
            logger.warning("Could not remember user=%s for auto-login", user.id)

        logger.info("Logged in user=%s boards=%d", user.id, len(tree.boards))
        return user

    def _save_current(self) -> None:
        if self.user is None or self.store is None:
            return
        try:
            self.gateway.save(self.user.id, self.store.tree)
        except PersistenceError as e:
            logger.warning("Final save failed user=%s: %s", self.user.id, e)
            self._notify(f"Error saving data: {e}")

    def close(self) -> None:
        self._save_current()

    def logout(self) -> None:
        if self.user is None:
            return
        self._save_current()
        try:
            self.gateway.forget_user()
        except PersistenceError:
            logger.warning("Could not clear remembered user=%s", self.user.id)
        logger.info("Logged out user=%s", self.user.id)
        set_log_user(None)
        self.user = None
        self.store = None
