# src/swift_task/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite gateway into a Session,
- restores the remembered user (optional auto-login).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.errors import LoginError
from ..core.ports import Notifier
from ..core.state import Session
from ..core.users import get_user_by_id
from ..storage.kv_store import SqliteStoreGateway

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_session(*, settings=None, notify: Notifier | None = None) -> Session:
    """
    Create a Session from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return Session(
        settings=settings,
        gateway=SqliteStoreGateway(settings.db_path),
        notify=notify,
    )


def restore_login(session: Session) -> bool:
    """Log the remembered user back in. Returns True on success."""
    if not getattr(session.settings, "auto_login", False):
        return False
    user = get_user_by_id(session.gateway.recall_user())
    if user is None:
        return False
    try:
        session.login(user.display_name)
    except LoginError:
        logger.warning("Remembered user %s could not log in", user.id)
        return False
    return True
