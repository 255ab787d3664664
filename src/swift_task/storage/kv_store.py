# src/swift_task/storage/kv_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path

from ..core.errors import PersistenceError
from ..tasks.task_models import TaskTree, tree_from_dict, tree_to_dict

logger = logging.getLogger(__name__)

KEY_PREFIX = "swift_task_"
CURRENT_USER_KEY = f"{KEY_PREFIX}current_user"


def user_key(user_id: str) -> str:
    return f"{KEY_PREFIX}{user_id}"


class SqliteStoreGateway:
    """
    SQLite key-value store for per-user task trees.

    One row per key; the value is the JSON document of the whole tree.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "swift_task.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_keys()
        except sqlite3.Error:
            total = -1
        logger.info("SqliteStoreGateway ready db=%s keys=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _get(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return str(row["value"]) if row else None
        finally:
            conn.close()

    def _put(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, time.time()),
            )
            conn.commit()
        finally:
            conn.close()

    def _delete(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    # ---- public API ----

    def count_keys(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM kv").fetchone()
            return int(n)
        finally:
            conn.close()

    def load(self, user_id: str) -> TaskTree:
        """Never raises: missing or unreadable data yields an empty tree."""
        try:
            raw = self._get(user_key(user_id))
            if raw is None:
                return TaskTree()
            tree = tree_from_dict(json.loads(raw))
        except Exception:
            logger.exception("Failed to load task tree user=%s; starting empty", user_id)
            return TaskTree()
        logger.info("Loaded task tree user=%s boards=%d", user_id, len(tree.boards))
        return tree

    def save(self, user_id: str, tree: TaskTree) -> None:
        try:
            payload = json.dumps(tree_to_dict(tree), ensure_ascii=False)
            self._put(user_key(user_id), payload)
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise PersistenceError(f"Error saving data: {e}") from e
        logger.debug("Saved task tree user=%s bytes=%d", user_id, len(payload))

    def remember_user(self, user_id: str) -> None:
        try:
            self._put(CURRENT_USER_KEY, user_id)
        except sqlite3.Error as e:
            raise PersistenceError(f"Error saving current user: {e}") from e

    def recall_user(self) -> str | None:
        try:
            return self._get(CURRENT_USER_KEY)
        except sqlite3.Error:
            logger.exception("Failed to read current user")
            return None

    def forget_user(self) -> None:
        try:
            self._delete(CURRENT_USER_KEY)
        except sqlite3.Error as e:
            raise PersistenceError(f"Error clearing current user: {e}") from e
