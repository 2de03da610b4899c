"""Key/value blob storage backing the edit history."""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Dict, Optional, Protocol

log = logging.getLogger(__name__)


class StorageError(Exception):
    """Storage operation error."""
    pass


class StorageFullError(StorageError):
    """The value does not fit in the storage quota."""
    pass


class KeyValueStorage(Protocol):
    """A blocking get/set store with a capacity ceiling."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


def _value_size(value: str) -> int:
    return len(value.encode('utf-8'))


class MemoryStorage:
    """In-process storage, optionally limited to ``quota_bytes`` per value."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None and _value_size(value) > self.quota_bytes:
            raise StorageFullError(
                f"Value for {key!r} is {_value_size(value)} bytes, quota is {self.quota_bytes}"
            )
        self._data[key] = value


class SqliteStorage:
    """SQLite-backed storage with a per-value quota."""

    def __init__(self, db_path: str, quota_bytes: Optional[int] = None):
        self._db_path = db_path
        self.quota_bytes = quota_bytes
        self._ensure_sqlite_tables()

    def _ensure_sqlite_tables(self):
        """Create SQLite tables if they don't exist."""
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
            log.info(f"SQLite storage initialized at {self._db_path}")

    @contextmanager
    def get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self._db_path)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            if isinstance(e, sqlite3.OperationalError) and "full" in str(e).lower():
                raise StorageFullError(f"Database is full: {e}") from e
            log.error(f"SQLite connection error: {e}")
            raise StorageError(f"Database operation failed: {e}") from e
        finally:
            if conn:
                conn.close()

    def get(self, key: str) -> Optional[str]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None and _value_size(value) > self.quota_bytes:
            raise StorageFullError(
                f"Value for {key!r} is {_value_size(value)} bytes, quota is {self.quota_bytes}"
            )
        with self.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )
            conn.commit()
