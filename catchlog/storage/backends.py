"""
Storage providers for on-device persistence.

Data lives in named containers (``catches``, ``cache``) of JSON-serialisable
items keyed by string. Containers keep insertion order, and replacing an
existing item keeps its position, so FIFO queues can be built on top without
a separate ordering column in the callers.
"""

import copy
import json
import logging
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..errors import StorageError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

Item = dict[str, Any]


class StorageProvider(ABC):
    """Minimal keyed-container storage used by the record store and cache."""

    @abstractmethod
    def get(self, container: str, key: str) -> Optional[Item]:
        ...

    @abstractmethod
    def put(self, container: str, key: str, value: Item) -> None:
        ...

    @abstractmethod
    def delete(self, container: str, key: str) -> bool:
        ...

    @abstractmethod
    def items(self, container: str) -> list[tuple[str, Optional[Item]]]:
        """All items of a container in insertion order.

        Rows that cannot be decoded come back with a value of None.
        """

    def delete_where(
        self,
        container: str,
        predicate: Callable[[Item], bool],
        include_corrupt: bool = False,
    ) -> int:
        """Delete every item matching ``predicate``, one item at a time.

        Undecodable rows are only deleted when ``include_corrupt`` is set.
        """
        removed = 0
        for key, value in self.items(container):
            if value is None:
                matched = include_corrupt
            else:
                matched = predicate(value)
            if matched and self.delete(container, key):
                removed += 1
        return removed

    def close(self) -> None:
        pass


class InMemoryStorage(StorageProvider):
    """Process-local storage. Values are copied in and out like a real store."""

    def __init__(self):
        self._containers: dict[str, dict[str, Item]] = {}
        self._lock = threading.Lock()

    def get(self, container: str, key: str) -> Optional[Item]:
        with self._lock:
            value = self._containers.get(container, {}).get(key)
            return copy.deepcopy(value) if value is not None else None

    def put(self, container: str, key: str, value: Item) -> None:
        with self._lock:
            self._containers.setdefault(container, {})[key] = copy.deepcopy(value)

    def delete(self, container: str, key: str) -> bool:
        with self._lock:
            return self._containers.get(container, {}).pop(key, None) is not None

    def items(self, container: str) -> list[tuple[str, Optional[Item]]]:
        with self._lock:
            return [
                (key, copy.deepcopy(value))
                for key, value in self._containers.get(container, {}).items()
            ]


class SQLiteStorage(StorageProvider):
    """SQLite-backed durable storage. Every call commits on its own."""

    def __init__(self, db_path: Union[str, Path] = "data/catchlog.db"):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_schema()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open local storage at {self.db_path}: {e}") from e
        logger.info(f"Local storage initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections."""
        with self._lock:
            conn = sqlite3.connect(str(self.db_path), timeout=10.0)
            conn.row_factory = sqlite3.Row
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            # seq gives the insertion order; upserts keep the original seq
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS items (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    container TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at INTEGER NOT NULL,
                    UNIQUE (container, key)
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_items_container
                ON items(container, seq)
            """)

            cursor.execute(
                "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
                (str(SCHEMA_VERSION),),
            )
            cursor.execute("SELECT value FROM meta WHERE key = 'schema_version'")
            stored_version = int(cursor.fetchone()['value'])

        if stored_version > SCHEMA_VERSION:
            raise StorageError(
                f"Storage schema version {stored_version} is newer than supported {SCHEMA_VERSION}"
            )

    @staticmethod
    def _decode(container: str, key: str, raw: str) -> Item:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt item {container}/{key}: {e}") from e

    def get(self, container: str, key: str) -> Optional[Item]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM items WHERE container = ? AND key = ?",
                    (container, key),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {container}/{key}: {e}") from e

        if row is None:
            return None
        return self._decode(container, key, row['value'])

    def put(self, container: str, key: str, value: Item) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Item {container}/{key} is not serialisable: {e}") from e

        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO items (container, key, value, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (container, key)
                    DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """, (container, key, payload, int(time.time() * 1000)))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {container}/{key}: {e}") from e

    def delete(self, container: str, key: str) -> bool:
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM items WHERE container = ? AND key = ?",
                    (container, key),
                )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete {container}/{key}: {e}") from e

    def items(self, container: str) -> list[tuple[str, Optional[Item]]]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT key, value FROM items WHERE container = ? ORDER BY seq ASC",
                    (container,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read container {container}: {e}") from e

        result = []
        for row in rows:
            try:
                value = self._decode(container, row['key'], row['value'])
            except StorageError as e:
                logger.warning(str(e))
                value = None
            result.append((row['key'], value))
        return result
