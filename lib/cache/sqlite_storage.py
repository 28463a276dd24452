"""
SQLite backing store shared by the persistent cache and version counter, dood!
"""

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class SqliteStorage:
    """
    Thin wrapper around a single SQLite connection, dood!

    Holds the schema for cache entries and the single-row version table and
    hands out cursors that commit on success and roll back on failure.

    Args:
        dbPath: Path to SQLite file, ":memory:" for a private in-memory database
        timeout: Lock wait timeout in seconds
    """

    def __init__(self, dbPath: str, timeout: float = 30.0):
        self.dbPath = dbPath
        self.timeout = timeout
        self._lock = threading.RLock()
        self._connection: Optional[sqlite3.Connection] = None
        self._initSchema()

    def _getConnection(self) -> sqlite3.Connection:
        with self._lock:
            if self._connection is None:
                if self.dbPath != ":memory:":
                    dirName = os.path.dirname(self.dbPath)
                    if dirName:
                        os.makedirs(dirName, exist_ok=True)
                logger.debug(f"Opening cache database {self.dbPath}, dood!")
                self._connection = sqlite3.connect(
                    self.dbPath,
                    timeout=self.timeout,
                    check_same_thread=False,
                )
                self._connection.row_factory = sqlite3.Row
            return self._connection

    @contextmanager
    def getCursor(self) -> Iterator[sqlite3.Cursor]:
        """
        Context manager for database operations, dood!

        Yields:
            sqlite3.Cursor: Database cursor with auto-commit/rollback
        """
        with self._lock:
            conn = self._getConnection()
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Cache database operation failed: {e}")
                raise
            finally:
                cursor.close()

    def _initSchema(self) -> None:
        with self.getCursor() as cursor:
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_entries (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    data TEXT NOT NULL,
                    expires_at REAL NOT NULL,
                    version INTEGER NOT NULL,
                    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (namespace, key)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_version (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    version INTEGER NOT NULL
                )
                """
            )
            cursor.execute("INSERT OR IGNORE INTO cache_version (id, version) VALUES (1, 1)")

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
