"""
Global cache version counters, dood!

Bumping the version is how the whole cache is invalidated: entries remember
the version they were written under and stop matching once it moves on.
"""

import logging
import threading

from .interface import CacheVersionInterface
from .sqlite_storage import SqliteStorage

logger = logging.getLogger(__name__)


class InMemoryCacheVersion(CacheVersionInterface):
    """Process-local version counter guarded by a lock, dood!"""

    def __init__(self, initial: int = 1):
        if initial < 1:
            raise ValueError(f"Cache version must start at 1 or above, got {initial}")
        self._version = initial
        self._lock = threading.RLock()

    def current(self) -> int:
        with self._lock:
            return self._version

    def bump(self) -> int:
        with self._lock:
            self._version += 1
            logger.info(f"Cache version bumped to {self._version}, dood!")
            return self._version


class SqliteCacheVersion(CacheVersionInterface):
    """
    Persistent version counter stored as a single row, dood!

    The increment is a single ``UPDATE ... SET version = version + 1`` inside a
    transaction, so it survives restarts and is never torn.
    """

    def __init__(self, storage: SqliteStorage):
        self.storage = storage

    def current(self) -> int:
        with self.storage.getCursor() as cursor:
            cursor.execute("SELECT version FROM cache_version WHERE id = 1")
            row = cursor.fetchone()
            return int(row["version"]) if row is not None else 1

    def bump(self) -> int:
        with self.storage.getCursor() as cursor:
            cursor.execute("UPDATE cache_version SET version = version + 1 WHERE id = 1")
            cursor.execute("SELECT version FROM cache_version WHERE id = 1")
            version = int(cursor.fetchone()["version"])
        logger.info(f"Persistent cache version bumped to {version}, dood!")
        return version
