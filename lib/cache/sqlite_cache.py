"""
SQLite-backed persistent cache implementation, dood!

Modeled on the database cache tables: one row per (namespace, key) with an
upsert on write. Expiry and version are checked lazily on read.
"""

import logging
from typing import Any, Dict, Optional

from .interface import CacheInterface, CacheVersionInterface
from .key_generator import HashKeyGenerator
from .sqlite_storage import SqliteStorage
from .types import DEFAULT_CLOCK, Clock, K, KeyGenerator, V, ValueConverter
from .value_converter import JsonValueConverter
from .version import SqliteCacheVersion

logger = logging.getLogger(__name__)


class SqliteCache(CacheInterface[K, V]):
    """
    Persistent versioned TTL cache, dood!

    Several caches may share one ``SqliteStorage``; each keeps its rows under its
    own namespace, and all of them follow the version row of that storage unless
    another version counter is passed in.

    Args:
        storage: Shared SQLite storage
        namespace: Cache purpose, e.g. "weather" or "geocoding"
        keyGenerator: Converts keys to strings, HashKeyGenerator by default
        valueConverter: Serializes values, JsonValueConverter by default
        defaultTtl: TTL in seconds used when ``set`` gets no explicit ttl
        version: Global version counter, the storage version row if None
        clock: Wall-clock source, ``time.time`` by default

    Example:
        >>> storage = SqliteStorage("var/cache.db")
        >>> cache = SqliteCache[str, dict](storage, "weather", StringKeyGenerator(), defaultTtl=900)
        >>> await cache.set("weather:51.8986:-8.4756:48:open-meteo+met-no", {"samples": []})
    """

    def __init__(
        self,
        storage: SqliteStorage,
        namespace: str,
        keyGenerator: Optional[KeyGenerator[K]] = None,
        valueConverter: Optional[ValueConverter[V]] = None,
        defaultTtl: int = 3600,
        version: Optional[CacheVersionInterface] = None,
        clock: Clock = DEFAULT_CLOCK,
    ):
        self.storage = storage
        self.namespace = namespace
        self.keyGenerator: KeyGenerator[K] = keyGenerator if keyGenerator is not None else HashKeyGenerator()
        self.valueConverter: ValueConverter[V] = (
            valueConverter if valueConverter is not None else JsonValueConverter[V]()
        )
        self.defaultTtl = defaultTtl
        self.version: CacheVersionInterface = version if version is not None else SqliteCacheVersion(storage)
        self._clock = clock

    async def get(self, key: K) -> Optional[V]:
        try:
            _key = self.keyGenerator.generateKey(key)
            with self.storage.getCursor() as cursor:
                cursor.execute(
                    """
                    SELECT data, expires_at, version FROM cache_entries
                    WHERE namespace = :namespace AND key = :key
                    """,
                    {"namespace": self.namespace, "key": _key},
                )
                row = cursor.fetchone()

            if row is None:
                logger.debug(f"Cache miss for {self.namespace}/{_key}")
                return None
            if self._clock() >= row["expires_at"] or row["version"] != self.version.current():
                logger.debug(f"Cache entry {self.namespace}/{_key} is stale")
                return None
            return self.valueConverter.decode(row["data"])
        except Exception as e:
            logger.error(f"Failed to get cache entry {key}: {e}")
            return None

    async def set(self, key: K, value: V, ttl: Optional[int] = None) -> bool:
        try:
            _key = self.keyGenerator.generateKey(key)
            data = self.valueConverter.encode(value)
            effectiveTtl = self.defaultTtl if ttl is None else ttl
            with self.storage.getCursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO cache_entries
                        (namespace, key, data, expires_at, version, updated_at)
                    VALUES
                        (:namespace, :key, :data, :expiresAt, :version, CURRENT_TIMESTAMP)
                    ON CONFLICT(namespace, key) DO UPDATE SET
                        data = :data,
                        expires_at = :expiresAt,
                        version = :version,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    {
                        "namespace": self.namespace,
                        "key": _key,
                        "data": data,
                        "expiresAt": self._clock() + effectiveTtl,
                        "version": self.version.current(),
                    },
                )
            return True
        except Exception as e:
            logger.error(f"Failed to set cache entry {key}: {e}")
            return False

    async def clear(self) -> None:
        self.version.bump()

    def purgeStale(self) -> int:
        """
        Physically delete expired and outdated rows of this namespace, dood!

        Returns:
            int: Number of deleted rows
        """
        with self.storage.getCursor() as cursor:
            cursor.execute(
                """
                DELETE FROM cache_entries
                WHERE namespace = :namespace AND (expires_at <= :now OR version != :version)
                """,
                {"namespace": self.namespace, "now": self._clock(), "version": self.version.current()},
            )
            deleted = cursor.rowcount
        logger.debug(f"Purged {deleted} stale entries from {self.namespace}, dood!")
        return deleted

    def getStats(self) -> Dict[str, Any]:
        with self.storage.getCursor() as cursor:
            cursor.execute(
                "SELECT COUNT(*) AS cnt FROM cache_entries WHERE namespace = :namespace",
                {"namespace": self.namespace},
            )
            storedEntries = int(cursor.fetchone()["cnt"])
        return {
            "enabled": True,
            "backend": "sqlite",
            "namespace": self.namespace,
            "storedEntries": storedEntries,
            "defaultTtl": self.defaultTtl,
            "version": self.version.current(),
            "keyGenerator": type(self.keyGenerator).__name__,
            "valueConverter": type(self.valueConverter).__name__,
        }
