"""
Thread-safe in-memory cache implementation for lib.cache, dood!
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, Optional

from .interface import CacheInterface, CacheVersionInterface
from .types import DEFAULT_CLOCK, CacheEntry, Clock, K, KeyGenerator, V
from .version import InMemoryCacheVersion

logger = logging.getLogger(__name__)


class DictCache(CacheInterface[K, V]):
    """
    Dictionary-based versioned TTL cache, dood!

    Values are kept as-is (no serialization), so they should be immutable when
    shared between concurrent readers. When ``maxSize`` is reached, stale
    entries are dropped first, then the least recently written ones.

    Args:
        keyGenerator: Converts keys to strings
        defaultTtl: TTL in seconds used when ``set`` gets no explicit ttl
        maxSize: Maximum number of stored entries
        version: Shared global version counter, private one if None
        clock: Wall-clock source, ``time.time`` by default

    Example:
        >>> version = InMemoryCacheVersion()
        >>> weather = DictCache[str, ForecastSeries](StringKeyGenerator(), defaultTtl=900, version=version)
        >>> geocoding = DictCache[str, list](HashKeyGenerator(), defaultTtl=86400, version=version)
        >>> version.bump()  # both caches are invalidated, dood!
    """

    def __init__(
        self,
        keyGenerator: KeyGenerator[K],
        defaultTtl: int = 3600,
        maxSize: int = 1000,
        version: Optional[CacheVersionInterface] = None,
        clock: Clock = DEFAULT_CLOCK,
    ):
        if maxSize < 1:
            raise ValueError(f"maxSize must be positive, got {maxSize}")
        self._keyGenerator = keyGenerator
        self._defaultTtl = defaultTtl
        self._maxSize = maxSize
        self._version: CacheVersionInterface = version if version is not None else InMemoryCacheVersion()
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._lock = threading.RLock()

    async def get(self, key: K) -> Optional[V]:
        try:
            _key = self._keyGenerator.generateKey(key)
            with self._lock:
                entry = self._entries.get(_key)
                if entry is None:
                    logger.debug(f"Cache miss for {_key}")
                    return None
                if not entry.isValid(self._clock(), self._version.current()):
                    logger.debug(f"Cache entry {_key} is stale")
                    return None
                logger.debug(f"Cache hit for {_key}")
                return entry.value
        except Exception as e:
            logger.error(f"Failed to get cache entry {key}: {e}")
            return None

    async def set(self, key: K, value: V, ttl: Optional[int] = None) -> bool:
        try:
            _key = self._keyGenerator.generateKey(key)
            effectiveTtl = self._defaultTtl if ttl is None else ttl
            with self._lock:
                entry = CacheEntry(
                    value=value,
                    expiresAt=self._clock() + effectiveTtl,
                    version=self._version.current(),
                )
                self._entries[_key] = entry
                self._entries.move_to_end(_key)
                if len(self._entries) > self._maxSize:
                    self._evict()
            return True
        except Exception as e:
            logger.error(f"Failed to set cache entry {key}: {e}")
            return False

    def _evict(self) -> None:
        """Drop stale entries, then oldest writes until size fits, dood!"""
        now = self._clock()
        currentVersion = self._version.current()
        staleKeys = [k for k, entry in self._entries.items() if not entry.isValid(now, currentVersion)]
        for k in staleKeys:
            del self._entries[k]

        while len(self._entries) > self._maxSize:
            evictedKey, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cache entry {evictedKey}")

    async def clear(self) -> None:
        self._version.bump()

    def getStats(self) -> Dict[str, Any]:
        with self._lock:
            now = self._clock()
            currentVersion = self._version.current()
            validEntries = sum(1 for entry in self._entries.values() if entry.isValid(now, currentVersion))
            return {
                "enabled": True,
                "backend": "memory",
                "entries": validEntries,
                "storedEntries": len(self._entries),
                "maxSize": self._maxSize,
                "defaultTtl": self._defaultTtl,
                "version": currentVersion,
                "threadSafe": True,
            }
