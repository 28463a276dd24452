"""
Abstract cache interfaces for lib.cache, dood!

This module defines the generic CacheInterface that all cache implementations
must follow together with the CacheVersionInterface holding the global version
stamp used for bulk invalidation, dood!
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional

from .types import K, V


class CacheVersionInterface(ABC):
    """
    Process-wide cache version counter, dood!

    Starts at 1 on first use, only ever grows, and is shared by every cache
    namespace so a single bump invalidates all of them at once. Reads and
    increments must be consistent across concurrent callers.
    """

    @abstractmethod
    def current(self) -> int:
        """Return the current global version, dood!"""
        pass

    @abstractmethod
    def bump(self) -> int:
        """
        Atomically increment the global version, dood!

        Returns:
            int: The new version value
        """
        pass


class CacheInterface(ABC, Generic[K, V]):
    """
    Generic versioned TTL cache for any key-value storage, dood!

    Every entry is stored with an absolute expiry (``now + ttl``) and the global
    version captured at write time. Lookups are lazy: an entry that expired or
    was written under an older version is reported as a miss, and nothing is
    swept in the background, dood!

    Type Parameters:
        K: The key type (any hashable type)
        V: The value type (any type)

    Example:
        >>> from lib.cache import DictCache, StringKeyGenerator
        >>>
        >>> cache = DictCache[str, dict](
        ...     keyGenerator=StringKeyGenerator(),
        ...     defaultTtl=900
        ... )
        >>> await cache.set("weather:51.8986:-8.4756:48", {"samples": []})
        >>> series = await cache.get("weather:51.8986:-8.4756:48")
        >>> await cache.clear()  # bump version, every entry becomes a miss
    """

    @abstractmethod
    async def get(self, key: K) -> Optional[V]:
        """
        Get cached value by key, dood!

        Args:
            key: The cache key to retrieve

        Returns:
            Optional[V]: The cached value if found, not expired and written under
                the current version, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl: Optional[int] = None) -> bool:
        """
        Store value in cache, dood!

        Overwrites any existing entry for the same key.

        Args:
            key: The cache key to store the value under
            value: The value to cache
            ttl: Time to live in seconds, cache default TTL if None

        Returns:
            bool: True if the value was successfully stored, False otherwise
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """
        Invalidate all cached data by bumping the global version, dood!

        Existing entries become unreachable on their next lookup without
        being enumerated or physically deleted.
        """
        pass

    @abstractmethod
    def getStats(self) -> Dict[str, Any]:
        """
        Get cache statistics, dood!

        Returns:
            Dict[str, Any]: Implementation-specific statistics
        """
        pass
