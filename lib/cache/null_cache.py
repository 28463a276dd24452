"""
Null cache implementation for lib.cache, dood!

This module provides a no-op cache implementation that implements the
CacheInterface but doesn't actually cache anything. Useful for testing
and for running with caching disabled, dood!
"""

from typing import Any, Dict, Optional

from .interface import CacheInterface
from .types import K, V


class NullCache(CacheInterface[K, V]):
    """No-op cache that never stores anything, dood!

    Useful for:
    - Testing without cache side effects
    - Disabling cache in production
    - Benchmarking cache impact
    """

    async def get(self, key: K) -> Optional[V]:
        """Always return None (cache miss), dood!"""
        return None

    async def set(self, key: K, value: V, ttl: Optional[int] = None) -> bool:
        """
        Do nothing (don't cache), but pretend to succeed, dood!

        Returns:
            bool: Always True (pretends to succeed)
        """
        return True

    async def clear(self) -> None:
        """Do nothing, there is no version to bump, dood!"""
        pass

    def getStats(self) -> Dict[str, Any]:
        return {"enabled": False, "backend": "null"}
