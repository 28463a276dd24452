"""
lib.cache - Versioned TTL cache library, dood!

Every entry carries an absolute expiry and the global version it was written
under. Bumping the shared version invalidates all caches that use it without
enumerating keys, dood!

Core Components:
- CacheInterface: Abstract base class for all cache implementations
- CacheVersionInterface: Global version counter used for bulk invalidation
- DictCache: Thread-safe in-memory cache
- SqliteCache: Persistent SQLite cache
- NullCache: No-op cache for testing and for disabled caching

Example Usage:
    >>> from lib.cache import DictCache, InMemoryCacheVersion, StringKeyGenerator
    >>>
    >>> version = InMemoryCacheVersion()
    >>> cache = DictCache[str, dict](
    ...     keyGenerator=StringKeyGenerator(),
    ...     defaultTtl=900,
    ...     version=version,
    ... )
    >>> await cache.set("weather:51.8986:-8.4756:48:open-meteo+met-no", {"samples": []})
    >>> await cache.get("weather:51.8986:-8.4756:48:open-meteo+met-no")
    >>> version.bump()  # every entry above is now a miss, dood!
"""

from .dict_cache import DictCache
from .interface import CacheInterface, CacheVersionInterface
from .key_generator import HashKeyGenerator, StringKeyGenerator
from .null_cache import NullCache
from .sqlite_cache import SqliteCache
from .sqlite_storage import SqliteStorage
from .types import DEFAULT_CLOCK, CacheEntry, Clock, K, KeyGenerator, T, V, ValueConverter
from .value_converter import JsonValueConverter
from .version import InMemoryCacheVersion, SqliteCacheVersion

__all__ = [
    # Core types
    "CacheEntry",
    "Clock",
    "DEFAULT_CLOCK",
    "KeyGenerator",
    "ValueConverter",
    "K",
    "V",
    "T",
    # Interfaces
    "CacheInterface",
    "CacheVersionInterface",
    # Implementations
    "DictCache",
    "NullCache",
    "SqliteCache",
    "SqliteStorage",
    # Versions
    "InMemoryCacheVersion",
    "SqliteCacheVersion",
    # Key generators
    "StringKeyGenerator",
    "HashKeyGenerator",
    # Value Converters
    "JsonValueConverter",
]
