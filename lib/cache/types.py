"""
Entry, codec protocols and clock type shared by the caches, dood!
"""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Protocol, TypeVar

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T", contravariant=True)

# Wall-clock source in seconds since epoch. Injected by tests to move time.
Clock = Callable[[], float]

DEFAULT_CLOCK: Clock = time.time


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """
    Single stored value with absolute expiry and the version it was written under, dood!

    An entry is logically expired if ``now >= expiresAt`` or if ``version``
    differs from the current global cache version.
    """

    value: V
    expiresAt: float
    version: int

    def isValid(self, now: float, currentVersion: int) -> bool:
        return now < self.expiresAt and self.version == currentVersion


class KeyGenerator(Protocol[T]):
    """
    Turns a lookup object into the string stored as the cache key, dood!

    Example:
        >>> StringKeyGenerator().generateKey("weather:51.8986:-8.4756:48:open-meteo+met-no")
        'weather:51.8986:-8.4756:48:open-meteo+met-no'
    """

    def generateKey(self, obj: T) -> str: ...


class ValueConverter(Protocol[V]):
    """Text codec for values of persistent caches: ``decode(encode(v)) == v``."""

    def encode(self, obj: V) -> str: ...

    def decode(self, value: str) -> V: ...
