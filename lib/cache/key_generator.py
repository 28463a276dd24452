"""
Built-in key generator implementations for lib.cache, dood!

Available Generators:
    - StringKeyGenerator: Pass-through for already formatted string keys
    - HashKeyGenerator: SHA512 hash for free-form input such as search queries
"""

import hashlib
from typing import Any

from .types import KeyGenerator


class StringKeyGenerator(KeyGenerator[str]):
    """
    Pass-through key generator for string keys, dood!

    Use it when the caller already composes namespaced keys, e.g.
    ``weather:51.8986:-8.4756:48:open-meteo+met-no``.

    Example:
        >>> generator = StringKeyGenerator()
        >>> generator.generateKey("astronomy:51.8986:-8.4756:2025-01-15")
        'astronomy:51.8986:-8.4756:2025-01-15'

    Note:
        Non-string input raises TypeError, dood!
    """

    def generateKey(self, obj: str) -> str:
        if not isinstance(obj, str):
            raise TypeError(f"StringKeyGenerator expects string input, got {type(obj).__name__}, dood!")

        return obj


class HashKeyGenerator(KeyGenerator[Any]):
    """
    SHA512 hash key generator, dood!

    Converts the object with ``repr()`` (plain ``str`` values are hashed as-is)
    and returns a 128-character hex digest, giving fixed-length keys for
    arbitrary user input.

    Example:
        >>> generator = HashKeyGenerator(prefix="geocoding:")
        >>> key = generator.generateKey("cork, ireland")
        >>> len(key)  # 10 + 128
        138
    """

    __slots__ = ("prefix",)

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def generateKey(self, obj: Any) -> str:
        if isinstance(obj, str):
            objStr = obj
        else:
            objStr = repr(obj)

        return self.prefix + hashlib.sha512(objStr.encode("utf-8")).hexdigest()
