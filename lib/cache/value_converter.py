"""
Value converter implementations for cache storage, dood!

Persistent caches only store strings, so anything else goes through a
converter on the way in and out.
"""

import json

import lib.utils as utils

from .types import V, ValueConverter


class JsonValueConverter(ValueConverter[V]):
    """
    JSON converter for serializable objects, dood!

    Handles plain JSON data (dicts, lists, numbers, strings). Domain objects
    should provide their own converter built on top of this one.
    """

    def encode(self, obj: V) -> str:
        return utils.jsonDumps(obj, sort_keys=False)

    def decode(self, value: str) -> V:
        return json.loads(value)
