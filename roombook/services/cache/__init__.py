# roombook/services/cache/__init__.py
"""
Tagged read cache (Redis) and the invalidation that keeps it coherent.
"""

from .keys import CacheTags, keys_for_booking, keys_for_room
from .store import TaggedCache
from .invalidator import CacheInvalidator, select_payloads

__all__ = [
    "CacheTags",
    "keys_for_booking",
    "keys_for_room",
    "TaggedCache",
    "CacheInvalidator",
    "select_payloads",
]
