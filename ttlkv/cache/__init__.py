"""Cache module for ttlkv."""

from .codec import CacheEntry
from .locks import KeyedLocks
from .ttl_cache import TTL_ABSENT, TTL_NO_EXPIRY, TTLCache

__all__ = ["CacheEntry", "KeyedLocks", "TTLCache", "TTL_ABSENT", "TTL_NO_EXPIRY"]
