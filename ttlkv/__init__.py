"""
ttlkv: Expiring Values and Counters on a Durable Key-Value Store

Redis-like TTL and counter semantics layered over an on-disk byte store,
with lazy expiration on read.
"""

from .cache import TTL_ABSENT, TTL_NO_EXPIRY, CacheEntry, TTLCache
from .errors import (
    DecodeError,
    NotFoundError,
    ParseError,
    StoreClosedError,
    StoreIOError,
    TTLKVError,
)
from .storage import MemoryEngine, SQLiteEngine, StoreAdapter, open_engine

__version__ = "1.0.0"

__all__ = [
    "TTLCache",
    "CacheEntry",
    "TTL_ABSENT",
    "TTL_NO_EXPIRY",
    "StoreAdapter",
    "SQLiteEngine",
    "MemoryEngine",
    "open_engine",
    "TTLKVError",
    "NotFoundError",
    "DecodeError",
    "ParseError",
    "StoreIOError",
    "StoreClosedError",
]
