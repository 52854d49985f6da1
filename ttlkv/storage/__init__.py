"""Storage module for ttlkv."""

from .adapter import StoreAdapter
from .engine import MemoryEngine, SQLiteEngine, StorageEngine, open_engine

__all__ = ["StoreAdapter", "StorageEngine", "SQLiteEngine", "MemoryEngine", "open_engine"]
