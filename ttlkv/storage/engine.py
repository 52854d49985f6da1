"""
Storage Engine Module

This module provides the byte-oriented key-value engines that sit underneath
the store adapter. An engine knows nothing about envelopes or expiry: it maps
raw key bytes to raw value bytes.

Engines:
- SQLiteEngine: durable, on-disk, keys kept ordered by the primary key index
- MemoryEngine: dict-backed, non-durable, for tests and throwaway stores
"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

JOURNAL_MODES = ("DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF")
SYNCHRONOUS_MODES = ("OFF", "NORMAL", "FULL", "EXTRA")


@runtime_checkable
class StorageEngine(Protocol):
    """Protocol for raw byte stores used by the store adapter."""

    def get(self, key: bytes) -> Optional[bytes]:
        """Get the value for key. Returns None if not found."""
        ...

    def put(self, key: bytes, value: bytes) -> None:
        """Insert or overwrite the value for key."""
        ...

    def delete(self, key: bytes) -> None:
        """Delete key. No-op if the key doesn't exist."""
        ...

    def has(self, key: bytes) -> bool:
        """Check whether key has a stored value."""
        ...

    def close(self) -> None:
        """Release the engine's resources."""
        ...


class SQLiteEngine:
    """
    SQLite-backed durable byte store.

    All data lives in a single table:

        kv(key BLOB PRIMARY KEY, value BLOB NOT NULL) WITHOUT ROWID

    WITHOUT ROWID stores rows in the primary key b-tree, so keys are kept in
    byte order on disk.

    A single connection is shared by all threads. sqlite3 connections are not
    safe for concurrent use from several threads, so every statement runs
    under an internal lock. The connection is in autocommit mode; each put or
    delete is its own transaction.

    Attributes:
        path: Database file path, or ":memory:"
    """

    def __init__(
        self,
        path: str,
        timeout: float = 10.0,
        journal_mode: str = "WAL",
        synchronous: str = "NORMAL",
    ):
        """
        Open (or create) the database at path.

        Args:
            path: Database file path; parent directories are created.
                  ":memory:" opens a private in-memory database.
            timeout: Seconds to wait on a locked database file
            journal_mode: SQLite journal mode (e.g. WAL, DELETE)
            synchronous: SQLite synchronous level (e.g. NORMAL, FULL)

        Raises:
            ValueError: If journal_mode or synchronous is not a known mode
            sqlite3.Error: If the database cannot be opened
        """
        journal_mode = journal_mode.upper()
        synchronous = synchronous.upper()
        if journal_mode not in JOURNAL_MODES:
            raise ValueError(f"unknown journal mode: {journal_mode}")
        if synchronous not in SYNCHRONOUS_MODES:
            raise ValueError(f"unknown synchronous level: {synchronous}")

        self.path = str(path)
        if self.path != MEMORY_PATH:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            self.path,
            timeout=timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        self._conn.execute(f"PRAGMA journal_mode={journal_mode}")
        self._conn.execute(f"PRAGMA synchronous={synchronous}")
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS kv ("
            "key BLOB PRIMARY KEY, value BLOB NOT NULL"
            ") WITHOUT ROWID"
        )

        logger.info(f"SQLiteEngine opened at {self.path}")

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def put(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, value),
            )

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def has(self, key: bytes) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT 1 FROM kv WHERE key = ? LIMIT 1", (key,)
            ).fetchone()
        return row is not None

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()
        logger.info(f"SQLiteEngine closed at {self.path}")


class MemoryEngine:
    """
    In-memory byte store.

    Nothing survives close() or process exit. Useful for tests and as a
    reference for what an engine has to do.
    """

    def __init__(self):
        self._data: Dict[bytes, bytes] = {}

    def get(self, key: bytes) -> Optional[bytes]:
        return self._data.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        self._data[key] = value

    def delete(self, key: bytes) -> None:
        self._data.pop(key, None)

    def has(self, key: bytes) -> bool:
        return key in self._data

    def close(self) -> None:
        self._data.clear()


def open_engine(kind: str, path: str = MEMORY_PATH, **options) -> StorageEngine:
    """
    Create a storage engine by name.

    Args:
        kind: "sqlite" or "memory"
        path: Database path (ignored by the memory engine)
        **options: Extra keyword arguments for SQLiteEngine

    Returns:
        A ready-to-use engine

    Raises:
        ValueError: If kind is not a known engine
    """
    kind = kind.lower()
    if kind == "sqlite":
        return SQLiteEngine(path, **options)
    if kind == "memory":
        return MemoryEngine()
    raise ValueError(f"unknown storage engine: {kind}")
