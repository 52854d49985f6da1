"""
Per-Key Locks

Read-modify-write operations (counters, expire) read an envelope, change it
and write it back. Two callers doing this on the same key at the same time
would lose an update. KeyedLocks serialises them per key while letting
different keys proceed in parallel.

Locks are process-local.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List


class KeyedLocks:
    """
    A lazily populated set of mutexes, one per key.

    A lock exists only while at least one thread holds or waits for it;
    the last thread out removes it, so idle keys cost nothing.

    Usage:
        locks = KeyedLocks()
        with locks.hold(b"counter"):
            ...  # read, modify, write

    Locks are not reentrant: holding a key and asking for it again from the
    same thread deadlocks.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of threads holding or waiting]
        self._locks: Dict[Hashable, List] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = [threading.Lock(), 0]
                self._locks[key] = slot
            slot[1] += 1

        lock = slot[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        """Number of keys that currently have a lock allocated."""
        with self._guard:
            return len(self._locks)


class NullLocks:
    """Drop-in for KeyedLocks that never blocks (last write wins)."""

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        yield

    def __len__(self) -> int:
        return 0
