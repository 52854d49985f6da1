"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

from pathlib import Path
from typing import Iterator

import pytest

from ttlkv.cache.ttl_cache import TTLCache
from ttlkv.storage.adapter import StoreAdapter
from ttlkv.storage.engine import MemoryEngine, SQLiteEngine


START_TIME = 1_700_000_000


class FakeClock:
    """
    Controllable clock returning integer Unix seconds.

    Usage:
        clock = FakeClock()
        cache = TTLCache(adapter, clock=clock)
        clock.advance(30)
    """

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def sqlite_path(tmp_path: Path) -> str:
    """Path for a fresh on-disk database inside the test's temp dir."""
    return str(tmp_path / "data" / "ttlkv.db")


@pytest.fixture
def adapter() -> Iterator[StoreAdapter]:
    """Create a StoreAdapter over an in-memory engine."""
    store = StoreAdapter(MemoryEngine())
    yield store
    store.close()


@pytest.fixture
def sqlite_adapter(sqlite_path: str) -> Iterator[StoreAdapter]:
    """Create a StoreAdapter over an on-disk SQLite engine."""
    store = StoreAdapter(SQLiteEngine(sqlite_path))
    yield store
    store.close()


# ============================================================================
# Cache Fixtures
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def cache(adapter: StoreAdapter, clock: FakeClock) -> TTLCache:
    """Create a TTLCache over an in-memory engine with a fake clock."""
    return TTLCache(adapter, clock=clock, locking=True)


@pytest.fixture
def sqlite_cache(sqlite_adapter: StoreAdapter, clock: FakeClock) -> TTLCache:
    """Create a TTLCache over an on-disk SQLite engine with a fake clock."""
    return TTLCache(sqlite_adapter, clock=clock, locking=True)


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
