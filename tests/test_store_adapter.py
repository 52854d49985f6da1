"""
Tests for the Store Adapter and Storage Engines

These tests verify the raw, envelope-free layer:
- raw_get/raw_put/raw_delete/raw_exists pass-through
- Not-found normalisation to NotFoundError
- Engine failures surfacing as StoreIOError
- Open/close lifecycle
- Durability of the SQLite engine across reopen

Run with: python -m pytest tests/test_store_adapter.py -v
"""

import sqlite3

import pytest

from ttlkv.errors import NotFoundError, StoreClosedError, StoreIOError, TTLKVError
from ttlkv.storage.adapter import StoreAdapter, encode_key
from ttlkv.storage.engine import (
    MemoryEngine,
    SQLiteEngine,
    StorageEngine,
    open_engine,
)


class FailingEngine:
    """Engine whose every call fails like a broken disk."""

    def __init__(self, error: Exception):
        self.error = error

    def get(self, key):
        raise self.error

    def put(self, key, value):
        raise self.error

    def delete(self, key):
        raise self.error

    def has(self, key):
        raise self.error

    def close(self):
        raise self.error


class TestRawOperations:
    """Test raw get/put/delete/exists on both engines."""

    @pytest.fixture(params=["memory", "sqlite"])
    def store(self, request, sqlite_path):
        if request.param == "memory":
            store = StoreAdapter(MemoryEngine())
        else:
            store = StoreAdapter(SQLiteEngine(sqlite_path))
        yield store
        store.close()

    def test_put_then_get(self, store: StoreAdapter):
        """Test a stored value comes back unchanged."""
        store.raw_put("key", b"value")
        assert store.raw_get("key") == b"value"

    def test_binary_value(self, store: StoreAdapter):
        """Test arbitrary bytes survive a put/get."""
        payload = bytes(range(256))
        store.raw_put(b"bin", payload)
        assert store.raw_get(b"bin") == payload

    def test_put_overwrites(self, store: StoreAdapter):
        """Test putting twice keeps only the last value."""
        store.raw_put("key", b"one")
        store.raw_put("key", b"two")
        assert store.raw_get("key") == b"two"

    def test_get_missing_raises_not_found(self, store: StoreAdapter):
        """Test a missing key raises NotFoundError."""
        with pytest.raises(NotFoundError):
            store.raw_get("missing")

    def test_delete(self, store: StoreAdapter):
        """Test a deleted key is gone."""
        store.raw_put("key", b"value")
        store.raw_delete("key")
        assert store.raw_exists("key") is False
        with pytest.raises(NotFoundError):
            store.raw_get("key")

    def test_delete_missing_is_not_error(self, store: StoreAdapter):
        """Test deleting an absent key succeeds silently."""
        store.raw_delete("never-written")

    def test_exists(self, store: StoreAdapter):
        """Test raw_exists reflects stored state."""
        assert store.raw_exists("key") is False
        store.raw_put("key", b"")
        assert store.raw_exists("key") is True

    def test_str_and_bytes_keys_are_the_same_key(self, store: StoreAdapter):
        """Test a str key is stored under its UTF-8 bytes."""
        store.raw_put("clé", b"v")
        assert store.raw_get("clé".encode("utf-8")) == b"v"


class TestKeysAndValues:
    """Test argument validation."""

    def test_encode_key_str(self):
        assert encode_key("abc") == b"abc"

    def test_encode_key_bytes(self):
        assert encode_key(b"\x00\x01") == b"\x00\x01"

    def test_encode_key_rejects_other_types(self):
        with pytest.raises(TypeError):
            encode_key(42)

    def test_put_rejects_str_value(self, adapter: StoreAdapter):
        """Test the raw layer only stores bytes."""
        with pytest.raises(TypeError):
            adapter.raw_put("key", "text")


class TestErrors:
    """Test error normalisation."""

    def test_not_found_is_key_error(self, adapter: StoreAdapter):
        """Test NotFoundError can be caught as KeyError or TTLKVError."""
        with pytest.raises(KeyError):
            adapter.raw_get("missing")
        with pytest.raises(TTLKVError):
            adapter.raw_get("missing")

    @pytest.mark.parametrize("error", [
        sqlite3.OperationalError("disk I/O error"),
        OSError("No space left on device"),
    ])
    def test_engine_errors_become_store_io_error(self, error):
        """Test engine failures surface as StoreIOError with the cause chained."""
        store = StoreAdapter(FailingEngine(error))

        for call in (
            lambda: store.raw_get("k"),
            lambda: store.raw_put("k", b"v"),
            lambda: store.raw_delete("k"),
            lambda: store.raw_exists("k"),
        ):
            with pytest.raises(StoreIOError) as exc_info:
                call()
            assert exc_info.value.__cause__ is error

    def test_engine_closed_underneath_adapter(self, sqlite_path):
        """Test a closed SQLite connection reports StoreIOError, not sqlite3 errors."""
        engine = SQLiteEngine(sqlite_path)
        store = StoreAdapter(engine)
        engine.close()

        with pytest.raises(StoreIOError):
            store.raw_get("k")


class TestLifecycle:
    """Test open/close behaviour."""

    def test_operations_after_close_fail(self, sqlite_path):
        """Test every operation raises StoreClosedError after close."""
        store = StoreAdapter(SQLiteEngine(sqlite_path))
        store.close()

        assert store.closed is True
        with pytest.raises(StoreClosedError):
            store.raw_get("k")
        with pytest.raises(StoreClosedError):
            store.raw_put("k", b"v")
        with pytest.raises(StoreClosedError):
            store.raw_delete("k")
        with pytest.raises(StoreClosedError):
            store.raw_exists("k")

    def test_closed_error_is_store_io_error(self):
        assert issubclass(StoreClosedError, StoreIOError)

    def test_close_twice(self, sqlite_path):
        """Test closing twice is a no-op."""
        store = StoreAdapter(SQLiteEngine(sqlite_path))
        store.close()
        store.close()

    def test_context_manager_closes(self):
        with StoreAdapter(MemoryEngine()) as store:
            store.raw_put("k", b"v")
        assert store.closed is True

    def test_sqlite_data_survives_reopen(self, sqlite_path):
        """Test values written before close are readable after reopening."""
        with StoreAdapter(SQLiteEngine(sqlite_path)) as store:
            store.raw_put("persistent", b"yes")

        with StoreAdapter(SQLiteEngine(sqlite_path)) as store:
            assert store.raw_get("persistent") == b"yes"


class TestEngines:
    """Test engine construction."""

    def test_engines_satisfy_protocol(self, sqlite_path):
        assert isinstance(MemoryEngine(), StorageEngine)
        engine = SQLiteEngine(sqlite_path)
        assert isinstance(engine, StorageEngine)
        engine.close()

    def test_sqlite_creates_parent_directories(self, tmp_path):
        path = tmp_path / "a" / "b" / "store.db"
        engine = SQLiteEngine(str(path))
        engine.close()
        assert path.exists()

    def test_sqlite_in_memory(self):
        engine = SQLiteEngine(":memory:")
        engine.put(b"k", b"v")
        assert engine.get(b"k") == b"v"
        engine.close()

    def test_sqlite_rejects_unknown_journal_mode(self, sqlite_path):
        with pytest.raises(ValueError):
            SQLiteEngine(sqlite_path, journal_mode="bogus")

    def test_sqlite_rejects_unknown_synchronous(self, sqlite_path):
        with pytest.raises(ValueError):
            SQLiteEngine(sqlite_path, synchronous="sometimes")

    def test_open_engine(self, sqlite_path):
        assert isinstance(open_engine("memory"), MemoryEngine)
        engine = open_engine("SQLite", sqlite_path, journal_mode="delete")
        assert isinstance(engine, SQLiteEngine)
        engine.close()

    def test_open_engine_unknown(self):
        with pytest.raises(ValueError):
            open_engine("leveldb")
