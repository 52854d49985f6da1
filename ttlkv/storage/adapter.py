"""
Store Adapter Module

Thin pass-through between the cache layer and a storage engine.

Responsibilities:
- Normalise keys (str is UTF-8 encoded, bytes pass through)
- Turn every engine's "no such key" signal into NotFoundError
- Turn engine failures into StoreIOError
- Own the open/close lifecycle of the engine handle
"""

import logging
import sqlite3
from typing import Union

from ..errors import NotFoundError, StoreClosedError, StoreIOError
from .engine import StorageEngine

logger = logging.getLogger(__name__)

Key = Union[str, bytes]

# Failures an engine may surface; anything else is a programming error
ENGINE_ERRORS = (sqlite3.Error, OSError)


def encode_key(key: Key) -> bytes:
    """
    Convert a key to the raw bytes stored by the engine.

    Raises:
        TypeError: If key is neither str nor bytes
    """
    if isinstance(key, bytes):
        return key
    if isinstance(key, (bytearray, memoryview)):
        return bytes(key)
    if isinstance(key, str):
        return key.encode("utf-8")
    raise TypeError(f"key must be str or bytes, not {type(key).__name__}")


class StoreAdapter:
    """
    Raw get/put/delete/exists over a storage engine.

    The adapter adds no semantics beyond error normalisation: values are
    opaque bytes and there is no expiry at this level.

    Usage:
        with StoreAdapter(SQLiteEngine("./data/ttlkv.db")) as store:
            store.raw_put("k", b"v")
            store.raw_get("k")      # b"v"
            store.raw_get("other")  # raises NotFoundError

    Attributes:
        engine: The wrapped storage engine
    """

    def __init__(self, engine: StorageEngine):
        self.engine = engine
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError("store is closed")

    def raw_get(self, key: Key) -> bytes:
        """
        Get the raw bytes stored under key.

        Raises:
            NotFoundError: If nothing is stored under key
            StoreIOError: If the engine fails or the store is closed
        """
        self._check_open()
        raw_key = encode_key(key)
        try:
            value = self.engine.get(raw_key)
        except ENGINE_ERRORS as e:
            raise StoreIOError(f"get failed: {e}") from e
        if value is None:
            raise NotFoundError(f"key not found: {raw_key!r}")
        return value

    def raw_put(self, key: Key, value: bytes) -> None:
        """
        Store value under key, replacing anything already there.

        Raises:
            TypeError: If value is not bytes
            StoreIOError: If the engine fails or the store is closed
        """
        self._check_open()
        raw_key = encode_key(key)
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"value must be bytes, not {type(value).__name__}")
        try:
            self.engine.put(raw_key, bytes(value))
        except ENGINE_ERRORS as e:
            raise StoreIOError(f"put failed: {e}") from e

    def raw_delete(self, key: Key) -> None:
        """Delete key. Deleting an absent key is not an error."""
        self._check_open()
        raw_key = encode_key(key)
        try:
            self.engine.delete(raw_key)
        except ENGINE_ERRORS as e:
            raise StoreIOError(f"delete failed: {e}") from e

    def raw_exists(self, key: Key) -> bool:
        """Check whether anything is stored under key."""
        self._check_open()
        raw_key = encode_key(key)
        try:
            return self.engine.has(raw_key)
        except ENGINE_ERRORS as e:
            raise StoreIOError(f"exists failed: {e}") from e

    def close(self) -> None:
        """Close the engine. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        try:
            self.engine.close()
        except ENGINE_ERRORS as e:
            raise StoreIOError(f"close failed: {e}") from e
        logger.debug("Store adapter closed")

    def __enter__(self) -> "StoreAdapter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
