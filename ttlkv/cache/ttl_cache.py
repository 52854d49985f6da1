"""
TTL Cache Operations

This module implements the Redis-like command surface on top of the store
adapter: plain and expiring values, TTL queries, expiry updates and integer
counters.

Every operation works on exactly one key and never keeps an entry in memory
between calls: it reads the envelope, decodes it, changes it, re-encodes it
and writes it back.

Expiration is lazy. An expired entry stays on disk until a get() observes
it, at which point it is deleted. There is no background sweep.
"""

import logging
import re
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Union

from ..config.settings import settings
from ..errors import NotFoundError, ParseError, StoreIOError
from ..storage.adapter import ENGINE_ERRORS, Key, StoreAdapter, encode_key
from ..storage.engine import open_engine
from .codec import CacheEntry, decode, encode
from .locks import KeyedLocks, NullLocks

logger = logging.getLogger(__name__)

Value = Union[str, bytes]
TTL = Union[int, timedelta]

# ttl() sentinels
TTL_ABSENT = -2
TTL_NO_EXPIRY = -1

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

_COUNTER_RE = re.compile(rb"[+-]?[0-9]+")


def _unix_now() -> int:
    return int(time.time())


def wrap_int64(value: int) -> int:
    """Reduce value to the signed 64-bit range with two's-complement wraparound."""
    return ((value - INT64_MIN) % (1 << 64)) + INT64_MIN


def _check_int64(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, not {type(value).__name__}")
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"{name} out of 64-bit range: {value}")
    return value


def _to_seconds(ttl: TTL) -> int:
    """Convert a TTL argument to whole seconds (timedelta is truncated)."""
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    if isinstance(ttl, bool) or not isinstance(ttl, int):
        raise TypeError(f"ttl must be int seconds or timedelta, not {type(ttl).__name__}")
    return ttl


def _to_bytes(value: Value) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"value must be str or bytes, not {type(value).__name__}")


def parse_counter(data: bytes) -> int:
    """
    Parse a counter payload.

    Accepts an optional sign followed by ASCII digits, nothing else.

    Raises:
        ParseError: If data is not a base-10 signed 64-bit integer
    """
    if not _COUNTER_RE.fullmatch(data):
        raise ParseError(f"value is not an integer: {data[:32]!r}")
    value = int(data)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ParseError(f"value is out of 64-bit range: {data[:32]!r}")
    return value


class TTLCache:
    """
    Expiring values and counters over a durable key-value store.

    Keys are str (UTF-8 encoded) or bytes. Values are bytes; str values are
    UTF-8 encoded on the way in. All timestamps are integer Unix seconds,
    read from the clock once per operation.

    Absent or expired keys are normal results, never errors:
        get()    -> None
        ttl()    -> TTL_ABSENT (-2)
        expire() -> False
        exists() -> False

    Concurrency:
        Writes run under a per-key lock, so concurrent incr_by() calls on
        the same key never lose an update within one process. With
        locking=False the read-modify-write is unguarded and the last
        write wins. Plain reads never lock.

    Usage:
        with TTLCache.open("./data/ttlkv.db") as cache:
            cache.set_with_ttl("session", b"abc", 30)
            cache.get("session")   # b"abc"
            cache.ttl("session")   # 30
            cache.incr_by("hits", 5)

    Attributes:
        store: The StoreAdapter every operation goes through
    """

    def __init__(
        self,
        store: StoreAdapter,
        clock: Optional[Callable[[], int]] = None,
        locking: Optional[bool] = None,
    ):
        """
        Wrap an open store adapter.

        Args:
            store: Adapter over the storage engine; the cache takes ownership
            clock: Returns current Unix seconds (default: time.time)
            locking: Per-key locking for writes (default: settings.KEY_LOCKING)
        """
        self.store = store
        self._clock = clock or _unix_now
        if locking is None:
            locking = settings.KEY_LOCKING
        self._locks = KeyedLocks() if locking else NullLocks()

        self._stats_lock = threading.Lock()
        self._stats: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "expired": 0,
            "writes": 0,
        }

    @classmethod
    def open(
        cls,
        path: Optional[str] = None,
        engine: Optional[str] = None,
        **kwargs,
    ) -> "TTLCache":
        """
        Open a cache on a new storage engine.

        Args:
            path: Database path (default: settings.DB_PATH)
            engine: "sqlite" or "memory" (default: settings.ENGINE)
            **kwargs: Passed through to TTLCache (clock, locking)
        """
        path = path if path is not None else settings.DB_PATH
        engine = engine or settings.ENGINE
        options = {}
        if engine.lower() == "sqlite":
            options = {
                "timeout": settings.SQLITE_TIMEOUT,
                "journal_mode": settings.SQLITE_JOURNAL_MODE,
                "synchronous": settings.SQLITE_SYNCHRONOUS,
            }
        try:
            backend = open_engine(engine, path, **options)
        except ENGINE_ERRORS as e:
            raise StoreIOError(f"cannot open {engine} store at {path}: {e}") from e
        logger.info(f"TTLCache opened ({engine} engine)")
        return cls(StoreAdapter(backend), **kwargs)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return int(self._clock())

    def _count(self, name: str) -> None:
        with self._stats_lock:
            self._stats[name] += 1

    def _load(self, raw_key: bytes, empty_is_absent: bool = False) -> Optional[CacheEntry]:
        """
        Read and decode the envelope under raw_key.

        Returns:
            The entry, or None if nothing is stored (or the stored value is
            zero-length and empty_is_absent is set)

        Raises:
            DecodeError: If the stored bytes are not an envelope
        """
        try:
            raw = self.store.raw_get(raw_key)
        except NotFoundError:
            return None
        if not raw and empty_is_absent:
            return None
        return decode(raw)

    def _write(self, raw_key: bytes, entry: CacheEntry) -> None:
        self.store.raw_put(raw_key, encode(entry))
        self._count("writes")

    def _delete_if_expired(self, raw_key: bytes, now: int) -> None:
        # Re-read under the lock: a writer may have replaced the entry
        # since it was observed expired.
        with self._locks.hold(raw_key):
            entry = self._load(raw_key, empty_is_absent=True)
            if entry is not None and entry.is_expired(now):
                self.store.raw_delete(raw_key)
                self._count("expired")
                logger.debug(f"Lazily expired key {raw_key!r}")

    # ------------------------------------------------------------------
    # Plain and expiring values
    # ------------------------------------------------------------------

    def set(self, key: Key, value: Value) -> None:
        """
        Store value under key with no expiry.

        Replaces any previous entry, including its expiry and created_at.
        """
        raw_key = encode_key(key)
        data = _to_bytes(value)
        with self._locks.hold(raw_key):
            now = self._now()
            self._write(raw_key, CacheEntry(data=data, created_at=now, expires_at=0))

    def set_with_ttl(self, key: Key, value: Value, ttl: TTL) -> None:
        """
        Store value under key, expiring ttl seconds from now.

        Args:
            key: Key to write
            value: Payload
            ttl: Seconds (int) or timedelta. Zero or negative means the
                 entry never expires, exactly like set().
        """
        raw_key = encode_key(key)
        data = _to_bytes(value)
        seconds = _to_seconds(ttl)
        with self._locks.hold(raw_key):
            now = self._now()
            expires_at = now + seconds if seconds > 0 else 0
            self._write(raw_key, CacheEntry(data=data, created_at=now, expires_at=expires_at))

    def get(self, key: Key) -> Optional[bytes]:
        """
        Get the payload stored under key.

        An entry found past its expiry is deleted on the spot and reported
        as absent.

        Returns:
            The payload, or None if the key is absent or expired

        Raises:
            DecodeError: If the stored bytes are not an envelope
            StoreIOError: If the store fails
        """
        raw_key = encode_key(key)
        now = self._now()
        entry = self._load(raw_key, empty_is_absent=True)
        if entry is None:
            self._count("misses")
            return None

        if entry.is_expired(now):
            self._delete_if_expired(raw_key, now)
            self._count("misses")
            return None

        self._count("hits")
        return entry.data

    def get_str(self, key: Key, encoding: str = "utf-8") -> Optional[str]:
        """get() decoded as text."""
        data = self.get(key)
        if data is None:
            return None
        return data.decode(encoding)

    def ttl(self, key: Key) -> int:
        """
        Remaining time-to-live of key.

        Read-only: an expired entry is reported absent but not deleted.

        Returns:
            TTL_ABSENT (-2) if the key is absent or expired,
            TTL_NO_EXPIRY (-1) if it never expires,
            otherwise the seconds left (always > 0)
        """
        raw_key = encode_key(key)
        now = self._now()
        entry = self._load(raw_key)
        if entry is None:
            return TTL_ABSENT

        remaining = entry.remaining(now)
        if remaining is None:
            return TTL_NO_EXPIRY
        if remaining <= 0:
            return TTL_ABSENT
        return remaining

    def expire(self, key: Key, ttl: TTL) -> bool:
        """
        Set key to expire ttl seconds from now.

        Overwrites any previous expiry (it does not add to it). A ttl of
        zero clears the expiry; a negative ttl expires the key immediately.
        data and created_at are kept.

        Returns:
            True if the expiry was written, False if the key is absent
        """
        raw_key = encode_key(key)
        seconds = _to_seconds(ttl)
        with self._locks.hold(raw_key):
            now = self._now()
            entry = self._load(raw_key)
            if entry is None or entry.is_expired(now):
                return False
            if seconds == 0:
                entry.expires_at = 0
            else:
                # Clamp so a large negative ttl can't produce 0 ("never")
                entry.expires_at = max(now + seconds, 1)
            self._write(raw_key, entry)
            return True

    def expire_at(self, key: Key, when: Union[int, datetime]) -> bool:
        """
        Set key to expire at an absolute time.

        Args:
            key: Key to update
            when: Unix seconds, or a datetime (naive means local time).
                  0 clears the expiry.

        Returns:
            True if the expiry was written, False if the key is absent

        Raises:
            ValueError: If when is negative
        """
        if isinstance(when, datetime):
            timestamp = int(when.timestamp())
        else:
            timestamp = _check_int64("when", when)
        if timestamp < 0:
            raise ValueError(f"expiry timestamp must not be negative: {timestamp}")

        raw_key = encode_key(key)
        with self._locks.hold(raw_key):
            now = self._now()
            entry = self._load(raw_key)
            if entry is None or entry.is_expired(now):
                return False
            entry.expires_at = timestamp
            self._write(raw_key, entry)
            return True

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def incr_by(self, key: Key, delta: int) -> int:
        """
        Add delta to the integer stored under key.

        An absent (or expired) key starts from 0 with no expiry. The stored
        payload must be a base-10 integer; the result wraps around on 64-bit
        overflow. created_at and expires_at are kept.

        Returns:
            The new value

        Raises:
            ParseError: If the stored payload is not an integer
            DecodeError: If the stored bytes are not an envelope
        """
        _check_int64("delta", delta)
        raw_key = encode_key(key)
        with self._locks.hold(raw_key):
            now = self._now()
            entry = self._load(raw_key)
            if entry is None or entry.is_expired(now):
                entry = CacheEntry(data=b"0", created_at=now, expires_at=0)
                current = 0
            else:
                current = parse_counter(entry.data)

            value = wrap_int64(current + delta)
            entry.data = str(value).encode("ascii")
            self._write(raw_key, entry)

        logger.debug(f"Counter {raw_key!r}: {current} -> {value}")
        return value

    def decr_by(self, key: Key, delta: int) -> int:
        """Subtract delta from the integer stored under key. See incr_by()."""
        _check_int64("delta", delta)
        return self.incr_by(key, wrap_int64(-delta))

    def incr(self, key: Key) -> int:
        return self.incr_by(key, 1)

    def decr(self, key: Key) -> int:
        return self.incr_by(key, -1)

    # ------------------------------------------------------------------
    # Key management
    # ------------------------------------------------------------------

    def delete(self, key: Key) -> bool:
        """
        Remove key.

        Returns:
            True if something was stored under key, False otherwise
        """
        raw_key = encode_key(key)
        with self._locks.hold(raw_key):
            existed = self.store.raw_exists(raw_key)
            self.store.raw_delete(raw_key)
        return existed

    def exists(self, key: Key) -> bool:
        """Check whether key holds a live (unexpired) entry. Never deletes."""
        raw_key = encode_key(key)
        now = self._now()
        entry = self._load(raw_key, empty_is_absent=True)
        return entry is not None and not entry.is_expired(now)

    # ------------------------------------------------------------------
    # Envelope-free access
    # ------------------------------------------------------------------

    def raw_get(self, key: Key) -> Optional[bytes]:
        """Stored bytes under key without envelope decoding, or None."""
        try:
            return self.store.raw_get(key)
        except NotFoundError:
            return None

    def raw_put(self, key: Key, value: Value) -> None:
        """Store value as-is, without an envelope."""
        self.store.raw_put(key, _to_bytes(value))

    def raw_delete(self, key: Key) -> None:
        self.store.raw_delete(key)

    def raw_exists(self, key: Key) -> bool:
        return self.store.raw_exists(key)

    # ------------------------------------------------------------------
    # Lifecycle and statistics
    # ------------------------------------------------------------------

    def stats(self) -> Dict[str, int]:
        """
        In-process operation counters.

        Returns:
            Dictionary containing:
            - hits: get() calls that returned a value
            - misses: get() calls that found nothing live
            - expired: entries deleted lazily by get()
            - writes: envelopes written
        """
        with self._stats_lock:
            return dict(self._stats)

    def close(self) -> None:
        """Close the underlying store. No operation is valid afterwards."""
        self.store.close()
        logger.info("TTLCache closed")

    def __enter__(self) -> "TTLCache":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
