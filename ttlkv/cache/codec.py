"""
TTL Envelope Codec

Every value written by the cache layer is wrapped in a CacheEntry envelope
and serialised with MessagePack. The wire layout is a 4-element array whose
first element is the schema version:

    [1, data: bin, created_at: int, expires_at: int]

Timestamps are integer Unix seconds. expires_at == 0 means "never expires".
This is the only format read or written; a new layout gets a new version tag.
"""

from typing import Optional

import msgspec

from ..errors import DecodeError

ENVELOPE_VERSION = 1


class CacheEntry(msgspec.Struct, array_like=True, tag=ENVELOPE_VERSION):
    """
    Envelope stored in place of a raw value.

    Attributes:
        data: Opaque payload bytes
        created_at: Unix seconds of the first write
        expires_at: Absolute expiry in Unix seconds, 0 = never
    """

    data: bytes
    created_at: int
    expires_at: int

    def is_expired(self, now: int) -> bool:
        """Check whether the entry is past its expiry at time now."""
        return self.expires_at > 0 and self.expires_at <= now

    def remaining(self, now: int) -> Optional[int]:
        """
        Seconds left before expiry.

        Returns:
            None if the entry never expires, otherwise expires_at - now
            (zero or negative once expired)
        """
        if self.expires_at == 0:
            return None
        return self.expires_at - now


_ENCODER = msgspec.msgpack.Encoder()
_DECODER = msgspec.msgpack.Decoder(CacheEntry)


def encode(entry: CacheEntry) -> bytes:
    """
    Serialise an envelope.

    Raises:
        ValueError: If a timestamp does not fit in 64 bits
    """
    try:
        return _ENCODER.encode(entry)
    except (msgspec.EncodeError, OverflowError) as e:
        raise ValueError(f"cannot encode cache entry: {e}") from e


def decode(raw: bytes) -> CacheEntry:
    """
    Parse stored bytes back into an envelope.

    Raises:
        DecodeError: If raw is not a valid version-1 envelope
    """
    try:
        return _DECODER.decode(raw)
    except msgspec.DecodeError as e:
        # ValidationError is a DecodeError subclass: wrong tag, types, arity
        raise DecodeError(f"invalid cache entry: {e}") from e
