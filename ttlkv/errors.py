"""
Error Taxonomy

Absent or expired values are never errors: cache operations report them as
None, -2 or False. Everything below is a real failure and reaches the caller
unchanged.
"""


class TTLKVError(Exception):
    """Base class for all ttlkv errors."""


class NotFoundError(TTLKVError, KeyError):
    """
    Raised by the store adapter when a key has no stored value.

    Cache operations translate this into an absent result.
    """

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return Exception.__str__(self)


class DecodeError(TTLKVError):
    """Stored bytes are not a valid cache envelope."""


class ParseError(TTLKVError, ValueError):
    """A counter payload is not a base-10 signed 64-bit integer."""


class StoreIOError(TTLKVError):
    """The underlying storage engine failed."""


class StoreClosedError(StoreIOError):
    """An operation was attempted after the store was closed."""
