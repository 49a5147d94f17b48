"""Exception types raised by the cherryrgb protocol layer.

Everything derives from ``CherryRgbError`` so callers (the CLI, mostly)
can catch the whole family in one place.  Encoding errors also derive
from the matching builtin (``ValueError`` / ``IndexError``).
"""

from __future__ import annotations

from typing import Iterable


class CherryRgbError(Exception):
    """Base class for all cherryrgb errors."""


class PayloadTooLargeError(CherryRgbError, ValueError):
    """Payload does not fit into a packet's 60-byte payload region."""

    def __init__(self, length: int, limit: int):
        super().__init__(f"Payload exceeds {limit} bytes (got {length})")
        self.length = length
        self.limit = limit


class ChecksumMismatchError(CherryRgbError):
    """Stored packet checksum does not match the recomputed one."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Invalid checksum, expected: 0x{expected:02x}, got: 0x{actual:02x}"
        )
        self.expected = expected
        self.actual = actual


class InvalidEnumAliasError(CherryRgbError, ValueError):
    """Unrecognized textual name for a mode, speed or brightness."""

    def __init__(self, kind: str, alias: str, choices: Iterable[str]):
        self.kind = kind
        self.alias = alias
        self.choices = tuple(choices)
        super().__init__(
            f"Invalid {kind} supplied: {alias!r} "
            f"(choose from: {', '.join(self.choices)})"
        )


class KeyIndexOutOfBoundsError(CherryRgbError, IndexError):
    """Custom LED key index outside 0..125."""


class TooManyKeysError(CherryRgbError, ValueError):
    """More colors supplied than the keyboard has keys."""


class InvalidColorError(CherryRgbError, ValueError):
    """Color component outside 0..255 or unparsable hex string."""


class MalformedPacketError(CherryRgbError, ValueError):
    """Raw bytes cannot be decoded into a packet or field."""


class TransportError(CherryRgbError):
    """USB write/read failure, timeout, or device not found."""


class NestedTransactionError(CherryRgbError, RuntimeError):
    """A transaction was opened while this thread already holds one."""
