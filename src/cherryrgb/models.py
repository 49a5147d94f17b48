"""
Field types for the CHERRY G80-3000N RGB TKL protocol.

Closed enumerations with fixed wire codes, plus the RGB ``Color`` value.
Codes were captured from the vendor software over USB; the ``UNKNOWN_*``
commands and ``UnknownByte`` are reverse-engineered and unverified, they
are carried through verbatim without any attempt to name their purpose.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Sequence, Tuple, Union

from .errors import InvalidColorError, InvalidEnumAliasError, MalformedPacketError


class _WireEnum(IntEnum):
    """IntEnum whose decode path rejects unknown codes."""

    @classmethod
    def from_code(cls, code: int):
        """Decode a wire byte. Unknown codes raise, they are never defaulted."""
        try:
            return cls(code)
        except ValueError:
            shown = f"0x{code:02x}" if isinstance(code, int) else repr(code)
            raise MalformedPacketError(f"Invalid {cls.__name__} code: {shown}") from None


class _AliasedEnum(_WireEnum):
    """Wire enum with a canonical lowercase alias per member."""

    @property
    def alias(self) -> str:
        return self.name.lower()

    @classmethod
    def aliases(cls) -> Tuple[str, ...]:
        return tuple(member.alias for member in cls)

    @classmethod
    def parse(cls, text: str):
        """Look up a member by alias, case-insensitively ("Very-Slow" works)."""
        key = text.strip().lower().replace('-', '_')
        for member in cls:
            if member.alias == key:
                return member
        raise InvalidEnumAliasError(_KIND_NAMES.get(cls.__name__, cls.__name__),
                                    text, cls.aliases())


# =========================================================================
# Protocol enumerations
# =========================================================================

class Command(_WireEnum):
    """Packet command byte (offset 3)."""
    TRANSACTION_START = 0x01
    TRANSACTION_END = 0x02
    UNKNOWN_03 = 0x03       # reverse-engineered, purpose unknown
    UNKNOWN_05 = 0x05       # reverse-engineered, purpose unknown
    SET_ANIMATION = 0x06
    UNKNOWN_07 = 0x07       # reverse-engineered, purpose unknown
    SET_CUSTOM_LED = 0x0B
    UNKNOWN_1B = 0x1B       # reverse-engineered, purpose unknown


class UnknownByte(_WireEnum):
    """Packet byte at offset 2. Purpose unknown; supplied per send."""
    ZERO = 0
    ONE = 1
    TWO = 2
    THREE = 3


class LightingMode(_AliasedEnum):
    """Animation modes. Unofficial modes are not offered by the vendor tool."""
    WAVE = 0x00
    SPECTRUM = 0x01
    BREATHING = 0x02
    STATIC = 0x03
    RADAR = 0x04        # unofficial
    VORTEX = 0x05       # unofficial
    FIRE = 0x06         # unofficial
    STARS = 0x07        # unofficial
    CUSTOM = 0x08
    ROLLING = 0x0A
    RAIN = 0x0B         # unofficial, looks like Matrix
    CURVE = 0x0C
    WAVE_MID = 0x0E     # unofficial
    SCAN = 0x0F
    RADIATION = 0x12
    RIPPLES = 0x13
    SINGLE_KEY = 0x15


class Speed(_AliasedEnum):
    """Animation speed."""
    VERY_FAST = 0
    FAST = 1
    MEDIUM = 2
    SLOW = 3
    VERY_SLOW = 4


class Brightness(_AliasedEnum):
    """LED brightness."""
    OFF = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    FULL = 4


_KIND_NAMES = {
    'LightingMode': 'mode',
    'Speed': 'speed',
    'Brightness': 'brightness',
}

# (honors color, honors speed) per mode, from the vendor tool's notes.
# Unofficial modes are undocumented and listed as supporting neither.
MODE_FEATURES: Dict[LightingMode, Tuple[bool, bool]] = {
    LightingMode.WAVE: (True, True),
    LightingMode.SPECTRUM: (False, True),
    LightingMode.BREATHING: (True, True),
    LightingMode.STATIC: (False, False),
    LightingMode.RADAR: (False, False),
    LightingMode.VORTEX: (False, False),
    LightingMode.FIRE: (False, False),
    LightingMode.STARS: (False, False),
    LightingMode.CUSTOM: (False, False),
    LightingMode.ROLLING: (False, True),
    LightingMode.RAIN: (False, False),
    LightingMode.CURVE: (True, True),
    LightingMode.WAVE_MID: (False, False),
    LightingMode.SCAN: (True, False),
    LightingMode.RADIATION: (True, True),
    LightingMode.RIPPLES: (True, True),
    LightingMode.SINGLE_KEY: (True, True),
}

UNOFFICIAL_MODES = frozenset({
    LightingMode.RADAR,
    LightingMode.VORTEX,
    LightingMode.FIRE,
    LightingMode.STARS,
    LightingMode.RAIN,
    LightingMode.WAVE_MID,
})


# =========================================================================
# Color
# =========================================================================

_HEX_COLOR = re.compile(r'^#?([0-9a-fA-F]{6})$')

ColorLike = Union['Color', Sequence[int]]


@dataclass(frozen=True)
class Color:
    """RGB color, sent on the wire as R, G, B. Default is off."""
    red: int = 0
    green: int = 0
    blue: int = 0

    def __post_init__(self):
        for name in ('red', 'green', 'blue'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
                raise InvalidColorError(f"{name} must be 0-255, got {value!r}")

    def to_bytes(self) -> bytes:
        return bytes((self.red, self.green, self.blue))

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_hex(cls, text: str) -> 'Color':
        """Parse ``ff00aa`` or ``#ff00aa``."""
        match = _HEX_COLOR.match(text.strip())
        if match is None:
            raise InvalidColorError(f"Invalid hex color: {text!r}")
        r, g, b = bytes.fromhex(match.group(1))
        return cls(r, g, b)

    @classmethod
    def coerce(cls, value: ColorLike) -> 'Color':
        """Accept a Color or any (r, g, b) sequence."""
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        try:
            r, g, b = value
        except (TypeError, ValueError):
            raise InvalidColorError(f"Not an RGB triple: {value!r}") from None
        return cls(r, g, b)

    def __str__(self) -> str:
        return f"#{self.to_hex()}"
