"""
Payload encoders carried inside a packet's 60-byte payload region.

LED animation payload (13 bytes, command SET_ANIMATION)::

                  brightness  rainbow
                       |         |   COLOR
                   mode|speed    |  R  G  B
                    |  |  |      |  |  |  |
                    v  v  v      v  v  v  v
    "09 00 00 55 00 12 03 03 00 00 7E 00 F4"

Custom LED payload (command SET_CUSTOM_LED), one per chunk::

    data_len | data_offset | secondary_keys | 00 | color bytes[data_len]

The 126 keys serialize to 378 bytes of R,G,B.  That is split into
56-byte chunks (64-byte packet - 4 byte packet header - 4 byte chunk
header).  ``data_offset`` is a single byte, so once a chunk starts past
byte 255 the offset wraps and ``secondary_keys`` marks the second bank.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .errors import KeyIndexOutOfBoundsError, TooManyKeysError
from .models import Brightness, Color, ColorLike, LightingMode, Speed
from .packet import PAYLOAD_SIZE

# =========================================================================
# LED animation
# =========================================================================

# Leading bytes of every captured animation payload; meaning unknown.
ANIMATION_PREFIX = bytes([0x09, 0x00, 0x00, 0x55, 0x00])
ANIMATION_PAYLOAD_SIZE = 13

# Sent after every animation payload (discriminant ZERO). Captured
# verbatim from the vendor software, meaning unknown.
ANIMATION_TRAILER = bytes([0x01, 0x18, 0x00, 0x55, 0x01])


@dataclass(frozen=True)
class LedAnimationPayload:
    """Lighting mode configuration for one SET_ANIMATION packet."""
    mode: LightingMode
    brightness: Brightness
    speed: Speed
    color: Color = field(default_factory=Color)
    rainbow: bool = False

    def __post_init__(self):
        # Plain ints and (r, g, b) triples are accepted; unknown codes raise.
        object.__setattr__(self, 'mode', LightingMode.from_code(self.mode))
        object.__setattr__(self, 'brightness', Brightness.from_code(self.brightness))
        object.__setattr__(self, 'speed', Speed.from_code(self.speed))
        object.__setattr__(self, 'color', Color.coerce(self.color))
        object.__setattr__(self, 'rainbow', bool(self.rainbow))

    def to_bytes(self) -> bytes:
        return (
            ANIMATION_PREFIX
            + bytes((
                self.mode,
                self.brightness,
                self.speed,
                0x00,               # pad
                1 if self.rainbow else 0,
            ))
            + self.color.to_bytes()
        )


# =========================================================================
# Custom per-key LEDs
# =========================================================================

TOTAL_KEYS = 126
CHUNK_HEADER_SIZE = 4
CHUNK_SIZE = PAYLOAD_SIZE - CHUNK_HEADER_SIZE  # 56
BANK_SIZE = 0x100


def chunk_offsets(total_length: int, chunk_size: int = CHUNK_SIZE
                  ) -> List[Tuple[int, int, slice]]:
    """Split a buffer of *total_length* bytes into chunk descriptors.

    Returns:
        ``(data_offset, secondary_keys, slice)`` per chunk, in sending
        order.  ``data_offset`` is the start offset modulo 256 and
        ``secondary_keys`` is 1 when the true start is past byte 255.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    result = []
    for start in range(0, total_length, chunk_size):
        end = min(start + chunk_size, total_length)
        secondary = 1 if start > BANK_SIZE - 1 else 0
        result.append((start % BANK_SIZE, secondary, slice(start, end)))
    return result


@dataclass(frozen=True)
class CustomLedChunk:
    """One SET_CUSTOM_LED payload: a slice of the serialized key colors."""
    data_offset: int
    secondary_keys: int
    data: bytes
    padding: int = 0

    @property
    def data_len(self) -> int:
        return len(self.data)

    def to_bytes(self) -> bytes:
        return bytes((self.data_len, self.data_offset, self.secondary_keys,
                      self.padding)) + self.data


class CustomKeyLeds:
    """Color of every key, indexed by physical key position (126 keys).

    Keys that are never set stay off; unset keys do not keep whatever the
    keyboard showed before.
    """

    def __init__(self, colors: Optional[Iterable[ColorLike]] = None):
        key_leds = [Color.coerce(c) for c in (colors or [])]
        if len(key_leds) > TOTAL_KEYS:
            raise TooManyKeysError(
                f"Invalid number of key leds: {len(key_leds)} (max {TOTAL_KEYS})"
            )
        key_leds.extend(Color() for _ in range(TOTAL_KEYS - len(key_leds)))
        self._key_leds: List[Color] = key_leds

    @classmethod
    def all_keys_off(cls) -> 'CustomKeyLeds':
        return cls()

    @classmethod
    def from_colors(cls, colors: Iterable[ColorLike]) -> 'CustomKeyLeds':
        """Build from up to 126 colors; remaining keys are off."""
        return cls(colors)

    def set_led(self, key_index: int, color: ColorLike) -> None:
        if not 0 <= key_index < TOTAL_KEYS:
            raise KeyIndexOutOfBoundsError(
                f"Key index out of bounds: {key_index} (0-{TOTAL_KEYS - 1})"
            )
        self._key_leds[key_index] = Color.coerce(color)

    def get_led(self, key_index: int) -> Color:
        if not 0 <= key_index < TOTAL_KEYS:
            raise KeyIndexOutOfBoundsError(
                f"Key index out of bounds: {key_index} (0-{TOTAL_KEYS - 1})"
            )
        return self._key_leds[key_index]

    def __len__(self) -> int:
        return len(self._key_leds)

    def __iter__(self):
        return iter(self._key_leds)

    def to_bytes(self) -> bytes:
        """All key colors, R,G,B per key, in index order (378 bytes)."""
        return b''.join(c.to_bytes() for c in self._key_leds)

    def get_payloads(self) -> List[CustomLedChunk]:
        data = self.to_bytes()
        return [
            CustomLedChunk(data_offset=offset, secondary_keys=secondary,
                           data=data[part])
            for offset, secondary, part in chunk_offsets(len(data))
        ]
