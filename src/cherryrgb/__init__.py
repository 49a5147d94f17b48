"""
cherryrgb - RGB lighting control for the CHERRY G80-3000N RGB TKL keyboard

Protocol layer for the keyboard's USB HID lighting interface: 64-byte
packets with a checksum, bracketed into start/end transactions.

Features:
- Animation modes with brightness, speed, color and rainbow
- Individual color per key (126 keys)
- pyusb (libusb) or hidapi transport

Usage:
    # As a library
    from cherryrgb import CherryKeyboard, LightingMode, Brightness, Speed
    from cherryrgb.device_usb import open_transport

    with open_transport() as transport:
        kb = CherryKeyboard(transport)
        kb.set_led_animation(LightingMode.WAVE, Brightness.FULL, Speed.SLOW,
                             (255, 0, 255))

    # Command line
    cherryrgb animation wave slow -c ff00ff
"""

from cherryrgb.__version__ import __version__

from cherryrgb.errors import (
    CherryRgbError,
    ChecksumMismatchError,
    InvalidColorError,
    InvalidEnumAliasError,
    KeyIndexOutOfBoundsError,
    MalformedPacketError,
    NestedTransactionError,
    PayloadTooLargeError,
    TooManyKeysError,
    TransportError,
)
from cherryrgb.models import Brightness, Color, Command, LightingMode, Speed, UnknownByte
from cherryrgb.packet import Packet, calc_checksum, prepare_packet
from cherryrgb.payloads import CustomKeyLeds, CustomLedChunk, LedAnimationPayload, chunk_offsets
from cherryrgb.device_usb import HidApiTransport, PyUsbTransport, UsbTransport
from cherryrgb.keyboard import CherryKeyboard, send_payload

__all__ = [
    # Version
    "__version__",
    # Field types
    "Command",
    "UnknownByte",
    "LightingMode",
    "Speed",
    "Brightness",
    "Color",
    # Packets and payloads
    "Packet",
    "calc_checksum",
    "prepare_packet",
    "LedAnimationPayload",
    "CustomKeyLeds",
    "CustomLedChunk",
    "chunk_offsets",
    # Transport
    "UsbTransport",
    "PyUsbTransport",
    "HidApiTransport",
    # Keyboard
    "CherryKeyboard",
    "send_payload",
    # Errors
    "CherryRgbError",
    "ChecksumMismatchError",
    "InvalidColorError",
    "InvalidEnumAliasError",
    "KeyIndexOutOfBoundsError",
    "MalformedPacketError",
    "NestedTransactionError",
    "PayloadTooLargeError",
    "TooManyKeysError",
    "TransportError",
]
