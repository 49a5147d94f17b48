"""
Lighting operations for the CHERRY G80-3000N RGB TKL.

Every state change is a transaction::

    start (ZERO, TRANSACTION_START, no payload)
    ... operation packets ...
    end   (ZERO, TRANSACTION_END, no payload)

If any packet fails the exception propagates straight away and the end
marker is not sent.  The keyboard's state after a partial transaction is
undefined; nothing is rolled back or retried.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from .device_usb import UsbTransport
from .errors import NestedTransactionError
from .models import Brightness, Color, ColorLike, Command, LightingMode, Speed, UnknownByte
from .packet import prepare_packet
from .payloads import ANIMATION_TRAILER, CustomKeyLeds, LedAnimationPayload

log = logging.getLogger(__name__)

# (discriminant, command, payload) triples captured from the vendor
# software when it reads the keyboard's state. Replayed verbatim.
FETCH_STATE_SEQUENCE: List[Tuple[UnknownByte, Command, bytes]] = [
    (UnknownByte.ZERO, Command.UNKNOWN_03, bytes([0x22])),
    (UnknownByte.ZERO, Command.UNKNOWN_07, bytes([0x38, 0x00])),
    (UnknownByte.ZERO, Command.UNKNOWN_07, bytes([0x38, 0x38])),
    (UnknownByte.ZERO, Command.UNKNOWN_07, bytes([0x38, 0x70])),
    (UnknownByte.ZERO, Command.UNKNOWN_07, bytes([0x38, 0xA8])),
    (UnknownByte.ONE, Command.UNKNOWN_07, bytes([0x38, 0xE0])),
    (UnknownByte.ZERO, Command.UNKNOWN_07, bytes([0x38, 0x18, 0x01])),
    (UnknownByte.ZERO, Command.UNKNOWN_07, bytes([0x2A, 0x50, 0x01])),
    (UnknownByte.ZERO, Command.UNKNOWN_1B, bytes([0x38, 0x00])),
    (UnknownByte.ZERO, Command.UNKNOWN_1B, bytes([0x38, 0x38])),
    (UnknownByte.ZERO, Command.UNKNOWN_1B, bytes([0x0E, 0x70])),
]

# Sent after the blank custom colors on reset; captured, meaning unknown.
RESET_SEQUENCE: List[Tuple[UnknownByte, Command, bytes]] = [
    (UnknownByte.ZERO, Command.UNKNOWN_05, bytes([0x01])),
    (UnknownByte.ZERO, Command.UNKNOWN_05, bytes([0x19])),
]


def send_payload(transport: UsbTransport, unknown: UnknownByte, command: Command,
                 payload: bytes = b'') -> bytes:
    """Build one packet, send it, and return the 64-byte response.

    Raises:
        PayloadTooLargeError: Before any I/O, if *payload* exceeds 60 bytes.
        TransportError: If the USB round-trip fails.
    """
    packet = prepare_packet(unknown, command, payload)

    log.debug(">> CONTROL TRANSFER %s", packet.hex())
    response = transport.transfer(packet)
    log.debug("<< INTERRUPT TRANSFER %s", response.hex())
    return response


class CherryKeyboard:
    """Lighting control for one keyboard over an open transport.

    A transport handle serves one transaction at a time.  The internal
    lock serializes operations issued from several threads against this
    object; an operation that needs two transactions (custom colors)
    holds it across both.  Other processes are not coordinated.

    Operations cannot be nested: calling one from inside ``transaction()``
    raises ``NestedTransactionError`` instead of deadlocking.
    """

    def __init__(self, transport: UsbTransport):
        self._transport = transport
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    @property
    def transport(self) -> UsbTransport:
        return self._transport

    def _send(self, unknown: UnknownByte, command: Command, payload: bytes = b'') -> bytes:
        return send_payload(self._transport, unknown, command, payload)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise NestedTransactionError(
                "Transaction already open on this keyboard in this thread"
            )
        with self._lock:
            self._owner = me
            try:
                yield
            finally:
                self._owner = None

    @contextmanager
    def _framed(self) -> Iterator[None]:
        # Lock must already be held. No end marker if the body raises.
        self._send(UnknownByte.ZERO, Command.TRANSACTION_START)
        yield
        self._send(UnknownByte.ZERO, Command.TRANSACTION_END)

    @contextmanager
    def transaction(self) -> Iterator['CherryKeyboard']:
        """Bracket the enclosed sends with start/end markers."""
        with self._locked(), self._framed():
            yield self

    # -- Operations ------------------------------------------------------

    def _send_animation(self, animation: LedAnimationPayload) -> None:
        payload = animation.to_bytes()
        log.info("Setting animation: mode=%s brightness=%s speed=%s rainbow=%s",
                 animation.mode.alias, animation.brightness.alias,
                 animation.speed.alias, animation.rainbow)
        with self._framed():
            self._send(UnknownByte.ONE, Command.SET_ANIMATION, payload)
            self._send(UnknownByte.ZERO, Command.SET_ANIMATION, ANIMATION_TRAILER)

    def set_led_animation(self, mode: LightingMode, brightness: Brightness,
                          speed: Speed, color: Optional[ColorLike] = None,
                          rainbow: bool = False) -> None:
        """Switch to a lighting mode.

        Sends the 13-byte animation payload (discriminant ONE) followed by
        the fixed trailer packet (discriminant ZERO).
        """
        animation = LedAnimationPayload(
            mode=mode,
            brightness=brightness,
            speed=speed,
            color=color if color is not None else Color(),
            rainbow=rainbow,
        )
        with self._locked():
            self._send_animation(animation)

    def _apply_custom_leds(self, key_leds: CustomKeyLeds,
                           trailer: List[Tuple[UnknownByte, Command, bytes]]) -> None:
        chunks = [chunk.to_bytes() for chunk in key_leds.get_payloads()]
        # Custom colors only show in CUSTOM mode
        custom_mode = LedAnimationPayload(LightingMode.CUSTOM, Brightness.FULL, Speed.SLOW)

        with self._locked():
            self._send_animation(custom_mode)
            log.info("Sending custom key colors (%d chunks)", len(chunks))
            with self._framed():
                for chunk in chunks:
                    self._send(UnknownByte.ZERO, Command.SET_CUSTOM_LED, chunk)
                for unknown, command, payload in trailer:
                    self._send(unknown, command, payload)

    def set_custom_colors(self, key_leds: CustomKeyLeds) -> None:
        """Set an individual color for every key."""
        self._apply_custom_leds(key_leds, [])

    def reset_custom_colors(self) -> None:
        """Turn every custom key color off."""
        self._apply_custom_leds(CustomKeyLeds.all_keys_off(), RESET_SEQUENCE)

    def fetch_device_state(self) -> List[bytes]:
        """Replay the vendor software's state query.

        The responses are returned as received; their format is unknown.
        """
        with self.transaction():
            responses = [self._send(unknown, command, payload)
                         for unknown, command, payload in FETCH_STATE_SEQUENCE]
        return responses
