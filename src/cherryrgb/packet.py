"""
Common 64-byte packet envelope and its checksum.

Wire layout (every packet, both directions)::

    offset 0      : 0x04                 magic (doubles as HID report id)
    offset 1      : checksum             (sum(payload) + command) & 0xFF
    offset 2      : unknown discriminant (0..3)
    offset 3      : command code
    offset 4..63  : payload, zero padded

Captured examples (vendor software)::

    04 01 00 01                       transaction start
    04 02 00 02                       transaction end
    04 25 00 03 22                    0x22 + 0x03 = 0x25
"""

from __future__ import annotations

from .errors import ChecksumMismatchError, MalformedPacketError, PayloadTooLargeError
from .models import Command, UnknownByte

# =========================================================================
# Constants
# =========================================================================

PACKET_MAGIC = 0x04
PACKET_SIZE = 64
PACKET_HEADER_SIZE = 4      # magic + checksum + unknown + command
PAYLOAD_SIZE = PACKET_SIZE - PACKET_HEADER_SIZE  # 60


def calc_checksum(command: Command, data: bytes) -> int:
    """Sum of all payload bytes plus the command code, low 8 bits."""
    return (sum(data) + int(command)) & 0xFF


# =========================================================================
# Packet
# =========================================================================

class Packet:
    """One packet exchanged with the keyboard.

    Built fresh per send: ``set_payload`` first, then ``update_checksum``,
    then ``to_bytes``.  The checksum is never recomputed implicitly.
    """

    def __init__(self, unknown: UnknownByte, command: Command):
        self.checksum = 0
        self.unknown = UnknownByte.from_code(unknown)
        self.command = Command.from_code(command)
        self._payload = bytearray(PAYLOAD_SIZE)

    @property
    def payload(self) -> bytes:
        """The full 60-byte payload region (including zero padding)."""
        return bytes(self._payload)

    def set_payload(self, data: bytes) -> None:
        """Copy *data* into the payload region, zero-filling the rest.

        Raises:
            PayloadTooLargeError: If *data* is longer than 60 bytes.
        """
        if len(data) > PAYLOAD_SIZE:
            raise PayloadTooLargeError(len(data), PAYLOAD_SIZE)
        self._payload = bytearray(PAYLOAD_SIZE)
        self._payload[:len(data)] = data

    def update_checksum(self) -> None:
        self.checksum = calc_checksum(self.command, self._payload)

    def verify_checksum(self) -> None:
        """Raise ChecksumMismatchError unless the stored checksum is correct."""
        calculated = calc_checksum(self.command, self._payload)
        if calculated != self.checksum:
            raise ChecksumMismatchError(calculated, self.checksum)

    def to_bytes(self) -> bytes:
        """Serialize to the 64-byte wire form."""
        header = bytes((PACKET_MAGIC, self.checksum, self.unknown, self.command))
        return header + bytes(self._payload)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Packet':
        """Parse a 64-byte wire packet.

        The stored checksum is kept as-is; call ``verify_checksum()`` to
        validate it.

        Raises:
            MalformedPacketError: Wrong length, bad magic, or an unknown
                discriminant / command code.
        """
        if len(data) != PACKET_SIZE:
            raise MalformedPacketError(
                f"Packet must be {PACKET_SIZE} bytes, got {len(data)}"
            )
        if data[0] != PACKET_MAGIC:
            raise MalformedPacketError(
                f"Invalid magic byte: 0x{data[0]:02x}, expected 0x{PACKET_MAGIC:02x}"
            )
        packet = cls(UnknownByte.from_code(data[2]), Command.from_code(data[3]))
        packet._payload = bytearray(data[PACKET_HEADER_SIZE:])
        packet.checksum = data[1]
        return packet

    def __repr__(self) -> str:
        used = bytes(self._payload).rstrip(b'\x00')
        return (
            f"Packet(unknown={self.unknown.name}, command={self.command.name}, "
            f"checksum=0x{self.checksum:02x}, payload={used.hex()})"
        )


def prepare_packet(unknown: UnknownByte, command: Command, payload: bytes = b'') -> bytes:
    """Build the wire form of a packet: payload, then checksum, then serialize."""
    packet = Packet(unknown, command)
    packet.set_payload(payload)
    packet.update_checksum()
    return packet.to_bytes()
