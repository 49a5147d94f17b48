#!/usr/bin/env python3
"""
USB transport for the CHERRY G80-3000N RGB TKL keyboard.

Every packet is one round-trip: a SET_REPORT control transfer carrying
the 64-byte packet, then a 64-byte interrupt read from EP 0x82.  The
lighting interface is interface 1 (interface 0 is the regular keyboard).

The ``UsbTransport`` ABC abstracts the raw USB I/O so that:
  • Tests can inject a mock transport (no real hardware needed).
  • ``PyUsbTransport`` provides real USB via pyusb (libusb backend).
  • ``HidApiTransport`` provides an alternative via HIDAPI (hidraw).

Linux dependencies (install one):
  • pyusb:  ``pip install pyusb``  (needs libusb1: ``apt install libusb-1.0-0``)
  • hidapi: ``pip install hidapi`` (needs libhidapi: ``apt install libhidapi-dev``)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .errors import TransportError
from .packet import PACKET_SIZE

log = logging.getLogger(__name__)

# Optional USB backends, graceful import
try:
    import usb.core
    import usb.util
    PYUSB_AVAILABLE = True
except ImportError:
    PYUSB_AVAILABLE = False

try:
    import hid as hidapi
    HIDAPI_AVAILABLE = True
except ImportError:
    HIDAPI_AVAILABLE = False


# =========================================================================
# Constants
# =========================================================================

CHERRY_USB_VID = 0x046A
G80_3000N_RGB_TKL_USB_PID = 0x00DD

INTERFACE_NUM = 1
INTERRUPT_EP = 0x82

# SET_REPORT on the lighting interface
REQUEST_TYPE_OUT = 0x21     # host-to-device | class | interface
REQUEST_SET_REPORT = 0x09
REPORT_VALUE = 0x0204       # report type 2 (output), report id 4
REPORT_INDEX = 0x0001

RESPONSE_SIZE = PACKET_SIZE
DEFAULT_TIMEOUT_MS = 1000

BACKENDS = ('pyusb', 'hidapi')


# =========================================================================
# Abstract USB transport
# =========================================================================

class UsbTransport(ABC):
    """Packet round-trip transport, mockable for testing."""

    @abstractmethod
    def open(self) -> None:
        """Open the device and claim the lighting interface."""

    @abstractmethod
    def close(self) -> None:
        """Release the interface and close."""

    @abstractmethod
    def transfer(self, packet: bytes, timeout: Optional[int] = None) -> bytes:
        """Send one 64-byte packet and return the 64-byte response.

        *timeout* is in milliseconds; None uses the transport default.

        Raises:
            TransportError: On write/read failure or timeout.
        """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the device is currently open."""

    def __enter__(self):
        if not self.is_open:
            self.open()
        return self

    def __exit__(self, *exc):
        self.close()


# =========================================================================
# Real transport: PyUSB  (libusb backend)
# =========================================================================

def _usb_find(**kwargs):
    """``usb.core.find`` with a missing libusb reported as TransportError."""
    try:
        return usb.core.find(**kwargs)
    except usb.core.NoBackendError as e:
        raise TransportError(
            f"No libusb backend available: {e} (apt install libusb-1.0-0)"
        ) from e


class PyUsbTransport(UsbTransport):
    """Real USB transport using pyusb (libusb backend).

    1. Find device by VID/PID
    2. Detach the kernel HID driver from interface 1 if bound
    3. Claim interface 1
    4. Control write (SET_REPORT) + interrupt read per packet

    Requires: ``pip install pyusb`` + ``apt install libusb-1.0-0``
    """

    def __init__(self, vid: int = CHERRY_USB_VID, pid: int = G80_3000N_RGB_TKL_USB_PID,
                 timeout: int = DEFAULT_TIMEOUT_MS):
        if not PYUSB_AVAILABLE:
            raise ImportError(
                "pyusb is not installed. Install with: pip install pyusb\n"
                "Also need libusb: apt install libusb-1.0-0 (Debian/Ubuntu) "
                "or dnf install libusb1 (Fedora)"
            )
        self._vid = vid
        self._pid = pid
        self._timeout = timeout
        self._device = None
        self._is_open = False

    def open(self) -> None:
        self._device = _usb_find(idVendor=self._vid, idProduct=self._pid)
        if self._device is None:
            raise TransportError(
                f"Keyboard not found: VID={self._vid:#06x} PID={self._pid:#06x}"
            )

        log.debug(
            "Connected to: Bus %03d Device %03d ID %04x:%04x",
            self._device.bus, self._device.address, self._vid, self._pid,
        )

        try:
            if self._device.is_kernel_driver_active(INTERFACE_NUM):
                self._device.detach_kernel_driver(INTERFACE_NUM)
                log.debug("Detached kernel driver from interface %d", INTERFACE_NUM)
            usb.util.claim_interface(self._device, INTERFACE_NUM)
        except usb.core.USBError as e:
            self._device = None
            raise TransportError(f"Failed to claim interface {INTERFACE_NUM}: {e}") from e

        self._is_open = True
        log.info("Opened keyboard %04x:%04x (interface %d)",
                 self._vid, self._pid, INTERFACE_NUM)

    def close(self) -> None:
        if self._device is not None:
            try:
                usb.util.release_interface(self._device, INTERFACE_NUM)
            except usb.core.USBError as e:
                log.debug("Release interface: %s", e)
            usb.util.dispose_resources(self._device)
            self._device = None
            log.debug("Keyboard closed")
        self._is_open = False

    def transfer(self, packet: bytes, timeout: Optional[int] = None) -> bytes:
        if not self._is_open or self._device is None:
            raise TransportError("Transport not open")
        timeout = self._timeout if timeout is None else timeout

        try:
            self._device.ctrl_transfer(
                REQUEST_TYPE_OUT, REQUEST_SET_REPORT, REPORT_VALUE, REPORT_INDEX,
                packet, timeout=timeout,
            )
        except usb.core.USBError as e:
            raise TransportError(f"Control write failure: {e}") from e

        try:
            data = self._device.read(INTERRUPT_EP, RESPONSE_SIZE, timeout=timeout)
        except usb.core.USBError as e:
            raise TransportError(f"Interrupt read failure: {e}") from e
        return bytes(data)

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def device(self) -> Any:
        """Raw pyusb device handle (for diagnostics)."""
        return self._device


# =========================================================================
# Real transport: HIDAPI
# =========================================================================
# The packet magic 0x04 is also the HID report id, so the packet can be
# written as an output report unchanged.

class HidApiTransport(UsbTransport):
    """USB transport using HIDAPI (hidraw on Linux).

    Does not need the kernel driver detached, so it works without root
    when a udev rule grants access to the hidraw node.

    Requires: ``pip install hidapi`` + ``apt install libhidapi-dev``
    """

    def __init__(self, vid: int = CHERRY_USB_VID, pid: int = G80_3000N_RGB_TKL_USB_PID,
                 timeout: int = DEFAULT_TIMEOUT_MS):
        if not HIDAPI_AVAILABLE:
            raise ImportError(
                "hidapi is not installed. Install with: pip install hidapi\n"
                "Also need libhidapi: apt install libhidapi-dev (Debian/Ubuntu) "
                "or dnf install hidapi-devel (Fedora)"
            )
        self._vid = vid
        self._pid = pid
        self._timeout = timeout
        self._device = None
        self._is_open = False

    def _find_path(self) -> bytes:
        for info in hidapi.enumerate(self._vid, self._pid):
            if info.get('interface_number') == INTERFACE_NUM:
                return info['path']
        raise TransportError(
            f"Keyboard not found: VID={self._vid:#06x} PID={self._pid:#06x} "
            f"(no HID interface {INTERFACE_NUM})"
        )

    def open(self) -> None:
        path = self._find_path()
        device = hidapi.device()
        try:
            device.open_path(path)
        except (OSError, IOError) as e:
            raise TransportError(f"Cannot open HID device {path!r}: {e}") from e
        device.set_nonblocking(0)
        self._device = device
        self._is_open = True
        log.info("Opened keyboard %04x:%04x via hidapi (%s)",
                 self._vid, self._pid, path)

    def close(self) -> None:
        if self._device is not None:
            self._device.close()
            self._device = None
            log.debug("Keyboard closed")
        self._is_open = False

    def transfer(self, packet: bytes, timeout: Optional[int] = None) -> bytes:
        if not self._is_open or self._device is None:
            raise TransportError("Transport not open")
        timeout = self._timeout if timeout is None else timeout

        try:
            written = self._device.write(packet)
        except (OSError, IOError) as e:
            raise TransportError(f"Control write failure: {e}") from e
        if written < 0:
            raise TransportError(f"Control write failure: {self._device.error()}")

        try:
            data = self._device.read(RESPONSE_SIZE, timeout)
        except (OSError, IOError) as e:
            raise TransportError(f"Interrupt read failure: {e}") from e
        if not data:
            raise TransportError(f"Interrupt read failure: timeout after {timeout} ms")
        return bytes(data)

    @property
    def is_open(self) -> bool:
        return self._is_open


# =========================================================================
# Device discovery helpers
# =========================================================================

def find_devices() -> List[dict]:
    """Scan for connected keyboards.

    Tries pyusb first, falls back to hidapi enumeration.

    Returns:
        List of dicts with keys: vid, pid, bus, address, backend

    Raises:
        TransportError: If pyusb is installed but libusb is missing.
    """
    devices = []

    if PYUSB_AVAILABLE:
        found = _usb_find(find_all=True, idVendor=CHERRY_USB_VID,
                          idProduct=G80_3000N_RGB_TKL_USB_PID)
        for dev in found or []:
            devices.append({
                'vid': CHERRY_USB_VID,
                'pid': G80_3000N_RGB_TKL_USB_PID,
                'bus': getattr(dev, 'bus', None),
                'address': getattr(dev, 'address', None),
                'backend': 'pyusb',
            })
    elif HIDAPI_AVAILABLE:
        for info in hidapi.enumerate(CHERRY_USB_VID, G80_3000N_RGB_TKL_USB_PID):
            if info.get('interface_number') != INTERFACE_NUM:
                continue
            devices.append({
                'vid': CHERRY_USB_VID,
                'pid': G80_3000N_RGB_TKL_USB_PID,
                'path': info.get('path'),
                'backend': 'hidapi',
            })

    return devices


def open_transport(backend: str = 'pyusb', timeout: int = DEFAULT_TIMEOUT_MS) -> UsbTransport:
    """Create and open a transport for the first connected keyboard."""
    if backend == 'pyusb':
        transport: UsbTransport = PyUsbTransport(timeout=timeout)
    elif backend == 'hidapi':
        transport = HidApiTransport(timeout=timeout)
    else:
        raise ValueError(f"Unknown backend: {backend!r} (choose from {', '.join(BACKENDS)})")
    transport.open()
    return transport
