"""Shared fixtures for tests that talk to a (mocked) keyboard."""
from unittest.mock import MagicMock

import pytest

from cherryrgb.device_usb import RESPONSE_SIZE, UsbTransport


@pytest.fixture
def mock_transport() -> MagicMock:
    """A MagicMock that satisfies the UsbTransport interface.

    Every transfer answers with a blank 64-byte response.
    """
    t = MagicMock(spec=UsbTransport)
    t.is_open = True
    t.transfer.return_value = bytes(RESPONSE_SIZE)
    return t
