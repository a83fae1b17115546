"""Transport layer for the console USB link."""

from .base import Transport, TransportError, TransportTimeoutError
from .usb_bulk import UsbTransport

__all__ = ["Transport", "TransportError", "TransportTimeoutError", "UsbTransport"]
