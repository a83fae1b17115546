"""USB bulk transport to the console.

The console exposes one vendor interface with a bulk IN and a bulk OUT
endpoint (VID=0x057E, PID=0x3000 while DBI is in USB install mode).

This module handles:
- Device lookup by VID/PID
- Reset, kernel driver detach and interface claim
- Endpoint discovery on interface (0, 0)
- Blocking bulk reads and writes

Note: This is a RAW BYTE layer. It does not interpret commands.
"""
from __future__ import annotations

import logging
from typing import Optional

import usb.core
import usb.util

from .base import DEFAULT_TIMEOUT, Transport, TransportError, TransportTimeoutError
from .device_finder import SWITCH_PID, SWITCH_VID, find_single_device

logger = logging.getLogger(__name__)

USB_INTERFACE = 0


def _is_in_endpoint(ep) -> bool:
    return usb.util.endpoint_direction(ep.bEndpointAddress) == usb.util.ENDPOINT_IN


def _is_out_endpoint(ep) -> bool:
    return usb.util.endpoint_direction(ep.bEndpointAddress) == usb.util.ENDPOINT_OUT


class UsbTransport(Transport):
    """Bulk-endpoint link to the console using pyusb.

    Example:
        >>> with UsbTransport() as link:
        ...     header = link.read(16)
        ...     link.write(b"DBI0" + bytes(12))
    """

    def __init__(self,
                 vid: int = SWITCH_VID,
                 pid: int = SWITCH_PID,
                 interface: int = USB_INTERFACE,
                 log: Optional[logging.Logger] = None):
        """Initialize USB transport.

        Args:
            vid: USB vendor id of the console
            pid: USB product id of the console
            interface: Interface number to claim
            log: Logger for link diagnostics (default: module logger)
        """
        self._vid = vid
        self._pid = pid
        self._interface = interface
        self._log = log or logger

        self._device = None
        self._ep_in = None
        self._ep_out = None
        self._claimed = False

    @property
    def vid(self) -> int:
        return self._vid

    @property
    def pid(self) -> int:
        return self._pid

    def open(self) -> None:
        """Find, reset and claim the console, then discover its endpoints.

        Raises:
            DeviceNotFoundError: If no console is attached
            MultipleDevicesError: If several consoles are attached
            TransportError: If the console cannot be claimed or lacks
                a bulk IN/OUT endpoint pair. Nothing is left claimed.
        """
        if self.is_open():
            self._log.warning("Already open")
            return

        info = find_single_device(expected_vid=self._vid, expected_pid=self._pid)
        self._device = info.device

        try:
            self._device.reset()
            self._detach_kernel_driver()
            self._device.set_configuration()
            usb.util.claim_interface(self._device, self._interface)
            self._claimed = True
            self._discover_endpoints()
        except usb.core.USBError as e:
            self._release()
            raise TransportError(f"Failed to claim device {info.device_id}: {e}") from e
        except TransportError:
            self._release()
            raise

        self._log.info(f"Connected to device {info.device_id}")

    def close(self) -> None:
        """Release the interface and free pyusb resources."""
        if self._device is None:
            return
        self._release()
        self._log.info("Disconnected from device")

    def is_open(self) -> bool:
        return self._device is not None and self._ep_in is not None and self._ep_out is not None

    def read(self, size: int, timeout: int = DEFAULT_TIMEOUT) -> bytes:
        if not self.is_open():
            raise TransportError("Cannot read, not connected")

        try:
            return bytes(self._ep_in.read(size, timeout=timeout))
        except usb.core.USBTimeoutError as e:
            raise TransportTimeoutError(f"USB read timed out: {e}") from e
        except usb.core.USBError as e:
            self._log.error(f"USB read error: {e}")
            raise TransportError(f"USB read error: {e}") from e

    def write(self, data: bytes, timeout: int = DEFAULT_TIMEOUT) -> int:
        if not self.is_open():
            raise TransportError("Cannot write, not connected")

        try:
            return self._ep_out.write(data, timeout=timeout)
        except usb.core.USBTimeoutError as e:
            raise TransportTimeoutError(f"USB write timed out: {e}") from e
        except usb.core.USBError as e:
            self._log.error(f"USB write error: {e}")
            raise TransportError(f"USB write error: {e}") from e

    # Internal methods

    def _detach_kernel_driver(self) -> None:
        try:
            if self._device.is_kernel_driver_active(self._interface):
                self._device.detach_kernel_driver(self._interface)
                self._log.debug(f"Detached kernel driver from interface {self._interface}")
        except NotImplementedError:
            # Backends without kernel driver support (Windows, macOS)
            pass

    def _discover_endpoints(self) -> None:
        cfg = self._device.get_active_configuration()
        intf = cfg[(self._interface, 0)]

        self._ep_in = usb.util.find_descriptor(intf, custom_match=_is_in_endpoint)
        self._ep_out = usb.util.find_descriptor(intf, custom_match=_is_out_endpoint)

        if self._ep_in is None or self._ep_out is None:
            raise TransportError("Failed to find endpoints")

        self._log.debug(
            f"Endpoints: IN=0x{self._ep_in.bEndpointAddress:02x} "
            f"OUT=0x{self._ep_out.bEndpointAddress:02x}"
        )

    def _release(self) -> None:
        device = self._device
        self._device = None
        self._ep_in = None
        self._ep_out = None

        if device is None:
            return

        if self._claimed:
            try:
                usb.util.release_interface(device, self._interface)
            except usb.core.USBError as e:
                self._log.debug(f"Error releasing interface: {e}")
            self._claimed = False

        usb.util.dispose_resources(device)
