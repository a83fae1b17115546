from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import usb.core

from .errors import DeviceNotFoundError, MultipleDevicesError

logger = logging.getLogger(__name__)

SWITCH_VID = 0x057E
SWITCH_PID = 0x3000


@dataclass(frozen=True)
class DeviceInfo:
    """
    Representation of one USB device as seen by pyusb.

    Attributes:
        vid: USB Vendor ID.
        pid: USB Product ID.
        bus: Bus number, or None if the backend does not report it.
        address: Device address on the bus, or None if unknown.
        device: The pyusb Device object (ignored for equality and repr).
    """
    vid: int
    pid: int
    bus: Optional[int]
    address: Optional[int]
    device: Any = field(default=None, compare=False, repr=False)

    @property
    def device_id(self) -> str:
        """
        Identifier for log lines: bus/address when known,
        otherwise the VID:PID pair.
        """
        if self.bus is not None and self.address is not None:
            return f"{self.bus:03d}:{self.address:03d}"
        return f"{self.vid:04x}:{self.pid:04x}"


def _device_to_info(dev) -> DeviceInfo:
    """Convert a pyusb Device to DeviceInfo."""
    return DeviceInfo(
        vid=dev.idVendor,
        pid=dev.idProduct,
        bus=getattr(dev, "bus", None),
        address=getattr(dev, "address", None),
        device=dev,
    )


def is_matching_device(
    info: DeviceInfo,
    *,
    expected_vid: Optional[int] = None,
    expected_pid: Optional[int] = None,
) -> bool:
    """
    Decide whether a given DeviceInfo describes our console.

    All checks are AND-combined; if a criterion is None, it is ignored.

    Returns:
        True if the device matches all specified criteria.
    """
    if expected_vid is not None and info.vid != expected_vid:
        return False

    if expected_pid is not None and info.pid != expected_pid:
        return False

    return True


def find_devices(
    *,
    matcher: Optional[Callable[[DeviceInfo], bool]] = None,
    expected_vid: Optional[int] = SWITCH_VID,
    expected_pid: Optional[int] = SWITCH_PID,
) -> List[DeviceInfo]:
    """
    Find all matching USB devices connected to this machine.

    You can either pass a custom `matcher(info) -> bool` or use the
    built-in criteria (expected_vid / expected_pid).

    Returns:
        List of DeviceInfo objects.
    """
    results: List[DeviceInfo] = []

    for dev in usb.core.find(find_all=True) or []:
        info = _device_to_info(dev)
        if matcher is not None:
            if matcher(info):
                results.append(info)
        elif is_matching_device(info, expected_vid=expected_vid, expected_pid=expected_pid):
            results.append(info)

    return results


def find_single_device(
    *,
    matcher: Optional[Callable[[DeviceInfo], bool]] = None,
    expected_vid: Optional[int] = SWITCH_VID,
    expected_pid: Optional[int] = SWITCH_PID,
) -> DeviceInfo:
    """
    Find exactly one console.

    Behaviour:
        - 0 matches  -> DeviceNotFoundError
        - 1 match    -> return it
        - >1 matches -> log error and raise MultipleDevicesError
    """
    matches = find_devices(
        matcher=matcher,
        expected_vid=expected_vid,
        expected_pid=expected_pid,
    )

    if not matches:
        raise DeviceNotFoundError(
            f"Device {expected_vid or 0:04x}:{expected_pid or 0:04x} not found",
            vid=expected_vid,
            pid=expected_pid,
        )

    if len(matches) > 1:
        error = MultipleDevicesError(
            f"Multiple matching devices found ({len(matches)} devices)",
            devices=matches,
        )
        logger.error(
            f"Multiple matching devices found; refusing to choose automatically. "
            f"Devices: {', '.join(error.device_ids)}"
        )
        raise error

    return matches[0]


def is_device_available(
    expected_vid: int = SWITCH_VID,
    expected_pid: int = SWITCH_PID,
) -> bool:
    """Check if at least one matching console is attached.

    Does not open or claim anything.
    """
    try:
        return bool(find_devices(expected_vid=expected_vid, expected_pid=expected_pid))
    except usb.core.USBError as e:
        logger.debug(f"Device enumeration failed: {e}")
        return False
