from .core import (
    SWITCH_PID,
    SWITCH_VID,
    DeviceInfo,
    find_devices,
    find_single_device,
    is_matching_device,
    is_device_available,
)
from .errors import DeviceNotFoundError, MultipleDevicesError

__all__ = [
    "SWITCH_VID",
    "SWITCH_PID",
    "DeviceInfo",
    "find_devices",
    "find_single_device",
    "is_matching_device",
    "is_device_available",
    "DeviceNotFoundError",
    "MultipleDevicesError",
]
