from typing import List, Optional


class DeviceNotFoundError(RuntimeError):
    """No console with the searched VID:PID is attached.

    Attributes:
        vid: Vendor id searched for, or None if any was accepted
        pid: Product id searched for, or None if any was accepted
    """

    def __init__(self, message: str, vid: Optional[int] = None, pid: Optional[int] = None):
        super().__init__(message)
        self.vid = vid
        self.pid = pid


class MultipleDevicesError(RuntimeError):
    """Several consoles match and none is picked automatically.

    Attributes:
        devices: The matching DeviceInfo objects
    """

    def __init__(self, message: str, devices: list):
        super().__init__(message)
        self.devices = devices

    @property
    def device_ids(self) -> List[str]:
        """Bus:address of every matching console, for log lines."""
        return [info.device_id for info in self.devices]
