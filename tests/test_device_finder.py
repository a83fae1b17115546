"""Unit tests for the device_finder package (pyusb enumeration mocked)."""

import unittest
from unittest.mock import MagicMock, patch

import usb.core

from dbibackend.transport.device_finder import (
    DeviceInfo,
    DeviceNotFoundError,
    MultipleDevicesError,
    find_devices,
    find_single_device,
    is_device_available,
    is_matching_device,
)


def make_device(vid, pid, bus=1, address=2):
    dev = MagicMock()
    dev.idVendor = vid
    dev.idProduct = pid
    dev.bus = bus
    dev.address = address
    return dev


SWITCH = make_device(0x057E, 0x3000, bus=1, address=7)
KEYBOARD = make_device(0x046D, 0xC31C, bus=1, address=3)


class TestDeviceInfo(unittest.TestCase):

    def test_device_id_from_bus_address(self):
        info = DeviceInfo(vid=0x057E, pid=0x3000, bus=1, address=7)
        self.assertEqual(info.device_id, "001:007")

    def test_device_id_fallback(self):
        info = DeviceInfo(vid=0x057E, pid=0x3000, bus=None, address=None)
        self.assertEqual(info.device_id, "057e:3000")

    def test_device_ignored_in_equality(self):
        a = DeviceInfo(vid=1, pid=2, bus=3, address=4, device=object())
        b = DeviceInfo(vid=1, pid=2, bus=3, address=4, device=object())
        self.assertEqual(a, b)


class TestIsMatchingDevice(unittest.TestCase):

    def setUp(self):
        self.info = DeviceInfo(vid=0x057E, pid=0x3000, bus=1, address=7)

    def test_no_criteria_matches(self):
        self.assertTrue(is_matching_device(self.info))

    def test_vid_pid_match(self):
        self.assertTrue(is_matching_device(self.info, expected_vid=0x057E, expected_pid=0x3000))

    def test_vid_mismatch(self):
        self.assertFalse(is_matching_device(self.info, expected_vid=0x1234))

    def test_pid_mismatch(self):
        self.assertFalse(is_matching_device(self.info, expected_pid=0x2000))


@patch("dbibackend.transport.device_finder.core.usb.core.find")
class TestFindDevices(unittest.TestCase):

    def test_filters_by_default_ids(self, mock_find):
        mock_find.return_value = iter([KEYBOARD, SWITCH])
        devices = find_devices()
        self.assertEqual(len(devices), 1)
        self.assertIs(devices[0].device, SWITCH)
        mock_find.assert_called_once_with(find_all=True)

    def test_custom_matcher(self, mock_find):
        mock_find.return_value = iter([KEYBOARD, SWITCH])
        devices = find_devices(matcher=lambda info: info.vid == 0x046D)
        self.assertEqual([d.device for d in devices], [KEYBOARD])

    def test_single_device(self, mock_find):
        mock_find.return_value = iter([SWITCH])
        info = find_single_device()
        self.assertEqual((info.vid, info.pid, info.bus, info.address), (0x057E, 0x3000, 1, 7))

    def test_single_device_not_found(self, mock_find):
        mock_find.return_value = iter([KEYBOARD])
        with self.assertRaises(DeviceNotFoundError) as ctx:
            find_single_device()
        self.assertEqual((ctx.exception.vid, ctx.exception.pid), (0x057E, 0x3000))
        self.assertIn("057e:3000", str(ctx.exception))

    def test_not_found_carries_custom_ids(self, mock_find):
        mock_find.return_value = iter([SWITCH])
        with self.assertRaises(DeviceNotFoundError) as ctx:
            find_single_device(expected_vid=0x1234, expected_pid=0x5678)
        self.assertEqual((ctx.exception.vid, ctx.exception.pid), (0x1234, 0x5678))

    def test_single_device_multiple(self, mock_find):
        other = make_device(0x057E, 0x3000, bus=2, address=9)
        mock_find.return_value = iter([SWITCH, other])
        with self.assertRaises(MultipleDevicesError) as ctx:
            find_single_device()
        self.assertEqual(len(ctx.exception.devices), 2)
        self.assertEqual(ctx.exception.device_ids, ["001:007", "002:009"])

    def test_multiple_devices_logged_by_id(self, mock_find):
        other = make_device(0x057E, 0x3000, bus=2, address=9)
        mock_find.return_value = iter([SWITCH, other])
        with self.assertLogs("dbibackend.transport.device_finder.core", level="ERROR") as logs:
            with self.assertRaises(MultipleDevicesError):
                find_single_device()
        self.assertIn("Devices: 001:007, 002:009", logs.output[0])

    def test_is_device_available(self, mock_find):
        mock_find.return_value = iter([SWITCH])
        self.assertTrue(is_device_available())

    def test_is_device_available_none(self, mock_find):
        mock_find.return_value = iter([])
        self.assertFalse(is_device_available())

    def test_is_device_available_backend_error(self, mock_find):
        mock_find.side_effect = usb.core.USBError("access denied")
        self.assertFalse(is_device_available())


if __name__ == "__main__":
    unittest.main()
