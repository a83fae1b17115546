"""Unit tests for the protocol layer.

Tests verify:
- Headers encode to 16 native-endian bytes and decode back
- Invalid headers (short, bad magic) are rejected without raising
- FILE_RANGE payloads honour name_length and the path limit
- LIST payloads are newline-terminated names
"""
import struct
import unittest

from dbibackend.errors import MalformedPayloadError, NameTooLongError
from dbibackend.models import (
    HEADER_SIZE,
    MAX_PATH_LENGTH,
    CommandHeader,
    CommandID,
    CommandType,
    FileRangeRequest,
)
from dbibackend.protocol import ProtocolParser, ProtocolSerializer


class TestHeaderSerializer(unittest.TestCase):

    def test_header_layout_is_native_endian(self):
        data = ProtocolSerializer.serialize_header(CommandType.RESPONSE, CommandID.LIST, 12)
        self.assertEqual(len(data), HEADER_SIZE)
        self.assertEqual(data, struct.pack("=4sIII", b"DBI0", 1, 3, 12))

    def test_exit_response(self):
        data = ProtocolSerializer.serialize_header(CommandType.RESPONSE, CommandID.EXIT)
        self.assertEqual(data, b"DBI0" + struct.pack("=III", 1, 0, 0))

    def test_serialize_existing_header(self):
        header = CommandHeader(cmd_type=2, cmd_id=2, payload_length=0xFFFFFFFF)
        self.assertEqual(
            ProtocolSerializer.serialize(header),
            struct.pack("=4sIII", b"DBI0", 2, 2, 0xFFFFFFFF),
        )

    def test_payload_length_out_of_range(self):
        with self.assertRaises(struct.error):
            ProtocolSerializer.serialize_header(CommandType.RESPONSE, CommandID.LIST, 2**32)


class TestHeaderParser(unittest.TestCase):

    def test_round_trip(self):
        for cmd_type in CommandType:
            for cmd_id in CommandID:
                for length in (0, 1, 0x100000, 0xFFFFFFFF):
                    data = ProtocolSerializer.serialize_header(cmd_type, cmd_id, length)
                    header = ProtocolParser.parse_header(data)
                    self.assertEqual(
                        (header.magic, header.command_type, header.command_id, header.payload_length),
                        (b"DBI0", cmd_type, cmd_id, length),
                    )

    def test_short_buffer_is_rejected(self):
        data = ProtocolSerializer.serialize_header(CommandType.REQUEST, CommandID.LIST)
        self.assertIsNone(ProtocolParser.parse_header(data[:15]))
        self.assertIsNone(ProtocolParser.parse_header(b""))

    def test_bad_magic_is_rejected(self):
        data = struct.pack("=4sIII", b"DBI1", 0, 3, 0)
        self.assertIsNone(ProtocolParser.parse_header(data))

    def test_trailing_bytes_are_ignored(self):
        data = ProtocolSerializer.serialize_header(CommandType.REQUEST, CommandID.FILE_RANGE, 30)
        header = ProtocolParser.parse_header(data + b"extra")
        self.assertEqual(header.payload_length, 30)

    def test_unknown_id_is_preserved(self):
        header = ProtocolParser.parse_header(struct.pack("=4sIII", b"DBI0", 0, 77, 0))
        self.assertEqual(header.cmd_id, 77)
        self.assertIsNone(header.command_id)


class TestFileRangeParser(unittest.TestCase):

    def _payload(self, range_size, range_offset, name, name_length=None, tail=b""):
        raw = name.encode("utf-8")
        if name_length is None:
            name_length = len(raw)
        return struct.pack("=IQI", range_size, range_offset, name_length) + raw + tail

    def test_parse_request(self):
        payload = self._payload(0x100000, 0x123456789, "game.nsp")
        request = ProtocolParser.parse_file_range_request(payload)
        self.assertEqual(request, FileRangeRequest(0x100000, 0x123456789, 8, "game.nsp"))

    def test_name_length_bounds_the_name(self):
        payload = self._payload(10, 0, "game.nsp", name_length=4, tail=b"garbage")
        request = ProtocolParser.parse_file_range_request(payload)
        self.assertEqual(request.name, "game")

    def test_name_stops_at_nul(self):
        payload = self._payload(10, 0, "game.nsp\x00\x00\x00")
        request = ProtocolParser.parse_file_range_request(payload)
        self.assertEqual(request.name, "game.nsp")
        self.assertEqual(request.name_length, 11)

    def test_utf8_name(self):
        request = ProtocolParser.parse_file_range_request(self._payload(1, 0, "ゲーム.nsp"))
        self.assertEqual(request.name, "ゲーム.nsp")

    def test_short_prefix(self):
        with self.assertRaises(MalformedPayloadError):
            ProtocolParser.parse_file_range_request(b"\x00" * 15)

    def test_truncated_name(self):
        payload = self._payload(10, 0, "game.nsp", name_length=20)
        with self.assertRaises(MalformedPayloadError):
            ProtocolParser.parse_file_range_request(payload)

    def test_name_length_over_limit(self):
        payload = struct.pack("=IQI", 10, 0, MAX_PATH_LENGTH + 1) + b"a" * (MAX_PATH_LENGTH + 1)
        with self.assertRaises(NameTooLongError):
            ProtocolParser.parse_file_range_request(payload)


class TestPayloadSerializer(unittest.TestCase):

    def test_title_list(self):
        self.assertEqual(
            ProtocolSerializer.serialize_title_list(["a.nsp", "b.xci"]),
            b"a.nsp\nb.xci\n",
        )

    def test_empty_title_list(self):
        self.assertEqual(ProtocolSerializer.serialize_title_list([]), b"")

    def test_file_range_request_is_parseable(self):
        request = FileRangeRequest(range_size=4096, range_offset=2**40, name_length=12, name="update.nsz")
        data = ProtocolSerializer.serialize_file_range_request(request)
        self.assertEqual(len(data), 16 + 12)
        self.assertTrue(data.endswith(b"update.nsz\x00\x00"))
        self.assertEqual(ProtocolParser.parse_file_range_request(data).name, "update.nsz")


if __name__ == "__main__":
    unittest.main()
