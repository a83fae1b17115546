"""Protocol parser for DBI USB commands.

Decodes command headers and command payloads received from the console.
Pure functions with no side effects.

All integers are read in the host's native byte order. The protocol never
canonicalises endianness, so host and console must share a byte order.
"""
from __future__ import annotations

import struct
from typing import Optional

from ..errors import MalformedPayloadError, NameTooLongError
from ..models import (
    CommandHeader,
    FileRangeRequest,
    FILE_RANGE_PREFIX_SIZE,
    HEADER_SIZE,
    MAGIC,
    MAX_PATH_LENGTH,
)

HEADER_STRUCT = struct.Struct("=4sIII")
FILE_RANGE_STRUCT = struct.Struct("=IQI")


class ProtocolParser:
    """Parser for the DBI command protocol.

    Handles two layouts:
    - 16-byte command header: magic, type, id, payload length
    - FILE_RANGE payload: range size, range offset, name length, name
    """

    @staticmethod
    def parse_header(data: bytes) -> Optional[CommandHeader]:
        """Decode a command header.

        Headers are expected to arrive whole in one transfer; anything that
        is too short or does not start with the magic tag is not a header.

        Args:
            data: Bytes read from the console

        Returns:
            CommandHeader, or None if ``data`` is not a valid header

        Examples:
            >>> header = ProtocolParser.parse_header(b"DBI0" + bytes(12))
            >>> header.command_id
            <CommandID.EXIT: 0>
        """
        if len(data) < HEADER_SIZE:
            return None

        magic, cmd_type, cmd_id, payload_length = HEADER_STRUCT.unpack_from(data)
        if magic != MAGIC:
            return None

        return CommandHeader(
            cmd_type=cmd_type,
            cmd_id=cmd_id,
            payload_length=payload_length,
            magic=magic,
        )

    @staticmethod
    def parse_file_range_request(payload: bytes) -> FileRangeRequest:
        """Decode a FILE_RANGE payload.

        ``name_length`` is authoritative: exactly that many bytes follow the
        fixed prefix. A NUL inside the name ends it early.

        Args:
            payload: Payload bytes announced by the FILE_RANGE header

        Returns:
            FileRangeRequest

        Raises:
            MalformedPayloadError: If the payload is shorter than its fields
            NameTooLongError: If the declared name exceeds MAX_PATH_LENGTH
        """
        if len(payload) < FILE_RANGE_PREFIX_SIZE:
            raise MalformedPayloadError(
                f"File range payload too short: {len(payload)} bytes"
            )

        range_size, range_offset, name_length = FILE_RANGE_STRUCT.unpack_from(payload)

        if name_length > MAX_PATH_LENGTH:
            raise NameTooLongError(
                f"Requested name length {name_length} exceeds {MAX_PATH_LENGTH} bytes",
                limit=MAX_PATH_LENGTH,
            )

        end = FILE_RANGE_PREFIX_SIZE + name_length
        if len(payload) < end:
            raise MalformedPayloadError(
                f"File range name truncated: expected {name_length} bytes, "
                f"got {len(payload) - FILE_RANGE_PREFIX_SIZE}"
            )

        raw_name = bytes(payload[FILE_RANGE_PREFIX_SIZE:end]).split(b"\x00", 1)[0]

        return FileRangeRequest(
            range_size=range_size,
            range_offset=range_offset,
            name_length=name_length,
            name=raw_name.decode("utf-8", errors="surrogateescape"),
        )
