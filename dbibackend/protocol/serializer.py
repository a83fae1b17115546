"""Protocol serializer for DBI USB commands.

Converts headers and payloads into wire bytes.
Pure functions with no side effects.
"""
from __future__ import annotations

from typing import Iterable

from ..models import CommandHeader, CommandID, CommandType, FileRangeRequest
from .parser import FILE_RANGE_STRUCT, HEADER_STRUCT


class ProtocolSerializer:
    """Serializer for the DBI command protocol."""

    @staticmethod
    def serialize_header(
        cmd_type: CommandType,
        cmd_id: CommandID,
        payload_length: int = 0,
    ) -> bytes:
        """Build a 16-byte command header.

        Args:
            cmd_type: Request, Response or Ack
            cmd_id: Command being answered or acknowledged
            payload_length: Bytes that follow the header (u32)

        Returns:
            Header bytes ready to write to the console

        Examples:
            >>> ProtocolSerializer.serialize_header(CommandType.RESPONSE, CommandID.EXIT)[:4]
            b'DBI0'
        """
        return ProtocolSerializer.serialize(
            CommandHeader(cmd_type=int(cmd_type), cmd_id=int(cmd_id), payload_length=payload_length)
        )

    @staticmethod
    def serialize(header: CommandHeader) -> bytes:
        """Encode an existing CommandHeader."""
        return HEADER_STRUCT.pack(
            header.magic,
            header.cmd_type,
            header.cmd_id,
            header.payload_length,
        )

    @staticmethod
    def serialize_title_list(names: Iterable[str]) -> bytes:
        """Join display names into the LIST payload.

        Protocol: every name is followed by a newline, UTF-8 encoded.
        """
        return "".join(f"{name}\n" for name in names).encode("utf-8", errors="surrogateescape")

    @staticmethod
    def serialize_file_range_request(request: FileRangeRequest) -> bytes:
        """Encode a FILE_RANGE payload as the console sends it.

        The name is written with ``request.name_length`` bytes, NUL padded
        when the encoded name is shorter.
        """
        name = request.name.encode("utf-8", errors="surrogateescape")
        name = name[:request.name_length].ljust(request.name_length, b"\x00")
        prefix = FILE_RANGE_STRUCT.pack(
            request.range_size,
            request.range_offset,
            request.name_length,
        )
        return prefix + name
