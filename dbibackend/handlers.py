"""Command handlers for the DBI session.

One handler per command the backend answers:
- EXIT: acknowledge and let the session end
- LIST: rescan the titles directory and send the newline-joined names
- FILE_RANGE: send a byte range of one title in fixed-size chunks

Handlers talk to the console only through a Transport. Transport errors
propagate to the session, which logs them and drops the current command.
"""
from __future__ import annotations

import logging
from typing import Optional

from .catalog import TitleCatalog
from .errors import ProtocolError
from .models import (
    BUFFER_SEGMENT_DATA_SIZE,
    HEADER_SIZE,
    CommandHeader,
    CommandID,
    CommandType,
    FileRangeRequest,
)
from .protocol import ProtocolParser, ProtocolSerializer
from .transport import Transport

logger = logging.getLogger(__name__)


class CommandHandlers:
    """Handlers for the commands the console issues.

    Attributes are shared across calls: the catalog filled by LIST is the
    one FILE_RANGE resolves names against.
    """

    def __init__(self,
                 transport: Transport,
                 catalog: TitleCatalog,
                 titles_dir: str,
                 chunk_size: int = BUFFER_SEGMENT_DATA_SIZE,
                 log: Optional[logging.Logger] = None):
        """Initialize handlers.

        Args:
            transport: Open link to the console
            catalog: Title catalog owned by the session
            titles_dir: Directory rescanned on every LIST
            chunk_size: Bytes per FILE_RANGE transfer
            log: Logger for progress and errors (default: module logger)
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self._transport = transport
        self._catalog = catalog
        self._titles_dir = titles_dir
        self._chunk_size = chunk_size
        self._log = log or logger

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def handle_exit(self, header: Optional[CommandHeader] = None) -> None:
        """Acknowledge EXIT. The caller ends the session afterwards."""
        self._log.info("Exit")
        self._write_header(CommandType.RESPONSE, CommandID.EXIT, 0)

    def handle_list(self, header: Optional[CommandHeader] = None) -> None:
        """Send the current title list.

        Protocol:
            -> Response/LIST/<len>
            <- Ack (16 bytes, ignored)
            -> <len> bytes: "name\\n" per title
        """
        self._log.info("Get list")

        self._catalog.rescan(self._titles_dir)
        payload = ProtocolSerializer.serialize_title_list(self._catalog.names())

        self._write_header(CommandType.RESPONSE, CommandID.LIST, len(payload))
        self._read_ack()

        if payload:
            self._transport.write(payload)

    def handle_file_range(self, header: CommandHeader) -> None:
        """Send a byte range of one title.

        Protocol:
            -> Ack/FILE_RANGE/<payload_length>
            <- <payload_length> bytes: FileRangeRequest
            -> Response/FILE_RANGE/<range_size>
            <- Ack (16 bytes, ignored)
            -> <range_size> bytes in chunks of at most chunk_size
        """
        self._log.info("File range")

        self._write_header(CommandType.ACK, CommandID.FILE_RANGE, header.payload_length)

        payload = self._transport.read(header.payload_length)
        try:
            request = ProtocolParser.parse_file_range_request(payload)
        except ProtocolError as e:
            self._log.error(f"Invalid file range request: {e}")
            return

        path = self._catalog.resolve(request.name)
        self._log.info(
            f"Range Size: {request.range_size}, Range Offset: {request.range_offset}, "
            f"Name len: {request.name_length}, Name: {path}"
        )

        self._write_header(CommandType.RESPONSE, CommandID.FILE_RANGE, request.range_size)
        self._read_ack()

        self._send_range(path, request)

    # Internal methods

    def _write_header(self, cmd_type: CommandType, cmd_id: CommandID, payload_length: int) -> None:
        self._transport.write(
            ProtocolSerializer.serialize_header(cmd_type, cmd_id, payload_length)
        )

    def _read_ack(self) -> Optional[CommandHeader]:
        ack = ProtocolParser.parse_header(self._transport.read(HEADER_SIZE))
        if ack is None:
            self._log.debug("Ack: not a valid header, ignoring")
            return None

        self._log.debug(
            f"Cmd Type: {ack.cmd_type}, Command id: {ack.cmd_id}, Data size: {ack.payload_length}"
        )
        self._log.debug("Ack")
        return ack

    def _send_range(self, path: str, request: FileRangeRequest) -> int:
        """Stream ``request.range_size`` bytes of ``path`` from ``range_offset``.

        Returns:
            Number of bytes written to the console
        """
        try:
            f = open(path, "rb")
        except OSError as e:
            self._log.error(f"Failed to open file: {path} ({e})")
            return 0

        buffer = bytearray(self._chunk_size)
        sent = 0

        with f, memoryview(buffer) as view:
            try:
                f.seek(request.range_offset)
            except (OSError, ValueError, OverflowError) as e:
                self._log.error(f"Failed to seek: {path} to {request.range_offset} ({e})")
                return sent

            while sent < request.range_size:
                read_size = min(self._chunk_size, request.range_size - sent)

                try:
                    bytes_read = f.readinto(view[:read_size])
                except OSError as e:
                    self._log.error(f"Failed to read from file: {path} ({e})")
                    break

                if bytes_read != read_size:
                    self._log.error(
                        f"Failed to read from file: {path} "
                        f"(wanted {read_size} bytes at {request.range_offset + sent}, got {bytes_read or 0})"
                    )
                    break

                chunk = buffer if read_size == self._chunk_size else buffer[:read_size]
                self._transport.write(chunk)
                sent += read_size

        return sent
