"""Session loop: the DBI protocol state machine.

    AWAITING_HEADER --valid header--> DISPATCHING --LIST/FILE_RANGE--> AWAITING_HEADER
          ^   |                              |
          +---+ short read / bad magic       +--EXIT/unknown id--> TERMINATED

Headers are expected to arrive whole in one transfer. Bytes that do not form
a header are discarded, never buffered for reassembly.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from .catalog import TitleCatalog
from .handlers import CommandHandlers
from .models import BUFFER_SEGMENT_DATA_SIZE, HEADER_SIZE, CommandHeader, CommandID
from .protocol import ProtocolParser
from .transport import Transport, TransportError, TransportTimeoutError

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a session."""
    AWAITING_HEADER = "awaiting_header"
    DISPATCHING = "dispatching"
    TERMINATED = "terminated"


class Session:
    """One connect-dispatch-disconnect lifecycle with the console.

    The session owns the title catalog and drives the handlers from a
    single thread. It does not open or close the transport.

    Example:
        >>> with UsbTransport() as link:
        ...     Session(link, "/srv/titles").run()
    """

    def __init__(self,
                 transport: Transport,
                 titles_dir: str,
                 catalog: Optional[TitleCatalog] = None,
                 chunk_size: int = BUFFER_SEGMENT_DATA_SIZE,
                 log: Optional[logging.Logger] = None):
        """Initialize session.

        Args:
            transport: Open link to the console
            titles_dir: Directory served to the console
            catalog: Catalog to fill, or None to create one
            chunk_size: Bytes per FILE_RANGE transfer
            log: Logger for the session and its handlers (default: module logger)
        """
        self._transport = transport
        self._log = log or logger
        self._catalog = catalog if catalog is not None else TitleCatalog(log=log)
        self._handlers = CommandHandlers(
            transport,
            self._catalog,
            titles_dir,
            chunk_size=chunk_size,
            log=log,
        )
        self._state = SessionState.AWAITING_HEADER

        self._dispatch: Dict[CommandID, Callable[[CommandHeader], None]] = {
            CommandID.LIST: self._handlers.handle_list,
            CommandID.FILE_RANGE: self._handlers.handle_file_range,
        }

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def catalog(self) -> TitleCatalog:
        return self._catalog

    @property
    def is_terminated(self) -> bool:
        return self._state is SessionState.TERMINATED

    def run(self) -> None:
        """Serve commands until EXIT or a protocol desync.

        Raises:
            TransportError: If the link fails while waiting for a header
        """
        self._log.info("Entering command loop")
        while not self.is_terminated:
            self.step()

    def step(self) -> SessionState:
        """Wait for one header and handle it.

        Returns:
            The state after the command (AWAITING_HEADER or TERMINATED)

        Raises:
            TransportError: If the link fails while waiting for a header
        """
        if self.is_terminated:
            return self._state

        header = self._read_header()
        if header is None:
            return self._state

        self._state = SessionState.DISPATCHING
        self._log.debug(
            f"Cmd Type: {header.cmd_type}, Command id: {header.cmd_id}, "
            f"Data size: {header.payload_length}"
        )

        if header.command_id is CommandID.EXIT:
            self._terminate()
            return self._state

        handler = self._dispatch.get(header.command_id)
        if handler is None:
            self._log.warning(f"Unknown command id: {header.cmd_id}")
            self._terminate()
            return self._state

        try:
            handler(header)
        except TransportError as e:
            self._log.error(f"Command {header.command_id.name} aborted: {e}")

        self._state = SessionState.AWAITING_HEADER
        return self._state

    # Internal methods

    def _read_header(self) -> Optional[CommandHeader]:
        try:
            data = self._transport.read(HEADER_SIZE)
        except TransportTimeoutError:
            return None

        header = ProtocolParser.parse_header(data)
        if header is None and data:
            self._log.debug(f"Discarding {len(data)} bytes without a command header")
        return header

    def _terminate(self) -> None:
        try:
            self._handlers.handle_exit()
        except TransportError as e:
            self._log.error(f"Failed to acknowledge exit: {e}")
        self._state = SessionState.TERMINATED
