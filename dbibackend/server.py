"""Title server facade.

Manages the transport lifetime around one or more sessions:
1. Wait for the console to appear and claim it (TitleServer.connect)
2. Run a Session until EXIT or link loss (TitleServer.serve)
3. Optionally go back to waiting after a lost link (TitleServer.run)
"""
from __future__ import annotations

import logging
import os
import threading
from typing import Optional

from .models import BUFFER_SEGMENT_DATA_SIZE
from .session import Session
from .transport import Transport, TransportError, UsbTransport
from .transport.device_finder import DeviceNotFoundError, MultipleDevicesError

logger = logging.getLogger(__name__)

CONNECT_POLL_INTERVAL = 1.0  # seconds


class TitleServer:
    """Serves the titles under one directory to the console.

    Example:
        >>> server = TitleServer("/srv/titles")
        >>> server.run()
        True
    """

    def __init__(self,
                 titles_dir: str,
                 transport: Optional[Transport] = None,
                 poll_interval: float = CONNECT_POLL_INTERVAL,
                 chunk_size: int = BUFFER_SEGMENT_DATA_SIZE,
                 log: Optional[logging.Logger] = None):
        """Initialize server.

        Args:
            titles_dir: Directory served to the console
            transport: Link to use, or None for a UsbTransport with default ids
            poll_interval: Seconds between connection attempts
            chunk_size: Bytes per FILE_RANGE transfer
            log: Logger threaded through transport, session and handlers
        """
        self._titles_dir = os.fspath(titles_dir)
        self._log = log or logger
        self._transport = transport or UsbTransport(log=log)
        self._poll_interval = poll_interval
        self._chunk_size = chunk_size
        self._stop = threading.Event()

    @property
    def titles_dir(self) -> str:
        return self._titles_dir

    @property
    def transport(self) -> Transport:
        return self._transport

    def stop(self) -> None:
        """Stop waiting for the console. Safe to call from another thread."""
        self._stop.set()

    @property
    def is_stopped(self) -> bool:
        return self._stop.is_set()

    def connect(self) -> bool:
        """Open the transport, retrying until it succeeds or stop() is called.

        Returns:
            True if connected, False if stopped first
        """
        while not self._stop.is_set():
            try:
                self._transport.open()
                return True
            except DeviceNotFoundError:
                self._log.info("Waiting for switch")
            except MultipleDevicesError as e:
                self._log.error(f"{e} [{', '.join(e.device_ids)}]; unplug all but one console")
            except TransportError as e:
                self._log.error(f"Failed to connect: {e}")

            self._stop.wait(self._poll_interval)

        return False

    def serve(self) -> bool:
        """Run one session on the open transport and close it afterwards.

        Returns:
            True if the session ended normally (EXIT or unknown command),
            False if the link was lost
        """
        session = Session(
            self._transport,
            self._titles_dir,
            chunk_size=self._chunk_size,
            log=self._log,
        )
        try:
            session.run()
            return True
        except TransportError as e:
            self._log.error(f"Switch connection lost: {e}")
            return False
        finally:
            self._transport.close()

    def run(self, reconnect: bool = False) -> bool:
        """Connect and serve.

        Args:
            reconnect: Go back to waiting for the console after a lost link

        Returns:
            True if a session ended normally, False if the link was lost
            (without reconnect) or stop() was called
        """
        while self.connect():
            if self.serve():
                return True
            if not reconnect:
                return False
        return False
