"""Abstract base class for the transport layer.

The Transport interface is the link between the backend and the console.
Implementations move raw byte buffers; they do not interpret the protocol.

Key principles:
- Blocking reads and writes of whole buffers
- Explicit open/close lifecycle, one session per open
- Transport-agnostic so tests can swap in a scripted fake
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from ..errors import DbiBackendError

# Zero means "block indefinitely"
DEFAULT_TIMEOUT = 0


class TransportError(DbiBackendError):
    """Raised when a read or write on the link fails."""
    pass


class TransportTimeoutError(TransportError):
    """Raised when a read or write does not complete within its timeout."""
    pass


class Transport(ABC):
    """Abstract transport interface for the console link.

    Transports are responsible for:
    1. Acquiring and releasing the link
    2. Reading raw bytes from the console
    3. Writing raw bytes to the console
    """

    @abstractmethod
    def open(self) -> None:
        """Acquire the link.

        Raises:
            DeviceNotFoundError: If no console is attached
            TransportError: If the console cannot be claimed
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the link.

        Should be safe to call multiple times.
        """
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if the link is currently held."""
        pass

    @abstractmethod
    def read(self, size: int, timeout: int = DEFAULT_TIMEOUT) -> bytes:
        """Read up to ``size`` bytes in one transfer.

        Args:
            size: Maximum number of bytes to read
            timeout: Milliseconds to wait, 0 to block indefinitely

        Returns:
            The bytes received (may be shorter than ``size``)

        Raises:
            TransportTimeoutError: If nothing arrived in time
            TransportError: On any other link failure
        """
        pass

    @abstractmethod
    def write(self, data: bytes, timeout: int = DEFAULT_TIMEOUT) -> int:
        """Write ``data`` in one transfer.

        Args:
            data: Bytes to send
            timeout: Milliseconds to wait, 0 to block indefinitely

        Returns:
            Number of bytes written

        Raises:
            TransportError: On link failure
        """
        pass

    def __enter__(self) -> Transport:
        """Context manager support - open on enter."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager support - close on exit."""
        self.close()
