"""DBI backend - serve local titles to the DBI installer over USB."""

from .models import (
    CommandType,
    CommandID,
    CommandHeader,
    FileRangeRequest,
    TitleEntry,
    ScanResult,
)
from .catalog import TitleCatalog
from .session import Session, SessionState
from .server import TitleServer
from .transport import Transport, UsbTransport

__all__ = [
    "CommandType",
    "CommandID",
    "CommandHeader",
    "FileRangeRequest",
    "TitleEntry",
    "ScanResult",
    "TitleCatalog",
    "Session",
    "SessionState",
    "TitleServer",
    "Transport",
    "UsbTransport",
]
