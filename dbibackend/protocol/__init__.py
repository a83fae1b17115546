"""Protocol layer for the DBI USB command protocol."""

from .parser import ProtocolParser, HEADER_STRUCT, FILE_RANGE_STRUCT
from .serializer import ProtocolSerializer

__all__ = [
    "ProtocolParser",
    "ProtocolSerializer",
    "HEADER_STRUCT",
    "FILE_RANGE_STRUCT",
]
