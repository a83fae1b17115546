"""Immutable data models for the DBI USB protocol and the title catalog.

All models are frozen dataclasses. They are the contract between the
protocol codec, the command handlers and the session loop.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .errors import NameTooLongError

# Wire constants
MAGIC = b"DBI0"
HEADER_SIZE = 16
FILE_RANGE_PREFIX_SIZE = 16

# Transfer buffer unit for FileRange payloads (1 MiB)
BUFFER_SEGMENT_DATA_SIZE = 0x100000

# Bounds inherited from the installer's fixed-size buffers
MAX_NAME_LENGTH = 255
MAX_PATH_LENGTH = 4095
MAX_TITLES = 1024

TITLE_EXTENSIONS = (".nsp", ".xci", ".nsz")


class CommandType(IntEnum):
    """Direction/role of a command header."""
    REQUEST = 0
    RESPONSE = 1
    ACK = 2


class CommandID(IntEnum):
    """Command identifiers understood by the installer."""
    EXIT = 0
    LIST_DEPRECATED = 1
    FILE_RANGE = 2
    LIST = 3


def _encoded_length(value: str) -> int:
    return len(value.encode("utf-8", errors="surrogateescape"))


@dataclass(frozen=True)
class CommandHeader:
    """Fixed 16-byte command header.

    ``cmd_type`` and ``cmd_id`` hold the raw integers read from the wire so
    that unknown values survive decoding and can be reported.

    Attributes:
        cmd_type: Raw command type (see CommandType)
        cmd_id: Raw command id (see CommandID)
        payload_length: Declared payload length in bytes (u32)
        magic: 4-byte protocol tag
    """
    cmd_type: int
    cmd_id: int
    payload_length: int = 0
    magic: bytes = MAGIC

    @property
    def command_type(self) -> Optional[CommandType]:
        """CommandType for known values, None otherwise."""
        try:
            return CommandType(self.cmd_type)
        except ValueError:
            return None

    @property
    def command_id(self) -> Optional[CommandID]:
        """CommandID for known values, None otherwise."""
        try:
            return CommandID(self.cmd_id)
        except ValueError:
            return None


@dataclass(frozen=True)
class FileRangeRequest:
    """Payload of a FILE_RANGE command.

    Attributes:
        range_size: Number of bytes requested (u32)
        range_offset: Offset of the first requested byte (u64)
        name_length: Declared length of the name field in bytes (u32)
        name: Title display name (or path) the range is read from
    """
    range_size: int
    range_offset: int
    name_length: int
    name: str

    @property
    def range_end(self) -> int:
        """Offset one past the last requested byte."""
        return self.range_offset + self.range_size


@dataclass(frozen=True)
class TitleEntry:
    """One installable title found under the titles directory.

    Attributes:
        display_name: File name, used as the wire identifier
        full_path: Location of the file on disk

    Raises:
        NameTooLongError: If either field exceeds the installer's limits.
    """
    display_name: str
    full_path: str

    def __post_init__(self) -> None:
        if _encoded_length(self.display_name) > MAX_NAME_LENGTH:
            raise NameTooLongError(
                f"Title name exceeds {MAX_NAME_LENGTH} bytes: {self.display_name!r}",
                limit=MAX_NAME_LENGTH,
            )
        if _encoded_length(self.full_path) > MAX_PATH_LENGTH:
            raise NameTooLongError(
                f"Title path exceeds {MAX_PATH_LENGTH} bytes: {self.full_path!r}",
                limit=MAX_PATH_LENGTH,
            )


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one catalog rescan.

    Attributes:
        recorded: Entries stored in the catalog
        dropped: Matching files ignored because the catalog was full
        skipped: Matching files rejected because a name was too long
    """
    recorded: int
    dropped: int = 0
    skipped: int = 0

    @property
    def overflowed(self) -> bool:
        """True if the capacity bound cut the scan short."""
        return self.dropped > 0
