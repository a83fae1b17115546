"""Title catalog: index of installable files under the titles directory."""
from __future__ import annotations

import logging
import os
from typing import Iterator, List, Optional, Set

from .errors import NameTooLongError
from .models import MAX_TITLES, TITLE_EXTENSIONS, ScanResult, TitleEntry

logger = logging.getLogger(__name__)


def has_title_extension(filename: str) -> bool:
    """Check if a file name ends in a recognised title extension (any case)."""
    return filename.lower().endswith(TITLE_EXTENSIONS)


class TitleCatalog:
    """Bounded, ordered list of titles found under a root directory.

    The catalog is rebuilt wholesale by every rescan. Order follows the
    directory enumeration order of the platform and is only stable within
    one rescan.

    Example:
        >>> catalog = TitleCatalog()
        >>> result = catalog.rescan("/srv/titles")
        >>> catalog.names()
        ['game.nsp', 'update.nsz']
        >>> catalog.resolve("game.nsp")
        '/srv/titles/game.nsp'
    """

    def __init__(self, max_titles: int = MAX_TITLES, log: Optional[logging.Logger] = None):
        """Initialize an empty catalog.

        Args:
            max_titles: Maximum number of entries kept per rescan
            log: Logger for scan diagnostics (default: module logger)
        """
        self._max_titles = max_titles
        self._log = log or logger
        self._entries: List[TitleEntry] = []

    @property
    def max_titles(self) -> int:
        return self._max_titles

    @property
    def entries(self) -> List[TitleEntry]:
        """Copy of the current entries in catalog order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TitleEntry]:
        return iter(list(self._entries))

    def clear(self) -> None:
        self._entries.clear()

    def names(self) -> List[str]:
        """Display names in catalog order."""
        return [entry.display_name for entry in self._entries]

    def rescan(self, root_path: str) -> ScanResult:
        """Clear the catalog and index ``root_path`` recursively.

        Matching files found once the catalog is full are counted as dropped;
        traversal still completes.

        Args:
            root_path: Titles directory to walk

        Returns:
            ScanResult with recorded/dropped/skipped counts
        """
        self.clear()
        counters = {"dropped": 0, "skipped": 0}
        self._scan_directory(os.fspath(root_path), counters, set())

        result = ScanResult(
            recorded=len(self._entries),
            dropped=counters["dropped"],
            skipped=counters["skipped"],
        )
        if result.overflowed:
            self._log.warning(
                f"Catalog full: kept {result.recorded} titles, "
                f"dropped {result.dropped} (limit {self._max_titles})"
            )
        return result

    def resolve(self, display_name: str) -> str:
        """Map a display name to its full path.

        Returns:
            The recorded full path, or ``display_name`` unchanged if no entry
            has that exact name.
        """
        for entry in self._entries:
            if entry.display_name == display_name:
                return entry.full_path
        return display_name

    def _scan_directory(self, path: str, counters: dict, visited: Set[str]) -> None:
        real_path = os.path.realpath(path)
        if real_path in visited:
            self._log.debug(f"Already scanned: {path}")
            return
        visited.add(real_path)

        try:
            with os.scandir(path) as it:
                dir_entries = list(it)
        except OSError as e:
            self._log.error(f"Failed to open directory: {path} ({e})")
            return

        for dir_entry in dir_entries:
            try:
                is_dir = dir_entry.is_dir()
                is_file = not is_dir and dir_entry.is_file()
            except OSError as e:
                self._log.debug(f"Cannot stat {dir_entry.path}: {e}")
                continue

            if is_dir:
                self._log.debug(f"Found directory: {dir_entry.path}")
                self._scan_directory(dir_entry.path, counters, visited)
            elif is_file and has_title_extension(dir_entry.name):
                self._add(dir_entry.name, dir_entry.path, counters)

    def _add(self, name: str, full_path: str, counters: dict) -> None:
        if len(self._entries) >= self._max_titles:
            counters["dropped"] += 1
            return

        try:
            entry = TitleEntry(display_name=name, full_path=full_path)
        except NameTooLongError as e:
            self._log.warning(f"Skipping title: {e}")
            counters["skipped"] += 1
            return

        self._log.debug(f"\t{name}")
        self._entries.append(entry)
