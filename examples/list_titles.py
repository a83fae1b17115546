#!/usr/bin/env python3
"""
Catalog and Device Check Script.

Scans a directory the same way the backend does before answering LIST,
then reports whether a console is attached. Nothing is claimed or sent.
"""

import sys
import logging
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dbibackend.catalog import TitleCatalog
from dbibackend.transport.device_finder import find_devices

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def main():
    if len(sys.argv) != 2:
        print(f"usage: {sys.argv[0]} <titles_dir>")
        return 1

    catalog = TitleCatalog()
    result = catalog.rescan(sys.argv[1])

    print(f"Found {result.recorded} titles")
    for entry in catalog:
        print(f"  {entry.display_name}  ->  {entry.full_path}")

    if result.overflowed:
        print(f"Catalog full: {result.dropped} titles not listed")
    if result.skipped:
        print(f"Skipped {result.skipped} titles with over-long names")

    print("\nLooking for a console...")
    devices = find_devices()
    if not devices:
        print("No console attached. Is DBI showing 'Install title from DBIbackend'?")
    for info in devices:
        print(f"  {info.device_id} ({info.vid:04x}:{info.pid:04x})")

    return 0


if __name__ == "__main__":
    sys.exit(main())
