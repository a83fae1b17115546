"""Command line entry point: install local titles on a Switch over USB."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from .server import CONNECT_POLL_INTERVAL, TitleServer
from .transport import UsbTransport
from .transport.device_finder import SWITCH_PID, SWITCH_VID

LOG_FORMAT = "[%(levelname)s] %(message)s"


def _usb_id(value: str) -> int:
    try:
        number = int(value, 0) if value.lower().startswith("0x") else int(value, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid USB id: {value!r}")
    if not 0 <= number <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"USB id out of range: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbibackend",
        description="Install local titles into Nintendo Switch via USB",
    )
    parser.add_argument("titles_dir", help="Directory scanned for .nsp, .xci and .nsz files")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--vid", type=_usb_id, default=SWITCH_VID,
                        help=f"USB vendor id in hex (default: {SWITCH_VID:04x})")
    parser.add_argument("--pid", type=_usb_id, default=SWITCH_PID,
                        help=f"USB product id in hex (default: {SWITCH_PID:04x})")
    parser.add_argument("--poll-interval", type=float, default=CONNECT_POLL_INTERVAL,
                        help="Seconds between connection attempts (default: %(default)s)")
    parser.add_argument("--reconnect", action="store_true",
                        help="Wait for the console again after a lost connection")
    return parser


def configure_logging(debug: bool) -> logging.Logger:
    """Set up console logging and return the backend's logger."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)
    log = logging.getLogger("dbibackend")
    log.setLevel(logging.DEBUG if debug else logging.INFO)
    return log


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log = configure_logging(args.debug)

    if not os.path.isdir(args.titles_dir):
        log.error(f"Specified path must be a directory: {args.titles_dir}")
        return 1

    server = TitleServer(
        args.titles_dir,
        transport=UsbTransport(vid=args.vid, pid=args.pid, log=log),
        poll_interval=args.poll_interval,
        log=log,
    )

    try:
        ok = server.run(reconnect=args.reconnect)
    except KeyboardInterrupt:
        log.info("Interrupted by user")
        server.transport.close()
        return 130

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
