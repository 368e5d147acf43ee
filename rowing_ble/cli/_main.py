from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from ..protocol import PM5_NAME_PREFIX
from ..transport import DEFAULT_SINK_SIZE
from ._scan import scan_devices
from ._stream import stream_telemetry

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the rowing-ble tool."""
    parser = argparse.ArgumentParser(
        prog="rowing-ble",
        description="Concept2 PM5 BLE telemetry Command-Line Interface",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Discovery - Find monitors
  rowing-ble scan                                      # List all PM5 monitors
  rowing-ble scan --address AA:BB:CC:DD:EE:FF          # Look up one monitor

  # Streaming - JSON lines on stdout
  rowing-ble stream                                    # Replay the packaged session
  rowing-ble stream --fixture session.json --interval 0
  rowing-ble stream --transport simulated
  rowing-ble stream --transport live                   # First PM5 found by name
  rowing-ble stream --transport live --address AA:BB:CC:DD:EE:FF \\
      --characteristic 0x0031 --characteristic 0x0035
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute", required=True)

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Scan for PM5 monitors")
    scan_parser.add_argument("--address", help="BLE address to look up (optional)")
    scan_parser.add_argument(
        "--timeout", type=float, default=10.0, help="Scan timeout in seconds (default: 10.0)"
    )
    scan_parser.add_argument(
        "--name-prefix",
        default=PM5_NAME_PREFIX,
        help=f"Advertised name prefix to match (default: '{PM5_NAME_PREFIX}')",
    )
    scan_parser.set_defaults(func=scan_devices)

    # Stream command
    stream_parser = subparsers.add_parser("stream", help="Stream telemetry as JSON lines")
    stream_parser.add_argument(
        "--transport",
        choices=["recorded", "live", "simulated"],
        default="recorded",
        help="Telemetry source (default: recorded)",
    )
    stream_parser.add_argument("--address", help="BLE address of the PM5 (live only)")
    stream_parser.add_argument(
        "--fixture", type=Path, help="JSON session to replay (recorded only)"
    )
    stream_parser.add_argument(
        "--interval", type=float, help="Seconds between packets (recorded/simulated)"
    )
    stream_parser.add_argument(
        "--characteristic",
        action="append",
        help="Characteristic to subscribe to, e.g. 0x0031 (live only, repeatable)",
    )
    stream_parser.add_argument(
        "--queue-size",
        type=int,
        default=DEFAULT_SINK_SIZE,
        help=f"Packets buffered before the transport waits (default: {DEFAULT_SINK_SIZE})",
    )
    stream_parser.add_argument(
        "--strict", action="store_true", help="Abort on payloads that fail to decode"
    )
    stream_parser.set_defaults(func=stream_telemetry)

    return parser.parse_args(argv)


def main() -> None:
    """Entry point for the rowing-ble CLI."""
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(args.func(args))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        LOGGER.error("Error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
