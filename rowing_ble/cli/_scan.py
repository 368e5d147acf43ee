"""Discovery commands for the rowing-ble CLI."""

from __future__ import annotations

import argparse
import logging
import sys

from .._errors import DiscoveryError
from .._scanner import find_all_pm5_devices, find_pm5_device

LOGGER = logging.getLogger(__name__)


async def scan_devices(args: argparse.Namespace) -> None:
    """Scan for PM5 monitors - optionally look up a single address."""
    if args.address:
        print(f"Scanning for PM5 at {args.address}...")
        try:
            device = await find_pm5_device(
                args.address, name_prefix=args.name_prefix, timeout=args.timeout
            )
        except DiscoveryError as e:
            print(f"\n✗ {e}")
            sys.exit(1)
        print("\n✓ Found device:")
        print(f"  Address: {device.address}")
        print(f"  Name: {device.name or 'Unknown'}")
        return

    print(f"Scanning for PM5 monitors (timeout: {args.timeout}s)...")
    try:
        devices = await find_all_pm5_devices(name_prefix=args.name_prefix, timeout=args.timeout)
    except DiscoveryError as e:
        LOGGER.debug("Scan failed", exc_info=True)
        print(f"\n✗ {e}")
        sys.exit(1)

    if not devices:
        print("\n✗ No PM5 monitors found")
        sys.exit(1)

    print(f"\n✓ Found {len(devices)} PM5 monitor(s):\n")
    for i, device in enumerate(devices, 1):
        print(f"{i}. {device.name or 'Unknown Device'}")
        print(f"   Address: {device.address}")
        if device.rssi is not None:
            print(f"   RSSI: {device.rssi} dBm")
        print()
