from __future__ import annotations

import logging
from dataclasses import dataclass

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from ._errors import DiscoveryError
from .protocol import PM5_NAME_PREFIX, Service, service_uuid

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PM5Device:
    """Metadata for a discovered PM5 monitor."""

    address: str
    name: str | None
    rssi: int | None = None


def _advertised_name(device: BLEDevice, adv_data: AdvertisementData) -> str:
    return device.name or adv_data.local_name or ""


def _is_pm5(device: BLEDevice, adv_data: AdvertisementData, name_prefix: str) -> bool:
    """Match by advertised name, falling back to the advertised rowing service."""
    if _advertised_name(device, adv_data).startswith(name_prefix):
        return True
    return service_uuid(Service.ROWING) in (uuid.lower() for uuid in adv_data.service_uuids)


async def find_pm5_device(
    address: str | None = None,
    *,
    name_prefix: str = PM5_NAME_PREFIX,
    timeout: float = 10.0,
) -> BLEDevice:
    """Scan for a PM5, either by address or by advertised name.

    Raises:
        DiscoveryError: If no device is found within ``timeout`` or the
            Bluetooth adapter is unavailable.
    """
    try:
        if address is not None:
            device = await BleakScanner.find_device_by_address(address, timeout=timeout)
        else:
            device = await BleakScanner.find_device_by_filter(
                lambda dev, adv: _is_pm5(dev, adv, name_prefix), timeout=timeout
            )
    except (BleakError, OSError) as e:
        raise DiscoveryError(f"Bluetooth scan failed: {e}") from e

    if device is None:
        target = address or f"name prefix '{name_prefix}'"
        raise DiscoveryError(f"No PM5 found for {target} after {timeout}s")
    LOGGER.info("Found PM5 %s (%s)", device.address, device.name)
    return device


async def find_all_pm5_devices(
    *, name_prefix: str = PM5_NAME_PREFIX, timeout: float = 10.0
) -> list[PM5Device]:
    """Scan for all PM5 monitors in range."""
    try:
        devices = await BleakScanner.discover(timeout=timeout, return_adv=True)
    except (BleakError, OSError) as e:
        raise DiscoveryError(f"Bluetooth scan failed: {e}") from e

    return [
        PM5Device(
            address=device.address,
            name=_advertised_name(device, adv_data) or None,
            rssi=adv_data.rssi,
        )
        for device, adv_data in devices.values()
        if _is_pm5(device, adv_data, name_prefix)
    ]
