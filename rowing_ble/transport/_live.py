from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable

from bleak import BleakClient
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.exc import BleakError

from .._errors import ConnectionLostError, DiscoveryError
from .._scanner import find_pm5_device
from ..protocol import PM5_NAME_PREFIX, Characteristic
from ._base import Packet, PacketSink, StopSignal, Transport

LOGGER = logging.getLogger(__name__)

DEFAULT_CHARACTERISTICS = (Characteristic.MULTIPLEXED_INFORMATION,)


class LiveTransport(Transport):
    """Streams notifications from a PM5 over BLE."""

    name = "live"

    def __init__(
        self,
        address: str | None = None,
        *,
        characteristics: Iterable[Characteristic] = DEFAULT_CHARACTERISTICS,
        name_prefix: str = PM5_NAME_PREFIX,
        scan_timeout: float = 10.0,
    ) -> None:
        """Create a live transport.

        Args:
            address: BLE address of the PM5 (scans by name when omitted).
            characteristics: Rowing characteristics to subscribe to.
            name_prefix: Advertised name prefix used when scanning.
            scan_timeout: Seconds to spend scanning and connecting.
        """
        super().__init__()
        self._target = address
        self._characteristics = tuple(characteristics)
        if not self._characteristics:
            raise ValueError("at least one characteristic is required")
        if Characteristic.UNKNOWN in self._characteristics:
            raise ValueError("cannot subscribe to an unknown characteristic")
        self._name_prefix = name_prefix
        self._scan_timeout = scan_timeout
        self._client: BleakClient | None = None
        self._disconnected = asyncio.Event()

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected

    def _on_disconnect(self, client: BleakClient) -> None:
        # Ignore clients this transport has already released.
        if client is not self._client:
            return
        LOGGER.warning("PM5 disconnected (%s)", self._address)
        self._disconnected.set()

    async def _discover(self) -> str:
        await self._release_client()
        device = await find_pm5_device(
            self._target, name_prefix=self._name_prefix, timeout=self._scan_timeout
        )
        self._disconnected.clear()
        client = BleakClient(
            device, disconnected_callback=self._on_disconnect, timeout=self._scan_timeout
        )
        try:
            await client.connect()
        except (BleakError, TimeoutError, OSError) as e:
            raise DiscoveryError(f"Could not connect to PM5 {device.address}: {e}") from e
        self._client = client
        LOGGER.info("Connected to PM5 (%s)", device.address)
        return device.address

    def _make_handler(
        self, uuid: str, notifications: asyncio.Queue[Packet]
    ) -> Callable[[BleakGATTCharacteristic, bytearray], None]:
        def handle(_sender: BleakGATTCharacteristic, data: bytearray) -> None:
            notifications.put_nowait(Packet(uuid, bytes(data)))

        return handle

    async def _produce(self, sink: PacketSink, stop: StopSignal) -> None:
        client = self._client
        if client is None or not client.is_connected:
            raise ConnectionLostError("PM5 is not connected")

        # Notifications cannot be back-pressured; they queue here until the sink has room.
        notifications: asyncio.Queue[Packet] = asyncio.Queue()
        subscribed: list[str] = []
        try:
            for characteristic in self._characteristics:
                uuid = characteristic.uuid
                await client.start_notify(uuid, self._make_handler(uuid, notifications))
                subscribed.append(uuid)
                LOGGER.info("Subscribed to %s (%s)", characteristic.name, uuid)

            while True:
                if stop.is_set():
                    return
                packet = await self._next_notification(notifications, stop)
                if packet is None:
                    return
                if not await sink.put(packet, stop):
                    return
                LOGGER.debug(
                    "Notification forwarded: %s %s", packet.characteristic, packet.data.hex()
                )
        except BleakError as e:
            raise ConnectionLostError(f"PM5 connection failed: {e}") from e
        finally:
            if client.is_connected:
                for uuid in subscribed:
                    with contextlib.suppress(BleakError):
                        await client.stop_notify(uuid)

    async def _next_notification(
        self, notifications: asyncio.Queue[Packet], stop: StopSignal
    ) -> Packet | None:
        """Wait for the next notification; None when stop fires first.

        Raises:
            ConnectionLostError: If the device disconnects with nothing pending.
        """
        if not notifications.empty():
            return notifications.get_nowait()
        if self._disconnected.is_set():
            raise ConnectionLostError(f"PM5 connection lost ({self._address})")

        get_task = asyncio.ensure_future(notifications.get())
        waiters = {
            get_task,
            asyncio.ensure_future(stop.wait()),
            asyncio.ensure_future(self._disconnected.wait()),
        }
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in waiters:
                task.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)

        if get_task.done() and not get_task.cancelled():
            return get_task.result()
        if stop.is_set():
            return None
        if not notifications.empty():
            return notifications.get_nowait()
        raise ConnectionLostError(f"PM5 connection lost ({self._address})")

    async def _release_client(self) -> None:
        client, self._client = self._client, None
        if client is not None and client.is_connected:
            with contextlib.suppress(BleakError):
                await client.disconnect()
            LOGGER.info("PM5 disconnected (%s)", self._address)

    async def close(self) -> None:
        """Disconnect from the PM5."""
        await self._release_client()
        await super().close()
