"""Synthetic stand-in for a live PM5 when no radio stack is available."""

from __future__ import annotations

import logging

from ..protocol import Characteristic
from ._base import Packet, PacketSink, StopSignal, Transport

LOGGER = logging.getLogger(__name__)

SIMULATED_ADDRESS = "REAL-BLE-ADDRESS-01"
DEFAULT_SIMULATED_INTERVAL = 2.0
SIMULATED_PREFIX = bytes([0x10, 0x20, 0x30])


class SimulatedTransport(Transport):
    """Emits a counter payload on the general status characteristic every tick."""

    name = "simulated"

    def __init__(
        self,
        *,
        interval: float = DEFAULT_SIMULATED_INTERVAL,
        limit: int | None = None,
    ) -> None:
        """Create the simulated transport.

        Args:
            interval: Seconds between ticks.
            limit: Stop after this many packets (runs until stopped when None).
        """
        super().__init__()
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self._interval = interval
        self._limit = limit

    async def _discover(self) -> str:
        LOGGER.info("Simulating BLE device discovery")
        return SIMULATED_ADDRESS

    async def _produce(self, sink: PacketSink, stop: StopSignal) -> None:
        characteristic = Characteristic.GENERAL_STATUS.uuid
        counter = 0
        while self._limit is None or counter < self._limit:
            # One decision per tick: stop, or emit exactly one packet.
            if stop.is_set():
                return
            packet = Packet(characteristic, SIMULATED_PREFIX + bytes([counter & 0xFF]))
            if not await sink.put(packet, stop):
                return
            LOGGER.debug("Simulated packet sent: %s", packet.data.hex())
            counter += 1
            await stop.wait(self._interval)
