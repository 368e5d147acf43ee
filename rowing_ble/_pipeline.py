from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ._config import PipelineConfig
from ._errors import DecodeError
from .protocol import CsafeFrame, RowingRecord, decode_characteristic, resolve_characteristic
from .transport import Packet, PacketSink, StopSignal, Transport

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TelemetryEvent:
    """A packet as observed by the consumer, with its decoded record if any."""

    timestamp: float
    characteristic: str
    data: bytes
    record: RowingRecord | CsafeFrame | None = None
    error: str | None = None

    def to_log_entry(self) -> dict[str, Any]:
        """Return the ``{timestamp, characteristic, data}`` log shape (hex payload)."""
        return {
            "timestamp": self.timestamp,
            "characteristic": self.characteristic,
            "data": self.data.hex(),
        }


class StreamingPipeline:
    """Runs one transport and delivers its packets to a consumer, in order.

    Each run owns one bounded packet sink and one stop signal. Every packet the
    transport writes before it observes the stop signal is delivered; the run
    is complete once the transport has closed the sink and the consumer has
    drained it.

    Example:
        >>> pipeline = StreamingPipeline(RecordedTransport.from_file())
        >>> async for event in pipeline.events():
        ...     print(event.to_log_entry())
    """

    def __init__(
        self,
        transport: Transport,
        config: PipelineConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._transport = transport
        self._config = config or PipelineConfig()
        self._clock = clock
        self._stop = StopSignal()
        self._running = False
        self.address: str | None = None

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Request the transport to stop. Safe to call any number of times."""
        if self._stop.set():
            LOGGER.info("Stop requested for %s pipeline", self._transport.name)

    async def events(self) -> AsyncIterator[TelemetryEvent]:
        """Discover the source and yield one event per packet until the sink completes.

        Raises:
            DiscoveryError: If the transport cannot locate its source.
            DecodeError: If the transport aborts on a malformed record, or a
                payload fails to decode in strict mode.
            ConnectionLostError: If a live device disconnects mid-stream.
        """
        if self._running:
            raise RuntimeError("pipeline is already running")
        self._running = True
        try:
            self.address = await self._transport.discover()
            sink = PacketSink(self._config.queue_size)
            producer = asyncio.create_task(
                self._transport.stream(sink, self._stop),
                name=f"{self._transport.name}-stream",
            )
            try:
                async for packet in sink:
                    yield self._observe(packet)
            finally:
                if not sink.drained:
                    # Consumer left early: let the transport wind down before returning.
                    self.stop()
                    await asyncio.gather(producer, return_exceptions=True)
            # Surface any transport failure once everything it produced is delivered.
            await producer
            LOGGER.info(
                "%s pipeline finished after %d packets", self._transport.name, sink.accepted
            )
        finally:
            self._running = False
            try:
                await self._transport.close()
            finally:
                # Each run gets a fresh signal, once the transport is fully released.
                self._stop = StopSignal()

    async def run(
        self,
        on_event: Callable[[TelemetryEvent], Awaitable[None] | None] | None = None,
    ) -> int:
        """Consume the whole stream, passing each event to ``on_event``.

        Returns:
            Number of events delivered.
        """
        count = 0
        async with contextlib.aclosing(self.events()) as events:
            async for event in events:
                count += 1
                if on_event is None:
                    continue
                result = on_event(event)
                if inspect.isawaitable(result):
                    await result
        return count

    def _observe(self, packet: Packet) -> TelemetryEvent:
        # Timestamped when the consumer sees the packet, not when it was produced.
        timestamp = self._clock()
        record = None
        error = None
        try:
            record = decode_characteristic(
                resolve_characteristic(packet.characteristic), packet.data
            )
        except DecodeError as e:
            if self._config.strict:
                raise DecodeError(
                    f"{packet.characteristic}: {e}",
                    characteristic=packet.characteristic,
                    offset=e.offset,
                    expected=e.expected,
                    actual=e.actual,
                ) from e
            LOGGER.warning(
                "Could not decode %s payload %s: %s", packet.characteristic, packet.data.hex(), e
            )
            error = str(e)
        return TelemetryEvent(
            timestamp=timestamp,
            characteristic=packet.characteristic,
            data=packet.data,
            record=record,
            error=error,
        )
