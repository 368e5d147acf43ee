from __future__ import annotations

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import cast

LOGGER = logging.getLogger(__name__)

DEFAULT_SINK_SIZE = 64


@dataclass(frozen=True)
class Packet:
    """One notification payload and the characteristic it arrived on."""

    characteristic: str
    data: bytes


class SinkClosedError(RuntimeError):
    """Raised when writing to, or re-closing, a completed sink."""


class StopSignal:
    """One-shot, idempotent cancellation token.

    Only the pipeline's caller requests a stop; transports observe it.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def set(self) -> bool:
        """Request a stop. Returns True only for the call that fired the signal."""
        if self._event.is_set():
            return False
        self._event.set()
        return True

    def is_set(self) -> bool:
        """Return True once a stop has been requested."""
        return self._event.is_set()

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait until a stop is requested or ``timeout`` elapses.

        Returns:
            True if the signal is set when the wait ends.
        """
        if timeout is not None and timeout <= 0:
            # Still yield so a zero-interval producer lets the consumer run.
            await asyncio.sleep(0)
            return self._event.is_set()
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        return self._event.is_set()


_COMPLETED = object()


class PacketSink:
    """Bounded FIFO handoff between one transport and one consumer.

    Writers block while ``maxsize`` packets are waiting (backpressure). The
    transport that owns the run completes the sink with :meth:`close`; the
    consumer then drains the remaining packets and iteration ends.
    """

    def __init__(self, maxsize: int = DEFAULT_SINK_SIZE) -> None:
        if maxsize < 1:
            raise ValueError("sink size must be at least 1")
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._slots = asyncio.Semaphore(maxsize)
        self._closed = False
        self._drained = False
        self._accepted = 0

    @property
    def closed(self) -> bool:
        """True once the transport has completed the sink."""
        return self._closed

    @property
    def drained(self) -> bool:
        """True once the consumer has received every packet and the completion marker."""
        return self._drained

    @property
    def accepted(self) -> int:
        """Number of packets accepted into the sink."""
        return self._accepted

    async def put(self, packet: Packet, stop: StopSignal | None = None) -> bool:
        """Enqueue a packet, waiting for room if the sink is full.

        When ``stop`` fires while waiting for room the packet is not accepted.

        Returns:
            True if the packet was accepted.

        Raises:
            SinkClosedError: If the sink has been completed.
        """
        if self._closed:
            raise SinkClosedError("cannot write to a closed sink")
        if stop is None:
            await self._slots.acquire()
        elif not await self._acquire_unless_stopped(stop):
            return False
        self._queue.put_nowait(packet)
        self._accepted += 1
        return True

    async def _acquire_unless_stopped(self, stop: StopSignal) -> bool:
        if stop.is_set():
            return False
        if not self._slots.locked():
            await self._slots.acquire()
            return True

        acquire = asyncio.ensure_future(self._slots.acquire())
        stopped = asyncio.ensure_future(stop.wait())
        try:
            await asyncio.wait({acquire, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()
            if not acquire.done():
                acquire.cancel()
            await asyncio.gather(acquire, stopped, return_exceptions=True)

        acquired = not acquire.cancelled()
        if acquired and stop.is_set():
            self._slots.release()
            return False
        return acquired

    def close(self) -> None:
        """Complete the sink. Only the transport owning the run may call this.

        Raises:
            SinkClosedError: If the sink is already completed.
        """
        if self._closed:
            raise SinkClosedError("sink already closed")
        self._closed = True
        self._queue.put_nowait(_COMPLETED)

    async def get(self) -> Packet | None:
        """Return the next packet, or None once the sink is completed and drained."""
        if self._drained:
            return None
        item = await self._queue.get()
        if item is _COMPLETED:
            self._drained = True
            return None
        self._slots.release()
        return cast(Packet, item)

    async def __aiter__(self) -> AsyncIterator[Packet]:
        while (packet := await self.get()) is not None:
            yield packet


class _RunState(Enum):
    IDLE = "idle"
    DISCOVERED = "discovered"
    STREAMING = "streaming"


class Transport(ABC):
    """Source of PM5 telemetry packets.

    A run is ``discover()`` followed by exactly one ``stream()``. Callers that
    retry after a failure start a new run by calling ``discover()`` again.
    """

    name = "transport"

    def __init__(self) -> None:
        self._state = _RunState.IDLE
        self._address: str | None = None

    @property
    def address(self) -> str | None:
        """Address returned by the last successful discovery."""
        return self._address

    async def discover(self) -> str:
        """Locate (and connect to) the telemetry source.

        Returns:
            Opaque device address.

        Raises:
            DiscoveryError: If the source cannot be found or reached.
            RuntimeError: If called while a run is already discovered or streaming.
        """
        if self._state is not _RunState.IDLE:
            raise RuntimeError(f"{self.name}: discover() called during an active run")
        self._address = await self._discover()
        self._state = _RunState.DISCOVERED
        LOGGER.info("%s transport discovered device at %s", self.name, self._address)
        return self._address

    async def stream(self, sink: PacketSink, stop: StopSignal) -> None:
        """Produce packets into ``sink`` until the source ends or ``stop`` fires.

        The sink is closed exactly once on every exit path.
        """
        try:
            if self._state is not _RunState.DISCOVERED:
                raise RuntimeError(f"{self.name}: stream() requires a prior discover()")
            self._state = _RunState.STREAMING
            LOGGER.info("Starting %s transport", self.name)
            await self._produce(sink, stop)
            if stop.is_set():
                LOGGER.info("Stopping %s transport", self.name)
        finally:
            if self._state is _RunState.STREAMING:
                self._state = _RunState.IDLE
            if not sink.closed:
                sink.close()

    async def close(self) -> None:
        """Release any resources held after discovery."""
        self._state = _RunState.IDLE

    @abstractmethod
    async def _discover(self) -> str:
        """Transport specific discovery; returns the device address."""

    @abstractmethod
    async def _produce(self, sink: PacketSink, stop: StopSignal) -> None:
        """Transport specific production loop. Must not close ``sink``."""
