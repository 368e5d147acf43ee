"""Telemetry transports and the packet handoff they write into."""

from ._base import DEFAULT_SINK_SIZE, Packet, PacketSink, SinkClosedError, StopSignal, Transport
from ._live import DEFAULT_CHARACTERISTICS, LiveTransport
from ._recorded import (
    DEFAULT_FIXTURE,
    RECORDED_ADDRESS,
    FixtureEntry,
    RecordedTransport,
    decode_hex_payload,
    load_fixture,
)
from ._simulated import SIMULATED_ADDRESS, SimulatedTransport

__all__ = [
    "DEFAULT_CHARACTERISTICS",
    "DEFAULT_FIXTURE",
    "DEFAULT_SINK_SIZE",
    "RECORDED_ADDRESS",
    "SIMULATED_ADDRESS",
    "FixtureEntry",
    "LiveTransport",
    "Packet",
    "PacketSink",
    "RecordedTransport",
    "SimulatedTransport",
    "SinkClosedError",
    "StopSignal",
    "Transport",
    "decode_hex_payload",
    "load_fixture",
]
