"""Concept2 PM5 BLE telemetry library.

Ingests rowing telemetry from a PM5 performance monitor over Bluetooth Low
Energy, or from a recorded session, and decodes it into typed records.
"""

from ._config import PipelineConfig, TransportConfig, TransportKind, create_transport
from ._errors import ConnectionLostError, DecodeError, DiscoveryError, RowingBleError
from ._pipeline import StreamingPipeline, TelemetryEvent
from ._scanner import PM5Device, find_all_pm5_devices, find_pm5_device
from .protocol import (
    Characteristic,
    CsafeCommand,
    GeneralStatus,
    MultiplexedEnvelope,
    Service,
    StrokeData,
    characteristic_uuid,
    decode_characteristic,
    decode_general_status,
    decode_multiplexed_envelope,
    decode_stroke_data,
    is_valid_csafe_command,
    service_uuid,
)
from .transport import (
    LiveTransport,
    Packet,
    PacketSink,
    RecordedTransport,
    SimulatedTransport,
    StopSignal,
    Transport,
)

__version__ = "0.1.0"

__all__ = [
    "Characteristic",
    "ConnectionLostError",
    "CsafeCommand",
    "DecodeError",
    "DiscoveryError",
    "GeneralStatus",
    "LiveTransport",
    "MultiplexedEnvelope",
    "PM5Device",
    "Packet",
    "PacketSink",
    "PipelineConfig",
    "RecordedTransport",
    "RowingBleError",
    "Service",
    "SimulatedTransport",
    "StopSignal",
    "StreamingPipeline",
    "StrokeData",
    "TelemetryEvent",
    "Transport",
    "TransportConfig",
    "TransportKind",
    "characteristic_uuid",
    "create_transport",
    "decode_characteristic",
    "decode_general_status",
    "decode_multiplexed_envelope",
    "decode_stroke_data",
    "find_all_pm5_devices",
    "find_pm5_device",
    "is_valid_csafe_command",
    "service_uuid",
]
