from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from .protocol import PM5_NAME_PREFIX, Characteristic, resolve_characteristic
from .transport import (
    DEFAULT_SINK_SIZE,
    LiveTransport,
    RecordedTransport,
    SimulatedTransport,
    Transport,
)


class TransportKind(str, Enum):
    """Available telemetry transports."""

    RECORDED = "recorded"
    LIVE = "live"
    SIMULATED = "simulated"


class TransportConfig(BaseModel):
    """Selects and configures the transport for a pipeline run."""

    kind: TransportKind = TransportKind.RECORDED
    address: str | None = None
    fixture: Path | None = None
    # None keeps the transport's own cadence.
    interval: float | None = Field(default=None, ge=0.0)
    scan_timeout: float = Field(default=10.0, gt=0.0)
    name_prefix: str = PM5_NAME_PREFIX
    characteristics: tuple[str, ...] = ("0x0080",)

    @field_validator("characteristics")
    @classmethod
    def validate_characteristics(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Reject identifiers that don't name a PM5 characteristic."""
        if not value:
            raise ValueError("at least one characteristic is required")
        unknown = [
            item for item in value if resolve_characteristic(item) is Characteristic.UNKNOWN
        ]
        if unknown:
            raise ValueError(f"unknown characteristic(s): {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def validate_kind_options(self) -> TransportConfig:
        """Ensure options are only given to the transport that uses them."""
        if self.fixture is not None and self.kind is not TransportKind.RECORDED:
            msg = f"fixture is only valid for the recorded transport, not {self.kind.value}"
            raise ValueError(msg)
        if self.address is not None and self.kind is not TransportKind.LIVE:
            msg = f"address is only valid for the live transport, not {self.kind.value}"
            raise ValueError(msg)
        return self


class PipelineConfig(BaseModel):
    """Configuration for the streaming pipeline."""

    queue_size: int = Field(default=DEFAULT_SINK_SIZE, ge=1)
    # Raise on undecodable payloads instead of logging them.
    strict: bool = False


def create_transport(config: TransportConfig) -> Transport:
    """Build the transport selected by ``config``."""
    interval = {} if config.interval is None else {"interval": config.interval}
    if config.kind is TransportKind.RECORDED:
        return RecordedTransport.from_file(config.fixture, **interval)
    if config.kind is TransportKind.SIMULATED:
        return SimulatedTransport(**interval)
    return LiveTransport(
        config.address,
        characteristics=[resolve_characteristic(item) for item in config.characteristics],
        name_prefix=config.name_prefix,
        scan_timeout=config.scan_timeout,
    )
