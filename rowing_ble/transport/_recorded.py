from __future__ import annotations

import logging
import string
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter

from .._errors import DecodeError
from ._base import Packet, PacketSink, StopSignal, Transport

LOGGER = logging.getLogger(__name__)

RECORDED_ADDRESS = "MOCK-ADDRESS-01"
DEFAULT_RECORDED_INTERVAL = 1.0
DEFAULT_FIXTURE = Path(__file__).parent / "recorded_rowing_data.json"


class FixtureEntry(BaseModel):
    """One captured notification: characteristic identifier and hex payload."""

    model_config = ConfigDict(frozen=True)

    characteristic: str
    data: str


_FIXTURE_ADAPTER = TypeAdapter(list[FixtureEntry])


def load_fixture(path: str | Path | None = None) -> tuple[FixtureEntry, ...]:
    """Load a JSON fixture of ``{"characteristic", "data"}`` records.

    Args:
        path: Fixture file. Defaults to the packaged recorded rowing session.

    Raises:
        FileNotFoundError: If the fixture file doesn't exist.
        pydantic.ValidationError: If the file is not a list of fixture records.
    """
    fixture_path = Path(path) if path is not None else DEFAULT_FIXTURE
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")
    return tuple(_FIXTURE_ADAPTER.validate_json(fixture_path.read_bytes()))


def decode_hex_payload(entry: FixtureEntry, index: int) -> bytes:
    """Decode the hex payload of a fixture entry.

    Raises:
        DecodeError: With the entry index, characteristic and offending offset.
    """
    text = entry.data
    for offset, char in enumerate(text):
        if char not in string.hexdigits:
            raise DecodeError(
                f"fixture entry {index} ({entry.characteristic}): "
                f"non-hex character {char!r} at offset {offset}",
                characteristic=entry.characteristic,
                offset=offset,
            )
    if len(text) % 2:
        raise DecodeError(
            f"fixture entry {index} ({entry.characteristic}): "
            f"odd number of hex digits ({len(text)})",
            characteristic=entry.characteristic,
            offset=len(text),
            actual=len(text),
        )
    return bytes.fromhex(text)


class RecordedTransport(Transport):
    """Replays a captured session at a fixed cadence, without hardware."""

    name = "recorded"

    def __init__(
        self,
        entries: Iterable[FixtureEntry | Mapping[str, Any]],
        *,
        interval: float = DEFAULT_RECORDED_INTERVAL,
    ) -> None:
        """Create a transport over an ordered, finite list of entries.

        Args:
            entries: Fixture records, loaded once and held immutably.
            interval: Seconds to pause between emissions.
        """
        super().__init__()
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self._entries = tuple(FixtureEntry.model_validate(entry) for entry in entries)
        self._interval = interval

    @classmethod
    def from_file(
        cls, path: str | Path | None = None, *, interval: float = DEFAULT_RECORDED_INTERVAL
    ) -> RecordedTransport:
        """Create a transport from a fixture file (packaged session by default)."""
        return cls(load_fixture(path), interval=interval)

    @property
    def entries(self) -> tuple[FixtureEntry, ...]:
        return self._entries

    async def _discover(self) -> str:
        LOGGER.info("Simulating BLE device discovery (%d recorded entries)", len(self._entries))
        return RECORDED_ADDRESS

    async def _produce(self, sink: PacketSink, stop: StopSignal) -> None:
        last = len(self._entries) - 1
        for index, entry in enumerate(self._entries):
            if stop.is_set():
                return
            packet = Packet(entry.characteristic, decode_hex_payload(entry, index))
            if not await sink.put(packet, stop):
                return
            LOGGER.debug("Recorded packet %d sent: %s %s", index, entry.characteristic, entry.data)
            if index < last:
                await stop.wait(self._interval)
        LOGGER.info("Recorded session exhausted after %d entries", len(self._entries))
