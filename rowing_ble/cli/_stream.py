"""Streaming command for the rowing-ble CLI."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys

from pydantic import ValidationError

from .._config import PipelineConfig, TransportConfig, create_transport
from .._errors import ConnectionLostError, DecodeError, DiscoveryError
from .._pipeline import StreamingPipeline, TelemetryEvent

LOGGER = logging.getLogger(__name__)


def _build_configs(args: argparse.Namespace) -> tuple[TransportConfig, PipelineConfig]:
    options: dict[str, object] = {"kind": args.transport}
    if args.address is not None:
        options["address"] = args.address
    if args.fixture is not None:
        options["fixture"] = args.fixture
    if args.interval is not None:
        options["interval"] = args.interval
    if args.characteristic:
        options["characteristics"] = tuple(args.characteristic)
    transport_config = TransportConfig.model_validate(options)
    pipeline_config = PipelineConfig(queue_size=args.queue_size, strict=args.strict)
    return transport_config, pipeline_config


def _print_event(event: TelemetryEvent) -> None:
    print(json.dumps(event.to_log_entry()), flush=True)


async def stream_telemetry(args: argparse.Namespace) -> None:
    """Stream telemetry as JSON lines until the source ends or Ctrl+C."""
    try:
        transport_config, pipeline_config = _build_configs(args)
    except ValidationError as e:
        print(f"\n✗ Invalid options: {e}", file=sys.stderr)
        sys.exit(2)

    LOGGER.debug("Transport config: %s; pipeline config: %s", transport_config, pipeline_config)
    pipeline = StreamingPipeline(create_transport(transport_config), pipeline_config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops; Ctrl+C then surfaces as KeyboardInterrupt.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, pipeline.stop)

    print(
        f"Streaming from {transport_config.kind.value} transport (Ctrl+C to stop)...",
        file=sys.stderr,
    )
    try:
        count = await pipeline.run(_print_event)
    except DiscoveryError as e:
        print(f"\n✗ {e}", file=sys.stderr)
        sys.exit(1)
    except DecodeError as e:
        print(f"\n✗ Malformed telemetry: {e}", file=sys.stderr)
        sys.exit(1)
    except ConnectionLostError as e:
        print(f"\n✗ {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)

    print(f"\n✓ Streamed {count} packet(s) from {pipeline.address}", file=sys.stderr)
