"""Tests for LiveTransport against a mocked bleak client."""

import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from bleak.exc import BleakError

from rowing_ble import ConnectionLostError, DiscoveryError
from rowing_ble.protocol import Characteristic
from rowing_ble.transport import LiveTransport, Packet, PacketSink, StopSignal

ADDRESS = "AA:BB:CC:DD:EE:FF"
GENERAL_STATUS = Characteristic.GENERAL_STATUS
STROKE_DATA = Characteristic.STROKE_DATA


def _make_client():
    client = MagicMock()
    client.is_connected = True
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.stop_notify = AsyncMock()
    client.handlers = {}

    async def start_notify(uuid, handler):
        client.handlers[uuid] = handler

    client.start_notify = AsyncMock(side_effect=start_notify)
    return client


@pytest.fixture
def ble_client():
    """A connected bleak client that records notification handlers."""
    return _make_client()


@pytest.fixture
def client_factory(monkeypatch, ble_client):
    """Patch device lookup and BleakClient construction."""
    device = SimpleNamespace(address=ADDRESS, name="PM5 430000000")
    monkeypatch.setattr(
        "rowing_ble.transport._live.find_pm5_device", AsyncMock(return_value=device)
    )
    factory = MagicMock(return_value=ble_client)
    monkeypatch.setattr("rowing_ble.transport._live.BleakClient", factory)
    return factory


async def _subscribed(client, count):
    while len(client.handlers) < count:
        await asyncio.sleep(0)


@pytest.mark.unit
def test_requires_characteristics():
    """At least one known characteristic must be subscribed."""
    with pytest.raises(ValueError):
        LiveTransport(characteristics=[])
    with pytest.raises(ValueError):
        LiveTransport(characteristics=[Characteristic.UNKNOWN])


@pytest.mark.unit
async def test_discover_connects(client_factory, ble_client):
    """Discovery scans, connects and returns the device address."""
    transport = LiveTransport(scan_timeout=5.0)

    assert await transport.discover() == ADDRESS

    ble_client.connect.assert_awaited_once()
    assert client_factory.call_args.kwargs["timeout"] == 5.0
    assert transport.is_connected


@pytest.mark.unit
async def test_discover_connection_failure(client_factory, ble_client):
    """Connection failures surface as DiscoveryError."""
    ble_client.connect.side_effect = BleakError("adapter busy")
    transport = LiveTransport()

    with pytest.raises(DiscoveryError, match="adapter busy"):
        await transport.discover()
    assert not transport.is_connected


@pytest.mark.unit
async def test_stream_forwards_notifications(client_factory, ble_client):
    """Notifications are delivered in arrival order, tagged with their characteristic UUID."""
    transport = LiveTransport(characteristics=[GENERAL_STATUS, STROKE_DATA])
    sink = PacketSink()
    stop = StopSignal()
    await transport.discover()

    producer = asyncio.create_task(transport.stream(sink, stop))
    await asyncio.wait_for(_subscribed(ble_client, 2), 1)
    ble_client.handlers[GENERAL_STATUS.uuid](None, bytearray(b"\x01\x02"))
    ble_client.handlers[STROKE_DATA.uuid](None, bytearray(b"\x03"))

    received = [await sink.get(), await sink.get()]
    stop.set()
    await asyncio.wait_for(producer, 1)

    assert received == [
        Packet(GENERAL_STATUS.uuid, b"\x01\x02"),
        Packet(STROKE_DATA.uuid, b"\x03"),
    ]
    assert await sink.get() is None
    assert ble_client.stop_notify.await_count == 2


@pytest.mark.unit
async def test_stop_while_idle(client_factory, ble_client):
    """Stop ends the stream even when the device sends nothing."""
    transport = LiveTransport()
    sink = PacketSink()
    stop = StopSignal()
    await transport.discover()

    producer = asyncio.create_task(transport.stream(sink, stop))
    await asyncio.wait_for(_subscribed(ble_client, 1), 1)
    stop.set()
    await asyncio.wait_for(producer, 1)

    assert sink.closed
    ble_client.stop_notify.assert_awaited_once_with(Characteristic.MULTIPLEXED_INFORMATION.uuid)


@pytest.mark.unit
async def test_disconnect_mid_stream(client_factory, ble_client):
    """Pending notifications are delivered before the disconnect is reported."""
    transport = LiveTransport(characteristics=[GENERAL_STATUS])
    sink = PacketSink()
    await transport.discover()

    producer = asyncio.create_task(transport.stream(sink, StopSignal()))
    await asyncio.wait_for(_subscribed(ble_client, 1), 1)
    ble_client.handlers[GENERAL_STATUS.uuid](None, bytearray(b"\x05"))
    ble_client.is_connected = False
    client_factory.call_args.kwargs["disconnected_callback"](ble_client)

    with pytest.raises(ConnectionLostError):
        await asyncio.wait_for(producer, 1)
    assert await sink.get() == Packet(GENERAL_STATUS.uuid, b"\x05")
    assert await sink.get() is None
    ble_client.stop_notify.assert_not_awaited()


@pytest.mark.unit
async def test_subscribe_failure(client_factory, ble_client):
    """A GATT error while subscribing is reported as a lost connection."""
    ble_client.start_notify.side_effect = BleakError("not permitted")
    transport = LiveTransport()
    sink = PacketSink()
    await transport.discover()

    with pytest.raises(ConnectionLostError, match="not permitted"):
        await transport.stream(sink, StopSignal())
    assert sink.closed


@pytest.mark.unit
async def test_close_disconnects(client_factory, ble_client):
    """Closing the transport disconnects the client once."""
    transport = LiveTransport()
    await transport.discover()

    await transport.close()
    await transport.close()

    ble_client.disconnect.assert_awaited_once()
    assert not transport.is_connected


@pytest.mark.unit
async def test_rediscover_releases_previous_client(client_factory, ble_client):
    """A second discovery disconnects the first client; its late callback is ignored."""
    second = _make_client()
    client_factory.side_effect = [ble_client, second]
    transport = LiveTransport(characteristics=[GENERAL_STATUS])
    stop = StopSignal()
    stop.set()
    await transport.discover()
    await transport.stream(PacketSink(), stop)

    await transport.discover()

    ble_client.disconnect.assert_awaited_once()
    # The released connection drops after the new run has started.
    client_factory.call_args_list[0].kwargs["disconnected_callback"](ble_client)

    sink = PacketSink()
    stop = StopSignal()
    producer = asyncio.create_task(transport.stream(sink, stop))
    await asyncio.wait_for(_subscribed(second, 1), 1)
    second.handlers[GENERAL_STATUS.uuid](None, bytearray(b"\x07"))
    assert await asyncio.wait_for(sink.get(), 1) == Packet(GENERAL_STATUS.uuid, b"\x07")
    stop.set()
    await asyncio.wait_for(producer, 1)
    assert transport.is_connected


@pytest.mark.unit
async def test_clean_close_does_not_warn(client_factory, ble_client, caplog):
    """Disconnecting on purpose is not reported as a lost connection."""
    transport = LiveTransport()
    await transport.discover()
    callback = client_factory.call_args.kwargs["disconnected_callback"]
    ble_client.disconnect.side_effect = lambda: callback(ble_client)

    with caplog.at_level(logging.INFO, logger="rowing_ble.transport._live"):
        await transport.close()

    ble_client.disconnect.assert_awaited_once()
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
