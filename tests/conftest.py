"""Shared fixtures and configuration for pytest."""

import pytest

from rowing_ble.transport import FixtureEntry

# General status: 12.34 s, 45.6 m, just row (splits), rowing, driving, distance workout, drag 120.
GENERAL_STATUS_HEX = "d20400c8010001ff0101020000000000008078"
# Stroke data (direct form): 13.5 s, 48.2 m, 245.3 J work, stroke 7.
STROKE_DATA_HEX = "460500e201008e50a500db030d074e0495090700"
# Additional status 1 (multiplexed form): 3.512 m/s, 24 spm, no heart rate, 120 W.
ADDITIONAL_STATUS_1_MUX_HEX = "d20400b80d18ff9b37a4380000000000780000"


@pytest.fixture
def general_status_bytes():
    """A 19-byte general status record."""
    return bytes.fromhex(GENERAL_STATUS_HEX)


@pytest.fixture
def stroke_data_bytes():
    """A 20-byte stroke data record as sent on 0x0035."""
    return bytes.fromhex(STROKE_DATA_HEX)


@pytest.fixture
def additional_status_1_mux_bytes():
    """A 19-byte additional status 1 record as carried in the multiplexed envelope."""
    return bytes.fromhex(ADDITIONAL_STATUS_1_MUX_HEX)


@pytest.fixture
def counter_entries():
    """Two short general status captures used by the end-to-end scenario."""
    return [
        FixtureEntry(characteristic="0x0031", data="10203000"),
        FixtureEntry(characteristic="0x0031", data="10203001"),
    ]


@pytest.fixture
def fixed_clock():
    """A clock that ticks one second per call."""
    ticks = iter(range(1_000_000))
    return lambda: float(next(ticks))
