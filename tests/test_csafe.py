"""Tests for CSAFE command codes and control frames."""

import pytest

from rowing_ble import DecodeError
from rowing_ble.protocol import (
    CsafeCommand,
    csafe_byte_unstuff,
    csafe_xor_checksum,
    is_valid_csafe_command,
    parse_csafe_command,
    parse_csafe_frame,
)


@pytest.mark.unit
def test_command_codes():
    """Command codes match the PM5 interface definition."""
    assert CsafeCommand.SET_WORKOUT == 0x23
    assert CsafeCommand.GET_WORKOUT_TYPE == 0x89
    assert CsafeCommand.GET_ROWING_STATE == 0x8D


@pytest.mark.unit
def test_is_valid_csafe_command_exhaustive():
    """Exactly the three supported codes are valid across the whole byte range."""
    valid = {code for code in range(256) if is_valid_csafe_command(code)}
    assert valid == {0x23, 0x89, 0x8D}


@pytest.mark.unit
def test_parse_csafe_command():
    """Supported codes parse to their command, others to None."""
    assert parse_csafe_command(0x8D) is CsafeCommand.GET_ROWING_STATE
    assert parse_csafe_command(0x00) is None
    assert parse_csafe_command(0xFF) is None


@pytest.mark.unit
def test_xor_checksum():
    """Checksum is the XOR of all content bytes."""
    assert csafe_xor_checksum(b"") == 0
    assert csafe_xor_checksum(bytes([0x81, 0x89, 0x01, 0x01])) == 0x08


@pytest.mark.unit
def test_byte_unstuff():
    """Escape sequences expand back to the reserved flag bytes."""
    assert csafe_byte_unstuff(bytes([0x01, 0xF3, 0x00, 0xF3, 0x03, 0x02])) == bytes(
        [0x01, 0xF0, 0xF3, 0x02]
    )


@pytest.mark.unit
@pytest.mark.parametrize("payload", [bytes([0x01, 0xF3]), bytes([0xF3, 0x07])])
def test_byte_unstuff_rejects_bad_escapes(payload):
    """Truncated or unknown escape sequences are decode errors."""
    with pytest.raises(DecodeError):
        csafe_byte_unstuff(payload)


@pytest.mark.unit
def test_parse_frame():
    """A standard frame yields its status and response bytes."""
    contents = bytes([0x81, 0x89, 0x01, 0x01])
    raw = bytes([0xF1, *contents, csafe_xor_checksum(contents), 0xF2])

    frame = parse_csafe_frame(raw)

    assert frame.status == 0x81
    assert frame.contents == contents
    assert frame.responses == bytes([0x89, 0x01, 0x01])


@pytest.mark.unit
def test_parse_frame_with_stuffed_checksum():
    """Checksums that collide with a flag byte are unstuffed before comparison."""
    contents = bytes([0x01, 0xF1])  # XOR == 0xF0
    raw = bytes([0xF1, 0x01, 0xF3, 0x01, 0xF3, 0x00, 0xF2])

    frame = parse_csafe_frame(raw)

    assert frame.contents == contents


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw",
    [
        b"",
        bytes([0xF0, 0x81, 0x81, 0xF2]),  # extended frames are not parsed
        bytes([0xF1, 0x81, 0x81]),  # missing stop flag
        bytes([0xF1, 0x81, 0xF2]),  # too short
        bytes([0xF1, 0x81, 0x89, 0x00, 0xF2]),  # bad checksum
    ],
)
def test_parse_frame_rejects_malformed(raw):
    """Malformed frames raise DecodeError."""
    with pytest.raises(DecodeError):
        parse_csafe_frame(raw)
