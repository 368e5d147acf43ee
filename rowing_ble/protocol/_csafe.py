from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .._errors import DecodeError

# CSAFE framing bytes
CSAFE_EXT_START = 0xF0
CSAFE_STD_START = 0xF1
CSAFE_STOP = 0xF2
CSAFE_STUFF = 0xF3

MIN_UNSTUFFED_FRAME_LENGTH = 2

_UNSTUFF = {
    0x00: CSAFE_EXT_START,
    0x01: CSAFE_STD_START,
    0x02: CSAFE_STOP,
    0x03: CSAFE_STUFF,
}


class CsafeCommand(IntEnum):
    """CSAFE command codes understood by this package."""

    SET_WORKOUT = 0x23
    GET_WORKOUT_TYPE = 0x89
    GET_ROWING_STATE = 0x8D


_VALID_COMMANDS = frozenset(int(command) for command in CsafeCommand)


def is_valid_csafe_command(code: int) -> bool:
    """Return True if ``code`` is a supported CSAFE command byte."""
    return code in _VALID_COMMANDS


def parse_csafe_command(code: int) -> CsafeCommand | None:
    """Return the command for ``code`` or None when it is not supported."""
    if not is_valid_csafe_command(code):
        return None
    return CsafeCommand(code)


@dataclass(frozen=True)
class CsafeFrame:
    """Contents of a CSAFE standard frame received on the control service."""

    status: int
    contents: bytes

    @property
    def responses(self) -> bytes:
        """Response bytes following the status byte."""
        return self.contents[1:]


def csafe_xor_checksum(frame_contents: bytes) -> int:
    """XOR of the frame contents, excluding start/stop flags."""
    checksum = 0
    for byte in frame_contents:
        checksum ^= byte
    return checksum


def csafe_byte_unstuff(payload: bytes) -> bytes:
    """Reverse CSAFE byte stuffing (F3 0x -> F0..F3)."""
    out = bytearray()
    i = 0
    while i < len(payload):
        byte = payload[i]
        if byte != CSAFE_STUFF:
            out.append(byte)
            i += 1
            continue
        if i + 1 >= len(payload):
            raise DecodeError("CSAFE unstuff: truncated escape sequence", offset=i)
        selector = payload[i + 1]
        if selector not in _UNSTUFF:
            raise DecodeError(
                f"CSAFE unstuff: invalid selector 0x{selector:02x}", offset=i + 1
            )
        out.append(_UNSTUFF[selector])
        i += 2
    return bytes(out)


def parse_csafe_frame(raw: bytes) -> CsafeFrame:
    """Parse a CSAFE standard frame (F1 ... F2) and verify its checksum.

    Raises:
        DecodeError: If the flags, escaping or checksum are invalid.
    """
    if not raw:
        raise DecodeError("Empty CSAFE frame", expected=MIN_UNSTUFFED_FRAME_LENGTH, actual=0)
    if raw[0] != CSAFE_STD_START or raw[-1] != CSAFE_STOP:
        raise DecodeError(f"Not a CSAFE standard frame: {raw.hex()}", offset=0)

    unstuffed = csafe_byte_unstuff(raw[1:-1])
    if len(unstuffed) < MIN_UNSTUFFED_FRAME_LENGTH:
        raise DecodeError(
            "CSAFE frame too short after unstuff",
            expected=MIN_UNSTUFFED_FRAME_LENGTH,
            actual=len(unstuffed),
        )

    contents = unstuffed[:-1]
    if csafe_xor_checksum(contents) != unstuffed[-1]:
        raise DecodeError(
            f"CSAFE checksum mismatch: 0x{unstuffed[-1]:02x}", offset=len(raw) - 2
        )
    return CsafeFrame(status=contents[0], contents=contents)
