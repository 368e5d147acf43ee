from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from .._errors import DecodeError
from ._csafe import CsafeFrame, parse_csafe_frame
from ._gatt import Characteristic

# Record widths in bytes. Some records are shortened or extended when carried
# inside the multiplexed characteristic (0x0080) to fit a 20-byte notification.
GENERAL_STATUS_LENGTH = 19
ADDITIONAL_STATUS_1_LENGTH = 17
ADDITIONAL_STATUS_1_MULTIPLEXED_LENGTH = 19
ADDITIONAL_STATUS_2_LENGTH = 20
ADDITIONAL_STATUS_2_MULTIPLEXED_LENGTH = 18
STROKE_DATA_LENGTH = 20
STROKE_DATA_MULTIPLEXED_LENGTH = 18

MAX_MULTIPLEXED_DATA_LENGTH = 19

HEART_RATE_INVALID = 0xFF


class _ClosedEnum(IntEnum):
    """IntEnum that maps values outside the set to UNKNOWN."""

    @classmethod
    def _missing_(cls, value: object) -> _ClosedEnum:
        return cls["UNKNOWN"]


class WorkoutType(_ClosedEnum):
    """Workout types (PM5 interface definition, Appendix A)."""

    UNKNOWN = -1
    JUST_ROW_NO_SPLITS = 0
    JUST_ROW_SPLITS = 1
    FIXED_DISTANCE_NO_SPLITS = 2
    FIXED_DISTANCE_SPLITS = 3
    FIXED_TIME_NO_SPLITS = 4
    FIXED_TIME_SPLITS = 5
    FIXED_TIME_INTERVAL = 6
    FIXED_DISTANCE_INTERVAL = 7
    VARIABLE_INTERVAL = 8
    VARIABLE_UNDEFINED_REST_INTERVAL = 9
    FIXED_CALORIE_SPLITS = 10
    FIXED_WATT_MINUTE_SPLITS = 11
    FIXED_CALORIE_INTERVAL = 12


class IntervalType(_ClosedEnum):
    """Interval types (Appendix A)."""

    UNKNOWN = -1
    TIME = 0
    DISTANCE = 1
    REST = 2
    TIME_UNDEFINED_REST = 3
    DISTANCE_UNDEFINED_REST = 4
    UNDEFINED_REST = 5
    CALORIE = 6
    CALORIE_UNDEFINED_REST = 7
    WATT_MINUTE = 8
    WATT_MINUTE_UNDEFINED_REST = 9
    NONE = 255


class WorkoutState(_ClosedEnum):
    """Workout states (Appendix A)."""

    UNKNOWN = -1
    WAIT_TO_BEGIN = 0
    WORKOUT_ROW = 1
    COUNTDOWN_PAUSE = 2
    INTERVAL_REST = 3
    INTERVAL_WORK_TIME = 4
    INTERVAL_WORK_DISTANCE = 5
    INTERVAL_REST_END_TO_WORK_TIME = 6
    INTERVAL_REST_END_TO_WORK_DISTANCE = 7
    INTERVAL_WORK_TIME_TO_REST = 8
    INTERVAL_WORK_DISTANCE_TO_REST = 9
    WORKOUT_END = 10
    TERMINATE = 11
    WORKOUT_LOGGED = 12
    REARM = 13


class RowingState(_ClosedEnum):
    """Rowing activity state (Appendix A)."""

    UNKNOWN = -1
    INACTIVE = 0
    ACTIVE = 1


class StrokeState(_ClosedEnum):
    """Stroke phase (Appendix A)."""

    UNKNOWN = -1
    WAITING_FOR_WHEEL_TO_REACH_MIN_SPEED = 0
    WAITING_FOR_WHEEL_TO_ACCELERATE = 1
    DRIVING = 2
    DWELLING_AFTER_DRIVE = 3
    RECOVERY = 4


class WorkoutDurationType(_ClosedEnum):
    """Unit of the workout duration field (Appendix A)."""

    UNKNOWN = -1
    TIME = 0x00
    CALORIES = 0x40
    DISTANCE = 0x80
    WATT_MINUTES = 0xC0


@dataclass(frozen=True)
class GeneralStatus:
    """Rowing general status (0x0031)."""

    elapsed_time_s: float
    distance_m: float
    workout_type: WorkoutType
    interval_type: IntervalType
    workout_state: WorkoutState
    rowing_state: RowingState
    stroke_state: StrokeState
    total_work_distance_m: int
    workout_duration: float
    workout_duration_type: WorkoutDurationType
    drag_factor: int


@dataclass(frozen=True)
class AdditionalStatus1:
    """Rowing additional status 1 (0x0032)."""

    elapsed_time_s: float
    speed_m_s: float
    stroke_rate_spm: int
    heart_rate_bpm: int | None
    current_pace_s_per_500m: float
    average_pace_s_per_500m: float
    rest_distance_m: int
    rest_time_s: float
    erg_machine_type: int
    average_power_w: int | None = None


@dataclass(frozen=True)
class AdditionalStatus2:
    """Rowing additional status 2 (0x0033)."""

    elapsed_time_s: float
    interval_count: int
    total_calories: int
    split_interval_average_pace_s_per_500m: float
    split_interval_average_power_w: int
    split_interval_average_calories: int
    last_split_time_s: float
    last_split_distance_m: int
    average_power_w: int | None = None


@dataclass(frozen=True)
class StrokeData:
    """Rowing stroke data (0x0035)."""

    elapsed_time_s: float
    distance_m: float
    drive_length_m: float
    drive_time_s: float
    stroke_recovery_time_s: float
    stroke_distance_m: float
    peak_drive_force_lbs: float
    average_drive_force_lbs: float
    stroke_count: int
    work_per_stroke_j: float | None = None


@dataclass(frozen=True)
class MultiplexedEnvelope:
    """One record carried by the multiplexed information characteristic."""

    identifier: int
    data: bytes

    @property
    def characteristic(self) -> Characteristic:
        """Characteristic whose record layout applies to ``data``."""
        return Characteristic(self.identifier)


RowingRecord = Union[GeneralStatus, AdditionalStatus1, AdditionalStatus2, StrokeData]


def _uint(data: bytes, offset: int, size: int) -> int:
    return int.from_bytes(data[offset : offset + size], "little")


def _scaled(data: bytes, offset: int, size: int, scale: float) -> float:
    return _uint(data, offset, size) / scale


def _require_length(data: bytes, expected: int, record: str) -> None:
    if len(data) < expected:
        raise DecodeError(
            f"{record} requires {expected} bytes, got {len(data)}",
            characteristic=record,
            offset=len(data),
            expected=expected,
            actual=len(data),
        )


def decode_general_status(data: bytes) -> GeneralStatus:
    """Decode a rowing general status record.

    Raises:
        DecodeError: If ``data`` is shorter than 19 bytes.
    """
    _require_length(data, GENERAL_STATUS_LENGTH, "general status")
    duration_type = WorkoutDurationType(data[17])
    workout_duration = _uint(data, 14, 3)
    return GeneralStatus(
        elapsed_time_s=_scaled(data, 0, 3, 100.0),
        distance_m=_scaled(data, 3, 3, 10.0),
        workout_type=WorkoutType(data[6]),
        interval_type=IntervalType(data[7]),
        workout_state=WorkoutState(data[8]),
        rowing_state=RowingState(data[9]),
        stroke_state=StrokeState(data[10]),
        total_work_distance_m=_uint(data, 11, 3),
        # Time durations are sent in 0.01 s, the other duration types in whole units.
        workout_duration=(
            workout_duration / 100.0
            if duration_type is WorkoutDurationType.TIME
            else float(workout_duration)
        ),
        workout_duration_type=duration_type,
        drag_factor=data[18],
    )


def decode_additional_status_1(data: bytes, *, multiplexed: bool = False) -> AdditionalStatus1:
    """Decode a rowing additional status 1 record.

    The multiplexed form inserts a 2-byte average power before the erg type.
    """
    width = ADDITIONAL_STATUS_1_MULTIPLEXED_LENGTH if multiplexed else ADDITIONAL_STATUS_1_LENGTH
    _require_length(data, width, "additional status 1")
    heart_rate = data[6]
    return AdditionalStatus1(
        elapsed_time_s=_scaled(data, 0, 3, 100.0),
        speed_m_s=_scaled(data, 3, 2, 1000.0),
        stroke_rate_spm=data[5],
        heart_rate_bpm=None if heart_rate == HEART_RATE_INVALID else heart_rate,
        current_pace_s_per_500m=_scaled(data, 7, 2, 100.0),
        average_pace_s_per_500m=_scaled(data, 9, 2, 100.0),
        rest_distance_m=_uint(data, 11, 2),
        rest_time_s=_scaled(data, 13, 3, 100.0),
        erg_machine_type=data[18] if multiplexed else data[16],
        average_power_w=_uint(data, 16, 2) if multiplexed else None,
    )


def decode_additional_status_2(data: bytes, *, multiplexed: bool = False) -> AdditionalStatus2:
    """Decode a rowing additional status 2 record.

    The multiplexed form drops the 2-byte average power after the interval count.
    """
    width = ADDITIONAL_STATUS_2_MULTIPLEXED_LENGTH if multiplexed else ADDITIONAL_STATUS_2_LENGTH
    _require_length(data, width, "additional status 2")
    pos = 4 if multiplexed else 6
    return AdditionalStatus2(
        elapsed_time_s=_scaled(data, 0, 3, 100.0),
        interval_count=data[3],
        total_calories=_uint(data, pos, 2),
        split_interval_average_pace_s_per_500m=_scaled(data, pos + 2, 2, 100.0),
        split_interval_average_power_w=_uint(data, pos + 4, 2),
        split_interval_average_calories=_uint(data, pos + 6, 2),
        last_split_time_s=_scaled(data, pos + 8, 3, 10.0),
        last_split_distance_m=_uint(data, pos + 11, 3),
        average_power_w=None if multiplexed else _uint(data, 4, 2),
    )


def decode_stroke_data(data: bytes, *, multiplexed: bool = False) -> StrokeData:
    """Decode a rowing stroke data record.

    Field layout (little-endian):

    ====== ===== ==================== =========
    Offset Width Field                Unit
    ====== ===== ==================== =========
    0      3     elapsed time         0.01 s
    3      3     distance             0.1 m
    6      1     drive length         0.01 m
    7      1     drive time           0.01 s
    8      2     recovery time        0.01 s
    10     2     stroke distance      0.01 m
    12     2     peak drive force     0.1 lbs
    14     2     average drive force  0.1 lbs
    16     2     work per stroke      0.1 J
    18     2     stroke count
    ====== ===== ==================== =========

    The multiplexed form omits work per stroke, moving stroke count to offset 16.

    Raises:
        DecodeError: If ``data`` is shorter than the record width.
    """
    width = STROKE_DATA_MULTIPLEXED_LENGTH if multiplexed else STROKE_DATA_LENGTH
    _require_length(data, width, "stroke data")
    return StrokeData(
        elapsed_time_s=_scaled(data, 0, 3, 100.0),
        distance_m=_scaled(data, 3, 3, 10.0),
        drive_length_m=data[6] / 100.0,
        drive_time_s=data[7] / 100.0,
        stroke_recovery_time_s=_scaled(data, 8, 2, 100.0),
        stroke_distance_m=_scaled(data, 10, 2, 100.0),
        peak_drive_force_lbs=_scaled(data, 12, 2, 10.0),
        average_drive_force_lbs=_scaled(data, 14, 2, 10.0),
        stroke_count=_uint(data, 16, 2) if multiplexed else _uint(data, 18, 2),
        work_per_stroke_j=None if multiplexed else _scaled(data, 16, 2, 10.0),
    )


def decode_multiplexed_envelope(data: bytes) -> MultiplexedEnvelope:
    """Split a multiplexed notification into its identifier and record bytes.

    Raises:
        DecodeError: If the identifier byte is missing or more than 19 data bytes follow.
    """
    if not data:
        raise DecodeError(
            "multiplexed envelope is missing its identifier byte",
            characteristic="multiplexed information",
            offset=0,
            expected=1,
            actual=0,
        )
    if len(data) - 1 > MAX_MULTIPLEXED_DATA_LENGTH:
        raise DecodeError(
            f"multiplexed envelope carries {len(data) - 1} data bytes, "
            f"at most {MAX_MULTIPLEXED_DATA_LENGTH} allowed",
            characteristic="multiplexed information",
            offset=MAX_MULTIPLEXED_DATA_LENGTH + 1,
            expected=MAX_MULTIPLEXED_DATA_LENGTH + 1,
            actual=len(data),
        )
    return MultiplexedEnvelope(identifier=data[0], data=bytes(data[1:]))


_MULTIPLEXED_DECODERS: dict[Characteristic, Callable[[bytes], RowingRecord]] = {
    Characteristic.GENERAL_STATUS: decode_general_status,
    Characteristic.ADDITIONAL_STATUS_1: lambda data: decode_additional_status_1(
        data, multiplexed=True
    ),
    Characteristic.ADDITIONAL_STATUS_2: lambda data: decode_additional_status_2(
        data, multiplexed=True
    ),
    Characteristic.STROKE_DATA: lambda data: decode_stroke_data(data, multiplexed=True),
}

_DIRECT_DECODERS: dict[Characteristic, Callable[[bytes], RowingRecord | CsafeFrame]] = {
    Characteristic.GENERAL_STATUS: decode_general_status,
    Characteristic.ADDITIONAL_STATUS_1: decode_additional_status_1,
    Characteristic.ADDITIONAL_STATUS_2: decode_additional_status_2,
    Characteristic.STROKE_DATA: decode_stroke_data,
    Characteristic.CONTROL_RESPONSE: parse_csafe_frame,
}


def decode_rowing_record(envelope: MultiplexedEnvelope) -> RowingRecord | None:
    """Decode the record inside a multiplexed envelope.

    Returns None for identifiers without a decoder.
    """
    decoder = _MULTIPLEXED_DECODERS.get(envelope.characteristic)
    if decoder is None:
        return None
    return decoder(envelope.data)


def decode_characteristic(
    characteristic: Characteristic, data: bytes
) -> RowingRecord | CsafeFrame | None:
    """Decode a notification payload received on ``characteristic``.

    Returns None for characteristics without a decoder.
    """
    if characteristic is Characteristic.MULTIPLEXED_INFORMATION:
        return decode_rowing_record(decode_multiplexed_envelope(data))
    decoder = _DIRECT_DECODERS.get(characteristic)
    if decoder is None:
        return None
    return decoder(data)
