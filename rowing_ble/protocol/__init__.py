"""Concept2 PM5 BLE protocol model.

Pure definitions and decoders for PM5 GATT services/characteristics, CSAFE
command codes and the rowing data records, including the multiplexed
information envelope. Nothing here performs I/O.
"""

from ._csafe import (
    CsafeCommand,
    CsafeFrame,
    csafe_byte_unstuff,
    csafe_xor_checksum,
    is_valid_csafe_command,
    parse_csafe_command,
    parse_csafe_frame,
)
from ._gatt import (
    PM5_NAME_PREFIX,
    Characteristic,
    Service,
    bt16,
    c2_uuid,
    characteristic_uuid,
    resolve_characteristic,
    service_uuid,
)
from ._rowing import (
    GENERAL_STATUS_LENGTH,
    MAX_MULTIPLEXED_DATA_LENGTH,
    STROKE_DATA_LENGTH,
    STROKE_DATA_MULTIPLEXED_LENGTH,
    AdditionalStatus1,
    AdditionalStatus2,
    GeneralStatus,
    IntervalType,
    MultiplexedEnvelope,
    RowingRecord,
    RowingState,
    StrokeData,
    StrokeState,
    WorkoutDurationType,
    WorkoutState,
    WorkoutType,
    decode_additional_status_1,
    decode_additional_status_2,
    decode_characteristic,
    decode_general_status,
    decode_multiplexed_envelope,
    decode_rowing_record,
    decode_stroke_data,
)

__all__ = [
    "GENERAL_STATUS_LENGTH",
    "MAX_MULTIPLEXED_DATA_LENGTH",
    "PM5_NAME_PREFIX",
    "STROKE_DATA_LENGTH",
    "STROKE_DATA_MULTIPLEXED_LENGTH",
    "AdditionalStatus1",
    "AdditionalStatus2",
    "Characteristic",
    "CsafeCommand",
    "CsafeFrame",
    "GeneralStatus",
    "IntervalType",
    "MultiplexedEnvelope",
    "RowingRecord",
    "RowingState",
    "Service",
    "StrokeData",
    "StrokeState",
    "WorkoutDurationType",
    "WorkoutState",
    "WorkoutType",
    "bt16",
    "c2_uuid",
    "characteristic_uuid",
    "csafe_byte_unstuff",
    "csafe_xor_checksum",
    "decode_additional_status_1",
    "decode_additional_status_2",
    "decode_characteristic",
    "decode_general_status",
    "decode_multiplexed_envelope",
    "decode_rowing_record",
    "decode_stroke_data",
    "is_valid_csafe_command",
    "parse_csafe_command",
    "parse_csafe_frame",
    "resolve_characteristic",
    "service_uuid",
]
