from __future__ import annotations

from enum import IntEnum

# Concept2 PM5 Bluetooth Smart Communications Interface Definition:
# https://www.concept2.com/support/software-development

C2_BASE_UUID_FMT = "ce06{short:04x}-43e5-11e4-916c-0800200c9a66"
SIG_BASE_UUID_FMT = "0000{short:04x}-0000-1000-8000-00805f9b34fb"

# PM5 advertises as "PM5 <serial>"
PM5_NAME_PREFIX = "PM5"


def bt16(uuid16: int) -> str:
    """Convert a 16-bit SIG UUID to a 128-bit UUID string."""
    return SIG_BASE_UUID_FMT.format(short=uuid16)


def c2_uuid(uuid16: int) -> str:
    """Convert a 16-bit Concept2 UUID to a 128-bit UUID string."""
    return C2_BASE_UUID_FMT.format(short=uuid16)


class Service(IntEnum):
    """GATT services exposed by the PM5."""

    UNKNOWN = -1
    GAP = 0
    GATT = 1
    DEVICE_INFO = 2
    CONTROL = 3
    ROWING = 4

    @classmethod
    def _missing_(cls, value: object) -> Service:
        return cls.UNKNOWN

    def __str__(self) -> str:
        return _SERVICE_NAMES[self]


_SERVICE_NAMES = {
    Service.UNKNOWN: "Unknown Service",
    Service.GAP: "GAP Service",
    Service.GATT: "GATT Service",
    Service.DEVICE_INFO: "Device Information Service",
    Service.CONTROL: "Control Service",
    Service.ROWING: "Rowing Service",
}

SERVICE_SHORT_UUIDS = {
    Service.GAP: 0x1800,
    Service.GATT: 0x1801,
    Service.DEVICE_INFO: 0x0010,
    Service.CONTROL: 0x0020,
    Service.ROWING: 0x0030,
}

# Concept2 characteristics are grouped by the upper nibble of their short UUID.
_SERVICE_BY_GROUP = {
    0x1: Service.DEVICE_INFO,
    0x2: Service.CONTROL,
    0x3: Service.ROWING,
    0x8: Service.ROWING,
}


class Characteristic(IntEnum):
    """PM5 characteristics, valued by their 16-bit UUID."""

    UNKNOWN = -1

    # GAP service
    DEVICE_NAME = 0x2A00
    APPEARANCE = 0x2A01
    PERIPHERAL_PRIVACY = 0x2A02
    CONNECTION_PARAMETERS = 0x2A04

    # Device information service
    MODEL_NUMBER = 0x0011
    SERIAL_NUMBER = 0x0012
    HARDWARE_REVISION = 0x0013
    FIRMWARE_REVISION = 0x0014
    MANUFACTURER_NAME = 0x0015
    ERG_MACHINE_TYPE = 0x0016

    # Control service (CSAFE frames)
    CONTROL_COMMAND = 0x0021
    CONTROL_RESPONSE = 0x0022

    # Rowing service
    GENERAL_STATUS = 0x0031
    ADDITIONAL_STATUS_1 = 0x0032
    ADDITIONAL_STATUS_2 = 0x0033
    SAMPLE_RATE = 0x0034
    STROKE_DATA = 0x0035
    ADDITIONAL_STROKE_DATA = 0x0036
    SPLIT_INTERVAL_DATA = 0x0037
    ADDITIONAL_SPLIT_INTERVAL_DATA = 0x0038
    END_OF_WORKOUT_SUMMARY = 0x0039
    END_OF_WORKOUT_ADDITIONAL_SUMMARY = 0x003A
    HEART_RATE_BELT_INFO = 0x003B
    FORCE_CURVE_DATA = 0x003D
    MULTIPLEXED_INFORMATION = 0x0080

    @classmethod
    def _missing_(cls, value: object) -> Characteristic:
        return cls.UNKNOWN

    @property
    def service(self) -> Service:
        """Service this characteristic belongs to."""
        if self is Characteristic.UNKNOWN:
            return Service.UNKNOWN
        if self.value >= 0x2A00:
            return Service.GAP
        return _SERVICE_BY_GROUP[self.value >> 4]

    @property
    def uuid(self) -> str:
        """Full 128-bit UUID of the characteristic."""
        return characteristic_uuid(self)


def service_uuid(tag: Service | int) -> str:
    """Return the 128-bit UUID for a service tag.

    Raises:
        ValueError: If the tag is not one of the PM5 services.
    """
    service = Service(tag)
    if service is Service.UNKNOWN:
        raise ValueError(f"No UUID for unknown service tag: {tag!r}")
    short = SERVICE_SHORT_UUIDS[service]
    # GAP/GATT live on the SIG base UUID, everything else on the Concept2 base.
    if service in (Service.GAP, Service.GATT):
        return bt16(short)
    return c2_uuid(short)


def characteristic_uuid(characteristic: Characteristic | int) -> str:
    """Return the 128-bit UUID for a characteristic.

    Raises:
        ValueError: If the characteristic is unknown.
    """
    char = Characteristic(characteristic)
    if char is Characteristic.UNKNOWN:
        raise ValueError(f"No UUID for unknown characteristic: {characteristic!r}")
    if char.service is Service.GAP:
        return bt16(char.value)
    return c2_uuid(char.value)


def resolve_characteristic(identifier: str) -> Characteristic:
    """Resolve a characteristic from a short tag or a full UUID string.

    Accepts ``"0x0031"``, ``"0031"`` and ``"ce060031-43e5-11e4-916c-0800200c9a66"``.
    Anything else resolves to ``Characteristic.UNKNOWN``.
    """
    cleaned = identifier.strip().lower()
    if len(cleaned) == 36:
        char = _characteristic_from_short(cleaned[4:8])
        # The base UUID must match the one the characteristic is defined on.
        if char is not Characteristic.UNKNOWN and char.uuid == cleaned:
            return char
        return Characteristic.UNKNOWN
    return _characteristic_from_short(cleaned.removeprefix("0x"))


def _characteristic_from_short(short: str) -> Characteristic:
    if not 1 <= len(short) <= 4 or any(c not in "0123456789abcdef" for c in short):
        return Characteristic.UNKNOWN
    return Characteristic(int(short, 16))
