from __future__ import annotations


class RowingBleError(Exception):
    """Base class for rowing-ble errors."""


class DiscoveryError(RowingBleError):
    """Raised when a telemetry source cannot be located or connected."""


class ConnectionLostError(RowingBleError):
    """Raised when a live device disconnects mid-stream."""


class DecodeError(RowingBleError, ValueError):
    """Raised when a payload is structurally invalid.

    Carries enough context to diagnose a malformed capture: the characteristic
    (or record name) being decoded, the byte offset where decoding failed, and
    the expected/actual lengths when the failure is a length violation.
    """

    def __init__(
        self,
        message: str,
        *,
        characteristic: str | None = None,
        offset: int | None = None,
        expected: int | None = None,
        actual: int | None = None,
    ) -> None:
        super().__init__(message)
        self.characteristic = characteristic
        self.offset = offset
        self.expected = expected
        self.actual = actual
