"""Error taxonomy surfaced to callers of the Health Connect bridge.

Every failure that crosses the channel carries a ``code`` (the wire error
kind), a human-readable message and optional details.
"""

from __future__ import annotations

from typing import Any

ERROR_NOT_AVAILABLE = "NOT_AVAILABLE"
ERROR_MISSING_PERMISSIONS = "MISSING_PERMISSIONS"
ERROR_UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
ERROR_UNKNOWN = "UNKNOWN"
ERROR_UNABLE_TO_OPEN_HEALTH_CONNECT_APP = "UNABLE_TO_OPEN_HEALTH_CONNECT_APP"
ERROR_REQUEST_PENDING = "REQUEST_PENDING"


class HealthConnectError(Exception):
    """Base exception for bridge errors. Defaults to the UNKNOWN kind."""

    code = ERROR_UNKNOWN

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class HealthConnectUnavailableError(HealthConnectError):
    """The health store is not present on this platform/version."""

    code = ERROR_NOT_AVAILABLE

    def __init__(
        self,
        message: str = "The API is not supported.",
        details: Any = "Maybe the Health Connect app is not installed?",
    ) -> None:
        super().__init__(message, details)


class MissingPermissionsError(HealthConnectError):
    """The native store rejected the call for lack of authorization."""

    code = ERROR_MISSING_PERMISSIONS


class UnsupportedTypeError(HealthConnectError):
    """A record type or change kind outside the closed variant set."""

    code = ERROR_UNSUPPORTED_TYPE

    def __init__(self, type_name: str) -> None:
        super().__init__(f"Unsupported type {type_name}", {"type": type_name})
        self.type_name = type_name


class RecordDecodeError(HealthConnectError):
    """A payload field is missing or not coercible to its declared type."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Invalid field '{key}': {reason}", {"field": key})
        self.key = key


class ArgumentError(HealthConnectError):
    """A channel argument is malformed."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid argument '{name}': {reason}", {"argument": name})


class UnableToOpenHealthConnectAppError(HealthConnectError):
    """The host could not launch a Health Connect screen."""

    code = ERROR_UNABLE_TO_OPEN_HEALTH_CONNECT_APP


class RequestPendingError(HealthConnectError):
    """An interactive request of the same kind is already outstanding."""

    code = ERROR_REQUEST_PENDING

    def __init__(self, slot_name: str) -> None:
        super().__init__(
            f"A {slot_name} request is already in progress",
            {"slot": slot_name},
        )
