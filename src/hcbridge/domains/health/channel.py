"""Inbound method channel: named calls with loosely-typed arguments.

The host shell sends ``MethodCall(method, arguments)`` and receives exactly
one ``ChannelReply``: success with a result, an error carrying
``(code, message, details)``, or not-implemented for unknown methods.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from hcbridge.domains.health.codec import decode_exercise_route
from hcbridge.domains.health.errors import (
    ERROR_UNKNOWN,
    ArgumentError,
    HealthConnectError,
    RecordDecodeError,
)
from hcbridge.domains.health.session import HealthConnectSession
from hcbridge.domains.health.units import parse_instant

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"
STATUS_NOT_IMPLEMENTED = "not_implemented"


@dataclass
class MethodCall:
    method: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChannelReply:
    status: str
    result: Any = None
    error_code: str | None = None
    error_message: str | None = None
    error_details: Any = None

    @classmethod
    def success(cls, result: Any) -> ChannelReply:
        return cls(status=STATUS_SUCCESS, result=result)

    @classmethod
    def error(cls, code: str, message: str, details: Any = None) -> ChannelReply:
        return cls(
            status=STATUS_ERROR,
            error_code=code,
            error_message=message,
            error_details=details,
        )

    @classmethod
    def not_implemented(cls) -> ChannelReply:
        return cls(status=STATUS_NOT_IMPLEMENTED)

    def to_dict(self) -> dict[str, Any]:
        if self.status == STATUS_SUCCESS:
            return {"status": self.status, "result": self.result}
        if self.status == STATUS_ERROR:
            return {
                "status": self.status,
                "code": self.error_code,
                "message": self.error_message,
                "details": self.error_details,
            }
        return {"status": self.status}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _str_arg(args: Mapping[str, Any], name: str) -> str:
    value = args.get(name)
    if not isinstance(value, str):
        raise ArgumentError(name, "expected a string")
    return value


def _optional_str_arg(args: Mapping[str, Any], name: str) -> str | None:
    if args.get(name) is None:
        return None
    return _str_arg(args, name)


def _bool_arg(args: Mapping[str, Any], name: str, default: bool) -> bool:
    value = args.get(name)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ArgumentError(name, "expected a boolean")
    return value


def _optional_int_arg(args: Mapping[str, Any], name: str) -> int | None:
    value = args.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArgumentError(name, "expected an integer")
    if value <= 0:
        raise ArgumentError(name, "must be positive")
    return value


def _str_list_arg(args: Mapping[str, Any], name: str) -> list[str]:
    value = args.get(name)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ArgumentError(name, "expected a list of strings")
    return value


def _instant_arg(args: Mapping[str, Any], name: str) -> datetime | None:
    value = args.get(name)
    if value is None:
        return None
    try:
        return parse_instant(value, name)
    except RecordDecodeError as exc:
        raise ArgumentError(name, "expected an ISO-8601 instant") from exc


def _data_arg(args: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    value = args.get("data")
    if value is None:
        return []
    if not isinstance(value, list):
        raise ArgumentError("data", "expected a list of record maps")
    return value


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

Handler = Callable[[HealthConnectSession, Mapping[str, Any]], Awaitable[Any]]


async def _check_if_supported(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return session.check_if_supported()


async def _check_if_installed(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return session.check_if_health_connect_app_installed()


async def _install(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return session.install_health_connect()


async def _open_settings(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return session.open_health_connect_settings()


async def _check_permissions(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return await session.check_permissions(
        _str_list_arg(args, "types"), _bool_arg(args, "readOnly", False)
    )


async def _request_permissions(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return await session.request_permissions(
        _str_list_arg(args, "types"), _bool_arg(args, "readOnly", False)
    )


async def _get_records(session: HealthConnectSession, args: Mapping[str, Any]) -> dict[str, Any]:
    return await session.get_records(
        _str_arg(args, "type"),
        start_time=_instant_arg(args, "startTime"),
        end_time=_instant_arg(args, "endTime"),
        page_size=_optional_int_arg(args, "pageSize"),
        page_token=_optional_str_arg(args, "pageToken"),
        ascending_order=_bool_arg(args, "ascendingOrder", True),
    )


async def _get_changes_token(session: HealthConnectSession, args: Mapping[str, Any]) -> str:
    return await session.get_changes_token(_str_list_arg(args, "types"))


async def _get_changes(session: HealthConnectSession, args: Mapping[str, Any]) -> dict[str, Any]:
    return await session.get_changes(_str_arg(args, "token"))


async def _delete_by_time(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return await session.delete_records_by_time(
        _str_arg(args, "type"),
        start_time=_instant_arg(args, "startTime"),
        end_time=_instant_arg(args, "endTime"),
    )


async def _delete_by_ids(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return await session.delete_records_by_ids(
        _str_arg(args, "type"),
        record_ids=_str_list_arg(args, "idList"),
        client_record_ids=_str_list_arg(args, "clientRecordIdsList"),
    )


async def _aggregate(session: HealthConnectSession, args: Mapping[str, Any]) -> dict[str, Any]:
    return await session.aggregate(
        _str_list_arg(args, "aggregationKeys"),
        start_time=_instant_arg(args, "startTime"),
        end_time=_instant_arg(args, "endTime"),
    )


async def _write_data(session: HealthConnectSession, args: Mapping[str, Any]) -> list[str]:
    return await session.write_data(_str_arg(args, "type"), _data_arg(args))


async def _get_record_by_id(session: HealthConnectSession, args: Mapping[str, Any]) -> dict[str, Any]:
    return await session.get_record_by_id(_str_arg(args, "type"), _str_arg(args, "id"))


async def _should_show_privacy_policy(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return session.check_if_should_show_privacy_policy()


# Host callbacks: the embedding shell reports dialog outcomes and launch intents.
async def _on_permissions_result(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return session.on_permissions_result(_str_list_arg(args, "granted"))


async def _on_exercise_route_result(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    raw = args.get("route")
    return session.on_exercise_route_result(None if raw is None else decode_exercise_route(raw))


async def _handle_intent(session: HealthConnectSession, args: Mapping[str, Any]) -> bool:
    return session.handle_intent(_optional_str_arg(args, "action"))


METHODS: dict[str, Handler] = {
    "checkIfSupported": _check_if_supported,
    "checkIfHealthConnectAppInstalled": _check_if_installed,
    "installHealthConnect": _install,
    "openHealthConnectSettings": _open_settings,
    "checkPermissions": _check_permissions,
    "requestPermissions": _request_permissions,
    "getRecords": _get_records,
    "getChangesToken": _get_changes_token,
    "getChanges": _get_changes,
    "deleteRecordsByTime": _delete_by_time,
    "deleteRecordsByIds": _delete_by_ids,
    "aggregate": _aggregate,
    "writeData": _write_data,
    "getRecordById": _get_record_by_id,
    "checkIfShouldShowPrivacyPolicy": _should_show_privacy_policy,
    "onPermissionsResult": _on_permissions_result,
    "onExerciseRouteResult": _on_exercise_route_result,
    "handleIntent": _handle_intent,
}


class HealthConnectChannel:
    """Dispatches method calls to a session and turns outcomes into replies.

    Never raises: every failure is logged and reported as an error reply.
    """

    def __init__(self, session: HealthConnectSession) -> None:
        self.session = session

    async def handle(self, call: MethodCall) -> ChannelReply:
        handler = METHODS.get(call.method)
        if handler is None:
            logger.warning("Unknown channel method %r", call.method)
            return ChannelReply.not_implemented()

        try:
            result = await handler(self.session, call.arguments or {})
        except HealthConnectError as exc:
            logger.warning("%s failed [%s]: %s", call.method, exc.code, exc.message)
            return ChannelReply.error(exc.code, exc.message, exc.details)
        except Exception as exc:
            logger.exception("%s failed unexpectedly", call.method)
            return ChannelReply.error(ERROR_UNKNOWN, str(exc) or type(exc).__name__)
        return ChannelReply.success(result)
