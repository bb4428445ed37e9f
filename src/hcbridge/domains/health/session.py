"""Health Connect session: the operations exposed to the host shell.

One session exists per host session. It owns the native store handle and the
two interactive hand-off slots (permission dialog, route consent). Each slot
holds at most one outstanding request; a second request of the same kind is
rejected with :class:`RequestPendingError` instead of replacing the first.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

from hcbridge.domains.health.aggregation import map_aggregate_result, resolve_metrics
from hcbridge.domains.health.changes import encode_changes_response
from hcbridge.domains.health.codec import decode_record, encode_exercise_route, encode_record
from hcbridge.domains.health.connectors import HealthConnectStore
from hcbridge.domains.health.connectors.models import (
    ReadRecordsRequest,
    SdkStatus,
    TimeRangeFilter,
)
from hcbridge.domains.health.errors import (
    HealthConnectError,
    HealthConnectUnavailableError,
    MissingPermissionsError,
    RequestPendingError,
    UnableToOpenHealthConnectAppError,
)
from hcbridge.domains.health.permissions import permissions_for
from hcbridge.domains.health.records import (
    ExerciseRoute,
    ExerciseSessionRecord,
    RouteConsentRequired,
    parse_record_type,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGE_SIZE_MAX_LENGTH = 5000
DEFAULT_LOOKBACK = timedelta(days=1)

# Intents a host receives when the user asks why permissions are needed
PERMISSIONS_RATIONALE_ACTIONS = frozenset({
    "android.intent.action.VIEW_PERMISSION_USAGE",
    "androidx.health.ACTION_SHOW_PERMISSIONS_RATIONALE",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PendingSlot(Generic[T]):
    """Correlates one outstanding interactive request with its callback."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._future: asyncio.Future[T] | None = None

    @property
    def is_pending(self) -> bool:
        return self._future is not None and not self._future.done()

    def open(self) -> asyncio.Future[T]:
        if self.is_pending:
            raise RequestPendingError(self.name)
        self._future = asyncio.get_running_loop().create_future()
        return self._future

    def resolve(self, value: T) -> bool:
        """Deliver the callback result. Returns False when nothing was waiting."""
        future, self._future = self._future, None
        if future is None or future.done():
            logger.warning("Dropping %s result: no request is pending", self.name)
            return False
        future.set_result(value)
        return True

    def clear(self) -> None:
        self._future = None


class HealthConnectSession:
    """Request/response operations over a :class:`HealthConnectStore`.

    Every operation that touches the store first checks availability and
    raises :class:`HealthConnectUnavailableError` before any native call.

    Usage::

        session = HealthConnectSession(store)
        ids = await session.write_data("Steps", [{"startTime": ..., "endTime": ..., "count": 10}])
        page = await session.get_records("Steps")
    """

    def __init__(
        self,
        store: HealthConnectStore,
        *,
        page_size_max: int = PAGE_SIZE_MAX_LENGTH,
        default_lookback: timedelta = DEFAULT_LOOKBACK,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._page_size_max = page_size_max
        self._default_lookback = default_lookback
        self._clock = clock
        self._permission_slot: PendingSlot[set[str]] = PendingSlot("permission")
        self._route_slot: PendingSlot[ExerciseRoute | None] = PendingSlot("exercise route")
        self._show_privacy_policy = False

    # ------------------------------------------------------------------
    # Availability and host screens
    # ------------------------------------------------------------------

    def check_if_supported(self) -> bool:
        return self._store.sdk_status() is not SdkStatus.UNAVAILABLE

    def check_if_health_connect_app_installed(self) -> bool:
        return self._is_api_ready()

    def install_health_connect(self) -> bool:
        try:
            self._store.open_install_page()
        except Exception as exc:
            raise UnableToOpenHealthConnectAppError(str(exc)) from exc
        return True

    def open_health_connect_settings(self) -> bool:
        try:
            self._store.open_settings()
        except Exception as exc:
            raise UnableToOpenHealthConnectAppError(str(exc)) from exc
        return True

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    async def check_permissions(self, types: Iterable[str], read_only: bool = False) -> bool:
        self._require_available()
        required = permissions_for(types, read_only)
        granted = await self._native(self._store.get_granted_permissions())
        return required <= granted

    async def request_permissions(self, types: Iterable[str], read_only: bool = False) -> bool:
        """Show the permission dialog and wait for the host to report back.

        Resolves True when the user granted at least one permission.
        """
        self._require_available()
        permissions = permissions_for(types, read_only)
        pending = self._permission_slot.open()
        try:
            self._store.launch_permission_request(permissions, self.on_permissions_result)
        except Exception as exc:
            self._permission_slot.clear()
            raise UnableToOpenHealthConnectAppError(str(exc)) from exc
        granted = await pending
        return bool(granted)

    def on_permissions_result(self, granted: Iterable[str]) -> bool:
        """Host callback for the permission dialog.

        Returns False when no permission request was waiting.
        """
        return self._permission_slot.resolve(set(granted))

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def get_records(
        self,
        type: str,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        page_size: int | None = None,
        page_token: str | None = None,
        ascending_order: bool = True,
    ) -> dict[str, Any]:
        self._require_available()
        request = ReadRecordsRequest(
            record_type=parse_record_type(type),
            time_range=self._window(start_time, end_time),
            page_size=min(page_size or self._page_size_max, self._page_size_max),
            page_token=page_token,
            ascending_order=ascending_order,
        )
        response = await self._native(self._store.read_records(request))
        return {
            "records": [encode_record(record) for record in response.records],
            "pageToken": response.page_token,
        }

    async def get_record_by_id(self, type: str, record_id: str) -> dict[str, Any]:
        """Read one record. Exercise routes behind a consent gate are fetched
        after the host reports the user's decision via
        :meth:`on_exercise_route_result`.
        """
        self._require_available()
        record_type = parse_record_type(type)
        record = await self._native(self._store.read_record(record_type, record_id))
        encoded = encode_record(record)

        if isinstance(record, ExerciseSessionRecord) and isinstance(
            record.exercise_route_result, RouteConsentRequired
        ):
            pending = self._route_slot.open()
            try:
                self._store.launch_exercise_route_request(record_id, self.on_exercise_route_result)
            except Exception as exc:
                self._route_slot.clear()
                raise UnableToOpenHealthConnectAppError(str(exc)) from exc
            route = await pending
            if route is not None:
                encoded["route"] = encode_exercise_route(route)
            else:
                logger.info("Route for exercise session %s was not released", record_id)
        return encoded

    def on_exercise_route_result(self, route: ExerciseRoute | None) -> bool:
        """Host callback for the route consent dialog (``None`` = refused)."""
        return self._route_slot.resolve(route)

    async def write_data(self, type: str, data: Sequence[Mapping[str, Any]]) -> list[str]:
        """Decode every payload, then insert them in one native call.

        A single malformed payload aborts the whole batch before the insert.
        """
        self._require_available()
        record_type = parse_record_type(type)
        if not data:
            return []
        records = [decode_record(record_type, payload) for payload in data]
        ids = await self._native(self._store.insert_records(records))
        logger.info("Wrote %d %s records", len(ids), record_type.record_name)
        return ids

    async def delete_records_by_time(
        self,
        type: str,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> bool:
        self._require_available()
        record_type = parse_record_type(type)
        await self._native(
            self._store.delete_records(record_type, self._window(start_time, end_time))
        )
        return True

    async def delete_records_by_ids(
        self,
        type: str,
        record_ids: Sequence[str] = (),
        client_record_ids: Sequence[str] = (),
    ) -> bool:
        self._require_available()
        record_type = parse_record_type(type)
        await self._native(
            self._store.delete_records_by_ids(record_type, list(record_ids), list(client_record_ids))
        )
        return True

    # ------------------------------------------------------------------
    # Aggregation and change feed
    # ------------------------------------------------------------------

    async def aggregate(
        self,
        aggregation_keys: Sequence[str],
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> dict[str, float | str | None]:
        self._require_available()
        if not aggregation_keys:
            return {}
        resolved = resolve_metrics(aggregation_keys)
        if not resolved:
            return {}
        response = await self._native(
            self._store.aggregate(set(resolved.values()), self._window(start_time, end_time))
        )
        return map_aggregate_result(resolved, response)

    async def get_changes_token(self, types: Iterable[str]) -> str:
        self._require_available()
        record_types = {parse_record_type(tag) for tag in types}
        return await self._native(self._store.get_changes_token(record_types))

    async def get_changes(self, token: str) -> dict[str, Any]:
        self._require_available()
        response = await self._native(self._store.get_changes(token))
        return encode_changes_response(response)

    # ------------------------------------------------------------------
    # Privacy policy rationale
    # ------------------------------------------------------------------

    def handle_intent(self, action: str | None) -> bool:
        """Record that the host was opened to explain permission usage.

        Returns True when ``action`` is a permission rationale intent.
        """
        if action not in PERMISSIONS_RATIONALE_ACTIONS:
            return False
        self._show_privacy_policy = True
        return True

    def check_if_should_show_privacy_policy(self) -> bool:
        """One-shot: True once after a rationale intent, then False."""
        should_show, self._show_privacy_policy = self._show_privacy_policy, False
        return should_show

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_api_ready(self) -> bool:
        return self._store.sdk_status() is SdkStatus.AVAILABLE

    def _require_available(self) -> None:
        if not self._is_api_ready():
            raise HealthConnectUnavailableError()

    def _window(self, start: datetime | None, end: datetime | None) -> TimeRangeFilter:
        now = self._clock()
        return TimeRangeFilter(
            start=start if start is not None else now - self._default_lookback,
            end=end if end is not None else now,
        )

    async def _native(self, call: Awaitable[T]) -> T:
        """Await a native store call, translating its failures."""
        try:
            return await call
        except PermissionError as exc:
            raise MissingPermissionsError(str(exc)) from exc
        except HealthConnectError:
            raise
        except Exception as exc:
            raise HealthConnectError(str(exc) or type(exc).__name__) from exc
