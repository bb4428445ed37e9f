"""Concrete HealthConnectStore implementations."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from hcbridge.domains.health.aggregation import AggregateMetric, AggregationKind
from hcbridge.domains.health.changes import (
    Change,
    ChangesResponse,
    DeletionChange,
    UpsertionChange,
)
from hcbridge.domains.health.connectors.models import (
    ReadRecordsRequest,
    ReadRecordsResponse,
    SdkStatus,
    TimeRangeFilter,
)
from hcbridge.domains.health.records import (
    ExerciseRoute,
    ExerciseSessionRecord,
    InstantRecord,
    NoRouteData,
    Record,
    RecordType,
    RouteConsentRequired,
    RouteData,
)
from hcbridge.domains.health.units import Quantity

logger = logging.getLogger(__name__)


class InMemoryHealthStore:
    """Process-local stand-in for the platform health store.

    Used for development and tests. Records live in memory only; ids are
    assigned on insert and every insert/delete is appended to a change feed.

    Routes attached to inserted exercise sessions are held back behind a
    consent step: reads report ``RouteConsentRequired`` until the user
    approves a route request (immediately when ``auto_route_consent``).
    """

    def __init__(
        self,
        *,
        status: SdkStatus = SdkStatus.AVAILABLE,
        granted_permissions: set[str] | None = None,
        auto_grant: bool = True,
        auto_route_consent: bool = True,
        changes_page_size: int = 1000,
    ) -> None:
        self._status = status
        self.granted_permissions: set[str] = set(granted_permissions or ())
        self._auto_grant = auto_grant
        self._auto_route_consent = auto_route_consent
        self._changes_page_size = changes_page_size

        self._records: dict[str, Record] = {}
        self._routes: dict[str, ExerciseRoute] = {}
        self._route_consented: set[str] = set()
        self._changes: list[tuple[RecordType, Change]] = []
        self._tokens: dict[str, tuple[int, frozenset[RecordType]]] = {}

        self.permission_requests: list[set[str]] = []
        self.route_requests: list[str] = []
        self.install_page_opens = 0
        self.settings_opens = 0

    # ------------------------------------------------------------------
    # Availability and host screens
    # ------------------------------------------------------------------

    def sdk_status(self) -> SdkStatus:
        return self._status

    def open_install_page(self) -> None:
        self.install_page_opens += 1
        logger.info("Install page requested")

    def open_settings(self) -> None:
        self.settings_opens += 1
        logger.info("Settings screen requested")

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    async def get_granted_permissions(self) -> set[str]:
        return set(self.granted_permissions)

    def launch_permission_request(
        self, permissions: set[str], on_result: Callable[[set[str]], None]
    ) -> None:
        self.permission_requests.append(set(permissions))
        if self._auto_grant:
            self.granted_permissions |= permissions
            asyncio.get_running_loop().call_soon(on_result, set(permissions))

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def read_records(self, request: ReadRecordsRequest) -> ReadRecordsResponse:
        matching = [
            record
            for record in self._records.values()
            if record.record_type is request.record_type
            and _in_range(record, request.time_range)
        ]
        matching.sort(key=_record_time, reverse=not request.ascending_order)

        offset = int(request.page_token) if request.page_token else 0
        end = offset + request.page_size
        page = [self._with_route_state(record) for record in matching[offset:end]]
        next_token = str(end) if end < len(matching) else None
        return ReadRecordsResponse(records=page, page_token=next_token)

    async def read_record(self, record_type: RecordType, record_id: str) -> Record:
        record = self._records.get(record_id)
        if record is None or record.record_type is not record_type:
            raise LookupError(f"No {record_type.record_name} with id {record_id}")
        return self._with_route_state(record)

    def launch_exercise_route_request(
        self, record_id: str, on_result: Callable[[ExerciseRoute | None], None]
    ) -> None:
        self.route_requests.append(record_id)
        if self._auto_route_consent:
            route = self._routes.get(record_id)
            if route is not None:
                self._route_consented.add(record_id)
            asyncio.get_running_loop().call_soon(on_result, route)

    async def insert_records(self, records: list[Record]) -> list[str]:
        now = datetime.now(timezone.utc)
        ids: list[str] = []
        for record in records:
            record_id = record.metadata.id or str(uuid.uuid4())
            metadata = replace(record.metadata, id=record_id, last_modified_time=now)
            stored = replace(record, metadata=metadata)
            if isinstance(stored, ExerciseSessionRecord):
                result = stored.exercise_route_result
                if isinstance(result, RouteData):
                    # Routes written by the caller are released to it without consent.
                    self._routes[record_id] = result.route
                    self._route_consented.add(record_id)
                stored = replace(stored, exercise_route_result=NoRouteData())
            self._records[record_id] = stored
            self._changes.append((stored.record_type, UpsertionChange(record=stored)))
            ids.append(record_id)
        logger.debug("Inserted %d records", len(ids))
        return ids

    def attach_route(self, record_id: str, route: ExerciseRoute) -> None:
        """Attach a route that needs the user's consent before it is released.

        Stands in for a route recorded by another app.
        """
        record = self._records.get(record_id)
        if not isinstance(record, ExerciseSessionRecord):
            raise LookupError(f"No ExerciseSessionRecord with id {record_id}")
        self._routes[record_id] = route
        self._route_consented.discard(record_id)

    async def delete_records(self, record_type: RecordType, time_range: TimeRangeFilter) -> None:
        doomed = [
            record_id
            for record_id, record in self._records.items()
            if record.record_type is record_type and _in_range(record, time_range)
        ]
        for record_id in doomed:
            self._delete(record_id)

    async def delete_records_by_ids(
        self,
        record_type: RecordType,
        record_ids: list[str],
        client_record_ids: list[str],
    ) -> None:
        wanted_ids = set(record_ids)
        wanted_client_ids = set(client_record_ids)
        doomed = [
            record_id
            for record_id, record in self._records.items()
            if record.record_type is record_type
            and (
                record_id in wanted_ids
                or record.metadata.client_record_id in wanted_client_ids
            )
        ]
        for record_id in doomed:
            self._delete(record_id)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    async def aggregate(
        self, metrics: set[AggregateMetric], time_range: TimeRangeFilter
    ) -> dict[AggregateMetric, Any]:
        result: dict[AggregateMetric, Any] = {}
        for metric in metrics:
            values: list[Any] = []
            for record in self._records.values():
                if record.record_type is metric.record_type and _in_range(record, time_range):
                    values.extend(_metric_values(record, metric.attribute))
            value = _reduce(metric.kind, values)
            if value is not None:
                result[metric] = value
        return result

    # ------------------------------------------------------------------
    # Change feed
    # ------------------------------------------------------------------

    async def get_changes_token(self, record_types: set[RecordType]) -> str:
        return self._issue_token(len(self._changes), frozenset(record_types))

    async def get_changes(self, token: str) -> ChangesResponse:
        if token not in self._tokens:
            raise ValueError(f"Unknown changes token {token!r}")
        position, types = self._tokens[token]

        pending = [
            (index, change)
            for index, (record_type, change) in enumerate(self._changes)
            if index >= position and (not types or record_type in types)
        ]
        page = pending[: self._changes_page_size]
        has_more = len(pending) > len(page)
        next_position = page[-1][0] + 1 if has_more else len(self._changes)
        return ChangesResponse(
            changes=[change for _, change in page],
            next_changes_token=self._issue_token(next_position, types),
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _issue_token(self, position: int, types: frozenset[RecordType]) -> str:
        token = uuid.uuid4().hex
        self._tokens[token] = (position, types)
        return token

    def _delete(self, record_id: str) -> None:
        record = self._records.pop(record_id)
        self._routes.pop(record_id, None)
        self._route_consented.discard(record_id)
        self._changes.append((record.record_type, DeletionChange(record_id=record_id)))

    def _with_route_state(self, record: Record) -> Record:
        record_id = record.metadata.id
        if not isinstance(record, ExerciseSessionRecord) or record_id not in self._routes:
            return record
        if record_id in self._route_consented:
            return replace(record, exercise_route_result=RouteData(route=self._routes[record_id]))
        return replace(record, exercise_route_result=RouteConsentRequired())


def _record_time(record: Record) -> datetime:
    if isinstance(record, InstantRecord):
        return record.time
    return record.start_time


def _in_range(record: Record, time_range: TimeRangeFilter) -> bool:
    """Instants fall in ``[start, end)``; intervals must also end by ``end``."""
    if not time_range.start <= _record_time(record) < time_range.end:
        return False
    return isinstance(record, InstantRecord) or record.end_time <= time_range.end


def _metric_values(record: Record, attribute: str) -> list[Any]:
    if attribute == "duration":
        return [record.end_time - record.start_time]
    if attribute.startswith("samples."):
        name = attribute.split(".", 1)[1]
        return [getattr(sample, name) for sample in record.samples]
    value = getattr(record, attribute)
    return [] if value is None else [value]


def _reduce(kind: AggregationKind, values: list[Any]) -> Any:
    if not values:
        return None
    if kind is AggregationKind.COUNT:
        return len(values)

    first = values[0]
    if isinstance(first, Quantity):
        combined = _combine(kind, [value.value for value in values])
        return type(first)(combined, first.unit)
    return _combine(kind, values)


def _combine(kind: AggregationKind, values: list[Any]) -> Any:
    if kind is AggregationKind.MINIMUM:
        return min(values)
    if kind is AggregationKind.MAXIMUM:
        return max(values)
    total = sum(values[1:], values[0])
    if kind is AggregationKind.AVERAGE:
        return total / len(values)
    return total
