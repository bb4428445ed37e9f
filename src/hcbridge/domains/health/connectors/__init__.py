"""Health store connectors: the outbound boundary to the native health store."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from hcbridge.domains.health.aggregation import AggregateMetric
from hcbridge.domains.health.changes import ChangesResponse
from hcbridge.domains.health.connectors.models import (
    ReadRecordsRequest,
    ReadRecordsResponse,
    SdkStatus,
    TimeRangeFilter,
)
from hcbridge.domains.health.records import ExerciseRoute, Record, RecordType


@runtime_checkable
class HealthConnectStore(Protocol):
    """Abstract interface to the platform health store.

    Authorization failures are raised as :class:`PermissionError`. The two
    ``launch_*`` methods start an interactive step on the host and report its
    outcome later through ``on_result``.
    """

    def sdk_status(self) -> SdkStatus:
        """Whether the store is present and usable."""
        ...

    def open_install_page(self) -> None:
        """Send the user to the store's install/onboarding page."""
        ...

    def open_settings(self) -> None:
        """Open the store's own settings screen."""
        ...

    async def get_granted_permissions(self) -> set[str]:
        ...

    def launch_permission_request(
        self, permissions: set[str], on_result: Callable[[set[str]], None]
    ) -> None:
        """Show the permission dialog; ``on_result`` receives the granted set."""
        ...

    async def read_records(self, request: ReadRecordsRequest) -> ReadRecordsResponse:
        ...

    async def read_record(self, record_type: RecordType, record_id: str) -> Record:
        ...

    def launch_exercise_route_request(
        self, record_id: str, on_result: Callable[[ExerciseRoute | None], None]
    ) -> None:
        """Ask the user to release a route; ``on_result`` gets ``None`` on refusal."""
        ...

    async def insert_records(self, records: list[Record]) -> list[str]:
        """Insert records and return their new ids, in input order."""
        ...

    async def delete_records(self, record_type: RecordType, time_range: TimeRangeFilter) -> None:
        ...

    async def delete_records_by_ids(
        self,
        record_type: RecordType,
        record_ids: list[str],
        client_record_ids: list[str],
    ) -> None:
        ...

    async def aggregate(
        self, metrics: set[AggregateMetric], time_range: TimeRangeFilter
    ) -> dict[AggregateMetric, Any]:
        """Aggregate values keyed by metric; metrics without data may be absent."""
        ...

    async def get_changes_token(self, record_types: set[RecordType]) -> str:
        ...

    async def get_changes(self, token: str) -> ChangesResponse:
        ...
