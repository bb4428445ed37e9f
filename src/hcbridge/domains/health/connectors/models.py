"""Request/response shapes exchanged with the native health store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from hcbridge.domains.health.records import Record, RecordType


class SdkStatus(str, Enum):
    """Availability of the health store on this platform."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    PROVIDER_UPDATE_REQUIRED = "provider_update_required"


@dataclass(frozen=True)
class TimeRangeFilter:
    """Half-open window ``[start, end)``."""

    start: datetime
    end: datetime


@dataclass
class ReadRecordsRequest:
    record_type: RecordType
    time_range: TimeRangeFilter
    page_size: int
    page_token: str | None = None
    ascending_order: bool = True


@dataclass
class ReadRecordsResponse:
    records: list[Record] = field(default_factory=list)
    page_token: str | None = None
