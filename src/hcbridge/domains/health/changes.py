"""Change feed envelopes and their wire encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from hcbridge.domains.health.codec import encode_record
from hcbridge.domains.health.errors import UnsupportedTypeError
from hcbridge.domains.health.records import Record


@dataclass
class UpsertionChange:
    """A record was inserted or updated."""

    record: Record


@dataclass
class DeletionChange:
    """A record was deleted; only its id survives."""

    record_id: str


Change = Union[UpsertionChange, DeletionChange]


@dataclass
class ChangesResponse:
    """One page of the change feed, as returned by the native store."""

    changes: list[Change] = field(default_factory=list)
    next_changes_token: str = ""
    has_more: bool = False
    changes_token_expired: bool = False


def encode_change(change: Any) -> dict[str, Any]:
    """Encode one change as ``{"Upsert": {"<Type>Record": {...}}}`` or ``{"Deletion": {...}}``."""
    if isinstance(change, UpsertionChange):
        return {"Upsert": {change.record.record_type.record_name: encode_record(change.record)}}
    if isinstance(change, DeletionChange):
        return {"Deletion": {"recordId": change.record_id}}
    raise UnsupportedTypeError(type(change).__name__)


def encode_changes_response(response: ChangesResponse) -> dict[str, Any]:
    """Encode a feed page, keeping feed order and pagination fields unchanged."""
    return {
        "changes": [encode_change(change) for change in response.changes],
        "nextChangesToken": response.next_changes_token,
        "hasMore": response.has_more,
        "changesTokenExpired": response.changes_token_expired,
    }
