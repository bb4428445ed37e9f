"""Tests for change feed envelopes."""

from __future__ import annotations

import pytest

from hcbridge.domains.health.changes import (
    ChangesResponse,
    DeletionChange,
    UpsertionChange,
    encode_change,
    encode_changes_response,
)
from hcbridge.domains.health.codec import decode_record
from hcbridge.domains.health.errors import UnsupportedTypeError
from hcbridge.domains.health.records import RecordType


def test_upsert_is_keyed_by_record_class_name(sample_payloads):
    record = decode_record(RecordType.STEPS, sample_payloads[RecordType.STEPS])
    encoded = encode_change(UpsertionChange(record=record))
    assert list(encoded) == ["Upsert"]
    assert list(encoded["Upsert"]) == ["StepsRecord"]
    assert encoded["Upsert"]["StepsRecord"]["count"] == 1200


def test_deletion_carries_only_the_id():
    assert encode_change(DeletionChange(record_id="r-9")) == {"Deletion": {"recordId": "r-9"}}


def test_unknown_change_kind_fails_loudly():
    with pytest.raises(UnsupportedTypeError):
        encode_change(object())


def test_response_keeps_order_and_paging_fields(sample_payloads):
    weight = decode_record(RecordType.WEIGHT, sample_payloads[RecordType.WEIGHT])
    response = ChangesResponse(
        changes=[DeletionChange("a"), UpsertionChange(weight), DeletionChange("b")],
        next_changes_token="next-1",
        has_more=True,
        changes_token_expired=False,
    )
    encoded = encode_changes_response(response)
    assert [list(change)[0] for change in encoded["changes"]] == ["Deletion", "Upsert", "Deletion"]
    assert encoded["nextChangesToken"] == "next-1"
    assert encoded["hasMore"] is True
    assert encoded["changesTokenExpired"] is False
