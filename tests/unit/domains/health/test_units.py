"""Tests for unit quantities and scalar/time coercion."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from hcbridge.domains.health.errors import RecordDecodeError
from hcbridge.domains.health.units import (
    Energy,
    Mass,
    coerce_counter,
    coerce_float,
    coerce_int,
    coerce_str,
    format_instant,
    grams,
    kilocalories,
    kilograms,
    parse_instant,
    zone_offset_from_hours,
    zone_offset_to_hours,
)


class TestQuantities:
    def test_factories_tag_units(self):
        assert kilograms(70.0) == Mass(70.0, "kg")
        assert grams(12.5).unit == "g"
        assert kilocalories(100.0) == Energy(100.0, "kcal")

    def test_str_renders_value_and_unit(self):
        assert str(kilocalories(123.0)) == "123.0 kcal"

    def test_different_units_are_not_equal(self):
        assert kilograms(1.0) != grams(1.0)


class TestScalarCoercion:
    def test_float_accepts_int(self):
        assert coerce_float(3, "x") == 3.0
        assert isinstance(coerce_float(3, "x"), float)

    @pytest.mark.parametrize("value", ["3.0", True, None, [1.0]])
    def test_float_rejects_non_numbers(self, value):
        with pytest.raises(RecordDecodeError) as exc_info:
            coerce_float(value, "energy")
        assert exc_info.value.key == "energy"

    def test_float_rejects_int_too_large(self):
        with pytest.raises(RecordDecodeError) as exc_info:
            coerce_float(10**400, "weight")
        assert exc_info.value.key == "weight"
        assert isinstance(exc_info.value.__cause__, OverflowError)

    def test_int_rejects_float_and_bool(self):
        with pytest.raises(RecordDecodeError):
            coerce_int(1.5, "count")
        with pytest.raises(RecordDecodeError):
            coerce_int(False, "count")

    def test_counter_range(self):
        assert coerce_counter(0, "v") == 0
        assert coerce_counter(2**63 - 1, "v") == 2**63 - 1
        with pytest.raises(RecordDecodeError):
            coerce_counter(-1, "v")
        with pytest.raises(RecordDecodeError):
            coerce_counter(2**63, "v")

    def test_str(self):
        assert coerce_str("abc", "k") == "abc"
        with pytest.raises(RecordDecodeError):
            coerce_str(5, "k")


class TestInstants:
    def test_parse_z_suffix(self):
        assert parse_instant("2026-03-01T08:00:00Z", "t") == datetime(
            2026, 3, 1, 8, 0, tzinfo=timezone.utc
        )

    def test_parse_explicit_offset_normalizes_to_utc(self):
        parsed = parse_instant("2026-03-01T10:00:00+02:00", "t")
        assert parsed == datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_parse_rejects_naive(self):
        with pytest.raises(RecordDecodeError):
            parse_instant("2026-03-01T08:00:00", "t")

    def test_parse_rejects_garbage(self):
        with pytest.raises(RecordDecodeError):
            parse_instant("yesterday", "t")

    @pytest.mark.parametrize("value", ["0001-01-01T00:30:00+01:00", "9999-12-31T23:30:00-01:00"])
    def test_parse_rejects_instant_outside_utc_range(self, value):
        with pytest.raises(RecordDecodeError) as exc_info:
            parse_instant(value, "time")
        assert exc_info.value.key == "time"
        assert isinstance(exc_info.value.__cause__, OverflowError)

    def test_format_uses_z(self):
        moment = datetime(2026, 3, 1, 9, 0, tzinfo=timezone(timedelta(hours=1)))
        assert format_instant(moment) == "2026-03-01T08:00:00Z"


class TestZoneOffsets:
    def test_from_hours(self):
        assert zone_offset_from_hours(-5, "z") == timezone(timedelta(hours=-5))

    def test_out_of_range(self):
        with pytest.raises(RecordDecodeError):
            zone_offset_from_hours(19, "z")

    def test_to_hours_truncates_toward_zero(self):
        assert zone_offset_to_hours(timezone(timedelta(hours=5, minutes=30))) == 5
        assert zone_offset_to_hours(timezone(timedelta(hours=-3, minutes=-30))) == -3
