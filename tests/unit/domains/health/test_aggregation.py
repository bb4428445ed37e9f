"""Tests for aggregation key resolution and result mapping."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from hcbridge.domains.health.aggregation import (
    AGGREGATE_METRICS,
    TOTAL_CALORIES_ENERGY_TOTAL_KEY,
    AggregationKind,
    coerce_aggregate_value,
    map_aggregate_result,
    resolve_metrics,
)
from hcbridge.domains.health.records import RecordType
from hcbridge.domains.health.units import kilocalories, kilograms


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestResolveMetrics:
    def test_keeps_request_order(self):
        resolved = resolve_metrics(["WeightRecordWeightMax", "StepsRecordCountTotal"])
        assert list(resolved) == ["WeightRecordWeightMax", "StepsRecordCountTotal"]

    def test_unknown_keys_are_skipped(self, caplog):
        resolved = resolve_metrics(["StepsRecordCountTotal", "MoodRecordHappinessAvg"])
        assert list(resolved) == ["StepsRecordCountTotal"]
        assert "MoodRecordHappinessAvg" in caplog.text

    def test_steps_count_alias(self):
        assert AGGREGATE_METRICS["StepsCount"] is AGGREGATE_METRICS["StepsRecordCountTotal"]

    def test_stat_keys_map_kinds(self):
        assert AGGREGATE_METRICS["HeartRateRecordBpmAvg"].kind is AggregationKind.AVERAGE
        assert AGGREGATE_METRICS["HeartRateRecordBpmMin"].kind is AggregationKind.MINIMUM
        assert AGGREGATE_METRICS["HeartRateRecordMeasurementsCount"].kind is AggregationKind.COUNT
        assert AGGREGATE_METRICS["WeightRecordWeightAvg"].record_type is RecordType.WEIGHT

    def test_nutrition_keys(self):
        metric = AGGREGATE_METRICS["NutritionRecordProteinTotal"]
        assert metric.record_type is RecordType.NUTRITION
        assert metric.attribute == "protein"
        assert "NutritionRecordEnergyFromFatTotal" in AGGREGATE_METRICS


class TestCoerceValues:
    def test_total_calories_is_stringified(self):
        assert coerce_aggregate_value(TOTAL_CALORIES_ENERGY_TOTAL_KEY, kilocalories(123.0)) == (
            "123.0 kcal"
        )

    def test_quantity_becomes_float(self):
        assert coerce_aggregate_value("WeightRecordWeightAvg", kilograms(70.5)) == 70.5

    def test_integer_becomes_float(self):
        value = coerce_aggregate_value("StepsRecordCountTotal", 1500)
        assert value == 1500.0
        assert isinstance(value, float)

    def test_duration_in_seconds(self):
        assert coerce_aggregate_value(
            "SleepSessionRecordSleepDurationTotal", timedelta(hours=7)
        ) == 25200.0

    def test_missing_value_is_none(self):
        assert coerce_aggregate_value("StepsRecordCountTotal", None) is None

    def test_missing_total_calories_is_still_a_string(self):
        assert coerce_aggregate_value(TOTAL_CALORIES_ENERGY_TOTAL_KEY, None) == "null"


def test_map_result_in_request_order():
    resolved = resolve_metrics([TOTAL_CALORIES_ENERGY_TOTAL_KEY, "StepsCount", "WeightRecordWeightMin"])
    response = {
        AGGREGATE_METRICS["StepsCount"]: 30,
        AGGREGATE_METRICS[TOTAL_CALORIES_ENERGY_TOTAL_KEY]: kilocalories(123.0),
    }
    result = map_aggregate_result(resolved, response)
    assert list(result.items()) == [
        (TOTAL_CALORIES_ENERGY_TOTAL_KEY, "123.0 kcal"),
        ("StepsCount", 30.0),
        ("WeightRecordWeightMin", None),
    ]


class TestSessionAggregate:
    def test_empty_keys_short_circuit(self, session, store, monkeypatch):
        calls = []

        async def _spy(metrics, time_range):
            calls.append(metrics)
            return {}

        monkeypatch.setattr(store, "aggregate", _spy)
        assert _run(session.aggregate([])) == {}
        assert _run(session.aggregate(["NotAKey"])) == {}
        assert calls == []

    def test_calories_and_steps(self, session, sample_payloads):
        async def _check():
            await session.write_data("TotalCaloriesBurned", [
                sample_payloads[RecordType.TOTAL_CALORIES_BURNED],
                {**sample_payloads[RecordType.TOTAL_CALORIES_BURNED], "energy": 23.0},
            ])
            await session.write_data("Steps", [
                {**sample_payloads[RecordType.STEPS], "count": 10},
                {**sample_payloads[RecordType.STEPS], "count": 20},
            ])
            return await session.aggregate(
                ["TotalCaloriesBurnedRecordEnergyTotal", "StepsCount"]
            )

        result = _run(_check())
        assert list(result) == ["TotalCaloriesBurnedRecordEnergyTotal", "StepsCount"]
        assert result["TotalCaloriesBurnedRecordEnergyTotal"] == "123.0 kcal"
        assert result["StepsCount"] == 30.0

    def test_heart_rate_stats(self, session, sample_payloads):
        async def _check():
            await session.write_data("HeartRate", [sample_payloads[RecordType.HEART_RATE]])
            return await session.aggregate([
                "HeartRateRecordBpmMax",
                "HeartRateRecordBpmMin",
                "HeartRateRecordMeasurementsCount",
            ])

        result = _run(_check())
        assert result == {
            "HeartRateRecordBpmMax": 91.0,
            "HeartRateRecordBpmMin": 72.0,
            "HeartRateRecordMeasurementsCount": 3.0,
        }

    def test_no_data_yields_none(self, session):
        assert _run(session.aggregate(["DistanceRecordDistanceTotal"])) == {
            "DistanceRecordDistanceTotal": None
        }

    def test_total_calories_without_data_with_steps(self, session, sample_payloads):
        async def _check():
            await session.write_data("Steps", [{**sample_payloads[RecordType.STEPS], "count": 1200}])
            return await session.aggregate(
                ["TotalCaloriesBurnedRecordEnergyTotal", "StepsCount"]
            )

        result = _run(_check())
        assert result == {"TotalCaloriesBurnedRecordEnergyTotal": "null", "StepsCount": 1200.0}
        assert isinstance(result["TotalCaloriesBurnedRecordEnergyTotal"], str)
