"""Aggregation key mapper.

Maps wire aggregation keys (e.g. ``StepsRecordCountTotal``) to the native
metric they name, and coerces the store's aggregate values back into the
scalar type the caller expects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any

from hcbridge.domains.health.records import NUTRIENT_ENERGY_FIELDS, NUTRIENT_MASS_FIELDS, RecordType
from hcbridge.domains.health.units import Quantity

logger = logging.getLogger(__name__)

# Returns a string instead of a float. Kept as-is for wire compatibility;
# see DESIGN.md (open questions).
TOTAL_CALORIES_ENERGY_TOTAL_KEY = "TotalCaloriesBurnedRecordEnergyTotal"


class AggregationKind(str, Enum):
    TOTAL = "total"
    AVERAGE = "avg"
    MINIMUM = "min"
    MAXIMUM = "max"
    COUNT = "count"


@dataclass(frozen=True)
class AggregateMetric:
    """Native metric descriptor handed to the health store.

    ``attribute`` names the record attribute the metric reads. ``samples.<x>``
    reads attribute ``x`` of every sample; ``duration`` is ``end - start``.
    """

    name: str
    record_type: RecordType
    kind: AggregationKind
    attribute: str


def _metric(record_type: RecordType, metric: str, kind: AggregationKind, attribute: str) -> AggregateMetric:
    return AggregateMetric(f"{record_type.record_name}.{metric}", record_type, kind, attribute)


def _total(record_type: RecordType, metric: str, attribute: str) -> AggregateMetric:
    return _metric(record_type, metric, AggregationKind.TOTAL, attribute)


def _stats(
    record_type: RecordType, prefix: str, attribute: str
) -> dict[str, AggregateMetric]:
    """``<prefix>Avg/Max/Min`` keys for one attribute."""
    upper = "".join("_" + c if c.isupper() else c.upper() for c in prefix).lstrip("_")
    name = record_type.record_name
    return {
        f"{name}{prefix}Avg": _metric(record_type, f"{upper}_AVG", AggregationKind.AVERAGE, attribute),
        f"{name}{prefix}Max": _metric(record_type, f"{upper}_MAX", AggregationKind.MAXIMUM, attribute),
        f"{name}{prefix}Min": _metric(record_type, f"{upper}_MIN", AggregationKind.MINIMUM, attribute),
    }


_STEPS_COUNT_TOTAL = _total(RecordType.STEPS, "COUNT_TOTAL", "count")

AGGREGATE_METRICS: dict[str, AggregateMetric] = {
    "ActiveCaloriesBurnedRecordActiveCaloriesTotal": _total(
        RecordType.ACTIVE_CALORIES_BURNED, "ACTIVE_CALORIES_TOTAL", "energy"
    ),
    "BasalMetabolicRateRecordBasalCaloriesTotal": _total(
        RecordType.BASAL_METABOLIC_RATE, "BASAL_CALORIES_TOTAL", "basal_metabolic_rate"
    ),
    **_stats(RecordType.CYCLING_PEDALING_CADENCE, "Rpm", "samples.revolutions_per_minute"),
    "DistanceRecordDistanceTotal": _total(RecordType.DISTANCE, "DISTANCE_TOTAL", "distance"),
    "ElevationGainedRecordElevationGainedTotal": _total(
        RecordType.ELEVATION_GAINED, "ELEVATION_GAINED_TOTAL", "elevation"
    ),
    "ExerciseSessionRecordExerciseDurationTotal": _total(
        RecordType.EXERCISE_SESSION, "EXERCISE_DURATION_TOTAL", "duration"
    ),
    "FloorsClimbedRecordFloorsClimbedTotal": _total(
        RecordType.FLOORS_CLIMBED, "FLOORS_CLIMBED_TOTAL", "floors"
    ),
    **_stats(RecordType.HEART_RATE, "Bpm", "samples.beats_per_minute"),
    "HeartRateRecordMeasurementsCount": _metric(
        RecordType.HEART_RATE, "MEASUREMENTS_COUNT", AggregationKind.COUNT, "samples.beats_per_minute"
    ),
    **_stats(RecordType.HEIGHT, "Height", "height"),
    "HydrationRecordVolumeTotal": _total(RecordType.HYDRATION, "VOLUME_TOTAL", "volume"),
    **{
        f"NutritionRecord{key[0].upper()}{key[1:]}Total": _total(
            RecordType.NUTRITION, f"{attr.upper()}_TOTAL", attr
        )
        for attr, key in NUTRIENT_ENERGY_FIELDS + NUTRIENT_MASS_FIELDS
    },
    **_stats(RecordType.POWER, "Power", "samples.power"),
    **_stats(RecordType.RESTING_HEART_RATE, "Bpm", "beats_per_minute"),
    "SleepSessionRecordSleepDurationTotal": _total(
        RecordType.SLEEP_SESSION, "SLEEP_DURATION_TOTAL", "duration"
    ),
    **_stats(RecordType.SPEED, "Speed", "samples.speed"),
    **_stats(RecordType.STEPS_CADENCE, "Rate", "samples.rate"),
    "StepsRecordCountTotal": _STEPS_COUNT_TOTAL,
    "StepsCount": _STEPS_COUNT_TOTAL,
    TOTAL_CALORIES_ENERGY_TOTAL_KEY: _total(
        RecordType.TOTAL_CALORIES_BURNED, "ENERGY_TOTAL", "energy"
    ),
    **_stats(RecordType.WEIGHT, "Weight", "weight"),
    "WheelchairPushesRecordCountTotal": _total(
        RecordType.WHEELCHAIR_PUSHES, "COUNT_TOTAL", "count"
    ),
}


def resolve_metrics(keys: Iterable[str]) -> dict[str, AggregateMetric]:
    """Map keys to metrics in request order, skipping unknown keys."""
    resolved: dict[str, AggregateMetric] = {}
    for key in keys:
        metric = AGGREGATE_METRICS.get(key)
        if metric is None:
            logger.warning("Skipping unknown aggregation key %r", key)
            continue
        resolved[key] = metric
    return resolved


def coerce_aggregate_value(key: str, value: Any) -> float | str | None:
    """Coerce one native aggregate value to its wire scalar.

    Every key yields a float (or None without data) except
    ``TotalCaloriesBurnedRecordEnergyTotal``, which is always a string and
    renders a missing value as ``"null"``.
    """
    if key == TOTAL_CALORIES_ENERGY_TOTAL_KEY:
        return "null" if value is None else str(value)
    if value is None:
        return None
    if isinstance(value, Quantity):
        return float(value.value)
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def map_aggregate_result(
    resolved: Mapping[str, AggregateMetric],
    response: Mapping[AggregateMetric, Any],
) -> dict[str, float | str | None]:
    """Build the ordered key -> scalar result from a native aggregate response."""
    return {
        key: coerce_aggregate_value(key, response.get(metric))
        for key, metric in resolved.items()
    }
