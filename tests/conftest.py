"""Shared test fixtures for Health Connect bridge tests."""

from __future__ import annotations

import copy
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("MEMORY_STORE_AUTO_GRANT", "true")
    monkeypatch.setenv("MEMORY_STORE_AUTO_ROUTE_CONSENT", "true")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from hcbridge.domains.health.connectors.providers import InMemoryHealthStore  # noqa: E402
from hcbridge.domains.health.records import RecordType  # noqa: E402
from hcbridge.domains.health.session import HealthConnectSession  # noqa: E402

# Fixed "now" for sessions under test; sample records fall inside its default window.
FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

_T = "2026-03-01T08:00:00Z"
_T_END = "2026-03-01T08:30:00Z"

_INSTANT = {"time": _T, "zoneOffset": 1}
_INTERVAL = {"startTime": _T, "endTime": _T_END, "startZoneOffset": 1, "endZoneOffset": 1}


def _instant(**fields: Any) -> dict[str, Any]:
    return {**_INSTANT, **fields}


def _interval(**fields: Any) -> dict[str, Any]:
    return {**_INTERVAL, **fields}


def _samples(value_key: str, *values: Any) -> list[dict[str, Any]]:
    return [
        {"time": f"2026-03-01T08:0{index}:00Z", value_key: value}
        for index, value in enumerate(values)
    ]


# One valid payload per record type, keyed by wire tag.
SAMPLE_PAYLOADS: dict[RecordType, dict[str, Any]] = {
    RecordType.ACTIVE_CALORIES_BURNED: _interval(energy=250.5),
    RecordType.BASAL_BODY_TEMPERATURE: _instant(temperature=36.4, measurementLocation=3),
    RecordType.BASAL_METABOLIC_RATE: _instant(basalMetabolicRate=1650.0),
    RecordType.BLOOD_GLUCOSE: _instant(
        level=5.4, specimenSource=2, mealType=1, relationToMeal=3
    ),
    RecordType.BLOOD_PRESSURE: _instant(
        systolic=120.0, diastolic=80.0, bodyPosition=2, measurementLocation=1
    ),
    RecordType.BODY_FAT: _instant(percentage=21.5),
    RecordType.BODY_TEMPERATURE: _instant(temperature=37.1, measurementLocation=5),
    RecordType.BODY_WATER_MASS: _instant(mass=42.0),
    RecordType.BONE_MASS: _instant(mass=3.1),
    RecordType.CERVICAL_MUCUS: _instant(appearance=2, sensation=1),
    RecordType.CYCLING_PEDALING_CADENCE: _interval(
        samples=_samples("revolutionsPerMinute", 80.0, 85.5)
    ),
    RecordType.DISTANCE: _interval(distance=1200.0),
    RecordType.ELEVATION_GAINED: _interval(elevation=35.0),
    RecordType.EXERCISE_SESSION: _interval(exerciseType=56, title="Morning run", notes="easy"),
    RecordType.FLOORS_CLIMBED: _interval(floors=4.0),
    RecordType.HEART_RATE: _interval(samples=_samples("beatsPerMinute", 72, 80, 91)),
    RecordType.HEART_RATE_VARIABILITY: _instant(heartRateVariabilityMillis=42.5),
    RecordType.HEIGHT: _instant(height=1.78),
    RecordType.HYDRATION: _interval(volume=0.5),
    RecordType.INTERMENSTRUAL_BLEEDING: _instant(),
    RecordType.LEAN_BODY_MASS: _instant(mass=58.0),
    RecordType.MENSTRUATION_FLOW: _instant(flow=2),
    RecordType.MENSTRUATION_PERIOD: _interval(),
    RecordType.NUTRITION: _interval(
        mealType=2, name="Lunch", energy=640.0, protein=32.0, totalCarbohydrate=70.0
    ),
    RecordType.OVULATION_TEST: _instant(result=1),
    RecordType.OXYGEN_SATURATION: _instant(percentage=97.0),
    RecordType.POWER: _interval(samples=_samples("power", 180.0, 210.0)),
    RecordType.RESPIRATORY_RATE: _instant(rate=14.0),
    RecordType.RESTING_HEART_RATE: _instant(beatsPerMinute=58),
    RecordType.SEXUAL_ACTIVITY: _instant(protectionUsed=1),
    RecordType.SLEEP_SESSION: _interval(title="Night", notes="restless"),
    RecordType.SPEED: _interval(samples=_samples("speed", 2.5, 3.1)),
    RecordType.STEPS_CADENCE: _interval(samples=_samples("rate", 150.0, 162.0)),
    RecordType.STEPS: _interval(count=1200),
    RecordType.TOTAL_CALORIES_BURNED: _interval(energy=100.0),
    RecordType.VO2_MAX: _instant(vo2MillilitersPerMinuteKilogram=48.2, measurementMethod=1),
    RecordType.WEIGHT: _instant(weight=72.4),
    RecordType.WHEELCHAIR_PUSHES: _interval(count=40),
}


def make_route_payload() -> dict[str, Any]:
    return {
        "locations": [
            {"time": "2026-03-01T08:00:00Z", "latitude": 52.52, "longitude": 13.40},
            {
                "time": "2026-03-01T08:05:00Z",
                "latitude": 52.53,
                "longitude": 13.41,
                "horizontalAccuracy": 4.0,
                "verticalAccuracy": 2.0,
                "altitude": 34.0,
            },
        ]
    }


@pytest.fixture
def sample_payloads() -> dict[RecordType, dict[str, Any]]:
    return copy.deepcopy(SAMPLE_PAYLOADS)


@pytest.fixture
def route_payload() -> dict[str, Any]:
    return make_route_payload()


@pytest.fixture
def store() -> InMemoryHealthStore:
    return InMemoryHealthStore()


@pytest.fixture
def session(store: InMemoryHealthStore) -> HealthConnectSession:
    return HealthConnectSession(store, clock=lambda: FIXED_NOW)
