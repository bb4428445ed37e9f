"""Typed Health Connect record variants.

Each variant is either an instant record (``time`` + ``zone_offset``) or an
interval record (start/end time and zone offsets), never both. The shape is
fixed by the variant's :class:`RecordType`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Union

from hcbridge.domains.health.errors import UnsupportedTypeError
from hcbridge.domains.health.metadata import Metadata
from hcbridge.domains.health.units import (
    BloodGlucose,
    Energy,
    Length,
    Mass,
    Percentage,
    Power,
    Pressure,
    Temperature,
    Velocity,
    Volume,
)


class RecordType(str, Enum):
    """Wire tag of every supported record variant."""

    ACTIVE_CALORIES_BURNED = "ActiveCaloriesBurned"
    BASAL_BODY_TEMPERATURE = "BasalBodyTemperature"
    BASAL_METABOLIC_RATE = "BasalMetabolicRate"
    BLOOD_GLUCOSE = "BloodGlucose"
    BLOOD_PRESSURE = "BloodPressure"
    BODY_FAT = "BodyFat"
    BODY_TEMPERATURE = "BodyTemperature"
    BODY_WATER_MASS = "BodyWaterMass"
    BONE_MASS = "BoneMass"
    CERVICAL_MUCUS = "CervicalMucus"
    CYCLING_PEDALING_CADENCE = "CyclingPedalingCadence"
    DISTANCE = "Distance"
    ELEVATION_GAINED = "ElevationGained"
    EXERCISE_SESSION = "ExerciseSession"
    FLOORS_CLIMBED = "FloorsClimbed"
    HEART_RATE = "HeartRate"
    HEART_RATE_VARIABILITY = "HeartRateVariabilityRmssd"
    HEIGHT = "Height"
    HYDRATION = "Hydration"
    INTERMENSTRUAL_BLEEDING = "IntermenstrualBleeding"
    LEAN_BODY_MASS = "LeanBodyMass"
    MENSTRUATION_FLOW = "MenstruationFlow"
    MENSTRUATION_PERIOD = "MenstruationPeriod"
    NUTRITION = "Nutrition"
    OVULATION_TEST = "OvulationTest"
    OXYGEN_SATURATION = "OxygenSaturation"
    POWER = "Power"
    RESPIRATORY_RATE = "RespiratoryRate"
    RESTING_HEART_RATE = "RestingHeartRate"
    SEXUAL_ACTIVITY = "SexualActivity"
    SLEEP_SESSION = "SleepSession"
    SPEED = "Speed"
    STEPS_CADENCE = "StepsCadence"
    STEPS = "Steps"
    TOTAL_CALORIES_BURNED = "TotalCaloriesBurned"
    VO2_MAX = "Vo2Max"
    WEIGHT = "Weight"
    WHEELCHAIR_PUSHES = "WheelchairPushes"

    @property
    def record_name(self) -> str:
        """Native class name, e.g. ``StepsRecord``."""
        return f"{self.value}Record"


def parse_record_type(tag: object) -> RecordType:
    """Resolve a wire tag, failing loudly on anything outside the closed set."""
    try:
        return RecordType(tag)
    except ValueError:
        raise UnsupportedTypeError(str(tag)) from None


# ---------------------------------------------------------------------------
# Base shapes
# ---------------------------------------------------------------------------

@dataclass(kw_only=True)
class Record:
    record_type: ClassVar[RecordType]

    metadata: Metadata = field(default_factory=Metadata)


@dataclass(kw_only=True)
class InstantRecord(Record):
    time: datetime
    zone_offset: timezone | None = None


@dataclass(kw_only=True)
class IntervalRecord(Record):
    start_time: datetime
    end_time: datetime
    start_zone_offset: timezone | None = None
    end_zone_offset: timezone | None = None


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------

@dataclass
class HeartRateSample:
    time: datetime
    beats_per_minute: int


@dataclass
class SpeedSample:
    time: datetime
    speed: Velocity


@dataclass
class PowerSample:
    time: datetime
    power: Power


@dataclass
class StepsCadenceSample:
    time: datetime
    rate: float  # steps/minute


@dataclass
class CyclingPedalingCadenceSample:
    time: datetime
    revolutions_per_minute: float


# ---------------------------------------------------------------------------
# Exercise route
# ---------------------------------------------------------------------------

@dataclass
class Location:
    time: datetime
    latitude: float
    longitude: float
    horizontal_accuracy: Length | None = None
    vertical_accuracy: Length | None = None
    altitude: Length | None = None


@dataclass
class ExerciseRoute:
    locations: list[Location] = field(default_factory=list)


@dataclass
class RouteData:
    """The route is available and attached."""

    route: ExerciseRoute


@dataclass
class RouteConsentRequired:
    """The route exists but the user must approve its release."""


@dataclass
class NoRouteData:
    """The session has no route."""


ExerciseRouteResult = Union[RouteData, RouteConsentRequired, NoRouteData]


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@dataclass(kw_only=True)
class ActiveCaloriesBurnedRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.ACTIVE_CALORIES_BURNED

    energy: Energy


@dataclass(kw_only=True)
class BasalBodyTemperatureRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.BASAL_BODY_TEMPERATURE

    temperature: Temperature
    measurement_location: int = 0


@dataclass(kw_only=True)
class BasalMetabolicRateRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.BASAL_METABOLIC_RATE

    basal_metabolic_rate: Power


@dataclass(kw_only=True)
class BloodGlucoseRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.BLOOD_GLUCOSE

    level: BloodGlucose
    specimen_source: int = 0
    meal_type: int = 0
    relation_to_meal: int = 0


@dataclass(kw_only=True)
class BloodPressureRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.BLOOD_PRESSURE

    systolic: Pressure
    diastolic: Pressure
    body_position: int = 0
    measurement_location: int = 0


@dataclass(kw_only=True)
class BodyFatRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.BODY_FAT

    percentage: Percentage


@dataclass(kw_only=True)
class BodyTemperatureRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.BODY_TEMPERATURE

    temperature: Temperature
    measurement_location: int = 0


@dataclass(kw_only=True)
class BodyWaterMassRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.BODY_WATER_MASS

    mass: Mass


@dataclass(kw_only=True)
class BoneMassRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.BONE_MASS

    mass: Mass


@dataclass(kw_only=True)
class CervicalMucusRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.CERVICAL_MUCUS

    appearance: int = 0
    sensation: int = 0


@dataclass(kw_only=True)
class CyclingPedalingCadenceRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.CYCLING_PEDALING_CADENCE

    samples: list[CyclingPedalingCadenceSample] = field(default_factory=list)


@dataclass(kw_only=True)
class DistanceRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.DISTANCE

    distance: Length


@dataclass(kw_only=True)
class ElevationGainedRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.ELEVATION_GAINED

    elevation: Length


@dataclass(kw_only=True)
class ExerciseSessionRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.EXERCISE_SESSION

    exercise_type: int
    title: str | None = None
    notes: str | None = None
    exercise_route_result: ExerciseRouteResult = field(default_factory=NoRouteData)


@dataclass(kw_only=True)
class FloorsClimbedRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.FLOORS_CLIMBED

    floors: float


@dataclass(kw_only=True)
class HeartRateRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.HEART_RATE

    samples: list[HeartRateSample] = field(default_factory=list)


@dataclass(kw_only=True)
class HeartRateVariabilityRmssdRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.HEART_RATE_VARIABILITY

    heart_rate_variability_millis: float


@dataclass(kw_only=True)
class HeightRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.HEIGHT

    height: Length


@dataclass(kw_only=True)
class HydrationRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.HYDRATION

    volume: Volume


@dataclass(kw_only=True)
class IntermenstrualBleedingRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.INTERMENSTRUAL_BLEEDING


@dataclass(kw_only=True)
class LeanBodyMassRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.LEAN_BODY_MASS

    mass: Mass


@dataclass(kw_only=True)
class MenstruationFlowRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.MENSTRUATION_FLOW

    flow: int = 0


@dataclass(kw_only=True)
class MenstruationPeriodRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.MENSTRUATION_PERIOD


# (attribute, payload key) for the nutrient masses, all in grams
NUTRIENT_MASS_FIELDS: tuple[tuple[str, str], ...] = (
    ("biotin", "biotin"),
    ("caffeine", "caffeine"),
    ("calcium", "calcium"),
    ("chloride", "chloride"),
    ("cholesterol", "cholesterol"),
    ("chromium", "chromium"),
    ("copper", "copper"),
    ("dietary_fiber", "dietaryFiber"),
    ("folate", "folate"),
    ("folic_acid", "folicAcid"),
    ("iodine", "iodine"),
    ("iron", "iron"),
    ("magnesium", "magnesium"),
    ("manganese", "manganese"),
    ("molybdenum", "molybdenum"),
    ("monounsaturated_fat", "monounsaturatedFat"),
    ("niacin", "niacin"),
    ("pantothenic_acid", "pantothenicAcid"),
    ("phosphorus", "phosphorus"),
    ("polyunsaturated_fat", "polyunsaturatedFat"),
    ("potassium", "potassium"),
    ("protein", "protein"),
    ("riboflavin", "riboflavin"),
    ("saturated_fat", "saturatedFat"),
    ("selenium", "selenium"),
    ("sodium", "sodium"),
    ("sugar", "sugar"),
    ("thiamin", "thiamin"),
    ("total_carbohydrate", "totalCarbohydrate"),
    ("total_fat", "totalFat"),
    ("trans_fat", "transFat"),
    ("unsaturated_fat", "unsaturatedFat"),
    ("vitamin_a", "vitaminA"),
    ("vitamin_b12", "vitaminB12"),
    ("vitamin_b6", "vitaminB6"),
    ("vitamin_c", "vitaminC"),
    ("vitamin_d", "vitaminD"),
    ("vitamin_e", "vitaminE"),
    ("vitamin_k", "vitaminK"),
    ("zinc", "zinc"),
)

# (attribute, payload key) for the nutrient energies, in kilocalories
NUTRIENT_ENERGY_FIELDS: tuple[tuple[str, str], ...] = (
    ("energy", "energy"),
    ("energy_from_fat", "energyFromFat"),
)


@dataclass(kw_only=True)
class NutritionRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.NUTRITION

    meal_type: int
    name: str | None = None
    energy: Energy | None = None
    energy_from_fat: Energy | None = None
    biotin: Mass | None = None
    caffeine: Mass | None = None
    calcium: Mass | None = None
    chloride: Mass | None = None
    cholesterol: Mass | None = None
    chromium: Mass | None = None
    copper: Mass | None = None
    dietary_fiber: Mass | None = None
    folate: Mass | None = None
    folic_acid: Mass | None = None
    iodine: Mass | None = None
    iron: Mass | None = None
    magnesium: Mass | None = None
    manganese: Mass | None = None
    molybdenum: Mass | None = None
    monounsaturated_fat: Mass | None = None
    niacin: Mass | None = None
    pantothenic_acid: Mass | None = None
    phosphorus: Mass | None = None
    polyunsaturated_fat: Mass | None = None
    potassium: Mass | None = None
    protein: Mass | None = None
    riboflavin: Mass | None = None
    saturated_fat: Mass | None = None
    selenium: Mass | None = None
    sodium: Mass | None = None
    sugar: Mass | None = None
    thiamin: Mass | None = None
    total_carbohydrate: Mass | None = None
    total_fat: Mass | None = None
    trans_fat: Mass | None = None
    unsaturated_fat: Mass | None = None
    vitamin_a: Mass | None = None
    vitamin_b12: Mass | None = None
    vitamin_b6: Mass | None = None
    vitamin_c: Mass | None = None
    vitamin_d: Mass | None = None
    vitamin_e: Mass | None = None
    vitamin_k: Mass | None = None
    zinc: Mass | None = None


@dataclass(kw_only=True)
class OvulationTestRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.OVULATION_TEST

    result: int


@dataclass(kw_only=True)
class OxygenSaturationRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.OXYGEN_SATURATION

    percentage: Percentage


@dataclass(kw_only=True)
class PowerRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.POWER

    samples: list[PowerSample] = field(default_factory=list)


@dataclass(kw_only=True)
class RespiratoryRateRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.RESPIRATORY_RATE

    rate: float


@dataclass(kw_only=True)
class RestingHeartRateRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.RESTING_HEART_RATE

    beats_per_minute: int


@dataclass(kw_only=True)
class SexualActivityRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.SEXUAL_ACTIVITY

    protection_used: int = 0


@dataclass(kw_only=True)
class SleepSessionRecord(IntervalRecord):
    """Sleep session envelope. Sleep stages are not modeled."""

    record_type: ClassVar[RecordType] = RecordType.SLEEP_SESSION

    title: str | None = None
    notes: str | None = None


@dataclass(kw_only=True)
class SpeedRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.SPEED

    samples: list[SpeedSample] = field(default_factory=list)


@dataclass(kw_only=True)
class StepsCadenceRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.STEPS_CADENCE

    samples: list[StepsCadenceSample] = field(default_factory=list)


@dataclass(kw_only=True)
class StepsRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.STEPS

    count: int


@dataclass(kw_only=True)
class TotalCaloriesBurnedRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.TOTAL_CALORIES_BURNED

    energy: Energy


@dataclass(kw_only=True)
class Vo2MaxRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.VO2_MAX

    vo2_milliliters_per_minute_kilogram: float
    measurement_method: int = 0


@dataclass(kw_only=True)
class WeightRecord(InstantRecord):
    record_type: ClassVar[RecordType] = RecordType.WEIGHT

    weight: Mass


@dataclass(kw_only=True)
class WheelchairPushesRecord(IntervalRecord):
    record_type: ClassVar[RecordType] = RecordType.WHEELCHAIR_PUSHES

    count: int
