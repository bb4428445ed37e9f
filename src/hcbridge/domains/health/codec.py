"""Record codec: payload map <-> typed record.

The codec is a lookup table keyed by :class:`RecordType`. Each entry lists
the variant's fields as :class:`FieldCodec` objects: one decode step and one
encode step per field, with explicit required/optional marking. Any payload
that is malformed surfaces as a single error kind, :class:`RecordDecodeError`.

Usage::

    record = decode_record("Steps", {"startTime": "...", "endTime": "...", "count": 120})
    payload = encode_record(record)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from hcbridge.domains.health.errors import RecordDecodeError
from hcbridge.domains.health.metadata import decode_metadata, encode_metadata
from hcbridge.domains.health.records import (
    NUTRIENT_ENERGY_FIELDS,
    NUTRIENT_MASS_FIELDS,
    ActiveCaloriesBurnedRecord,
    BasalBodyTemperatureRecord,
    BasalMetabolicRateRecord,
    BloodGlucoseRecord,
    BloodPressureRecord,
    BodyFatRecord,
    BodyTemperatureRecord,
    BodyWaterMassRecord,
    BoneMassRecord,
    CervicalMucusRecord,
    CyclingPedalingCadenceRecord,
    CyclingPedalingCadenceSample,
    DistanceRecord,
    ElevationGainedRecord,
    ExerciseRoute,
    ExerciseSessionRecord,
    FloorsClimbedRecord,
    HeartRateRecord,
    HeartRateSample,
    HeartRateVariabilityRmssdRecord,
    HeightRecord,
    HydrationRecord,
    InstantRecord,
    IntermenstrualBleedingRecord,
    IntervalRecord,
    LeanBodyMassRecord,
    Location,
    MenstruationFlowRecord,
    MenstruationPeriodRecord,
    NoRouteData,
    NutritionRecord,
    OvulationTestRecord,
    OxygenSaturationRecord,
    PowerRecord,
    PowerSample,
    Record,
    RecordType,
    RespiratoryRateRecord,
    RestingHeartRateRecord,
    RouteData,
    SexualActivityRecord,
    SleepSessionRecord,
    SpeedRecord,
    SpeedSample,
    StepsCadenceRecord,
    StepsCadenceSample,
    StepsRecord,
    TotalCaloriesBurnedRecord,
    Vo2MaxRecord,
    WeightRecord,
    WheelchairPushesRecord,
    parse_record_type,
)
from hcbridge.domains.health.units import (
    celsius,
    coerce_float,
    coerce_int,
    coerce_str,
    format_instant,
    grams,
    kilocalories,
    kilocalories_per_day,
    kilograms,
    liters,
    meters,
    meters_per_second,
    millimeters_of_mercury,
    millimoles_per_liter,
    parse_instant,
    percent,
    watts,
    zone_offset_from_hours,
    zone_offset_to_hours,
)

# Returned by an encode step to leave the key out of the payload entirely.
OMIT = object()


@dataclass(frozen=True)
class ValueCodec:
    """How one kind of value is read from and written to a payload."""

    decode: Callable[[Any, str], Any]
    encode: Callable[[Any], Any]


@dataclass(frozen=True)
class FieldCodec:
    """One record attribute bound to its payload key."""

    attr: str
    key: str
    value: ValueCodec
    required: bool = True
    default: Callable[[], Any] = lambda: None

    def read(self, payload: Mapping[str, Any], path: str = "") -> Any:
        raw = payload.get(self.key)
        if raw is None:
            if self.required:
                raise RecordDecodeError(path + self.key, "required field is missing")
            return self.default()
        return self.value.decode(raw, path + self.key)

    def write(self, obj: Any, out: dict[str, Any]) -> None:
        value = getattr(obj, self.attr)
        encoded = None if value is None else self.value.encode(value)
        if encoded is not OMIT:
            out[self.key] = encoded


@dataclass(frozen=True)
class RecordSchema:
    """Decode/encode pair for one record variant."""

    record_cls: type[Record]
    fields: tuple[FieldCodec, ...]

    def decode(self, payload: Mapping[str, Any]) -> Record:
        kwargs = {f.attr: f.read(payload) for f in self.fields}
        kwargs["metadata"] = decode_metadata(payload.get("metadata"))
        return self.record_cls(**kwargs)

    def encode(self, record: Record) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in self.fields:
            f.write(record, out)
        out["metadata"] = encode_metadata(record.metadata)
        return out


# ---------------------------------------------------------------------------
# Value codecs
# ---------------------------------------------------------------------------

def _quantity(factory: Callable[[float], Any]) -> ValueCodec:
    return ValueCodec(
        decode=lambda raw, key: factory(coerce_float(raw, key)),
        encode=lambda quantity: quantity.value,
    )


def _identity(value: Any) -> Any:
    return value


INSTANT = ValueCodec(decode=parse_instant, encode=format_instant)
ZONE_OFFSET = ValueCodec(decode=zone_offset_from_hours, encode=zone_offset_to_hours)
FLOAT = ValueCodec(decode=coerce_float, encode=_identity)
INT = ValueCodec(decode=coerce_int, encode=_identity)
STR = ValueCodec(decode=coerce_str, encode=_identity)

MASS_KG = _quantity(kilograms)
MASS_G = _quantity(grams)
LENGTH_M = _quantity(meters)
ENERGY_KCAL = _quantity(kilocalories)
TEMPERATURE_C = _quantity(celsius)
PRESSURE_MMHG = _quantity(millimeters_of_mercury)
VOLUME_L = _quantity(liters)
POWER_KCAL_PER_DAY = _quantity(kilocalories_per_day)
POWER_W = _quantity(watts)
BLOOD_GLUCOSE_MMOL = _quantity(millimoles_per_liter)
VELOCITY_MPS = _quantity(meters_per_second)
PERCENTAGE = _quantity(percent)


def _nested(cls: type, fields: tuple[FieldCodec, ...]) -> ValueCodec:
    """Codec for a map-shaped value (a sample, a route location)."""

    def decode(raw: Any, key: str) -> Any:
        if not isinstance(raw, Mapping):
            raise RecordDecodeError(key, f"expected a map, got {type(raw).__name__}")
        return cls(**{f.attr: f.read(raw, key + ".") for f in fields})

    def encode(obj: Any) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields:
            f.write(obj, out)
        return out

    return ValueCodec(decode=decode, encode=encode)


def _sequence(item: ValueCodec) -> ValueCodec:
    """Codec for an ordered list; order is preserved, not validated."""

    def decode(raw: Any, key: str) -> list[Any]:
        if not isinstance(raw, (list, tuple)):
            raise RecordDecodeError(key, f"expected a list, got {type(raw).__name__}")
        return [item.decode(element, f"{key}[{index}]") for index, element in enumerate(raw)]

    def encode(values: list[Any]) -> list[Any]:
        return [item.encode(value) for value in values]

    return ValueCodec(decode=decode, encode=encode)


def _samples(sample_cls: type, value_field: FieldCodec) -> FieldCodec:
    sample = _nested(sample_cls, (FieldCodec("time", "time", INSTANT), value_field))
    return FieldCodec("samples", "samples", _sequence(sample))


_LOCATION = _nested(
    Location,
    (
        FieldCodec("time", "time", INSTANT),
        FieldCodec("latitude", "latitude", FLOAT),
        FieldCodec("longitude", "longitude", FLOAT),
        FieldCodec("horizontal_accuracy", "horizontalAccuracy", LENGTH_M, required=False),
        FieldCodec("vertical_accuracy", "verticalAccuracy", LENGTH_M, required=False),
        FieldCodec("altitude", "altitude", LENGTH_M, required=False),
    ),
)

EXERCISE_ROUTE = _nested(
    ExerciseRoute,
    (FieldCodec("locations", "locations", _sequence(_LOCATION)),),
)


def _decode_route_result(raw: Any, key: str) -> RouteData:
    return RouteData(route=EXERCISE_ROUTE.decode(raw, key))


def _encode_route_result(result: Any) -> Any:
    # ConsentRequired is resolved by the session before encoding; until then
    # it encodes like NoData.
    if isinstance(result, RouteData):
        return EXERCISE_ROUTE.encode(result.route)
    return OMIT


ROUTE_RESULT = ValueCodec(decode=_decode_route_result, encode=_encode_route_result)


# ---------------------------------------------------------------------------
# Schema table
# ---------------------------------------------------------------------------

_INSTANT_FIELDS = (
    FieldCodec("time", "time", INSTANT),
    FieldCodec("zone_offset", "zoneOffset", ZONE_OFFSET, required=False),
)

_INTERVAL_FIELDS = (
    FieldCodec("start_time", "startTime", INSTANT),
    FieldCodec("start_zone_offset", "startZoneOffset", ZONE_OFFSET, required=False),
    FieldCodec("end_time", "endTime", INSTANT),
    FieldCodec("end_zone_offset", "endZoneOffset", ZONE_OFFSET, required=False),
)


def _enum_code(attr: str, key: str) -> FieldCodec:
    """Platform integer code that defaults to 0 ("unknown") when absent."""
    return FieldCodec(attr, key, INT, required=False, default=lambda: 0)


def _optional(attr: str, key: str, value: ValueCodec) -> FieldCodec:
    return FieldCodec(attr, key, value, required=False)


def _schema(record_cls: type[Record], *fields: FieldCodec) -> RecordSchema:
    if issubclass(record_cls, InstantRecord):
        time_fields = _INSTANT_FIELDS
    elif issubclass(record_cls, IntervalRecord):
        time_fields = _INTERVAL_FIELDS
    else:  # pragma: no cover
        raise TypeError(f"{record_cls.__name__} is neither an instant nor an interval record")
    return RecordSchema(record_cls, time_fields + fields)


_NUTRITION_FIELDS = (
    FieldCodec("meal_type", "mealType", INT),
    _optional("name", "name", STR),
    *(_optional(attr, key, ENERGY_KCAL) for attr, key in NUTRIENT_ENERGY_FIELDS),
    *(_optional(attr, key, MASS_G) for attr, key in NUTRIENT_MASS_FIELDS),
)

RECORD_SCHEMAS: dict[RecordType, RecordSchema] = {
    RecordType.ACTIVE_CALORIES_BURNED: _schema(
        ActiveCaloriesBurnedRecord,
        FieldCodec("energy", "energy", ENERGY_KCAL),
    ),
    RecordType.BASAL_BODY_TEMPERATURE: _schema(
        BasalBodyTemperatureRecord,
        FieldCodec("temperature", "temperature", TEMPERATURE_C),
        _enum_code("measurement_location", "measurementLocation"),
    ),
    RecordType.BASAL_METABOLIC_RATE: _schema(
        BasalMetabolicRateRecord,
        FieldCodec("basal_metabolic_rate", "basalMetabolicRate", POWER_KCAL_PER_DAY),
    ),
    RecordType.BLOOD_GLUCOSE: _schema(
        BloodGlucoseRecord,
        FieldCodec("level", "level", BLOOD_GLUCOSE_MMOL),
        _enum_code("specimen_source", "specimenSource"),
        _enum_code("meal_type", "mealType"),
        _enum_code("relation_to_meal", "relationToMeal"),
    ),
    RecordType.BLOOD_PRESSURE: _schema(
        BloodPressureRecord,
        FieldCodec("systolic", "systolic", PRESSURE_MMHG),
        FieldCodec("diastolic", "diastolic", PRESSURE_MMHG),
        _enum_code("body_position", "bodyPosition"),
        _enum_code("measurement_location", "measurementLocation"),
    ),
    RecordType.BODY_FAT: _schema(
        BodyFatRecord,
        FieldCodec("percentage", "percentage", PERCENTAGE),
    ),
    RecordType.BODY_TEMPERATURE: _schema(
        BodyTemperatureRecord,
        FieldCodec("temperature", "temperature", TEMPERATURE_C),
        _enum_code("measurement_location", "measurementLocation"),
    ),
    RecordType.BODY_WATER_MASS: _schema(
        BodyWaterMassRecord,
        FieldCodec("mass", "mass", MASS_KG),
    ),
    RecordType.BONE_MASS: _schema(
        BoneMassRecord,
        FieldCodec("mass", "mass", MASS_KG),
    ),
    RecordType.CERVICAL_MUCUS: _schema(
        CervicalMucusRecord,
        _enum_code("appearance", "appearance"),
        _enum_code("sensation", "sensation"),
    ),
    RecordType.CYCLING_PEDALING_CADENCE: _schema(
        CyclingPedalingCadenceRecord,
        _samples(
            CyclingPedalingCadenceSample,
            FieldCodec("revolutions_per_minute", "revolutionsPerMinute", FLOAT),
        ),
    ),
    RecordType.DISTANCE: _schema(
        DistanceRecord,
        FieldCodec("distance", "distance", LENGTH_M),
    ),
    RecordType.ELEVATION_GAINED: _schema(
        ElevationGainedRecord,
        FieldCodec("elevation", "elevation", LENGTH_M),
    ),
    RecordType.EXERCISE_SESSION: _schema(
        ExerciseSessionRecord,
        FieldCodec("exercise_type", "exerciseType", INT),
        _optional("title", "title", STR),
        _optional("notes", "notes", STR),
        FieldCodec(
            "exercise_route_result", "route", ROUTE_RESULT,
            required=False, default=NoRouteData,
        ),
    ),
    RecordType.FLOORS_CLIMBED: _schema(
        FloorsClimbedRecord,
        FieldCodec("floors", "floors", FLOAT),
    ),
    RecordType.HEART_RATE: _schema(
        HeartRateRecord,
        _samples(HeartRateSample, FieldCodec("beats_per_minute", "beatsPerMinute", INT)),
    ),
    RecordType.HEART_RATE_VARIABILITY: _schema(
        HeartRateVariabilityRmssdRecord,
        FieldCodec("heart_rate_variability_millis", "heartRateVariabilityMillis", FLOAT),
    ),
    RecordType.HEIGHT: _schema(
        HeightRecord,
        FieldCodec("height", "height", LENGTH_M),
    ),
    RecordType.HYDRATION: _schema(
        HydrationRecord,
        FieldCodec("volume", "volume", VOLUME_L),
    ),
    RecordType.INTERMENSTRUAL_BLEEDING: _schema(IntermenstrualBleedingRecord),
    RecordType.LEAN_BODY_MASS: _schema(
        LeanBodyMassRecord,
        FieldCodec("mass", "mass", MASS_KG),
    ),
    RecordType.MENSTRUATION_FLOW: _schema(
        MenstruationFlowRecord,
        _enum_code("flow", "flow"),
    ),
    RecordType.MENSTRUATION_PERIOD: _schema(MenstruationPeriodRecord),
    RecordType.NUTRITION: _schema(NutritionRecord, *_NUTRITION_FIELDS),
    RecordType.OVULATION_TEST: _schema(
        OvulationTestRecord,
        FieldCodec("result", "result", INT),
    ),
    RecordType.OXYGEN_SATURATION: _schema(
        OxygenSaturationRecord,
        FieldCodec("percentage", "percentage", PERCENTAGE),
    ),
    RecordType.POWER: _schema(
        PowerRecord,
        _samples(PowerSample, FieldCodec("power", "power", POWER_W)),
    ),
    RecordType.RESPIRATORY_RATE: _schema(
        RespiratoryRateRecord,
        FieldCodec("rate", "rate", FLOAT),
    ),
    RecordType.RESTING_HEART_RATE: _schema(
        RestingHeartRateRecord,
        FieldCodec("beats_per_minute", "beatsPerMinute", INT),
    ),
    RecordType.SEXUAL_ACTIVITY: _schema(
        SexualActivityRecord,
        _enum_code("protection_used", "protectionUsed"),
    ),
    RecordType.SLEEP_SESSION: _schema(
        SleepSessionRecord,
        _optional("title", "title", STR),
        _optional("notes", "notes", STR),
    ),
    RecordType.SPEED: _schema(
        SpeedRecord,
        _samples(SpeedSample, FieldCodec("speed", "speed", VELOCITY_MPS)),
    ),
    RecordType.STEPS_CADENCE: _schema(
        StepsCadenceRecord,
        _samples(StepsCadenceSample, FieldCodec("rate", "rate", FLOAT)),
    ),
    RecordType.STEPS: _schema(
        StepsRecord,
        FieldCodec("count", "count", INT),
    ),
    RecordType.TOTAL_CALORIES_BURNED: _schema(
        TotalCaloriesBurnedRecord,
        FieldCodec("energy", "energy", ENERGY_KCAL),
    ),
    RecordType.VO2_MAX: _schema(
        Vo2MaxRecord,
        FieldCodec(
            "vo2_milliliters_per_minute_kilogram", "vo2MillilitersPerMinuteKilogram", FLOAT
        ),
        _enum_code("measurement_method", "measurementMethod"),
    ),
    RecordType.WEIGHT: _schema(
        WeightRecord,
        FieldCodec("weight", "weight", MASS_KG),
    ),
    RecordType.WHEELCHAIR_PUSHES: _schema(
        WheelchairPushesRecord,
        FieldCodec("count", "count", INT),
    ),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def decode_record(record_type: RecordType | str, payload: Any) -> Record:
    """Build the typed record for ``record_type`` from a payload map.

    Raises:
        UnsupportedTypeError: ``record_type`` is not a known tag.
        RecordDecodeError: a required field is missing or a field has the wrong type.
    """
    schema = RECORD_SCHEMAS[parse_record_type(record_type)]
    if not isinstance(payload, Mapping):
        raise RecordDecodeError("record", f"expected a map, got {type(payload).__name__}")
    return schema.decode(payload)


def encode_record(record: Record) -> dict[str, Any]:
    """Flatten a record into a payload map keyed like :func:`decode_record` reads."""
    return RECORD_SCHEMAS[record.record_type].encode(record)


def decode_exercise_route(payload: Any) -> ExerciseRoute:
    """Build an :class:`ExerciseRoute` from a ``{"locations": [...]}`` map."""
    if not isinstance(payload, Mapping):
        raise RecordDecodeError("route", f"expected a map, got {type(payload).__name__}")
    return EXERCISE_ROUTE.decode(payload, "route")


def encode_exercise_route(route: ExerciseRoute) -> dict[str, Any]:
    return EXERCISE_ROUTE.encode(route)
