"""Record type -> platform permission strings."""

from __future__ import annotations

from collections.abc import Iterable

from hcbridge.domains.health.records import RecordType, parse_record_type

PERMISSION_PREFIX = "android.permission.health."

# Permission name shared by read and write, e.g. READ_STEPS / WRITE_STEPS
_PERMISSION_NAMES: dict[RecordType, str] = {
    RecordType.ACTIVE_CALORIES_BURNED: "ACTIVE_CALORIES_BURNED",
    RecordType.BASAL_BODY_TEMPERATURE: "BASAL_BODY_TEMPERATURE",
    RecordType.BASAL_METABOLIC_RATE: "BASAL_METABOLIC_RATE",
    RecordType.BLOOD_GLUCOSE: "BLOOD_GLUCOSE",
    RecordType.BLOOD_PRESSURE: "BLOOD_PRESSURE",
    RecordType.BODY_FAT: "BODY_FAT",
    RecordType.BODY_TEMPERATURE: "BODY_TEMPERATURE",
    RecordType.BODY_WATER_MASS: "BODY_WATER_MASS",
    RecordType.BONE_MASS: "BONE_MASS",
    RecordType.CERVICAL_MUCUS: "CERVICAL_MUCUS",
    RecordType.CYCLING_PEDALING_CADENCE: "EXERCISE",
    RecordType.DISTANCE: "DISTANCE",
    RecordType.ELEVATION_GAINED: "ELEVATION_GAINED",
    RecordType.EXERCISE_SESSION: "EXERCISE",
    RecordType.FLOORS_CLIMBED: "FLOORS_CLIMBED",
    RecordType.HEART_RATE: "HEART_RATE",
    RecordType.HEART_RATE_VARIABILITY: "HEART_RATE_VARIABILITY",
    RecordType.HEIGHT: "HEIGHT",
    RecordType.HYDRATION: "HYDRATION",
    RecordType.INTERMENSTRUAL_BLEEDING: "INTERMENSTRUAL_BLEEDING",
    RecordType.LEAN_BODY_MASS: "LEAN_BODY_MASS",
    RecordType.MENSTRUATION_FLOW: "MENSTRUATION",
    RecordType.MENSTRUATION_PERIOD: "MENSTRUATION",
    RecordType.NUTRITION: "NUTRITION",
    RecordType.OVULATION_TEST: "OVULATION_TEST",
    RecordType.OXYGEN_SATURATION: "OXYGEN_SATURATION",
    RecordType.POWER: "POWER",
    RecordType.RESPIRATORY_RATE: "RESPIRATORY_RATE",
    RecordType.RESTING_HEART_RATE: "RESTING_HEART_RATE",
    RecordType.SEXUAL_ACTIVITY: "SEXUAL_ACTIVITY",
    RecordType.SLEEP_SESSION: "SLEEP",
    RecordType.SPEED: "SPEED",
    RecordType.STEPS_CADENCE: "STEPS",
    RecordType.STEPS: "STEPS",
    RecordType.TOTAL_CALORIES_BURNED: "TOTAL_CALORIES_BURNED",
    RecordType.VO2_MAX: "VO2_MAX",
    RecordType.WEIGHT: "WEIGHT",
    RecordType.WHEELCHAIR_PUSHES: "WHEELCHAIR_PUSHES",
}


def read_permission(record_type: RecordType) -> str:
    return f"{PERMISSION_PREFIX}READ_{_PERMISSION_NAMES[record_type]}"


def write_permission(record_type: RecordType) -> str:
    return f"{PERMISSION_PREFIX}WRITE_{_PERMISSION_NAMES[record_type]}"


def permissions_for(types: Iterable[str], read_only: bool = False) -> set[str]:
    """Permissions needed to read (and, unless ``read_only``, write) ``types``.

    Raises:
        UnsupportedTypeError: a tag is not a known record type.
    """
    permissions: set[str] = set()
    for tag in types:
        record_type = parse_record_type(tag)
        permissions.add(read_permission(record_type))
        if not read_only:
            permissions.add(write_permission(record_type))
    return permissions
