"""Unit and value converters for record payload fields.

Payload values arrive as loosely-typed primitives. Each converter coerces one
primitive into the domain type its field declares, without converting between
units: the caller supplies values already in the documented unit.

Documented units:
- mass: kilograms (nutrition nutrients: grams)
- length: meters
- energy: kilocalories
- temperature: celsius
- pressure: millimeters of mercury
- volume: liters
- power: kilocalories/day (basal metabolic rate), watts (power samples)
- blood glucose: millimoles/liter
- velocity: meters/second
- percentage: 0-100
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from hcbridge.domains.health.errors import RecordDecodeError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# ZoneOffset.ofHours accepts -18..+18
MAX_ZONE_OFFSET_HOURS = 18

_INT64_MAX = 2**63 - 1


# ---------------------------------------------------------------------------
# Quantities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Quantity:
    """A numeric value tagged with its unit."""

    value: float
    unit: str

    def __str__(self) -> str:
        return f"{self.value} {self.unit}"


class Mass(Quantity):
    pass


class Length(Quantity):
    pass


class Energy(Quantity):
    pass


class Temperature(Quantity):
    pass


class Pressure(Quantity):
    pass


class Volume(Quantity):
    pass


class Power(Quantity):
    pass


class BloodGlucose(Quantity):
    pass


class Velocity(Quantity):
    pass


class Percentage(Quantity):
    pass


def kilograms(value: float) -> Mass:
    return Mass(value, "kg")


def grams(value: float) -> Mass:
    return Mass(value, "g")


def meters(value: float) -> Length:
    return Length(value, "m")


def kilocalories(value: float) -> Energy:
    return Energy(value, "kcal")


def celsius(value: float) -> Temperature:
    return Temperature(value, "C")


def millimeters_of_mercury(value: float) -> Pressure:
    return Pressure(value, "mmHg")


def liters(value: float) -> Volume:
    return Volume(value, "L")


def kilocalories_per_day(value: float) -> Power:
    return Power(value, "kcal/day")


def watts(value: float) -> Power:
    return Power(value, "W")


def millimoles_per_liter(value: float) -> BloodGlucose:
    return BloodGlucose(value, "mmol/L")


def meters_per_second(value: float) -> Velocity:
    return Velocity(value, "m/s")


def percent(value: float) -> Percentage:
    return Percentage(value, "%")


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------

def coerce_float(value: Any, key: str) -> float:
    """Accept an int or float (never a bool) and return a float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RecordDecodeError(key, f"expected a number, got {type(value).__name__}")
    try:
        return float(value)
    except OverflowError as exc:
        raise RecordDecodeError(key, f"{value} is too large for a float") from exc


def coerce_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise RecordDecodeError(key, f"expected an integer, got {type(value).__name__}")
    return value


def coerce_counter(value: Any, key: str) -> int:
    """Coerce to an unsigned 64-bit counter (e.g. clientRecordVersion)."""
    number = coerce_int(value, key)
    if number < 0 or number > _INT64_MAX:
        raise RecordDecodeError(key, f"{number} does not fit a 64-bit counter")
    return number


def coerce_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise RecordDecodeError(key, f"expected a string, got {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

def parse_instant(value: Any, key: str) -> datetime:
    """Parse an ISO-8601 instant (``Z`` or explicit offset) into aware UTC."""
    text = coerce_str(value, key)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise RecordDecodeError(key, f"not an ISO-8601 instant: {value!r}") from exc
    if parsed.tzinfo is None:
        raise RecordDecodeError(key, f"instant has no UTC offset: {value!r}")
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        raise RecordDecodeError(key, f"instant is out of range: {value!r}") from exc


def format_instant(moment: datetime) -> str:
    """Render an aware datetime as an ISO-8601 UTC instant ending in ``Z``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def zone_offset_from_hours(value: Any, key: str) -> timezone:
    hours = coerce_int(value, key)
    if abs(hours) > MAX_ZONE_OFFSET_HOURS:
        raise RecordDecodeError(key, f"zone offset {hours}h is out of range")
    return timezone(timedelta(hours=hours))


def zone_offset_to_hours(offset: timezone) -> int:
    """Whole hours of a fixed offset. Sub-hour remainders are truncated."""
    seconds = offset.utcoffset(None).total_seconds()
    return int(seconds / 3600)
