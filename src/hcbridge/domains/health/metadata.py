"""Record provenance: identity, origin, device and versioning."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from hcbridge.domains.health.errors import RecordDecodeError
from hcbridge.domains.health.units import (
    EPOCH,
    coerce_counter,
    coerce_int,
    coerce_str,
    format_instant,
    parse_instant,
)


@dataclass
class DataOrigin:
    """The application that wrote a record."""

    package_name: str = ""


@dataclass
class Device:
    """The device that captured a record. ``type`` is the platform class code."""

    type: int = 0
    manufacturer: str | None = None
    model: str | None = None


@dataclass
class Metadata:
    """Provenance envelope attached to every record.

    An empty ``id`` marks a record that has not been inserted yet.
    """

    id: str = ""
    data_origin: DataOrigin = field(default_factory=DataOrigin)
    last_modified_time: datetime = EPOCH
    client_record_id: str | None = None
    client_record_version: int = 0
    device: Device | None = None


def _nested_map(payload: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise RecordDecodeError("metadata." + key, f"expected a map, got {type(value).__name__}")
    return value


def _optional_str(payload: Mapping[str, Any], key: str, prefix: str) -> str | None:
    value = payload.get(key)
    return None if value is None else coerce_str(value, prefix + key)


def decode_metadata(payload: Mapping[str, Any] | None) -> Metadata:
    """Build Metadata from an optional ``metadata`` map.

    An absent map yields an anonymous default. A present map must carry
    ``lastModifiedTime``; everything else is optional.
    """
    if payload is None:
        return Metadata()
    if not isinstance(payload, Mapping):
        raise RecordDecodeError("metadata", f"expected a map, got {type(payload).__name__}")

    origin_map = _nested_map(payload, "dataOrigin")
    if origin_map is not None:
        if origin_map.get("packageName") is None:
            raise RecordDecodeError("metadata.dataOrigin.packageName", "required field is missing")
        data_origin = DataOrigin(
            package_name=coerce_str(origin_map["packageName"], "metadata.dataOrigin.packageName")
        )
    else:
        data_origin = DataOrigin()

    device_map = _nested_map(payload, "device")
    device = None
    if device_map is not None:
        if device_map.get("type") is None:
            raise RecordDecodeError("metadata.device.type", "required field is missing")
        device = Device(
            type=coerce_int(device_map["type"], "metadata.device.type"),
            manufacturer=_optional_str(device_map, "manufacturer", "metadata.device."),
            model=_optional_str(device_map, "model", "metadata.device."),
        )

    if payload.get("lastModifiedTime") is None:
        raise RecordDecodeError("metadata.lastModifiedTime", "required field is missing")

    version = payload.get("clientRecordVersion")
    return Metadata(
        id=_optional_str(payload, "id", "metadata.") or "",
        data_origin=data_origin,
        last_modified_time=parse_instant(payload["lastModifiedTime"], "metadata.lastModifiedTime"),
        client_record_id=_optional_str(payload, "clientRecordId", "metadata."),
        client_record_version=(
            0 if version is None else coerce_counter(version, "metadata.clientRecordVersion")
        ),
        device=device,
    )


def encode_metadata(metadata: Metadata) -> dict[str, Any]:
    """Flatten Metadata using the same keys :func:`decode_metadata` reads."""
    device = metadata.device
    return {
        "id": metadata.id,
        "dataOrigin": {"packageName": metadata.data_origin.package_name},
        "lastModifiedTime": format_instant(metadata.last_modified_time),
        "clientRecordId": metadata.client_record_id,
        "clientRecordVersion": metadata.client_record_version,
        "device": (
            None
            if device is None
            else {
                "manufacturer": device.manufacturer,
                "model": device.model,
                "type": device.type,
            }
        ),
    }
