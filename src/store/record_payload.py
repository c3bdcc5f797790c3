"""Shared row serialization for facility and rollup payloads.

This module centralizes the mapping between typed records and store rows.
It is reused by the batch persister, the aggregator, and read queries.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from core.types import (
    FacilityRecord,
    IngestMetadata,
    RegionRollup,
    StoredFacility,
    SubRegionRollup,
)

_TAG_FIELDS = (
    "type_of_care",
    "service_settings",
    "payment_options",
    "age_groups",
    "special_programs",
)


def facility_to_row(record: FacilityRecord, updated_at: datetime) -> dict[str, Any]:
    """Serialize a facility into an upsert row.

    Args:
        record: Normalized facility.
        updated_at: Timestamp stamped on the written row.

    Returns:
        Row payload keyed by column name.
    """
    row: dict[str, Any] = {
        "external_id": record.external_id,
        "name": record.name,
        "name_alt": record.name_alt,
        "slug": record.slug,
        "street1": record.street1,
        "street2": record.street2,
        "city": record.city,
        "city_slug": record.city_slug,
        "state": record.state,
        "state_name": record.state_name,
        "zip": record.zip,
        "phone": record.phone,
        "intake_phone": record.intake_phone,
        "hotline": record.hotline,
        "website": record.website,
        "latitude": record.latitude,
        "longitude": record.longitude,
        "facility_type": record.facility_type,
        "services": [dict(entry) for entry in record.services] or None,
        "quality_score": record.quality_score,
        "is_indexable": record.is_indexable,
        "updated_at": updated_at,
    }
    for field_name in _TAG_FIELDS:
        row[field_name] = list(getattr(record, field_name))
    return row


def facility_from_row(row: Mapping[str, Any]) -> StoredFacility:
    """Deserialize a full facility row.

    Args:
        row: Row read with all facility columns.

    Returns:
        Stored facility with its surrogate id and timestamps.
    """
    tags = {field_name: tuple(row.get(field_name) or ()) for field_name in _TAG_FIELDS}
    facility = FacilityRecord(
        external_id=str(row["external_id"]),
        name=str(row["name"]),
        name_alt=row.get("name_alt"),
        slug=str(row["slug"]),
        street1=row.get("street1"),
        street2=row.get("street2"),
        city=str(row["city"]),
        city_slug=str(row["city_slug"]),
        state=str(row["state"]),
        state_name=str(row["state_name"]),
        zip=row.get("zip"),
        phone=row.get("phone"),
        intake_phone=row.get("intake_phone"),
        hotline=row.get("hotline"),
        website=row.get("website"),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
        facility_type=row.get("facility_type"),
        services=tuple(dict(entry) for entry in row.get("services") or ()),
        quality_score=float(row["quality_score"]),
        is_indexable=bool(row["is_indexable"]),
        **tags,
    )
    return StoredFacility(
        record_id=int(row["id"]),
        facility=facility,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def region_rollup_to_row(rollup: RegionRollup) -> dict[str, Any]:
    """Serialize a state rollup into an upsert row."""
    return {
        "code": rollup.code,
        "name": rollup.name,
        "slug": rollup.slug,
        "facility_count": rollup.facility_count,
    }


def region_rollup_from_row(row: Mapping[str, Any]) -> RegionRollup:
    """Deserialize a state rollup row."""
    return RegionRollup(
        code=str(row["code"]),
        name=str(row["name"]),
        slug=str(row["slug"]),
        facility_count=int(row["facility_count"] or 0),
    )


def sub_region_rollup_to_row(rollup: SubRegionRollup) -> dict[str, Any]:
    """Serialize a city rollup into an upsert row."""
    return {
        "name": rollup.name,
        "slug": rollup.slug,
        "state_code": rollup.state_code,
        "facility_count": rollup.facility_count,
        "latitude": rollup.latitude,
        "longitude": rollup.longitude,
    }


def sub_region_rollup_from_row(row: Mapping[str, Any]) -> SubRegionRollup:
    """Deserialize a city rollup row."""
    return SubRegionRollup(
        name=str(row["name"]),
        slug=str(row["slug"]),
        state_code=str(row["state_code"]),
        facility_count=int(row["facility_count"] or 0),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
    )


def ingest_metadata_from_row(row: Mapping[str, Any]) -> IngestMetadata:
    """Deserialize the ingest metadata row."""
    return IngestMetadata(
        source_name=str(row["source_name"]),
        source_url=str(row["source_url"]),
        data_period=str(row["data_period"]),
        record_count=int(row["record_count"] or 0),
        last_updated=row.get("last_updated"),
        last_checked_at=row.get("last_checked_at"),
    )


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)
