"""Raw facility row to normalized record transform.

This module validates required fields, derives slugs and region names,
extracts service tag lists, and attaches the quality score.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.constants import DEFAULT_INDEXABLE_THRESHOLD
from core.errors import AtlasTransformError
from core.regions import RegionTable, default_region_table
from core.types import FacilityRecord, RawRecord
from transforms.category_extraction import extract_service_tags
from transforms.field_parsing import clean_text, parse_coordinate
from transforms.quality_scoring import score_facility
from transforms.slugs import build_facility_slug, slugify

_EXTERNAL_ID_FIELDS = ("_irow", "frid")


class RecordTransformer:
    """Stateless mapper from raw source rows to facility records."""

    def __init__(
        self,
        regions: RegionTable | None = None,
        indexable_threshold: float = DEFAULT_INDEXABLE_THRESHOLD,
    ) -> None:
        if not 0.0 <= indexable_threshold <= 1.0:
            raise AtlasTransformError(
                f"Invalid indexable threshold {indexable_threshold}: expected a fraction in [0, 1]."
            )
        self._regions = regions or default_region_table()
        self._indexable_threshold = indexable_threshold

    def transform(self, raw: RawRecord, ordinal_index: int) -> FacilityRecord | None:
        """Normalize one raw facility row.

        Args:
            raw: Raw source row.
            ordinal_index: Position of the row in the run, used as a
                fallback external id.

        Returns:
            Normalized record, or None when name, city, or state is missing.
        """
        name = clean_text(raw.get("name1"))
        city = clean_text(raw.get("city"))
        state = clean_text(raw.get("state"))
        if name is None or city is None or state is None:
            return None
        state = state.upper()
        external_id = resolve_external_id(raw, ordinal_index)
        quality = score_facility(raw, self._indexable_threshold)
        tags = extract_service_tags(raw.get("services"))
        return FacilityRecord(
            external_id=external_id,
            name=name,
            name_alt=clean_text(raw.get("name2")),
            slug=build_facility_slug(name, city, state, external_id),
            street1=clean_text(raw.get("street1")),
            street2=clean_text(raw.get("street2")),
            city=city,
            city_slug=slugify(city),
            state=state,
            state_name=self._regions.name_for(state),
            zip=clean_text(raw.get("zip")),
            phone=clean_text(raw.get("phone")),
            intake_phone=clean_text(raw.get("intake1")),
            hotline=clean_text(raw.get("hotline1")),
            website=clean_text(raw.get("website")),
            latitude=parse_coordinate(raw.get("latitude")),
            longitude=parse_coordinate(raw.get("longitude")),
            facility_type=clean_text(raw.get("typeFacility")),
            services=_copy_services(raw.get("services")),
            quality_score=quality.quality_score,
            is_indexable=quality.is_indexable,
            **tags,
        )


def resolve_external_id(raw: RawRecord, ordinal_index: int) -> str:
    """Return the source row id, falling back to the ordinal index."""
    for field_name in _EXTERNAL_ID_FIELDS:
        value = clean_text(raw.get(field_name))
        if value is not None:
            return value
    return str(ordinal_index)


def _copy_services(services: Any) -> tuple[Mapping[str, Any], ...]:
    if not isinstance(services, (list, tuple)):
        return ()
    return tuple(dict(entry) for entry in services if isinstance(entry, Mapping))
