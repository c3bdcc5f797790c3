"""Shared typed models.

This module defines immutable data models used by the source client,
transforms, store, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from core.constants import DEFAULT_SOURCE_QUERY

RawRecord = Mapping[str, Any]


@dataclass(frozen=True)
class SourcePage:
    """One decoded page of the facility source API.

    Attributes:
        page: One-based page index reported by the source.
        total_pages: Total page count reported by the source.
        record_count: Total record count reported by the source.
        rows: Raw facility rows on this page.
    """

    page: int
    total_pages: int
    record_count: int
    rows: tuple[RawRecord, ...]


@dataclass
class FetchStats:
    """Running page counters for one paginated fetch."""

    pages_fetched: int = 0
    pages_failed: int = 0
    rows_fetched: int = 0
    total_pages: int | None = None
    record_count: int | None = None


@dataclass(frozen=True)
class FacilityRecord:
    """Normalized, scored facility ready for persistence.

    Attributes:
        external_id: Stable source identifier and upsert key.
        name: Primary facility name.
        name_alt: Optional alternate name.
        slug: Globally unique URL slug.
        street1: First street line.
        street2: Second street line.
        city: City name.
        city_slug: URL slug of the city.
        state: Region code.
        state_name: Resolved region display name.
        zip: Postal code.
        phone: Primary phone.
        intake_phone: Intake phone.
        hotline: Crisis hotline.
        website: Website URL.
        latitude: Parsed latitude, None when absent or unparsable.
        longitude: Parsed longitude, None when absent or unparsable.
        facility_type: Source type classifier.
        services: Raw service-category entries as received.
        type_of_care: Values of the ``TC`` category.
        service_settings: Values of the ``SET`` category.
        payment_options: Values of the ``PAY`` category.
        age_groups: Values of the ``AGE`` category.
        special_programs: Values of the ``SG`` category.
        quality_score: Data quality score in [0, 1].
        is_indexable: Whether the score clears the indexable threshold.
    """

    external_id: str
    name: str
    slug: str
    city: str
    city_slug: str
    state: str
    state_name: str
    quality_score: float
    is_indexable: bool
    name_alt: str | None = None
    street1: str | None = None
    street2: str | None = None
    zip: str | None = None
    phone: str | None = None
    intake_phone: str | None = None
    hotline: str | None = None
    website: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    facility_type: str | None = None
    services: tuple[Mapping[str, Any], ...] = ()
    type_of_care: tuple[str, ...] = ()
    service_settings: tuple[str, ...] = ()
    payment_options: tuple[str, ...] = ()
    age_groups: tuple[str, ...] = ()
    special_programs: tuple[str, ...] = ()


@dataclass(frozen=True)
class StoredFacility:
    """Facility row read back from the store with its surrogate keys."""

    record_id: int
    facility: FacilityRecord
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class RegionRollup:
    """Denormalized per-state facility count."""

    code: str
    name: str
    slug: str
    facility_count: int


@dataclass(frozen=True)
class SubRegionRollup:
    """Denormalized per-city facility count with a representative location."""

    name: str
    slug: str
    state_code: str
    facility_count: int
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True)
class IngestMetadata:
    """Freshness bookkeeping for the last ingest run.

    Attributes:
        source_name: Human-readable source label.
        source_url: Source endpoint used for ingest.
        data_period: Month/year label of the ingested data.
        record_count: Facility count after the last ingest.
        last_updated: Completion time of the last ingest.
        last_checked_at: Time of the last change-detector probe.
    """

    source_name: str
    source_url: str
    data_period: str
    record_count: int
    last_updated: datetime | None
    last_checked_at: datetime | None


@dataclass(frozen=True)
class IngestOptions:
    """Ingest command options.

    Attributes:
        dry_run: Transform and score without writing to the store.
        truncate: Clear facility and rollup tables before ingesting.
        source_file: Optional local raw export to ingest instead of the API.
        base_query: Query parameters sent with every source page request.
    """

    dry_run: bool = False
    truncate: bool = False
    source_file: Path | None = None
    base_query: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_SOURCE_QUERY))


@dataclass(frozen=True)
class PersistResult:
    """Outcome counters for a batch upsert run."""

    inserted: int
    updated: int
    failed: int
    failed_chunks: int

    @property
    def persisted(self) -> int:
        """Return the number of rows written successfully."""
        return self.inserted + self.updated


@dataclass(frozen=True)
class RollupResult:
    """Outcome counters for one rollup recomputation."""

    facilities_scanned: int
    indexable_facilities: int
    state_rollups: int
    city_rollups: int
    zeroed_rollups: int


@dataclass(frozen=True)
class UpdateCheck:
    """Change-detector verdict."""

    has_update: bool
    current_count: int
    latest_count: int


@dataclass(frozen=True)
class IngestSummary:
    """End-of-run counters reported to operators."""

    fetched: int
    transformed: int
    skipped: int
    duplicates_removed: int
    inserted: int
    updated: int
    failed: int
    indexable: int
    average_score: float
    pages_failed: int
    dry_run: bool
    rollups: RollupResult | None = None

    @property
    def persisted(self) -> int:
        """Return the number of facility rows written."""
        return self.inserted + self.updated
