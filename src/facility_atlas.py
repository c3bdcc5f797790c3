"""Public SDK surface for Facility Atlas.

This module provides a stable import path for pipeline users.
It re-exports the primary client, typed option models, and read queries.
"""

from __future__ import annotations

from core.config import AtlasConfig
from core.regions import RegionTable, default_region_table, load_region_table
from core.types import (
    FacilityRecord,
    IngestOptions,
    IngestSummary,
    RegionRollup,
    RollupResult,
    StoredFacility,
    SubRegionRollup,
    UpdateCheck,
)
from store.atlas_sdk import AtlasClient
from store.facility_queries import (
    get_all_states,
    get_cities_by_state,
    get_city_by_slug,
    get_facilities_by_city,
    get_facilities_by_state,
    get_facility_by_slug,
    get_state_by_slug,
    get_total_indexable_count,
    iter_indexable_ids,
    iter_indexable_slugs,
)
from store.row_store import RowStore

__all__ = [
    "AtlasClient",
    "AtlasConfig",
    "FacilityRecord",
    "IngestOptions",
    "IngestSummary",
    "RegionRollup",
    "RegionTable",
    "RollupResult",
    "RowStore",
    "StoredFacility",
    "SubRegionRollup",
    "UpdateCheck",
    "default_region_table",
    "get_all_states",
    "get_cities_by_state",
    "get_city_by_slug",
    "get_facilities_by_city",
    "get_facilities_by_state",
    "get_facility_by_slug",
    "get_state_by_slug",
    "get_total_indexable_count",
    "iter_indexable_ids",
    "iter_indexable_slugs",
    "load_region_table",
]
