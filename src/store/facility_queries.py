"""Read-side queries used by listing, search, and sitemap consumers.

All reads go through the capped row store, so list queries take a
bounded ``limit`` and full scans page internally.
"""

from __future__ import annotations

from typing import Iterator

from core.constants import CITIES_TABLE, FACILITIES_TABLE, STATES_TABLE
from core.types import RegionRollup, StoredFacility, SubRegionRollup
from store.record_payload import (
    facility_from_row,
    region_rollup_from_row,
    sub_region_rollup_from_row,
)
from store.row_store import RowStore

_INDEXABLE = {"is_indexable": True}
_BEST_FIRST = ("-quality_score", "id")


def get_facility_by_slug(store: RowStore, slug: str) -> StoredFacility | None:
    """Return one facility by its slug."""
    row = store.get_one(FACILITIES_TABLE, {"slug": slug})
    return None if row is None else facility_from_row(row)


def get_facilities_by_state(store: RowStore, state: str, limit: int = 20) -> list[StoredFacility]:
    """Return the best indexable facilities of a state.

    Args:
        store: Row store.
        state: Region code.
        limit: Maximum facilities to return.

    Returns:
        Facilities ordered by score descending.
    """
    rows = store.select_page(
        FACILITIES_TABLE,
        offset=0,
        limit=limit,
        filters={**_INDEXABLE, "state": state.upper()},
        order_by=_BEST_FIRST,
    )
    return [facility_from_row(row) for row in rows]


def get_facilities_by_city(
    store: RowStore,
    state: str,
    city_slug: str,
    limit: int = 50,
) -> list[StoredFacility]:
    """Return indexable facilities of one city, best first."""
    rows = store.select_page(
        FACILITIES_TABLE,
        offset=0,
        limit=limit,
        filters={**_INDEXABLE, "state": state.upper(), "city_slug": city_slug},
        order_by=_BEST_FIRST,
    )
    return [facility_from_row(row) for row in rows]


def get_all_states(store: RowStore) -> list[RegionRollup]:
    """Return every state rollup ordered by name."""
    return [
        region_rollup_from_row(row)
        for row in store.iter_rows(STATES_TABLE, order_by=("name", "id"))
    ]


def get_state_by_slug(store: RowStore, slug: str) -> RegionRollup | None:
    row = store.get_one(STATES_TABLE, {"slug": slug})
    return None if row is None else region_rollup_from_row(row)


def get_city_by_slug(store: RowStore, state: str, city_slug: str) -> SubRegionRollup | None:
    row = store.get_one(CITIES_TABLE, {"state_code": state.upper(), "slug": city_slug})
    return None if row is None else sub_region_rollup_from_row(row)


def get_cities_by_state(store: RowStore, state: str) -> list[SubRegionRollup]:
    """Return cities of a state that have indexable facilities, largest first."""
    rollups = (
        sub_region_rollup_from_row(row)
        for row in store.iter_rows(
            CITIES_TABLE,
            filters={"state_code": state.upper()},
            order_by=("-facility_count", "name", "id"),
        )
    )
    return [rollup for rollup in rollups if rollup.facility_count > 0]


def get_total_indexable_count(store: RowStore) -> int:
    return store.count(FACILITIES_TABLE, _INDEXABLE)


def iter_indexable_slugs(store: RowStore) -> Iterator[str]:
    """Yield every indexable facility slug, paging through the store."""
    for row in store.iter_rows(FACILITIES_TABLE, columns=("id", "slug"), filters=_INDEXABLE):
        yield str(row["slug"])


def iter_indexable_ids(store: RowStore) -> Iterator[int]:
    """Yield every indexable facility id in ascending order."""
    for row in store.iter_rows(FACILITIES_TABLE, columns=("id",), filters=_INDEXABLE):
        yield int(row["id"])
