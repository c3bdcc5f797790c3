"""State and city rollup recomputation.

This module rebuilds the denormalized ``states`` and ``cities`` count
tables from the persisted facility set. Both levels count indexable
facilities only; every city seen among persisted facilities gets a row,
so informational cities with no indexable facility carry a zero count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from core.constants import CITIES_TABLE, FACILITIES_TABLE, STATES_TABLE
from core.logging_config import get_logger
from core.types import RegionRollup, RollupResult, SubRegionRollup
from store.record_payload import (
    region_rollup_from_row,
    region_rollup_to_row,
    sub_region_rollup_from_row,
    sub_region_rollup_to_row,
)
from store.row_store import RowStore
from transforms.slugs import slugify

_LOGGER = get_logger(__name__)
_FACILITY_COLUMNS = (
    "id",
    "city",
    "city_slug",
    "state",
    "state_name",
    "latitude",
    "longitude",
    "is_indexable",
)


@dataclass
class _CityAccumulator:
    name: str
    slug: str
    state_code: str
    count: int = 0
    latitude: float | None = None
    longitude: float | None = None


@dataclass
class _StateAccumulator:
    code: str
    name: str
    count: int = 0


class RollupAggregator:
    """Full-rebuild aggregator over the facility table."""

    def __init__(self, store: RowStore) -> None:
        self._store = store

    def recompute_rollups(self) -> RollupResult:
        """Recount states and cities from all persisted facilities.

        Facilities are scanned in id order, so the representative city
        coordinates are those of the lowest-id facility that has both.

        Returns:
            Scan and upsert counters.

        Raises:
            AtlasStoreError: If facility reads or rollup writes fail.
        """
        state_totals: dict[str, _StateAccumulator] = {}
        city_totals: dict[tuple[str, str], _CityAccumulator] = {}
        scanned = indexable = 0
        for row in self._store.iter_rows(FACILITIES_TABLE, columns=_FACILITY_COLUMNS):
            scanned += 1
            is_indexable = bool(row["is_indexable"])
            indexable += int(is_indexable)
            _accumulate_state(state_totals, row, is_indexable)
            _accumulate_city(city_totals, row, is_indexable)
        state_rollups = [
            RegionRollup(
                code=total.code,
                name=total.name,
                slug=slugify(total.name) or slugify(total.code),
                facility_count=total.count,
            )
            for total in state_totals.values()
        ]
        city_rollups = [
            SubRegionRollup(
                name=total.name,
                slug=total.slug,
                state_code=total.state_code,
                facility_count=total.count,
                latitude=total.latitude,
                longitude=total.longitude,
            )
            for total in city_totals.values()
        ]
        zeroed = self._zero_stale_states(state_totals) + self._zero_stale_cities(city_totals)
        self._upsert_chunks(STATES_TABLE, [region_rollup_to_row(r) for r in state_rollups], ("code",))
        self._upsert_chunks(
            CITIES_TABLE,
            [sub_region_rollup_to_row(r) for r in city_rollups],
            ("slug", "state_code"),
        )
        result = RollupResult(
            facilities_scanned=scanned,
            indexable_facilities=indexable,
            state_rollups=len(state_rollups),
            city_rollups=len(city_rollups),
            zeroed_rollups=zeroed,
        )
        _LOGGER.info(
            "rollups_recomputed",
            facilities_scanned=result.facilities_scanned,
            indexable_facilities=result.indexable_facilities,
            state_rollups=result.state_rollups,
            city_rollups=result.city_rollups,
            zeroed_rollups=result.zeroed_rollups,
        )
        return result

    def _zero_stale_states(self, state_totals: dict[str, _StateAccumulator]) -> int:
        """Reset states that no longer have any facility."""
        stale_rows = [
            region_rollup_to_row(
                RegionRollup(code=rollup.code, name=rollup.name, slug=rollup.slug, facility_count=0)
            )
            for rollup in map(region_rollup_from_row, self._store.iter_rows(STATES_TABLE))
            if rollup.code not in state_totals and rollup.facility_count != 0
        ]
        self._upsert_chunks(STATES_TABLE, stale_rows, ("code",))
        return len(stale_rows)

    def _zero_stale_cities(self, city_totals: dict[tuple[str, str], _CityAccumulator]) -> int:
        """Reset cities that no longer have any facility."""
        stale_rows: list[dict[str, Any]] = []
        for rollup in map(sub_region_rollup_from_row, self._store.iter_rows(CITIES_TABLE)):
            if (rollup.slug, rollup.state_code) in city_totals or rollup.facility_count == 0:
                continue
            stale_rows.append(
                sub_region_rollup_to_row(
                    SubRegionRollup(
                        name=rollup.name,
                        slug=rollup.slug,
                        state_code=rollup.state_code,
                        facility_count=0,
                        latitude=rollup.latitude,
                        longitude=rollup.longitude,
                    )
                )
            )
        self._upsert_chunks(CITIES_TABLE, stale_rows, ("slug", "state_code"))
        return len(stale_rows)

    def _upsert_chunks(
        self,
        table_name: str,
        rows: Sequence[dict[str, Any]],
        conflict_columns: Iterable[str],
    ) -> None:
        chunk_size = self._store.max_rows_per_call
        key = tuple(conflict_columns)
        for start in range(0, len(rows), chunk_size):
            self._store.upsert(table_name, rows[start : start + chunk_size], key)


def _accumulate_state(
    state_totals: dict[str, _StateAccumulator],
    row: dict[str, Any],
    is_indexable: bool,
) -> None:
    code = str(row["state"])
    total = state_totals.get(code)
    if total is None:
        total = _StateAccumulator(code=code, name=str(row["state_name"] or code))
        state_totals[code] = total
    total.count += int(is_indexable)


def _accumulate_city(
    city_totals: dict[tuple[str, str], _CityAccumulator],
    row: dict[str, Any],
    is_indexable: bool,
) -> None:
    key = (str(row["city_slug"]), str(row["state"]))
    total = city_totals.get(key)
    if total is None:
        total = _CityAccumulator(name=str(row["city"]), slug=key[0], state_code=key[1])
        city_totals[key] = total
    total.count += int(is_indexable)
    if total.latitude is None and row["latitude"] is not None and row["longitude"] is not None:
        total.latitude = float(row["latitude"])
        total.longitude = float(row["longitude"])
