"""Unit tests for state and city rollup recomputation."""

from __future__ import annotations

from store.batch_persister import BatchPersister
from store.facility_queries import get_all_states, get_city_by_slug
from store.rollup_aggregator import RollupAggregator
from store.row_store import RowStore
from tests.facility_factory import make_facility


def _persist(row_store: RowStore, records: list) -> None:
    BatchPersister(row_store).upsert_all(records)


def test_state_counts_sum_to_indexable_facilities(row_store: RowStore) -> None:
    """State rollups should count exactly the indexable facilities."""
    _persist(
        row_store,
        [
            make_facility("1", 0.9),
            make_facility("2", 0.8, city="Bangor"),
            make_facility("3", 0.4),
            make_facility("4", 0.95, city="Boise", state="ID"),
        ],
    )

    result = RollupAggregator(row_store).recompute_rollups()
    states = get_all_states(row_store)

    assert sum(state.facility_count for state in states) == result.indexable_facilities == 3


def test_informational_city_gets_zero_count_row(row_store: RowStore) -> None:
    """Cities with only non-indexable facilities keep a zero-count row."""
    _persist(row_store, [make_facility("1", 0.9), make_facility("2", 0.3, city="Nampa")])

    RollupAggregator(row_store).recompute_rollups()
    city = get_city_by_slug(row_store, "ME", "nampa")

    assert city is not None and city.facility_count == 0


def test_city_coordinates_come_from_lowest_id(row_store: RowStore) -> None:
    """Representative coordinates should be deterministic."""
    _persist(
        row_store,
        [
            make_facility("1", 0.9),
            make_facility("2", 0.9, latitude=43.6, longitude=-70.2),
            make_facility("3", 0.9, latitude=44.0, longitude=-71.0),
        ],
    )

    RollupAggregator(row_store).recompute_rollups()
    city = get_city_by_slug(row_store, "me", "portland")

    assert city is not None and (city.latitude, city.longitude) == (43.6, -70.2)


def test_stale_rollups_are_zeroed(row_store: RowStore) -> None:
    """Regions without facilities after a rebuild should drop to zero."""
    _persist(row_store, [make_facility("1", 0.9), make_facility("2", 0.9, state="ID", city="Boise")])
    aggregator = RollupAggregator(row_store)
    aggregator.recompute_rollups()
    row_store.delete_in("facilities", "external_id", ["2"])

    result = aggregator.recompute_rollups()
    counts = {state.code: state.facility_count for state in get_all_states(row_store)}

    assert (counts, result.zeroed_rollups) == ({"ME": 1, "ID": 0}, 2)


def test_recompute_is_idempotent(row_store: RowStore) -> None:
    """Running twice should not duplicate rollup rows."""
    _persist(row_store, [make_facility("1", 0.9)])
    aggregator = RollupAggregator(row_store)

    aggregator.recompute_rollups()
    aggregator.recompute_rollups()

    assert (row_store.count("states"), row_store.count("cities")) == (1, 1)
