"""Unit tests for read-side facility queries."""

from __future__ import annotations

from store.batch_persister import BatchPersister
from store.facility_queries import (
    get_cities_by_state,
    get_facilities_by_city,
    get_facilities_by_state,
    get_facility_by_slug,
    get_state_by_slug,
    get_total_indexable_count,
    iter_indexable_slugs,
)
from store.rollup_aggregator import RollupAggregator
from store.row_store import RowStore
from tests.facility_factory import make_facility


def _seed(row_store: RowStore) -> None:
    BatchPersister(row_store).upsert_all(
        [
            make_facility("1", 0.75),
            make_facility("2", 0.95),
            make_facility("3", 0.2),
            make_facility("4", 0.9, city="Bangor"),
            make_facility("5", 0.3, city="Nampa"),
        ]
    )
    RollupAggregator(row_store).recompute_rollups()


def test_facilities_by_state_are_indexable_and_best_first(row_store: RowStore) -> None:
    """State listings should exclude low scores and sort by score."""
    _seed(row_store)

    listed = get_facilities_by_state(row_store, "me", limit=2)

    assert [item.facility.external_id for item in listed] == ["2", "4"]


def test_facilities_by_city_filters_city_slug(row_store: RowStore) -> None:
    _seed(row_store)

    listed = get_facilities_by_city(row_store, "ME", "portland")

    assert [item.facility.external_id for item in listed] == ["2", "1"]


def test_facility_by_slug_returns_stored_record(row_store: RowStore) -> None:
    """Slug lookups should return the full stored facility."""
    _seed(row_store)
    slug = make_facility("4", city="Bangor").slug

    stored = get_facility_by_slug(row_store, slug)

    assert stored is not None and stored.facility.city == "Bangor" and stored.record_id > 0


def test_cities_by_state_skip_zero_counts(row_store: RowStore) -> None:
    """Informational cities should not be listed."""
    _seed(row_store)

    cities = get_cities_by_state(row_store, "ME")

    assert [(city.slug, city.facility_count) for city in cities] == [
        ("portland", 2),
        ("bangor", 1),
    ]


def test_state_by_slug_and_totals(row_store: RowStore) -> None:
    _seed(row_store)

    state = get_state_by_slug(row_store, "maine")

    assert state is not None and state.facility_count == get_total_indexable_count(row_store) == 3


def test_iter_indexable_slugs_lists_only_indexable(row_store: RowStore) -> None:
    _seed(row_store)

    assert len(list(iter_indexable_slugs(row_store))) == 3
