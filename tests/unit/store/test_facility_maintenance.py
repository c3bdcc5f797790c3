"""Unit tests for store-side duplicate cleanup."""

from __future__ import annotations

from store.batch_persister import BatchPersister
from store.facility_maintenance import deduplicate_stored_facilities
from store.row_store import RowStore
from tests.facility_factory import make_facility


def test_dedupe_keeps_highest_score_per_key(row_store: RowStore) -> None:
    """Lower-scored rows sharing a natural key should be deleted."""
    BatchPersister(row_store).upsert_all(
        [
            make_facility("1", 0.5, name="Hope House"),
            make_facility("2", 0.9, name="Hope House"),
            make_facility("3", 0.7, name="Hope House"),
            make_facility("4", 0.8, name="Other Place"),
        ]
    )

    result = deduplicate_stored_facilities(row_store, delete_batch_size=1)
    remaining = sorted(row["external_id"] for row in row_store.iter_rows("facilities"))

    assert (result.duplicate_groups, result.deleted, remaining) == (1, 2, ["2", "4"])


def test_dedupe_indexable_only_ignores_low_scores(row_store: RowStore) -> None:
    """Restricted passes should leave non-indexable rows alone."""
    BatchPersister(row_store).upsert_all(
        [make_facility("1", 0.5, name="Hope House"), make_facility("2", 0.9, name="Hope House")]
    )

    result = deduplicate_stored_facilities(row_store, indexable_only=True)

    assert (result.scanned, result.deleted) == (1, 0)
