"""Unit tests for chunked facility persistence."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from core.errors import AtlasStoreError
from store.batch_persister import BatchPersister
from store.row_store import RowStore
from tests.facility_factory import make_facility


class _RecordingStore:
    """Store double that records every call size."""

    max_rows_per_call = 1000

    def __init__(self) -> None:
        self.upsert_sizes: list[int] = []
        self.lookup_sizes: list[int] = []

    def upsert(
        self,
        table_name: str,
        rows: Sequence[Mapping[str, Any]],
        conflict_columns: Sequence[str],
    ) -> int:
        self.upsert_sizes.append(len(rows))
        return len(rows)

    def select_in(
        self,
        table_name: str,
        column: str,
        values: Sequence[Any],
        columns: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        self.lookup_sizes.append(len(values))
        return []


class _FailingStore(_RecordingStore):
    """Store double whose lookups always fail."""

    def select_in(self, *args: Any, **kwargs: Any) -> list[dict[str, Any]]:
        raise AtlasStoreError("lookup unavailable")


def test_upsert_all_never_exceeds_row_limit() -> None:
    """2500 records should be written as 1000, 1000, 500."""
    store = _RecordingStore()
    records = [make_facility(str(index)) for index in range(2500)]

    result = BatchPersister(store, chunk_size=5000).upsert_all(records)  # type: ignore[arg-type]

    assert (store.upsert_sizes, store.lookup_sizes, result.inserted) == (
        [1000, 1000, 500],
        [1000, 1000, 500],
        2500,
    )


def test_upsert_all_splits_inserted_and_updated(row_store: RowStore) -> None:
    """Existing external ids should count as updates on the next run."""
    persister = BatchPersister(row_store, chunk_size=2)
    persister.upsert_all([make_facility("1"), make_facility("2")])

    result = persister.upsert_all([make_facility("2"), make_facility("3")])

    assert (result.inserted, result.updated, result.failed) == (1, 1, 0)


def test_failed_chunk_falls_back_to_single_rows(row_store: RowStore) -> None:
    """A bad row should fail alone while its chunk neighbors persist."""
    good = make_facility("1")
    clashing = make_facility("2", slug=good.slug)

    result = BatchPersister(row_store).upsert_all([good, clashing])

    assert (result.persisted, result.failed, result.failed_chunks) == (1, 1, 1)
    assert row_store.count("facilities") == 1


def test_lookup_failure_still_writes_rows() -> None:
    """Insert/update classification failures should not block writes."""
    store = _FailingStore()

    result = BatchPersister(store).upsert_all([make_facility("1")])  # type: ignore[arg-type]

    assert (store.upsert_sizes, result.inserted) == ([1], 1)
