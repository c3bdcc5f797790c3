"""Store-side duplicate cleanup for persisted facilities.

Facilities with different external ids can still describe the same
place. This pass groups stored rows by natural key, keeps the highest
scoring row per group, and deletes the rest in small batches.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import DEFAULT_DELETE_BATCH_SIZE, FACILITIES_TABLE
from core.errors import AtlasStoreError
from core.logging_config import get_logger
from store.row_store import RowStore
from transforms.natural_key_deduplication import NaturalKey, build_natural_key

_LOGGER = get_logger(__name__)
_KEY_COLUMNS = ("id", "name", "street1", "city", "state", "phone", "quality_score")


@dataclass(frozen=True)
class MaintenanceResult:
    """Outcome of one stored-facility dedup pass."""

    scanned: int
    duplicate_groups: int
    deleted: int
    delete_failures: int


def deduplicate_stored_facilities(
    store: RowStore,
    indexable_only: bool = False,
    delete_batch_size: int = DEFAULT_DELETE_BATCH_SIZE,
) -> MaintenanceResult:
    """Remove stored facilities that share a natural key.

    Rows are read ordered by score descending then id ascending, so the
    first row seen for a key is its survivor.

    Args:
        store: Row store holding the facilities table.
        indexable_only: Restrict the pass to indexable facilities.
        delete_batch_size: Ids removed per delete call.

    Returns:
        Scan, group, and delete counters.

    Raises:
        AtlasStoreError: If the facility scan fails.
    """
    filters = {"is_indexable": True} if indexable_only else None
    survivors: dict[NaturalKey, int] = {}
    duplicate_keys: set[NaturalKey] = set()
    loser_ids: list[int] = []
    scanned = 0
    for row in store.iter_rows(
        FACILITIES_TABLE,
        columns=_KEY_COLUMNS,
        filters=filters,
        order_by=("-quality_score", "id"),
    ):
        scanned += 1
        key = build_natural_key(
            row["name"], row["street1"], row["city"], row["state"], row["phone"]
        )
        if key in survivors:
            duplicate_keys.add(key)
            loser_ids.append(int(row["id"]))
        else:
            survivors[key] = int(row["id"])
    deleted, failures = _delete_in_batches(store, loser_ids, delete_batch_size)
    result = MaintenanceResult(
        scanned=scanned,
        duplicate_groups=len(duplicate_keys),
        deleted=deleted,
        delete_failures=failures,
    )
    _LOGGER.info(
        "stored_duplicates_removed",
        scanned=result.scanned,
        duplicate_groups=result.duplicate_groups,
        deleted=result.deleted,
        delete_failures=result.delete_failures,
        indexable_only=indexable_only,
    )
    return result


def _delete_in_batches(store: RowStore, ids: list[int], batch_size: int) -> tuple[int, int]:
    size = max(1, min(batch_size, store.max_rows_per_call))
    deleted = failures = 0
    for start in range(0, len(ids), size):
        batch = ids[start : start + size]
        try:
            deleted += store.delete_in(FACILITIES_TABLE, "id", batch)
        except AtlasStoreError as error:
            failures += len(batch)
            _LOGGER.error("duplicate_delete_failed", ids=len(batch), error=str(error))
    return deleted, failures
