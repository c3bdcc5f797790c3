"""Chunked facility upserts with per-record fallback.

Facilities are written in chunks no larger than the store row limit.
When a chunk fails, its records are retried one by one so a single bad
row does not block the rest of the chunk.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from core.constants import DEFAULT_UPSERT_CHUNK_SIZE, FACILITIES_TABLE
from core.errors import AtlasStoreError
from core.logging_config import get_logger
from core.types import FacilityRecord, PersistResult
from store.record_payload import facility_to_row
from store.row_store import RowStore

_LOGGER = get_logger(__name__)
_UPSERT_KEY = ("external_id",)


class BatchPersister:
    """Idempotent facility writer keyed by external id."""

    def __init__(self, store: RowStore, chunk_size: int = DEFAULT_UPSERT_CHUNK_SIZE) -> None:
        """Create a persister.

        Args:
            store: Target row store.
            chunk_size: Requested rows per write call, capped at the store limit.
        """
        self._store = store
        self._chunk_size = max(1, min(chunk_size, store.max_rows_per_call))

    def upsert_all(self, records: Sequence[FacilityRecord]) -> PersistResult:
        """Upsert every record in bounded chunks.

        Args:
            records: Deduplicated facility records.

        Returns:
            Inserted, updated, and failed counters.
        """
        inserted = updated = failed = failed_chunks = 0
        total_chunks = (len(records) + self._chunk_size - 1) // self._chunk_size
        for chunk_number, start in enumerate(range(0, len(records), self._chunk_size), 1):
            chunk = records[start : start + self._chunk_size]
            existing_ids = self._existing_external_ids(chunk)
            written, chunk_failed = self._write_chunk(chunk, chunk_number, total_chunks)
            if chunk_failed:
                failed_chunks += 1
            for record in written:
                if record.external_id in existing_ids:
                    updated += 1
                else:
                    inserted += 1
            failed += len(chunk) - len(written)
        result = PersistResult(
            inserted=inserted,
            updated=updated,
            failed=failed,
            failed_chunks=failed_chunks,
        )
        _LOGGER.info(
            "facilities_persisted",
            inserted=result.inserted,
            updated=result.updated,
            failed=result.failed,
            failed_chunks=result.failed_chunks,
            chunk_size=self._chunk_size,
        )
        return result

    def _write_chunk(
        self,
        chunk: Sequence[FacilityRecord],
        chunk_number: int,
        total_chunks: int,
    ) -> tuple[list[FacilityRecord], bool]:
        """Write one chunk, degrading to single-row writes on failure.

        Returns:
            Records written successfully and whether the chunk write failed.
        """
        updated_at = datetime.now(timezone.utc)
        rows = [facility_to_row(record, updated_at) for record in chunk]
        try:
            self._store.upsert(FACILITIES_TABLE, rows, _UPSERT_KEY)
        except AtlasStoreError as error:
            _LOGGER.warning(
                "chunk_upsert_failed",
                chunk=chunk_number,
                total_chunks=total_chunks,
                rows=len(rows),
                error=str(error),
            )
            return self._write_individually(chunk, rows), True
        _LOGGER.debug("chunk_upserted", chunk=chunk_number, total_chunks=total_chunks, rows=len(rows))
        return list(chunk), False

    def _write_individually(
        self,
        chunk: Sequence[FacilityRecord],
        rows: list[dict[str, object]],
    ) -> list[FacilityRecord]:
        written: list[FacilityRecord] = []
        for record, row in zip(chunk, rows):
            try:
                self._store.upsert(FACILITIES_TABLE, [row], _UPSERT_KEY)
            except AtlasStoreError as error:
                _LOGGER.error(
                    "record_upsert_failed",
                    external_id=record.external_id,
                    slug=record.slug,
                    error=str(error),
                )
                continue
            written.append(record)
        return written

    def _existing_external_ids(self, chunk: Sequence[FacilityRecord]) -> set[str]:
        """Return which external ids in the chunk already exist."""
        external_ids = [record.external_id for record in chunk]
        try:
            rows = self._store.select_in(
                FACILITIES_TABLE, "external_id", external_ids, columns=("external_id",)
            )
        except AtlasStoreError as error:
            _LOGGER.warning("existing_id_lookup_failed", rows=len(external_ids), error=str(error))
            return set()
        return {str(row["external_id"]) for row in rows}
