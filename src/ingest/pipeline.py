"""Ingest orchestration for the facility batch job.

This module coordinates source fetching, transforms, deduplication,
batch persistence, rollup recomputation, and metadata bookkeeping for
one sequential ingest run.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Iterator

from core.config import AtlasConfig
from core.constants import CITIES_TABLE, FACILITIES_TABLE, STATES_TABLE
from core.logging_config import get_logger
from core.regions import RegionTable, load_region_table
from core.types import FacilityRecord, IngestOptions, IngestSummary, RawRecord
from ingest.input_reader import read_raw_records
from ingest.source_client import SourceClient
from store.batch_persister import BatchPersister
from store.ingest_metadata import IngestMetadataStore
from store.rollup_aggregator import RollupAggregator
from store.row_store import RowStore
from transforms.natural_key_deduplication import remove_duplicate_facilities
from transforms.record_transformer import RecordTransformer

_LOGGER = get_logger(__name__)
_TRUNCATE_ORDER = (FACILITIES_TABLE, CITIES_TABLE, STATES_TABLE)


class IngestPipelineRunner:
    """Runner for one sequential ingest pass."""

    def __init__(
        self,
        options: IngestOptions,
        config: AtlasConfig,
        store: RowStore | None = None,
        source: SourceClient | None = None,
        regions: RegionTable | None = None,
    ) -> None:
        self._options = options
        self._config = config
        self._store = store
        self._source = source
        self._transformer = RecordTransformer(
            regions=regions or load_region_table(config.regions_file),
            indexable_threshold=config.indexable_threshold,
        )
        self._fetched = 0
        self._skipped = 0

    def run(self) -> IngestSummary:
        """Execute the pipeline and return end-of-run counters."""
        store = None if self._options.dry_run else self._require_store()
        if store is not None:
            store.check_connection()
            if self._options.truncate:
                self._truncate(store)
        source = self._open_source()
        try:
            records = list(self._transform(self._raw_records(source)))
        finally:
            if source is not None and self._source is None:
                source.close()
        deduplicated = remove_duplicate_facilities(records)
        _LOGGER.info("duplicates_removed", input_count=len(records), removed=deduplicated.removed)
        summary = IngestSummary(
            fetched=self._fetched,
            transformed=len(records),
            skipped=self._skipped,
            duplicates_removed=deduplicated.removed,
            inserted=0,
            updated=0,
            failed=0,
            indexable=sum(1 for record in deduplicated.records if record.is_indexable),
            average_score=_average_score(deduplicated.records),
            pages_failed=source.stats.pages_failed if source is not None else 0,
            dry_run=store is None,
        )
        if store is not None:
            summary = self._persist(store, source, deduplicated.records, summary)
        _log_ingest_completion(summary)
        return summary

    def _persist(
        self,
        store: RowStore,
        source: SourceClient | None,
        records: list[FacilityRecord],
        summary: IngestSummary,
    ) -> IngestSummary:
        """Write records, recount rollups, and stamp ingest metadata."""
        persist_result = BatchPersister(store).upsert_all(records)
        rollups = RollupAggregator(store).recompute_rollups()
        IngestMetadataStore(store).record_ingest(
            store.count(FACILITIES_TABLE), self._source_label(source)
        )
        return replace(
            summary,
            inserted=persist_result.inserted,
            updated=persist_result.updated,
            failed=persist_result.failed,
            rollups=rollups,
        )

    def _open_source(self) -> SourceClient | None:
        if self._options.source_file is not None:
            return None
        return self._source or SourceClient.from_config(self._config)

    def _require_store(self) -> RowStore:
        if self._store is None:
            self._store = RowStore.from_url(self._config.require_database_url())
        return self._store

    def _truncate(self, store: RowStore) -> None:
        for table_name in _TRUNCATE_ORDER:
            removed = store.delete_all(table_name)
            _LOGGER.info("table_truncated", table=table_name, rows=removed)

    def _raw_records(self, source: SourceClient | None) -> Iterable[RawRecord]:
        if source is None:
            return read_raw_records(self._options.source_file)
        return source.fetch_all_pages(self._options.base_query)

    def _transform(self, raw_records: Iterable[RawRecord]) -> Iterator[FacilityRecord]:
        for ordinal_index, raw in enumerate(raw_records):
            self._fetched += 1
            record = self._transformer.transform(raw, ordinal_index)
            if record is None:
                self._skipped += 1
                continue
            yield record

    def _source_label(self, source: SourceClient | None) -> str:
        if self._options.source_file is not None:
            return str(self._options.source_file)
        return source.source_url if source is not None else self._config.source_url


def run_ingest(
    options: IngestOptions,
    config: AtlasConfig,
    store: RowStore | None = None,
    source: SourceClient | None = None,
) -> IngestSummary:
    """Run one ingest pass against the configured source and store.

    Args:
        options: Ingest request options.
        config: Runtime configuration.
        store: Optional row store; built from config when omitted.
        source: Optional source client; built from config when omitted.

    Returns:
        End-of-run summary counters.

    Raises:
        AtlasConfigError: If the store URL is missing for a write run.
        AtlasSourceError: If a local source file cannot be read.
        AtlasStoreError: If the store is unreachable or rollups fail.
    """
    return IngestPipelineRunner(options, config, store=store, source=source).run()


def _average_score(records: list[FacilityRecord]) -> float:
    if not records:
        return 0.0
    return round(sum(record.quality_score for record in records) / len(records), 2)


def _log_ingest_completion(summary: IngestSummary) -> None:
    """Log pipeline completion with end-of-run counters."""
    _LOGGER.info(
        "ingest_completed",
        fetched=summary.fetched,
        transformed=summary.transformed,
        skipped=summary.skipped,
        duplicates_removed=summary.duplicates_removed,
        inserted=summary.inserted,
        updated=summary.updated,
        failed=summary.failed,
        indexable=summary.indexable,
        average_score=summary.average_score,
        pages_failed=summary.pages_failed,
        dry_run=summary.dry_run,
    )
