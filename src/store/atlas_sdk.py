"""Python SDK for facility ingest and maintenance operations.

This module exposes high-level APIs for ingest, change detection,
store maintenance, raw downloads, and read access backed by the row store.
"""

from __future__ import annotations

from pathlib import Path

from core.config import AtlasConfig
from core.types import IngestOptions, IngestSummary, RollupResult, UpdateCheck
from ingest.change_detector import ChangeDetector
from ingest.pipeline import run_ingest
from ingest.raw_export import RawExportStats, download_raw_dataset
from ingest.source_client import SourceClient
from store.facility_maintenance import MaintenanceResult, deduplicate_stored_facilities
from store.ingest_metadata import IngestMetadataStore
from store.rollup_aggregator import RollupAggregator
from store.row_store import RowStore


class AtlasClient:
    """Primary SDK entry point for facility pipeline workflows."""

    def __init__(
        self,
        config: AtlasConfig | None = None,
        store: RowStore | None = None,
        source: SourceClient | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            store: Optional row store; built lazily from the database URL.
            source: Optional source client; built per call from config.
        """
        self._config = config or AtlasConfig.from_env()
        self._store = store
        self._source = source

    @property
    def config(self) -> AtlasConfig:
        return self._config

    @property
    def store(self) -> RowStore:
        """Return the row store, creating it from config on first use.

        Raises:
            AtlasConfigError: If no database URL is configured.
        """
        if self._store is None:
            self._store = RowStore.from_url(self._config.require_database_url())
        return self._store

    def ingest(self, options: IngestOptions) -> IngestSummary:
        """Run one ingest pass.

        Dry runs never open the store, so they work without a database URL.
        """
        store = None if options.dry_run else self.store
        return run_ingest(options, self._config, store=store, source=self._source)

    def check_for_update(self) -> UpdateCheck:
        """Probe the source and compare against the last ingest count."""
        metadata = IngestMetadataStore(self.store)
        source = self._source or SourceClient.from_config(self._config)
        try:
            detector = ChangeDetector(source, metadata, self._config.change_threshold)
            return detector.check_for_update()
        finally:
            if self._source is None:
                source.close()

    def init_db(self) -> None:
        """Create missing tables and indexes."""
        self.store.check_connection()
        self.store.create_schema()

    def deduplicate(self, indexable_only: bool = False) -> tuple[MaintenanceResult, RollupResult]:
        """Remove stored duplicates, then recount rollups."""
        result = deduplicate_stored_facilities(self.store, indexable_only=indexable_only)
        return result, self.recompute_rollups()

    def recompute_rollups(self) -> RollupResult:
        return RollupAggregator(self.store).recompute_rollups()

    def download(self, output_path: Path) -> RawExportStats:
        """Download the raw dataset to a local JSON file."""
        source = self._source or SourceClient.from_config(self._config)
        try:
            return download_raw_dataset(source, output_path)
        finally:
            if self._source is None:
                source.close()

    def close(self) -> None:
        """Release pooled store connections."""
        if self._store is not None:
            self._store.dispose()
