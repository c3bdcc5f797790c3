"""Single-row ingest freshness bookkeeping."""

from __future__ import annotations

from datetime import datetime, timezone

from core.constants import (
    DEFAULT_SOURCE_NAME,
    INGEST_METADATA_ROW_ID,
    INGEST_METADATA_TABLE,
)
from core.logging_config import get_logger
from core.types import IngestMetadata
from store.record_payload import ingest_metadata_from_row
from store.row_store import RowStore

_LOGGER = get_logger(__name__)
_ROW_KEY = ("id",)


def format_data_period(moment: datetime) -> str:
    """Return the month label stored with an ingest, e.g. ``October 2026``."""
    return moment.strftime("%B %Y")


class IngestMetadataStore:
    """Reader and writer for the ingest metadata row."""

    def __init__(self, store: RowStore, source_name: str = DEFAULT_SOURCE_NAME) -> None:
        self._store = store
        self._source_name = source_name

    def load(self) -> IngestMetadata | None:
        """Return the stored metadata, or None before the first ingest."""
        row = self._store.get_one(INGEST_METADATA_TABLE, {"id": INGEST_METADATA_ROW_ID})
        return None if row is None else ingest_metadata_from_row(row)

    def record_ingest(
        self,
        record_count: int,
        source_url: str,
        now: datetime | None = None,
    ) -> IngestMetadata:
        """Stamp a completed ingest.

        Args:
            record_count: Facility row count after the run.
            source_url: Endpoint or file the run ingested from.
            now: Completion time; defaults to the current UTC time.

        Returns:
            Metadata as written.
        """
        moment = now or datetime.now(timezone.utc)
        previous = self.load()
        metadata = IngestMetadata(
            source_name=self._source_name,
            source_url=source_url,
            data_period=format_data_period(moment),
            record_count=record_count,
            last_updated=moment,
            last_checked_at=previous.last_checked_at if previous else None,
        )
        self._write(metadata)
        _LOGGER.info(
            "ingest_metadata_recorded",
            record_count=record_count,
            data_period=metadata.data_period,
        )
        return metadata

    def touch_last_checked(self, source_url: str, now: datetime | None = None) -> None:
        """Record that the change detector probed the source.

        A placeholder row with a zero count is created when no ingest has
        been recorded yet, so the next probe still reads as a cold start.
        """
        moment = now or datetime.now(timezone.utc)
        updated = self._store.update(
            INGEST_METADATA_TABLE,
            {"last_checked_at": moment},
            {"id": INGEST_METADATA_ROW_ID},
        )
        if updated:
            return
        self._write(
            IngestMetadata(
                source_name=self._source_name,
                source_url=source_url,
                data_period="",
                record_count=0,
                last_updated=None,
                last_checked_at=moment,
            )
        )

    def _write(self, metadata: IngestMetadata) -> None:
        row = {
            "id": INGEST_METADATA_ROW_ID,
            "source_name": metadata.source_name,
            "source_url": metadata.source_url,
            "data_period": metadata.data_period,
            "record_count": metadata.record_count,
            "last_updated": metadata.last_updated,
            "last_checked_at": metadata.last_checked_at,
        }
        self._store.upsert(INGEST_METADATA_TABLE, [row], _ROW_KEY)
