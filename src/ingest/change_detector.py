"""Advisory check for whether the source dataset has changed.

The detector compares the source's reported record count with the count
stored after the last ingest. It never triggers an ingest itself.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from core.constants import DEFAULT_CHANGE_THRESHOLD
from core.errors import AtlasStoreError
from core.logging_config import get_logger
from core.types import UpdateCheck
from ingest.source_client import SourceClient
from store.ingest_metadata import IngestMetadataStore

_LOGGER = get_logger(__name__)


def is_update_due(current_count: int, latest_count: int, threshold: float) -> bool:
    """Return whether a count change warrants a re-ingest.

    A zero current count is a cold start and always warrants one.
    """
    if current_count <= 0:
        return True
    return abs(latest_count - current_count) / current_count > threshold


class ChangeDetector:
    """Record-count probe against the stored ingest metadata."""

    def __init__(
        self,
        source: SourceClient,
        metadata: IngestMetadataStore,
        threshold: float = DEFAULT_CHANGE_THRESHOLD,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._source = source
        self._metadata = metadata
        self._threshold = threshold
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def check_for_update(self) -> UpdateCheck:
        """Probe the first source page and compare record counts.

        ``last_checked_at`` is written whether or not the probe succeeds.

        Returns:
            Verdict with current and latest counts.

        Raises:
            AtlasSourceError: If the probe page cannot be fetched.
            AtlasStoreError: If stored metadata cannot be read.
        """
        try:
            stored = self._metadata.load()
            current_count = stored.record_count if stored else 0
            latest_count = self._source.fetch_page(1).record_count
        finally:
            self._touch_last_checked()
        check = UpdateCheck(
            has_update=is_update_due(current_count, latest_count, self._threshold),
            current_count=current_count,
            latest_count=latest_count,
        )
        _LOGGER.info(
            "update_checked",
            has_update=check.has_update,
            current_count=check.current_count,
            latest_count=check.latest_count,
            threshold=self._threshold,
        )
        return check

    def _touch_last_checked(self) -> None:
        """Stamp the check time; a failed write only logs a warning."""
        try:
            self._metadata.touch_last_checked(self._source.source_url, self._clock())
        except AtlasStoreError as error:
            _LOGGER.warning("last_checked_write_failed", error=str(error))
