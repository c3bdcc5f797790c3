"""Raw dataset download to a local JSON file.

The download writes every raw row as a JSON array plus a sidecar
``<name>.metadata.json`` file with coverage statistics. The array file
can later be ingested with ``atlas ingest --source-file``.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from core.errors import AtlasSourceError
from core.logging_config import get_logger
from core.types import RawRecord
from ingest.source_client import SourceClient
from transforms.field_parsing import clean_text

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RawExportStats:
    """Coverage statistics written next to a raw export."""

    record_count: int
    state_count: int
    city_count: int
    with_phone: int
    with_website: int
    with_coordinates: int
    pages_failed: int
    source_url: str
    downloaded_at: str
    fetch_time_ms: int


def metadata_path_for(output_path: Path) -> Path:
    """Return the stats sidecar path for an export file."""
    return output_path.with_name(f"{output_path.stem}.metadata.json")


def summarize_raw_records(
    records: Sequence[RawRecord],
    source_url: str,
    fetch_time_ms: int,
    pages_failed: int = 0,
) -> RawExportStats:
    """Compute coverage statistics over raw rows."""
    states = {clean_text(record.get("state")) for record in records}
    cities = {
        (clean_text(record.get("state")), clean_text(record.get("city"))) for record in records
    }
    return RawExportStats(
        record_count=len(records),
        state_count=len(states - {None}),
        city_count=len({city for city in cities if city[1] is not None}),
        with_phone=sum(
            1 for record in records if clean_text(record.get("phone")) or clean_text(record.get("intake1"))
        ),
        with_website=sum(1 for record in records if clean_text(record.get("website"))),
        with_coordinates=sum(
            1 for record in records if record.get("latitude") and record.get("longitude")
        ),
        pages_failed=pages_failed,
        source_url=source_url,
        downloaded_at=datetime.now(timezone.utc).isoformat(),
        fetch_time_ms=fetch_time_ms,
    )


def download_raw_dataset(source: SourceClient, output_path: Path) -> RawExportStats:
    """Fetch all source pages and write them to a local JSON file.

    Args:
        source: Configured source client.
        output_path: Destination JSON array file.

    Returns:
        Coverage statistics, also written to the sidecar file.

    Raises:
        AtlasSourceError: If nothing was fetched or files cannot be written.
    """
    started = time.monotonic()
    records = list(source.fetch_all_pages())
    fetch_time_ms = int((time.monotonic() - started) * 1000)
    if not records:
        raise AtlasSourceError(
            f"Source at {source.source_url} returned no rows "
            f"({source.stats.pages_failed} pages failed). Nothing was written."
        )
    stats = summarize_raw_records(
        records, source.source_url, fetch_time_ms, source.stats.pages_failed
    )
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(list(records), indent=2), encoding="utf-8")
        metadata_path_for(output_path).write_text(
            json.dumps(asdict(stats), indent=2), encoding="utf-8"
        )
    except OSError as error:
        raise AtlasSourceError(
            f"Failed to write raw export to {output_path}: {error}. "
            "Check the output directory permissions."
        ) from error
    _LOGGER.info(
        "raw_export_written",
        output_path=str(output_path),
        record_count=stats.record_count,
        state_count=stats.state_count,
        city_count=stats.city_count,
        fetch_time_ms=stats.fetch_time_ms,
    )
    return stats
