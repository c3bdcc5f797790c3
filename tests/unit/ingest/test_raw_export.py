"""Unit tests for raw dataset downloads."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from core.errors import AtlasSourceError
from ingest.input_reader import read_raw_records
from ingest.raw_export import download_raw_dataset, metadata_path_for
from tests.source_stubs import build_source_client, load_source_pages


def test_download_writes_rows_and_stats_sidecar(tmp_path: Path) -> None:
    """Downloads should write a readable export and its coverage stats."""
    output_path = tmp_path / "exports" / "facilities.json"

    stats = download_raw_dataset(build_source_client(load_source_pages()), output_path)
    sidecar = json.loads(metadata_path_for(output_path).read_text(encoding="utf-8"))

    assert len(read_raw_records(output_path)) == 4
    assert (sidecar["record_count"], sidecar["state_count"], sidecar["city_count"]) == (4, 1, 2)
    assert (stats.with_website, stats.with_coordinates) == (1, 2)


def test_download_fails_when_nothing_fetched(tmp_path: Path) -> None:
    """An empty fetch should not overwrite anything."""
    client = build_source_client(load_source_pages(), failing_pages={1})
    output_path = tmp_path / "facilities.json"

    with pytest.raises(AtlasSourceError):
        download_raw_dataset(client, output_path)

    assert not output_path.exists()
