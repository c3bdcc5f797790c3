"""Unit tests for the check-update command exit codes."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from store import atlas_sdk
from store.ingest_metadata import IngestMetadataStore
from store.row_store import RowStore
from tests.source_stubs import build_source_client


def _stub_source(monkeypatch: pytest.MonkeyPatch, record_count: int, failing: bool = False) -> None:
    page = {"page": 1, "totalPages": 1, "recordCount": record_count, "rows": []}
    client = build_source_client([page], failing_pages={1} if failing else ())
    monkeypatch.setattr(atlas_sdk.SourceClient, "from_config", lambda config: client)


def test_cold_start_exits_one_and_writes_github_output(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    database_url: str,
    row_store: RowStore,
) -> None:
    """No prior ingest should report an available update."""
    output_file = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output_file))
    _stub_source(monkeypatch, 800)

    exit_code = main(["--database-url", database_url, "check-update"])

    assert exit_code == 1
    assert output_file.read_text(encoding="utf-8") == "has_update=true\nlatest_count=800\n"


def test_unchanged_count_exits_zero(
    monkeypatch: pytest.MonkeyPatch,
    database_url: str,
    row_store: RowStore,
) -> None:
    """Counts within the threshold should report no update."""
    IngestMetadataStore(row_store).record_ingest(800, "https://source.test/export")
    _stub_source(monkeypatch, 801)

    assert main(["--database-url", database_url, "check-update"]) == 0


def test_probe_failure_exits_two(
    monkeypatch: pytest.MonkeyPatch,
    database_url: str,
    row_store: RowStore,
) -> None:
    """Source errors should map to the error exit code."""
    _stub_source(monkeypatch, 0, failing=True)

    assert main(["--database-url", database_url, "check-update"]) == 2


def test_missing_database_exits_two() -> None:
    """Without a store the check cannot run."""
    assert main(["check-update"]) == 2
