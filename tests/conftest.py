"""Pytest configuration for repository test runs."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path and route structured logs to stderr."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))
    from core.logging_config import configure_logging

    configure_logging("WARNING")


@pytest.fixture(autouse=True)
def _clear_atlas_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from ATLAS_* and GITHUB_OUTPUT values set by the caller."""
    for name in list(os.environ):
        if name.startswith("ATLAS_") or name == "GITHUB_OUTPUT":
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """Return a SQLite URL for a fresh per-test database file."""
    return f"sqlite:///{tmp_path / 'atlas.db'}"


@pytest.fixture
def row_store(database_url: str):
    """Return a row store with the schema created."""
    from store.row_store import RowStore

    store = RowStore.from_url(database_url)
    store.create_schema()
    yield store
    store.dispose()
