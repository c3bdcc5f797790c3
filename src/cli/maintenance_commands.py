"""Store maintenance CLI command wiring.

This module registers init-db, dedupe, and recompute-rollups, the
one-off operations run outside the scheduled ingest.
"""

from __future__ import annotations

import argparse
from typing import Any

from core.types import RollupResult
from store.atlas_sdk import AtlasClient


def add_maintenance_commands(subparsers: Any) -> None:
    """Register maintenance subcommands."""
    subparsers.add_parser("init-db", help="Create facility, rollup, and metadata tables")
    dedupe_parser = subparsers.add_parser(
        "dedupe",
        help="Delete stored facilities sharing a natural key, keeping the best score",
    )
    dedupe_parser.add_argument(
        "--indexable-only",
        action="store_true",
        help="Only consider indexable facilities",
    )
    subparsers.add_parser(
        "recompute-rollups",
        help="Recount state and city rollups from stored facilities",
    )


def run_init_db_command(client: AtlasClient, args: argparse.Namespace) -> int:
    client.init_db()
    print("schema=ready")
    return 0


def run_dedupe_command(client: AtlasClient, args: argparse.Namespace) -> int:
    """Handle dedupe command invocation."""
    result, rollups = client.deduplicate(indexable_only=args.indexable_only)
    print(f"scanned={result.scanned}")
    print(f"duplicate_groups={result.duplicate_groups}")
    print(f"deleted={result.deleted}")
    print(f"delete_failures={result.delete_failures}")
    _print_rollups(rollups)
    return 1 if result.delete_failures else 0


def run_recompute_rollups_command(client: AtlasClient, args: argparse.Namespace) -> int:
    """Handle recompute-rollups command invocation."""
    _print_rollups(client.recompute_rollups())
    return 0


def _print_rollups(rollups: RollupResult) -> None:
    print(f"indexable_facilities={rollups.indexable_facilities}")
    print(f"state_rollups={rollups.state_rollups}")
    print(f"city_rollups={rollups.city_rollups}")
    print(f"zeroed_rollups={rollups.zeroed_rollups}")
