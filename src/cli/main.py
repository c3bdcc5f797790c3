"""Facility Atlas CLI entry points.
This module exposes ingest, change detection, and maintenance commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.check_update_command import (
    EXIT_ERROR,
    add_check_update_command,
    run_check_update_command,
)
from cli.maintenance_commands import (
    add_maintenance_commands,
    run_dedupe_command,
    run_init_db_command,
    run_recompute_rollups_command,
)
from core.config import AtlasConfig
from core.errors import AtlasError
from core.logging_config import configure_logging
from core.types import IngestOptions
from store.atlas_sdk import AtlasClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="atlas", description="Facility Atlas data pipeline CLI")
    parser.add_argument("--database-url", help="Override ATLAS_DATABASE_URL for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_ingest_command(subparsers)
    add_check_update_command(subparsers)
    add_maintenance_commands(subparsers)
    _add_download_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Facility Atlas CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.database_url)
        configure_logging(client.config.log_level)
        return _dispatch(parser, client, args)
    except AtlasError as error:
        print(f"error: {error}", file=sys.stderr)
        return EXIT_ERROR


def _dispatch(parser: argparse.ArgumentParser, client: AtlasClient, args: argparse.Namespace) -> int:
    try:
        if args.command == "ingest":
            return _run_ingest_command(client, args)
        if args.command == "check-update":
            return run_check_update_command(client, args)
        if args.command == "init-db":
            return run_init_db_command(client, args)
        if args.command == "dedupe":
            return run_dedupe_command(client, args)
        if args.command == "recompute-rollups":
            return run_recompute_rollups_command(client, args)
        if args.command == "download":
            return _run_download_command(client, args)
    finally:
        client.close()
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(database_url: str | None) -> AtlasClient:
    """Build SDK client with optional database-url override.

    Args:
        database_url: Optional override URL.

    Returns:
        Configured SDK client.
    """
    config = AtlasConfig.from_env()
    if database_url:
        config = replace(config, database_url=database_url)
    return AtlasClient(config)


def _run_ingest_command(client: AtlasClient, args: argparse.Namespace) -> int:
    """Handle ingest command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when any record failed to persist.
    """
    options = IngestOptions(
        dry_run=args.dry_run,
        truncate=args.truncate,
        source_file=Path(args.source_file).expanduser() if args.source_file else None,
    )
    summary = client.ingest(options)
    print(f"fetched={summary.fetched}")
    print(f"transformed={summary.transformed}")
    print(f"skipped={summary.skipped}")
    print(f"duplicates_removed={summary.duplicates_removed}")
    print(f"indexable={summary.indexable}")
    print(f"average_score={summary.average_score:.2f}")
    print(f"pages_failed={summary.pages_failed}")
    if summary.dry_run:
        print("dry_run=true")
        return 0
    print(f"inserted={summary.inserted}")
    print(f"updated={summary.updated}")
    print(f"failed={summary.failed}")
    if summary.rollups is not None:
        print(f"state_rollups={summary.rollups.state_rollups}")
        print(f"city_rollups={summary.rollups.city_rollups}")
    return 1 if summary.failed else 0


def _run_download_command(client: AtlasClient, args: argparse.Namespace) -> int:
    """Handle download command."""
    stats = client.download(Path(args.output).expanduser())
    print(f"record_count={stats.record_count}")
    print(f"state_count={stats.state_count}")
    print(f"city_count={stats.city_count}")
    print(f"with_phone={stats.with_phone}")
    print(f"with_website={stats.with_website}")
    print(f"with_coordinates={stats.with_coordinates}")
    print(f"pages_failed={stats.pages_failed}")
    return 0


def _add_ingest_command(subparsers: Any) -> None:
    """Register ingest subcommand."""
    parser = subparsers.add_parser("ingest", help="Fetch, score, and persist facilities")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Transform and score without writing to the store",
    )
    parser.add_argument(
        "--truncate",
        action="store_true",
        help="Clear facility and rollup tables before ingesting",
    )
    parser.add_argument(
        "--source-file",
        help="Ingest a local raw export instead of the live API",
    )


def _add_download_command(subparsers: Any) -> None:
    """Register download subcommand."""
    parser = subparsers.add_parser("download", help="Save the raw dataset to a local JSON file")
    parser.add_argument("--output", required=True, help="Destination JSON file")
