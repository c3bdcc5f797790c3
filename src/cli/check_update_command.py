"""Check-update CLI command wiring.

Exit codes follow the scheduler contract: 0 when no update is due,
1 when an update is available, 2 when the check itself failed.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Any

from core.errors import AtlasError
from core.types import UpdateCheck
from store.atlas_sdk import AtlasClient

EXIT_NO_UPDATE = 0
EXIT_UPDATE_AVAILABLE = 1
EXIT_ERROR = 2


def add_check_update_command(subparsers: Any) -> None:
    """Register check-update subcommand."""
    subparsers.add_parser(
        "check-update",
        help="Compare the source record count with the last ingest",
    )


def run_check_update_command(client: AtlasClient, args: argparse.Namespace) -> int:
    """Handle check-update command invocation."""
    try:
        check = client.check_for_update()
    except AtlasError as error:
        print(f"check_update_error={error}", file=sys.stderr)
        return EXIT_ERROR
    print(f"has_update={str(check.has_update).lower()}")
    print(f"current_count={check.current_count}")
    print(f"latest_count={check.latest_count}")
    _write_github_output(check)
    return EXIT_UPDATE_AVAILABLE if check.has_update else EXIT_NO_UPDATE


def _write_github_output(check: UpdateCheck) -> None:
    """Append step outputs when running inside a workflow runner."""
    output_file = os.getenv("GITHUB_OUTPUT")
    if not output_file:
        return
    with Path(output_file).open("a", encoding="utf-8") as handle:
        handle.write(f"has_update={str(check.has_update).lower()}\n")
        handle.write(f"latest_count={check.latest_count}\n")
