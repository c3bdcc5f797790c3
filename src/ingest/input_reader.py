"""Raw facility readers for local exports.

This module loads raw facility rows from a file written by
``atlas download`` (a JSON array), a saved API page (an object with
``rows``), or JSON Lines with one row per line.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.errors import AtlasSourceError
from core.types import RawRecord


def read_raw_records(source_path: Path) -> list[RawRecord]:
    """Load raw facility rows from a local file.

    Args:
        source_path: JSON or JSONL file.

    Returns:
        Raw rows in file order.

    Raises:
        AtlasSourceError: If the file is missing or malformed.
    """
    path = source_path.expanduser()
    if not path.is_file():
        raise AtlasSourceError(
            f"Failed to read source file at {path}: file does not exist. "
            "Run `atlas download --output PATH` first or pass an existing file."
        )
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise AtlasSourceError(
            f"Failed to read source file at {path}: {error}. "
            "Check file permissions and that the file is UTF-8 encoded JSON."
        ) from error
    if path.suffix.lower() == ".jsonl":
        return _read_jsonl_records(path, text)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        raise AtlasSourceError(
            f"Failed to parse source file {path}: {error.msg} at line {error.lineno}. "
            "Fix the JSON syntax and retry ingest."
        ) from error
    if isinstance(payload, dict):
        payload = payload.get("rows")
    return _validated_rows(path, payload)


def _read_jsonl_records(path: Path, text: str) -> list[RawRecord]:
    """Read one raw row per non-blank JSONL line."""
    rows: list[Any] = []
    for line_number, line in enumerate(text.splitlines(), 1):
        if not line.strip():
            continue
        try:
            rows.append(json.loads(line))
        except json.JSONDecodeError as error:
            raise AtlasSourceError(
                f"Failed to parse JSONL record at {path}:{line_number}: "
                f"{error.msg}. Fix the JSON syntax and retry ingest."
            ) from error
    return _validated_rows(path, rows)


def _validated_rows(path: Path, rows: Any) -> list[RawRecord]:
    if not isinstance(rows, list):
        raise AtlasSourceError(
            f"Invalid source file {path}: expected a JSON array of facility objects "
            "or an object with a 'rows' array."
        )
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise AtlasSourceError(
                f"Invalid source row {index} in {path}: expected an object, "
                f"got {type(row).__name__}."
            )
    return rows
