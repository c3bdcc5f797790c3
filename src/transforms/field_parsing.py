"""Raw field coercion helpers shared by transforms."""

from __future__ import annotations

import math
from typing import Any


def clean_text(value: Any) -> str | None:
    """Return a stripped string, or None for missing and blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def is_filled(value: Any) -> bool:
    """Return whether a raw field counts as present for scoring.

    Numeric zero is present; blank strings and empty lists are not.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return bool(value)
    return True


def parse_coordinate(value: Any) -> float | None:
    """Parse a latitude or longitude value.

    Args:
        value: Raw numeric or string coordinate.

    Returns:
        Finite float, or None when missing or unparsable.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        coordinate = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(coordinate):
        return None
    return coordinate
