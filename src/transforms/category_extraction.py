"""Service-category tag extraction.

The source ships a heterogeneous list of service entries, each carrying
a category code (``f2``) and a comma-delimited value string (``f3``).
One pass over that list fills every configured output tag field.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from core.constants import SERVICE_CATEGORY_FIELDS


def extract_service_tags(
    services: Iterable[Any] | None,
    category_fields: Mapping[str, str] = SERVICE_CATEGORY_FIELDS,
) -> dict[str, tuple[str, ...]]:
    """Split service entries into named tag lists.

    The first entry for each code wins; later entries with the same
    code are ignored.

    Args:
        services: Raw service entries, possibly missing.
        category_fields: Category code to output field name.

    Returns:
        Mapping with one tuple of values per output field.
    """
    tags: dict[str, tuple[str, ...]] = {field_name: () for field_name in category_fields.values()}
    if not services:
        return tags
    seen_codes: set[str] = set()
    for entry in services:
        if not isinstance(entry, Mapping):
            continue
        code = entry.get("f2")
        if not isinstance(code, str) or code in seen_codes:
            continue
        field_name = category_fields.get(code)
        if field_name is None:
            continue
        seen_codes.add(code)
        tags[field_name] = split_service_values(entry.get("f3"))
    return tags


def split_service_values(raw_values: Any) -> tuple[str, ...]:
    """Split a comma-delimited value string, dropping blanks."""
    if not isinstance(raw_values, str):
        return ()
    return tuple(value.strip() for value in raw_values.split(",") if value.strip())
