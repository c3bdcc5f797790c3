"""URL slug builders for facilities, cities, and states.

Facility slugs append the external id as a suffix, zero-padded to a
minimum width, so that facilities sharing a name, city, and state still
get distinct slugs.
"""

from __future__ import annotations

import re
import unicodedata

from core.constants import SLUG_MAX_LENGTH, SLUG_SUFFIX_WIDTH

_DISALLOWED_CHARACTERS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RUNS = re.compile(r"\s+")
_HYPHEN_RUNS = re.compile(r"-+")


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Convert free text into a lowercase hyphenated ASCII slug.

    Args:
        text: Input text.
        max_length: Maximum slug length before edge hyphens are trimmed.

    Returns:
        Slug string, possibly empty when no ASCII characters survive.
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _DISALLOWED_CHARACTERS.sub("", folded.lower())
    slug = _WHITESPACE_RUNS.sub("-", slug.strip())
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug[:max_length].strip("-")


def build_facility_slug(name: str, city: str, state: str, external_id: str) -> str:
    """Build a unique facility slug from name, city, state, and external id.

    Args:
        name: Facility name.
        city: City name.
        state: Region code.
        external_id: Source identifier used for the uniqueness suffix.

    Returns:
        Slug of the form ``<name-city-state>-<suffix>``.
    """
    suffix = _build_suffix(external_id)
    base = slugify(f"{name} {city} {state}")
    if not base:
        return f"facility-{slugify(state) or 'unknown'}-{suffix}"
    return f"{base}-{suffix}"


def _build_suffix(external_id: str) -> str:
    """Return the whole slugified id, zero-padded to the minimum width."""
    token = slugify(str(external_id)) or "0"
    return token.rjust(SLUG_SUFFIX_WIDTH, "0")
