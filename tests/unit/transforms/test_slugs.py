"""Unit tests for slug builders."""

from __future__ import annotations

from transforms.slugs import build_facility_slug, slugify


def test_slugify_folds_accents_and_punctuation() -> None:
    """Slugify should ASCII-fold and collapse separators."""
    assert slugify("  CafÃ©  SeÃ±or -- St. Mary's ") == "cafe-senor-st-marys"


def test_slugify_truncates_and_strips_edge_hyphens() -> None:
    """Truncation must not leave a trailing hyphen."""
    slug = slugify("a" * 99 + " b", max_length=100)

    assert slug == "a" * 99


def test_facility_slugs_differ_for_same_name_city_state() -> None:
    """External id suffix should keep colliding names unique."""
    first = build_facility_slug("Hope House", "Austin", "TX", "100001")
    second = build_facility_slug("Hope House", "Austin", "TX", "100002")

    assert first != second and first == "hope-house-austin-tx-100001"


def test_facility_slug_pads_short_external_id() -> None:
    """Short ids should be zero-padded to the suffix width."""
    assert build_facility_slug("Hope", "Austin", "TX", "42").endswith("-000042")


def test_facility_slug_without_ascii_base_uses_fallback_prefix() -> None:
    """Names with no ASCII characters should still get a slug."""
    assert build_facility_slug("东方", "北京", "京", "123456") == (
        "facility-unknown-123456"
    )


def test_facility_slugs_differ_for_long_ids_sharing_trailing_digits() -> None:
    """Ids longer than the suffix width should be kept whole."""
    first = build_facility_slug("Hope House", "Austin", "TX", "1000001")
    second = build_facility_slug("Hope House", "Austin", "TX", "2000001")

    assert (first, second) == (
        "hope-house-austin-tx-1000001",
        "hope-house-austin-tx-2000001",
    )
