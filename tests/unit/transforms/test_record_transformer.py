"""Unit tests for the raw-to-facility record transform."""

from __future__ import annotations

import pytest

from core.errors import AtlasTransformError
from core.regions import RegionTable
from transforms.record_transformer import RecordTransformer, resolve_external_id


def _raw_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "_irow": "700123",
        "name1": " Bayside Counseling ",
        "street1": "40 Main St",
        "city": "Bangor",
        "state": "me",
        "zip": "04401",
        "phone": "207-555-0300",
        "latitude": "44.8",
        "longitude": "-68.77",
        "services": [
            {"f1": "Type of Care", "f2": "TC", "f3": "Mental health treatment"},
            {"f1": "Special Programs", "f2": "SG", "f3": "Veterans"},
        ],
    }
    row.update(overrides)
    return row


@pytest.mark.parametrize("missing_field", ["name1", "city", "state"])
def test_transform_rejects_missing_required_field(missing_field: str) -> None:
    """Rows without name, city, or state should be skipped."""
    transformer = RecordTransformer()

    assert transformer.transform(_raw_row(**{missing_field: "  "}), 0) is None


def test_transform_normalizes_identity_fields() -> None:
    """Transform should trim text, upper-case state, and build slugs."""
    record = RecordTransformer().transform(_raw_row(), 0)

    assert record is not None
    assert (record.name, record.state, record.state_name, record.city_slug, record.slug) == (
        "Bayside Counseling",
        "ME",
        "Maine",
        "bangor",
        "bayside-counseling-bangor-me-700123",
    )


def test_transform_attaches_tags_score_and_coordinates() -> None:
    """Derived fields should come from services, scoring, and coordinates."""
    record = RecordTransformer().transform(_raw_row(), 0)

    assert record is not None
    assert (
        record.type_of_care,
        record.special_programs,
        record.quality_score,
        record.is_indexable,
        record.latitude,
    ) == (("Mental health treatment",), ("Veterans",), 0.81, True, 44.8)


def test_transform_uses_injected_region_table() -> None:
    """Region names should come from the table passed in."""
    transformer = RecordTransformer(regions=RegionTable({"ME": "Pine Tree State"}))

    record = transformer.transform(_raw_row(), 0)

    assert record is not None and record.state_name == "Pine Tree State"


def test_transform_applies_configured_threshold() -> None:
    """Indexability should follow the injected threshold."""
    record = RecordTransformer(indexable_threshold=0.9).transform(_raw_row(), 0)

    assert record is not None and record.is_indexable is False


def test_transform_drops_unparsable_coordinates() -> None:
    """Non-numeric coordinates should be stored as missing."""
    record = RecordTransformer().transform(_raw_row(latitude="north", longitude="nan"), 0)

    assert record is not None and (record.latitude, record.longitude) == (None, None)


def test_resolve_external_id_prefers_irow_then_frid_then_ordinal() -> None:
    """External id fallback order should be _irow, frid, ordinal."""
    ids = (
        resolve_external_id({"_irow": 5, "frid": "F1"}, 9),
        resolve_external_id({"frid": "F1"}, 9),
        resolve_external_id({}, 9),
    )

    assert ids == ("5", "F1", "9")


def test_slugs_stay_unique_for_colliding_names() -> None:
    """Facilities sharing name, city, and state get distinct slugs."""
    transformer = RecordTransformer()
    first = transformer.transform(_raw_row(_irow="1"), 0)
    second = transformer.transform(_raw_row(_irow="2"), 1)

    assert first is not None and second is not None and first.slug != second.slug


def test_transformer_rejects_threshold_outside_unit_interval() -> None:
    """Thresholds above one would make every record non-indexable."""
    with pytest.raises(AtlasTransformError):
        RecordTransformer(indexable_threshold=1.2)
