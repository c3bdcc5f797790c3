"""Unit tests for service-category extraction."""

from __future__ import annotations

from transforms.category_extraction import extract_service_tags, split_service_values


def test_extract_service_tags_maps_codes_to_fields() -> None:
    """Each known code should fill its own tag field."""
    services = [
        {"f1": "Type of Care", "f2": "TC", "f3": "Detox, Outpatient"},
        {"f1": "Payment", "f2": "PAY", "f3": "Medicaid"},
        {"f1": "Unknown", "f2": "ZZ", "f3": "Ignored"},
    ]

    tags = extract_service_tags(services)

    assert tags == {
        "type_of_care": ("Detox", "Outpatient"),
        "service_settings": (),
        "payment_options": ("Medicaid",),
        "age_groups": (),
        "special_programs": (),
    }


def test_extract_service_tags_keeps_first_entry_per_code() -> None:
    """Repeated codes should not overwrite the first entry."""
    services = [
        {"f2": "AGE", "f3": "Adults"},
        {"f2": "AGE", "f3": "Children"},
    ]

    assert extract_service_tags(services)["age_groups"] == ("Adults",)


def test_extract_service_tags_handles_missing_services() -> None:
    """Missing services should yield empty lists for every field."""
    assert all(values == () for values in extract_service_tags(None).values())


def test_split_service_values_drops_blanks() -> None:
    """Blank items between commas should be removed."""
    assert split_service_values(" Veterans, , Young adults ,") == ("Veterans", "Young adults")
