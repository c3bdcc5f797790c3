"""Facility data quality scoring.

This module computes the weighted data quality score (DQS) of a raw
facility row and the indexability flag derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.constants import (
    DEFAULT_INDEXABLE_THRESHOLD,
    QUALITY_BASE_FIELD_COUNT,
    QUALITY_SCORE_DECIMALS,
)
from core.types import RawRecord
from transforms.field_parsing import is_filled, parse_coordinate

COMPLETENESS_WEIGHT = 0.40
RICH_SERVICES_WEIGHT = 0.30
SPARSE_SERVICES_WEIGHT = 0.15
LOCATION_WEIGHT = 0.20
CONTACT_WEIGHT = 0.10
RICH_SERVICES_MIN_COUNT = 4

_BASE_FIELDS = (
    "name1",
    "street1",
    "city",
    "state",
    "zip",
    "phone",
    "website",
    "latitude",
    "longitude",
    "services",
)


@dataclass(frozen=True)
class QualityScore:
    """Quality scoring result for one facility.

    Attributes:
        quality_score: Final rounded score in [0, 1].
        is_indexable: Whether the score clears the threshold.
    """

    quality_score: float
    is_indexable: bool


def score_facility(
    raw: RawRecord,
    indexable_threshold: float = DEFAULT_INDEXABLE_THRESHOLD,
) -> QualityScore:
    """Score a raw facility row.

    Args:
        raw: Raw source row.
        indexable_threshold: Minimum score for indexable facilities.

    Returns:
        Rounded score and indexability flag.
    """
    score = round(compute_quality_score(raw), QUALITY_SCORE_DECIMALS)
    score = max(0.0, min(1.0, score))
    return QualityScore(quality_score=score, is_indexable=score >= indexable_threshold)


def compute_quality_score(raw: RawRecord) -> float:
    """Compute the unrounded weighted quality score."""
    score = COMPLETENESS_WEIGHT * _completeness_ratio(raw)
    score += _services_score(raw.get("services"))
    if _has_location(raw):
        score += LOCATION_WEIGHT
    if is_filled(raw.get("phone")) or is_filled(raw.get("website")) or is_filled(
        raw.get("intake1")
    ):
        score += CONTACT_WEIGHT
    return score


def _completeness_ratio(raw: RawRecord) -> float:
    filled_count = sum(1 for field_name in _BASE_FIELDS if is_filled(raw.get(field_name)))
    return filled_count / QUALITY_BASE_FIELD_COUNT


def _services_score(services: Any) -> float:
    service_count = len(services) if isinstance(services, (list, tuple)) else 0
    if service_count >= RICH_SERVICES_MIN_COUNT:
        return RICH_SERVICES_WEIGHT
    if service_count > 0:
        return SPARSE_SERVICES_WEIGHT
    return 0.0


def _has_location(raw: RawRecord) -> bool:
    """Return whether both coordinates parse to non-zero numbers."""
    latitude = parse_coordinate(raw.get("latitude"))
    longitude = parse_coordinate(raw.get("longitude"))
    if latitude is None or longitude is None:
        return False
    return latitude != 0 and longitude != 0
