"""Natural-key facility deduplication transform.

This module collapses facilities that share name, street, city, state,
and phone, keeping the highest-scored record of each group. It runs
after scoring and before persistence in the ingest pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from core.types import FacilityRecord

NaturalKey = tuple[str, str, str, str, str]


@dataclass(frozen=True)
class DeduplicationResult:
    """Deduplicated records plus the number removed."""

    records: list[FacilityRecord]
    removed: int


def build_natural_key(
    name: str | None,
    street1: str | None,
    city: str | None,
    state: str | None,
    phone: str | None,
) -> NaturalKey:
    """Build the exact-match identity key, with missing parts as ``""``."""
    return (name or "", street1 or "", city or "", state or "", phone or "")


def facility_natural_key(record: FacilityRecord) -> NaturalKey:
    """Return the natural key of a normalized facility."""
    return build_natural_key(record.name, record.street1, record.city, record.state, record.phone)


def remove_duplicate_facilities(records: Iterable[FacilityRecord]) -> DeduplicationResult:
    """Keep the best-scored facility per natural key.

    Ties on score keep the record seen first. Survivors keep their
    relative input order, so the result is deterministic.

    Args:
        records: Scored facility records.

    Returns:
        Surviving records and the count of removed duplicates.
    """
    record_list = list(records)
    best_index_by_key: dict[NaturalKey, int] = {}
    for index, record in enumerate(record_list):
        key = facility_natural_key(record)
        best_index = best_index_by_key.get(key)
        if best_index is None or record.quality_score > record_list[best_index].quality_score:
            best_index_by_key[key] = index
    survivor_indexes = sorted(best_index_by_key.values())
    survivors = [record_list[index] for index in survivor_indexes]
    return DeduplicationResult(records=survivors, removed=len(record_list) - len(survivors))
