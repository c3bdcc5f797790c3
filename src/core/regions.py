"""Region code lookup tables.

This module owns the immutable region-code to display-name mapping.
Transforms receive a table instance so tests can swap region sets.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Mapping, cast

import yaml

from core.errors import AtlasConfigError

_US_REGION_NAMES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
    "PR": "Puerto Rico", "VI": "Virgin Islands", "GU": "Guam",
    "AS": "American Samoa", "MP": "Northern Mariana Islands",
}


class RegionTable:
    """Read-only region code to region name mapping."""

    def __init__(self, names: Mapping[str, str]) -> None:
        self._names = MappingProxyType(
            {code.strip().upper(): name.strip() for code, name in names.items()}
        )

    def name_for(self, code: str) -> str:
        """Return the display name for a region code, or the code itself."""
        return self._names.get(code.strip().upper(), code)

    def codes(self) -> tuple[str, ...]:
        """Return all known region codes in sorted order."""
        return tuple(sorted(self._names))

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.strip().upper() in self._names

    def __len__(self) -> int:
        return len(self._names)


def default_region_table() -> RegionTable:
    """Return the built-in US states and territories table."""
    return RegionTable(_US_REGION_NAMES)


def load_region_table(regions_path: Path | None) -> RegionTable:
    """Load a region table from YAML, or the default when no path is set.

    The YAML document must be a flat mapping of region code to name.

    Args:
        regions_path: Optional YAML file path.

    Returns:
        Region table instance.

    Raises:
        AtlasConfigError: If the file is missing or malformed.
    """
    if regions_path is None:
        return default_region_table()
    if not regions_path.exists():
        raise AtlasConfigError(
            f"Region table file does not exist at {regions_path}. "
            "Fix ATLAS_REGIONS_FILE or unset it to use the built-in table."
        )
    try:
        payload = cast(object, yaml.safe_load(regions_path.read_text(encoding="utf-8")))
    except (OSError, yaml.YAMLError) as error:
        raise AtlasConfigError(
            f"Failed to read region table at {regions_path}: {error}. Fix YAML syntax and retry."
        ) from error
    if not isinstance(payload, Mapping) or not payload:
        raise AtlasConfigError(
            f"Invalid region table at {regions_path}: expected a non-empty code: name mapping."
        )
    names: dict[str, str] = {}
    for code, name in payload.items():
        if not isinstance(code, str) or not isinstance(name, str):
            raise AtlasConfigError(
                f"Invalid region table entry {code!r}: {name!r} in {regions_path}. "
                "Codes and names must both be strings."
            )
        names[code] = name
    return RegionTable(names)
