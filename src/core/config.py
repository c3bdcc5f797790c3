"""Runtime configuration model for Facility Atlas.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_CHANGE_THRESHOLD,
    DEFAULT_INDEXABLE_THRESHOLD,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_DELAY_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SOURCE_PAGE_SIZE,
    DEFAULT_SOURCE_URL,
)
from core.errors import AtlasConfigError


@dataclass(frozen=True)
class AtlasConfig:
    """Validated runtime configuration.

    Attributes:
        database_url: SQLAlchemy URL of the primary store, if configured.
        source_url: Export endpoint of the facility source API.
        source_page_size: Rows requested per source page.
        request_delay_seconds: Pause between consecutive page requests.
        request_timeout_seconds: Per-request HTTP timeout.
        max_retries: Attempts per page before it is skipped.
        indexable_threshold: Minimum quality score for indexable records.
        change_threshold: Relative record-count change that flags an update.
        regions_file: Optional YAML file overriding the region table.
        log_level: Structured log level name.
    """

    database_url: str | None
    source_url: str
    source_page_size: int
    request_delay_seconds: float
    request_timeout_seconds: float
    max_retries: int
    indexable_threshold: float
    change_threshold: float
    regions_file: Path | None
    log_level: str

    @classmethod
    def from_env(cls) -> "AtlasConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            AtlasConfigError: If environment values are invalid.
        """
        regions_file_value = os.getenv("ATLAS_REGIONS_FILE")
        return cls(
            database_url=os.getenv("ATLAS_DATABASE_URL") or None,
            source_url=os.getenv("ATLAS_SOURCE_URL", DEFAULT_SOURCE_URL),
            source_page_size=_parse_positive_int(
                "ATLAS_SOURCE_PAGE_SIZE", DEFAULT_SOURCE_PAGE_SIZE
            ),
            request_delay_seconds=_parse_non_negative_float(
                "ATLAS_REQUEST_DELAY_SECONDS", DEFAULT_REQUEST_DELAY_SECONDS
            ),
            request_timeout_seconds=_parse_non_negative_float(
                "ATLAS_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
            max_retries=_parse_positive_int("ATLAS_MAX_RETRIES", DEFAULT_MAX_RETRIES),
            indexable_threshold=_parse_fraction(
                "ATLAS_INDEXABLE_THRESHOLD", DEFAULT_INDEXABLE_THRESHOLD
            ),
            change_threshold=_parse_fraction("ATLAS_CHANGE_THRESHOLD", DEFAULT_CHANGE_THRESHOLD),
            regions_file=Path(regions_file_value).expanduser() if regions_file_value else None,
            log_level=os.getenv("ATLAS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

    def require_database_url(self) -> str:
        """Return the store URL or fail when it is not configured.

        Returns:
            Configured SQLAlchemy database URL.

        Raises:
            AtlasConfigError: If no database URL is configured.
        """
        if not self.database_url:
            raise AtlasConfigError(
                "Missing ATLAS_DATABASE_URL: the primary store is not configured. "
                "Set ATLAS_DATABASE_URL or pass --database-url."
            )
        return self.database_url


def _parse_positive_int(name: str, default: int) -> int:
    """Parse a positive integer environment value.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        Parsed integer.

    Raises:
        AtlasConfigError: If value is not a positive integer.
    """
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError as error:
        raise AtlasConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a positive whole number."
        ) from error
    if value < 1:
        raise AtlasConfigError(f"Invalid {name} value: expected >= 1, got {value}.")
    return value


def _parse_non_negative_float(name: str, default: float) -> float:
    """Parse a non-negative float environment value."""
    value = _parse_float(name, default)
    if value < 0:
        raise AtlasConfigError(f"Invalid {name} value: expected >= 0, got {value}.")
    return value


def _parse_fraction(name: str, default: float) -> float:
    """Parse a float environment value constrained to [0, 1]."""
    value = _parse_float(name, default)
    if not 0.0 <= value <= 1.0:
        raise AtlasConfigError(
            f"Invalid {name} value: expected a fraction in [0, 1], got {value}."
        )
    return value


def _parse_float(name: str, default: float) -> float:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError as error:
        raise AtlasConfigError(
            f"Invalid {name} value: expected number, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error
