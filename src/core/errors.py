"""Facility Atlas exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class AtlasError(Exception):
    """Base exception for all Facility Atlas failures."""


class AtlasConfigError(AtlasError):
    """Raised for invalid or missing runtime configuration."""


class AtlasSourceError(AtlasError):
    """Raised when the external facility source cannot be read."""


class AtlasTransformError(AtlasError):
    """Raised for invalid record transform settings."""


class AtlasStoreError(AtlasError):
    """Raised for row store reads, writes, and schema failures."""
