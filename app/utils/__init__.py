"""Utility functions for identifiers and time handling."""

from .identifiers import new_id
from .timestamps import ensure_utc, format_for_storage, parse_from_storage, utc_now

__all__ = [
    # Identifiers
    "new_id",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_for_storage",
    "parse_from_storage",
]
