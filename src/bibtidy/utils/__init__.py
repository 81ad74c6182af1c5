"""Common utility functions for bibtidy."""

from bibtidy.utils.hashing import calculate_string_sha256, format_sha256
from bibtidy.utils.timestamps import get_iso_timestamp

__all__ = [
    "calculate_string_sha256",
    "format_sha256",
    "get_iso_timestamp",
]
