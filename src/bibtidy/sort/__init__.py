"""Entry ordering, field ordering and citation key generation."""

from bibtidy.sort.keygen import generate_keys, parse_template, render_key
from bibtidy.sort.sorter import (
    sort_document,
    sort_document_fields,
    sort_entries,
    sort_fields,
    sort_key_value,
)

__all__ = [
    "generate_keys",
    "parse_template",
    "render_key",
    "sort_document",
    "sort_document_fields",
    "sort_entries",
    "sort_fields",
    "sort_key_value",
]
