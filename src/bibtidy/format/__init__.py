"""Canonical BibTeX serialization."""

from bibtidy.format.serializer import format_document, format_entry, format_item
from bibtidy.format.wrap import split_words, wrap_value

__all__ = [
    "format_document",
    "format_entry",
    "format_item",
    "split_words",
    "wrap_value",
]
