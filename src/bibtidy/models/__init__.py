"""Shared data types for bibtidy.

This package contains the document item types produced by the parser and
the result types returned by the pipeline.
"""

from bibtidy.models.items import (
    Comment,
    Delimiter,
    Document,
    Entry,
    Field,
    Item,
    Preamble,
    SourceSpan,
    StringMacro,
    ValuePart,
)
from bibtidy.models.report import (
    DuplicateGroup,
    DuplicatePair,
    EntryCount,
    TidyResult,
    TidyWarning,
    WarningKind,
)

__all__ = [
    # Document items
    "Comment",
    "Delimiter",
    "Document",
    "Entry",
    "Field",
    "Item",
    "Preamble",
    "SourceSpan",
    "StringMacro",
    "ValuePart",
    # Results
    "DuplicateGroup",
    "DuplicatePair",
    "EntryCount",
    "TidyResult",
    "TidyWarning",
    "WarningKind",
]
