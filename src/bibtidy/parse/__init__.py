"""BibTeX parsing.

Main entry point:
- parse_bibtex: Read BibTeX text into a Document, recovering from
  malformed items with warnings
"""

from bibtidy.parse.base import ParseError, ParseResult, RecoverableItemError
from bibtidy.parse.bibtex import parse_bibtex

__all__ = [
    "ParseError",
    "ParseResult",
    "RecoverableItemError",
    "parse_bibtex",
]
