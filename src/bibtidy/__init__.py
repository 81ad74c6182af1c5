"""Normalize and deduplicate BibTeX bibliographies.

This package provides:
- Data models (bibtidy.models) - document items and result types
- Parsing (bibtidy.parse) - tolerant BibTeX parsing
- Normalization (bibtidy.normalize) - field rules
- Duplicates (bibtidy.duplicates) - detection and merging
- Sorting (bibtidy.sort) - entry order and key generation
- Formatting (bibtidy.format) - canonical serialization
- Engine (bibtidy.engine) - options and pipeline orchestration
- Audit (bibtidy.audit) - JSONL logging for command-line runs
- CLI (bibtidy.cli) - command-line interface
- Public API (bibtidy.api) - high-level convenience functions
"""

__version__ = "0.1.0"
__license__ = "MIT"

from bibtidy.api import ParseError, tidy, tidy_file, write_report
from bibtidy.engine import OptionsError, TidyOptions
from bibtidy.models import TidyResult, TidyWarning, WarningKind

__all__ = [
    "__version__",
    "__license__",
    "OptionsError",
    "ParseError",
    "TidyOptions",
    "TidyResult",
    "TidyWarning",
    "WarningKind",
    "tidy",
    "tidy_file",
    "write_report",
]
