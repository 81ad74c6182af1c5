"""Field normalization rules.

Each rule is a pure function over value text. Rules that cannot transform
a value safely raise ``AmbiguousNormalization``.
"""

from .latex import encode_url, escape_latex
from .months import MONTH_MACROS, normalize_month
from .names import PersonName, normalize_name_list, parse_name, split_names, surnames
from .numbers import normalize_doi_string, normalize_page_range
from .text import (
    add_enclosing_braces,
    is_all_caps,
    remove_braces,
    strip_enclosing_braces,
    title_case,
)

__all__ = [
    "MONTH_MACROS",
    "PersonName",
    "add_enclosing_braces",
    "encode_url",
    "escape_latex",
    "is_all_caps",
    "normalize_doi_string",
    "normalize_month",
    "normalize_name_list",
    "normalize_page_range",
    "parse_name",
    "remove_braces",
    "split_names",
    "strip_enclosing_braces",
    "surnames",
    "title_case",
]
