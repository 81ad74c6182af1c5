"""Field kinds: which rule family applies to a field."""

from enum import StrEnum

from bibtidy.engine.config import TidyOptions


class FieldKind(StrEnum):
    """Target kind of a field value.

    Attributes
    ----------
    FREE_TEXT : str
        Prose such as titles and abstracts.
    NAME_LIST : str
        ``and``-separated person names.
    NUMERIC : str
        Numbers and ranges (year, volume, pages ...).
    VERBATIM : str
        Identifiers and locations that must not be escaped or re-cased.
    """

    FREE_TEXT = "free_text"
    NAME_LIST = "name_list"
    NUMERIC = "numeric"
    VERBATIM = "verbatim"


NAME_LIST_FIELDS = frozenset(
    {"author", "editor", "translator", "bookauthor", "annotator", "commentator", "afterword"}
)
NUMERIC_FIELDS = frozenset(
    {"year", "volume", "number", "pages", "chapter", "edition", "issue", "numpages", "day"}
)
VERBATIM_FIELDS = frozenset({"url", "doi", "file", "eprint", "pdf", "urldate", "isbn", "issn"})
URL_FIELDS = frozenset({"url"})


def field_kind(name: str, options: TidyOptions) -> FieldKind:
    """Classify a field by its canonical name.

    Parameters
    ----------
    name : str
        Lowercase field name.
    options : TidyOptions
        Active options (``verbatim_fields`` are always verbatim).

    Returns
    -------
    FieldKind
        Kind used to select normalization rules.
    """
    if name in options.verbatim_fields or name in VERBATIM_FIELDS:
        return FieldKind.VERBATIM
    if name in NAME_LIST_FIELDS:
        return FieldKind.NAME_LIST
    if name in NUMERIC_FIELDS:
        return FieldKind.NUMERIC
    return FieldKind.FREE_TEXT
