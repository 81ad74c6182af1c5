"""Match keys for duplicate detection.

Each strategy maps an entry to a comparison key; entries with equal keys
are duplicates under that strategy. A key of None means the entry cannot
be compared under the strategy (e.g. it has no DOI) and never matches.
"""

from collections.abc import Callable

from bibtidy.models import Entry
from bibtidy.normalize import alphanumeric_key, normalize_text_for_matching
from bibtidy.normalize._fields import normalize_doi_string, surnames

ABSTRACT_KEY_LENGTH = 100
FIELD_STRATEGY_PREFIX = "field:"

KeyFunction = Callable[[Entry], str | None]


def citation_key(entry: Entry) -> str | None:
    """Key from sorted author surnames and the alphanumeric title.

    Case, accents, punctuation, LaTeX markup and stop words are ignored,
    so ``Smith, James`` / ``something blah BLAH.`` and ``Smith, JA`` /
    ``Something blah blah`` share a key.

    Parameters
    ----------
    entry : Entry
        Entry to key.

    Returns
    -------
    str | None
        ``"surname-surname:titlekey"``, or None when the entry has no
        title or no author/editor.
    """
    title = title_key(entry)
    authors = author_key(entry)
    if not title or not authors:
        return None
    return f"{authors}:{title}"


def title_key(entry: Entry) -> str:
    """Alphanumeric title without stop words; empty when absent."""
    return alphanumeric_key(entry.value("title") or "", drop_stop_words=True)


def author_key(entry: Entry) -> str:
    """Sorted surnames of the authors, or the editors when there are none."""
    names = entry.value("author") or entry.value("editor") or ""
    return "-".join(sorted(surnames(names)))


def doi_key(entry: Entry) -> str | None:
    """Normalized DOI, or None when the entry has no valid DOI."""
    return normalize_doi_string(entry.value("doi") or "")


def abstract_key(entry: Entry) -> str | None:
    """First characters of the alphanumeric abstract."""
    key = alphanumeric_key(entry.value("abstract") or "")
    return key[:ABSTRACT_KEY_LENGTH] or None


def entry_key(entry: Entry) -> str | None:
    """Citation key, compared case-insensitively."""
    return entry.key.casefold() or None


def field_key(name: str) -> KeyFunction:
    """Build a key function comparing the normalized value of one field."""

    def _key(entry: Entry) -> str | None:
        return normalize_text_for_matching(entry.value(name) or "") or None

    return _key


_BUILTIN_KEYS: dict[str, KeyFunction] = {
    "key": entry_key,
    "doi": doi_key,
    "citation": citation_key,
    "abstract": abstract_key,
}


def key_function(strategy: str) -> KeyFunction:
    """Look up the key function of a strategy name.

    Parameters
    ----------
    strategy : str
        ``key``, ``doi``, ``citation``, ``abstract`` or ``field:<name>``.

    Returns
    -------
    KeyFunction
        Function mapping an entry to its match key.

    Raises
    ------
    ValueError
        If the strategy is unknown.
    """
    if strategy.startswith(FIELD_STRATEGY_PREFIX):
        return field_key(strategy[len(FIELD_STRATEGY_PREFIX) :])
    try:
        return _BUILTIN_KEYS[strategy]
    except KeyError:
        raise ValueError(f"Unknown duplicate strategy: {strategy}") from None
