"""Name-list (author/editor) normalization.

Names are separated by the word ``and`` at brace depth 0. Each name keeps
the form it was written in ("First von Last", "von Last, First" or
"von Last, Jr, First"); normalization only fixes whitespace and never
reorders name parts.
"""

import re
from dataclasses import dataclass

from .._helpers import (
    INITIALS_RE,
    AmbiguousNormalization,
    alphanumeric_key,
    brace_depths,
    collapse_whitespace,
)

AND_RE = re.compile(r"\s+and\s+", re.IGNORECASE)
OTHERS = "others"


@dataclass(frozen=True)
class PersonName:
    """Structured name parts, as BibTeX reads them.

    Attributes
    ----------
    first : str
        Given names.
    von : str
        Lowercase particle (e.g. ``van der``).
    last : str
        Family name.
    jr : str
        Suffix (e.g. ``Jr.``).
    raw : str
        The name as written.
    """

    first: str
    von: str
    last: str
    jr: str
    raw: str


def split_names(text: str) -> list[str]:
    """Split a name list on top-level ``and`` separators.

    Parameters
    ----------
    text : str
        Field value such as ``"Smith, J. and {Barnes and Noble}"``.

    Returns
    -------
    list[str]
        Names with whitespace collapsed, in order.
    """
    depths = brace_depths(text)
    names: list[str] = []
    start = 0
    for match in AND_RE.finditer(text):
        if depths[match.start()] == 0:
            names.append(collapse_whitespace(text[start : match.start()]))
            start = match.end()
    names.append(collapse_whitespace(text[start:]))
    return names


def normalize_name_list(text: str, max_names: int | None = None) -> str:
    """Normalize whitespace in a name list and optionally truncate it.

    Parameters
    ----------
    text : str
        Field value.
    max_names : int | None, optional
        Keep at most this many names, followed by ``others``.

    Returns
    -------
    str
        Names joined by `` and ``.

    Raises
    ------
    AmbiguousNormalization
        If a name is empty or has more than two top-level commas.
    """
    collapsed = collapse_whitespace(text)
    if not collapsed:
        return collapsed

    names = split_names(collapsed)
    for name in names:
        if not name:
            raise AmbiguousNormalization("empty name in name list")
        if _top_level_commas(name) > 2:
            raise AmbiguousNormalization(f"cannot tell name parts apart in {name!r}")

    if max_names is not None:
        real = [n for n in names if n.lower() != OTHERS]
        if len(real) > max_names:
            names = real[:max_names] + [OTHERS]

    return " and ".join(names)


def parse_name(name: str) -> PersonName:
    """Split one name into first/von/last/jr parts.

    A comma-free name whose trailing words are all capital initials
    (``Smith JA``) is read as family name first.

    Parameters
    ----------
    name : str
        Single name.

    Returns
    -------
    PersonName
        Parsed parts.
    """
    name = collapse_whitespace(name)
    parts = _split_top_level(name, ",")

    if len(parts) >= 3:
        von, last = _split_von_last(parts[0])
        return PersonName(
            first=parts[2].strip(), von=von, last=last, jr=parts[1].strip(), raw=name
        )

    if len(parts) == 2:
        von, last = _split_von_last(parts[0])
        return PersonName(first=parts[1].strip(), von=von, last=last, jr="", raw=name)

    words = _split_top_level(name, " ")
    if len(words) == 1:
        return PersonName(first="", von="", last=words[0], jr="", raw=name)

    tail = " ".join(words[1:])
    if INITIALS_RE.match(tail) and not INITIALS_RE.match(words[0]):
        return PersonName(first=tail, von="", last=words[0], jr="", raw=name)

    first_words: list[str] = []
    i = 0
    while i < len(words) - 1 and not _is_von(words[i]):
        first_words.append(words[i])
        i += 1
    von_words: list[str] = []
    while i < len(words) - 1 and _is_von(words[i]):
        von_words.append(words[i])
        i += 1
    return PersonName(
        first=" ".join(first_words),
        von=" ".join(von_words),
        last=" ".join(words[i:]),
        jr="",
        raw=name,
    )


def surnames(text: str) -> list[str]:
    """Alphanumeric family-name keys of every name in a name list.

    ``others`` is skipped. Names with no usable family name are skipped.
    """
    keys: list[str] = []
    for name in split_names(text):
        if not name or name.lower() == OTHERS:
            continue
        key = alphanumeric_key(parse_name(name).last)
        if key:
            keys.append(key)
    return keys


def _is_von(word: str) -> bool:
    for char in word:
        if char.isalpha():
            return char.islower()
    return False


def _split_von_last(text: str) -> tuple[str, str]:
    words = _split_top_level(text.strip(), " ")
    von_words: list[str] = []
    i = 0
    while i < len(words) - 1 and _is_von(words[i]):
        von_words.append(words[i])
        i += 1
    return " ".join(von_words), " ".join(words[i:])


def _split_top_level(text: str, sep: str) -> list[str]:
    depths = brace_depths(text)
    parts: list[str] = []
    start = 0
    for i, char in enumerate(text):
        if char == sep and depths[i] == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    if sep == " ":
        return [p for p in parts if p]
    return parts


def _top_level_commas(name: str) -> int:
    return len(_split_top_level(name, ",")) - 1
