"""Citation key generation from a template.

A template mixes literal text with bracketed tokens, for example
``[auth:required:lower][year:required][veryshorttitle:lower]``.

Tokens:
- ``auth``: family name of the first author (or editor)
- ``authors``: family names of all authors, concatenated
- ``year``: four-digit year
- ``title``: every title word, capitalized and concatenated
- ``shorttitle``: first three title words that are not stop words
- ``veryshorttitle``: first title word that is not a stop word
- any other name: the value of that field

Modifiers: ``lower``, ``upper`` and ``required`` (when the token is empty
the entry keeps its key and a warning is emitted).
"""

import re
import unicodedata
from collections import defaultdict
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace
from itertools import count

from bibtidy.engine.config import OptionsError
from bibtidy.models import Document, Entry, Item, TidyWarning, WarningKind
from bibtidy.normalize._fields import parse_name, split_names
from bibtidy.normalize._fields.names import OTHERS
from bibtidy.normalize._helpers import STOP_WORDS, strip_accents, strip_latex

TOKEN_RE = re.compile(r"\[([^\[\]]*)\]")
YEAR_RE = re.compile(r"\d{4}")
_NON_KEY_RE = re.compile(r"[^A-Za-z0-9]+")

MODIFIERS = frozenset({"lower", "upper", "required"})


@dataclass(frozen=True)
class TemplatePart:
    """One literal or token of a key template.

    Attributes
    ----------
    text : str
        Literal text, or the token name.
    is_token : bool
        True for bracketed tokens.
    modifiers : frozenset[str]
        Token modifiers.
    """

    text: str
    is_token: bool = False
    modifiers: frozenset[str] = frozenset()


def parse_template(template: str) -> list[TemplatePart]:
    """Split a key template into literal and token parts.

    Raises
    ------
    OptionsError
        If a token is empty or uses an unknown modifier.
    """
    parts: list[TemplatePart] = []
    pos = 0
    for match in TOKEN_RE.finditer(template):
        if match.start() > pos:
            parts.append(TemplatePart(template[pos : match.start()]))
        name, *modifiers = [piece.strip() for piece in match.group(1).split(":")]
        if not name:
            raise OptionsError(f"Empty token in key template {template!r}")
        unknown = set(modifiers) - MODIFIERS
        if unknown:
            raise OptionsError(
                f"Unknown key template modifier(s) {', '.join(sorted(unknown))} in {template!r}"
            )
        parts.append(TemplatePart(name.lower(), is_token=True, modifiers=frozenset(modifiers)))
        pos = match.end()
    if pos < len(template):
        parts.append(TemplatePart(template[pos:]))
    return parts


def generate_keys(
    document: Document,
    template: str,
) -> tuple[Document, list[TidyWarning]]:
    """Regenerate every entry's citation key.

    Entries whose generated keys collide (with each other or with a key
    that was kept) get suffixes ``a``, ``b``, ... in document order.

    Parameters
    ----------
    document : Document
        Document in its final entry order.
    template : str
        Key template.

    Returns
    -------
    tuple[Document, list[TidyWarning]]
        (document with new keys, warnings)

    Raises
    ------
    OptionsError
        If the template is invalid.
    """
    parts = parse_template(template)
    entries = document.entries()
    warnings: list[TidyWarning] = []

    generated: list[str | None] = []
    for entry in entries:
        key, missing = render_key(entry, parts)
        if key is None:
            warnings.append(
                TidyWarning(
                    kind=WarningKind.KEY_GENERATION_SKIPPED,
                    message=(
                        f"Kept key '{entry.key}': required value(s) missing: {', '.join(missing)}"
                    ),
                    keys=(entry.key,),
                    line=entry.span.line if entry.span else None,
                )
            )
        generated.append(key)

    final, collision_warnings = _resolve_collisions(entries, generated)
    warnings.extend(collision_warnings)

    items: list[Item] = []
    index = 0
    for item in document.items:
        if isinstance(item, Entry):
            item = replace(item, key=final[index]) if final[index] != item.key else item
            index += 1
        items.append(item)

    return document.with_items(items), warnings


def render_key(entry: Entry, parts: list[TemplatePart]) -> tuple[str | None, list[str]]:
    """Fill a parsed template for one entry.

    Returns
    -------
    tuple[str | None, list[str]]
        (key, names of missing required tokens); the key is None when a
        required token is missing or nothing could be generated.
    """
    pieces: list[str] = []
    missing: list[str] = []
    for part in parts:
        if not part.is_token:
            pieces.append(part.text)
            continue
        value = _token_value(entry, part.text)
        if not value and "required" in part.modifiers:
            missing.append(part.text)
        if "lower" in part.modifiers:
            value = value.lower()
        elif "upper" in part.modifiers:
            value = value.upper()
        pieces.append(value)

    key = "".join(pieces)
    if missing or not key.strip():
        return None, missing
    return key, missing


def _resolve_collisions(
    entries: list[Entry],
    generated: list[str | None],
) -> tuple[list[str], list[TidyWarning]]:
    kept = {entry.key for entry, key in zip(entries, generated, strict=True) if key is None}

    by_key: dict[str, list[int]] = defaultdict(list)
    for index, key in enumerate(generated):
        if key is not None:
            by_key[key].append(index)

    final = [
        key if key is not None else entry.key
        for entry, key in zip(entries, generated, strict=True)
    ]
    taken = set(kept) | set(by_key)
    warnings: list[TidyWarning] = []

    for key, indices in by_key.items():
        if len(indices) == 1 and key not in kept:
            continue
        suffixes = (s for s in _suffixes() if key + s not in taken)
        new_keys: list[str] = []
        for index in indices:
            final[index] = key + next(suffixes)
            taken.add(final[index])
            new_keys.append(final[index])
        warnings.append(
            TidyWarning(
                kind=WarningKind.KEY_COLLISION,
                message=f"Generated key '{key}' collides; using {', '.join(new_keys)}",
                keys=tuple(new_keys),
                line=entries[indices[0]].span.line if entries[indices[0]].span else None,
            )
        )

    return final, warnings


def _suffixes() -> Iterator[str]:
    """``a`` ... ``z``, ``aa`` ... ``az``, ``ba`` ..."""
    letters = "abcdefghijklmnopqrstuvwxyz"
    for n in count(1):
        yield from _words(letters, n)


def _words(letters: str, length: int) -> Iterator[str]:
    if length == 1:
        yield from letters
        return
    for prefix in _words(letters, length - 1):
        for letter in letters:
            yield prefix + letter


def _plain(text: str) -> str:
    text = strip_accents(unicodedata.normalize("NFKC", strip_latex(text)))
    return _NON_KEY_RE.sub(" ", text).strip()


def _family_names(entry: Entry) -> list[str]:
    names = entry.value("author") or entry.value("editor") or ""
    families: list[str] = []
    for name in split_names(names):
        if not name or name.lower() == OTHERS:
            continue
        family = _plain(parse_name(name).last).replace(" ", "")
        if family:
            families.append(family)
    return families


def _title_words(entry: Entry, *, drop_stop_words: bool) -> list[str]:
    words = _plain(entry.value("title") or "").split()
    if drop_stop_words:
        words = [w for w in words if w.lower() not in STOP_WORDS]
    return [w[0].upper() + w[1:] for w in words]


def _year(entry: Entry) -> str:
    match = YEAR_RE.search(entry.value("year") or "")
    return match.group(0) if match else ""


_TOKENS: dict[str, Callable[[Entry], str]] = {
    "auth": lambda e: next(iter(_family_names(e)), ""),
    "authors": lambda e: "".join(_family_names(e)),
    "year": _year,
    "title": lambda e: "".join(_title_words(e, drop_stop_words=False)),
    "shorttitle": lambda e: "".join(_title_words(e, drop_stop_words=True)[:3]),
    "veryshorttitle": lambda e: "".join(_title_words(e, drop_stop_words=True)[:1]),
}


def _token_value(entry: Entry, token: str) -> str:
    if token in _TOKENS:
        return _TOKENS[token](entry)
    return _plain(entry.value(token) or "").replace(" ", "")
