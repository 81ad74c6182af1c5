"""Helper functions and compiled regex patterns for normalization.

This module provides reusable utilities shared by the field rules, the
duplicate detector and the key generator.
"""

import re
import unicodedata
from collections.abc import Iterator

# Pre-compiled regex patterns
WHITESPACE_RE = re.compile(r"\s+")
PUNCT_RE = re.compile(r"[^\w\s]+")
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
INITIALS_RE = re.compile(r"^[A-Z]\.?(\s*-?[A-Z]\.?){0,3}$")
LATEX_COMMAND_RE = re.compile(r"\\([A-Za-z]+)\s*")
LATEX_SYMBOL_RE = re.compile(r"\\([^A-Za-z\s])")
DIGITS_RE = re.compile(r"^\d+$")

# Letter-producing LaTeX commands mapped to their plain-text letters
LETTER_COMMANDS: dict[str, str] = {
    "ss": "ss",
    "ae": "ae",
    "AE": "AE",
    "oe": "oe",
    "OE": "OE",
    "aa": "a",
    "AA": "A",
    "o": "o",
    "O": "O",
    "l": "l",
    "L": "L",
    "i": "i",
    "j": "j",
}

STOP_WORDS = frozenset(
    {
        "a",
        "an",
        "and",
        "as",
        "at",
        "but",
        "by",
        "for",
        "from",
        "in",
        "into",
        "nor",
        "of",
        "on",
        "or",
        "the",
        "to",
        "vs",
        "via",
        "with",
    }
)


class AmbiguousNormalization(Exception):
    """A rule cannot transform a value without guessing.

    Attributes
    ----------
    reason : str
        Why the value was left unchanged.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# ---------------------------------------------------------------------------
# Text normalization functions
# ---------------------------------------------------------------------------


def strip_accents(text: str) -> str:
    """Remove diacritical marks for cross-locale matching.

    Parameters
    ----------
    text : str
        Input text with potential diacritics.

    Returns
    -------
    str
        Text with diacritical marks removed.
    """
    nfd = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in nfd if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def strip_latex(text: str) -> str:
    """Reduce LaTeX markup to plain text.

    Accent commands are dropped (keeping the accented letter), letter
    commands such as ``\\ss`` become their letters, other commands and all
    braces are removed.

    Parameters
    ----------
    text : str
        Value text possibly containing LaTeX.

    Returns
    -------
    str
        Plain text.
    """

    def _command(match: re.Match[str]) -> str:
        return LETTER_COMMANDS.get(match.group(1), "")

    text = LATEX_COMMAND_RE.sub(_command, text)
    text = LATEX_SYMBOL_RE.sub(lambda m: m.group(1) if m.group(1) in "&%$#_" else "", text)
    return text.replace("{", "").replace("}", "")


def normalize_text_for_matching(text: str) -> str:
    """Full text normalization for dedup matching.

    Applies LaTeX stripping, NFKC, casefold, accent stripping, punctuation
    removal, and whitespace collapsing.

    Parameters
    ----------
    text : str
        Raw text to normalize.

    Returns
    -------
    str
        Normalized text ready for matching.
    """
    if not text:
        return ""
    text = strip_latex(text)
    text = unicodedata.normalize("NFKC", text)
    text = text.casefold()
    text = strip_accents(text)
    text = PUNCT_RE.sub(" ", text)
    text = text.replace("_", " ")
    return " ".join(text.split())


def alphanumeric_key(text: str, *, drop_stop_words: bool = False) -> str:
    """Matching key made only of lowercase ASCII letters and digits.

    Parameters
    ----------
    text : str
        Raw value text.
    drop_stop_words : bool, optional
        Remove common English stop words first, by default False.

    Returns
    -------
    str
        Concatenated alphanumeric characters.
    """
    words = normalize_text_for_matching(text).split()
    if drop_stop_words:
        words = [w for w in words if w not in STOP_WORDS]
    return NON_ALNUM_RE.sub("", "".join(words))


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to one space and trim."""
    return WHITESPACE_RE.sub(" ", text).strip()


# ---------------------------------------------------------------------------
# Brace structure
# ---------------------------------------------------------------------------


def brace_depths(text: str) -> list[int]:
    """Brace depth before each character of ``text``."""
    depths: list[int] = []
    depth = 0
    for char in text:
        depths.append(depth)
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
    return depths


def is_fully_braced(text: str) -> bool:
    """Whether ``text`` is a single ``{...}`` group spanning all of it."""
    if len(text) < 2 or text[0] != "{" or text[-1] != "}":
        return False
    depth = 0
    for i, char in enumerate(text):
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0 and i != len(text) - 1:
                return False
    return depth == 0


def unsafe_in_quotes(text: str) -> bool:
    """Whether ``text`` would not read back unchanged inside ``"..."``.

    A quoted value ends at the first ``"`` at brace depth 0, and a backslash
    escapes the next character (including a brace or the closing quote).
    """
    depth = 0
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\":
            if i + 1 == len(text):
                return True
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                return True
        elif char == '"' and depth == 0:
            return True
        i += 1
    return depth != 0


def iter_segments(text: str) -> Iterator[tuple[bool, str]]:
    """Split text into ``(protected, chunk)`` segments.

    Protected segments are brace groups, ``$...$`` math and LaTeX commands;
    their content must never be re-cased or rewritten.

    Raises
    ------
    AmbiguousNormalization
        If braces or math delimiters are unbalanced.
    """
    i = 0
    plain_start = 0
    n = len(text)
    while i < n:
        char = text[i]
        if char in "{$\\}":
            if char == "}":
                raise AmbiguousNormalization("unbalanced closing brace")
            if i > plain_start:
                yield False, text[plain_start:i]
            end = _protected_end(text, i)
            yield True, text[i:end]
            i = plain_start = end
            continue
        i += 1
    if plain_start < n:
        yield False, text[plain_start:]


def _protected_end(text: str, start: int) -> int:
    char = text[start]
    if char == "{":
        depth = 0
        for i in range(start, len(text)):
            if text[i] == "{":
                depth += 1
            elif text[i] == "}":
                depth -= 1
                if depth == 0:
                    return i + 1
        raise AmbiguousNormalization("unbalanced opening brace")
    if char == "$":
        i = start + 1
        while i < len(text):
            if text[i] == "\\":
                i += 2
                continue
            if text[i] == "$":
                return i + 1
            i += 1
        raise AmbiguousNormalization("unterminated math mode")
    # Backslash command: \name or \<symbol>
    match = LATEX_COMMAND_RE.match(text, start)
    if match:
        return start + 1 + len(match.group(1))
    return min(start + 2, len(text))
