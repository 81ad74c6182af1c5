"""Unicode to LaTeX escaping and URL encoding."""

import unicodedata
from urllib.parse import quote

# Combining marks mapped to LaTeX accent commands
_ACCENTS: dict[str, str] = {
    "\u0300": "`",
    "\u0301": "'",
    "\u0302": "^",
    "\u0303": "~",
    "\u0304": "=",
    "\u0306": "u",
    "\u0307": ".",
    "\u0308": '"',
    "\u030a": "r",
    "\u030b": "H",
    "\u030c": "v",
    "\u0327": "c",
    "\u0328": "k",
    "\u0323": "d",
}

# Characters without a decomposition into base + accent
_SPECIAL: dict[str, str] = {
    "ß": "{\\ss}",
    "æ": "{\\ae}",
    "Æ": "{\\AE}",
    "œ": "{\\oe}",
    "Œ": "{\\OE}",
    "ø": "{\\o}",
    "Ø": "{\\O}",
    "ł": "{\\l}",
    "Ł": "{\\L}",
    "ı": "{\\i}",
    "å": "{\\aa}",
    "Å": "{\\AA}",
    "–": "--",
    "—": "---",
    "‘": "`",
    "’": "'",
    "“": "``",
    "”": "''",
    "…": "{\\ldots}",
    "\u00a0": "~",
    "§": "{\\S}",
    "¶": "{\\P}",
    "©": "{\\copyright}",
    "£": "{\\pounds}",
    "¿": "{?`}",
    "¡": "{!`}",
}

_ESCAPED = "&%"

_URL_SAFE = ":/?#[]@!$&'()*+,;=%~"


def escape_latex(text: str) -> str:
    """Escape non-ASCII characters and bare ``&``/``%`` as LaTeX.

    Math mode (``$...$``) is left untouched. Characters with no known
    LaTeX form pass through unchanged.

    Parameters
    ----------
    text : str
        Value text.

    Returns
    -------
    str
        Escaped text.
    """
    out: list[str] = []
    in_math = False
    prev = ""
    for char in text:
        if char == "$" and prev != "\\":
            in_math = not in_math
            out.append(char)
        elif in_math:
            out.append(char)
        elif char in _ESCAPED and prev != "\\":
            out.append("\\" + char)
        elif ord(char) > 127:
            out.append(_escape_char(char))
        else:
            out.append(char)
        prev = char
    return "".join(out)


def _escape_char(char: str) -> str:
    if char in _SPECIAL:
        return _SPECIAL[char]

    decomposed = unicodedata.normalize("NFD", char)
    base, marks = decomposed[0], decomposed[1:]
    if len(marks) != 1 or not base.isascii() or marks not in _ACCENTS:
        return char

    command = _ACCENTS[marks]
    if command.isalpha():
        return f"{{\\{command} {base}}}"
    return f"{{\\{command}{base}}}"


def encode_url(url: str) -> str:
    """Percent-encode characters that are unsafe in URLs.

    Already-encoded sequences are kept, so encoding is idempotent.
    """
    return quote(url, safe=_URL_SAFE)
