"""Line wrapping for long field values."""

from bibtidy.models import Delimiter, ValuePart


def split_words(text: str) -> list[str]:
    """Split text at whitespace outside brace groups and math mode.

    Runs of whitespace separate words; whitespace inside ``{...}`` or
    ``$...$`` never does.
    """
    words: list[str] = []
    current: list[str] = []
    depth = 0
    in_math = False
    prev = ""
    for char in text:
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif char == "$" and prev != "\\" and depth == 0:
            in_math = not in_math

        if char.isspace() and depth == 0 and not in_math:
            if current:
                words.append("".join(current))
                current = []
        else:
            current.append(char)
        prev = char

    if current:
        words.append("".join(current))
    return words


def wrap_value(
    part: ValuePart,
    prefix: str,
    continuation: str,
    width: int,
    suffix: str = "",
) -> str:
    """Render a value part, breaking lines at unprotected whitespace.

    Parameters
    ----------
    part : ValuePart
        Braced or quoted value part.
    prefix : str
        Text preceding the value on its first line (indent, name, ``=``).
    continuation : str
        Indentation of continuation lines.
    width : int
        Maximum line width; a single word longer than this gets its own
        line.
    suffix : str, optional
        Text following the value on its last line, such as a comma.

    Returns
    -------
    str
        Rendered value, possibly spanning several lines; never includes
        ``prefix`` or ``suffix``.
    """
    rendered = part.render()
    if part.delimiter is Delimiter.BARE or len(prefix) + len(rendered) + len(suffix) <= width:
        return rendered

    words = split_words(part.text)
    if len(words) < 2:
        return rendered

    opener, closer = rendered[0], rendered[-1]
    words[0] = opener + words[0]
    words[-1] = words[-1] + closer + suffix

    lines: list[str] = []
    line = words[0]
    used = len(prefix)
    for word in words[1:]:
        if used + len(line) + 1 + len(word) <= width:
            line += " " + word
        else:
            lines.append(line)
            line = word
            used = len(continuation)
    lines.append(line[: len(line) - len(suffix)])

    return ("\n" + continuation).join(lines)
