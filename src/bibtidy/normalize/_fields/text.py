"""Free-text rules: casing and brace handling."""

import re

from .._helpers import STOP_WORDS, is_fully_braced, iter_segments

_SPLIT_WS_RE = re.compile(r"(\s+)")


def title_case(text: str) -> str:
    """Title-case words outside protected spans.

    Words inside ``{...}``, math mode and LaTeX commands are untouched.
    Stop words are lowercased except as the first word.

    Raises
    ------
    AmbiguousNormalization
        If the protected structure is unbalanced.
    """
    out: list[str] = []
    in_word = False
    word_index = 0

    for protected, chunk in iter_segments(text):
        if protected:
            out.append(chunk)
            if not in_word:
                word_index += 1
            in_word = True
            continue

        for piece in _SPLIT_WS_RE.split(chunk):
            if not piece:
                continue
            if piece.isspace():
                out.append(piece)
                in_word = False
                continue
            if in_word:
                out.append(piece.lower())
            else:
                out.append(_case_word(piece, first=word_index == 0))
                word_index += 1
            in_word = True

    return "".join(out)


def _case_word(word: str, *, first: bool) -> str:
    lowered = word.lower()
    if not first and lowered.strip(".,:;!?()'\"") in STOP_WORDS:
        return lowered
    for i, char in enumerate(lowered):
        if char.isalpha():
            return lowered[:i] + char.upper() + lowered[i + 1 :]
    return lowered


def is_all_caps(text: str) -> bool:
    """Whether all unprotected letters are capitals (and there are some).

    Raises
    ------
    AmbiguousNormalization
        If the protected structure is unbalanced.
    """
    letters = [
        char
        for protected, chunk in iter_segments(text)
        if not protected
        for char in chunk
        if char.isalpha()
    ]
    return len(letters) > 1 and all(char.isupper() for char in letters)


def strip_enclosing_braces(text: str) -> str:
    """Remove brace pairs that enclose the entire value.

    Groups starting with a command (``{\\'e}``, ``{\\em ...}``) are kept.
    """
    while is_fully_braced(text) and not text[1:].startswith("\\"):
        text = text[1:-1].strip()
    return text


def add_enclosing_braces(text: str) -> str:
    """Wrap the value in one extra pair of braces unless already wrapped."""
    if not text or is_fully_braced(text):
        return text
    return "{" + text + "}"


def remove_braces(text: str) -> str:
    """Remove braces that do not belong to a LaTeX command.

    A group is kept when it follows a command (``\\emph{x}``) or starts
    with one (``{\\'e}``). Math mode is untouched.
    """
    out: list[str] = []
    keep_stack: list[bool] = []
    # Command ending the output so far: "word" (\emph), "symbol" (\'),
    # "after" (either, then whitespace) or None
    command: str | None = None
    in_math = False
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            out.append(char + nxt)
            if nxt.isspace():
                command = None
            else:
                command = "word" if _is_ascii_letter(nxt) else "symbol"
            i += 2
            continue
        if char == "{" and not in_math:
            keep = command is not None or text.startswith("\\", i + 1)
            keep_stack.append(keep)
            if keep:
                out.append(char)
                command = None
        elif char == "}" and not in_math:
            if not keep_stack or keep_stack.pop():
                out.append(char)
                command = None
        else:
            if char == "$":
                in_math = not in_math
            out.append(char)
            command = _next_command_state(command, char)
        i += 1
    return "".join(out)


def _is_ascii_letter(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _next_command_state(command: str | None, char: str) -> str | None:
    if command is None:
        return None
    if char.isspace():
        return "after"
    if command == "word" and _is_ascii_letter(char):
        return "word"
    return None
