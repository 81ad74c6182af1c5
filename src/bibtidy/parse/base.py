"""Base types and utilities for the BibTeX parser."""

from bisect import bisect_right
from typing import NamedTuple

from bibtidy.models import Document, TidyWarning

__all__ = [
    "LineIndex",
    "ParseError",
    "ParseResult",
    "RecoverableItemError",
    "normalize_line_endings",
]


class ParseError(Exception):
    """Raised when the input cannot be parsed at all.

    Attributes
    ----------
    line : int
        1-based line of the failure.
    column : int
        1-based column of the failure.
    expected : str | None
        What the parser expected at that position.
    """

    def __init__(
        self,
        message: str,
        line: int = 1,
        column: int = 1,
        expected: str | None = None,
    ) -> None:
        """Initialize parse error.

        Parameters
        ----------
        message : str
            Error message.
        line : int, optional
            1-based line, by default 1.
        column : int, optional
            1-based column, by default 1.
        expected : str | None, optional
            Human-readable expectation (e.g. "closing brace").
        """
        super().__init__(f"{message} (line {line}, column {column})")
        self.line = line
        self.column = column
        self.expected = expected


class RecoverableItemError(Exception):
    """A single ``@`` item is malformed; parsing resumes at the next item.

    Attributes
    ----------
    offset : int
        0-based offset where the problem was detected.
    expected : str
        What the parser expected at that offset.
    """

    def __init__(self, offset: int, expected: str) -> None:
        super().__init__(f"expected {expected}")
        self.offset = offset
        self.expected = expected


class ParseResult(NamedTuple):
    """Result of parsing BibTeX text.

    Supports tuple unpacking: ``document, warnings = parse_bibtex(text)``.

    Attributes
    ----------
    document : Document
        Parsed items.
    warnings : list[TidyWarning]
        Recovered problems.
    """

    document: Document
    warnings: list[TidyWarning]


class LineIndex:
    """Maps character offsets to 1-based line/column pairs."""

    def __init__(self, text: str) -> None:
        self._starts = [0]
        for i, char in enumerate(text):
            if char == "\n":
                self._starts.append(i + 1)

    def position(self, offset: int) -> tuple[int, int]:
        """Return ``(line, column)`` for ``offset``."""
        line = bisect_right(self._starts, offset)
        column = offset - self._starts[line - 1] + 1
        return line, column


def normalize_line_endings(content: str) -> str:
    """Normalize line endings to LF.

    Parameters
    ----------
    content : str
        Text content with potentially mixed line endings.

    Returns
    -------
    str
        Text with normalized line endings (\\n only).
    """
    content = content.replace("\r\n", "\n")
    return content.replace("\r", "\n")
