"""BibTeX parser.

Items: @<type>{citekey, field = value, ...}, @string{name = value},
@preamble{...}, @comment{...}. Text between items is kept as comments.
Item bodies may also be delimited with parentheses.

A malformed item does not abort the document: the parser records a
warning, keeps the item's text as a malformed comment, and resumes at the
next ``@`` that starts a line.

Reference: http://www.bibtex.org/Format/
"""

import re

from bibtidy.models import (
    Comment,
    Delimiter,
    Document,
    Entry,
    Field,
    Item,
    Preamble,
    SourceSpan,
    StringMacro,
    TidyWarning,
    ValuePart,
    WarningKind,
)
from bibtidy.parse.base import (
    LineIndex,
    ParseError,
    ParseResult,
    RecoverableItemError,
    normalize_line_endings,
)

__all__ = ["parse_bibtex"]

ITEM_START_RE = re.compile(r"@[ \t]*([A-Za-z][\w-]*)\s*([{(])")
RESYNC_RE = re.compile(r"^[ \t]*@[ \t]*[A-Za-z][\w-]*\s*[{(]", re.MULTILINE)
KEY_RE = re.compile(r"[^\s,{}()=\"#]*")
FIELD_NAME_RE = re.compile(r"[^\s,{}()=\"#%']+")
BARE_RE = re.compile(r"[^\s,{}()=\"#]+")

_CLOSERS = {"{": "}", "(": ")"}


def parse_bibtex(text: str) -> ParseResult:
    """Parse BibTeX text into a document.

    Parameters
    ----------
    text : str
        Raw BibTeX text.

    Returns
    -------
    ParseResult
        Document and recovered-problem warnings.

    Raises
    ------
    ParseError
        If ``text`` is not text (not a ``str`` or contains NUL bytes).
    """
    if not isinstance(text, str):
        raise ParseError(
            f"Input must be text, got {type(text).__name__}",
            expected="text input",
        )

    text = normalize_line_endings(text.removeprefix("\ufeff"))

    nul = text.find("\x00")
    if nul != -1:
        line, column = LineIndex(text).position(nul)
        raise ParseError("Input contains NUL bytes", line, column, expected="text input")

    return _Parser(text).parse()


class _Parser:
    """Recursive-descent parser over a single text buffer."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.index = LineIndex(text)
        self.warnings: list[TidyWarning] = []

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self) -> ParseResult:
        items: list[Item] = []
        text = self.text

        while self.pos < len(text):
            match = ITEM_START_RE.search(text, self.pos)
            chunk_end = match.start() if match else len(text)
            self._add_free_text(items, self.pos, chunk_end)
            if match is None:
                break

            try:
                item = self._parse_item(match)
            except RecoverableItemError as exc:
                resume = self._resync(match.start())
                items.append(self._recover(match.start(), resume, exc))
                self.pos = resume
                continue

            items.append(item)

        return ParseResult(Document(items=tuple(items)), self.warnings)

    def _add_free_text(self, items: list[Item], start: int, end: int) -> None:
        chunk = self.text[start:end]
        stripped = chunk.strip()
        if not stripped:
            return
        offset = start + (len(chunk) - len(chunk.lstrip()))
        items.append(Comment(stripped, span=self._span(offset, end)))

    def _resync(self, item_start: int) -> int:
        next_item = RESYNC_RE.search(self.text, item_start + 1)
        if next_item is None:
            return len(self.text)
        # Skip the leading indentation RESYNC_RE consumed
        return next_item.start() + (len(next_item.group()) - len(next_item.group().lstrip()))

    def _recover(self, start: int, end: int, exc: RecoverableItemError) -> Comment:
        line, column = self.index.position(exc.offset)
        snippet = self.text[start:end].strip()
        head = snippet.splitlines()[0][:60] if snippet else ""
        self.warnings.append(
            TidyWarning(
                kind=WarningKind.PARSE_ERROR_RECOVERED,
                message=f"Line {line}, column {column}: expected {exc.expected} in {head!r}",
                line=line,
            )
        )
        return Comment(snippet, malformed=True, span=self._span(start, end))

    def _span(self, start: int, end: int) -> SourceSpan:
        line, column = self.index.position(start)
        return SourceSpan(start=start, end=end, line=line, column=column)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def _parse_item(self, match: re.Match[str]) -> Item:
        start = match.start()
        item_type = match.group(1)
        closer = _CLOSERS[match.group(2)]
        self.pos = match.end()
        kind = item_type.lower()

        if kind == "comment":
            body = self._scan_body(closer)
            return Comment(body.strip(), directive=True, span=self._span(start, self.pos))

        if kind == "preamble":
            body = self._scan_body(closer)
            return Preamble(body.strip(), span=self._span(start, self.pos))

        if kind == "string":
            return self._parse_string(start, closer)

        return self._parse_entry(start, item_type, closer)

    def _scan_body(self, closer: str) -> str:
        text = self.text
        depth = 0
        begin = self.pos
        i = begin
        while i < len(text):
            char = text[i]
            if char == "{":
                depth += 1
            elif char == "}":
                if depth == 0:
                    if closer == "}":
                        self.pos = i + 1
                        return text[begin:i]
                    raise RecoverableItemError(i, f"'{closer}'")
                depth -= 1
            elif char == closer and depth == 0:
                self.pos = i + 1
                return text[begin:i]
            i += 1
        raise RecoverableItemError(len(text), f"closing '{closer}'")

    def _parse_string(self, start: int, closer: str) -> StringMacro:
        self._skip_ws()
        name = self._expect_field_name()
        self._skip_ws()
        self._expect("=")
        parts, _raw = self._parse_value(closer)
        self._skip_ws()
        if self._peek() == ",":
            self.pos += 1
            self._skip_ws()
        self._expect(closer)
        return StringMacro(name=name, parts=tuple(parts), span=self._span(start, self.pos))

    def _parse_entry(self, start: int, entry_type: str, closer: str) -> Entry:
        self._skip_ws()
        key_start = self.pos
        key_match = KEY_RE.match(self.text, self.pos)
        key = key_match.group() if key_match else ""
        self.pos = key_match.end() if key_match else self.pos
        self._skip_ws()

        if self._peek() == "=":
            # No citation key: the token was the first field name
            key = ""
            self.pos = key_start
        elif self._peek() == ",":
            self.pos += 1
        elif self._peek() != closer:
            raise RecoverableItemError(self.pos, "',' after citation key")

        fields: dict[str, Field] = {}
        while True:
            self._skip_ws()
            char = self._peek()
            if char == "":
                raise RecoverableItemError(self.pos, f"closing '{closer}'")
            if char == closer:
                self.pos += 1
                break
            if char == ",":
                self.pos += 1
                continue

            name_start = self.pos
            name = self._expect_field_name()
            self._skip_ws()
            self._expect("=")
            parts, raw = self._parse_value(closer)
            fld = Field(name=name.lower(), original_name=name, parts=tuple(parts), raw=raw)

            if fld.name in fields:
                line, _ = self.index.position(name_start)
                self.warnings.append(
                    TidyWarning(
                        kind=WarningKind.DUPLICATE_FIELD,
                        message=(
                            f"Line {line}: field '{fld.name}' repeated in entry "
                            f"'{key}'; keeping the last value"
                        ),
                        keys=(key,),
                        line=line,
                    )
                )
            fields[fld.name] = fld

            self._skip_ws()
            if self._peek() == ",":
                self.pos += 1
            elif self._peek() != closer:
                raise RecoverableItemError(self.pos, f"',' or '{closer}' after field value")

        span = self._span(start, self.pos)
        if not key:
            self.warnings.append(
                TidyWarning(
                    kind=WarningKind.MISSING_KEY,
                    message=f"Line {span.line}: @{entry_type} entry has no citation key",
                    line=span.line,
                )
            )

        return Entry(
            entry_type=entry_type,
            key=key,
            fields=tuple(fields.values()),
            span=span,
            raw=self.text[start : self.pos],
        )

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _parse_value(self, closer: str) -> tuple[list[ValuePart], str]:
        parts: list[ValuePart] = []
        self._skip_ws()
        value_start = self.pos

        while True:
            self._skip_ws()
            char = self._peek()
            if char == "{":
                parts.append(ValuePart(self._parse_braced(), Delimiter.BRACES))
            elif char == '"':
                parts.append(ValuePart(self._parse_quoted(), Delimiter.QUOTES))
            elif char in (",", closer, "") and not parts:
                # Missing value (``title = ,``) reads as empty
                parts.append(ValuePart("", Delimiter.BRACES))
                break
            else:
                bare = BARE_RE.match(self.text, self.pos)
                if bare is None or char == closer:
                    raise RecoverableItemError(self.pos, "field value")
                parts.append(ValuePart(bare.group(), Delimiter.BARE))
                self.pos = bare.end()

            self._skip_ws()
            if self._peek() != "#":
                break
            self.pos += 1

        return parts, self.text[value_start : self.pos].rstrip()

    def _parse_braced(self) -> str:
        text = self.text
        begin = self.pos + 1
        depth = 0
        i = self.pos
        while i < len(text):
            char = text[i]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    self.pos = i + 1
                    return text[begin:i]
            i += 1
        raise RecoverableItemError(len(text), "closing brace")

    def _parse_quoted(self) -> str:
        text = self.text
        begin = self.pos + 1
        depth = 0
        i = begin
        while i < len(text):
            char = text[i]
            if char == "\\":
                i += 2
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth < 0:
                    raise RecoverableItemError(i, "closing quote")
            elif char == '"' and depth == 0:
                self.pos = i + 1
                return text[begin:i]
            i += 1
        raise RecoverableItemError(len(text), "closing quote")

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _skip_ws(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos].isspace():
            self.pos += 1

    def _expect(self, token: str) -> None:
        if not self.text.startswith(token, self.pos):
            raise RecoverableItemError(self.pos, f"'{token}'")
        self.pos += len(token)

    def _expect_field_name(self) -> str:
        match = FIELD_NAME_RE.match(self.text, self.pos)
        if match is None:
            raise RecoverableItemError(self.pos, "field name")
        self.pos = match.end()
        return match.group()
