"""Document item models for parsed BibTeX text.

A ``Document`` owns an ordered tuple of items. Each item is one of
``Entry``, ``Comment``, ``Preamble`` or ``StringMacro``; the ``Item``
alias is the closed union every pipeline stage dispatches on.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from enum import StrEnum

__all__ = [
    "Comment",
    "Delimiter",
    "Document",
    "Entry",
    "Field",
    "Item",
    "Preamble",
    "SourceSpan",
    "StringMacro",
    "ValuePart",
]


class Delimiter(StrEnum):
    """How a value part is written in source.

    Attributes
    ----------
    BRACES : str
        ``{...}``
    QUOTES : str
        ``"..."``
    BARE : str
        Number or macro reference.
    """

    BRACES = "braces"
    QUOTES = "quotes"
    BARE = "bare"


@dataclass(frozen=True)
class SourceSpan:
    """Location of an item in the original text.

    Attributes
    ----------
    start : int
        0-based offset of the first character.
    end : int
        0-based offset one past the last character.
    line : int
        1-based line of ``start``.
    column : int
        1-based column of ``start``.
    """

    start: int
    end: int
    line: int
    column: int


@dataclass(frozen=True)
class ValuePart:
    """One operand of a (possibly ``#``-concatenated) field value.

    Attributes
    ----------
    text : str
        Content without the enclosing delimiter.
    delimiter : Delimiter
        Enclosure used when rendering.
    """

    text: str
    delimiter: Delimiter

    def render(self) -> str:
        """Render the part with its delimiter."""
        if self.delimiter is Delimiter.BRACES:
            return "{" + self.text + "}"
        if self.delimiter is Delimiter.QUOTES:
            return '"' + self.text + '"'
        return self.text


@dataclass(frozen=True)
class Field:
    """A name/value pair inside an entry.

    Attributes
    ----------
    name : str
        Canonical lowercase field name.
    original_name : str
        Field name exactly as written in source.
    parts : tuple[ValuePart, ...]
        Value operands; more than one means ``#`` concatenation.
    raw : str
        Exact source text of the value expression.
    """

    name: str
    original_name: str
    parts: tuple[ValuePart, ...]
    raw: str = ""

    @property
    def is_concatenated(self) -> bool:
        """Whether the value joins several parts with ``#``."""
        return len(self.parts) > 1

    @property
    def value(self) -> str:
        """Text of the value, concatenation parts joined without delimiters."""
        return "".join(part.text for part in self.parts)

    def with_text(self, text: str) -> "Field":
        """Return a copy whose single part carries ``text``.

        The delimiter of the first part is kept.
        """
        delimiter = self.parts[0].delimiter if self.parts else Delimiter.BRACES
        return replace(self, parts=(ValuePart(text, delimiter),))

    def render_value(self) -> str:
        """Render the value expression (parts joined by `` # ``)."""
        return " # ".join(part.render() for part in self.parts)


@dataclass(frozen=True)
class Entry:
    """One bibliography record such as ``@article{key, ...}``.

    Attributes
    ----------
    entry_type : str
        Entry type exactly as written (e.g. ``Article``).
    key : str
        Citation key; empty when the source omitted it.
    fields : tuple[Field, ...]
        Fields in source order, unique by canonical name.
    span : SourceSpan | None
        Location of the entry in the input, None for synthesized entries.
    raw : str
        Exact source text of the entry.
    """

    entry_type: str
    key: str
    fields: tuple[Field, ...] = ()
    span: SourceSpan | None = None
    raw: str = ""

    @property
    def type_name(self) -> str:
        """Lowercase entry type."""
        return self.entry_type.lower()

    def get(self, name: str) -> Field | None:
        """Look up a field by case-insensitive name."""
        wanted = name.lower()
        for fld in self.fields:
            if fld.name == wanted:
                return fld
        return None

    def value(self, name: str) -> str | None:
        """Return the text of field ``name`` or None when absent."""
        fld = self.get(name)
        return fld.value if fld is not None else None

    def field_names(self) -> list[str]:
        """Canonical field names in order."""
        return [fld.name for fld in self.fields]

    def with_fields(self, fields: list[Field] | tuple[Field, ...]) -> "Entry":
        """Return a copy with a new field sequence."""
        return replace(self, fields=tuple(fields))


@dataclass(frozen=True)
class Comment:
    """Free text between items, or an ``@comment{...}`` directive.

    Attributes
    ----------
    text : str
        Comment content (directive body when ``directive`` is True).
    directive : bool
        True for ``@comment``.
    malformed : bool
        True when the text is an ``@`` item the parser could not read.
    span : SourceSpan | None
        Source location.
    """

    text: str
    directive: bool = False
    malformed: bool = False
    span: SourceSpan | None = None


@dataclass(frozen=True)
class Preamble:
    """``@preamble{...}`` directive, passed through as raw text."""

    text: str
    span: SourceSpan | None = None


@dataclass(frozen=True)
class StringMacro:
    """``@string{name = value}`` macro definition.

    Attributes
    ----------
    name : str
        Macro name as written.
    parts : tuple[ValuePart, ...]
        Definition value operands.
    span : SourceSpan | None
        Source location.
    """

    name: str
    parts: tuple[ValuePart, ...]
    span: SourceSpan | None = None

    @property
    def value(self) -> str:
        """Definition text with concatenation parts joined."""
        return "".join(part.text for part in self.parts)


Item = Entry | Comment | Preamble | StringMacro


@dataclass(frozen=True)
class Document:
    """A whole parsed file: an ordered tuple of items."""

    items: tuple[Item, ...] = field(default_factory=tuple)

    def entries(self) -> list[Entry]:
        """Entries in document order."""
        return [item for item in self.items if isinstance(item, Entry)]

    def macros(self) -> Iterator[StringMacro]:
        """Yield string macro definitions in order."""
        for item in self.items:
            if isinstance(item, StringMacro):
                yield item

    def with_items(self, items: list[Item] | tuple[Item, ...]) -> "Document":
        """Return a copy holding ``items``."""
        return Document(items=tuple(items))
