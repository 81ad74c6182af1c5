"""Render a document as canonical BibTeX text."""

from bibtidy.engine.config import TidyOptions
from bibtidy.models import Comment, Document, Entry, Field, Item, Preamble, StringMacro
from bibtidy.normalize.kinds import FieldKind, field_kind

from .wrap import wrap_value


def format_document(document: Document, options: TidyOptions) -> str:
    """Serialize a document.

    Parameters
    ----------
    document : Document
        Final document.
    options : TidyOptions
        Formatting options (indent, align, single_line, trailing_commas,
        blank_lines, wrap, lowercase).

    Returns
    -------
    str
        BibTeX text ending with a newline, or an empty string for an empty
        document.
    """
    rendered = [format_item(item, options) for item in document.items]
    if not rendered:
        return ""
    separator = "\n\n" if options.blank_lines else "\n"
    return separator.join(rendered) + "\n"


def format_item(item: Item, options: TidyOptions) -> str:
    """Render one item without a trailing newline."""
    if isinstance(item, Entry):
        return format_entry(item, options)
    if isinstance(item, Comment):
        if item.directive:
            return "@comment{" + item.text + "}"
        return item.text
    if isinstance(item, Preamble):
        return "@preamble{" + item.text + "}"
    if isinstance(item, StringMacro):
        value = " # ".join(part.render() for part in item.parts)
        return "@string{" + item.name + " = " + value + "}"
    raise TypeError(f"Cannot format {type(item).__name__}")


def format_entry(entry: Entry, options: TidyOptions) -> str:
    """Render one entry.

    Fields are written one per line, names padded so values start at the
    ``align`` column, unless ``single_line`` is set.
    """
    entry_type = entry.type_name if options.lowercase else entry.entry_type
    head = f"@{entry_type}{{{entry.key},"

    if options.single_line:
        body = [f"{_name(fld, options)} = {_value(fld, options, '')}" for fld in entry.fields]
        if not body:
            return head + "}"
        text = head + " " + ", ".join(body)
        return text + ("," if options.trailing_commas else "") + "}"

    lines = [head]
    last = len(entry.fields) - 1
    for i, fld in enumerate(entry.fields):
        prefix = _field_prefix(fld, options)
        comma = "," if i < last or options.trailing_commas else ""
        lines.append(prefix + _value(fld, options, prefix, comma) + comma)
    lines.append("}")
    return "\n".join(lines)


def _name(fld: Field, options: TidyOptions) -> str:
    return fld.name if options.lowercase else fld.original_name


def _field_prefix(fld: Field, options: TidyOptions) -> str:
    name = _name(fld, options)
    if options.align:
        name = name.ljust(options.align - len(options.indent))
    return options.indent + name + " = "


def _value(fld: Field, options: TidyOptions, prefix: str, suffix: str = "") -> str:
    if fld.name in options.verbatim_fields and fld.raw:
        return fld.raw

    if (
        options.wrap is None
        or options.single_line
        or not options.collapse_whitespace
        or fld.is_concatenated
        or not fld.parts
        or field_kind(fld.name, options) is FieldKind.VERBATIM
    ):
        return fld.render_value()

    return wrap_value(fld.parts[0], prefix, options.indent * 2, options.wrap, suffix)
