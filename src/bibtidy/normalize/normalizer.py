"""Deterministic field normalization for parsed documents.

This module applies the field rules to every entry of a document. Each rule
is toggled by ``TidyOptions``; a rule that cannot transform a value safely
raises ``AmbiguousNormalization``, and the value is kept unchanged with a
warning. All functions are pure: inputs are never mutated.
"""

from dataclasses import replace

from bibtidy.engine.config import Enclosure, TidyOptions
from bibtidy.models import (
    Comment,
    Delimiter,
    Document,
    Entry,
    Field,
    Item,
    Preamble,
    StringMacro,
    TidyWarning,
    ValuePart,
    WarningKind,
)

from ._fields import (
    MONTH_MACROS,
    add_enclosing_braces,
    encode_url,
    escape_latex,
    is_all_caps,
    normalize_month,
    normalize_name_list,
    normalize_page_range,
    remove_braces,
    strip_enclosing_braces,
    title_case,
)
from ._helpers import DIGITS_RE, AmbiguousNormalization, collapse_whitespace, unsafe_in_quotes
from .kinds import URL_FIELDS, FieldKind, field_kind


def normalize_value(
    text: str,
    kind: FieldKind,
    options: TidyOptions,
    field_name: str = "",
) -> str:
    """Return the canonical form of one field value.

    Parameters
    ----------
    text : str
        Value text without its enclosing delimiter.
    kind : FieldKind
        Rule family to apply.
    options : TidyOptions
        Active options.
    field_name : str, optional
        Lowercase field name, for field-targeted rules.

    Returns
    -------
    str
        Canonical value text.

    Raises
    ------
    AmbiguousNormalization
        If a rule cannot transform the value without guessing.

    Notes
    -----
    Applying this function to its own output returns the output unchanged.
    """
    if kind is FieldKind.VERBATIM:
        value = text.strip()
        if options.encode_urls and field_name in URL_FIELDS:
            value = encode_url(value)
        return value

    value = collapse_whitespace(text) if options.collapse_whitespace else text

    if kind is FieldKind.NAME_LIST:
        if options.collapse_whitespace or options.max_authors is not None:
            value = normalize_name_list(value, options.max_authors)
    elif kind is FieldKind.NUMERIC:
        if field_name == "pages" and options.page_ranges:
            value = normalize_page_range(value)
    elif options.strip_enclosing_braces:
        value = strip_enclosing_braces(value)

    if field_name in options.remove_braces:
        value = remove_braces(value)

    if kind is not FieldKind.NUMERIC and (
        field_name in options.title_case or (options.drop_all_caps and is_all_caps(value))
    ):
        value = title_case(value)

    if options.escape:
        value = escape_latex(value)

    if field_name in options.enclosing_braces:
        value = add_enclosing_braces(value)

    return value


def normalize_document(
    document: Document,
    options: TidyOptions,
) -> tuple[Document, list[TidyWarning]]:
    """Normalize every item of a document.

    Parameters
    ----------
    document : Document
        Parsed document.
    options : TidyOptions
        Active options.

    Returns
    -------
    tuple[Document, list[TidyWarning]]
        (normalized document, warnings)
    """
    warnings: list[TidyWarning] = []
    macros = _collect_macros(document) if options.expand_macros else {}
    items: list[Item] = []

    for item in document.items:
        if isinstance(item, Entry):
            items.append(_normalize_entry(item, options, macros, warnings))
        elif isinstance(item, Comment) and options.strip_comments and not item.malformed:
            continue
        elif isinstance(item, Comment | Preamble | StringMacro):
            items.append(item)

    return document.with_items(items), warnings


def _normalize_entry(
    entry: Entry,
    options: TidyOptions,
    macros: dict[str, str],
    warnings: list[TidyWarning],
) -> Entry:
    fields: list[Field] = []

    for fld in entry.fields:
        if fld.name in options.omit:
            continue
        if fld.name in options.verbatim_fields:
            fields.append(fld)
            continue

        if options.expand_macros:
            fld = _expand_macros(fld, macros, entry, warnings)

        try:
            fld = _normalize_field(fld, options)
        except AmbiguousNormalization as e:
            warnings.append(
                TidyWarning(
                    kind=WarningKind.AMBIGUOUS_FIELD_SKIPPED,
                    message=f"Field '{fld.name}' of '{entry.key}' left unchanged: {e.reason}",
                    keys=(entry.key,),
                    line=entry.span.line if entry.span else None,
                )
            )

        fld = _apply_enclosure(fld, options)

        if options.remove_empty_fields and _is_empty(fld):
            continue
        fields.append(fld)

    return entry.with_fields(fields)


def _normalize_field(fld: Field, options: TidyOptions) -> Field:
    if fld.is_concatenated or not fld.parts:
        return fld

    part = fld.parts[0]

    if fld.name == "month" and options.months:
        macro = normalize_month(part.text)
        if macro is not None:
            return replace(fld, parts=(ValuePart(macro, Delimiter.BARE),))

    if part.delimiter is Delimiter.BARE:
        # Macro references keep their exact name
        return fld

    kind = field_kind(fld.name, options)
    value = normalize_value(part.text, kind, options, fld.name)
    return fld.with_text(value)


def _apply_enclosure(fld: Field, options: TidyOptions) -> Field:
    single = not fld.is_concatenated
    parts = tuple(_enclose_part(part, options, single) for part in fld.parts)
    if parts == fld.parts:
        return fld
    return replace(fld, parts=parts)


def _enclose_part(part: ValuePart, options: TidyOptions, single: bool) -> ValuePart:
    is_number = bool(DIGITS_RE.match(part.text))

    if part.delimiter is Delimiter.BARE:
        if not is_number or options.numeric or options.enclosure is Enclosure.PRESERVE:
            return part
        return ValuePart(part.text, _preferred(options.enclosure, part.text))

    if single and is_number and options.numeric:
        return ValuePart(part.text, Delimiter.BARE)

    if options.enclosure is Enclosure.PRESERVE:
        if part.delimiter is Delimiter.QUOTES and _needs_braces(part.text):
            return ValuePart(part.text, Delimiter.BRACES)
        return part

    return ValuePart(part.text, _preferred(options.enclosure, part.text))


def _preferred(enclosure: Enclosure, text: str) -> Delimiter:
    if enclosure is Enclosure.QUOTES and not _needs_braces(text):
        return Delimiter.QUOTES
    return Delimiter.BRACES


def _needs_braces(text: str) -> bool:
    return unsafe_in_quotes(text)


def _is_empty(fld: Field) -> bool:
    return all(part.delimiter is not Delimiter.BARE and not part.text.strip() for part in fld.parts)


def _collect_macros(document: Document) -> dict[str, str]:
    macros: dict[str, str] = {}
    for macro in document.macros():
        texts = []
        for part in macro.parts:
            if part.delimiter is Delimiter.BARE and not DIGITS_RE.match(part.text):
                texts.append(macros.get(part.text.lower(), part.text))
            else:
                texts.append(part.text)
        macros[macro.name.lower()] = "".join(texts)
    return macros


def _expand_macros(
    fld: Field,
    macros: dict[str, str],
    entry: Entry,
    warnings: list[TidyWarning],
) -> Field:
    references = [
        p for p in fld.parts if p.delimiter is Delimiter.BARE and not DIGITS_RE.match(p.text)
    ]
    if not references:
        return fld

    parts: list[ValuePart] = []
    unresolved = False
    for part in fld.parts:
        name = part.text.lower()
        if part not in references:
            parts.append(part)
        elif name in macros:
            parts.append(ValuePart(macros[name], Delimiter.BRACES))
        else:
            if name not in MONTH_MACROS:
                warnings.append(
                    TidyWarning(
                        kind=WarningKind.UNDEFINED_MACRO,
                        message=(
                            f"Field '{fld.name}' of '{entry.key}' uses undefined "
                            f"macro '{part.text}'"
                        ),
                        keys=(entry.key,),
                        line=entry.span.line if entry.span else None,
                    )
                )
            unresolved = True
            parts.append(part)

    if unresolved:
        return replace(fld, parts=tuple(parts))
    return replace(fld, parts=(ValuePart("".join(p.text for p in parts), Delimiter.BRACES),))
