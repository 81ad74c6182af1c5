"""Tests for BibTeX serialization and line wrapping."""

from collections.abc import Callable

import pytest

from bibtidy.engine import TidyOptions
from bibtidy.format import format_document, format_entry, format_item, split_words, wrap_value
from bibtidy.models import (
    Comment,
    Delimiter,
    Document,
    Entry,
    Field,
    Preamble,
    StringMacro,
    ValuePart,
)

# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_format_entry_aligned_by_default(make_entry: Callable[..., Entry]) -> None:
    """Test values start at the alignment column."""
    entry = make_entry("k", title="T", year="2020")

    assert format_entry(entry, TidyOptions()) == (
        "@article{k,\n"
        f"  {'title':<12} = {{T}},\n"
        f"  {'year':<12} = {{2020}}\n"
        "}"
    )


@pytest.mark.unit
def test_format_entry_without_alignment_and_trailing_comma(
    make_entry: Callable[..., Entry],
) -> None:
    """Test align=0 and trailing commas."""
    entry = make_entry("k", title="T", year="2020")
    options = TidyOptions(align=0, trailing_commas=True, indent="\t")

    assert format_entry(entry, options) == "@article{k,\n\ttitle = {T},\n\tyear = {2020},\n}"


@pytest.mark.unit
def test_format_entry_single_line(make_entry: Callable[..., Entry]) -> None:
    """Test single-line rendering."""
    entry = make_entry("k", title="T", year="2020")

    assert format_entry(entry, TidyOptions(single_line=True)) == (
        "@article{k, title = {T}, year = {2020}}"
    )
    assert format_entry(make_entry("e"), TidyOptions(single_line=True)) == "@article{e,}"


@pytest.mark.unit
def test_format_entry_keeps_case_when_not_lowercasing(make_entry: Callable[..., Entry]) -> None:
    """Test original spelling of type and names when lowercase is off."""
    entry = make_entry("k", entry_type="Article", Title="T")
    options = TidyOptions(lowercase=False, align=0)

    assert format_entry(entry, options) == "@Article{k,\n  Title = {T}\n}"


@pytest.mark.unit
def test_format_entry_verbatim_field_uses_source_text() -> None:
    """Test verbatim fields are written exactly as in the source."""
    raw = '"a  #  b"'
    fld = Field("note", "note", (ValuePart("a  #  b", Delimiter.QUOTES),), raw=raw)
    entry = Entry(entry_type="misc", key="k", fields=(fld,))

    text = format_entry(entry, TidyOptions(verbatim_fields=("note",), align=0))

    assert f"note = {raw}" in text


# ---------------------------------------------------------------------------
# Other items and documents
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("item", "expected"),
    [
        (Comment("% free text"), "% free text"),
        (Comment("note", directive=True), "@comment{note}"),
        (Preamble("\\def\\x{y}"), "@preamble{\\def\\x{y}}"),
        (
            StringMacro("conf", (ValuePart("NeurIPS", Delimiter.QUOTES),)),
            '@string{conf = "NeurIPS"}',
        ),
    ],
)
def test_format_item_directives(item: object, expected: str) -> None:
    """Test comments, preambles and string definitions."""
    assert format_item(item, TidyOptions()) == expected


@pytest.mark.unit
def test_format_document_separators(make_entry: Callable[..., Entry]) -> None:
    """Test blank-line separation, trailing newline and empty documents."""
    document = Document(items=(Comment("% c"), make_entry("k")))

    assert format_document(document, TidyOptions()) == "% c\n\n@article{k,\n}\n"
    assert format_document(document, TidyOptions(blank_lines=False)) == "% c\n@article{k,\n}\n"
    assert format_document(Document(), TidyOptions()) == ""


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_split_words_keeps_protected_spans() -> None:
    """Test whitespace inside braces and math does not split."""
    assert split_words("a  {b c} $x y$\nd") == ["a", "{b c}", "$x y$", "d"]


@pytest.mark.unit
def test_wrap_value_breaks_long_values() -> None:
    """Test greedy wrapping with a continuation indent."""
    part = ValuePart("one two three four five six", Delimiter.BRACES)

    wrapped = wrap_value(part, "  title = ", "    ", 30)

    assert wrapped == "{one two three four\n    five six}"


@pytest.mark.unit
def test_wrap_value_leaves_short_and_bare_values() -> None:
    """Test values that fit, single words and macros are not wrapped."""
    assert wrap_value(ValuePart("short", Delimiter.BRACES), "  t = ", "    ", 30) == "{short}"
    long_word = "x" * 50
    assert wrap_value(ValuePart(long_word, Delimiter.QUOTES), "", "  ", 10) == f'"{long_word}"'
    assert wrap_value(ValuePart("jan", Delimiter.BARE), "", "  ", 1) == "jan"


@pytest.mark.unit
def test_wrap_value_counts_suffix() -> None:
    """Test a trailing comma counts toward the line width."""
    part = ValuePart("one two", Delimiter.BRACES)

    assert wrap_value(part, "t = ", "  ", 13) == "{one two}"
    assert wrap_value(part, "t = ", "  ", 13, ",") == "{one\n  two}"


@pytest.mark.unit
def test_format_entry_wrapped_lines_fit_with_comma(make_entry: Callable[..., Entry]) -> None:
    """Test a value filling the width exactly is wrapped when a comma follows."""
    entry = make_entry("k", title="aaaa bbbb", year="2020")

    text = format_entry(entry, TidyOptions(wrap=21, align=0))

    assert text == "@article{k,\n  title = {aaaa\n    bbbb},\n  year = {2020}\n}"
    assert max(len(line) for line in text.splitlines()) <= 21


@pytest.mark.unit
def test_format_entry_never_wraps_kept_whitespace(make_entry: Callable[..., Entry]) -> None:
    """Test values with kept line breaks are rendered as written."""
    entry = make_entry("k", title="one two three\n  four five six")

    text = format_entry(entry, TidyOptions(wrap=20, align=0, collapse_whitespace=False))

    assert text == "@article{k,\n  title = {one two three\n  four five six}\n}"


@pytest.mark.unit
def test_format_entry_wraps_but_not_urls(make_entry: Callable[..., Entry]) -> None:
    """Test wrapping applies to text fields only."""
    url = "https://example.org/" + "a/" * 30
    entry = make_entry("k", title="word " * 20, url=url)

    text = format_entry(entry, TidyOptions(wrap=40, align=0))

    title_lines = [line for line in text.splitlines() if not line.startswith(("@", "}"))]
    assert len(title_lines) > 3
    assert f"  url = {{{url}}}" in text.splitlines()
