"""Unit tests for field normalization rules and the normalization stage."""

import pytest

from bibtidy.engine import Enclosure, TidyOptions
from bibtidy.models import Comment, Delimiter, WarningKind
from bibtidy.normalize import (
    AmbiguousNormalization,
    FieldKind,
    alphanumeric_key,
    field_kind,
    normalize_document,
    normalize_text_for_matching,
    normalize_value,
)
from bibtidy.normalize._fields import (
    add_enclosing_braces,
    encode_url,
    escape_latex,
    is_all_caps,
    normalize_month,
    normalize_name_list,
    normalize_page_range,
    parse_name,
    remove_braces,
    split_names,
    strip_enclosing_braces,
    surnames,
    title_case,
)
from bibtidy.normalize._helpers import unsafe_in_quotes
from bibtidy.parse import parse_bibtex


def _normalize(text: str, **options: object):
    document, _ = parse_bibtex(text)
    return normalize_document(document, TidyOptions(**options))


# ---------------------------------------------------------------------------
# Matching helpers
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Café  Society", "cafe society"),
        ("M{\\\"u}ller", "muller"),
        ("{\\ss}tra{\\ss}e", "sstrasse"),
        ("Hello, World!", "hello world"),
        ("", ""),
    ],
)
def test_normalize_text_for_matching(raw: str, expected: str) -> None:
    """Test LaTeX, accents, case and punctuation are folded away."""
    assert normalize_text_for_matching(raw) == expected


@pytest.mark.unit
def test_alphanumeric_key_drops_stop_words() -> None:
    """Test stop words are removed only when requested."""
    assert alphanumeric_key("The Art of War") == "theartofwar"
    assert alphanumeric_key("The Art of War", drop_stop_words=True) == "artwar"


# ---------------------------------------------------------------------------
# Free-text rules
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_title_case_keeps_protected_spans() -> None:
    """Test braces and math are never re-cased; stop words stay lower."""
    assert title_case("the quick {DNA} of a fox") == "The Quick {DNA} of a Fox"
    assert title_case("energy of $E=mc^2$ systems") == "Energy of $E=mc^2$ Systems"


@pytest.mark.unit
def test_title_case_unbalanced_math_is_ambiguous() -> None:
    """Test an unterminated math span raises instead of guessing."""
    with pytest.raises(AmbiguousNormalization):
        title_case("cost $x of things")


@pytest.mark.unit
def test_is_all_caps() -> None:
    """Test capitals detection ignores protected spans."""
    assert is_all_caps("DEEP LEARNING FOR {NLP}")
    assert not is_all_caps("Deep Learning")
    assert not is_all_caps("{ALL} protected")


@pytest.mark.unit
def test_enclosing_braces_rules() -> None:
    """Test stripping and adding whole-value braces."""
    assert strip_enclosing_braces("{{Title}}") == "Title"
    assert strip_enclosing_braces("{A} and {B}") == "{A} and {B}"
    assert strip_enclosing_braces("{\\em Title}") == "{\\em Title}"
    assert add_enclosing_braces("Title") == "{Title}"
    assert add_enclosing_braces("{Title}") == "{Title}"


@pytest.mark.unit
def test_remove_braces_keeps_command_groups() -> None:
    """Test only braces unrelated to LaTeX commands are removed."""
    text = "The {DNA} of \\emph{cells} and {\\'e}"

    assert remove_braces(text) == "The DNA of \\emph{cells} and {\\'e}"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("\\emph {x} {y}", "\\emph {x} y"),
        ("\\'{e} \\\\{z}", "\\'{e} \\\\{z}"),
        ("\\'e{z}", "\\'ez"),
        ("$\\{a\\}$ {b}", "$\\{a\\}$ b"),
    ],
)
def test_remove_braces_command_boundaries(raw: str, expected: str) -> None:
    """Test which groups count as following a command."""
    assert remove_braces(raw) == expected


@pytest.mark.unit
def test_remove_braces_long_value() -> None:
    """Test brace removal over a long value with many groups."""
    assert remove_braces("{a} " * 20000) == "a " * 20000


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("café", "caf{\\'e}"),
        ("Müller", 'M{\\"u}ller'),
        ("Ça", "{\\c C}a"),
        ("Straße", "Stra{\\ss}e"),
        ("R&D at 50%", "R\\&D at 50\\%"),
        ("already \\& escaped", "already \\& escaped"),
        ("math $a & b$ stays", "math $a & b$ stays"),
        ("1–2", "1--2"),
    ],
)
def test_escape_latex(raw: str, expected: str) -> None:
    """Test Unicode and special characters become LaTeX."""
    assert escape_latex(raw) == expected
    assert escape_latex(expected) == expected


@pytest.mark.unit
def test_encode_url_is_idempotent() -> None:
    """Test unsafe characters are percent-encoded exactly once."""
    url = "https://example.org/a path/ü?q=1"

    encoded = encode_url(url)

    assert encoded == "https://example.org/a%20path/%C3%BC?q=1"
    assert encode_url(encoded) == encoded


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_split_names_respects_braces() -> None:
    """Test 'and' inside braces does not split names."""
    assert split_names("Smith, J. AND {Barnes and Noble}") == ["Smith, J.", "{Barnes and Noble}"]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("name", "first", "von", "last", "jr"),
    [
        ("Ludwig van Beethoven", "Ludwig", "van", "Beethoven", ""),
        ("van Beethoven, Ludwig", "Ludwig", "van", "Beethoven", ""),
        ("Ford, Jr., Henry", "Henry", "", "Ford", "Jr."),
        ("Smith JA", "JA", "", "Smith", ""),
        ("J. A. Smith", "J. A.", "", "Smith", ""),
        ("{Barnes and Noble}", "", "", "{Barnes and Noble}", ""),
    ],
)
def test_parse_name(name: str, first: str, von: str, last: str, jr: str) -> None:
    """Test name part assignment for the supported forms."""
    parsed = parse_name(name)

    assert (parsed.first, parsed.von, parsed.last, parsed.jr) == (first, von, last, jr)


@pytest.mark.unit
def test_surnames_fold_latex_and_skip_others() -> None:
    """Test surname keys are plain lowercase and 'others' is skipped."""
    assert surnames('Smith, James and M{\\"u}ller, K. and others') == ["smith", "muller"]


@pytest.mark.unit
def test_normalize_name_list_whitespace_and_truncation() -> None:
    """Test whitespace collapsing and max-name truncation."""
    assert normalize_name_list("Smith,  John and\n Doe, Jane") == "Smith, John and Doe, Jane"
    assert normalize_name_list("A and B and C", max_names=2) == "A and B and others"
    assert normalize_name_list("A and B and others", max_names=2) == "A and B and others"


@pytest.mark.unit
def test_normalize_name_list_too_many_commas_is_ambiguous() -> None:
    """Test a name with more than two commas is not guessed at."""
    with pytest.raises(AmbiguousNormalization):
        normalize_name_list("Smith, J, Jr, Extra")


# ---------------------------------------------------------------------------
# Months and numbers
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("January", "jan"),
        ("sept.", "sep"),
        ("05", "may"),
        ("12", "dec"),
        ("{Feb}", "feb"),
        ("Spring", None),
        ("13", None),
    ],
)
def test_normalize_month(raw: str, expected: str | None) -> None:
    """Test month names and numbers map to macros; others pass through."""
    assert normalize_month(raw) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12-15", "12--15"),
        ("12 – 15", "12--15"),
        ("12--15", "12--15"),
        ("e1234", "e1234"),
        ("12, 15", "12, 15"),
    ],
)
def test_normalize_page_range(raw: str, expected: str) -> None:
    """Test page ranges use a double hyphen; other values are unchanged."""
    assert normalize_page_range(raw) == expected


# ---------------------------------------------------------------------------
# normalize_value
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_field_kind() -> None:
    """Test fields are classified by name."""
    options = TidyOptions(verbatim_fields=("note",))

    assert field_kind("author", options) is FieldKind.NAME_LIST
    assert field_kind("pages", options) is FieldKind.NUMERIC
    assert field_kind("doi", options) is FieldKind.VERBATIM
    assert field_kind("note", options) is FieldKind.VERBATIM
    assert field_kind("title", options) is FieldKind.FREE_TEXT


@pytest.mark.unit
def test_normalize_value_collapses_whitespace() -> None:
    """Test runs of whitespace and newlines become single spaces."""
    value = normalize_value("  A   long\n\t title ", FieldKind.FREE_TEXT, TidyOptions())

    assert value == "A long title"


@pytest.mark.unit
def test_normalize_value_keeps_whitespace_when_disabled() -> None:
    """Test multi-line values survive when whitespace collapsing is off."""
    options = TidyOptions(collapse_whitespace=False)
    title = "A   long\n  title"
    authors = "Doe, Jane and\n  Roe,   Richard"

    assert normalize_value(title, FieldKind.FREE_TEXT, options, "title") == title
    assert normalize_value(authors, FieldKind.NAME_LIST, options, "author") == authors
    truncated = TidyOptions(collapse_whitespace=False, max_authors=1)
    assert normalize_value(authors, FieldKind.NAME_LIST, truncated, "author") == (
        "Doe, Jane and others"
    )


@pytest.mark.unit
def test_normalize_value_verbatim_untouched() -> None:
    """Test verbatim values are only trimmed."""
    url = "https://x.org/a_b%20c?d=1&e=2"

    assert normalize_value(f" {url} ", FieldKind.VERBATIM, TidyOptions(), "url") == url


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "kind", "name"),
    [
        ("  THE {DNA} OF   café  ", FieldKind.FREE_TEXT, "title"),
        ("{{Nested}} title & more", FieldKind.FREE_TEXT, "title"),
        ("Smith,   J. and van  Beethoven, L. and C and D", FieldKind.NAME_LIST, "author"),
        ("100 - 110", FieldKind.NUMERIC, "pages"),
        ("https://example.org/a b", FieldKind.VERBATIM, "url"),
    ],
)
def test_normalize_value_is_idempotent(text: str, kind: FieldKind, name: str) -> None:
    """Test applying the rules twice equals applying them once."""
    options = TidyOptions(
        drop_all_caps=True,
        strip_enclosing_braces=True,
        enclosing_braces=("title",),
        page_ranges=True,
        max_authors=3,
        encode_urls=True,
    )

    once = normalize_value(text, kind, options, name)

    assert normalize_value(once, kind, options, name) == once


# ---------------------------------------------------------------------------
# normalize_document
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_normalize_document_enclosure_preferences() -> None:
    """Test quote preference falls back to braces for unsafe values."""
    document, warnings = _normalize(
        '@article{k, title = {Plain}, note = {Say "hi"}, year = {2020}}',
        enclosure=Enclosure.QUOTES,
        numeric=True,
    )

    [entry] = document.entries()
    assert warnings == []
    assert entry.get("title").parts[0].delimiter is Delimiter.QUOTES
    assert entry.get("note").parts[0].delimiter is Delimiter.BRACES
    assert entry.get("year").parts[0].delimiter is Delimiter.BARE


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "unsafe"),
    [
        ("Plain text", False),
        ('Say {"hi"}', False),
        ('Say "hi"', True),
        ("C:\\dir\\", True),
        ("C:\\dir\\\\", False),
        ('Tab \\"x\\" done', False),
        ("open \\{ brace}", True),
        ("{unbalanced", True),
    ],
)
def test_unsafe_in_quotes(value: str, unsafe: bool) -> None:
    """Test values that would not read back from a quoted value are flagged."""
    assert unsafe_in_quotes(value) is unsafe


@pytest.mark.unit
def test_normalize_document_quotes_keep_braces_for_trailing_backslash() -> None:
    """Test quote preference keeps braces when a backslash would escape the quote."""
    document, _ = _normalize(
        "@misc{k, note = {C:\\dir\\}, title = {Ok}}",
        enclosure=Enclosure.QUOTES,
    )

    [entry] = document.entries()
    assert entry.get("note").parts[0].delimiter is Delimiter.BRACES
    assert entry.get("title").parts[0].delimiter is Delimiter.QUOTES


@pytest.mark.unit
def test_normalize_document_omit_and_remove_empty() -> None:
    """Test omitted and empty fields are removed only when configured."""
    text = "@article{k, title = {T}, abstract = {Long}, note = {  }}"

    document, _ = _normalize(text, omit=("abstract",), remove_empty_fields=True)
    assert document.entries()[0].field_names() == ["title"]

    document, _ = _normalize(text)
    assert document.entries()[0].field_names() == ["title", "abstract", "note"]


@pytest.mark.unit
def test_normalize_document_ambiguous_name_list_warns() -> None:
    """Test an ambiguous name list is left unchanged with a warning."""
    document, warnings = _normalize("@article{k, author = {A,  B, C, D}}")

    assert document.entries()[0].value("author") == "A,  B, C, D"
    assert [w.kind for w in warnings] == [WarningKind.AMBIGUOUS_FIELD_SKIPPED]
    assert warnings[0].keys == ("k",)


@pytest.mark.unit
def test_normalize_document_months() -> None:
    """Test months become bare macros when enabled."""
    document, _ = _normalize("@misc{k, month = {January}, year = 2000}", months=True)

    month = document.entries()[0].get("month")
    assert month.parts[0].text == "jan"
    assert month.parts[0].delimiter is Delimiter.BARE


@pytest.mark.unit
def test_normalize_document_expands_macros() -> None:
    """Test @string definitions are substituted when enabled."""
    text = (
        '@string{conf = "NeurIPS"}\n'
        '@inproceedings{k, booktitle = "Proc. " # conf, journal = nomacro, month = jan}\n'
    )
    document, warnings = _normalize(text, expand_macros=True)

    entry = document.entries()[0]
    booktitle = entry.get("booktitle")
    assert not booktitle.is_concatenated
    assert booktitle.value == "Proc. NeurIPS"
    assert entry.get("journal").parts[0].delimiter is Delimiter.BARE
    assert [w.kind for w in warnings] == [WarningKind.UNDEFINED_MACRO]
    assert "nomacro" in warnings[0].message


@pytest.mark.unit
def test_normalize_document_verbatim_fields_pass_through() -> None:
    """Test configured verbatim fields are not normalized."""
    text = "@misc{k, note = {Café   &   co}}"

    document, _ = _normalize(text, verbatim_fields=("note",))

    assert document.entries()[0].value("note") == "Café   &   co"


@pytest.mark.unit
def test_normalize_document_strip_comments_keeps_malformed() -> None:
    """Test comments are removed but unparseable items are preserved."""
    text = (
        "@comment{a directive}\n"
        "@article{bad,\n"
        "  title = {Unclosed\n"
        "}\n"
        "@article{good,\n"
        "  title = {Fine}\n"
        "}\n"
    )

    document, _ = _normalize(text, strip_comments=True)

    comments = [i for i in document.items if isinstance(i, Comment)]
    assert [e.key for e in document.entries()] == ["good"]
    assert len(comments) == 1
    assert comments[0].malformed
