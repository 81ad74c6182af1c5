"""Tests for the public API module."""

import json
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema
import pytest

from bibtidy import (
    OptionsError,
    ParseError,
    TidyOptions,
    TidyResult,
    WarningKind,
    tidy,
    tidy_file,
    write_report,
)
from bibtidy.parse import parse_bibtex

SMITH_DUPLICATES = """
@article{a,
  author = {Smith J},
  title = {Something Blah}
}
@article{b,
  author = {Smith JA},
  title = {something blah.}
}
"""


def _report_schema() -> dict[str, Any]:
    """Load the bundled report schema."""
    schema_file = resources.files("bibtidy") / "schemas" / "report.schema.json"
    with schema_file.open("r", encoding="utf-8") as f:
        schema: dict[str, Any] = json.load(f)
    return schema


# ---------------------------------------------------------------------------
# tidy
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_tidy_returns_result(sample_bib: str) -> None:
    """Test tidy returns canonical text, counts and no warnings."""
    result = tidy(sample_bib)

    assert isinstance(result, TidyResult)
    assert result.bibtex.startswith("% Sample bibliography")
    assert result.bibtex.endswith("}\n")
    assert result.entries.parsed == result.entries.written == 5
    assert result.warnings == ()


@pytest.mark.unit
def test_tidy_accepts_mapping_options() -> None:
    """Test camelCase mapping options are validated and applied."""
    result = tidy("@misc{k, year = {2020}}", {"numeric": True, "singleLine": True})

    assert result.bibtex == "@misc{k, year = 2020}\n"


@pytest.mark.unit
def test_tidy_invalid_options_raise() -> None:
    """Test invalid options fail before any work is done."""
    with pytest.raises(OptionsError):
        tidy("@misc{k}", {"align": "wide"})
    with pytest.raises(OptionsError):
        tidy("@misc{k}", TidyOptions(generate_keys="[year:loud]"))


@pytest.mark.unit
@pytest.mark.parametrize(
    "options",
    [
        {},
        {"curly": True, "numeric": True, "align": 0, "trailingCommas": True},
        {"enclosure": "quotes", "months": True, "pageRanges": True},
        {"sort": ["-year", "author"], "sortFields": True, "generateKeys": True},
        {"duplicates": ["doi", "citation"], "merge": "combine"},
        {"wrap": 40, "stripEnclosingBraces": True, "dropAllCaps": True},
        {"singleLine": True, "blankLines": False, "stripComments": True},
        {"expandMacros": True, "removeEmptyFields": True, "maxAuthors": 1, "escape": False},
        {"collapseWhitespace": False, "wrap": 30, "enclosure": "quotes"},
    ],
)
def test_tidy_is_idempotent(sample_bib: str, options: dict[str, Any]) -> None:
    """Test tidying canonical output again changes nothing."""
    once = tidy(sample_bib, options).bibtex

    assert tidy(once, options).bibtex == once


@pytest.mark.unit
def test_tidy_preserves_fields(sample_bib: str) -> None:
    """Test every input field survives with default options."""
    before, _ = parse_bibtex(sample_bib)
    after, _ = parse_bibtex(tidy(sample_bib).bibtex)

    assert [e.key for e in after.entries()] == [e.key for e in before.entries()]
    for source, output in zip(before.entries(), after.entries(), strict=True):
        assert output.field_names() == source.field_names()


@pytest.mark.unit
def test_tidy_round_trips_nested_braces() -> None:
    """Test a value with inner braces parses and renders unchanged."""
    result = tidy("@article{k, journal = {{IEEE} Transactions}}")

    assert result.warnings == ()
    assert "= {{IEEE} Transactions}\n" in result.bibtex


@pytest.mark.unit
def test_tidy_quote_enclosure_keeps_trailing_backslash_in_braces() -> None:
    """Test a value ending in a backslash stays braced and re-parses."""
    options = {"enclosure": "quotes"}
    once = tidy("@misc{k, note = {C:\\dir\\}}", options)

    assert "= {C:\\dir\\}\n" in once.bibtex

    again = tidy(once.bibtex, options)
    assert again.entries.parsed == 1
    assert again.warnings == ()
    assert again.bibtex == once.bibtex


# ---------------------------------------------------------------------------
# Duplicates
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_tidy_duplicate_citation_reported_once() -> None:
    """Test the citation strategy finds exactly one duplicate."""
    result = tidy(SMITH_DUPLICATES, {"duplicates": ["citation"]})

    assert len(result.warnings_of(WarningKind.DUPLICATE_ENTRY)) == 1
    assert len(result.warnings) == 1
    assert [g.indices for g in result.groups] == [(0, 1)]
    assert [(d.key, d.duplicate_of) for d in result.duplicates] == [("b", "a")]
    assert result.entries.written == 2


@pytest.mark.unit
def test_tidy_merge_removes_duplicates(sample_bib: str) -> None:
    """Test merging drops the duplicate and reports it."""
    result = tidy(sample_bib, {"duplicates": ["doi", "citation"], "merge": "combine"})

    assert result.entries.parsed == 5
    assert result.entries.written == 4
    assert result.duplicates_removed == 1
    assert "smith2020dup" not in result.bibtex
    [merged] = result.warnings_of(WarningKind.DUPLICATE_MERGED)
    assert merged.keys == ("smith2020dup", "Smith2020")


@pytest.mark.unit
def test_tidy_reports_reused_keys() -> None:
    """Test a reused key is flagged unless 'key' is a match strategy."""
    text = "@misc{k, title = {One}}\n@misc{K, title = {Two}}\n"

    assert [w.kind for w in tidy(text).warnings] == [WarningKind.DUPLICATE_KEY]
    keyed = tidy(text, {"duplicates": ["key"]})
    assert [w.kind for w in keyed.warnings] == [WarningKind.DUPLICATE_ENTRY]


# ---------------------------------------------------------------------------
# Sorting and keys
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_tidy_sort_keeps_missing_in_order() -> None:
    """Test entries without the sort field keep their relative order."""
    text = (
        "@misc{z, title = {Z}}\n"
        "@misc{b, year = {2001}}\n"
        "@misc{y, title = {Y}}\n"
        "@misc{a, year = {1999}}\n"
    )

    result = tidy(text, {"sort": ["year"]})

    keys = [e.key for e in parse_bibtex(result.bibtex)[0].entries()]
    assert keys == ["a", "b", "z", "y"]


@pytest.mark.unit
def test_tidy_generated_key_collisions_are_deterministic() -> None:
    """Test colliding generated keys get a/b suffixes on every run."""
    text = (
        "@article{x, author = {Doe, J.}, year = {2021}, title = {Learning}}\n"
        "@article{y, author = {Doe, Jane}, year = {2021}, title = {Learning again}}\n"
    )

    first = tidy(text, {"generateKeys": True})
    second = tidy(text, {"generateKeys": True})

    assert first.bibtex == second.bibtex
    keys = [e.key for e in parse_bibtex(first.bibtex)[0].entries()]
    assert keys == ["doe2021learninga", "doe2021learningb"]
    assert [w.kind for w in first.warnings] == [WarningKind.KEY_COLLISION]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_tidy_recovers_from_unterminated_brace() -> None:
    """Test one broken entry does not lose the others."""
    text = (
        "@article{first, title = {One}}\n"
        "@article{broken,\n  title = {Two\n}\n"
        "@article{last, title = {Three}}\n"
    )

    result = tidy(text)

    assert [w.kind for w in result.warnings] == [WarningKind.PARSE_ERROR_RECOVERED]
    assert "@article{first," in result.bibtex
    assert "@article{last," in result.bibtex
    assert "@article{broken," in result.bibtex


@pytest.mark.unit
@pytest.mark.parametrize("value", [b"@article{k}", None, 42])
def test_tidy_non_text_is_fatal(value: object) -> None:
    """Test non-text input raises instead of producing output."""
    with pytest.raises(ParseError):
        tidy(value)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# tidy_file / write_report
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_tidy_file(sample_bib_path: Path, sample_bib: str) -> None:
    """Test tidy_file matches tidy on the file content."""
    assert tidy_file(sample_bib_path) == tidy(sample_bib)


@pytest.mark.unit
def test_tidy_file_strips_bom(tmp_path: Path) -> None:
    """Test a UTF-8 byte order mark is ignored."""
    path = tmp_path / "bom.bib"
    path.write_bytes(b"\xef\xbb\xbf@misc{k, title = {T}}\n")

    assert tidy_file(path).bibtex.startswith("@misc{k,")


@pytest.mark.unit
def test_tidy_file_errors(tmp_path: Path) -> None:
    """Test missing and non-UTF-8 files."""
    with pytest.raises(FileNotFoundError):
        tidy_file(tmp_path / "missing.bib")

    latin = tmp_path / "latin.bib"
    latin.write_bytes("@misc{k, title = {Café}}".encode("latin-1"))
    with pytest.raises(ParseError, match="not UTF-8"):
        tidy_file(latin)


@pytest.mark.unit
def test_write_report_matches_schema(tmp_path: Path) -> None:
    """Test the JSON report validates against the bundled schema."""
    result = tidy(SMITH_DUPLICATES, {"duplicates": ["citation"]})
    path = tmp_path / "out" / "report.json"

    write_report(result, path)

    report = json.loads(path.read_text(encoding="utf-8"))
    jsonschema.validate(instance=report, schema=_report_schema())
    assert "bibtex" not in report
    assert report["entries"] == {"parsed": 2, "written": 2, "duplicates_removed": 0}
    assert report["warnings"][0]["kind"] == "DUPLICATE_ENTRY"


@pytest.mark.unit
def test_write_report_can_embed_bibtex(tmp_path: Path) -> None:
    """Test include_bibtex adds the canonical text."""
    result = tidy("@misc{k}")
    path = tmp_path / "report.json"

    write_report(result, path, include_bibtex=True)

    report = json.loads(path.read_text(encoding="utf-8"))
    jsonschema.validate(instance=report, schema=_report_schema())
    assert report["bibtex"] == result.bibtex
