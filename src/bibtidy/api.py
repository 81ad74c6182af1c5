"""Public API for tidying BibTeX.

This module provides the main public API for bibtidy, enabling:
- Tidying BibTeX text or files into canonical form
- Exporting the structured result as a JSON report
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from bibtidy.engine import TidyOptions, run_pipeline
from bibtidy.models import TidyResult
from bibtidy.parse import ParseError

__all__ = [
    "tidy",
    "tidy_file",
    "write_report",
    "ParseError",
]


def _coerce_options(options: TidyOptions | Mapping[str, Any] | None) -> TidyOptions:
    if options is None:
        return TidyOptions()
    if isinstance(options, TidyOptions):
        return options
    return TidyOptions.from_mapping(dict(options))


def tidy(
    text: str,
    options: TidyOptions | Mapping[str, Any] | None = None,
) -> TidyResult:
    """Normalize, deduplicate and format BibTeX text.

    Parameters
    ----------
    text : str
        BibTeX source.
    options : TidyOptions | Mapping[str, Any] | None, optional
        Options object, or a JSON-style mapping (snake_case or camelCase
        keys) validated against the options schema.

    Returns
    -------
    TidyResult
        Canonical text plus warnings, entry counts and duplicate pairs.

    Raises
    ------
    ParseError
        If ``text`` is not a string or cannot be parsed at all.
    OptionsError
        If the options are invalid.

    Examples
    --------
    Find duplicate citations:

        >>> from bibtidy import tidy
        >>> result = tidy(source, {"duplicates": ["citation"]})
        >>> for warning in result.warnings:
        ...     print(warning.kind, warning.message)
    """
    return run_pipeline(text, _coerce_options(options))


def tidy_file(
    path: str | Path,
    options: TidyOptions | Mapping[str, Any] | None = None,
) -> TidyResult:
    """Tidy a ``.bib`` file.

    The file is read as UTF-8 (a byte order mark is ignored) and is not
    modified.

    Parameters
    ----------
    path : str | Path
        Path to the BibTeX file.
    options : TidyOptions | Mapping[str, Any] | None, optional
        Options, as for ``tidy``.

    Returns
    -------
    TidyResult
        Tidy result for the file's content.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ParseError
        If the file is not valid UTF-8 text or cannot be parsed.
    """
    file_path = Path(path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(
            f"Failed to read {file_path.name}: not UTF-8 text", expected="UTF-8 text"
        ) from e

    return tidy(text, options)


def write_report(
    result: TidyResult,
    path: str | Path,
    *,
    include_bibtex: bool = False,
) -> None:
    """Write a tidy result as a JSON report.

    Output is deterministic with sorted keys and UTF-8 encoding.

    Parameters
    ----------
    result : TidyResult
        Result to export.
    path : str | Path
        Output file path.
    include_bibtex : bool, optional
        Also embed the canonical text, by default False.
    """
    report = result.to_dict()
    if not include_bibtex:
        report.pop("bibtex")

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, ensure_ascii=False, sort_keys=True)
        f.write("\n")
