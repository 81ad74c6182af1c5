"""Tidy pipeline runner.

This module chains the stages into a single deterministic pipeline.

Architecture Flow:
    Stage 1: Parsing
    Stage 2: Field Normalization
    Stage 3: Duplicate Detection (and optional merge)
    Stage 4: Field Ordering
    Stage 5: Entry Sorting and Key Generation
    Stage 6: Serialization

Each stage consumes the previous stage's whole output. Warnings are
collected in stage order; nothing is logged.
"""

from bibtidy.duplicates import (
    detect_duplicates,
    key_collision_warnings,
    merge_duplicates,
    report_duplicates,
)
from bibtidy.engine.config import MatchStrategy, TidyOptions
from bibtidy.format import format_document
from bibtidy.models import (
    Document,
    DuplicateGroup,
    DuplicatePair,
    EntryCount,
    TidyResult,
    TidyWarning,
)
from bibtidy.normalize import normalize_document
from bibtidy.parse import parse_bibtex
from bibtidy.sort import generate_keys, parse_template, sort_document, sort_document_fields

# ---------------------------------------------------------------------------
# Individual stage functions
# ---------------------------------------------------------------------------


def _stage3_duplicates(
    document: Document,
    options: TidyOptions,
) -> tuple[Document, list[TidyWarning], list[DuplicatePair], list[DuplicateGroup]]:
    """Stage 3: Detect duplicate groups, then merge or report them."""
    entries = document.entries()
    groups = detect_duplicates(entries, options)

    if options.merge is not None and groups:
        document, warnings, pairs = merge_duplicates(document, groups, options.merge)
    else:
        warnings, pairs = report_duplicates(entries, groups)

    if MatchStrategy.KEY.value not in options.active_strategies:
        warnings.extend(key_collision_warnings(document.entries()))

    return document, warnings, pairs, groups


def _stage5_order_and_keys(
    document: Document,
    options: TidyOptions,
) -> tuple[Document, list[TidyWarning]]:
    """Stage 5: Sort entries, regenerate keys, then re-sort on the new keys.

    Collision suffixes follow the sorted order, and the second sort keeps
    the output stable when ``key`` is one of the sort keys.
    """
    warnings: list[TidyWarning] = []

    if options.sort:
        document = sort_document(document, options.sort)

    if options.generate_keys:
        document, key_warnings = generate_keys(document, options.generate_keys)
        warnings.extend(key_warnings)
        if options.sort:
            document = sort_document(document, options.sort)

    return document, warnings


# ---------------------------------------------------------------------------
# Pipeline runner
# ---------------------------------------------------------------------------


def run_pipeline(text: str, options: TidyOptions | None = None) -> TidyResult:
    """Run parse, normalize, deduplicate, sort and format on BibTeX text.

    Parameters
    ----------
    text : str
        BibTeX source.
    options : TidyOptions | None, optional
        Configuration; defaults to ``TidyOptions()``.

    Returns
    -------
    TidyResult
        Canonical text, warnings in pipeline order, entry counts and
        duplicate pairs.

    Raises
    ------
    ParseError
        If the input is not text or cannot be parsed at all.
    OptionsError
        If the key template is invalid.
    """
    options = options or TidyOptions()
    if options.generate_keys:
        # Fail on a bad template before doing any work
        parse_template(options.generate_keys)

    warnings: list[TidyWarning] = []

    # Stage 1
    document, parse_warnings = parse_bibtex(text)
    warnings.extend(parse_warnings)
    parsed = len(document.entries())

    # Stage 2
    document, normalize_warnings = normalize_document(document, options)
    warnings.extend(normalize_warnings)

    # Stage 3
    document, duplicate_warnings, pairs, groups = _stage3_duplicates(document, options)
    warnings.extend(duplicate_warnings)
    after_merge = len(document.entries())

    # Stage 4
    if options.sort_fields is not None:
        document = sort_document_fields(document, options.sort_fields)

    # Stage 5
    document, key_warnings = _stage5_order_and_keys(document, options)
    warnings.extend(key_warnings)

    # Stage 6
    bibtex = format_document(document, options)

    return TidyResult(
        bibtex=bibtex,
        warnings=tuple(warnings),
        entries=EntryCount(
            parsed=parsed,
            written=after_merge,
            duplicates_removed=parsed - after_merge,
        ),
        duplicates=tuple(pairs),
        groups=tuple(groups),
    )
