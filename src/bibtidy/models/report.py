"""Result and warning models returned by the tidy pipeline."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

__all__ = [
    "DuplicateGroup",
    "DuplicatePair",
    "EntryCount",
    "TidyResult",
    "TidyWarning",
    "WarningKind",
]


class WarningKind(StrEnum):
    """Categories of non-fatal conditions reported by the pipeline."""

    PARSE_ERROR_RECOVERED = "PARSE_ERROR_RECOVERED"
    DUPLICATE_FIELD = "DUPLICATE_FIELD"
    MISSING_KEY = "MISSING_KEY"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    DUPLICATE_MERGED = "DUPLICATE_MERGED"
    AMBIGUOUS_FIELD_SKIPPED = "AMBIGUOUS_FIELD_SKIPPED"
    UNDEFINED_MACRO = "UNDEFINED_MACRO"
    KEY_COLLISION = "KEY_COLLISION"
    KEY_GENERATION_SKIPPED = "KEY_GENERATION_SKIPPED"


@dataclass(frozen=True)
class TidyWarning:
    """A non-fatal diagnostic.

    Attributes
    ----------
    kind : WarningKind
        Warning category.
    message : str
        Human-readable description.
    keys : tuple[str, ...]
        Citation keys affected.
    line : int | None
        1-based source line when known.
    """

    kind: WarningKind
    message: str
    keys: tuple[str, ...] = ()
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "keys": list(self.keys),
            "line": self.line,
        }


@dataclass(frozen=True)
class DuplicateGroup:
    """Entries judged equivalent under one or more match strategies.

    Attributes
    ----------
    indices : tuple[int, ...]
        Positions in the document's entry sequence, ascending.
    strategies : tuple[str, ...]
        Strategy names that linked members, sorted.
    """

    indices: tuple[int, ...]
    strategies: tuple[str, ...]

    @property
    def first(self) -> int:
        """Index of the first-seen member."""
        return self.indices[0]

    @property
    def others(self) -> tuple[int, ...]:
        """Indices of members after the first."""
        return self.indices[1:]


@dataclass(frozen=True)
class DuplicatePair:
    """A duplicate entry and the first-seen entry it duplicates.

    Attributes
    ----------
    key : str
        Citation key of the duplicate.
    duplicate_of : str
        Citation key of the entry kept for the group (the first-seen one
        unless merging keeps the last).
    strategies : tuple[str, ...]
        Strategies that matched the group.
    merged : bool
        Whether the duplicate was merged away.
    """

    key: str
    duplicate_of: str
    strategies: tuple[str, ...]
    merged: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "duplicate_of": self.duplicate_of,
            "strategies": list(self.strategies),
            "merged": self.merged,
        }


@dataclass(frozen=True)
class EntryCount:
    """Entry statistics for a run.

    Attributes
    ----------
    parsed : int
        Entries read from input.
    written : int
        Entries rendered to output.
    duplicates_removed : int
        Entries removed by duplicate merging.
    """

    parsed: int
    written: int
    duplicates_removed: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary."""
        return {
            "parsed": self.parsed,
            "written": self.written,
            "duplicates_removed": self.duplicates_removed,
        }


@dataclass(frozen=True)
class TidyResult:
    """Output of one tidy run.

    Attributes
    ----------
    bibtex : str
        Canonical BibTeX text.
    warnings : tuple[TidyWarning, ...]
        Diagnostics in pipeline order.
    entries : EntryCount
        Entry statistics.
    duplicates : tuple[DuplicatePair, ...]
        Duplicate pairs found.
    groups : tuple[DuplicateGroup, ...]
        Duplicate groups over the parsed entry sequence.
    """

    bibtex: str
    warnings: tuple[TidyWarning, ...] = ()
    entries: EntryCount = field(default_factory=lambda: EntryCount(0, 0))
    duplicates: tuple[DuplicatePair, ...] = ()
    groups: tuple[DuplicateGroup, ...] = ()

    @property
    def duplicates_removed(self) -> int:
        """Entries removed by merging."""
        return self.entries.duplicates_removed

    def warnings_of(self, kind: WarningKind) -> list[TidyWarning]:
        """Warnings of a single kind."""
        return [w for w in self.warnings if w.kind is kind]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable report."""
        return {
            "bibtex": self.bibtex,
            "warnings": [w.to_dict() for w in self.warnings],
            "entries": self.entries.to_dict(),
            "duplicates": [d.to_dict() for d in self.duplicates],
        }
