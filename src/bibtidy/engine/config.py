"""Tidy configuration.

``TidyOptions`` is an immutable dataclass passed explicitly to every
pipeline stage. ``TidyOptions.from_mapping`` builds one from a JSON-style
mapping (e.g. a ``--config`` file) after validating it against the bundled
JSON Schema.
"""

import json
import re
from dataclasses import asdict, dataclass, fields
from enum import StrEnum
from functools import cache
from importlib import resources
from typing import Any

import jsonschema

__all__ = [
    "DEFAULT_FIELD_ORDER",
    "DEFAULT_KEY_TEMPLATE",
    "DEFAULT_MERGE_STRATEGIES",
    "Enclosure",
    "MatchStrategy",
    "MergeStrategy",
    "OptionsError",
    "SortKey",
    "TidyOptions",
]

DEFAULT_KEY_TEMPLATE = "[auth:required:lower][year:required][veryshorttitle:lower]"

DEFAULT_FIELD_ORDER: tuple[str, ...] = (
    "title",
    "shorttitle",
    "author",
    "year",
    "month",
    "day",
    "journal",
    "booktitle",
    "location",
    "on",
    "publisher",
    "address",
    "series",
    "volume",
    "number",
    "pages",
    "doi",
    "isbn",
    "issn",
    "url",
    "urldate",
    "copyright",
    "category",
    "note",
    "metadata",
)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class OptionsError(ValueError):
    """Raised when tidy options are invalid."""


class Enclosure(StrEnum):
    """Preferred value enclosure style."""

    PRESERVE = "preserve"
    BRACES = "braces"
    QUOTES = "quotes"


class MatchStrategy(StrEnum):
    """Built-in duplicate match strategies."""

    KEY = "key"
    DOI = "doi"
    CITATION = "citation"
    ABSTRACT = "abstract"


class MergeStrategy(StrEnum):
    """Which values win when duplicates are merged.

    Attributes
    ----------
    FIRST : str
        Keep the first-seen entry, discard the rest.
    LAST : str
        Keep the last-seen entry, discard the rest.
    COMBINE : str
        Keep the first-seen entry and add fields it lacks.
    OVERWRITE : str
        Keep the first-seen entry; later values overwrite earlier ones.
    """

    FIRST = "first"
    LAST = "last"
    COMBINE = "combine"
    OVERWRITE = "overwrite"


DEFAULT_MERGE_STRATEGIES: tuple[MatchStrategy, ...] = (
    MatchStrategy.DOI,
    MatchStrategy.CITATION,
    MatchStrategy.ABSTRACT,
)


@dataclass(frozen=True)
class SortKey:
    """One entry sort key.

    Attributes
    ----------
    name : str
        Field name, or the special keys ``key`` and ``type``.
    descending : bool
        Reverse the order for this key.
    """

    name: str
    descending: bool = False

    @classmethod
    def parse(cls, spec: str) -> "SortKey":
        """Parse ``"year"`` or ``"-year"`` (descending)."""
        spec = spec.strip()
        if spec.startswith("-"):
            return cls(spec[1:].strip().lower(), descending=True)
        return cls(spec.lower())

    def __str__(self) -> str:
        return f"-{self.name}" if self.descending else self.name


@dataclass(frozen=True)
class TidyOptions:
    """Configuration for one tidy run.

    Attributes
    ----------
    enclosure : Enclosure
        Preferred value enclosure; values unsafe in quotes always use braces.
    numeric : bool
        Render purely numeric values without enclosure.
    indent : str
        Indentation for fields.
    align : int
        Column at which field values start (0 disables alignment).
    single_line : bool
        Render each entry on a single line.
    trailing_commas : bool
        Add a comma after the last field.
    blank_lines : bool
        Separate items with a blank line.
    wrap : int | None
        Maximum line width for long values.
    lowercase : bool
        Lowercase entry types and field names.
    omit : tuple[str, ...]
        Fields to remove.
    collapse_whitespace : bool
        Collapse runs of whitespace in values to single spaces; when off,
        values keep their line breaks, are never wrapped and name lists are
        only rewritten for ``max_authors``.
    remove_empty_fields : bool
        Remove fields whose value is empty.
    sort_fields : tuple[str, ...] | None
        Field order within entries; None keeps source order.
    strip_comments : bool
        Remove comments.
    strip_enclosing_braces : bool
        Remove braces enclosing an entire value.
    drop_all_caps : bool
        Title-case values written entirely in capitals.
    title_case : tuple[str, ...]
        Fields to title-case.
    enclosing_braces : tuple[str, ...]
        Fields whose whole value is wrapped in an extra pair of braces.
    remove_braces : tuple[str, ...]
        Fields from which non-command braces are removed.
    escape : bool
        Escape Unicode and special characters as LaTeX.
    encode_urls : bool
        Percent-encode unsafe URL characters.
    months : bool
        Rewrite months as three-letter macros.
    page_ranges : bool
        Rewrite page ranges with ``--``.
    max_authors : int | None
        Truncate name lists to this many names plus ``others``.
    verbatim_fields : tuple[str, ...]
        Fields emitted exactly as written in source.
    expand_macros : bool
        Substitute ``@string`` definitions into field values.
    duplicates : tuple[MatchStrategy, ...]
        Enabled duplicate match strategies.
    duplicate_fields : tuple[str, ...]
        Fields used as additional exact-match strategies.
    fuzzy_titles : bool
        Enable edit-distance title matching for the citation strategy.
    merge : MergeStrategy | None
        Merge duplicates with this strategy; None only reports them.
    sort : tuple[SortKey, ...] | None
        Entry sort keys; None keeps source order.
    generate_keys : str | None
        Template for regenerating citation keys.
    """

    enclosure: Enclosure = Enclosure.PRESERVE
    numeric: bool = False
    indent: str = "  "
    align: int = 14
    single_line: bool = False
    trailing_commas: bool = False
    blank_lines: bool = True
    wrap: int | None = None
    lowercase: bool = True
    omit: tuple[str, ...] = ()
    collapse_whitespace: bool = True
    remove_empty_fields: bool = False
    sort_fields: tuple[str, ...] | None = None
    strip_comments: bool = False
    strip_enclosing_braces: bool = False
    drop_all_caps: bool = False
    title_case: tuple[str, ...] = ()
    enclosing_braces: tuple[str, ...] = ()
    remove_braces: tuple[str, ...] = ()
    escape: bool = True
    encode_urls: bool = False
    months: bool = False
    page_ranges: bool = False
    max_authors: int | None = None
    verbatim_fields: tuple[str, ...] = ()
    expand_macros: bool = False
    duplicates: tuple[MatchStrategy, ...] = ()
    duplicate_fields: tuple[str, ...] = ()
    fuzzy_titles: bool = False
    merge: MergeStrategy | None = None
    sort: tuple[SortKey, ...] | None = None
    generate_keys: str | None = None

    def __post_init__(self) -> None:
        """Coerce sequence/enum fields and validate ranges."""
        for name in (
            "omit",
            "title_case",
            "enclosing_braces",
            "remove_braces",
            "verbatim_fields",
            "duplicate_fields",
        ):
            object.__setattr__(self, name, _field_names(getattr(self, name)))

        if self.sort_fields is not None:
            object.__setattr__(self, "sort_fields", _field_names(self.sort_fields))

        try:
            object.__setattr__(self, "enclosure", Enclosure(self.enclosure))
            object.__setattr__(
                self, "duplicates", tuple(dict.fromkeys(MatchStrategy(s) for s in self.duplicates))
            )
            if self.merge is not None:
                object.__setattr__(self, "merge", MergeStrategy(self.merge))
        except ValueError as e:
            raise OptionsError(str(e)) from e

        if self.sort is not None:
            object.__setattr__(
                self,
                "sort",
                tuple(k if isinstance(k, SortKey) else SortKey.parse(k) for k in self.sort),
            )

        if self.align < 0:
            raise OptionsError(f"align must be >= 0, got {self.align}")

        if self.wrap is not None and self.wrap < 1:
            raise OptionsError(f"wrap must be >= 1, got {self.wrap}")

        if self.max_authors is not None and self.max_authors < 1:
            raise OptionsError(f"max_authors must be >= 1, got {self.max_authors}")

        if self.indent.strip():
            raise OptionsError(f"indent must be whitespace, got {self.indent!r}")

        if self.generate_keys is not None and not self.generate_keys.strip():
            raise OptionsError("generate_keys template must not be empty")

    @property
    def active_strategies(self) -> tuple[str, ...]:
        """Strategy names used for duplicate detection, in a stable order.

        Merging without explicit strategies falls back to doi, citation
        and abstract.
        """
        builtin = self.duplicates
        if not builtin and not self.duplicate_fields and self.merge is not None:
            builtin = DEFAULT_MERGE_STRATEGIES
        names = [s.value for s in builtin]
        names.extend(f"field:{name}" for name in self.duplicate_fields)
        return tuple(names)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "TidyOptions":
        """Build options from a JSON-style mapping.

        Keys may be snake_case or camelCase. Aliases: ``curly`` (braces),
        ``tab``/``space`` (indent), ``sort``/``sortFields``/``generateKeys``
        set to ``true`` (defaults).

        Parameters
        ----------
        data : dict[str, Any]
            Option mapping.

        Returns
        -------
        TidyOptions
            Validated options.

        Raises
        ------
        OptionsError
            If the mapping fails schema validation.
        """
        normalized = {_CAMEL_RE.sub("_", key).lower(): value for key, value in data.items()}

        try:
            jsonschema.validate(instance=normalized, schema=options_schema())
        except jsonschema.ValidationError as e:
            location = ".".join(str(p) for p in e.absolute_path) or "options"
            raise OptionsError(f"Invalid option {location}: {e.message}") from e

        kwargs: dict[str, Any] = {}

        if normalized.pop("curly", False):
            kwargs["enclosure"] = Enclosure.BRACES
        if normalized.pop("tab", False):
            kwargs["indent"] = "\t"
        space = normalized.pop("space", None)
        if space is not None and "indent" not in kwargs:
            kwargs["indent"] = " " * space

        sort = normalized.pop("sort", None)
        if sort is True:
            kwargs["sort"] = (SortKey("key"),)
        elif sort:
            kwargs["sort"] = tuple(SortKey.parse(s) for s in sort)

        sort_fields = normalized.pop("sort_fields", None)
        if sort_fields is True:
            kwargs["sort_fields"] = DEFAULT_FIELD_ORDER
        elif sort_fields:
            kwargs["sort_fields"] = tuple(sort_fields)

        generate_keys = normalized.pop("generate_keys", None)
        if generate_keys is True:
            kwargs["generate_keys"] = DEFAULT_KEY_TEMPLATE
        elif generate_keys:
            kwargs["generate_keys"] = generate_keys

        merge = normalized.pop("merge", None)
        if merge is True:
            kwargs["merge"] = MergeStrategy.COMBINE
        elif merge:
            kwargs["merge"] = MergeStrategy(merge)

        for key, value in normalized.items():
            if isinstance(value, list):
                value = tuple(value)
            kwargs[key] = value

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = asdict(self)
        for f in fields(self):
            value = data[f.name]
            if isinstance(value, tuple):
                data[f.name] = [str(v) for v in getattr(self, f.name)]
            elif isinstance(value, StrEnum):
                data[f.name] = value.value
        return data


@cache
def options_schema() -> dict[str, Any]:
    """Load the bundled options JSON Schema."""
    schema_file = resources.files("bibtidy") / "schemas" / "options.schema.json"
    with schema_file.open("r", encoding="utf-8") as f:
        schema: dict[str, Any] = json.load(f)
    return schema


def _field_names(names: Any) -> tuple[str, ...]:
    if isinstance(names, str):
        names = [names]
    return tuple(dict.fromkeys(str(n).strip().lower() for n in names if str(n).strip()))
