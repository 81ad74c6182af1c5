"""Duplicate detection over a document's entry sequence.

For every enabled strategy, entries are keyed, the (key, index) pairs are
sorted and consecutive runs with equal keys form buckets. Buckets from all
strategies are joined with union-find over entry indices, so each entry
belongs to at most one group. Detection never mutates entries.
"""

from collections import defaultdict
from collections.abc import Sequence
from itertools import combinations, groupby
from operator import itemgetter

from rapidfuzz import fuzz

from bibtidy.engine.config import MatchStrategy, TidyOptions
from bibtidy.models import DuplicateGroup, DuplicatePair, Entry, TidyWarning, WarningKind

from .keys import author_key, key_function, title_key
from .union_find import UnionFind

FUZZY_TITLE_THRESHOLD = 92.0


def detect_duplicates(
    entries: Sequence[Entry],
    options: TidyOptions,
) -> list[DuplicateGroup]:
    """Find groups of equivalent entries.

    Parameters
    ----------
    entries : Sequence[Entry]
        Entries in document order.
    options : TidyOptions
        Active options; ``active_strategies`` selects the match keys and
        ``fuzzy_titles`` enables edit-distance title matching.

    Returns
    -------
    list[DuplicateGroup]
        Groups of two or more entries, ordered by first member.
    """
    strategies = options.active_strategies
    if not strategies or len(entries) < 2:
        return []

    uf = UnionFind(len(entries))
    buckets: list[tuple[str, list[int]]] = []

    for strategy in strategies:
        for indices in _bucket(entries, strategy):
            buckets.append((strategy, indices))

    if options.fuzzy_titles and MatchStrategy.CITATION.value in strategies:
        for indices in _fuzzy_title_buckets(entries):
            buckets.append((MatchStrategy.CITATION.value, indices))

    for _, indices in buckets:
        for other in indices[1:]:
            uf.union(indices[0], other)

    strategies_by_root: dict[int, set[str]] = defaultdict(set)
    for strategy, indices in buckets:
        strategies_by_root[uf.find(indices[0])].add(strategy)

    return [
        DuplicateGroup(
            indices=tuple(component),
            strategies=tuple(sorted(strategies_by_root[uf.find(component[0])])),
        )
        for component in uf.get_components()
        if len(component) > 1
    ]


def _bucket(entries: Sequence[Entry], strategy: str) -> list[list[int]]:
    """Sort-then-bucket entries by the strategy's match key."""
    key_of = key_function(strategy)
    keyed = sorted(
        (key, index) for index, entry in enumerate(entries) if (key := key_of(entry)) is not None
    )
    buckets: list[list[int]] = []
    for _, run in groupby(keyed, key=itemgetter(0)):
        indices = [index for _, index in run]
        if len(indices) > 1:
            buckets.append(indices)
    return buckets


def _fuzzy_title_buckets(entries: Sequence[Entry]) -> list[list[int]]:
    """Pairs of entries with the same authors and near-identical titles.

    Only entries sharing the author key are compared, so the pairwise
    comparison stays within small blocks.
    """
    blocks: dict[str, list[tuple[int, str]]] = defaultdict(list)
    for index, entry in enumerate(entries):
        authors = author_key(entry)
        title = title_key(entry)
        if authors and title:
            blocks[authors].append((index, title))

    pairs: list[list[int]] = []
    for block in blocks.values():
        for (i, title_i), (j, title_j) in combinations(block, 2):
            if title_i != title_j and fuzz.ratio(title_i, title_j) >= FUZZY_TITLE_THRESHOLD:
                pairs.append([i, j])
    return pairs


def find_key_collisions(entries: Sequence[Entry]) -> list[list[int]]:
    """Indices of entries sharing a citation key (case-insensitive).

    Entries without a key are ignored.
    """
    return _bucket(entries, MatchStrategy.KEY.value)


def report_duplicates(
    entries: Sequence[Entry],
    groups: Sequence[DuplicateGroup],
) -> tuple[list[TidyWarning], list[DuplicatePair]]:
    """Describe unmerged duplicate groups.

    One ``DUPLICATE_ENTRY`` warning and one pair are produced for every
    group member after the first-seen one.

    Parameters
    ----------
    entries : Sequence[Entry]
        Entries the groups index into.
    groups : Sequence[DuplicateGroup]
        Groups from ``detect_duplicates``.

    Returns
    -------
    tuple[list[TidyWarning], list[DuplicatePair]]
        (warnings, duplicate pairs)
    """
    warnings: list[TidyWarning] = []
    pairs: list[DuplicatePair] = []

    for group in groups:
        first = entries[group.first]
        for index in group.others:
            entry = entries[index]
            how = ", ".join(group.strategies)
            warnings.append(
                TidyWarning(
                    kind=WarningKind.DUPLICATE_ENTRY,
                    message=f"Entry '{entry.key}' duplicates '{first.key}' (matched by {how})",
                    keys=(entry.key, first.key),
                    line=entry.span.line if entry.span else None,
                )
            )
            pairs.append(
                DuplicatePair(key=entry.key, duplicate_of=first.key, strategies=group.strategies)
            )

    return warnings, pairs


def key_collision_warnings(entries: Sequence[Entry]) -> list[TidyWarning]:
    """``DUPLICATE_KEY`` warnings for entries reusing an earlier key."""
    warnings: list[TidyWarning] = []
    for indices in sorted(find_key_collisions(entries)):
        for index in indices[1:]:
            entry = entries[index]
            warnings.append(
                TidyWarning(
                    kind=WarningKind.DUPLICATE_KEY,
                    message=f"Citation key '{entry.key}' is already used",
                    keys=(entry.key,),
                    line=entry.span.line if entry.span else None,
                )
            )
    return warnings
