"""Collapse duplicate groups into one entry each."""

from collections.abc import Sequence

from bibtidy.engine.config import MergeStrategy
from bibtidy.models import (
    Document,
    DuplicateGroup,
    DuplicatePair,
    Entry,
    Field,
    Item,
    TidyWarning,
    WarningKind,
)


def merge_duplicates(
    document: Document,
    groups: Sequence[DuplicateGroup],
    strategy: MergeStrategy,
) -> tuple[Document, list[TidyWarning], list[DuplicatePair]]:
    """Replace every duplicate group with a single merged entry.

    The merged entry takes the position of the group's first-seen entry;
    the other members are removed.

    Parameters
    ----------
    document : Document
        Document whose entry sequence the groups index into.
    groups : Sequence[DuplicateGroup]
        Groups from ``detect_duplicates``.
    strategy : MergeStrategy
        ``first`` keeps the first entry, ``last`` keeps the last one,
        ``combine`` keeps the first and adds fields it lacks, ``overwrite``
        also lets later values replace earlier ones.

    Returns
    -------
    tuple[Document, list[TidyWarning], list[DuplicatePair]]
        (document without duplicates, one ``DUPLICATE_MERGED`` warning per
        discarded entry, duplicate pairs)
    """
    entries = document.entries()
    survivors: dict[int, Entry] = {}
    removed: set[int] = set()
    warnings: list[TidyWarning] = []
    pairs: list[DuplicatePair] = []

    for group in groups:
        members = [entries[i] for i in group.indices]
        merged, discarded = merge_entries(members, strategy)
        survivors[group.first] = merged
        removed.update(group.others)

        kept = len(members) - 1 if strategy is MergeStrategy.LAST else 0
        for position, entry in enumerate(members):
            if position == kept:
                continue
            message = f"Merged '{entry.key}' into '{merged.key}'"
            if discarded.get(position):
                message += "; discarded " + ", ".join(discarded[position])
            warnings.append(
                TidyWarning(
                    kind=WarningKind.DUPLICATE_MERGED,
                    message=message,
                    keys=(entry.key, merged.key),
                    line=entry.span.line if entry.span else None,
                )
            )
            pairs.append(
                DuplicatePair(
                    key=entry.key,
                    duplicate_of=merged.key,
                    strategies=group.strategies,
                    merged=True,
                )
            )

    items: list[Item] = []
    index = 0
    for item in document.items:
        if isinstance(item, Entry):
            if index in survivors:
                items.append(survivors[index])
            elif index not in removed:
                items.append(item)
            index += 1
        else:
            items.append(item)

    return document.with_items(items), warnings, pairs


def merge_entries(
    members: Sequence[Entry],
    strategy: MergeStrategy,
) -> tuple[Entry, dict[int, list[str]]]:
    """Merge the entries of one group.

    Parameters
    ----------
    members : Sequence[Entry]
        Group members in document order.
    strategy : MergeStrategy
        Merge strategy.

    Returns
    -------
    tuple[Entry, dict[int, list[str]]]
        Merged entry, and per member position the ``field={value}``
        descriptions of values that lost a conflict. Under ``overwrite``
        a replaced value is listed under the member that replaced it.
    """
    if strategy is MergeStrategy.FIRST:
        return members[0], {}
    if strategy is MergeStrategy.LAST:
        return members[-1], {}

    fields: dict[str, Field] = {f.name: f for f in members[0].fields}
    discarded: dict[int, list[str]] = {}

    for position, entry in enumerate(members[1:], start=1):
        for fld in entry.fields:
            current = fields.get(fld.name)
            if current is None:
                fields[fld.name] = fld
            elif current.value != fld.value:
                loser = fld
                if strategy is MergeStrategy.OVERWRITE:
                    loser, fields[fld.name] = current, fld
                discarded.setdefault(position, []).append(f"{loser.name}={{{loser.value}}}")

    return members[0].with_fields(list(fields.values())), discarded
