"""Entry and field ordering.

Entries are ordered by successive stable sorts, from the last sort key to
the first, so earlier keys take precedence. For each key, entries that
lack the field keep their current relative order and go after all entries
that have it, whatever the direction.
"""

from collections.abc import Sequence

from bibtidy.engine.config import SortKey
from bibtidy.models import Comment, Document, Entry, Item, Preamble, StringMacro
from bibtidy.normalize import normalize_text_for_matching
from bibtidy.normalize._helpers import DIGITS_RE

SortValue = tuple[int, int, str]

# An entry together with the comments written directly before it
_Block = tuple[list[Item], Entry]


def sort_key_value(entry: Entry, name: str) -> SortValue | None:
    """Comparable value of one sort key for an entry.

    Numbers compare numerically and before text; text compares on its
    normalized matching form.

    Parameters
    ----------
    entry : Entry
        Entry to inspect.
    name : str
        Field name, or ``key`` / ``type``.

    Returns
    -------
    SortValue | None
        Comparable tuple, or None when the entry has no such value.
    """
    if name == "key":
        raw = entry.key
    elif name == "type":
        raw = entry.type_name
    else:
        raw = entry.value(name) or ""

    text = raw.strip().strip("{}").strip()
    if not text:
        return None
    if DIGITS_RE.match(text):
        return (0, int(text), "")
    return (1, 0, normalize_text_for_matching(text) or text.casefold())


def sort_entries(entries: Sequence[Entry], keys: Sequence[SortKey]) -> list[Entry]:
    """Order entries by the sort keys.

    Parameters
    ----------
    entries : Sequence[Entry]
        Entries in current order.
    keys : Sequence[SortKey]
        Sort keys, most significant first.

    Returns
    -------
    list[Entry]
        Entries in sorted order.
    """
    blocks: list[_Block] = [([], entry) for entry in entries]
    return [entry for _, entry in _sort_blocks(blocks, keys)]


def sort_document(document: Document, keys: Sequence[SortKey]) -> Document:
    """Reorder a document's entries.

    ``@preamble`` and ``@string`` items move to the top in their original
    order. Comments travel with the entry that follows them; comments after
    the last entry stay at the end.

    Parameters
    ----------
    document : Document
        Document to reorder.
    keys : Sequence[SortKey]
        Sort keys, most significant first.

    Returns
    -------
    Document
        Reordered document.
    """
    directives: list[Item] = []
    blocks: list[_Block] = []
    pending: list[Item] = []

    for item in document.items:
        if isinstance(item, Preamble | StringMacro):
            directives.append(item)
        elif isinstance(item, Comment):
            pending.append(item)
        elif isinstance(item, Entry):
            blocks.append((pending, item))
            pending = []

    items: list[Item] = list(directives)
    for comments, entry in _sort_blocks(blocks, keys):
        items.extend(comments)
        items.append(entry)
    items.extend(pending)
    return document.with_items(items)


def _sort_blocks(blocks: list[_Block], keys: Sequence[SortKey]) -> list[_Block]:
    for sort_key in reversed(keys):
        present: list[tuple[SortValue, _Block]] = []
        missing: list[_Block] = []
        for block in blocks:
            value = sort_key_value(block[1], sort_key.name)
            if value is None:
                missing.append(block)
            else:
                present.append((value, block))
        present.sort(key=lambda pair: pair[0], reverse=sort_key.descending)
        blocks = [block for _, block in present] + missing
    return blocks


def sort_fields(entry: Entry, order: Sequence[str]) -> Entry:
    """Reorder an entry's fields.

    Fields named in ``order`` come first, in that order; the others follow
    in their current order.

    Parameters
    ----------
    entry : Entry
        Entry to reorder.
    order : Sequence[str]
        Lowercase field names.

    Returns
    -------
    Entry
        Entry with reordered fields.
    """
    rank = {name: i for i, name in enumerate(order)}
    listed = sorted((f for f in entry.fields if f.name in rank), key=lambda f: rank[f.name])
    rest = [f for f in entry.fields if f.name not in rank]
    return entry.with_fields(listed + rest)


def sort_document_fields(document: Document, order: Sequence[str]) -> Document:
    """Apply ``sort_fields`` to every entry of a document."""
    return document.with_items(
        [sort_fields(item, order) if isinstance(item, Entry) else item for item in document.items]
    )
