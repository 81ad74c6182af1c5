"""Duplicate detection and merging.

Main entry points:
- detect_duplicates: Group equivalent entries across match strategies
- merge_duplicates: Collapse each group to a single entry
- report_duplicates: Warnings and pairs for unmerged groups
- key_collision_warnings: Entries that reuse a citation key
"""

from bibtidy.duplicates.detector import (
    FUZZY_TITLE_THRESHOLD,
    detect_duplicates,
    find_key_collisions,
    key_collision_warnings,
    report_duplicates,
)
from bibtidy.duplicates.keys import key_function
from bibtidy.duplicates.merge import merge_duplicates, merge_entries
from bibtidy.duplicates.union_find import UnionFind

__all__ = [
    "FUZZY_TITLE_THRESHOLD",
    "UnionFind",
    "detect_duplicates",
    "find_key_collisions",
    "key_collision_warnings",
    "key_function",
    "merge_duplicates",
    "merge_entries",
    "report_duplicates",
]
