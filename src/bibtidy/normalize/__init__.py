"""Field normalization.

Main entry points:
- normalize_document: Apply the enabled field rules to every entry
- normalize_value: Canonical form of a single value of a given kind
"""

from bibtidy.normalize._helpers import (
    AmbiguousNormalization,
    alphanumeric_key,
    normalize_text_for_matching,
)
from bibtidy.normalize.kinds import FieldKind, field_kind
from bibtidy.normalize.normalizer import normalize_document, normalize_value

__all__ = [
    "AmbiguousNormalization",
    "FieldKind",
    "alphanumeric_key",
    "field_kind",
    "normalize_document",
    "normalize_text_for_matching",
    "normalize_value",
]
