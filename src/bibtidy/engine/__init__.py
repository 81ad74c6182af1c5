"""Pipeline orchestration engine.

This package provides the main entry point for running the complete tidy
pipeline, including its configuration type.
"""

# config must be imported before runner: stage modules import it
from bibtidy.engine.config import (
    Enclosure,
    MatchStrategy,
    MergeStrategy,
    OptionsError,
    SortKey,
    TidyOptions,
)
from bibtidy.engine.runner import run_pipeline

__all__ = [
    "Enclosure",
    "MatchStrategy",
    "MergeStrategy",
    "OptionsError",
    "SortKey",
    "TidyOptions",
    "run_pipeline",
]
