"""Pytest configuration and fixtures for test suite."""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from bibtidy.models import Delimiter, Entry, Field, ValuePart  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def make_entry() -> Callable[..., Entry]:
    """Factory for entries with minimal boilerplate.

    Field values are given as keyword arguments and stored as single
    braced parts.
    """

    def _factory(key: str = "key", entry_type: str = "article", **values: str) -> Entry:
        fields = tuple(
            Field(
                name=name.lower(),
                original_name=name,
                parts=(ValuePart(value, Delimiter.BRACES),),
                raw="{" + value + "}",
            )
            for name, value in values.items()
        )
        return Entry(entry_type=entry_type, key=key, fields=fields)

    return _factory


@pytest.fixture
def sample_bib() -> str:
    """Content of the realistic sample bibliography."""
    return (FIXTURES_DIR / "sample.bib").read_text(encoding="utf-8")


@pytest.fixture
def sample_bib_path() -> Path:
    """Path to the realistic sample bibliography."""
    return FIXTURES_DIR / "sample.bib"
