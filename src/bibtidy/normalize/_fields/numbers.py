"""Numeric field rules: page ranges and DOI keys."""

import re
from urllib.parse import unquote, urlparse

PAGE_RANGE_RE = re.compile(r"^([\w.:]+)\s*(?:-+|–|—)\s*([\w.:]+)$")
DOI_SUFFIX_RE = re.compile(r"\s*\[doi\]\s*$", re.IGNORECASE)


def normalize_page_range(text: str) -> str:
    """Write a page range with a BibTeX en-dash (``12--15``).

    Values that are not a simple ``a-b`` range pass through unchanged.
    """
    match = PAGE_RANGE_RE.match(text.strip())
    if not match:
        return text
    return f"{match.group(1)}--{match.group(2)}"


def normalize_doi_string(doi: str) -> str | None:
    """Normalize a DOI for comparison.

    Parameters
    ----------
    doi : str
        Raw DOI, possibly a resolver URL or ``doi:`` prefixed.

    Returns
    -------
    str | None
        Casefolded bare DOI, or None when the value is not a DOI.
    """
    if not doi:
        return None

    doi = doi.strip().replace("{", "").replace("}", "").replace("\\_", "_")

    doi = DOI_SUFFIX_RE.sub("", doi).strip()

    # Extract from URL
    if doi.startswith(("http://", "https://")):
        doi = urlparse(doi).path.lstrip("/")

    for prefix in ["doi:", "doi.org/", "dx.doi.org/"]:
        if doi.casefold().startswith(prefix):
            doi = doi[len(prefix) :].strip()
            break

    # URL-decode encoded characters (%2F → /, %28 → (, etc.)
    doi = unquote(doi)

    # Parentheses/brackets are valid DOI characters (e.g., 10.1002/(sici)1234)
    doi = doi.rstrip(".,;").strip().casefold()

    if not doi.startswith("10."):
        return None

    return doi
