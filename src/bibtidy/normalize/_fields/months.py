"""Month normalization."""

MONTH_MACROS: tuple[str, ...] = (
    "jan",
    "feb",
    "mar",
    "apr",
    "may",
    "jun",
    "jul",
    "aug",
    "sep",
    "oct",
    "nov",
    "dec",
)

_FULL_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

_MONTH_LOOKUP: dict[str, str] = {}
for _number, (_abbrev, _full) in enumerate(zip(MONTH_MACROS, _FULL_NAMES, strict=True), start=1):
    _MONTH_LOOKUP[_abbrev] = _abbrev
    _MONTH_LOOKUP[_full] = _abbrev
    _MONTH_LOOKUP[str(_number)] = _abbrev
    _MONTH_LOOKUP[f"{_number:02d}"] = _abbrev
_MONTH_LOOKUP["sept"] = "sep"


def normalize_month(text: str) -> str | None:
    """Map a month value to its three-letter macro name.

    Parameters
    ----------
    text : str
        Month value (``"January"``, ``"jan."``, ``"1"`` ...).

    Returns
    -------
    str | None
        Macro name such as ``"jan"``, or None when unrecognized.
    """
    token = text.strip().strip("{}").strip().rstrip(".").lower()
    return _MONTH_LOOKUP.get(token)
