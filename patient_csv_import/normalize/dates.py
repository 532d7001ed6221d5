from __future__ import annotations

import re
from datetime import date

"""Date normalization for CSV cells.

Accepted inputs, tried in order:
1. ISO ``YYYY-M-D`` (1-2 digit month/day), must be a real calendar date
2. French ``D/M/YYYY`` (separators / - .), year 1900-2100
3. French short year ``D/M/YY``: YY >= 50 -> 19YY, else 20YY

French forms only range-check day (1-31) and month (1-12); 31/02 is accepted.
Anything else yields None, which callers treat as "field absent".
"""

__all__ = [
    "parse_date_to_iso",
]

_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_FRENCH_LONG = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})$")
_FRENCH_SHORT = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2})$")

MIN_YEAR = 1900
MAX_YEAR = 2100
SHORT_YEAR_PIVOT = 50


def _in_range(day: int, month: int, year: int) -> bool:
    return 1 <= day <= 31 and 1 <= month <= 12 and MIN_YEAR <= year <= MAX_YEAR


def _iso(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_date_to_iso(raw: str | None) -> str | None:
    if not raw:
        return None
    text = raw.strip()

    m = _ISO.match(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        try:
            date(year, month, day)
        except ValueError:
            pass
        else:
            return _iso(year, month, day)

    m = _FRENCH_LONG.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        if _in_range(day, month, year):
            return _iso(year, month, day)

    m = _FRENCH_SHORT.match(text)
    if m:
        day, month, short_year = (int(g) for g in m.groups())
        year = 1900 + short_year if short_year >= SHORT_YEAR_PIVOT else 2000 + short_year
        if _in_range(day, month, year):
            return _iso(year, month, day)

    return None
