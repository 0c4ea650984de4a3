# src/core/dates.py — v1
"""PGN date helpers.

PGN dates are "YYYY.MM.DD" with "??" for unknown parts; many corpora also
carry year-only dates, ISO dashes or nothing at all.
"""

from __future__ import annotations

import re
from typing import NamedTuple

_DATE_SPLIT = re.compile(r"[.\-/]")


class PgnDate(NamedTuple):
    year: int | None
    month: int | None
    day: int | None

    @property
    def is_known(self) -> bool:
        return self.year is not None


def _part(raw: str, lo: int, hi: int) -> int | None:
    if not raw.isdigit():
        return None
    value = int(raw)
    if not lo <= value <= hi:
        return None
    return value


def parse_pgn_date(raw: str | None) -> PgnDate:
    """Parse a PGN date, keeping whatever parts are known.

    >>> parse_pgn_date("1972.07.11")
    PgnDate(year=1972, month=7, day=11)
    >>> parse_pgn_date("1972.??.??")
    PgnDate(year=1972, month=None, day=None)
    """
    if not raw:
        return PgnDate(None, None, None)
    parts = _DATE_SPLIT.split(raw.strip())
    year = _part(parts[0], 1, 9999) if parts[0] and len(parts[0]) == 4 else None
    if year is None:
        return PgnDate(None, None, None)
    month = _part(parts[1], 1, 12) if len(parts) > 1 else None
    day = _part(parts[2], 1, 31) if len(parts) > 2 and month is not None else None
    return PgnDate(year, month, day)


def extract_year(raw: str | None) -> int | None:
    return parse_pgn_date(raw).year


def date_sort_key(raw: str | None) -> tuple[int, int, int, int]:
    """Chronological sort key; undated games sort after every dated one.

    Unknown month/day sort before known ones within the same year.
    """
    parsed = parse_pgn_date(raw)
    if parsed.year is None:
        return (1, 0, 0, 0)
    return (0, parsed.year, parsed.month or 0, parsed.day or 0)
