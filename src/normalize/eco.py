# src/normalize/eco.py — v1
"""ECO code helpers: validation, volume and opening-family lookup.

The family table maps inclusive ECO ranges to a label; lookups bisect on
the numeric position of the code (volume * 100 + number).
"""

from __future__ import annotations

import re
from bisect import bisect_right

_ECO = re.compile(r"^[A-E]\d{2}$")

# (first, last, family), sorted and non-overlapping, covering A00..E99.
ECO_FAMILIES: tuple[tuple[str, str, str], ...] = (
    ("A00", "A00", "Uncommon Opening"),
    ("A01", "A01", "Nimzo-Larsen Attack"),
    ("A02", "A03", "Bird's Opening"),
    ("A04", "A09", "Reti Opening"),
    ("A10", "A39", "English Opening"),
    ("A40", "A41", "Queen's Pawn Game"),
    ("A42", "A42", "Modern Defence"),
    ("A43", "A44", "Old Benoni Defence"),
    ("A45", "A46", "Queen's Pawn Game"),
    ("A47", "A47", "Queen's Indian Defence"),
    ("A48", "A49", "King's Indian Defence"),
    ("A50", "A50", "Queen's Pawn Game"),
    ("A51", "A52", "Budapest Gambit"),
    ("A53", "A55", "Old Indian Defence"),
    ("A56", "A56", "Benoni Defence"),
    ("A57", "A59", "Benko Gambit"),
    ("A60", "A79", "Benoni Defence"),
    ("A80", "A99", "Dutch Defence"),
    ("B00", "B00", "Uncommon King's Pawn Opening"),
    ("B01", "B01", "Scandinavian Defence"),
    ("B02", "B05", "Alekhine's Defence"),
    ("B06", "B06", "Modern Defence"),
    ("B07", "B09", "Pirc Defence"),
    ("B10", "B19", "Caro-Kann Defence"),
    ("B20", "B99", "Sicilian Defence"),
    ("C00", "C19", "French Defence"),
    ("C20", "C20", "King's Pawn Game"),
    ("C21", "C22", "Centre Game"),
    ("C23", "C24", "Bishop's Opening"),
    ("C25", "C29", "Vienna Game"),
    ("C30", "C39", "King's Gambit"),
    ("C40", "C40", "King's Knight Opening"),
    ("C41", "C41", "Philidor Defence"),
    ("C42", "C43", "Petrov's Defence"),
    ("C44", "C44", "King's Pawn Game"),
    ("C45", "C45", "Scotch Game"),
    ("C46", "C46", "Three Knights Game"),
    ("C47", "C49", "Four Knights Game"),
    ("C50", "C50", "Italian Game"),
    ("C51", "C52", "Evans Gambit"),
    ("C53", "C54", "Giuoco Piano"),
    ("C55", "C59", "Two Knights Defence"),
    ("C60", "C99", "Ruy Lopez"),
    ("D00", "D00", "Queen's Pawn Game"),
    ("D01", "D01", "Richter-Veresov Attack"),
    ("D02", "D02", "Queen's Pawn Game"),
    ("D03", "D03", "Torre Attack"),
    ("D04", "D05", "Queen's Pawn Game"),
    ("D06", "D06", "Queen's Gambit"),
    ("D07", "D09", "Chigorin Defence"),
    ("D10", "D19", "Slav Defence"),
    ("D20", "D29", "Queen's Gambit Accepted"),
    ("D30", "D42", "Queen's Gambit Declined"),
    ("D43", "D49", "Semi-Slav Defence"),
    ("D50", "D69", "Queen's Gambit Declined"),
    ("D70", "D79", "Neo-Grunfeld Defence"),
    ("D80", "D99", "Grunfeld Defence"),
    ("E00", "E00", "Queen's Pawn Game"),
    ("E01", "E09", "Catalan Opening"),
    ("E10", "E10", "Queen's Pawn Game"),
    ("E11", "E11", "Bogo-Indian Defence"),
    ("E12", "E19", "Queen's Indian Defence"),
    ("E20", "E59", "Nimzo-Indian Defence"),
    ("E60", "E99", "King's Indian Defence"),
)


def _position(code: str) -> int:
    return (ord(code[0]) - ord("A")) * 100 + int(code[1:3])


_STARTS: list[int] = [_position(first) for first, _, _ in ECO_FAMILIES]


def normalize_eco(code: str | None) -> str | None:
    """Upper-cased, stripped ECO code; None when empty."""
    if not code:
        return None
    code = code.strip().upper()
    return code or None


def is_valid_eco(code: str | None) -> bool:
    code = normalize_eco(code)
    return code is not None and _ECO.match(code) is not None


def eco_volume(code: str | None) -> str | None:
    """ECO volume letter (A-E) of a valid code."""
    code = normalize_eco(code)
    if code is None or not _ECO.match(code):
        return None
    return code[0]


def opening_family(code: str | None) -> str | None:
    """Opening family label for an ECO code.

    >>> opening_family("B33")
    'Sicilian Defence'
    """
    code = normalize_eco(code)
    if code is None or not _ECO.match(code):
        return None
    position = _position(code)
    idx = bisect_right(_STARTS, position) - 1
    _, last, family = ECO_FAMILIES[idx]
    if position > _position(last):
        return None
    return family
