# src/normalize/time_control.py — v1
"""Time-control classification.

classify() is total: any combination of missing, empty or garbled inputs
yields one of the four TimeControlCategory values, never an exception.

Priority:
    1. event-name keywords (blitz/bullet, rapid, online platforms);
    2. the TimeControl tag:
       - "90m + 30s" minute notation: < 10 min blitz, < 60 min rapid;
       - "base[+inc]": base <= 100 is minutes, > 100 is seconds, the
         increment adds inc * 40 s (a 40-move game);
       - "40/7200:3600" multi-period: the first period's seconds;
       total < 600 s blitz, < 1800 s rapid, otherwise classical;
    3. absent or unparseable: classical.
"""

from __future__ import annotations

import re

from chessindex.core.models import TimeControlCategory

BLITZ_LIMIT_SECONDS = 600
RAPID_LIMIT_SECONDS = 1800
INCREMENT_MOVES = 40

_BLITZ_KEYWORDS = ("blitz", "bullet")
_RAPID_KEYWORDS = ("rapid",)
_ONLINE_KEYWORDS = ("online", "lichess", "chess.com", "ficgs")

_MINUTES = re.compile(r"(\d+)\s*m\b")
_BASE_INC = re.compile(r"^(\d+)(?:\s*\+\s*(\d+))?")
_ABSENT = frozenset({"", "-", "?"})


def classify_event(event: str | None) -> TimeControlCategory | None:
    """Category implied by the event name, or None when it says nothing."""
    if not event:
        return None
    lowered = event.lower()
    if any(word in lowered for word in _BLITZ_KEYWORDS):
        return TimeControlCategory.BLITZ
    if any(word in lowered for word in _RAPID_KEYWORDS):
        return TimeControlCategory.RAPID
    if any(word in lowered for word in _ONLINE_KEYWORDS):
        return TimeControlCategory.ONLINE
    return None


def estimated_seconds(time_control: str | None) -> int | None:
    """Estimated game duration per player in seconds, or None if unparseable."""
    if time_control is None:
        return None
    text = time_control.strip().lower()
    if text in _ABSENT:
        return None

    if "m" in text:
        match = _MINUTES.search(text)
        if match:
            return int(match.group(1)) * 60

    first_period = text.split(":", 1)[0]
    if "/" in first_period:
        first_period = first_period.split("/", 1)[1]
    match = _BASE_INC.match(first_period.strip())
    if match is None:
        return None
    base = int(match.group(1))
    increment = int(match.group(2) or 0)
    seconds = base if base > 100 else base * 60
    return seconds + increment * INCREMENT_MOVES


def category_for_seconds(seconds: int) -> TimeControlCategory:
    if seconds < BLITZ_LIMIT_SECONDS:
        return TimeControlCategory.BLITZ
    if seconds < RAPID_LIMIT_SECONDS:
        return TimeControlCategory.RAPID
    return TimeControlCategory.CLASSICAL


def classify(
    time_control: str | None,
    event: str | None = None,
) -> TimeControlCategory:
    """Classify a game from its TimeControl tag and event name.

    >>> classify("180+2", None).value
    'blitz'
    >>> classify(None, "World Blitz Championship 2022").value
    'blitz'
    >>> classify("5400+30", None).value
    'classical'
    """
    from_event = classify_event(event)
    if from_event is not None:
        return from_event

    text = (time_control or "").strip().lower()
    if "m" in text:
        # Minute notation keeps its own thresholds: < 10 blitz, < 60 rapid.
        match = _MINUTES.search(text)
        if match:
            minutes = int(match.group(1))
            if minutes < 10:
                return TimeControlCategory.BLITZ
            if minutes < 60:
                return TimeControlCategory.RAPID
            return TimeControlCategory.CLASSICAL

    seconds = estimated_seconds(time_control)
    if seconds is None:
        return TimeControlCategory.CLASSICAL
    return category_for_seconds(seconds)
