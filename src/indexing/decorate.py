# src/indexing/decorate.py — v1
"""Attach normalized identities, time-control class and GameId to a record."""

from __future__ import annotations

from chessindex.core.models import GameRecord
from chessindex.indexing.fingerprint import (
    DEFAULT_GAME_ID_LENGTH,
    collapse_spaces,
    compute_game_id,
)
from chessindex.indexing.models import DecoratedGame
from chessindex.normalize.eco import normalize_eco
from chessindex.normalize.name_normalizer import NameNormalizer
from chessindex.normalize.time_control import classify


def event_key(event: str | None) -> str | None:
    """Index key for an event name: whitespace-collapsed, lower-cased."""
    key = collapse_spaces(event).lower()
    return key or None


def decorate(
    record: GameRecord,
    normalizer: NameNormalizer,
    game_id_length: int = DEFAULT_GAME_ID_LENGTH,
    record_aliases: bool = True,
) -> DecoratedGame:
    """Normalize and classify one record; observed aliases are counted."""
    white = normalizer.normalize(record.white)
    black = normalizer.normalize(record.black)
    if record_aliases:
        if white and record.white:
            normalizer.record_alias(white, record.white)
        if black and record.black:
            normalizer.record_alias(black, record.black)

    return DecoratedGame(
        record=record,
        white=white,
        black=black,
        event_key=event_key(record.event),
        eco=normalize_eco(record.eco),
        category=classify(record.time_control, record.event),
        game_id=compute_game_id(white, black, record.date, record.event, game_id_length),
    )
