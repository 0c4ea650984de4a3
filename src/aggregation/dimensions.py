# src/aggregation/dimensions.py — v1
"""Composable aggregation dimensions for player statistics.

A Dimension maps one game, seen from the player's side, to a bucket key;
the aggregator keeps one ResultTally per (dimension, key). A key of None
means "no data for this dimension" and the game is not counted there.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from chessindex.aggregation.models import Color, Outcome
from chessindex.indexing.models import DecoratedGame
from chessindex.normalize.eco import opening_family

RATING_BRACKETS: tuple[tuple[int, str], ...] = (
    (2800, "2800+"),
    (2700, "2700-2799"),
    (2600, "2600-2699"),
    (2500, "2500-2599"),
    (2400, "2400-2499"),
)
BELOW_LOWEST_BRACKET = "Under 2400"


@dataclass(frozen=True)
class PlayerGameView:
    """One finished game from the perspective of the analysed player."""

    game: DecoratedGame
    color: Color
    outcome: Outcome
    opponent: str | None
    opponent_rating: int | None
    player_rating: int | None


@dataclass(frozen=True)
class Dimension:
    name: str
    key_fn: Callable[[PlayerGameView], str | None]

    def key(self, view: PlayerGameView) -> str | None:
        return self.key_fn(view)


def rating_bracket(rating: int | None) -> str | None:
    if rating is None:
        return None
    for floor, label in RATING_BRACKETS:
        if rating >= floor:
            return label
    return BELOW_LOWEST_BRACKET


def _year(view: PlayerGameView) -> str | None:
    year = view.game.year
    return f"{year:04d}" if year is not None else None


def _repertoire(color: Color) -> Callable[[PlayerGameView], str | None]:
    def key_fn(view: PlayerGameView) -> str | None:
        if view.color != color or not view.game.eco:
            return None
        opening = view.game.record.opening
        return f"{view.game.eco}: {opening}" if opening else view.game.eco

    return key_fn


COLOR = Dimension("color", lambda v: v.color)
YEAR = Dimension("year", _year)
RATING_BRACKET = Dimension("rating_bracket", lambda v: rating_bracket(v.opponent_rating))
TIME_CONTROL = Dimension("time_control", lambda v: v.game.category.value)
OPENING_FAMILY = Dimension("opening_family", lambda v: opening_family(v.game.eco))
ECO = Dimension("eco", lambda v: v.game.eco)
EVENT = Dimension("event", lambda v: v.game.record.event)
OPPONENT = Dimension("opponent", lambda v: v.opponent)
OPENINGS_AS_WHITE = Dimension("openings_as_white", _repertoire("white"))
OPENINGS_AS_BLACK = Dimension("openings_as_black", _repertoire("black"))

DEFAULT_DIMENSIONS: tuple[Dimension, ...] = (
    COLOR,
    YEAR,
    RATING_BRACKET,
    TIME_CONTROL,
    OPENING_FAMILY,
    ECO,
    EVENT,
    OPPONENT,
    OPENINGS_AS_WHITE,
    OPENINGS_AS_BLACK,
)
