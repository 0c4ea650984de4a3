# src/aggregation/player_stats.py — v2
"""Single-pass player statistics.

PlayerStatsAggregator folds decorated games into a PlayerStatsState via
process() and produces a PlayerProfile via finalize(). Streaks depend on
game order: callers must feed games chronologically, which
build_player_profile() guarantees by sorting on date_sort_key first.

Games whose result is '*' or missing are counted as unfinished and do not
touch W/D/L, breakdowns or streaks.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from chessindex.aggregation.dimensions import DEFAULT_DIMENSIONS, Dimension, PlayerGameView
from chessindex.aggregation.models import (
    Color,
    GameSummary,
    Outcome,
    PeakRating,
    PlayerProfile,
    ResultTally,
    StreakStats,
)
from chessindex.core.dates import date_sort_key
from chessindex.indexing.models import DecoratedGame
from chessindex.normalize.name_normalizer import NameNormalizer

logger = logging.getLogger(__name__)

DEFAULT_NOTABLE_RATING = 2700


@dataclass
class PlayerStatsState:
    """Running counters for one player; mutated only by process()."""

    overview: ResultTally = field(default_factory=ResultTally)
    breakdowns: dict[str, dict[str, ResultTally]] = field(
        default_factory=lambda: defaultdict(lambda: defaultdict(ResultTally))
    )
    streaks: StreakStats = field(default_factory=StreakStats)
    unfinished_games: int = 0
    notable_victories: list[GameSummary] = field(default_factory=list)
    peak_rating: PeakRating | None = None
    rating_by_year: dict[str, int] = field(default_factory=dict)
    first_game: GameSummary | None = None
    last_game: GameSummary | None = None
    shortest_game: GameSummary | None = None
    longest_game: GameSummary | None = None
    total_moves: int = 0
    measured_games: int = 0
    games_seen: int = 0


def outcome_for(result: str | None, color: Color) -> Outcome | None:
    """Result from the player's perspective; None for unfinished games."""
    if result == "1/2-1/2":
        return "draw"
    if result == "1-0":
        return "win" if color == "white" else "loss"
    if result == "0-1":
        return "win" if color == "black" else "loss"
    return None


class PlayerStatsAggregator:
    """Accumulate one canonical player's statistics over a game stream."""

    def __init__(
        self,
        identity: str,
        normalizer: NameNormalizer | None = None,
        dimensions: Iterable[Dimension] = DEFAULT_DIMENSIONS,
        notable_rating: int = DEFAULT_NOTABLE_RATING,
    ) -> None:
        self.identity = identity
        self._normalizer = normalizer or NameNormalizer()
        self._dimensions = tuple(dimensions)
        self._notable_rating = notable_rating
        self.state = PlayerStatsState()

    def color_of(self, game: DecoratedGame) -> Color | None:
        """The player's color in ``game``, matched through all known aliases."""
        if game.white == self.identity or self._normalizer.matches(self.identity, game.record.white):
            return "white"
        if game.black == self.identity or self._normalizer.matches(self.identity, game.record.black):
            return "black"
        return None

    def process(self, game: DecoratedGame) -> PlayerStatsState:
        state = self.state
        color = self.color_of(game)
        if color is None:
            return state

        record = game.record
        state.games_seen += 1
        if color == "white":
            opponent, opponent_rating, player_rating = game.black, record.black_elo, record.white_elo
        else:
            opponent, opponent_rating, player_rating = game.white, record.white_elo, record.black_elo

        outcome = outcome_for(record.result, color)
        summary = GameSummary(
            date=record.date,
            event=record.event,
            opponent=opponent or None,
            opponent_rating=opponent_rating,
            color=color,
            result=record.result,
            outcome=outcome,
            eco=game.eco,
            time_control=game.category.value,
            plies=record.plies,
            source=record.source,
            offset=record.offset,
        )
        if state.first_game is None:
            state.first_game = summary
        state.last_game = summary

        if player_rating is not None:
            self._track_rating(player_rating, record.date, record.event, game.year)

        if outcome is None:
            state.unfinished_games += 1
            return state

        view = PlayerGameView(
            game=game,
            color=color,
            outcome=outcome,
            opponent=opponent or None,
            opponent_rating=opponent_rating,
            player_rating=player_rating,
        )
        state.overview.add(outcome, opponent_rating)
        for dimension in self._dimensions:
            key = dimension.key(view)
            if key is not None:
                state.breakdowns[dimension.name][key].add(outcome, opponent_rating)
        state.streaks.update(outcome)

        if (
            outcome == "win"
            and opponent_rating is not None
            and opponent_rating >= self._notable_rating
        ):
            state.notable_victories.append(summary)

        self._track_length(summary)
        return state

    def _track_rating(self, rating: int, date: str | None, event: str | None, year: int | None) -> None:
        state = self.state
        if state.peak_rating is None or rating > state.peak_rating.rating:
            state.peak_rating = PeakRating(rating=rating, date=date, event=event)
        if year is not None:
            key = f"{year:04d}"
            state.rating_by_year[key] = max(rating, state.rating_by_year.get(key, rating))

    def _track_length(self, summary: GameSummary) -> None:
        state = self.state
        plies = summary.plies
        if plies is None:
            return
        state.total_moves += summary.moves or 0
        state.measured_games += 1
        if state.shortest_game is None or plies < (state.shortest_game.plies or 0):
            state.shortest_game = summary
        if state.longest_game is None or plies > (state.longest_game.plies or 0):
            state.longest_game = summary

    def finalize(self) -> PlayerProfile:
        """Compute derived fields once and return the profile."""
        state = self.state
        breakdowns = {
            name: {key: tally.finalize() for key, tally in sorted(buckets.items())}
            for name, buckets in state.breakdowns.items()
        }
        overview = state.overview.finalize()
        average_length = (
            round(state.total_moves / state.measured_games, 1) if state.measured_games else None
        )
        identity = self._normalizer.identity(self.identity)
        profile = PlayerProfile(
            player=self.identity,
            aliases=identity.aliases,
            overview=overview,
            unfinished_games=state.unfinished_games,
            breakdowns=breakdowns,
            streaks=state.streaks,
            notable_victories=sorted(
                state.notable_victories, key=lambda s: date_sort_key(s.date),
            ),
            peak_rating=state.peak_rating,
            rating_by_year=dict(sorted(state.rating_by_year.items())),
            first_game=state.first_game,
            last_game=state.last_game,
            shortest_game=state.shortest_game,
            longest_game=state.longest_game,
            average_game_length=average_length,
            average_opponent_rating=overview.average_opponent_rating,
        )
        logger.info(
            "Profile %s: %d games (%d unfinished), performance %s",
            self.identity, overview.games, state.unfinished_games, overview.performance,
        )
        return profile


def game_order_key(game: DecoratedGame) -> tuple:
    """Chronological order; undated games last, ties by corpus position."""
    record = game.record
    return (date_sort_key(record.date), record.source, record.offset)


def build_player_profile(
    name: str,
    games: Iterable[DecoratedGame],
    normalizer: NameNormalizer | None = None,
    dimensions: Iterable[Dimension] = DEFAULT_DIMENSIONS,
    notable_rating: int = DEFAULT_NOTABLE_RATING,
) -> PlayerProfile:
    """Sort ``games`` chronologically and aggregate them for ``name``."""
    normalizer = normalizer or NameNormalizer()
    identity = normalizer.normalize(name) or name
    aggregator = PlayerStatsAggregator(
        identity, normalizer=normalizer, dimensions=dimensions, notable_rating=notable_rating,
    )
    for game in sorted(games, key=game_order_key):
        aggregator.process(game)
    return aggregator.finalize()
