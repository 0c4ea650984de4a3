# src/aggregation/tournament.py — v1
"""Tournament standings and summaries grouped by event name.

Games are grouped on the event index key (whitespace-collapsed,
lower-cased); the first spelling seen becomes the display name. Standing
rows are per canonical player. Unknown results ('*') count as a game played
for both sides but award no points.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from chessindex.aggregation.models import (
    GameLength,
    StandingRow,
    TournamentRecord,
    TournamentSummary,
)
from chessindex.core.dates import date_sort_key
from chessindex.indexing.models import DecoratedGame
from chessindex.normalize.eco import opening_family

logger = logging.getLogger(__name__)

DEFAULT_MIN_GAMES = 10


@dataclass
class _TournamentState:
    name: str
    rows: dict[str, StandingRow] = field(default_factory=dict)
    games: int = 0
    decisive: int = 0
    plies_total: int = 0
    measured: int = 0
    openings: Counter = field(default_factory=Counter)
    sites: Counter = field(default_factory=Counter)
    start_date: str | None = None
    end_date: str | None = None
    longest: GameLength | None = None
    shortest_decisive: GameLength | None = None

    def row(self, player: str) -> StandingRow:
        row = self.rows.get(player)
        if row is None:
            row = self.rows[player] = StandingRow(player=player)
        return row


def _credit(row: StandingRow, points: float | None, rating: int | None) -> None:
    row.games += 1
    if points == 1.0:
        row.wins += 1
        row.score += 1.0
    elif points == 0.5:
        row.draws += 1
        row.score += 0.5
    elif points == 0.0:
        row.losses += 1
    if rating is not None and (row.rating is None or rating > row.rating):
        row.rating = rating


_POINTS: dict[str, tuple[float, float]] = {
    "1-0": (1.0, 0.0),
    "0-1": (0.0, 1.0),
    "1/2-1/2": (0.5, 0.5),
}


def rank_standings(rows: list[StandingRow]) -> list[StandingRow]:
    """Sort by score desc, wins desc, fewer games, then name; assign ranks."""
    ordered = sorted(rows, key=lambda r: (-r.score, -r.wins, r.games, r.player))
    for rank, row in enumerate(ordered, start=1):
        row.rank = rank
    return ordered


class TournamentAggregator:
    """Accumulate standings for every event seen in a game stream."""

    def __init__(self) -> None:
        self._tournaments: dict[str, _TournamentState] = {}
        self.games_seen = 0
        self.games_skipped = 0

    def __len__(self) -> int:
        return len(self._tournaments)

    def process(self, game: DecoratedGame) -> None:
        record = game.record
        if not game.event_key or not game.white or not game.black:
            self.games_skipped += 1
            return
        self.games_seen += 1

        state = self._tournaments.get(game.event_key)
        if state is None:
            state = _TournamentState(name=" ".join((record.event or "").split()))
            self._tournaments[game.event_key] = state

        white_points, black_points = _POINTS.get(record.result or "", (None, None))
        _credit(state.row(game.white), white_points, record.white_elo)
        _credit(state.row(game.black), black_points, record.black_elo)

        state.games += 1
        if record.is_decisive:
            state.decisive += 1
        if record.site:
            state.sites[record.site] += 1
        if date_sort_key(record.date)[0] == 0:
            if state.start_date is None or date_sort_key(record.date) < date_sort_key(state.start_date):
                state.start_date = record.date
            if state.end_date is None or date_sort_key(record.date) > date_sort_key(state.end_date):
                state.end_date = record.date

        opening = record.opening or opening_family(game.eco)
        if opening:
            state.openings[opening] += 1

        plies = record.plies
        if plies:
            state.plies_total += plies
            state.measured += 1
            length = GameLength(
                plies=plies,
                white=game.white,
                black=game.black,
                result=record.result,
                round=record.round,
            )
            if state.longest is None or plies > state.longest.plies:
                state.longest = length
            if record.is_decisive and (
                state.shortest_decisive is None or plies < state.shortest_decisive.plies
            ):
                state.shortest_decisive = length

    def records(self, min_games: int = DEFAULT_MIN_GAMES) -> list[TournamentRecord]:
        """Finished tournament records with at least ``min_games`` games, by name."""
        results: list[TournamentRecord] = []
        excluded = 0
        for state in self._tournaments.values():
            if state.games < min_games:
                excluded += 1
                continue
            results.append(self._build(state))
        results.sort(key=lambda r: r.name.lower())
        logger.info(
            "Tournaments: %d kept, %d below %d games", len(results), excluded, min_games,
        )
        return results

    @staticmethod
    def _build(state: _TournamentState) -> TournamentRecord:
        most_common_opening = None
        if state.openings:
            most_common_opening = min(
                state.openings.items(), key=lambda item: (-item[1], item[0]),
            )[0]
        average_plies = (
            round(state.plies_total / state.measured, 1) if state.measured else None
        )
        summary = TournamentSummary(
            decisive_games=state.decisive,
            decisive_rate=round(state.decisive / state.games * 100, 1) if state.games else None,
            average_plies=average_plies,
            average_moves=round(average_plies / 2, 1) if average_plies is not None else None,
            most_common_opening=most_common_opening,
            longest_game=state.longest,
            shortest_decisive_game=state.shortest_decisive,
        )
        site = state.sites.most_common(1)[0][0] if state.sites else None
        return TournamentRecord(
            name=state.name,
            site=site,
            start_date=state.start_date,
            end_date=state.end_date,
            total_games=state.games,
            total_players=len(state.rows),
            standings=rank_standings(list(state.rows.values())),
            summary=summary,
        )
