# src/aggregation/models.py — v1
"""Aggregation documents: result tallies, player profiles, tournament records.

Derived fields (win_rate, performance, averages) are filled once by
finalize(), never updated incrementally.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

Outcome = Literal["win", "draw", "loss"]
Color = Literal["white", "black"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _pct(numerator: float, denominator: int) -> float | None:
    if denominator <= 0:
        return None
    return round(numerator / denominator * 100, 1)


class ResultTally(BaseModel):
    """Win/draw/loss counters with optional opponent-rating sum."""

    games: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    rated_games: int = 0
    opponent_rating_sum: int = 0

    # Derived, set by finalize()
    points: float | None = None
    win_rate: float | None = None
    performance: float | None = None
    average_opponent_rating: int | None = None

    def add(self, outcome: Outcome, opponent_rating: int | None = None) -> None:
        self.games += 1
        if outcome == "win":
            self.wins += 1
        elif outcome == "draw":
            self.draws += 1
        else:
            self.losses += 1
        if opponent_rating is not None:
            self.rated_games += 1
            self.opponent_rating_sum += opponent_rating

    def finalize(self) -> ResultTally:
        self.points = self.wins + 0.5 * self.draws
        self.win_rate = _pct(self.wins, self.games)
        self.performance = _pct(self.points, self.games)
        if self.rated_games:
            self.average_opponent_rating = round(self.opponent_rating_sum / self.rated_games)
        return self


class GameSummary(BaseModel):
    """Short description of one game from the player's perspective."""

    date: str | None = None
    event: str | None = None
    opponent: str | None = None
    opponent_rating: int | None = None
    color: Color | None = None
    result: str | None = None
    outcome: Outcome | None = None
    eco: str | None = None
    time_control: str | None = None
    plies: int | None = None
    source: str = ""
    offset: int = 0

    @property
    def moves(self) -> int | None:
        return self.plies // 2 if self.plies is not None else None


class StreakStats(BaseModel):
    current_win: int = 0
    longest_win: int = 0
    current_unbeaten: int = 0
    longest_unbeaten: int = 0

    def update(self, outcome: Outcome) -> None:
        if outcome == "win":
            self.current_win += 1
            self.current_unbeaten += 1
        elif outcome == "draw":
            self.current_win = 0
            self.current_unbeaten += 1
        else:
            self.current_win = 0
            self.current_unbeaten = 0
        self.longest_win = max(self.longest_win, self.current_win)
        self.longest_unbeaten = max(self.longest_unbeaten, self.current_unbeaten)


class PeakRating(BaseModel):
    rating: int
    date: str | None = None
    event: str | None = None


class PlayerProfile(BaseModel):
    """Per-player statistics document, rebuilt wholesale on every analysis."""

    player: str
    aliases: dict[str, int] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=_utcnow)

    overview: ResultTally = Field(default_factory=ResultTally)
    unfinished_games: int = 0
    breakdowns: dict[str, dict[str, ResultTally]] = Field(default_factory=dict)

    streaks: StreakStats = Field(default_factory=StreakStats)
    notable_victories: list[GameSummary] = Field(default_factory=list)
    peak_rating: PeakRating | None = None
    rating_by_year: dict[str, int] = Field(default_factory=dict)

    first_game: GameSummary | None = None
    last_game: GameSummary | None = None
    shortest_game: GameSummary | None = None
    longest_game: GameSummary | None = None
    average_game_length: float | None = None  # moves
    average_opponent_rating: int | None = None

    @property
    def by_color(self) -> dict[str, ResultTally]:
        return self.breakdowns.get("color", {})

    @property
    def by_year(self) -> dict[str, ResultTally]:
        return self.breakdowns.get("year", {})


# === TOURNAMENTS ===


class StandingRow(BaseModel):
    """One player's line in a tournament score table."""

    rank: int = 0
    player: str
    games: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    score: float = 0.0
    rating: int | None = None


class GameLength(BaseModel):
    plies: int
    white: str | None = None
    black: str | None = None
    result: str | None = None
    round: str | None = None

    @property
    def moves(self) -> int:
        return self.plies // 2


class TournamentSummary(BaseModel):
    decisive_games: int = 0
    decisive_rate: float | None = None
    average_plies: float | None = None
    average_moves: float | None = None
    most_common_opening: str | None = None
    longest_game: GameLength | None = None
    shortest_decisive_game: GameLength | None = None


class TournamentRecord(BaseModel):
    """Standings and summary of one event."""

    name: str
    site: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    total_games: int = 0
    total_players: int = 0
    standings: list[StandingRow] = Field(default_factory=list)
    summary: TournamentSummary = Field(default_factory=TournamentSummary)
