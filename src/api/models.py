# src/api/models.py — v2
"""API-level result models returned by the facade."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from chessindex.core.models import GameMeta
from chessindex.indexing.models import IndexRunResult
from chessindex.merging.models import IndexStats, MergeManifest
from chessindex.merging.query import KeyMatch

QueryKind = Literal["player", "event", "year", "opening", "game"]
QUERY_KINDS: tuple[str, ...] = ("player", "event", "year", "opening", "game")

__all__ = [
    "QUERY_KINDS",
    "BuildResult",
    "IndexStats",
    "QueryKind",
    "QueryResult",
    "TournamentListing",
]


class BuildResult(BaseModel):
    """Return value of facade.build_index(): indexing run plus merge outcome."""

    run: IndexRunResult | None = None
    manifest: MergeManifest
    stats: IndexStats


class QueryResult(BaseModel):
    """Return value of facade.query()."""

    kind: QueryKind
    query: str
    exact: bool = False
    matches: list[KeyMatch] = Field(default_factory=list)
    games: list[GameMeta] = Field(default_factory=list)
    total_games: int = 0


class TournamentListing(BaseModel):
    """One line of tournaments/index.json."""

    name: str
    file: str
    site: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    total_games: int = 0
    total_players: int = 0
    winner: str | None = None
