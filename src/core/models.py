# src/core/models.py — v2
"""Shared domain models used across modules.

GameRecord and GameRef sit on the hot path (one instance per parsed game),
so they are plain dataclasses. Documents that are persisted or exchanged
between stages (GameMeta, CanonicalIdentity) are Pydantic models.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from chessindex.core.dates import extract_year

LEGAL_RESULTS: frozenset[str] = frozenset({"1-0", "0-1", "1/2-1/2", "*"})
DECISIVE_RESULTS: frozenset[str] = frozenset({"1-0", "0-1"})

# Tag values that PGN writers use for "unknown".
_UNKNOWN_VALUES: frozenset[str] = frozenset({"", "?", "-", "??"})


class TimeControlCategory(str, Enum):
    """Coarse time-control class assigned to every game."""

    CLASSICAL = "classical"
    RAPID = "rapid"
    BLITZ = "blitz"
    ONLINE = "online"


# === GAME RECORDS ===


@dataclass
class GameRecord:
    """One parsed PGN game: headers of interest, raw tags and opaque movetext."""

    event: str | None = None
    site: str | None = None
    date: str | None = None
    round: str | None = None
    white: str | None = None
    black: str | None = None
    result: str | None = None
    white_elo: int | None = None
    black_elo: int | None = None
    eco: str | None = None
    opening: str | None = None
    variation: str | None = None
    moves: str = ""
    ply_count: int | None = None
    time_control: str | None = None
    termination: str | None = None
    tags: dict[str, str] = field(default_factory=dict)

    # --- Locator ---
    source: str = ""
    offset: int = 0
    end_offset: int = 0
    line: int = 1
    end_line: int = 1

    @classmethod
    def from_tags(
        cls,
        tags: dict[str, str],
        moves: str = "",
        source: str = "",
        offset: int = 0,
        end_offset: int = 0,
        line: int = 1,
        end_line: int = 1,
    ) -> GameRecord:
        """Build a record from a raw tag map, coercing unknowns to None."""
        moves = moves.strip()
        return cls(
            event=_text(tags.get("Event")),
            site=_text(tags.get("Site")),
            date=_text(tags.get("Date")),
            round=_text(tags.get("Round")),
            white=_text(tags.get("White")),
            black=_text(tags.get("Black")),
            result=_result(tags.get("Result"), moves),
            white_elo=_int(tags.get("WhiteElo")),
            black_elo=_int(tags.get("BlackElo")),
            eco=_text(tags.get("ECO")),
            opening=_text(tags.get("Opening")),
            variation=_text(tags.get("Variation")),
            moves=moves,
            ply_count=_int(tags.get("PlyCount")),
            time_control=_text(tags.get("TimeControl")),
            termination=_text(tags.get("Termination")),
            tags=dict(tags),
            source=source,
            offset=offset,
            end_offset=end_offset,
            line=line,
            end_line=end_line,
        )

    @property
    def year(self) -> int | None:
        return extract_year(self.date)

    @property
    def is_decisive(self) -> bool:
        return self.result in DECISIVE_RESULTS

    @property
    def is_finished(self) -> bool:
        """True when the result is a win, loss or draw (not '*' or missing)."""
        return self.result is not None and self.result != "*"

    @property
    def has_players(self) -> bool:
        return bool(self.white) and bool(self.black)

    @property
    def plies(self) -> int | None:
        """PlyCount tag, else an estimate from the movetext."""
        if self.ply_count is not None:
            return self.ply_count
        return estimate_plies(self.moves)

    def to_ref(self, game_id: str) -> GameRef:
        return GameRef(
            source=self.source, offset=self.offset, line=self.line, game_id=game_id,
        )


@dataclass(frozen=True)
class GameRef:
    """Lightweight pointer back into the corpus."""

    source: str
    offset: int
    line: int
    game_id: str

    @property
    def identity(self) -> tuple[str, int]:
        """Locator identity: two refs with the same identity are the same game."""
        return (self.source, self.offset)

    def as_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "offset": self.offset,
            "line": self.line,
            "game_id": self.game_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameRef:
        return cls(
            source=data["source"],
            offset=int(data["offset"]),
            line=int(data.get("line", 1)),
            game_id=data.get("game_id", ""),
        )

    def as_row(self) -> list[Any]:
        """Compact on-disk form: [source, offset, line, game_id]."""
        return [self.source, self.offset, self.line, self.game_id]

    @classmethod
    def from_row(cls, row: list[Any]) -> GameRef:
        source, offset, line, game_id = row
        return cls(source=source, offset=int(offset), line=int(line), game_id=game_id)


class GameMeta(BaseModel):
    """Compact per-game metadata stored in the game-id index."""

    source: str
    offset: int
    line: int
    white: str | None = None
    black: str | None = None
    date: str | None = None
    event: str | None = None
    result: str | None = None
    eco: str | None = None
    time_control: TimeControlCategory = TimeControlCategory.CLASSICAL

    @property
    def identity(self) -> tuple[str, int]:
        return (self.source, self.offset)


# === IDENTITIES ===


class CanonicalIdentity(BaseModel):
    """A canonical player name and the raw spellings observed for it."""

    canonical: str
    aliases: dict[str, int] = Field(default_factory=dict)

    @property
    def total_observations(self) -> int:
        return sum(self.aliases.values())


# === HELPERS ===


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if value in _UNKNOWN_VALUES:
        return None
    return value


def _int(value: str | None) -> int | None:
    value = _text(value)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _result(value: str | None, moves: str) -> str | None:
    value = (value or "").strip()
    if value in LEGAL_RESULTS:
        return value
    # Fall back to the termination marker at the end of the movetext.
    tokens = moves.split()
    if tokens and tokens[-1] in LEGAL_RESULTS:
        return tokens[-1]
    return None


_COMMENTS = re.compile(r"\{[^}]*\}")
_VARIATION = re.compile(r"\([^()]*\)")
_MOVE_NUMBER = re.compile(r"^\d+\.+")


def estimate_plies(moves: str) -> int | None:
    """Count SAN tokens in movetext, ignoring comments, variations and NAGs."""
    if not moves:
        return None
    text = _COMMENTS.sub(" ", moves)
    previous = None
    while previous != text:
        previous = text
        text = _VARIATION.sub(" ", text)
    plies = 0
    for token in text.split():
        token = _MOVE_NUMBER.sub("", token)
        if not token or token.startswith("$") or token in LEGAL_RESULTS:
            continue
        plies += 1
    return plies or None
