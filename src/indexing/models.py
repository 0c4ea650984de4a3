# src/indexing/models.py — v1
"""Indexing models: index types, decorated games, batches, checkpoint state.

Batch and checkpoint documents are versioned Pydantic schemas; a file with
an unknown schema version is rejected rather than half-read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from chessindex.core.dates import date_sort_key
from chessindex.core.models import GameMeta, GameRecord, GameRef, TimeControlCategory

# === INDEX TYPES ===

PLAYERS = "players"
EVENTS = "events"
OPENINGS = "openings"
TIME_CONTROLS = "time_controls"
YEARS = "years"
GAME_IDS = "game_ids"

LIST_INDEX_TYPES: tuple[str, ...] = (PLAYERS, EVENTS, OPENINGS, TIME_CONTROLS, YEARS)
ALL_INDEX_TYPES: tuple[str, ...] = LIST_INDEX_TYPES + (GAME_IDS,)

BATCH_SCHEMA = "chessindex.batch"
BATCH_SCHEMA_VERSION = 1
CHECKPOINT_SCHEMA_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# === DECORATED GAMES ===


@dataclass
class DecoratedGame:
    """A GameRecord with normalized identities, category and GameId attached."""

    record: GameRecord
    white: str
    black: str
    event_key: str | None
    eco: str | None
    category: TimeControlCategory
    game_id: str

    @property
    def year(self) -> int | None:
        return self.record.year

    @property
    def ref(self) -> GameRef:
        return self.record.to_ref(self.game_id)

    def meta(self) -> GameMeta:
        record = self.record
        return GameMeta(
            source=record.source,
            offset=record.offset,
            line=record.line,
            white=self.white or None,
            black=self.black or None,
            date=record.date,
            event=record.event,
            result=record.result,
            eco=self.eco,
            time_control=self.category,
        )

    def index_keys(self) -> dict[str, list[str]]:
        """Keys this game contributes to each list index; absent data adds none."""
        players = [name for name in dict.fromkeys((self.white, self.black)) if name]
        year = self.year
        return {
            PLAYERS: players,
            EVENTS: [self.event_key] if self.event_key else [],
            OPENINGS: [self.eco] if self.eco else [],
            TIME_CONTROLS: [self.category.value],
            YEARS: [f"{year:04d}"] if year is not None else [],
        }


# === BATCHES ===


@dataclass(frozen=True)
class IndexBatch:
    """Immutable, sequence-numbered snapshot of the accumulated indices."""

    sequence: int
    game_count: int
    lists: dict[str, dict[str, list[GameRef]]]
    game_ids: dict[str, list[GameMeta]]

    def key_count(self, index_type: str) -> int:
        if index_type == GAME_IDS:
            return len(self.game_ids)
        return len(self.lists.get(index_type, {}))


class BatchHeader(BaseModel):
    """First line of every batch (and intermediate merge run) file."""

    schema_name: str = Field(default=BATCH_SCHEMA, alias="schema")
    version: int = BATCH_SCHEMA_VERSION
    index_type: str
    sequence: int
    game_count: int
    key_count: int | None = None  # unknown for intermediate merge runs
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = {"populate_by_name": True}


# === CHECKPOINT ===


class DateRange(BaseModel):
    """Earliest and latest dated game seen (raw PGN date strings)."""

    earliest: str | None = None
    latest: str | None = None

    def observe(self, date: str | None) -> None:
        key = date_sort_key(date)
        if key[0] != 0:
            return
        if self.earliest is None or key < date_sort_key(self.earliest):
            self.earliest = date
        if self.latest is None or key > date_sort_key(self.latest):
            self.latest = date

    def merge(self, other: DateRange) -> None:
        self.observe(other.earliest)
        self.observe(other.latest)


class FileProgress(BaseModel):
    """Resume position inside one corpus file, valid at a batch boundary."""

    offset: int = 0
    line: int = 1
    games: int = 0
    completed: bool = False
    fingerprint: str = ""
    size: int = 0


class Checkpoint(BaseModel):
    """Persisted indexer state, rewritten atomically after every spill."""

    schema_version: int = CHECKPOINT_SCHEMA_VERSION
    run_id: str
    next_sequence: int = 1
    games_indexed: int = 0
    files: dict[str, FileProgress] = Field(default_factory=dict)
    date_range: DateRange = Field(default_factory=DateRange)
    malformed_lines: int = 0
    orphan_lines: int = 0
    elapsed_seconds: float = 0.0
    completed: bool = False
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def batches_written(self) -> int:
        return self.next_sequence - 1


# === STATE MACHINE / RESULT ===


class IndexerState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    INDEXING = "indexing"
    SPILLING = "spilling"
    MERGING_HANDOFF = "merging_handoff"
    COMPLETE = "complete"
    FAILED = "failed"


class IndexRunResult(BaseModel):
    """Outcome of one BatchIndexer.run() call."""

    run_id: str
    state: IndexerState
    resumed: bool = False
    files_total: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    games_indexed: int = 0
    games_this_run: int = 0
    batches_written: int = 0
    batch_sequences: list[int] = Field(default_factory=list)
    batch_game_counts: list[int] = Field(default_factory=list)
    malformed_lines: int = 0
    orphan_lines: int = 0
    date_range: DateRange = Field(default_factory=DateRange)
    duration_seconds: float = 0.0

