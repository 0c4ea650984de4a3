# src/merging/models.py — v1
"""Merge results, manifest and corpus statistics documents."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from chessindex.indexing.models import DateRange

MANIFEST_SCHEMA_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MergeStats(BaseModel):
    """Outcome of merging one index type."""

    index_type: str
    batches: int = 0
    rounds: int = 0
    keys: int = 0
    entries: int = 0
    duplicates_dropped: int = 0
    collisions: int = 0
    output_path: str = ""


class MergeManifest(BaseModel):
    """manifest.json: what was merged, with per-index key/entry counts."""

    schema_version: int = MANIFEST_SCHEMA_VERSION
    created_at: datetime = Field(default_factory=_utcnow)
    batch_sequences: list[int] = Field(default_factory=list)
    indexes: dict[str, MergeStats] = Field(default_factory=dict)

    def keys(self, index_type: str) -> int:
        stats = self.indexes.get(index_type)
        return stats.keys if stats else 0


class IndexStats(BaseModel):
    """index-stats.json: corpus-level statistics of a built index."""

    total_games: int = 0
    unique_players: int = 0
    unique_events: int = 0
    unique_openings: int = 0
    files_processed: int = 0
    date_range: DateRange = Field(default_factory=DateRange)
    batches: int = 0
    malformed_lines: int = 0
    orphan_lines: int = 0
    id_collisions: int = 0
    duplicates_dropped: int = 0
    duration_seconds: float = 0.0
    generated_at: datetime = Field(default_factory=_utcnow)
