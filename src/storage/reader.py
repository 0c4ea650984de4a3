# src/storage/reader.py — v2
"""Read merged outputs back for queries, profiles and statistics."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from chessindex.aggregation.models import PlayerProfile, TournamentRecord
from chessindex.merging.models import IndexStats, MergeManifest
from chessindex.storage import layout


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def load_index(output_dir: Path, index_type: str) -> dict[str, Any]:
    """Load one merged index as a plain key -> value mapping."""
    return _read_json(layout.index_path(output_dir, index_type))


def load_stats(output_dir: Path) -> IndexStats:
    return IndexStats.model_validate(_read_json(layout.stats_path(output_dir)))


def load_manifest(output_dir: Path) -> MergeManifest:
    return MergeManifest.model_validate(_read_json(layout.manifest_path(output_dir)))


def load_aliases(output_dir: Path) -> dict[str, dict[str, int]]:
    """Observed alias counts exported by the merge; empty if absent."""
    path = layout.output_aliases_path(output_dir)
    if not path.exists():
        return {}
    return _read_json(path)


def load_profile(output_dir: Path, canonical: str) -> PlayerProfile | None:
    """Load a previously written profile; None if it has not been built."""
    path = layout.profile_path(output_dir, canonical)
    if not path.exists():
        return None
    return PlayerProfile.model_validate(_read_json(path))


def load_tournament(output_dir: Path, name: str) -> TournamentRecord | None:
    path = layout.tournament_path(output_dir, name)
    if not path.exists():
        return None
    return TournamentRecord.model_validate(_read_json(path))
