# src/merging/query.py — v1
"""Lookups against merged indices in an output directory.

Index files are loaded lazily, one per index type, on first use.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from chessindex.core.models import GameMeta, GameRef
from chessindex.indexing.decorate import event_key
from chessindex.indexing.models import EVENTS, GAME_IDS, OPENINGS, PLAYERS, YEARS
from chessindex.merging.models import IndexStats
from chessindex.normalize.eco import normalize_eco
from chessindex.normalize.name_normalizer import NameNormalizer
from chessindex.storage import layout
from chessindex.storage.reader import load_index, load_stats

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


class IndexNotBuiltError(Exception):
    """The output directory does not contain the requested merged index."""


class KeyMatch(BaseModel):
    """One index key matching a search, with its game count."""

    key: str
    games: int
    exact: bool = False


class IndexQuery:
    """Exact and partial lookups by player, event, year and opening."""

    def __init__(self, output_dir: Path, normalizer: NameNormalizer | None = None) -> None:
        self._output_dir = output_dir
        self._normalizer = normalizer or NameNormalizer()
        self._indexes: dict[str, dict[str, Any]] = {}

    def _index(self, index_type: str) -> dict[str, Any]:
        cached = self._indexes.get(index_type)
        if cached is not None:
            return cached
        path = layout.index_path(self._output_dir, index_type)
        if not path.exists():
            msg = f"Index '{index_type}' has not been built in {self._output_dir}"
            raise IndexNotBuiltError(msg)
        data = load_index(self._output_dir, index_type)
        self._indexes[index_type] = data
        logger.debug("Loaded %s index: %d keys", index_type, len(data))
        return data

    @staticmethod
    def _refs(values: list[dict[str, Any]] | None) -> list[GameRef]:
        return [GameRef.from_dict(value) for value in values or []]

    def _search(
        self, index_type: str, exact_key: str | None, needle: str, limit: int,
    ) -> list[KeyMatch]:
        index = self._index(index_type)
        results: list[KeyMatch] = []
        if exact_key and exact_key in index:
            results.append(KeyMatch(key=exact_key, games=len(index[exact_key]), exact=True))

        needle = needle.strip().lower()
        if needle:
            partial = [
                KeyMatch(key=key, games=len(refs))
                for key, refs in index.items()
                if key != exact_key and needle in key.lower()
            ]
            partial.sort(key=lambda m: (-m.games, m.key))
            results.extend(partial)
        return results[:limit]

    # --- Players ---

    def search_player(self, name: str, limit: int = DEFAULT_LIMIT) -> list[KeyMatch]:
        """Exact canonical match first, then partial matches by game count."""
        return self._search(PLAYERS, self._normalizer.normalize(name), name, limit)

    def player_games(self, name: str) -> list[GameRef]:
        index = self._index(PLAYERS)
        canonical = self._normalizer.normalize(name)
        if canonical in index:
            return self._refs(index[canonical])
        return self._refs(index.get(name))

    # --- Events ---

    def search_event(self, name: str, limit: int = DEFAULT_LIMIT) -> list[KeyMatch]:
        return self._search(EVENTS, event_key(name), name, limit)

    def event_games(self, name: str) -> list[GameRef]:
        key = event_key(name)
        return self._refs(self._index(EVENTS).get(key)) if key else []

    # --- Years / openings ---

    def games_in_year(self, year: int | str) -> list[GameRef]:
        key = f"{int(year):04d}"
        return self._refs(self._index(YEARS).get(key))

    def opening_games(self, eco: str) -> list[GameRef]:
        key = normalize_eco(eco)
        return self._refs(self._index(OPENINGS).get(key)) if key else []

    # --- Game metadata / stats ---

    def game(self, game_id: str) -> GameMeta | None:
        data = self._index(GAME_IDS).get(game_id)
        return GameMeta.model_validate(data) if data is not None else None

    def resolve(self, refs: list[GameRef]) -> list[GameMeta]:
        """Metadata for refs, matched on locator (handles suffixed ids)."""
        index = self._index(GAME_IDS)
        metas: list[GameMeta] = []
        for ref in refs:
            n = 1
            while True:
                data = index.get(ref.game_id if n == 1 else f"{ref.game_id}-{n}")
                if data is None:
                    break
                if data["source"] == ref.source and int(data["offset"]) == ref.offset:
                    metas.append(GameMeta.model_validate(data))
                    break
                n += 1
        return metas

    def stats(self) -> IndexStats:
        path = layout.stats_path(self._output_dir)
        if not path.exists():
            msg = f"No index statistics in {self._output_dir}"
            raise IndexNotBuiltError(msg)
        return load_stats(self._output_dir)
