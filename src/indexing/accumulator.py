# src/indexing/accumulator.py — v1
"""In-memory index accumulation between two spills.

IndexAccumulator is the explicit pipeline-stage state of the indexer:
process() folds one decorated game in and returns the accumulator, freeze()
turns the current contents into an immutable IndexBatch.
"""

from __future__ import annotations

from collections import defaultdict

from chessindex.core.models import GameMeta, GameRef
from chessindex.indexing.models import LIST_INDEX_TYPES, DecoratedGame, IndexBatch


class IndexAccumulator:
    """Per-key lists of GameRefs plus the game-id metadata map."""

    def __init__(self) -> None:
        self.lists: dict[str, dict[str, list[GameRef]]] = {
            index_type: defaultdict(list) for index_type in LIST_INDEX_TYPES
        }
        self.game_ids: dict[str, list[GameMeta]] = defaultdict(list)
        self.game_count = 0

    def process(self, game: DecoratedGame) -> IndexAccumulator:
        ref = game.ref
        for index_type, keys in game.index_keys().items():
            target = self.lists[index_type]
            for key in keys:
                target[key].append(ref)
        self.game_ids[game.game_id].append(game.meta())
        self.game_count += 1
        return self

    def is_full(self, threshold: int) -> bool:
        return self.game_count >= threshold

    @property
    def is_empty(self) -> bool:
        return self.game_count == 0

    def key_count(self, index_type: str) -> int:
        return len(self.lists[index_type])

    def freeze(self, sequence: int) -> IndexBatch:
        """Snapshot the accumulated maps as batch ``sequence``.

        The batch shares the accumulated lists; the accumulator must not be
        reused afterwards.
        """
        return IndexBatch(
            sequence=sequence,
            game_count=self.game_count,
            lists={index_type: dict(keys) for index_type, keys in self.lists.items()},
            game_ids=dict(self.game_ids),
        )
