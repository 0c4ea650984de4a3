# src/aggregation/corpus.py — v1
"""Game sources for the aggregators.

Profiles and tournament tables can be built straight from the corpus (one
streaming pass) or, for a single player, by re-reading only the games the
merged players index points at.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterator

from chessindex.batch.scanner import BatchScanner
from chessindex.config.settings import Settings
from chessindex.core.models import GameRef
from chessindex.indexing.decorate import decorate
from chessindex.indexing.models import PLAYERS, DecoratedGame
from chessindex.normalize.name_normalizer import NameNormalizer
from chessindex.parser.pgn_reader import ParseStats, iter_games, read_games_at
from chessindex.storage import layout
from chessindex.storage.reader import load_aliases, load_index

logger = logging.getLogger(__name__)


def iter_corpus_games(
    settings: Settings,
    normalizer: NameNormalizer,
    stats: ParseStats | None = None,
) -> Iterator[DecoratedGame]:
    """Decorate every game of the corpus, file by file in scan order."""
    scan = BatchScanner(settings).scan(fingerprint=False)
    for entry in scan.entries:
        for record in iter_games(entry.path, stats=stats, source=entry.source):
            yield decorate(record, normalizer, settings.game_id_length)


def _indexed_refs(settings: Settings, canonical: str) -> list[GameRef] | None:
    """Refs for ``canonical`` from the merged players index, None if not built."""
    if not layout.index_path(settings.output_dir, PLAYERS).exists():
        return None
    index = load_index(settings.output_dir, PLAYERS)
    return [GameRef.from_dict(value) for value in index.get(canonical, [])]


def load_player_games(
    settings: Settings,
    canonical: str,
    normalizer: NameNormalizer,
) -> list[DecoratedGame]:
    """All games involving ``canonical``.

    Uses the merged players index when the output directory has one and
    falls back to a full corpus scan otherwise.
    """
    refs = _indexed_refs(settings, canonical)
    if refs is None:
        logger.info("No players index in %s, scanning corpus", settings.output_dir)
        return [
            game
            for game in iter_corpus_games(settings, normalizer)
            if canonical in (game.white, game.black)
        ]

    normalizer.load_observed(load_aliases(settings.output_dir))
    by_source: dict[str, list[int]] = defaultdict(list)
    for ref in refs:
        by_source[ref.source].append(ref.offset)

    games: list[DecoratedGame] = []
    for source, offsets in sorted(by_source.items()):
        path = settings.corpus_dir / source
        if not path.is_file():
            logger.warning("Indexed source %s is missing from the corpus", source)
            continue
        for record in read_games_at(path, offsets, source=source):
            games.append(
                decorate(record, normalizer, settings.game_id_length, record_aliases=False)
            )
    logger.info("Loaded %d indexed games for %s", len(games), canonical)
    return games
