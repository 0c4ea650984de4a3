# src/api/facade.py — v3
"""Public API facade: build, merge, query and aggregate a PGN corpus.

Usage:
    from chessindex.api.facade import build_index, query
    result = build_index(settings)
    hits = query(settings, "player", "Fischer")

Every function takes a Settings instance and reads/writes only the
directories it names.
"""

from __future__ import annotations

import logging
import time

from chessindex.aggregation.corpus import iter_corpus_games, load_player_games
from chessindex.aggregation.models import PlayerProfile, TournamentRecord
from chessindex.aggregation.player_stats import build_player_profile
from chessindex.aggregation.tournament import TournamentAggregator
from chessindex.api.models import QUERY_KINDS, BuildResult, QueryResult, TournamentListing
from chessindex.config.settings import Settings
from chessindex.core.models import GameRef
from chessindex.indexing.batch_indexer import BatchIndexer
from chessindex.indexing.checkpoint import load_checkpoint
from chessindex.indexing.models import EVENTS, GAME_IDS, OPENINGS, PLAYERS, Checkpoint
from chessindex.logging.context import set_stage_context
from chessindex.merging.index_merger import IndexMerger
from chessindex.merging.models import IndexStats, MergeManifest
from chessindex.merging.query import DEFAULT_LIMIT, IndexQuery
from chessindex.normalize.name_normalizer import NameNormalizer
from chessindex.storage import layout
from chessindex.storage.writer import write_json_atomic, write_model_atomic

logger = logging.getLogger(__name__)


# === BUILD / MERGE ===


def build_index(settings: Settings, resume: bool | None = None) -> BuildResult:
    """Index the corpus into batches, then merge them into the output directory.

    Args:
        settings: Directories and tuning.
        resume: Honour an existing checkpoint. Defaults to settings.resume_enabled.

    Returns:
        BuildResult with the indexing run, merge manifest and corpus statistics.

    Raises:
        IndexingError: Reading the corpus or writing a batch failed.
        MergeError: A batch file could not be merged.
    """
    logger.info("Building index: corpus=%s output=%s", settings.corpus_dir, settings.output_dir)
    run = BatchIndexer(settings).run(resume=resume)
    result = merge_batches(settings)
    result.run = run
    return result


def merge_batches(settings: Settings) -> BuildResult:
    """Merge the spilled batches of ``settings.work_dir`` and write index-stats.json.

    Batches, checkpoint and alias snapshot are removed only after a completed
    indexing run; an unfinished run keeps them so the next build can resume.
    """
    started = time.monotonic()
    checkpoint = load_checkpoint(settings.work_dir)
    finished = checkpoint is not None and checkpoint.completed
    if checkpoint is None:
        logger.warning("No checkpoint in %s; statistics will lack run counters", settings.work_dir)
    elif not finished:
        logger.warning(
            "Merging batches of an unfinished indexing run %s; keeping its work files",
            checkpoint.run_id,
        )

    merger = IndexMerger(settings)
    manifest = merger.merge_all()
    stats = compute_stats(manifest, checkpoint, time.monotonic() - started)
    write_model_atomic(layout.stats_path(settings.output_dir), stats)
    merger.cleanup(keep_batches=None if finished else True)
    set_stage_context("complete")

    logger.info(
        "Index ready: %d games, %d players, %d events, %d batches",
        stats.total_games, stats.unique_players, stats.unique_events, stats.batches,
    )
    return BuildResult(manifest=manifest, stats=stats)


def compute_stats(
    manifest: MergeManifest,
    checkpoint: Checkpoint | None,
    merge_seconds: float = 0.0,
) -> IndexStats:
    """Corpus statistics from the merge manifest and the indexing checkpoint."""
    game_ids = manifest.indexes.get(GAME_IDS)
    stats = IndexStats(
        total_games=manifest.keys(GAME_IDS),
        unique_players=manifest.keys(PLAYERS),
        unique_events=manifest.keys(EVENTS),
        unique_openings=manifest.keys(OPENINGS),
        batches=len(manifest.batch_sequences),
        id_collisions=game_ids.collisions if game_ids else 0,
        duplicates_dropped=sum(s.duplicates_dropped for s in manifest.indexes.values()),
        duration_seconds=round(merge_seconds, 3),
    )
    if checkpoint is not None:
        stats.files_processed = sum(1 for p in checkpoint.files.values() if p.completed)
        stats.date_range = checkpoint.date_range
        stats.malformed_lines = checkpoint.malformed_lines
        stats.orphan_lines = checkpoint.orphan_lines
        stats.duration_seconds = round(checkpoint.elapsed_seconds + merge_seconds, 3)
    return stats


# === QUERY ===


def query(
    settings: Settings,
    kind: str,
    value: str,
    limit: int = DEFAULT_LIMIT,
) -> QueryResult:
    """Look up games by player, event, year, opening or game id.

    Raises:
        ValueError: Unknown ``kind`` or a malformed year.
        IndexNotBuiltError: The required index is missing from output_dir.
    """
    if kind not in QUERY_KINDS:
        msg = f"Unknown query kind {kind!r}; expected one of {', '.join(QUERY_KINDS)}"
        raise ValueError(msg)

    lookup = IndexQuery(settings.output_dir, NameNormalizer.from_file(settings.alias_file))
    result = QueryResult(kind=kind, query=value)

    if kind == "game":
        meta = lookup.game(value)
        if meta is not None:
            result.exact = True
            result.games = [meta]
            result.total_games = 1
        return result

    refs: list[GameRef]
    if kind == "player":
        result.matches = lookup.search_player(value, limit)
        refs = lookup.player_games(value)
    elif kind == "event":
        result.matches = lookup.search_event(value, limit)
        refs = lookup.event_games(value)
    elif kind == "year":
        refs = lookup.games_in_year(value)
    else:
        refs = lookup.opening_games(value)

    result.exact = bool(refs)
    result.total_games = len(refs)
    result.games = lookup.resolve(refs[:limit])
    return result


def index_stats(settings: Settings) -> IndexStats:
    return IndexQuery(settings.output_dir).stats()


# === AGGREGATION ===


def analyze_player(settings: Settings, name: str) -> PlayerProfile:
    """Build and persist the profile of one player.

    Raises:
        ValueError: ``name`` is empty after normalization.
    """
    set_stage_context("profile")
    normalizer = NameNormalizer.from_file(settings.alias_file)
    canonical = normalizer.normalize(name)
    if not canonical:
        msg = f"Cannot analyse an empty player name: {name!r}"
        raise ValueError(msg)

    games = load_player_games(settings, canonical, normalizer)
    if not games:
        logger.warning("No games found for %s", canonical)
    profile = build_player_profile(
        canonical,
        games,
        normalizer=normalizer,
        notable_rating=settings.notable_victory_rating,
    )
    path = layout.profile_path(settings.output_dir, canonical)
    write_model_atomic(path, profile)
    logger.info("Wrote profile %s", path)
    return profile


def build_tournaments(settings: Settings, min_games: int | None = None) -> list[TournamentRecord]:
    """Aggregate every event of the corpus and persist the qualifying ones."""
    set_stage_context("tournaments")
    min_games = settings.min_tournament_games if min_games is None else min_games
    normalizer = NameNormalizer.from_file(settings.alias_file)

    aggregator = TournamentAggregator()
    for game in iter_corpus_games(settings, normalizer):
        aggregator.process(game)
    records = aggregator.records(min_games)

    listing: list[dict] = []
    used: set[str] = {layout.TOURNAMENT_LIST_FILE}
    for record in records:
        path = layout.tournament_path(settings.output_dir, record.name)
        n = 2
        while path.name in used:
            path = path.with_name(f"{layout.slugify(record.name)}-{n}.json")
            n += 1
        used.add(path.name)
        write_model_atomic(path, record)
        listing.append(
            TournamentListing(
                name=record.name,
                file=path.name,
                site=record.site,
                start_date=record.start_date,
                end_date=record.end_date,
                total_games=record.total_games,
                total_players=record.total_players,
                winner=record.standings[0].player if record.standings else None,
            ).model_dump(mode="json")
        )

    write_json_atomic(layout.tournament_list_path(settings.output_dir), listing)
    logger.info(
        "Wrote %d tournaments (%d events seen, %d games without event or players)",
        len(records), len(aggregator), aggregator.games_skipped,
    )
    return records
