# src/main.py — v2
"""CLI entry point: build, merge, query, profile, tournaments and stats commands.

Usage:
    chessindex build [--no-resume] [--batch-size N]
    chessindex merge
    chessindex query {player,event,year,opening,game} <value> [--limit N]
    chessindex profile <name>
    chessindex tournaments [--min-games N]
    chessindex stats

Directories default to the values in .env; --corpus, --work-dir and
--output override them for one invocation.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from chessindex.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from chessindex.indexing.errors import IndexingError

    try:
        settings = _load_settings(args)
        _setup_logging(settings, args.verbose)
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except IndexingError as exc:
        logger.error("Indexing failed: %s", exc)
        logger.error("Progress so far: %s", exc.progress_summary())
        return 1
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="chessindex",
        description=f"chessindex v{__version__}: PGN corpus indexer and statistics",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument("--corpus", type=Path, default=None, help="PGN corpus directory")
    parser.add_argument("--work-dir", type=Path, default=None, help="Batch/checkpoint directory")
    parser.add_argument("--output", type=Path, default=None, help="Index output directory")

    subparsers = parser.add_subparsers(dest="command")

    # --- build ---
    p_build = subparsers.add_parser("build", help="Index the corpus and merge the batches")
    p_build.add_argument(
        "--no-resume", action="store_true",
        help="Ignore an existing checkpoint and start over",
    )
    p_build.add_argument(
        "--batch-size", type=int, default=None,
        help="Games per batch before spilling to disk",
    )
    p_build.set_defaults(func=_cmd_build)

    # --- merge ---
    p_merge = subparsers.add_parser("merge", help="Merge already spilled batches")
    p_merge.set_defaults(func=_cmd_merge)

    # --- query ---
    p_query = subparsers.add_parser("query", help="Look up games in the merged indices")
    p_query.add_argument(
        "kind", choices=("player", "event", "year", "opening", "game"),
        help="What to look up",
    )
    p_query.add_argument("value", help="Player name, event name, year, ECO code or game id")
    p_query.add_argument("--limit", type=int, default=20, help="Maximum results (default: 20)")
    p_query.set_defaults(func=_cmd_query)

    # --- profile ---
    p_profile = subparsers.add_parser("profile", help="Build one player's profile")
    p_profile.add_argument("name", help="Player name (any known spelling)")
    p_profile.set_defaults(func=_cmd_profile)

    # --- tournaments ---
    p_tournaments = subparsers.add_parser("tournaments", help="Build tournament standings")
    p_tournaments.add_argument(
        "--min-games", type=int, default=None,
        help="Skip events with fewer games (default: from settings)",
    )
    p_tournaments.set_defaults(func=_cmd_tournaments)

    # --- stats ---
    p_stats = subparsers.add_parser("stats", help="Show corpus statistics of the built index")
    p_stats.set_defaults(func=_cmd_stats)

    return parser


def _load_settings(args: argparse.Namespace):
    from chessindex.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.corpus is not None:
        overrides["corpus_dir"] = args.corpus
    if args.work_dir is not None:
        overrides["work_dir"] = args.work_dir
    if args.output is not None:
        overrides["output_dir"] = args.output
    if getattr(args, "batch_size", None) is not None:
        overrides["batch_size"] = args.batch_size
    return load_settings(**overrides)


def _cmd_build(args: argparse.Namespace, settings) -> int:
    """Index and merge the corpus."""
    from chessindex.api.facade import build_index

    if not settings.corpus_dir.is_dir():
        logger.error("Corpus directory not found: %s", settings.corpus_dir)
        return 1

    resume = False if args.no_resume else None
    result = build_index(settings, resume=resume)
    run = result.run
    stats = result.stats

    print("\nBuild complete:")
    if run is not None:
        print(f"  Run ID:       {run.run_id}{' (resumed)' if run.resumed else ''}")
        print(f"  Files:        {run.files_processed} processed, {run.files_skipped} skipped")
        print(f"  This run:     {run.games_this_run} games")
    _print_stats(stats)
    return 0


def _cmd_merge(args: argparse.Namespace, settings) -> int:
    """Merge spilled batches without re-indexing."""
    from chessindex.api.facade import merge_batches

    result = merge_batches(settings)
    print("\nMerge complete:")
    _print_stats(result.stats)
    return 0


def _cmd_query(args: argparse.Namespace, settings) -> int:
    """Print matching keys and games."""
    from chessindex.api.facade import query

    result = query(settings, args.kind, args.value, limit=args.limit)
    if result.matches:
        print(f"\nMatching {args.kind} keys:")
        for match in result.matches:
            marker = "*" if match.exact else " "
            print(f" {marker} {match.key} ({match.games} games)")

    print(f"\n{result.total_games} games for {args.kind} {args.value!r}")
    for meta in result.games:
        print(
            f"  {meta.date or '????.??.??'}  {meta.white or '?'} - {meta.black or '?'}  "
            f"{meta.result or '*'}  {meta.event or ''}  [{meta.source}@{meta.offset}]"
        )
    return 0


def _cmd_profile(args: argparse.Namespace, settings) -> int:
    """Build and print a player profile."""
    from chessindex.api.facade import analyze_player

    profile = analyze_player(settings, args.name)
    overview = profile.overview
    print(f"\nProfile: {profile.player}")
    print(f"  Games:        {overview.games} (+{profile.unfinished_games} unfinished)")
    print(f"  W/D/L:        {overview.wins}/{overview.draws}/{overview.losses}")
    if overview.performance is not None:
        print(f"  Performance:  {overview.performance:.1f}%")
    if profile.peak_rating is not None:
        print(f"  Peak rating:  {profile.peak_rating.rating} ({profile.peak_rating.date or '?'})")
    print(f"  Longest win streak: {profile.streaks.longest_win}")
    if profile.aliases:
        print(f"  Aliases:      {', '.join(sorted(profile.aliases))}")
    return 0


def _cmd_tournaments(args: argparse.Namespace, settings) -> int:
    """Build tournament records."""
    from chessindex.api.facade import build_tournaments

    records = build_tournaments(settings, min_games=args.min_games)
    print(f"\n{len(records)} tournaments written to {settings.output_dir}")
    for record in records[:20]:
        winner = record.standings[0].player if record.standings else "-"
        print(f"  {record.name}: {record.total_games} games, winner {winner}")
    return 0


def _cmd_stats(args: argparse.Namespace, settings) -> int:
    """Display corpus statistics of the built index."""
    from chessindex.api.facade import index_stats

    _print_stats(index_stats(settings))
    return 0


def _print_stats(stats) -> None:
    print(f"\nStatistics for {stats.total_games} games:")
    print(f"  Players:      {stats.unique_players}")
    print(f"  Events:       {stats.unique_events}")
    print(f"  Openings:     {stats.unique_openings}")
    print(f"  Files:        {stats.files_processed}")
    print(f"  Date range:   {stats.date_range.earliest or '?'} .. {stats.date_range.latest or '?'}")
    print(f"  Batches:      {stats.batches}")
    print(f"  Malformed:    {stats.malformed_lines} lines")
    print(f"  Duration:     {stats.duration_seconds:.1f}s")


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from chessindex.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
