# src/merging/index_merger.py — v2
"""External k-way merge of spilled batches into consolidated indices.

Every batch file lists its keys in ascending order, so one index type is
merged with a single heapq.merge pass over at most ``merge_fan_in`` open
files. With more batches than that, groups of ``merge_fan_in`` files are
first merged into intermediate run files (same format) until one pass
suffices.

Per key, the values of all batches are concatenated, duplicate refs (same
source and offset) are dropped when enabled, and the result is sorted by
locator. Output therefore does not depend on batch order.

Game-id index: metas with an equal locator are the same game (dropped);
different locators under one id are kept as ``<id>``, ``<id>-2``, ...
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable, Iterator
from itertools import groupby
from operator import itemgetter
from pathlib import Path
from typing import TYPE_CHECKING, Any

from chessindex.core.models import GameRef
from chessindex.indexing.batch_store import (
    BatchFormatError,
    batch_sequences,
    discover_batches,
    iter_batch_entries,
    read_batch_header,
    write_entries,
)
from chessindex.indexing.checkpoint import clear_work_dir, load_alias_snapshot
from chessindex.indexing.models import ALL_INDEX_TYPES, GAME_IDS, BatchHeader
from chessindex.logging.context import set_stage_context
from chessindex.merging.models import MergeManifest, MergeStats
from chessindex.storage import layout
from chessindex.storage.writer import (
    JsonObjectStreamWriter,
    write_json_atomic,
    write_model_atomic,
)

if TYPE_CHECKING:
    from chessindex.config.settings import Settings

logger = logging.getLogger(__name__)


class MergeError(Exception):
    """A batch file cannot be merged (unreadable or unknown schema)."""


# --- Value combination ---


def _ref_sort_key(row: list[Any]) -> tuple[str, int, int, str]:
    return (row[0], int(row[1]), int(row[2]), row[3])


def combine_refs(values: Iterable[list[list[Any]]], dedup: bool = True) -> tuple[list[list[Any]], int]:
    """Concatenate ref rows of one key; returns (rows sorted by locator, dropped)."""
    rows: list[list[Any]] = []
    seen: set[tuple[str, int]] = set()
    dropped = 0
    for value in values:
        for row in value:
            if dedup:
                identity = (row[0], int(row[1]))
                if identity in seen:
                    dropped += 1
                    continue
                seen.add(identity)
            rows.append(row)
    rows.sort(key=_ref_sort_key)
    return rows, dropped


def combine_metas(values: Iterable[list[dict[str, Any]]]) -> tuple[list[dict[str, Any]], int]:
    """Union game-id metas of one key by locator; returns (metas, dropped)."""
    by_identity: dict[tuple[str, int], dict[str, Any]] = {}
    dropped = 0
    for value in values:
        for meta in value:
            identity = (meta["source"], int(meta["offset"]))
            if identity in by_identity:
                dropped += 1
                continue
            by_identity[identity] = meta
    return [by_identity[identity] for identity in sorted(by_identity)], dropped


class IndexMerger:
    """Merge batch files from ``work_dir`` into index files under ``output_dir``."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._work_dir = settings.work_dir
        self._output_dir = settings.output_dir
        self._fan_in = settings.merge_fan_in
        self._dedup = settings.merge_dedup_refs

    # --- Streaming ---

    def _combine(self, index_type: str, values: list[Any]) -> tuple[list[Any], int]:
        if index_type == GAME_IDS:
            return combine_metas(values)
        return combine_refs(values, dedup=self._dedup)

    def _merged_entries(
        self, index_type: str, paths: list[Path],
    ) -> Iterator[tuple[str, list[Any], int]]:
        """Yield (key, combined value, dropped) across all paths in key order."""
        streams = [iter_batch_entries(path) for path in paths]
        merged = heapq.merge(*streams, key=itemgetter(0))
        try:
            for key, group in groupby(merged, key=itemgetter(0)):
                value, dropped = self._combine(index_type, [v for _, v in group])
                yield key, value, dropped
        except BatchFormatError as exc:
            raise MergeError(str(exc)) from exc
        finally:
            for stream in streams:
                stream.close()

    def _read_headers(self, paths: list[Path]) -> list[BatchHeader]:
        headers = []
        for path in paths:
            try:
                headers.append(read_batch_header(path))
            except (BatchFormatError, UnicodeDecodeError) as exc:
                raise MergeError(f"Cannot merge {path.name}: {exc}") from exc
        return headers

    def _merge_round(
        self, index_type: str, paths: list[Path], round_no: int, stats: MergeStats,
    ) -> list[Path]:
        """Merge groups of fan-in files into intermediate run files."""
        run_dir = layout.merge_runs_dir(self._work_dir)
        next_paths: list[Path] = []
        for group_no, start in enumerate(range(0, len(paths), self._fan_in)):
            group = paths[start : start + self._fan_in]
            if len(group) == 1:
                next_paths.append(group[0])
                continue
            headers = self._read_headers(group)
            out = run_dir / f"{index_type}-round-{round_no:02d}-{group_no:05d}{layout.BATCH_SUFFIX}"
            header = BatchHeader(
                index_type=index_type,
                sequence=group_no,
                game_count=sum(h.game_count for h in headers),
            )

            def entries(group: list[Path] = group) -> Iterator[tuple[str, list[Any]]]:
                for key, value, dropped in self._merged_entries(index_type, group):
                    stats.duplicates_dropped += dropped
                    yield key, value

            write_entries(out, header, entries())
            next_paths.append(out)
        logger.debug(
            "Merge round %d for %s: %d -> %d files",
            round_no, index_type, len(paths), len(next_paths),
        )
        return next_paths

    def _discard_runs(self, paths: Iterable[Path]) -> None:
        """Delete intermediate run files; original batches are left alone."""
        run_dir = layout.merge_runs_dir(self._work_dir)
        for path in paths:
            if path.parent == run_dir:
                path.unlink(missing_ok=True)

    # --- Public API ---

    def merge_index(self, index_type: str, batch_paths: list[Path] | None = None) -> MergeStats:
        """Merge every batch of one index type into ``<output_dir>/<index>.json``.

        Args:
            index_type: One of ALL_INDEX_TYPES.
            batch_paths: Explicit batch files (any order). Defaults to all
                batches of this type found in the work directory.

        Returns:
            MergeStats for this index.

        Raises:
            MergeError: A batch file is unreadable or has an unknown schema.
        """
        if index_type not in ALL_INDEX_TYPES:
            msg = f"Unknown index type: {index_type!r}"
            raise ValueError(msg)
        set_stage_context("merging", index_type)

        paths = list(batch_paths) if batch_paths is not None else discover_batches(
            self._work_dir, index_type,
        )
        self._read_headers(paths)
        stats = MergeStats(index_type=index_type, batches=len(paths))

        while len(paths) > self._fan_in:
            stats.rounds += 1
            next_paths = self._merge_round(index_type, paths, stats.rounds, stats)
            self._discard_runs(set(paths) - set(next_paths))
            paths = next_paths

        out_path = layout.index_path(self._output_dir, index_type)
        with JsonObjectStreamWriter(out_path) as out:
            for key, value, dropped in self._merged_entries(index_type, paths):
                stats.duplicates_dropped += dropped
                if index_type == GAME_IDS:
                    for n, meta in enumerate(value, start=1):
                        out.write(key if n == 1 else f"{key}-{n}", meta)
                    stats.collisions += len(value) - 1
                    stats.keys += len(value)
                    stats.entries += len(value)
                else:
                    out.write(key, [GameRef.from_row(row).as_dict() for row in value])
                    stats.keys += 1
                    stats.entries += len(value)

        self._discard_runs(paths)

        stats.output_path = str(out_path)
        logger.info(
            "Merged %s: %d batches, %d keys, %d entries (%d duplicates dropped, %d id collisions)",
            index_type, stats.batches, stats.keys, stats.entries,
            stats.duplicates_dropped, stats.collisions,
        )
        return stats

    def merge_all(self) -> MergeManifest:
        """Merge every index type, then write manifest.json and aliases.json."""
        self._output_dir.mkdir(parents=True, exist_ok=True)
        manifest = MergeManifest(batch_sequences=batch_sequences(self._work_dir))
        for index_type in ALL_INDEX_TYPES:
            manifest.indexes[index_type] = self.merge_index(index_type)

        aliases = load_alias_snapshot(self._work_dir)
        write_json_atomic(layout.output_aliases_path(self._output_dir), aliases)
        write_model_atomic(layout.manifest_path(self._output_dir), manifest)
        return manifest

    def cleanup(self, keep_batches: bool | None = None) -> None:
        """Remove merge artifacts; batches and checkpoint too unless keep_batches.

        Args:
            keep_batches: Override settings.keep_batches for this call.
        """
        if keep_batches is None:
            keep_batches = self._settings.keep_batches
        if keep_batches:
            runs = layout.merge_runs_dir(self._work_dir)
            if runs.is_dir():
                for path in runs.iterdir():
                    path.unlink()
            return
        clear_work_dir(self._work_dir)
