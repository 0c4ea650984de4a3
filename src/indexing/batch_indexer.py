# src/indexing/batch_indexer.py — v1
"""Batch indexer — streaming corpus indexing with spill-to-disk and resume.

State machine:

    IDLE -> SCANNING -> INDEXING <-> SPILLING -> MERGING_HANDOFF -> COMPLETE
                           \\            \\
                            +-> FAILED <-+

Memory is bounded by ``batch_size`` games: once the accumulator is full it
is frozen into a sequence-numbered IndexBatch, written to the work
directory and replaced by an empty one. The checkpoint is rewritten after
every spill with exact per-file byte offsets, so a resumed run continues
at the first game that is not yet on disk.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING

from chessindex.batch.models import ScanEntry
from chessindex.batch.scanner import BatchScanner
from chessindex.indexing import checkpoint as ckpt
from chessindex.indexing.accumulator import IndexAccumulator
from chessindex.indexing.batch_store import write_batch
from chessindex.indexing.decorate import decorate
from chessindex.indexing.errors import IndexingError, InvalidTransitionError
from chessindex.indexing.models import (
    PLAYERS,
    Checkpoint,
    DateRange,
    FileProgress,
    IndexerState,
    IndexRunResult,
)
from chessindex.logging.context import (
    set_batch_context,
    set_run_context,
    set_stage_context,
)
from chessindex.normalize.name_normalizer import NameNormalizer
from chessindex.parser.pgn_reader import ParseStats, iter_games

if TYPE_CHECKING:
    from chessindex.config.settings import Settings

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 10_000

TRANSITIONS: dict[IndexerState, frozenset[IndexerState]] = {
    IndexerState.IDLE: frozenset({IndexerState.SCANNING}),
    IndexerState.SCANNING: frozenset({
        IndexerState.INDEXING,
        IndexerState.SPILLING,
        IndexerState.MERGING_HANDOFF,
        IndexerState.FAILED,
    }),
    IndexerState.INDEXING: frozenset({
        IndexerState.SPILLING,
        IndexerState.SCANNING,
        IndexerState.FAILED,
    }),
    IndexerState.SPILLING: frozenset({
        IndexerState.INDEXING,
        IndexerState.MERGING_HANDOFF,
        IndexerState.FAILED,
    }),
    IndexerState.MERGING_HANDOFF: frozenset({IndexerState.COMPLETE, IndexerState.FAILED}),
    IndexerState.COMPLETE: frozenset({IndexerState.IDLE}),
    IndexerState.FAILED: frozenset({IndexerState.IDLE}),
}


class BatchIndexer:
    """Index a PGN corpus into spilled batches under ``settings.work_dir``."""

    def __init__(
        self,
        settings: Settings,
        normalizer: NameNormalizer | None = None,
        scanner: BatchScanner | None = None,
    ) -> None:
        self._settings = settings
        self._normalizer = normalizer or NameNormalizer.from_file(settings.alias_file)
        self._scanner = scanner or BatchScanner(settings)
        self._state = IndexerState.IDLE
        self._accumulator = IndexAccumulator()
        self._checkpoint: Checkpoint | None = None
        self._result: IndexRunResult | None = None
        self._pending_range = DateRange()
        self._games_this_run = 0

    # --- State machine ---

    @property
    def state(self) -> IndexerState:
        return self._state

    @property
    def normalizer(self) -> NameNormalizer:
        return self._normalizer

    def _transition(self, target: IndexerState) -> None:
        if target not in TRANSITIONS[self._state]:
            msg = f"Illegal indexer transition {self._state.value} -> {target.value}"
            raise InvalidTransitionError(msg)
        logger.debug("Indexer state %s -> %s", self._state.value, target.value)
        self._state = target
        set_stage_context(target.value)

    # --- Run ---

    def run(self, resume: bool | None = None) -> IndexRunResult:
        """Index the whole corpus, resuming from a checkpoint when allowed.

        Args:
            resume: Honour an existing checkpoint. Defaults to settings.resume_enabled.

        Returns:
            IndexRunResult describing this run.

        Raises:
            IndexingError: I/O failure while reading the corpus or writing a batch.
            ResumeInconsistencyError: Checkpoint does not match the corpus.
        """
        if self._state in (IndexerState.COMPLETE, IndexerState.FAILED):
            self._transition(IndexerState.IDLE)
        if resume is None:
            resume = self._settings.resume_enabled

        t0 = time.perf_counter()
        work_dir = self._settings.work_dir
        work_dir.mkdir(parents=True, exist_ok=True)

        self._transition(IndexerState.SCANNING)
        try:
            checkpoint = ckpt.load_checkpoint(work_dir) if resume else None
        except IndexingError:
            self._transition(IndexerState.FAILED)
            raise
        resumed = checkpoint is not None
        if checkpoint is None:
            ckpt.clear_work_dir(work_dir)
            checkpoint = Checkpoint(run_id=uuid.uuid4().hex[:12])
            self._normalizer.reset_observed()
        else:
            ckpt.discard_stale_batches(work_dir, checkpoint)
            self._normalizer.reset_observed()
            self._normalizer.load_observed(ckpt.load_alias_snapshot(work_dir))
            logger.info(
                "Resuming run %s: %d games already indexed in %d batches",
                checkpoint.run_id, checkpoint.games_indexed, checkpoint.batches_written,
            )

        self._checkpoint = checkpoint
        self._accumulator = IndexAccumulator()
        self._pending_range = DateRange()
        self._games_this_run = 0
        set_run_context(checkpoint.run_id)

        self._result = IndexRunResult(
            run_id=checkpoint.run_id, state=self._state, resumed=resumed,
        )
        try:
            scan = self._scanner.scan()
        except (OSError, ValueError) as exc:
            raise self._fail(f"Corpus scan failed: {exc}", None, None) from exc
        self._result.files_total = scan.total_files

        for entry in scan.entries:
            progress = checkpoint.files.get(entry.source)
            if progress is not None:
                try:
                    ckpt.verify_file(entry, progress)
                except IndexingError:
                    self._transition(IndexerState.FAILED)
                    raise
                if progress.completed:
                    self._result.files_skipped += 1
                    logger.debug("Skipping %s (already indexed)", entry.source)
                    continue
            self._transition(IndexerState.INDEXING)
            self._index_file(entry, progress)
            self._transition(IndexerState.SCANNING)

        if not self._accumulator.is_empty:
            self._transition(IndexerState.SPILLING)
            self._spill()
        self._transition(IndexerState.MERGING_HANDOFF)

        checkpoint.completed = True
        checkpoint.elapsed_seconds += time.perf_counter() - t0
        try:
            ckpt.save_checkpoint(work_dir, checkpoint, self._normalizer.export_aliases())
        except OSError as exc:
            raise self._fail(f"Cannot write checkpoint: {exc}", None, None) from exc
        self._transition(IndexerState.COMPLETE)

        result = self._result
        result.state = self._state
        result.games_indexed = checkpoint.games_indexed
        result.games_this_run = self._games_this_run
        result.malformed_lines = checkpoint.malformed_lines
        result.orphan_lines = checkpoint.orphan_lines
        result.date_range = checkpoint.date_range.model_copy()
        result.duration_seconds = round(time.perf_counter() - t0, 2)
        logger.info(
            "Indexing complete: %d games (%d this run) in %d batches, %d files",
            result.games_indexed, result.games_this_run,
            checkpoint.batches_written, result.files_total,
        )
        return result

    # --- Per file ---

    def _index_file(self, entry: ScanEntry, progress: FileProgress | None) -> None:
        checkpoint = self._checkpoint
        assert checkpoint is not None and self._result is not None
        set_stage_context(IndexerState.INDEXING.value, entry.source)

        if progress is None:
            progress = FileProgress(fingerprint=entry.fingerprint, size=entry.size_bytes)
        # Working copy; the persisted one only advances at spill time.
        current = progress.model_copy()
        checkpoint.files[entry.source] = current
        logger.info(
            "Indexing %s from byte %d (%d bytes)", entry.source, current.offset, entry.size_bytes,
        )

        stats = ParseStats()
        flushed = ParseStats()
        games_in_file = 0
        position = current.offset
        try:
            for record in iter_games(
                entry.path,
                start_offset=current.offset,
                stats=stats,
                source=entry.source,
                start_line=current.line,
            ):
                game = decorate(record, self._normalizer, self._settings.game_id_length)
                self._accumulator.process(game)
                self._pending_range.observe(record.date)
                self._games_this_run += 1
                games_in_file += 1
                position = record.end_offset

                current.offset = record.end_offset
                current.line = record.end_line
                current.games += 1

                if games_in_file % PROGRESS_EVERY == 0:
                    logger.debug(
                        "%s: %d games, byte %d/%d",
                        entry.source, games_in_file, position, entry.size_bytes,
                    )

                if self._accumulator.is_full(self._settings.batch_size):
                    self._add_parse_counts(stats, flushed)
                    self._transition(IndexerState.SPILLING)
                    self._spill()
                    self._transition(IndexerState.INDEXING)
        except OSError as exc:
            raise self._fail(
                f"I/O error while indexing {entry.source}: {exc}", entry.source, position,
            ) from exc

        current.offset = entry.size_bytes
        current.completed = True
        self._add_parse_counts(stats, flushed)
        self._result.files_processed += 1
        logger.info("Finished %s: %d games this run", entry.source, games_in_file)

    def _add_parse_counts(self, stats: ParseStats, flushed: ParseStats) -> None:
        """Move parse counters accumulated since the last call into the checkpoint."""
        checkpoint = self._checkpoint
        assert checkpoint is not None
        checkpoint.malformed_lines += stats.malformed_lines - flushed.malformed_lines
        checkpoint.orphan_lines += stats.orphan_lines - flushed.orphan_lines
        flushed.malformed_lines = stats.malformed_lines
        flushed.orphan_lines = stats.orphan_lines

    # --- Spill ---

    def _spill(self) -> None:
        checkpoint = self._checkpoint
        assert checkpoint is not None and self._result is not None
        sequence = checkpoint.next_sequence
        set_batch_context(sequence)

        batch = self._accumulator.freeze(sequence)
        try:
            write_batch(self._settings.work_dir, batch)
            checkpoint.next_sequence = sequence + 1
            checkpoint.games_indexed += batch.game_count
            checkpoint.date_range.merge(self._pending_range)
            ckpt.save_checkpoint(
                self._settings.work_dir, checkpoint, self._normalizer.export_aliases(),
            )
        except OSError as exc:
            source = self._current_source()
            raise self._fail(f"Cannot write batch {sequence}: {exc}", source, None) from exc

        self._result.batch_sequences.append(sequence)
        self._result.batch_game_counts.append(batch.game_count)
        self._result.batches_written += 1
        logger.info(
            "Spilled batch %d: %d games, %d players (total %d games)",
            sequence, batch.game_count, batch.key_count(PLAYERS), checkpoint.games_indexed,
        )
        self._accumulator = IndexAccumulator()
        self._pending_range = DateRange()
        set_batch_context(None)

    # --- Failure ---

    def _current_source(self) -> str | None:
        checkpoint = self._checkpoint
        if checkpoint is None:
            return None
        for source, progress in reversed(list(checkpoint.files.items())):
            if not progress.completed:
                return source
        return None

    def _fail(self, message: str, source: str | None, offset: int | None) -> IndexingError:
        """Enter FAILED and build the error describing progress so far."""
        if IndexerState.FAILED in TRANSITIONS[self._state]:
            self._transition(IndexerState.FAILED)
        if self._result is not None:
            self._result.state = self._state
        checkpoint = self._checkpoint
        batches = self._result.batches_written if self._result is not None else 0
        logger.error(
            "Indexing failed: %s (%d games processed, %d batches written)",
            message, self._games_this_run, batches,
        )
        return IndexingError(
            message,
            source_file=source,
            offset=offset,
            games_processed=self._games_this_run,
            batches_written=checkpoint.batches_written if checkpoint is not None else batches,
        )


def run_indexer(settings: Settings, resume: bool | None = None) -> IndexRunResult:
    """Convenience wrapper: build a BatchIndexer from settings and run it."""
    return BatchIndexer(settings).run(resume=resume)
