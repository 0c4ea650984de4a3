# src/indexing/batch_store.py — v1
"""Batch files on disk: JSON Lines, one file per index type per batch.

Layout of ``<index>-batch-<seq:06d>.jsonl``:
    line 1      BatchHeader (schema, version, index_type, sequence, counts)
    line 2..n   {"key": ..., "value": ...} in ascending key order

List indices store GameRefs as compact rows [source, offset, line, game_id];
the game-id index stores a list of GameMeta documents per id. Sorted keys
let the merger stream every batch in a single k-way pass.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chessindex.indexing.models import (
    ALL_INDEX_TYPES,
    BATCH_SCHEMA,
    BATCH_SCHEMA_VERSION,
    GAME_IDS,
    BatchHeader,
    IndexBatch,
)
from chessindex.storage import layout
from chessindex.storage.writer import atomic_writer

logger = logging.getLogger(__name__)


class BatchFormatError(ValueError):
    """A batch file is truncated, unreadable or of an unknown schema."""


def write_entries(
    path: Path,
    header: BatchHeader,
    entries: Iterable[tuple[str, Any]],
) -> int:
    """Atomically write a header line followed by pre-sorted key/value lines."""
    written = 0
    with atomic_writer(path) as handle:
        handle.write(header.model_dump_json(by_alias=True))
        handle.write("\n")
        for key, value in entries:
            handle.write(
                json.dumps({"key": key, "value": value}, ensure_ascii=False, separators=(",", ":"))
            )
            handle.write("\n")
            written += 1
    return written


def _batch_entries(batch: IndexBatch, index_type: str) -> Iterator[tuple[str, Any]]:
    if index_type == GAME_IDS:
        for key in sorted(batch.game_ids):
            yield key, [meta.model_dump(mode="json") for meta in batch.game_ids[key]]
        return
    keys = batch.lists[index_type]
    for key in sorted(keys):
        yield key, [ref.as_row() for ref in keys[key]]


def write_batch(work_dir: Path, batch: IndexBatch) -> list[Path]:
    """Persist every index type of a frozen batch. Returns the written paths."""
    paths: list[Path] = []
    for index_type in ALL_INDEX_TYPES:
        path = layout.batch_path(work_dir, index_type, batch.sequence)
        header = BatchHeader(
            index_type=index_type,
            sequence=batch.sequence,
            game_count=batch.game_count,
            key_count=batch.key_count(index_type),
        )
        write_entries(path, header, _batch_entries(batch, index_type))
        paths.append(path)
    logger.debug("Wrote batch %d (%d files)", batch.sequence, len(paths))
    return paths


def _parse_header(line: str, path: Path) -> BatchHeader:
    try:
        header = BatchHeader.model_validate_json(line)
    except ValidationError as exc:
        msg = f"Unreadable batch header in {path}: {exc.error_count()} errors"
        raise BatchFormatError(msg) from exc
    if header.schema_name != BATCH_SCHEMA or header.version != BATCH_SCHEMA_VERSION:
        msg = (
            f"Unsupported batch schema {header.schema_name!r} v{header.version} "
            f"in {path}"
        )
        raise BatchFormatError(msg)
    return header


def read_batch_header(path: Path) -> BatchHeader:
    with path.open("r", encoding="utf-8") as handle:
        first = handle.readline()
    if not first.strip():
        msg = f"Empty batch file: {path}"
        raise BatchFormatError(msg)
    return _parse_header(first, path)


def iter_batch_entries(path: Path) -> Iterator[tuple[str, Any]]:
    """Stream (key, value) pairs of a batch file, header excluded."""
    with path.open("r", encoding="utf-8") as handle:
        first = handle.readline()
        if not first.strip():
            msg = f"Empty batch file: {path}"
            raise BatchFormatError(msg)
        _parse_header(first, path)
        for line_no, line in enumerate(handle, start=2):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
                yield entry["key"], entry["value"]
            except (json.JSONDecodeError, KeyError, TypeError) as exc:
                msg = f"Corrupt entry at {path}:{line_no}"
                raise BatchFormatError(msg) from exc


def discover_batches(work_dir: Path, index_type: str) -> list[Path]:
    """Batch files of one index type, ordered by sequence number."""
    directory = layout.batches_dir(work_dir)
    if not directory.is_dir():
        return []
    found: list[tuple[int, Path]] = []
    for path in directory.iterdir():
        parsed = layout.parse_batch_name(path.name)
        if parsed is None or parsed[0] != index_type:
            continue
        found.append((parsed[1], path))
    return [path for _, path in sorted(found)]


def batch_sequences(work_dir: Path) -> list[int]:
    """Every sequence number present in the batch directory, ascending."""
    directory = layout.batches_dir(work_dir)
    if not directory.is_dir():
        return []
    sequences = set()
    for path in directory.iterdir():
        parsed = layout.parse_batch_name(path.name)
        if parsed is not None:
            sequences.add(parsed[1])
    return sorted(sequences)


def delete_batches(work_dir: Path, min_sequence: int = 0) -> int:
    """Remove batch files with sequence >= ``min_sequence``; returns the count."""
    directory = layout.batches_dir(work_dir)
    if not directory.is_dir():
        return 0
    removed = 0
    for path in directory.iterdir():
        parsed = layout.parse_batch_name(path.name)
        if parsed is not None and parsed[1] >= min_sequence:
            path.unlink()
            removed += 1
        elif path.name.endswith(".tmp"):
            path.unlink()
    return removed
