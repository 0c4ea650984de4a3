# src/indexing/checkpoint.py — v1
"""Checkpoint persistence for resumable indexing.

The checkpoint is only written right after a batch has been fully spilled,
so every FileProgress offset points at a record boundary whose preceding
games are all on disk. Write order per spill: batch files, alias snapshot,
checkpoint. Anything with a sequence >= next_sequence found on resume was
written after the last checkpoint and is stale.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from chessindex.batch.models import ScanEntry
from chessindex.indexing.batch_store import delete_batches
from chessindex.indexing.errors import ResumeInconsistencyError
from chessindex.indexing.models import CHECKPOINT_SCHEMA_VERSION, Checkpoint, FileProgress
from chessindex.storage import layout
from chessindex.storage.writer import write_json_atomic, write_model_atomic

logger = logging.getLogger(__name__)


def load_checkpoint(work_dir: Path) -> Checkpoint | None:
    """Load the checkpoint, or None when there is none.

    Raises:
        ResumeInconsistencyError: Unreadable file or unknown schema version.
    """
    path = layout.checkpoint_path(work_dir)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"Unreadable checkpoint {path}: {exc}"
        raise ResumeInconsistencyError(msg, source_file=str(path)) from exc

    version = data.get("schema_version") if isinstance(data, dict) else None
    if version != CHECKPOINT_SCHEMA_VERSION:
        msg = f"Unsupported checkpoint schema version {version!r} in {path}"
        raise ResumeInconsistencyError(msg, source_file=str(path))
    try:
        return Checkpoint.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid checkpoint {path}: {exc.error_count()} errors"
        raise ResumeInconsistencyError(msg, source_file=str(path)) from exc


def save_checkpoint(
    work_dir: Path,
    checkpoint: Checkpoint,
    aliases: dict[str, dict[str, int]] | None = None,
) -> None:
    """Persist the alias snapshot (if given) and then the checkpoint."""
    if aliases is not None:
        write_json_atomic(layout.alias_snapshot_path(work_dir), aliases, indent=None)
    write_model_atomic(layout.checkpoint_path(work_dir), checkpoint)


def load_alias_snapshot(work_dir: Path) -> dict[str, dict[str, int]]:
    path = layout.alias_snapshot_path(work_dir)
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


def verify_file(entry: ScanEntry, progress: FileProgress) -> None:
    """Ensure a corpus file is unchanged since its progress was recorded.

    Raises:
        ResumeInconsistencyError: Size or fingerprint differ.
    """
    if progress.size == entry.size_bytes and (
        not progress.fingerprint or progress.fingerprint == entry.fingerprint
    ):
        return
    msg = (
        f"Corpus file changed since checkpoint: {entry.source} "
        f"(size {progress.size} -> {entry.size_bytes})"
    )
    raise ResumeInconsistencyError(
        msg,
        source_file=entry.source,
        offset=progress.offset,
        games_processed=progress.games,
    )


def discard_stale_batches(work_dir: Path, checkpoint: Checkpoint) -> int:
    """Delete batches written after the checkpoint was last saved."""
    removed = delete_batches(work_dir, min_sequence=checkpoint.next_sequence)
    if removed:
        logger.warning(
            "Removed %d stale batch files (sequence >= %d)",
            removed, checkpoint.next_sequence,
        )
    return removed


def clear_work_dir(work_dir: Path) -> None:
    """Remove every indexing artifact from the work directory.

    Only files this package writes are touched.
    """
    removed = delete_batches(work_dir, min_sequence=0)
    runs = layout.merge_runs_dir(work_dir)
    if runs.is_dir():
        for path in runs.iterdir():
            if path.is_file():
                path.unlink()
    for path in (layout.checkpoint_path(work_dir), layout.alias_snapshot_path(work_dir)):
        path.unlink(missing_ok=True)
    if removed:
        logger.info("Cleared %d batch files from %s", removed, work_dir)
