# src/logging/context.py — v2
"""Contextual logging support: attach run_id, stage, source file and batch to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per indexing/aggregation run.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)
_source_file: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source_file", default=None
)
_batch: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "batch", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    stage: str | None = None
    source_file: str | None = None
    batch: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        stage=_stage.get(),
        source_file=_source_file.get(),
        batch=_batch.get(),
    )


def set_run_context(run_id: str) -> None:
    """Set run-level context (called once per build or analysis run)."""
    _run_id.set(run_id)


def set_stage_context(stage: str, source_file: str | None = None) -> None:
    """Set stage-level context (scanning, indexing, merging, ...)."""
    _stage.set(stage)
    _source_file.set(source_file)


def set_batch_context(batch: int | None) -> None:
    """Set the sequence number of the batch currently being filled."""
    _batch.set(batch)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _stage.set(None)
    _source_file.set(None)
    _batch.set(None)
