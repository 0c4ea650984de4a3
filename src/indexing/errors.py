# src/indexing/errors.py — v1
"""Indexing failures carrying enough context to report and resume."""

from __future__ import annotations


class IndexingError(Exception):
    """Unrecoverable I/O failure while reading the corpus or writing a batch."""

    def __init__(
        self,
        message: str,
        source_file: str | None = None,
        offset: int | None = None,
        games_processed: int = 0,
        batches_written: int = 0,
    ) -> None:
        super().__init__(message)
        self.source_file = source_file
        self.offset = offset
        self.games_processed = games_processed
        self.batches_written = batches_written

    def progress_summary(self) -> str:
        where = self.source_file or "-"
        if self.offset is not None:
            where = f"{where} @ byte {self.offset}"
        return (
            f"{self.games_processed} games processed, "
            f"{self.batches_written} batches written (last position: {where})"
        )


class ResumeInconsistencyError(IndexingError):
    """The checkpoint no longer matches the corpus or has an unknown schema."""


class InvalidTransitionError(Exception):
    """Illegal BatchIndexer state transition."""
