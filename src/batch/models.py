# src/batch/models.py — v2
"""Corpus scan models: ScanEntry, ScanResult."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class ScanEntry(BaseModel):
    """A single PGN file discovered during a corpus scan."""

    file_path: str
    source: str  # path relative to the corpus root, POSIX separators
    size_bytes: int
    fingerprint: str = ""

    @property
    def path(self) -> Path:
        return Path(self.file_path)


class ScanResult(BaseModel):
    """Summary of one corpus scan."""

    scan_root: str
    entries: list[ScanEntry] = Field(default_factory=list)
    total_bytes: int = 0

    @property
    def total_files(self) -> int:
        return len(self.entries)
