# src/indexing/fingerprint.py — v1
"""Deterministic game and file fingerprints.

GameId is SHA-256 over the canonical white and black identities, the raw
date and the whitespace-collapsed event, truncated to a configurable number
of hex characters. It is a best-effort dedup key: equal ids for different
locators are resolved by the merger with numeric suffixes.

File fingerprints (size + first 64 KiB) detect corpus files that changed
between an interrupted run and its resume.
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

DEFAULT_GAME_ID_LENGTH = 16
FILE_SAMPLE_BYTES = 64 * 1024

_SPACES = re.compile(r"\s+")
_FIELD_SEPARATOR = "\x1f"


def collapse_spaces(text: str | None) -> str:
    if not text:
        return ""
    return _SPACES.sub(" ", text).strip()


def compute_game_id(
    white: str | None,
    black: str | None,
    date: str | None,
    event: str | None,
    length: int = DEFAULT_GAME_ID_LENGTH,
) -> str:
    """Fingerprint a game from its pairing, date and event."""
    payload = _FIELD_SEPARATOR.join(
        (white or "", black or "", date or "", collapse_spaces(event))
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:length]


def file_fingerprint(path: Path, sample_bytes: int = FILE_SAMPLE_BYTES) -> str:
    """SHA-256 of the file size and its first ``sample_bytes`` bytes."""
    digest = hashlib.sha256()
    digest.update(str(path.stat().st_size).encode("ascii"))
    with path.open("rb") as handle:
        digest.update(handle.read(sample_bytes))
    return digest.hexdigest()
