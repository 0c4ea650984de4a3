# src/batch/scanner.py — v2
"""Corpus scanner — stable, sorted discovery of PGN files.

Files are listed in sorted order of their corpus-relative path so that
batch sequence numbers and checkpoints are reproducible across runs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from chessindex.batch.models import ScanEntry, ScanResult
from chessindex.indexing.fingerprint import file_fingerprint

if TYPE_CHECKING:
    from chessindex.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".pgn",)


class BatchScanner:
    """Scan a corpus directory for PGN files.

    Workflow:
        1. List files matching the configured suffixes (recursive if enabled)
        2. Sort by corpus-relative path
        3. Fingerprint each file (size + leading bytes) for resume checks
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings

    def scan(
        self,
        scan_root: Path | None = None,
        recursive: bool | None = None,
        extensions: list[str] | None = None,
        fingerprint: bool = True,
    ) -> ScanResult:
        """Discover all PGN files under ``scan_root``.

        Args:
            scan_root: Corpus root. Defaults to settings.corpus_dir.
            recursive: Descend into sub-directories. Defaults to settings.
            extensions: Suffixes to include. Defaults to settings.
            fingerprint: Compute a file fingerprint for each entry.

        Returns:
            ScanResult with entries sorted by relative path.

        Raises:
            ValueError: If the scan root is not a directory.
        """
        settings = self._settings
        if scan_root is None:
            if settings is None:
                msg = "scan_root is required when no settings are given"
                raise ValueError(msg)
            scan_root = settings.corpus_dir
        if recursive is None:
            recursive = settings.scan_recursive if settings else True
        if extensions is None:
            extensions = settings.pgn_extensions_list if settings else list(DEFAULT_EXTENSIONS)
        allowed = {ext.lower() for ext in extensions}

        if not scan_root.is_dir():
            msg = f"Scan root is not a directory: {scan_root}"
            raise ValueError(msg)

        pattern_fn = scan_root.rglob if recursive else scan_root.glob
        candidates: list[tuple[str, Path]] = []
        for path in pattern_fn("*"):
            if not path.is_file() or path.suffix.lower() not in allowed:
                continue
            candidates.append((path.relative_to(scan_root).as_posix(), path))

        result = ScanResult(scan_root=str(scan_root))
        for source, path in sorted(candidates):
            size = path.stat().st_size
            result.entries.append(
                ScanEntry(
                    file_path=str(path.resolve()),
                    source=source,
                    size_bytes=size,
                    fingerprint=file_fingerprint(path) if fingerprint else "",
                )
            )
            result.total_bytes += size

        logger.info(
            "Scanned %s: found %d PGN files, %d bytes (recursive=%s)",
            scan_root, result.total_files, result.total_bytes, recursive,
        )
        return result
