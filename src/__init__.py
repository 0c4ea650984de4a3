# src/__init__.py — v1
"""chessindex: PGN corpus indexing, external merge and player/tournament aggregates."""

from chessindex.version import __version__

__all__ = ["__version__"]
