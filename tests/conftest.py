# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides PGN text builders, temp corpus/work/output directories and a
Settings instance pointing at them. No .env file is read.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from chessindex.config.settings import Settings
from chessindex.logging.context import clear_context

DEFAULT_MOVES = "1. e4 e5 2. Nf3 Nc6 3. Bb5 a6"


def pgn_game(
    white: str | None = "Fischer, Robert James",
    black: str | None = "Spassky, Boris V.",
    result: str | None = "1-0",
    event: str | None = "World Championship",
    date: str | None = "1972.07.11",
    site: str | None = "Reykjavik ISL",
    round: str | None = "1",
    moves: str = DEFAULT_MOVES,
    **extra: str | int,
) -> str:
    """One PGN game as text: seven-tag roster, extra tags, blank line, movetext."""
    tags: list[tuple[str, object]] = [
        ("Event", event),
        ("Site", site),
        ("Date", date),
        ("Round", round),
        ("White", white),
        ("Black", black),
        ("Result", result),
    ]
    tags.extend(extra.items())
    lines = [f'[{key} "{value}"]' for key, value in tags if value is not None]
    movetext = f"{moves} {result}" if result else moves
    return "\n".join(lines) + "\n\n" + movetext.strip() + "\n\n"


@pytest.fixture
def make_game() -> Callable[..., str]:
    """Factory fixture: make_game(white=..., black=..., ...) -> PGN text."""
    return pgn_game


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    path = tmp_path / "pgn-files"
    path.mkdir()
    return path


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    return tmp_path / "indexes" / "temp"


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "indexes"


@pytest.fixture
def write_pgn(corpus_dir: Path) -> Callable[[str, list[str]], Path]:
    """Factory fixture: write_pgn("name.pgn", [game_text, ...]) -> path."""

    def _write(name: str, games: list[str]) -> Path:
        path = corpus_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(games), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings(corpus_dir: Path, work_dir: Path, output_dir: Path) -> Settings:
    """Settings isolated from any .env, with a small batch size."""
    return Settings(
        _env_file=None,
        corpus_dir=corpus_dir,
        work_dir=work_dir,
        output_dir=output_dir,
        batch_size=3,
        min_tournament_games=1,
    )


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
