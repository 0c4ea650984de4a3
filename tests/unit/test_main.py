# tests/unit/test_main.py — v2
"""Tests for main.py — CLI entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from chessindex.indexing.errors import IndexingError
from chessindex.main import _build_parser, main


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """Run from an empty directory (no .env) and drop CLI log handlers afterwards."""
    monkeypatch.chdir(tmp_path)
    yield
    logging.getLogger("chessindex").handlers.clear()


@pytest.fixture
def dirs(corpus_dir, work_dir, output_dir) -> list[str]:
    return ["--corpus", str(corpus_dir), "--work-dir", str(work_dir), "--output", str(output_dir)]


@pytest.fixture
def corpus(make_game, write_pgn):
    write_pgn("games.pgn", [
        make_game(white="Fischer, Robert J.", black="Spassky, Boris V."),
        make_game(white="Spassky, Boris", black="Bobby Fischer", result="0-1", round="2"),
    ])


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------

class TestBuildParser:
    def test_version_flag(self):
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_global_dirs(self):
        args = _build_parser().parse_args(["--corpus", "/pgn", "--output", "/out", "stats"])
        assert args.corpus == Path("/pgn")
        assert args.output == Path("/out")
        assert args.work_dir is None

    def test_build_options(self):
        args = _build_parser().parse_args(["build", "--no-resume", "--batch-size", "500"])
        assert args.command == "build"
        assert args.no_resume is True
        assert args.batch_size == 500

    def test_query_defaults(self):
        args = _build_parser().parse_args(["query", "player", "Tal"])
        assert args.kind == "player"
        assert args.value == "Tal"
        assert args.limit == 20

    def test_query_rejects_kind(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["query", "rating", "2700"])


# ---------------------------------------------------------------------------
# Command tests
# ---------------------------------------------------------------------------

class TestMain:
    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_build_query_stats(self, dirs, corpus, output_dir, capsys):
        assert main([*dirs, "build"]) == 0
        out = capsys.readouterr().out
        assert "Build complete" in out
        assert "Statistics for 2 games" in out
        assert (output_dir / "players.json").exists()

        assert main([*dirs, "query", "player", "Bobby Fischer"]) == 0
        out = capsys.readouterr().out
        assert "* Fischer, Robert James (2 games)" in out
        assert "2 games for player 'Bobby Fischer'" in out

        assert main([*dirs, "stats"]) == 0
        assert "Players:      2" in capsys.readouterr().out

    def test_profile_and_tournaments(self, dirs, corpus, capsys):
        assert main([*dirs, "profile", "Fischer"]) == 0
        out = capsys.readouterr().out
        assert "Profile: Fischer, Robert James" in out
        assert "W/D/L:        2/0/0" in out

        assert main([*dirs, "tournaments", "--min-games", "1"]) == 0
        assert "World Championship: 2 games, winner Fischer, Robert James" in capsys.readouterr().out

    def test_build_missing_corpus(self, tmp_path, work_dir, output_dir):
        argv = ["--corpus", str(tmp_path / "nope"), "--work-dir", str(work_dir),
                "--output", str(output_dir), "build"]
        assert main(argv) == 1

    def test_stats_before_build(self, dirs):
        assert main([*dirs, "stats"]) == 1

    def test_invalid_batch_size(self, dirs, corpus):
        assert main([*dirs, "build", "--batch-size", "0"]) == 1

    def test_keyboard_interrupt(self, dirs, corpus):
        with patch("chessindex.api.facade.build_index", side_effect=KeyboardInterrupt):
            assert main([*dirs, "build"]) == 130

    def test_indexing_error(self, dirs, corpus, caplog):
        error = IndexingError("disk full", source_file="games.pgn", games_processed=7, batches_written=2)
        with patch("chessindex.api.facade.build_index", side_effect=error):
            with caplog.at_level(logging.ERROR, logger="chessindex.main"):
                assert main([*dirs, "build"]) == 1
        assert "7 games processed, 2 batches written" in caplog.text
