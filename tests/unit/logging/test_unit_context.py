# tests/unit/logging/test_unit_context.py — v2
"""Tests for logging/context.py — contextual logging variables."""

from __future__ import annotations

from chessindex.logging.context import (
    clear_context,
    get_context,
    set_batch_context,
    set_run_context,
    set_stage_context,
)


class TestLogContext:
    def test_initial_state(self):
        ctx = get_context()
        assert ctx.run_id is None
        assert ctx.stage is None
        assert ctx.source_file is None
        assert ctx.batch is None

    def test_set_run_context(self):
        set_run_context("abc123")
        assert get_context().run_id == "abc123"

    def test_stage_resets_source_file(self):
        set_stage_context("indexing", "a.pgn")
        assert get_context().source_file == "a.pgn"
        set_stage_context("spilling")
        ctx = get_context()
        assert ctx.stage == "spilling"
        assert ctx.source_file is None

    def test_batch(self):
        set_batch_context(7)
        assert get_context().batch == 7
        set_batch_context(None)
        assert get_context().batch is None

    def test_as_dict_filters_none(self):
        set_run_context("run1")
        d = get_context().as_dict()
        assert d == {"run_id": "run1"}

    def test_clear(self):
        set_run_context("run1")
        set_stage_context("merging", "players")
        set_batch_context(2)
        clear_context()
        assert get_context().as_dict() == {}
