# tests/unit/storage/test_unit_layout.py — v2
"""Tests for storage/layout.py — work and output directory paths."""

from __future__ import annotations

from pathlib import Path

import pytest

from chessindex.storage.layout import (
    alias_snapshot_path,
    batch_file_name,
    batch_path,
    checkpoint_path,
    index_path,
    manifest_path,
    merge_runs_dir,
    output_aliases_path,
    parse_batch_name,
    profile_path,
    slugify,
    stats_path,
    tournament_list_path,
    tournament_path,
)


class TestSlugify:
    @pytest.mark.parametrize(
        ("name", "slug"),
        [
            ("Fischer, Robert James", "fischer-robert-james"),
            ("Ljubojević, Ljubomir", "ljubojevic-ljubomir"),
            ("  Tata Steel Masters 2023 ", "tata-steel-masters-2023"),
            ("???", "unnamed"),
            ("", "unnamed"),
        ],
    )
    def test_slug(self, name, slug):
        assert slugify(name) == slug


class TestBatchNames:
    def test_file_name(self):
        assert batch_file_name("players", 7) == "players-batch-000007.jsonl"

    def test_parse(self):
        assert parse_batch_name("game_ids-batch-000012.jsonl") == ("game_ids", 12)
        assert parse_batch_name(batch_file_name("time_controls", 3)) == ("time_controls", 3)

    @pytest.mark.parametrize(
        "name",
        ["players-batch-1.json", ".players-batch-000001.jsonl.tmp", "players-round-01.jsonl", "x"],
    )
    def test_parse_rejects(self, name):
        assert parse_batch_name(name) is None


class TestPaths:
    def test_work_dir(self):
        work = Path("/data/indexes/temp")
        assert batch_path(work, "events", 2) == work / "batches" / "events-batch-000002.jsonl"
        assert checkpoint_path(work) == work / "checkpoint.json"
        assert alias_snapshot_path(work) == work / "aliases.json"
        assert merge_runs_dir(work) == work / "runs"

    def test_output_dir(self):
        out = Path("/data/indexes")
        assert index_path(out, "players") == out / "players.json"
        assert stats_path(out) == out / "index-stats.json"
        assert manifest_path(out) == out / "manifest.json"
        assert output_aliases_path(out) == out / "aliases.json"
        assert profile_path(out, "Tal, Mikhail") == out / "profiles" / "tal-mikhail.json"
        assert tournament_path(out, "Linares 1994") == out / "tournaments" / "linares-1994.json"
        assert tournament_list_path(out) == out / "tournaments" / "index.json"
