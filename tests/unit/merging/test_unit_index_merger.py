# tests/unit/merging/test_unit_index_merger.py — v1
"""Tests for merging/index_merger.py — k-way merge, fan-in rounds, collisions."""

from __future__ import annotations

import shutil

import pytest

from chessindex.indexing.batch_indexer import BatchIndexer
from chessindex.indexing.batch_store import batch_sequences, discover_batches
from chessindex.indexing.models import ALL_INDEX_TYPES, GAME_IDS, PLAYERS, YEARS
from chessindex.merging.index_merger import (
    IndexMerger,
    MergeError,
    combine_metas,
    combine_refs,
)
from chessindex.storage import layout
from chessindex.storage.reader import load_aliases, load_index, load_manifest

PAIRINGS = [
    ("Fischer, Robert J.", "Spassky, Boris V."),
    ("Tal, Mikhail", "Botvinnik, Mikhail"),
    ("Karpov, Anatoly", "Kasparov, Garry"),
    ("Spassky, Boris", "Bobby Fischer"),
    ("Botvinnik, Mikhail", "Tal, Mikhail"),
    ("Kasparov, Garry", "Karpov, Anatoly"),
    ("Anand, V.", "Carlsen, Magnus"),
]


@pytest.fixture
def indexed(settings, make_game, write_pgn):
    """Seven games over two files, indexed into three batches."""
    games = [
        make_game(white=w, black=b, round=str(i + 1), date=f"19{70 + i}.05.01", ECO="B33")
        for i, (w, b) in enumerate(PAIRINGS)
    ]
    write_pgn("a.pgn", games[:4])
    write_pgn("b.pgn", games[4:])
    BatchIndexer(settings).run()
    return settings


class TestCombineRefs:
    def test_concatenates_and_sorts(self):
        rows, dropped = combine_refs([
            [["b.pgn", 10, 3, "x"]],
            [["a.pgn", 50, 9, "y"], ["a.pgn", 5, 1, "z"]],
        ])
        assert [r[:2] for r in rows] == [["a.pgn", 5], ["a.pgn", 50], ["b.pgn", 10]]
        assert dropped == 0

    def test_drops_same_locator(self):
        rows, dropped = combine_refs([[["a.pgn", 5, 1, "x"]], [["a.pgn", 5, 1, "x"]]])
        assert len(rows) == 1
        assert dropped == 1

    def test_dedup_disabled(self):
        rows, dropped = combine_refs(
            [[["a.pgn", 5, 1, "x"]], [["a.pgn", 5, 1, "x"]]], dedup=False,
        )
        assert len(rows) == 2
        assert dropped == 0


class TestCombineMetas:
    def test_union_by_locator(self):
        metas, dropped = combine_metas([
            [{"source": "b.pgn", "offset": 0, "line": 1}],
            [{"source": "a.pgn", "offset": 7, "line": 2}, {"source": "b.pgn", "offset": 0, "line": 1}],
        ])
        assert [(m["source"], m["offset"]) for m in metas] == [("a.pgn", 7), ("b.pgn", 0)]
        assert dropped == 1


class TestMergeIndex:
    def test_players_merged(self, indexed):
        stats = IndexMerger(indexed).merge_index(PLAYERS)
        players = load_index(indexed.output_dir, PLAYERS)
        assert stats.batches == 3
        assert stats.keys == len(players)
        assert len(players["Fischer, Robert James"]) == 2
        assert len(players["Tal, Mikhail"]) == 2
        assert list(players) == sorted(players)

    def test_refs_sorted_by_locator(self, indexed):
        IndexMerger(indexed).merge_index(PLAYERS)
        refs = load_index(indexed.output_dir, PLAYERS)["Karpov, Anatoly"]
        assert [r["source"] for r in refs] == ["a.pgn", "b.pgn"]
        assert set(refs[0]) == {"source", "offset", "line", "game_id"}

    def test_batch_order_does_not_matter(self, indexed):
        merger = IndexMerger(indexed)
        paths = discover_batches(indexed.work_dir, YEARS)
        merger.merge_index(YEARS, paths)
        forward = layout.index_path(indexed.output_dir, YEARS).read_text(encoding="utf-8")
        merger.merge_index(YEARS, list(reversed(paths)))
        backward = layout.index_path(indexed.output_dir, YEARS).read_text(encoding="utf-8")
        assert forward == backward

    def test_fan_in_rounds(self, indexed):
        indexed.merge_fan_in = 2
        single = IndexMerger(indexed)
        stats = single.merge_index(PLAYERS)
        assert stats.rounds == 1
        layered = load_index(indexed.output_dir, PLAYERS)

        indexed.merge_fan_in = 64
        IndexMerger(indexed).merge_index(PLAYERS)
        assert load_index(indexed.output_dir, PLAYERS) == layered

        runs = layout.merge_runs_dir(indexed.work_dir)
        assert not runs.exists() or not any(runs.iterdir())

    def test_duplicate_batch_dropped(self, indexed):
        for index_type in ALL_INDEX_TYPES:
            shutil.copy(
                layout.batch_path(indexed.work_dir, index_type, 1),
                layout.batch_path(indexed.work_dir, index_type, 9),
            )
        merger = IndexMerger(indexed)
        stats = merger.merge_index(PLAYERS)
        assert stats.duplicates_dropped == 6
        assert len(load_index(indexed.output_dir, PLAYERS)["Fischer, Robert James"]) == 2

        ids = merger.merge_index(GAME_IDS)
        assert ids.duplicates_dropped == 3
        assert ids.collisions == 0
        assert ids.keys == 7

    def test_unknown_index_type(self, indexed):
        with pytest.raises(ValueError, match="Unknown index type"):
            IndexMerger(indexed).merge_index("ratings")

    def test_bad_header(self, indexed):
        layout.batch_path(indexed.work_dir, PLAYERS, 2).write_text("not json\n", encoding="utf-8")
        with pytest.raises(MergeError, match="players-batch"):
            IndexMerger(indexed).merge_index(PLAYERS)

    def test_no_batches(self, settings):
        stats = IndexMerger(settings).merge_index(PLAYERS)
        assert stats.keys == 0
        assert load_index(settings.output_dir, PLAYERS) == {}


class TestGameIdCollisions:
    def test_suffixes_for_distinct_locators(self, settings, make_game, write_pgn):
        write_pgn("a.pgn", [make_game()])
        write_pgn("b.pgn", [make_game()])
        BatchIndexer(settings).run()
        stats = IndexMerger(settings).merge_index(GAME_IDS)
        ids = load_index(settings.output_dir, GAME_IDS)
        assert stats.collisions == 1
        assert len(ids) == 2
        base = min(ids, key=len)
        assert set(ids) == {base, f"{base}-2"}
        assert ids[base]["source"] == "a.pgn"
        assert ids[f"{base}-2"]["source"] == "b.pgn"


class TestMergeAll:
    def test_writes_every_index_and_manifest(self, indexed):
        manifest = IndexMerger(indexed).merge_all()
        for index_type in ALL_INDEX_TYPES:
            assert layout.index_path(indexed.output_dir, index_type).exists()
        assert manifest.batch_sequences == [1, 2, 3]
        assert manifest.keys(GAME_IDS) == 7
        assert manifest.keys("missing") == 0
        assert load_manifest(indexed.output_dir).indexes[PLAYERS].keys == manifest.keys(PLAYERS)

    def test_exports_aliases(self, indexed):
        IndexMerger(indexed).merge_all()
        aliases = load_aliases(indexed.output_dir)
        assert aliases["Fischer, Robert James"]["Bobby Fischer"] == 1


class TestCleanup:
    def test_clears_work_dir(self, indexed):
        merger = IndexMerger(indexed)
        merger.merge_all()
        merger.cleanup()
        assert batch_sequences(indexed.work_dir) == []
        assert not layout.checkpoint_path(indexed.work_dir).exists()

    def test_keep_batches(self, indexed):
        indexed.keep_batches = True
        merger = IndexMerger(indexed)
        merger.merge_all()
        merger.cleanup()
        assert batch_sequences(indexed.work_dir) == [1, 2, 3]
        assert layout.checkpoint_path(indexed.work_dir).exists()
