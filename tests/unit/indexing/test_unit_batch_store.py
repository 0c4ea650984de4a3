# tests/unit/indexing/test_unit_batch_store.py — v1
"""Tests for indexing/batch_store.py — versioned JSON Lines batch files."""

from __future__ import annotations

import json

import pytest

from chessindex.core.models import GameRecord
from chessindex.indexing.accumulator import IndexAccumulator
from chessindex.indexing.batch_store import (
    BatchFormatError,
    batch_sequences,
    delete_batches,
    discover_batches,
    iter_batch_entries,
    read_batch_header,
    write_batch,
)
from chessindex.indexing.decorate import decorate
from chessindex.indexing.models import ALL_INDEX_TYPES, GAME_IDS, PLAYERS, IndexBatch
from chessindex.normalize.name_normalizer import NameNormalizer
from chessindex.storage import layout


def _batch(sequence: int = 1) -> IndexBatch:
    normalizer = NameNormalizer()
    acc = IndexAccumulator()
    for offset, (white, black) in enumerate(
        [("Tal, Mikhail", "Botvinnik, Mikhail"), ("Anand, V.", "Carlsen, Magnus")]
    ):
        record = GameRecord(
            event="Test", date="2000.01.01", white=white, black=black,
            result="1/2-1/2", source="t.pgn", offset=offset * 100, line=offset * 10 + 1,
        )
        acc.process(decorate(record, normalizer))
    return acc.freeze(sequence)


class TestWriteBatch:
    def test_one_file_per_index_type(self, tmp_path):
        paths = write_batch(tmp_path, _batch(3))
        assert [p.name for p in paths] == [
            layout.batch_file_name(index_type, 3) for index_type in ALL_INDEX_TYPES
        ]
        assert all(p.exists() for p in paths)
        assert not list(layout.batches_dir(tmp_path).glob("*.tmp"))

    def test_header(self, tmp_path):
        write_batch(tmp_path, _batch(3))
        path = layout.batch_path(tmp_path, PLAYERS, 3)
        raw = json.loads(path.read_text(encoding="utf-8").splitlines()[0])
        assert raw["schema"] == "chessindex.batch"
        assert raw["version"] == 1
        header = read_batch_header(path)
        assert header.index_type == PLAYERS
        assert header.sequence == 3
        assert header.game_count == 2
        assert header.key_count == 4

    def test_entries_sorted_with_rows(self, tmp_path):
        write_batch(tmp_path, _batch())
        entries = list(iter_batch_entries(layout.batch_path(tmp_path, PLAYERS, 1)))
        keys = [key for key, _ in entries]
        assert keys == sorted(keys)
        tal = dict(entries)["Tal, Mikhail"]
        assert len(tal) == 1
        assert tal[0][:3] == ["t.pgn", 0, 1]

    def test_game_ids_store_meta_lists(self, tmp_path):
        write_batch(tmp_path, _batch())
        entries = list(iter_batch_entries(layout.batch_path(tmp_path, GAME_IDS, 1)))
        assert len(entries) == 2
        for _, metas in entries:
            assert isinstance(metas, list)
            assert metas[0]["source"] == "t.pgn"


class TestReadErrors:
    def test_empty_file(self, tmp_path):
        path = tmp_path / "players-batch-000001.jsonl"
        path.write_text("", encoding="utf-8")
        with pytest.raises(BatchFormatError, match="Empty"):
            read_batch_header(path)

    def test_unknown_version(self, tmp_path):
        write_batch(tmp_path, _batch())
        path = layout.batch_path(tmp_path, PLAYERS, 1)
        lines = path.read_text(encoding="utf-8").splitlines()
        header = json.loads(lines[0])
        header["version"] = 99
        path.write_text("\n".join([json.dumps(header), *lines[1:]]), encoding="utf-8")
        with pytest.raises(BatchFormatError, match="Unsupported"):
            list(iter_batch_entries(path))

    def test_garbage_header(self, tmp_path):
        path = tmp_path / "x.jsonl"
        path.write_text('{"nope": 1}\n', encoding="utf-8")
        with pytest.raises(BatchFormatError, match="Unreadable"):
            read_batch_header(path)

    def test_corrupt_entry(self, tmp_path):
        write_batch(tmp_path, _batch())
        path = layout.batch_path(tmp_path, PLAYERS, 1)
        with path.open("a", encoding="utf-8") as handle:
            handle.write('{"key": "trunc')
        with pytest.raises(BatchFormatError, match="Corrupt"):
            list(iter_batch_entries(path))


class TestDiscovery:
    def test_discover_orders_by_sequence(self, tmp_path):
        for sequence in (10, 2, 1):
            write_batch(tmp_path, _batch(sequence))
        found = discover_batches(tmp_path, PLAYERS)
        assert [layout.parse_batch_name(p.name)[1] for p in found] == [1, 2, 10]
        assert batch_sequences(tmp_path) == [1, 2, 10]

    def test_discover_missing_dir(self, tmp_path):
        assert discover_batches(tmp_path, PLAYERS) == []
        assert batch_sequences(tmp_path) == []

    def test_delete_from_sequence(self, tmp_path):
        for sequence in (1, 2, 3):
            write_batch(tmp_path, _batch(sequence))
        (layout.batches_dir(tmp_path) / ".players-batch-000004.jsonl.tmp").write_text("x")
        removed = delete_batches(tmp_path, min_sequence=2)
        assert removed == 2 * len(ALL_INDEX_TYPES)
        assert batch_sequences(tmp_path) == [1]
        assert not list(layout.batches_dir(tmp_path).glob("*.tmp"))
