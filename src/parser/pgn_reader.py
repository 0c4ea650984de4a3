# src/parser/pgn_reader.py — v2
"""Streaming PGN reader with exact byte locators.

Files are read in binary, one line at a time, so memory use is bounded by
the size of a single game and every record knows the byte offset of its
first header line. Content problems never raise: malformed tag lines and
movetext with no header are counted in ParseStats and skipped.

Record boundaries:
    - a blank line ends the header block;
    - an ``[Event ...]`` line starts a new record when one is pending;
    - any other well-formed tag line that follows movetext also starts a
      new record (header block with a missing Event tag);
    - end of file flushes the pending record.

Once movetext has started, a ``[`` line that is not a well-formed tag is
kept as movetext, and so is any tag line other than ``[Event ...]`` inside
an open ``{`` comment.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from chessindex.core.models import GameRecord

logger = logging.getLogger(__name__)

# [Key "Value"], value may contain backslash-escaped quotes.
TAG_PATTERN = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\s*\]$')
_UNESCAPE = re.compile(r"\\(.)")


@dataclass
class ParseStats:
    """Counters accumulated while streaming one or more files."""

    records: int = 0
    malformed_lines: int = 0
    orphan_lines: int = 0
    bytes_read: int = 0

    def add(self, other: ParseStats) -> None:
        self.records += other.records
        self.malformed_lines += other.malformed_lines
        self.orphan_lines += other.orphan_lines
        self.bytes_read += other.bytes_read


@dataclass
class _Pending:
    """The record currently being accumulated."""

    offset: int
    line: int
    tags: dict[str, str] = field(default_factory=dict)
    moves: list[str] = field(default_factory=list)
    in_comment: bool = False

    def add_moves(self, text: str) -> None:
        self.moves.append(text)
        self.in_comment = _ends_in_comment(text, self.in_comment)

    def build(self, source: str, end_offset: int, end_line: int) -> GameRecord:
        return GameRecord.from_tags(
            self.tags,
            moves=" ".join(self.moves),
            source=source,
            offset=self.offset,
            end_offset=end_offset,
            line=self.line,
            end_line=end_line,
        )


def decode_line(raw: bytes) -> str:
    """Decode one corpus line: UTF-8 first, Latin-1 for legacy files."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def parse_tag_line(text: str) -> tuple[str, str] | None:
    """Return (key, value) for a well-formed tag line, else None."""
    match = TAG_PATTERN.match(text)
    if match is None:
        return None
    return match.group(1), _UNESCAPE.sub(r"\1", match.group(2))


def _ends_in_comment(text: str, in_comment: bool) -> bool:
    """Whether a ``{`` comment is still open after this movetext line."""
    for char in text:
        if in_comment:
            if char == "}":
                in_comment = False
        elif char == "{":
            in_comment = True
        elif char == ";":
            break
    return in_comment


def _iter_stream(
    handle: BinaryIO,
    source: str,
    start_offset: int,
    start_line: int,
    stats: ParseStats,
) -> Iterator[GameRecord]:
    offset = start_offset
    line_no = start_line - 1
    pending: _Pending | None = None

    for raw in handle:
        line_offset = offset
        offset += len(raw)
        line_no += 1
        stats.bytes_read += len(raw)

        text = decode_line(raw).lstrip("\ufeff").strip()
        if not text:
            continue

        if text.startswith("["):
            tag = parse_tag_line(text)
            if (
                pending is not None
                and pending.moves
                and (tag is None or (pending.in_comment and tag[0] != "Event"))
            ):
                # Wrapped comment or annotation inside movetext.
                pending.add_moves(text)
                continue
            if tag is None:
                stats.malformed_lines += 1
                continue
            key, value = tag
            if pending is not None and (key == "Event" or pending.moves):
                stats.records += 1
                yield pending.build(source, line_offset, line_no)
                pending = None
            if pending is None:
                pending = _Pending(offset=line_offset, line=line_no)
            pending.tags[key] = value
            continue

        # Movetext.
        if pending is None:
            stats.orphan_lines += 1
            continue
        pending.add_moves(text)

    if pending is not None:
        stats.records += 1
        yield pending.build(source, offset, line_no + 1)


def iter_games(
    path: Path,
    start_offset: int = 0,
    stats: ParseStats | None = None,
    source: str | None = None,
    start_line: int = 1,
) -> Iterator[GameRecord]:
    """Lazily yield every game in a PGN file.

    Args:
        path: PGN file to read.
        start_offset: Byte offset to start from (must be a record boundary).
        stats: Optional counters updated in place while streaming.
        source: Source identifier stored on each record (default: file name).
        start_line: 1-based line number of ``start_offset``.

    Yields:
        GameRecord values in file order.
    """
    stats = stats if stats is not None else ParseStats()
    source = source if source is not None else path.name
    with path.open("rb") as handle:
        if start_offset:
            handle.seek(start_offset)
        yield from _iter_stream(handle, source, start_offset, start_line, stats)
    logger.debug(
        "Finished %s: %d records, %d malformed lines, %d orphan lines",
        source, stats.records, stats.malformed_lines, stats.orphan_lines,
    )


def iter_files(
    paths: Iterable[Path],
    stats: ParseStats | None = None,
) -> Iterator[GameRecord]:
    """Stream several files one after another, in the order given."""
    for path in paths:
        yield from iter_games(path, stats=stats)


def read_game_at(
    path: Path,
    offset: int,
    source: str | None = None,
    line: int = 1,
) -> GameRecord | None:
    """Re-fetch the record that starts at a byte offset (a GameRef locator)."""
    games = iter_games(path, start_offset=offset, source=source, start_line=line)
    try:
        return next(games, None)
    finally:
        games.close()


def read_games_at(
    path: Path,
    offsets: Iterable[int],
    source: str | None = None,
) -> Iterator[GameRecord]:
    """Re-fetch several records from one file with a single open handle.

    Offsets are visited in ascending order; unknown offsets yield nothing.
    """
    source = source if source is not None else path.name
    with path.open("rb") as handle:
        for offset in sorted(set(offsets)):
            handle.seek(offset)
            stream = _iter_stream(handle, source, offset, 1, ParseStats())
            record = next(stream, None)
            stream.close()
            if record is not None:
                yield record
