# src/storage/writer.py — v1
"""Atomic JSON writers for local output.

Every writer goes through a sibling temp file followed by os.replace, so a
reader never observes a half-written document and a crash leaves the
previous version (or nothing) in place.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)


@contextmanager
def atomic_writer(path: Path) -> Iterator[IO[str]]:
    """Open a temp file next to ``path``; rename over it on clean exit."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        with tmp.open("w", encoding="utf-8", newline="\n") as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def write_json_atomic(path: Path, data: Any, indent: int | None = 2) -> None:
    """Serialize ``data`` as JSON and atomically replace ``path``."""
    with atomic_writer(path) as handle:
        json.dump(data, handle, indent=indent, ensure_ascii=False, default=str)
        handle.write("\n")


def write_model_atomic(path: Path, model: BaseModel) -> None:
    """Atomically write a Pydantic model as JSON."""
    with atomic_writer(path) as handle:
        handle.write(model.model_dump_json(indent=2))
        handle.write("\n")


class JsonObjectStreamWriter:
    """Stream a large JSON object key by key without building it in memory.

    Usage:
        with JsonObjectStreamWriter(path) as out:
            for key, value in items:
                out.write(key, value)
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.count = 0
        self._context: Any = None
        self._handle: IO[str] | None = None

    def __enter__(self) -> JsonObjectStreamWriter:
        self._context = atomic_writer(self.path)
        self._handle = self._context.__enter__()
        self._handle.write("{")
        return self

    def write(self, key: str, value: Any) -> None:
        if self._handle is None:
            msg = "JsonObjectStreamWriter used outside of a with-block"
            raise RuntimeError(msg)
        separator = ",\n" if self.count else "\n"
        self._handle.write(separator)
        self._handle.write(json.dumps(key, ensure_ascii=False))
        self._handle.write(": ")
        self._handle.write(json.dumps(value, ensure_ascii=False, separators=(",", ":")))
        self.count += 1

    def __exit__(self, exc_type, exc, tb) -> bool | None:
        if exc_type is None and self._handle is not None:
            self._handle.write("\n}\n" if self.count else "}\n")
        result = self._context.__exit__(exc_type, exc, tb)
        self._handle = None
        if exc_type is None:
            logger.debug("Wrote %d keys to %s", self.count, self.path)
        return result
