# src/logging/logger.py — v3
"""Logger factory with JSON and text formatters.

Both formatters read the run/stage/file/batch context from
chessindex.logging.context, so call sites only pass a message.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from chessindex.logging.context import get_context

ROOT_LOGGER = "chessindex"


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context fields nested under "context"."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Terminal format: time, level, logger, then [stage] (file) #batch."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.stage:
            parts.append(f"[{ctx.stage}]")
        if ctx.source_file:
            parts.append(f"({ctx.source_file})")
        if ctx.batch is not None:
            parts.append(f"#{ctx.batch}")
        parts.append(f"- {record.getMessage()}")
        text = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


FORMATTERS: dict[str, type[logging.Formatter]] = {
    "json": JsonFormatter,
    "text": TextFormatter,
}


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the chessindex namespace. setup_logging() configures it."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """Configure the chessindex logger; calling it again replaces the handlers.

    Args:
        level: DEBUG, INFO, WARNING or ERROR; unknown names fall back to INFO.
        log_format: "json" or "text".
        log_file: Also write to this file with size-based rotation.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.

    Raises:
        ValueError: Unknown log_format.
    """
    try:
        formatter = FORMATTERS[log_format]()
    except KeyError:
        msg = f"Unknown log format {log_format!r}; expected one of {', '.join(FORMATTERS)}"
        raise ValueError(msg) from None

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from chessindex.logging.handlers import create_rotating_handler

        handlers.append(create_rotating_handler(log_file, rotation=rotation, retention=retention))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
