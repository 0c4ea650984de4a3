# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for corpus/work/output directories, batch and merge
tuning, aggregation thresholds and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === DIRECTORIES ===
    corpus_dir: Path = Path("./pgn-files")
    work_dir: Path = Path("./indexes/temp")
    output_dir: Path = Path("./indexes")

    # === Corpus scan ===
    pgn_extensions: str = ".pgn"
    scan_recursive: bool = True

    # === Indexing ===
    batch_size: int = 50_000
    resume_enabled: bool = True
    game_id_length: int = 16

    # === Merge ===
    merge_fan_in: int = 64
    merge_dedup_refs: bool = True
    keep_batches: bool = False

    # === Aggregation ===
    min_tournament_games: int = 10
    notable_victory_rating: int = 2700
    alias_file: Path | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("batch_size must be > 0")
        return v

    @field_validator("merge_fan_in")
    @classmethod
    def validate_merge_fan_in(cls, v: int) -> int:  # noqa: N805
        """At least two streams are needed for a merge round to make progress."""
        if v < 2:
            raise ValueError("merge_fan_in must be >= 2")
        return v

    @field_validator("game_id_length")
    @classmethod
    def validate_game_id_length(cls, v: int) -> int:  # noqa: N805
        if not 12 <= v <= 64:
            raise ValueError("game_id_length must be between 12 and 64")
        return v

    @field_validator("min_tournament_games")
    @classmethod
    def validate_min_tournament_games(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("min_tournament_games must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.work_dir.expanduser().resolve() == self.output_dir.expanduser().resolve():
            errors.append("WORK_DIR and OUTPUT_DIR must be different directories")

        if not self.pgn_extensions_list:
            errors.append("PGN_EXTENSIONS must list at least one suffix")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def pgn_extensions_list(self) -> list[str]:
        """Parse comma-separated suffixes, lower-cased and dot-prefixed."""
        suffixes = []
        for raw in self.pgn_extensions.split(","):
            ext = raw.strip().lower()
            if not ext:
                continue
            suffixes.append(ext if ext.startswith(".") else f".{ext}")
        return suffixes


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
