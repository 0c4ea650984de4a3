# src/storage/layout.py — v2
"""On-disk directory structure.

Working directory ({work_dir}/):
    batches/<index>-batch-<seq:06d>.jsonl   spilled IndexBatch files
    runs/                                   intermediate merge run files
    checkpoint.json                         resume state
    aliases.json                            observed-alias snapshot

Output directory ({output_dir}/):
    <index>.json                            merged indices
    index-stats.json                        corpus statistics
    manifest.json                           merge manifest
    aliases.json                            observed aliases of the last build
    profiles/<slug>.json                    player profiles
    tournaments/<slug>.json                 tournament records
    tournaments/index.json                  tournament summary list
"""

from __future__ import annotations

import re
import unicodedata
from pathlib import Path

# Working directory
BATCHES_DIR = "batches"
MERGE_RUNS_DIR = "runs"
CHECKPOINT_FILE = "checkpoint.json"
ALIAS_SNAPSHOT_FILE = "aliases.json"

# Output directory
STATS_FILE = "index-stats.json"
MANIFEST_FILE = "manifest.json"
PROFILES_DIR = "profiles"
TOURNAMENTS_DIR = "tournaments"
TOURNAMENT_LIST_FILE = "index.json"

BATCH_SUFFIX = ".jsonl"
_BATCH_NAME = re.compile(r"^(?P<index>[a-z_]+)-batch-(?P<seq>\d+)\.jsonl$")


def slugify(name: str) -> str:
    """File-system safe slug: "Fischer, Robert James" -> "fischer-robert-james"."""
    ascii_name = (
        unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name.lower()).strip("-")
    return slug or "unnamed"


# --- Working directory ---

def batches_dir(work_dir: Path) -> Path:
    return work_dir / BATCHES_DIR


def merge_runs_dir(work_dir: Path) -> Path:
    return work_dir / MERGE_RUNS_DIR


def batch_file_name(index_type: str, sequence: int) -> str:
    return f"{index_type}-batch-{sequence:06d}{BATCH_SUFFIX}"


def batch_path(work_dir: Path, index_type: str, sequence: int) -> Path:
    return batches_dir(work_dir) / batch_file_name(index_type, sequence)


def parse_batch_name(filename: str) -> tuple[str, int] | None:
    """Return (index_type, sequence) for a batch file name, else None."""
    match = _BATCH_NAME.match(filename)
    if match is None:
        return None
    return match.group("index"), int(match.group("seq"))


def checkpoint_path(work_dir: Path) -> Path:
    return work_dir / CHECKPOINT_FILE


def alias_snapshot_path(work_dir: Path) -> Path:
    return work_dir / ALIAS_SNAPSHOT_FILE


# --- Output directory ---

def index_path(output_dir: Path, index_type: str) -> Path:
    return output_dir / f"{index_type}.json"


def stats_path(output_dir: Path) -> Path:
    return output_dir / STATS_FILE


def manifest_path(output_dir: Path) -> Path:
    return output_dir / MANIFEST_FILE


def profiles_dir(output_dir: Path) -> Path:
    return output_dir / PROFILES_DIR


def profile_path(output_dir: Path, canonical: str) -> Path:
    return profiles_dir(output_dir) / f"{slugify(canonical)}.json"


def tournaments_dir(output_dir: Path) -> Path:
    return output_dir / TOURNAMENTS_DIR


def tournament_path(output_dir: Path, name: str) -> Path:
    return tournaments_dir(output_dir) / f"{slugify(name)}.json"


def tournament_list_path(output_dir: Path) -> Path:
    return tournaments_dir(output_dir) / TOURNAMENT_LIST_FILE


def output_aliases_path(output_dir: Path) -> Path:
    return output_dir / ALIAS_SNAPSHOT_FILE
