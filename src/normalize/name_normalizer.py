# src/normalize/name_normalizer.py — v1
"""Player-name normalization to canonical "Last, First" identities.

Pipeline for one raw name:
    1. strip title prefixes (GM, IM, FM, WGM, ...), trailing [CCC] country
       codes and (2700) rating annotations, collapse whitespace and comma
       spacing; repeated until stable;
    2. exact lookup in the alias table on a punctuation-insensitive key;
    3. single token: unique match on a canonical last name;
    4. no comma: "First Last" -> "Last, First" (looked up again);
    5. otherwise the cleaned name itself.

normalize() is idempotent. record_alias() only keeps occurrence counts; it
never changes what normalize() returns.
"""

from __future__ import annotations

import json
import logging
import re
from collections import defaultdict
from collections.abc import Iterable, Mapping
from pathlib import Path

from chessindex.core.models import CanonicalIdentity
from chessindex.normalize.aliases import DEFAULT_ALIASES

logger = logging.getLogger(__name__)

_TITLE = re.compile(r"^(GM|IM|FM|WGM|WIM|WFM|CM|WCM|NM)\s+", re.IGNORECASE)
_COUNTRY = re.compile(r"\s*\[[A-Z]{3}\]\s*$")
_RATING = re.compile(r"\s*\(\d{3,4}\)\s*$")
_SPACES = re.compile(r"\s+")
_COMMAS = re.compile(r"\s*,[\s,]*")
_LOOKUP_STRIP = re.compile(r"[,.\s\-]+")
_TOKEN_SPLIT = re.compile(r"[,\s]+")

_CACHE_LIMIT = 200_000


def lookup_key(name: str) -> str:
    """Case- and punctuation-insensitive key used for alias lookups."""
    return _LOOKUP_STRIP.sub("", name.lower())


def clean_name(name: str) -> str:
    """Strip titles and annotations; normalize whitespace and commas."""
    previous = None
    cleaned = name
    while cleaned != previous:
        previous = cleaned
        cleaned = _TITLE.sub("", cleaned)
        cleaned = _COUNTRY.sub("", cleaned)
        cleaned = _RATING.sub("", cleaned)
        cleaned = _SPACES.sub(" ", cleaned).strip()
        cleaned = _COMMAS.sub(", ", cleaned).strip(" ,")
    return cleaned


class NameNormalizer:
    """Map raw player names to canonical identities and count observed aliases."""

    def __init__(self, aliases: Mapping[str, Iterable[str]] | None = None) -> None:
        self._aliases: dict[str, set[str]] = {}
        self._lookup: dict[str, str] = {}
        self._last_names: dict[str, set[str]] = defaultdict(set)
        self._observed: dict[str, dict[str, int]] = defaultdict(dict)
        self._cache: dict[str, str] = {}
        self.add_aliases(DEFAULT_ALIASES)
        if aliases:
            self.add_aliases(aliases)

    @classmethod
    def from_file(cls, path: Path | None) -> NameNormalizer:
        """Build a normalizer with extra aliases from a JSON {canonical: [aliases]} file."""
        if path is None:
            return cls()
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            msg = f"Alias file must contain a JSON object: {path}"
            raise ValueError(msg)
        logger.info("Loaded %d canonical identities from %s", len(data), path)
        return cls(aliases=data)

    # --- Alias table ---

    def add_aliases(self, aliases: Mapping[str, Iterable[str]]) -> None:
        """Merge canonical -> aliases entries into the lookup table."""
        for canonical, spellings in aliases.items():
            canonical = clean_name(canonical)
            known = self._aliases.setdefault(canonical, set())
            self._lookup[lookup_key(canonical)] = canonical
            last = canonical.split(",")[0].strip().lower()
            self._last_names[last].add(canonical)
            for alias in spellings:
                known.add(alias)
                self._lookup[lookup_key(clean_name(alias))] = canonical
        self._cache.clear()

    # --- Normalization ---

    def normalize(self, raw: str | None) -> str:
        """Return the canonical identity for a raw name ("" when empty)."""
        if not raw:
            return ""
        cached = self._cache.get(raw)
        if cached is not None:
            return cached
        result = self._normalize(raw)
        if len(self._cache) >= _CACHE_LIMIT:
            self._cache.clear()
        self._cache[raw] = result
        return result

    def _normalize(self, raw: str) -> str:
        cleaned = clean_name(raw)
        if not cleaned:
            return ""

        hit = self._lookup.get(lookup_key(cleaned))
        if hit is not None:
            return hit

        parts = [p for p in _TOKEN_SPLIT.split(cleaned) if p]
        if len(parts) == 1:
            candidates = self._last_names.get(parts[0].lower(), set())
            if len(candidates) == 1:
                return next(iter(candidates))
            # Unknown or ambiguous surname: leave as-is.
            return cleaned

        if "," not in cleaned:
            reformatted = f"{parts[-1]}, {' '.join(parts[:-1])}"
            return self._lookup.get(lookup_key(reformatted), reformatted)

        return cleaned

    def is_same_player(self, a: str | None, b: str | None) -> bool:
        first = self.normalize(a)
        return bool(first) and first == self.normalize(b)

    def matches(self, canonical: str, raw: str | None) -> bool:
        """True when a raw name belongs to the given canonical identity."""
        if not raw:
            return False
        if raw in self._observed.get(canonical, {}):
            return True
        return self.normalize(raw) == canonical

    # --- Observed aliases ---

    def record_alias(self, canonical: str, raw: str) -> None:
        """Count one observation of ``raw`` for ``canonical`` (bookkeeping only)."""
        if not canonical or not raw:
            return
        counts = self._observed[canonical]
        counts[raw] = counts.get(raw, 0) + 1

    def identity(self, canonical: str) -> CanonicalIdentity:
        return CanonicalIdentity(
            canonical=canonical,
            aliases=dict(self._observed.get(canonical, {})),
        )

    def known_aliases(self, canonical: str) -> list[str]:
        """Static and observed spellings for a canonical identity, sorted."""
        names = set(self._aliases.get(canonical, set()))
        names.update(self._observed.get(canonical, {}))
        names.discard(canonical)
        return sorted(names)

    def export_aliases(self) -> dict[str, dict[str, int]]:
        """Observed alias counts, sorted for stable persistence."""
        return {
            canonical: dict(sorted(counts.items()))
            for canonical, counts in sorted(self._observed.items())
            if counts
        }

    def load_observed(self, data: Mapping[str, Mapping[str, int]]) -> None:
        """Add previously exported alias counts."""
        for canonical, counts in data.items():
            target = self._observed[canonical]
            for alias, count in counts.items():
                target[alias] = target.get(alias, 0) + int(count)

    def reset_observed(self) -> None:
        self._observed.clear()
