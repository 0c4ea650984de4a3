# src/aggregation/__init__.py — v1
"""Per-player profiles and tournament standings computed in a single pass."""
