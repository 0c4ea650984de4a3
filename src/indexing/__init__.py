# src/indexing/__init__.py — v1
"""Batched, spill-to-disk index construction with checkpointed resume."""
