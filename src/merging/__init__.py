# src/merging/__init__.py — v1
"""External merge of spilled batches and lookups against merged indices."""
