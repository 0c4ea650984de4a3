# src/storage/__init__.py — v1
"""On-disk layout, atomic writers and readers."""
