# src/normalize/__init__.py — v1
"""Player-name, time-control and ECO normalization."""
