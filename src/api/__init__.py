# src/api/__init__.py — v1
"""Public entry points used by the CLI and by external API layers."""
