# src/parser/__init__.py — v1
"""Streaming PGN reader."""
