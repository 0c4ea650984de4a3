# src/batch/__init__.py — v1
"""Corpus discovery."""
