# src/batch/__init__.py — v1
"""Bulk migration of a local thumbnail tree into the configured cache."""
