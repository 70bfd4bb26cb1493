# src/cache/__init__.py — v1
"""Cache stores and key index."""
