# src/resolver/__init__.py — v1
"""Quality-fallback thumbnail resolver."""
