# src/__init__.py — v1
"""bestthumb: best-available YouTube thumbnail proxy with a quality-fallback cache."""

from bestthumb.version import __version__

__all__ = ["__version__"]
