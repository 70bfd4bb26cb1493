# src/upstream/__init__.py — v1
"""Upstream CDN client."""
