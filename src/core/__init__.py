# src/core/__init__.py — v1
"""Quality ladder and identifier validation."""
