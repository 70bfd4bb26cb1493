# src/core/validator.py — v1
"""Video identifier validation.

A YouTube video ID is 11 characters from ``[A-Za-z0-9_-]``; the last one
only carries 4 significant bits, which restricts it to 16 characters.
Reference: https://wiki.archiveteam.org/index.php/YouTube/Technical_details
"""

from __future__ import annotations

import re

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{10}[AEIMQUYcgkosw048]$")


def validate_video_id(video_id: str) -> bool:
    """Return True if video_id is a syntactically valid YouTube video ID."""
    return VIDEO_ID_PATTERN.fullmatch(video_id) is not None
