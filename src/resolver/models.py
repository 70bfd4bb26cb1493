# src/resolver/models.py — v1
"""Resolution outcomes: Hit, Fresh, ValidationFailure, UpstreamFailure, Exhausted.

Computed once per lookup and never persisted.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel

from bestthumb.core.quality import Quality


class Hit(BaseModel):
    """Served from the cache."""

    kind: Literal["hit"] = "hit"
    data: bytes
    quality: Quality

    @property
    def status_code(self) -> int:
        return 200


class Fresh(BaseModel):
    """Fetched from upstream; a write-back has been launched."""

    kind: Literal["fresh"] = "fresh"
    data: bytes
    quality: Quality

    @property
    def status_code(self) -> int:
        return 200


class ValidationFailure(BaseModel):
    """The identifier is malformed; nothing was touched."""

    kind: Literal["validation_failure"] = "validation_failure"
    video_id: str

    @property
    def status_code(self) -> int:
        return 400


class UpstreamFailure(BaseModel):
    """A non-404 upstream failure aborted the ladder sweep."""

    kind: Literal["upstream_failure"] = "upstream_failure"
    status: int
    quality: Quality

    @property
    def status_code(self) -> int:
        return self.status


class Exhausted(BaseModel):
    """Every ladder entry reported not-found upstream."""

    kind: Literal["exhausted"] = "exhausted"

    @property
    def status_code(self) -> int:
        return 500


Resolution = Union[Hit, Fresh, ValidationFailure, UpstreamFailure, Exhausted]
