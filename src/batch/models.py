# src/batch/models.py — v2
"""Bulk migration models: MigrationItem, MigrationFailure, MigrationResult."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from bestthumb.core.quality import Quality


class MigrationItem(BaseModel):
    """A single cached file discovered under the migration root."""

    file_path: str
    video_id: str
    quality: Quality
    key: str


class MigrationFailure(BaseModel):
    """One item that could not be migrated."""

    file_path: str
    video_id: str
    key: str
    stage: Literal["read", "index", "upload"]
    error: str


class MigrationResult(BaseModel):
    """Summary of a completed migration run."""

    root: str
    total: int
    succeeded: int
    failed: int
    failures: list[MigrationFailure] = Field(default_factory=list)
    duration_seconds: float
