# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings. A Settings
instance is built once at startup and handed to every component; nothing in
the resolve path reads the environment directly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache backend ===
    cache_backend: Literal["local", "s3"] = "local"
    thumbnail_dir: Path = Path("thumbnails")

    # Key-value index (identifier -> cache key)
    redis_url: str = ""
    index_prefix: str = ""

    # Object storage (S3-compatible)
    s3_bucket: str = ""
    s3_region: str = ""
    s3_endpoint: str = ""
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_path_style: bool = False

    # === Upstream CDN ===
    upstream_webp_base: str = "https://i.ytimg.com/vi_webp"
    upstream_jpg_base: str = "https://i.ytimg.com/vi"

    # === HTTP server ===
    host: str = "0.0.0.0"
    port: int = 2342
    fallback_image: Path | None = None

    # === Bulk migration ===
    migrate_concurrency: int = 10
    migrate_error_log: Path = Path("error_redis.txt")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30
    debug: bool = False

    # --- Validators ---

    @field_validator("migrate_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("migrate_concurrency must be >= 1")
        return v

    @field_validator("upstream_webp_base", "upstream_jpg_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "s3":
            if not self.s3_bucket:
                errors.append("S3_BUCKET must be set when CACHE_BACKEND=s3")
            if not self.redis_url:
                errors.append("REDIS_URL must be set when CACHE_BACKEND=s3")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    def upstream_base(self, encoding: str) -> str:
        """Return the upstream base URL serving the given encoding."""
        if encoding == "webp":
            return self.upstream_webp_base
        if encoding == "jpg":
            return self.upstream_jpg_base
        raise ValueError(f"No upstream base for encoding: {encoding!r}")


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
