"""Client configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Distribution client settings."""

    model_config = SettingsConfigDict(
        env_prefix="OTA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Distribution
    distribution_url: str = ""

    # Paths
    cache_dir: Path = Path("./ota-cache")

    # Downloads
    concurrency: int = Field(default=16, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)
