"""Application configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    predictor_space: str = "AyaJejawy/graduation_project"
    predictor_api_name: str = "/predict"
    hf_token: Optional[str] = None
    max_upload_mb: int = 100
    uploads_dir: Path = Path("uploads")
    logs_dir: Path = Path("logs")
    job_poll_interval_ms: int = 1000
    api_key: Optional[str] = None

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache(1)
def get_settings() -> Settings:
    settings = Settings()
    settings.uploads_dir.mkdir(parents=True, exist_ok=True)
    settings.logs_dir.mkdir(parents=True, exist_ok=True)
    return settings
