from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sleep_fusion.core.logging import LOG_LEVELS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SLEEP_FUSION_", env_file=".env", env_file_encoding="utf-8"
    )

    app_name: str = "sleep-fusion"
    env: str = "local"
    log_level: str = "INFO"

    config_path: Path | None = None

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
