from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .constraint import DEFAULT_CONFIG_PATH, ENV_PREFIX


class Settings(BaseSettings):
    """Application runtime settings sourced from environment variables."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore")

    config_path: Path = DEFAULT_CONFIG_PATH
    enable_local_api: bool | None = None
    environment: str = "production"
    allowed_origins: str | None = None

    @property
    def expose_errors(self) -> bool:
        return self.environment.strip().lower() == "development"

    @property
    def cors_origins(self) -> list[str]:
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
