"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Scheduling and scoring constants are fixed policy and live in
galking/services/learning/constants.py.

Usage:
    from galking.config import settings

    # Access settings
    db_url = settings.DATABASE_URL_RESOLVED
    threshold = settings.VOCAB_FAST_THRESHOLD_MS
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    APP_NAME: str = "GalKing Learning Engine"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "galking"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "galking"

    # Full URL override (e.g. sqlite+aiosqlite:///./galking.db for local use)
    DATABASE_URL: str = ""

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_RESOLVED(self) -> str:
        """DATABASE_URL if set, otherwise the async PostgreSQL URL."""
        return self.DATABASE_URL or self.POSTGRES_URL

    # Vocabulary scoring: a correct answer faster than this earns +1 strength
    VOCAB_FAST_THRESHOLD_MS: int = 3000

    # Query defaults
    ACCURACY_TREND_DEFAULT_DAYS: int = 14
    REVIEW_QUEUE_DEFAULT_LIMIT: int = 20


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
