from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    DB_BACKEND: str = "sqlite"
    SQLITE_PATH: str = "./data/buildings.db"
    CORS_ORIGINS: str = ""  # Comma-separated origins, empty = same-origin only

    # Match score calculator
    RATE_LIMIT_SECONDS: float = 30.0
    DEFAULT_SEARCH_RADIUS_KM: float = 5.0

    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
