"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from INITRACKER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="INITRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = "sqlite:///./initracker.sqlite3"

    debug: bool = False
    log_level: str = "INFO"

    # how many pre-command snapshots each combat keeps for undo
    undo_limit: int = Field(default=30, ge=1)

    # fixed seed makes dice and initiative reproducible (demos, tests)
    rng_seed: int | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
