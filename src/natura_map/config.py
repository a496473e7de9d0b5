"""
Application settings.

Values come from ``NATURA_*`` environment variables or a local ``.env`` file.
Components take explicit constructor arguments; the ``from_settings``
factories on the scheduler, cache and orchestrator wire them from here.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for natura-map."""

    model_config = SettingsConfigDict(env_prefix="NATURA_", env_file=".env", extra="ignore")

    app_name: str = "natura-map"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # iNaturalist API
    api_base: str = "https://api.inaturalist.org/v1"
    user_agent: str = "natura-map/0.1 (biodiversity observation map)"
    http_timeout: float = 30.0
    min_request_interval: float = 1.1  # seconds, documented limit is 1 req/s
    throttle_cooldown: float = 5.0  # seconds to wait after a 429

    # Local storage
    data_dir: Path = Path("data")
    cache_dir: Path = Path("data/cache")
    cache_ttl_seconds: int = 3600

    @field_validator("min_request_interval", "throttle_cooldown", "http_timeout")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("intervals and timeouts must not be negative")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("cache_ttl_seconds must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""
    return Settings()
