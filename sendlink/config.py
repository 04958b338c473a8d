# sendlink/config.py
"""
Centralized application configuration using pydantic-settings.

All settings are read from environment variables or .env file.
Domain limits (TTL, expiry bounds, upload size) live in sendlink.constants.
"""

import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PROJECT_ROOT: str = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Priority: environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )

    # --- Share link database ---
    DB_URL: str = Field(
        default="postgresql://localhost:5432/sendlink",
        description="Relational store for share links"
    )
    AUTO_CREATE_TABLES: bool = Field(
        default=False,
        description="Run metadata.create_all on startup instead of relying on Alembic"
    )

    # --- Board key-value store ---
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    KV_BACKEND: str = Field(
        default="redis",
        description="Board storage backend: 'redis' or 'memory'"
    )

    # --- Media blobs ---
    MEDIA_ROOT: str = Field(
        default=os.path.join(PROJECT_ROOT, "media"),
        description="Directory where uploaded files are stored"
    )
    MEDIA_URL_PREFIX: str = Field(
        default="/media",
        description="URL prefix the media directory is served under"
    )
    PUBLIC_BASE_URL: str = Field(
        default="http://127.0.0.1:8888",
        description="Origin used to build public share URLs"
    )

    # --- Server ---
    HOST: str = Field(
        default="127.0.0.1",
        description="Server bind host"
    )
    PORT: int = Field(
        default=8888,
        description="Server bind port"
    )

    # --- Debug / Logging ---
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    LOGS_PATH: str = Field(
        default=os.path.join(PROJECT_ROOT, "logs"),
        description="Directory for access.log and error.log"
    )
    OTEL_ENABLED: bool = Field(
        default=False,
        description="Install the OpenTelemetry console tracer"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_upper

    @field_validator("KV_BACKEND")
    @classmethod
    def validate_kv_backend(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {"redis", "memory"}:
            raise ValueError("KV_BACKEND must be 'redis' or 'memory'")
        return v_lower

    @field_validator("MEDIA_URL_PREFIX", "PUBLIC_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance (singleton pattern)."""
    return Settings()
