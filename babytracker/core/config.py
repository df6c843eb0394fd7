"""Environment-driven configuration for the Baby Tracker dashboard.

Every setting the process relies on lives on ``AppSettings`` so nobody has to
hunt for ``os.getenv`` calls scattered around the codebase. Values are read
once (``get_settings`` is cached) from the environment and optional ``.env``
files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Baby Tracker"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None
    TZ: str = "America/Chicago"

    # Headless callers (kiosk scripts, tests) may use X-API-Key instead of a session.
    API_KEY: str = Field(default="", validation_alias=AliasChoices("API_KEY", "API_TOKEN"))
    ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    APP_SECRET: str = "dev-insecure-secret-change-me"
    SESSION_COOKIE_NAME: str = "bt_session"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 30

    DB_URL: str = Field(default="", validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))

    HOST: str = "0.0.0.0"
    PORT: int = 8089

    # ---- Tracker REST backend
    TRACKER_API_BASE_URL: str = "http://localhost:3000"
    TRACKER_API_TOKEN: str = ""
    TRACKER_API_TIMEOUT: float = 10.0

    # ---- Dashboard behaviour
    TIMELINE_LIMIT: int = 200
    STATUS_REFRESH_SECONDS: int = 60
    PIN_MIN_LENGTH: int = 6
    PIN_MAX_LENGTH: int = 10

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'data.db'}"

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    if settings.TEMPLATES_DIR is None:
        settings.TEMPLATES_DIR = settings.BASE_DIR / "babytracker" / "templates"
    if settings.STATIC_DIR is None:
        settings.STATIC_DIR = settings.BASE_DIR / "babytracker" / "static"
    return settings


# Importing ``settings`` anywhere gives the configured values without rebuilding
# the object each time.
settings = get_settings()
