"""Application configuration and settings management."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central application settings loaded from environment variables."""

    app_name: str = Field(default="Workforce Demand Analytics")
    app_version: str = Field(default="1.0.0")
    api_prefix: str = Field(default="/api")

    database_url: str = Field(
        default_factory=lambda: f"sqlite:///{Path.cwd() / 'demand_planning.db'}"
    )
    database_echo: bool = Field(default=False)

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    max_upload_files: int = Field(default=10)
    max_upload_bytes: int = Field(default=50 * 1024 * 1024)
    allowed_extensions: List[str] = Field(default_factory=lambda: [".xlsx", ".xls", ".xlsm"])

    default_window_weeks: int = Field(default=26)
    history_limit: int = Field(default=50)

    model_config = {
        "env_file": ".env",
        "env_prefix": "WD_",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[arg-type]
