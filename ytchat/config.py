"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    app_env: Literal["development", "production", "test"] = "development"
    app_name: str = "YouTube Live Chat Aggregator"
    cors_origins: list[str] = ["*"]
    log_level: str | None = None

    # Token extraction
    token_source: Literal["direct", "browser"] = "direct"

    # Browser (only used when token_source == "browser")
    chrome_path: str | None = None
    browser_debug_url: str | None = None
    browser_screenshot_dir: Path | None = None

    @field_validator("chrome_path", "browser_debug_url", "log_level", mode="before")
    @classmethod
    def empty_as_none(cls, v: str | None) -> str | None:
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def uses_browser(self) -> bool:
        """Check if session tokens are scraped through the headless browser."""
        return self.token_source == "browser"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
