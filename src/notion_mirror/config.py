"""Application configuration via pydantic-settings."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Notion
    notion_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("notion_api_key", "notion_key"),
    )
    notion_version: str = "2022-06-28"
    notion_base_url: str = "https://api.notion.com"
    request_timeout: float = 60.0

    # Retry policy for read requests
    max_retries: int = 3
    min_retry_delay: float = 1.0
    max_retry_delay: float = 60.0
    default_retry_after: float = 5.0

    # Block tree materialization
    max_block_depth: int = 64
    block_fetch_concurrency: int = 1

    # App
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings. Lazy initialization to avoid import-time errors."""
    return Settings()
