"""Configuration loading for the trending repositories list.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # GitHub backend configuration
    github_api_url: str = Field(
        default="https://api.github.com/graphql",
        description="GitHub GraphQL API endpoint URL",
    )
    github_token: str = Field(
        default="",
        description="GitHub personal access token (GraphQL requires one)",
    )
    search_query: str = Field(
        default="stars:>1000 sort:stars",
        description="GitHub repository search query",
    )
    page_size: int = Field(
        default=20,
        description="Number of repositories to request per page",
    )
    fetch_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for a single fetch in seconds",
    )

    # List behaviour
    initial_category: str = Field(
        default="",
        description="Category filter applied after the first fetch (empty = none)",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """GitHub search pages hold between 1 and 100 results."""
        if v <= 0 or v > 100:
            raise ValueError("page_size must be between 1 and 100")
        return v

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def validate_fetch_timeout(cls, v: float) -> float:
        """Ensure fetch timeout is positive."""
        if v <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")
        return v

    @field_validator("search_query")
    @classmethod
    def validate_search_query(cls, v: str) -> str:
        """Ensure the search query is not blank."""
        if not v.strip():
            raise ValueError("search_query must be a non-empty string")
        return v.strip()


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
