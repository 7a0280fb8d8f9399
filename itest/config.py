"""Configuration loading for the itest harness.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Harness configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support. Variables carry the ITEST_ prefix, for example
    ITEST_LOCATE_TIMEOUT_SECONDS=10.
    """

    model_config = SettingsConfigDict(
        env_prefix="ITEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Component lookup
    locate_timeout_seconds: float = Field(
        default=5.0,
        description="Seconds a component lookup waits before failing the test",
    )
    optional_locate_timeout_seconds: float = Field(
        default=5.0,
        description="Seconds an optional component lookup waits before giving up",
    )

    # Configuration store
    configuration_backend: Literal["memory", "json"] = Field(
        default="memory",
        description="Configuration store backend type",
    )
    configuration_path: str = Field(
        default="./data/configurations.json",
        description="JSON file for the json configuration backend",
    )

    # Suite lifecycle
    strict_suite_isolation: bool = Field(
        default=True,
        description="Fail when a suite starts while another suite run is in progress",
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

    @field_validator("locate_timeout_seconds", "optional_locate_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure lookup timeouts are positive."""
        if v <= 0:
            raise ValueError("lookup timeouts must be positive")
        return v

    @field_validator("configuration_path")
    @classmethod
    def validate_configuration_path(cls, v: str) -> str:
        """Ensure the configuration path is not blank."""
        if not v.strip():
            raise ValueError("configuration_path must not be empty")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load harness settings from environment.

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
