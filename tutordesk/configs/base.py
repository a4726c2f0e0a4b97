"""
Base configuration settings.

Shared `.env` handling for the tutordesk config classes that inherit it,
plus the process log level.

Dependencies: pydantic_settings
System role: Foundation for application and database settings
"""

from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict
from pydantic import Field


class BaseSettings(PydanticBaseSettings):
    """Reads `.env`, ignores unknown keys and carries the log level."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level passed to configure_logging",
    )
