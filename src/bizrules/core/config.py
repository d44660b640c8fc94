"""Configuration management for bizrules.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once and is
immutable during runtime.
"""

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ID_PREFIX_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class Settings(BaseSettings):
    """Engine configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BIZRULES_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "bizrules"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Rule Engine Settings
    id_prefix: str = Field(
        default="rule",
        description="Prefix of generated condition and group IDs",
    )
    effects_cache_enabled: bool = Field(
        default=True,
        description="Reuse the last effect map while watched field values are unchanged",
    )

    @field_validator("id_prefix")
    @classmethod
    def validate_id_prefix(cls, v: str) -> str:
        """Validate the ID prefix is a lowercase slug."""
        v = v.strip().lower()
        if not ID_PREFIX_PATTERN.match(v):
            raise ValueError(
                "id_prefix must start with a letter and contain only "
                "lowercase letters, digits and underscores"
            )
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()
