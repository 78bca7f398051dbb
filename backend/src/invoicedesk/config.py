"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache

from pydantic import Field, PostgresDsn, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: PostgresDsn = Field(
        description="PostgreSQL connection string with asyncpg driver"
    )

    # Authentication
    auth_secret: SecretStr = Field(
        description="Secret used to sign session tokens"
    )
    session_ttl_minutes: int = Field(
        default=60 * 24,
        gt=0,
        description="Lifetime of a session token in minutes"
    )

    # Bootstrap user, created at startup when both email and password are set
    admin_email: str | None = Field(default=None)
    admin_password: SecretStr | None = Field(default=None)
    admin_name: str = Field(default="Admin")

    # Server
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    """
    return Settings()
