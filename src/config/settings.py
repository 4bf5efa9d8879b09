"""
Application settings using Pydantic Settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Prefer local overrides while keeping .env as the default source
        env_file=(".env.local", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = "dev"

    # Azure Storage
    azure_storage_connection_string: SecretStr | None = None
    azure_storage_account_url: str | None = None
    azure_storage_container: str = "learntocreatecontainer"

    # Copy polling
    copy_poll_interval: float = Field(10.0, description="Seconds between copy status polls")
    copy_timeout: float = Field(600.0, description="Seconds to wait for a copy to finish")

    # Ad-hoc SAS window
    sas_start_skew_minutes: int = Field(2, description="Minutes subtracted from now for SAS start")
    sas_ttl_minutes: int = Field(10, description="Minutes added to now for SAS expiry")

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @property
    def azure_connection_string_str(self) -> str | None:
        """Get Azure Storage connection string as string."""
        if self.azure_storage_connection_string:
            return self.azure_storage_connection_string.get_secret_value()
        return None


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
