"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Flickr credentials and target album
    flickr_api_key: str = Field(default="", description="Flickr API key")
    flickr_api_secret: str = Field(default="", description="Flickr API secret")
    flickr_album_id: str = Field(
        default="",
        description="Photoset ID that holds all stored objects",
    )

    # Flickr endpoints
    flickr_rest_url: str = Field(
        default="https://api.flickr.com/services/rest/",
        description="Flickr REST endpoint",
    )
    flickr_upload_url: str = Field(
        default="https://up.flickr.com/services/upload/",
        description="Flickr upload endpoint",
    )

    # HTTP settings
    flickr_timeout_seconds: float = Field(
        default=60.0,
        ge=1,
        le=600,
        description="Read timeout for Flickr requests",
    )
    flickr_connect_timeout_seconds: float = Field(
        default=10.0,
        ge=1,
        le=120,
        description="Connect timeout for Flickr requests",
    )

    # Listing and scratch space
    flickr_page_size: int = Field(
        default=1000,
        ge=1,
        le=1000,
        description="Photos requested per album listing page",
    )
    scratch_dir: Path | None = Field(
        default=None,
        description="Directory for download scratch files (system temp if unset)",
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    @computed_field
    @property
    def flickr_configured(self) -> bool:
        """Check if Flickr is properly configured."""
        return bool(self.flickr_api_key and self.flickr_api_secret and self.flickr_album_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    get_settings.cache_clear()
