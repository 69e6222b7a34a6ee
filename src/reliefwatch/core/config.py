"""
ReliefWatch - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from reliefwatch.core.constants import DEFAULT_CACHE_TTL_SECONDS


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    verification_log_level: str = "INFO"
    verification_log_file: Optional[str] = None

    # Mapbox geocoding
    geocoding_api_key: Optional[str] = None
    mapbox_base_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"

    # Google Gemini
    gemini_api_key: Optional[str] = None
    gemini_api_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    gemini_text_model: str = "gemini-1.5-flash"
    gemini_vision_model: str = "gemini-1.5-flash"

    # Database
    database_url: Optional[str] = None
    db_pool_size: int = 5
    db_echo: bool = False

    # Cache Settings
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS

    # Outbound HTTP
    http_timeout_seconds: float = 15.0
    image_fetch_timeout_seconds: float = 20.0

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
