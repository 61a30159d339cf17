"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Keywords Everywhere (Required for branded traffic)
    KEYWORDS_EVERYWHERE_API_KEY: Optional[str] = None

    # ValueSERP (Required for branded traffic)
    VALUESERP_API_KEY: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Default estimation settings
    DEFAULT_COUNTRY: str = "gb"
    MIN_HTML_LENGTH: int = 100

    # Timeouts
    API_TIMEOUT: float = 30.0
    BRANDED_LOOKUP_TIMEOUT: float = 45.0
    FETCH_TIMEOUT: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase

    @property
    def has_branded_apis(self) -> bool:
        """Both branded-traffic services have credentials."""
        return bool(self.KEYWORDS_EVERYWHERE_API_KEY and self.VALUESERP_API_KEY)


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
