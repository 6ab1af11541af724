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

    # Bearer API key expected in the Authorization header
    API_KEY: Optional[str] = None
    AUTH_ENABLED: bool = True

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Document store / audit database (SQLite fallback for local development)
    DATABASE_URL: str = "sqlite:///dulce_dev.db"

    # Resource URIs are this prefix + the resource identifier
    RESOURCE_URI_PREFIX: str = "mcp://estacion-dulce/"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in ("prod", "production")


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
