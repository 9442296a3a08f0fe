"""Application configuration using Pydantic Settings."""

import os
import sys
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _is_test_environment() -> bool:
    """Check if we're running in a test environment."""
    return (
        "PYTEST_CURRENT_TEST" in os.environ
        or "pytest" in sys.modules
        or "pytest" in os.environ.get("_", "")
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = (
        "sqlite+aiosqlite:///:memory:"
        if _is_test_environment()
        else "postgresql+asyncpg://localhost:5432/capture"
    )

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # JWT
    JWT_SECRET_KEY: str = (
        "test-secret-key-change-in-production" if _is_test_environment() else ""
    )
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # QR join tokens
    QR_TOKEN_SECRET: str = Field(
        default="test-qr-secret" if _is_test_environment() else "",
        description="Server secret mixed into the QR token authentication code",
    )
    QR_TOKEN_TTL_MINUTES: int = Field(default=15, ge=1)
    QR_SHORT_CODE_MAX_ATTEMPTS: int = Field(
        default=10,
        ge=1,
        description="How many times to regenerate a colliding short code before giving up",
    )
    QR_CLEANUP_INTERVAL_MINUTES: int = Field(default=30, ge=1)

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    # Application
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


settings = Settings()
