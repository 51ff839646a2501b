"""Application configuration using Pydantic BaseSettings."""

import logging
import os
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("homegame.config")

# Development-only default for JWT_SECRET
_DEV_JWT_SECRET = "dev-secret-key-change-in-production-min-32-characters-long"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # MongoDB Configuration
    MONGO_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "homegame"

    # Identity provider shared secret (HS256)
    JWT_SECRET: Optional[str] = None

    # CORS Configuration
    # Comma-separated list of allowed origins, or "*" for all origins
    CORS_ORIGINS: str = ""

    # Ledger behaviour
    # Attempts per operation before a version conflict is surfaced.
    LEDGER_MAX_ATTEMPTS: int = 5
    # Balances at or below this many cents count as settled.
    SETTLEMENT_TOLERANCE_CENTS: int = 100
    # How long GET /games/{id}/updates waits for a newer version.
    WATCH_TIMEOUT_SECONDS: float = 25.0

    # Application Metadata
    APP_VERSION: str = "1.0.0"

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def validate_jwt_secret(cls, v):
        """Validate JWT_SECRET and provide development default with warning."""
        if v is None or v == "":
            is_production = os.getenv("RAILWAY_ENVIRONMENT") == "production"
            if is_production:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "Identity tokens cannot be verified without it."
                )
            logger.warning(
                "JWT_SECRET not set! Using development default. "
                "This is INSECURE for production. "
                "Set JWT_SECRET environment variable."
            )
            return _DEV_JWT_SECRET
        return v

    @field_validator("LEDGER_MAX_ATTEMPTS")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("LEDGER_MAX_ATTEMPTS must be at least 1")
        return v

    @property
    def cors_origins(self) -> list[str]:
        """Return list of allowed CORS origins.

        If CORS_ORIGINS is empty, allows local development origins
        but returns empty in production.
        """
        if self.CORS_ORIGINS:
            if self.CORS_ORIGINS == "*":
                return ["*"]
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

        is_production = os.getenv("RAILWAY_ENVIRONMENT") == "production"
        if is_production:
            logger.warning(
                "CORS_ORIGINS not configured in production. "
                "Set CORS_ORIGINS environment variable."
            )
            return []

        return [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]


# Global settings instance
settings = Settings()
