"""Application configuration and settings management.

This module defines the application settings loaded from environment
variables and provides helpers for accessing cached settings and for
configuring logging once per process.
"""

import logging
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings

TOKEN_LIFETIME_HOURS = 24
"""Session tokens and the auth cookie live for exactly one day."""


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        DATABASE_URL: Database connection string.
        JWT_SECRET: Secret used for signing session tokens. Required.
        JWT_ALGORITHM: Algorithm used to sign session tokens.
        AUTH_COOKIE_NAME: Name of the HTTP-only session cookie.
        ENVIRONMENT: Deployment environment name.
        ALLOWED_ORIGINS: Allowed origins for CORS.
        LOG_LEVEL: Root log level.
    """

    DATABASE_URL: str = "sqlite:///./notifier.db"
    JWT_SECRET: str | None = None
    JWT_ALGORITHM: str = "HS256"
    AUTH_COOKIE_NAME: str = "auth-token"
    ENVIRONMENT: str = "development"
    ALLOWED_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"

    @property
    def secure_cookies(self) -> bool:
        """Cookies carry the ``Secure`` flag only in production."""
        return self.ENVIRONMENT.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger with the application format."""

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
