"""Application configuration and settings management.

This module defines the settings loaded from environment variables and
provides helpers for accessing cached settings and configuring logging.
"""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration loaded from environment variables.

    Attributes:
        DATABASE_NAME: Logical database name. ``":memory:"`` selects an
            ephemeral in-memory database.
        DATA_DIR: Directory holding on-disk database files.
        ECHO_SQL: Log every SQL statement issued by the engine.
        LOG_LEVEL: Level applied to the ``oruma`` logger.
    """

    DATABASE_NAME: str = "oruma"
    DATA_DIR: str = "."
    ECHO_SQL: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()


def configure_logging(level: str | None = None) -> logging.Logger:
    """Apply the configured log level to the package logger.

    Args:
        level (str | None): Explicit level name. Falls back to ``LOG_LEVEL``.

    Returns:
        logging.Logger: The ``oruma`` logger.
    """

    logger = logging.getLogger("oruma")
    logger.setLevel((level or get_settings().LOG_LEVEL).upper())
    return logger
