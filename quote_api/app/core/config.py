"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  In a
production deployment you should at least override ``SECRET_KEY``.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Quote API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    # Prefix under which the quote routes are mounted.  Empty by default so
    # that existing clients keep calling ``/quote`` and ``/quotes``.
    api_prefix: str = os.getenv("API_PREFIX", "")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Path or connection string for the SQLite database.  A relative path
    # is resolved against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "quotes.db")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
