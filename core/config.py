"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for bizdir happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Singleton via lru_cache: get_settings() instantiates Settings once at first
call and returns the cached instance on every subsequent call. In tests, set
environment variables before the first import of api.main, or call
get_settings.cache_clear().

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or directory/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("bizdir.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'bizdir.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field has a default so Settings() works in a bare test environment.
    Field names map to upper-cased env vars (database_url -> DATABASE_URL).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = 4000
    # Bodies above this size are rejected before JSON parsing.
    max_body_bytes: int = Field(default=1_000_000, gt=0)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    session_ttl_seconds: int = Field(default=24 * 60 * 60, gt=0)

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"
    register_rate_limit: str = "5/minute"

    @model_validator(mode="after")
    def validate_database_url(self) -> "Settings":
        """Reject an empty DATABASE_URL instead of failing on first query."""
        if not self.database_url.strip():
            raise ValueError("DATABASE_URL must not be empty.")
        if self.debug and self.database_url == _DEFAULT_DB_URL:
            logger.warning("Using default SQLite database at %s", _DEFAULT_DB_URL)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton."""
    return Settings()
