"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for CondoDesk happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, refresh_secret_key -> REFRESH_SECRET_KEY).

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. Dev mode generates missing signing keys with a warning,
      production mode refuses to start without them.

Security notes:
  Access and refresh tokens are signed with two different keys. A leaked
  access-signing key cannot mint refresh tokens and vice versa, and a refresh
  token can never be replayed as an access token.

  Keys shorter than 32 chars are rejected outright.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or maintenance/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("condodesk.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'condodesk.db'}"


class DatabaseSettings(BaseSettings):
    """Persistence settings only.

    The stores read these, so the operator CLI can open the database without
    the signing keys that Settings insists on in production.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = _DEFAULT_DB_URL


class Settings(DatabaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured".
    secret_key: str = ""
    refresh_secret_key: str = ""
    access_token_expire_seconds: int = 15 * 60
    refresh_token_expire_seconds: int = 7 * 24 * 60 * 60

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "5 per 15 minutes"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_signing_keys(self) -> "Settings":
        """Enforce the signing key policy.

        Dev mode (DEBUG=true): auto-generate missing keys with a warning.
            Tokens will not survive a restart.

        Production mode: refuse to start if either key is missing.

        Both modes: reject keys shorter than 32 characters and reject
            configurations where both keys are identical.
        """
        for field in ("secret_key", "refresh_secret_key"):
            value = getattr(self, field)
            if not value:
                if not self.debug:
                    raise ValueError(
                        f"{field.upper()} is required in production mode. "
                        "Set it in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
                setattr(self, field, secrets.token_hex(32))
                logger.warning("Using auto-generated %s. Tokens will not persist across restarts.", field.upper())
            if len(getattr(self, field)) < 32:
                raise ValueError(f"{field.upper()} must be at least 32 characters.")
        if self.secret_key == self.refresh_secret_key:
            raise ValueError("SECRET_KEY and REFRESH_SECRET_KEY must differ.")
        return self

    @model_validator(mode="after")
    def validate_token_lifetimes(self) -> "Settings":
        """Access tokens live between 15 and 60 minutes; refresh tokens outlive them."""
        if not 15 * 60 <= self.access_token_expire_seconds <= 60 * 60:
            raise ValueError("ACCESS_TOKEN_EXPIRE_SECONDS must be between 900 and 3600.")
        if self.refresh_token_expire_seconds <= self.access_token_expire_seconds:
            raise ValueError("REFRESH_TOKEN_EXPIRE_SECONDS must exceed ACCESS_TOKEN_EXPIRE_SECONDS.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Return the persistence settings singleton. Never validates signing keys."""
    return DatabaseSettings()
