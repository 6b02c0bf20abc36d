"""
core/config.py -- SessionGuard settings, read from the environment and .env.

Every environment variable the service understands is a field on Settings
(secret_key <- SECRET_KEY, refresh_token_expire_seconds <-
REFRESH_TOKEN_EXPIRE_SECONDS, ...). No application module reads os.environ.

Only the application layer (api/ and the main.py CLI) calls get_settings().
The lifespan turns the values into an AuthContext; auth/ never sees Settings.

get_settings() is lru_cached, so the environment is parsed once per process.
Tests set the environment before the first import (tests/conftest.py) or
build Settings(...) directly.

Signing key policy:
  [M6] SECRET_KEY must be at least 32 characters. Every access and refresh
       token is an HS256 signature over this key.

  [M7] Without DEBUG=true a missing SECRET_KEY stops startup. With DEBUG=true
       a random key is generated, so refresh cookies die with the process.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("sessionguard.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'sessionguard_auth.db'}"


class Settings(BaseSettings):
    """Every tunable of the service. Field name = lower-cased env var name.

    Only SECRET_KEY lacks a usable default, and DEBUG=true covers that.
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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Tokens and cookies
    # ------------------------------------------------------------------

    access_token_expire_seconds: int = 15 * 60
    refresh_token_expire_seconds: int = 7 * 24 * 3600
    # The refresh cookie is Secure by default. Only switch this off for local
    # development over plain http.
    secure_cookies: bool = True

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_allowed_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def check_signing_policy(self) -> "Settings":
        """Apply [M6]/[M7] to SECRET_KEY and reject non-positive token lifetimes."""
        if not self.secret_key:
            if not self.debug:
                raise ValueError("SECRET_KEY must be set (or run with DEBUG=true to use a throwaway key).")
            self.secret_key = secrets.token_hex(32)
            logger.warning("DEBUG: generated a throwaway SECRET_KEY; refresh cookies will not survive a restart")
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.access_token_expire_seconds <= 0 or self.refresh_token_expire_seconds <= 0:
            raise ValueError("Token lifetimes must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Parse the environment once and return the shared Settings."""
    return Settings()
