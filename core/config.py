"""
core/config.py -- Environment-driven settings for scaffold-api.

Every tunable the service reads lives on Settings. Route, auth and test code
call get_settings(); nothing else reads os.environ.

  variable            default        used by
  SECRET_KEY          (required)     JWTService signing key, >= 32 chars
  DEBUG               false          true auto-generates a throwaway SECRET_KEY
  LOG_LEVEL           INFO           root logger level in api/main.py
  JWT_EXPIRES_IN      7d             default token lifetime ("30m", "12h", "3600")
  JWT_ISSUER          scaffold-api   iss claim written and required on tokens
  BCRYPT_ROUNDS       10             cost factor for new password hashes
  CORS_ORIGINS        localhost set  browser origins allowed by CORSMiddleware
  ALLOWED_HOSTS       ["*"]          TrustedHostMiddleware host list
  RATE_LIMIT_ENABLED  true           false turns slowapi limits into no-ops
  LOGIN_RATE_LIMIT    10/minute      per-IP limit on POST /auth/login

get_settings() is memoised with lru_cache, so the first call fixes the values
for the process. Tests that change the environment must call
get_settings.cache_clear() first.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("scaffold.config")

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Values come from the process environment first, then .env if present.

    Every field has a default except the signing key, which check_signing_key()
    fills in (DEBUG) or demands (everything else).
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
    # "" means unset; check_signing_key() replaces or rejects it.
    secret_key: str = ""

    # ------------------------------------------------------------------
    # API metadata (rendered into the generated OpenAPI document)
    # ------------------------------------------------------------------

    api_title: str = "Scaffold API"
    api_description: str = "REST API scaffold with JWT auth, RBAC and structured errors."
    api_version: str = "1.0.0"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    jwt_expires_in: str = "7d"
    jwt_issuer: str = "scaffold-api"
    # bcrypt accepts cost factors 4..31. 10 keeps a login under ~100ms.
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def check_signing_key(self) -> "Settings":
        """Generate a key under DEBUG, otherwise require one of MIN_SECRET_LENGTH or more."""
        if not self.secret_key and self.debug:
            self.secret_key = secrets.token_hex(MIN_SECRET_LENGTH)
            logger.warning("SECRET_KEY not set; generated a random key. Issued tokens die with this process.")
        if not self.secret_key:
            raise ValueError("SECRET_KEY must be set unless DEBUG=true.")
        if len(self.secret_key) < MIN_SECRET_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, built on first call."""
    return Settings()
