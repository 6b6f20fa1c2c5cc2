"""
Session store configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from cloudant_sessions.ttl import DEFAULT_TTL_SECONDS


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Document store connection
    cloudant_url: str = "http://localhost:5984"
    cloudant_username: Optional[str] = None
    cloudant_password: Optional[str] = None
    # IAM API key, exchanged for a bearer token (takes precedence over basic auth)
    cloudant_apikey: Optional[str] = None
    cloudant_iam_url: str = "https://iam.cloud.ibm.com/identity/token"
    cloudant_timeout: float = 30.0

    # Sessions
    session_prefix: str = "sess:"
    session_ttl: Optional[int] = DEFAULT_TTL_SECONDS  # 0 or None: cookie maxAge, then one day
    session_db: str = "sessions"
    expired_sessions_view: str = "express_expired_sessions"
    expired_sessions_ddoc: str = "expired_sessions"

    log_level: str = "INFO"

    @property
    def has_basic_auth(self) -> bool:
        return bool(self.cloudant_username and self.cloudant_password)


class StoreOptions(BaseModel):
    """Immutable per-store configuration."""

    model_config = ConfigDict(frozen=True)

    prefix: str = "sess:"
    ttl: Optional[int] = DEFAULT_TTL_SECONDS
    db: str = "sessions"
    expired_sessions_view: str = "express_expired_sessions"
    expired_sessions_ddoc: str = "expired_sessions"

    @classmethod
    def from_settings(cls, settings: Settings) -> "StoreOptions":
        return cls(
            prefix=settings.session_prefix,
            ttl=settings.session_ttl,
            db=settings.session_db,
            expired_sessions_view=settings.expired_sessions_view,
            expired_sessions_ddoc=settings.expired_sessions_ddoc,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
