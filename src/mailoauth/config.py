# Settings — environment-driven configuration for the OAuth subsystem.
# Created: 2026-10-18
#
# Values come from the process environment or a local .env file.
# Provider credentials default to empty so unconfigured providers are
# simply reported as unavailable instead of failing at import time.

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """OAuth provider credentials and state-store tuning."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider key is appended as a path segment: {oauth_redirect_uri}/{provider}
    oauth_redirect_uri: str = Field(
        default="http://localhost:3001/auth/callback",
        description="Base redirect URI shared by all providers",
    )

    google_client_id: str = Field(default="", description="Google OAuth client ID")
    google_client_secret: str = Field(default="", description="Google OAuth client secret")
    microsoft_client_id: str = Field(default="", description="Microsoft app (client) ID")
    microsoft_client_secret: str = Field(default="", description="Microsoft client secret")
    yahoo_client_id: str = Field(default="", description="Yahoo OAuth client ID")
    yahoo_client_secret: str = Field(default="", description="Yahoo OAuth client secret")

    oauth_state_ttl: int = Field(
        default=3600, gt=0, description="Seconds a CSRF state token stays valid"
    )
    oauth_state_sweep_interval: int = Field(
        default=3600, gt=0, description="Seconds between expired-state sweeps"
    )
    oauth_http_timeout: float = Field(
        default=15.0, gt=0, description="Timeout for token endpoint requests"
    )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached)."""
    return Settings()
