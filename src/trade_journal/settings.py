"""
trade_journal.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `TJ_`); defaults are safe for local dev.
    """

    model_config = SettingsConfigDict(env_prefix="TJ_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and the dev token route.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "trade-journal"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "trade-journal"
    jwt_audience: str = "trade-journal-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./trade_journal.db"

    # Mentoring / sharing
    permission_cache_ttl_seconds: float = Field(default=300.0, gt=0)
    invite_ttl_days: int = Field(default=7, ge=1)
    share_link_ttl_days: int = Field(default=3, ge=1)

    # Analytics
    risk_free_rate: float = 0.02
    leaderboard_limit: int = Field(default=100, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Routers read settings through `api.deps.settings_dep`, which returns the instance
# the app was created with so tests can override values without touching env vars.
