"""
target_gate.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings for the API, auth, persistence and gate metadata.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TGATE_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev tokens.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "target-gate"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth. Token subjects are caller addresses.
    jwt_alg: str = "HS256"
    jwt_issuer: str = "target-gate"
    jwt_audience: str = "target-gate-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./target_gate.db"

    # Advertised through the metadata query so orchestrators can pick compatible gates.
    gate_name: str = "TargetedFulfillerGate"
    extra_data_schema_id: int = Field(default=1, ge=0)
    extra_data_schema_version: str = "1"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Changing `extra_data_schema_id` or the version is a wire-contract change for orchestrators.
