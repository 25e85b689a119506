"""
rental_access.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, identity provider API key).
- Reject unusable identity provider combinations at startup.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rental_access.auth.cache import CacheTTL
from rental_access.auth.roles import Role

_DEV_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RENTAL_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev tokens.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "rental-access"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080
    # Proxies whose X-Forwarded-For is trusted for the client IP recorded in audit rows.
    forwarded_allow_ips: str = "127.0.0.1"

    # Identity provider
    identity_provider: Literal["jwt", "supabase"] = "jwt"
    jwt_alg: str = "HS256"
    jwt_issuer: str = "rental-access"
    jwt_audience: str = "rental-api"
    jwt_secret: str = Field(default=_DEV_SECRET, repr=False)
    supabase_url: str = ""
    supabase_anon_key: str = Field(default="", repr=False)
    identity_timeout_s: float = 5.0

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./rental.db"

    # Role resolution
    role_cache_capacity: int = Field(default=100, ge=1)
    role_cache_ttl_ms: int = Field(default=CacheTTL.USER_ROLE, ge=1)
    # Role given to subjects with no stored role. "guest" fails closed on every gate.
    fallback_role: Role = Role.renter

    @model_validator(mode="after")
    def _check_identity_provider(self) -> Settings:
        if self.identity_provider == "supabase" and not (self.supabase_url and self.supabase_anon_key):
            raise ValueError("supabase identity provider needs RENTAL_SUPABASE_URL and RENTAL_SUPABASE_ANON_KEY")
        if self.env == "prod" and self.identity_provider == "jwt" and self.jwt_secret == _DEV_SECRET:
            raise ValueError("RENTAL_JWT_SECRET must be set in prod")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Every env var is prefixed with RENTAL_ (e.g. RENTAL_FALLBACK_ROLE=guest).
