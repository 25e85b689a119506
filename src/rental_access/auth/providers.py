"""
rental_access.auth.providers

Identity provider implementations.

Responsibilities:
- `JwtIdentityProvider`: local HS256 verification (dev/test, shared-secret IdPs).
- `SupabaseIdentityProvider`: remote verification against the hosted auth API.
- Map provider outcomes onto `InvalidTokenError` (401) vs `IdentityProviderError` (500).
"""

from __future__ import annotations

import httpx
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from rental_access.auth.errors import IdentityProviderError, InvalidTokenError
from rental_access.auth.interfaces import IdentityProvider
from rental_access.auth.jwt import (
    JwtConfig,
    JwtValidationError,
    decode_and_validate,
    unverified_claims,
)
from rental_access.auth.models import VerifiedSubject
from rental_access.observability.logging import get_logger
from rental_access.settings import Settings

log = get_logger(__name__)


def jwt_config(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.jwt_alg,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        secret=settings.jwt_secret,
    )


class JwtIdentityProvider:
    def __init__(self, cfg: JwtConfig) -> None:
        self._cfg = cfg

    async def verify_token(self, token: str) -> VerifiedSubject:
        try:
            payload = decode_and_validate(cfg=self._cfg, token=token)
        except JwtValidationError as e:
            raise InvalidTokenError(str(e)) from e

        subject = str(payload.get("sub") or "")
        if not subject:
            raise InvalidTokenError("token has no subject")
        return VerifiedSubject(
            subject_id=subject,
            email=str(payload.get("email") or ""),
            assurance_level=payload.get("aal"),
        )

    async def aclose(self) -> None:
        return None


class SupabaseIdentityProvider:
    """
    Verifies tokens by asking the hosted auth service who they belong to
    (`GET /auth/v1/user`). The service is the only authority on revocation.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_s: float = 5.0,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout_s)

    async def verify_token(self, token: str) -> VerifiedSubject:
        try:
            r = await self._http.get(
                "/auth/v1/user",
                headers={"apikey": self._api_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise IdentityProviderError(type(e).__name__) from e

        if r.status_code in (HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN):
            raise InvalidTokenError(f"provider rejected token ({r.status_code})")
        if r.is_error:
            log.warning("identity_provider_error", status_code=r.status_code)
            raise IdentityProviderError(f"provider returned {r.status_code}")

        try:
            user = r.json()
        except ValueError as e:
            raise IdentityProviderError("provider returned a non-JSON body") from e
        subject = str((user or {}).get("id") or "")
        if not subject:
            raise InvalidTokenError("provider returned no user")

        return VerifiedSubject(
            subject_id=subject,
            email=str(user.get("email") or ""),
            assurance_level=unverified_claims(token).get("aal"),
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()


def build_identity_provider(settings: Settings) -> IdentityProvider:
    if settings.identity_provider == "supabase":
        return SupabaseIdentityProvider(
            base_url=settings.supabase_url,
            api_key=settings.supabase_anon_key,
            timeout_s=settings.identity_timeout_s,
        )
    return JwtIdentityProvider(jwt_config(settings))


# --- Module Notes -----------------------------------------------------------
# Provider calls are bounded by the httpx timeout and never retried; a fault fails the gate.
