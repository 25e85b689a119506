from __future__ import annotations

from datetime import timedelta

import httpx
import pytest

from rental_access.auth.errors import IdentityProviderError, InvalidTokenError
from rental_access.auth.jwt import JwtConfig, issue_token
from rental_access.auth.providers import JwtIdentityProvider, SupabaseIdentityProvider

CFG = JwtConfig(alg="HS256", issuer="rental-access", audience="rental-api", secret="test-secret")


@pytest.mark.asyncio
async def test_jwt_provider_accepts_valid_token() -> None:
    token = issue_token(cfg=CFG, subject="u1", email="u1@example.com", assurance_level="aal2")
    subject = await JwtIdentityProvider(CFG).verify_token(token)
    assert (subject.subject_id, subject.email, subject.assurance_level) == (
        "u1",
        "u1@example.com",
        "aal2",
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token",
    [
        issue_token(cfg=CFG, subject="u1", ttl=timedelta(seconds=-30)),
        issue_token(cfg=JwtConfig("HS256", "rental-access", "rental-api", "other"), subject="u1"),
        issue_token(cfg=JwtConfig("HS256", "rental-access", "elsewhere", "test-secret"), subject="u1"),
        "not-a-jwt",
    ],
    ids=["expired", "wrong-secret", "wrong-audience", "garbage"],
)
async def test_jwt_provider_rejects_bad_tokens(token: str) -> None:
    with pytest.raises(InvalidTokenError):
        await JwtIdentityProvider(CFG).verify_token(token)


def _supabase(handler) -> SupabaseIdentityProvider:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://auth.test")
    return SupabaseIdentityProvider(base_url="https://auth.test", api_key="anon", http=http)


@pytest.mark.asyncio
async def test_supabase_provider_returns_user_and_token_aal() -> None:
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["apikey"] = request.headers["apikey"]
        return httpx.Response(200, json={"id": "u9", "email": "u9@example.com"})

    token = issue_token(cfg=CFG, subject="u9", assurance_level="aal2")
    subject = await _supabase(handler).verify_token(token)

    assert seen == {"path": "/auth/v1/user", "apikey": "anon"}
    assert subject.subject_id == "u9"
    assert subject.assurance_level == "aal2"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_supabase_rejection_is_invalid_token(status: int) -> None:
    provider = _supabase(lambda _: httpx.Response(status, json={"msg": "bad jwt"}))
    with pytest.raises(InvalidTokenError):
        await provider.verify_token("tok")


@pytest.mark.asyncio
async def test_supabase_outage_is_provider_fault() -> None:
    provider = _supabase(lambda _: httpx.Response(503))
    with pytest.raises(IdentityProviderError):
        await provider.verify_token("tok")

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(IdentityProviderError):
        await _supabase(unreachable).verify_token("tok")


@pytest.mark.asyncio
async def test_supabase_response_without_user_id_is_rejected() -> None:
    provider = _supabase(lambda _: httpx.Response(200, json={}))
    with pytest.raises(InvalidTokenError):
        await provider.verify_token("tok")
