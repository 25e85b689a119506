"""
rental_access.api.routers.dev_auth

Local token minting for dev/test with the JWT identity provider.
Unavailable (404) in prod and when a hosted identity provider is configured.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND

from rental_access.api.deps import settings_from_app
from rental_access.auth.errors import GateError
from rental_access.auth.jwt import issue_token
from rental_access.auth.providers import jwt_config
from rental_access.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=64)
    email: str = Field(default="", max_length=320)
    assurance_level: Literal["aal1", "aal2"] = "aal1"
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_from_app),
) -> DevTokenResponse:
    # Only meaningful for the local JWT provider; roles always come from the users table.
    if settings.env == "prod" or settings.identity_provider != "jwt":
        raise GateError(HTTP_404_NOT_FOUND, "Not found")

    token = issue_token(
        cfg=jwt_config(settings),
        subject=body.subject,
        email=body.email,
        assurance_level=body.assurance_level,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
