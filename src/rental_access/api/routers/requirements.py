"""
rental_access.api.routers.requirements

Tenant requirement submissions.

Gate chain: optional auth. Anonymous callers are accepted; a signed-in caller's
submission is linked to their account. A bad token is treated as anonymous.
"""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from rental_access.api.deps import db_session
from rental_access.auth.deps import optional_authenticate
from rental_access.auth.models import Identity
from rental_access.db.repositories.requirements import RequirementRepo

router = APIRouter(prefix="/api/requirements", tags=["requirements"])


class RequirementRequest(BaseModel):
    contact_name: str = Field(min_length=1, max_length=256)
    contact_email: str = Field(min_length=3, max_length=320)
    budget_min: Decimal | None = Field(default=None, ge=0)
    budget_max: Decimal | None = Field(default=None, ge=0)
    locations: list[str] = Field(default_factory=list)
    additional_notes: str | None = Field(default=None, max_length=4000)


class RequirementResponse(BaseModel):
    id: str
    user_id: str | None


@router.post("", response_model=RequirementResponse, status_code=HTTP_201_CREATED)
async def submit_requirement(
    body: RequirementRequest,
    viewer: Identity | None = Depends(optional_authenticate),
    session: AsyncSession = Depends(db_session),
) -> RequirementResponse:
    # Accepted with or without an account; linked to the caller when signed in.
    req = await RequirementRepo(session).create(
        user_id=viewer.subject if viewer is not None else None,
        **body.model_dump(),
    )
    await session.commit()
    return RequirementResponse(id=req.id, user_id=req.user_id)
