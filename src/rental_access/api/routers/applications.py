"""
rental_access.api.routers.applications

Rental application endpoints.

Gate chains:
- submit: auth (any role may apply to an existing listing)
- read: auth -> ownership(application) (the applicant; admins bypass)
- review status: auth -> application-review guard
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from rental_access.api.deps import db_session
from rental_access.auth.deps import authenticate, require_ownership
from rental_access.auth.errors import not_found
from rental_access.auth.guards import require_application_review_access
from rental_access.auth.models import Identity
from rental_access.auth.resources import ResourceType
from rental_access.db.repositories.applications import ApplicationRepo
from rental_access.db.repositories.properties import PropertyRepo

router = APIRouter(prefix="/api/applications", tags=["applications"])


class ApplicationCreateRequest(BaseModel):
    property_id: str = Field(min_length=1, max_length=36)
    personal_info: dict[str, Any] = Field(default_factory=dict)


class ApplicationStatusRequest(BaseModel):
    status: Literal["under_review", "pending_verification", "approved", "rejected"]


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    user_id: str | None
    status: str
    previous_status: str | None


@router.post("", response_model=ApplicationResponse, status_code=HTTP_201_CREATED)
async def submit_application(
    body: ApplicationCreateRequest,
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
) -> ApplicationResponse:
    if await PropertyRepo(session).get(body.property_id) is None:
        raise not_found(ResourceType.property)
    app = await ApplicationRepo(session).create(
        property_id=body.property_id,
        user_id=identity.subject,
        personal_info=body.personal_info,
    )
    await session.commit()
    return ApplicationResponse.model_validate(app)


@router.get(
    "/{id}",
    response_model=ApplicationResponse,
    dependencies=[Depends(authenticate), Depends(require_ownership(ResourceType.application))],
)
async def get_application(
    id: str,  # noqa: A002
    session: AsyncSession = Depends(db_session),
) -> ApplicationResponse:
    app = await ApplicationRepo(session).get(id)
    if app is None:
        raise not_found(ResourceType.application)
    return ApplicationResponse.model_validate(app)


@router.patch(
    "/{id}/status",
    response_model=ApplicationResponse,
    dependencies=[Depends(authenticate), Depends(require_application_review_access)],
)
async def review_application(
    id: str,  # noqa: A002
    body: ApplicationStatusRequest,
    session: AsyncSession = Depends(db_session),
) -> ApplicationResponse:
    app = await ApplicationRepo(session).set_status(id, body.status)
    if app is None:
        raise not_found(ResourceType.application)
    await session.commit()
    return ApplicationResponse.model_validate(app)
