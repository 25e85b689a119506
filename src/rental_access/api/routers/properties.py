"""
rental_access.api.routers.properties

Property listing endpoints.

Gate chains:
- list: optional auth (marks the caller's own listings)
- create: auth -> property-edit guard -> tenant blocklist
- update: same + ownership(property)
- delete: same + 2FA step-up
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from rental_access.api.deps import db_session
from rental_access.auth.deps import authenticate, optional_authenticate, require_ownership
from rental_access.auth.errors import lost_ownership, not_found
from rental_access.auth.guards import (
    attach_two_factor_state,
    prevent_tenant_edit,
    require_property_edit_access,
    require_two_factor,
)
from rental_access.auth.models import Identity
from rental_access.auth.resources import ResourceType
from rental_access.db.repositories.properties import PropertyRepo

router = APIRouter(prefix="/api/properties", tags=["properties"])

_EDIT_GATES = [
    Depends(authenticate),
    Depends(require_property_edit_access),
    Depends(prevent_tenant_edit),
]
_OWNED_EDIT_GATES = [*_EDIT_GATES, Depends(require_ownership(ResourceType.property))]


class PropertyCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    address: str = Field(min_length=1, max_length=512)
    city: str | None = Field(default=None, max_length=128)
    price: Decimal | None = Field(default=None, ge=0)


class PropertyUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=256)
    address: str | None = Field(default=None, min_length=1, max_length=512)
    city: str | None = Field(default=None, max_length=128)
    price: Decimal | None = Field(default=None, ge=0)
    status: Literal["active", "pending", "rented", "inactive"] | None = None


class PropertyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str | None
    title: str
    address: str
    city: str | None
    price: Decimal | None
    status: str
    is_owner: bool = False


@router.get("", response_model=list[PropertyResponse])
async def list_properties(
    city: str | None = None,
    viewer: Identity | None = Depends(optional_authenticate),
    session: AsyncSession = Depends(db_session),
) -> list[PropertyResponse]:
    viewer_id = viewer.subject if viewer is not None else None
    return [
        PropertyResponse.model_validate(p).model_copy(
            update={"is_owner": viewer_id is not None and p.owner_id == viewer_id}
        )
        for p in await PropertyRepo(session).list_active(city=city)
    ]


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=HTTP_201_CREATED,
    dependencies=_EDIT_GATES,
)
async def create_property(
    body: PropertyCreateRequest,
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
) -> PropertyResponse:
    prop = await PropertyRepo(session).create(owner_id=identity.subject, **body.model_dump())
    await session.commit()
    return PropertyResponse.model_validate(prop).model_copy(update={"is_owner": True})


@router.patch("/{id}", response_model=PropertyResponse, dependencies=_OWNED_EDIT_GATES)
async def update_property(
    id: str,  # noqa: A002 - path parameter name is read by the ownership gate
    body: PropertyUpdateRequest,
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
) -> PropertyResponse:
    repo = PropertyRepo(session)
    changes = body.model_dump(exclude_unset=True)
    if changes:
        owner_filter = None if identity.is_admin else identity.subject
        if not await repo.update_owned(id, owner_id=owner_filter, changes=changes):
            await _raise_lost_ownership(repo, id)
        await session.commit()

    prop = await repo.get(id)
    if prop is None:
        raise not_found(ResourceType.property)
    return PropertyResponse.model_validate(prop).model_copy(
        update={"is_owner": prop.owner_id == identity.subject}
    )


@router.delete(
    "/{id}",
    status_code=HTTP_204_NO_CONTENT,
    dependencies=[
        *_OWNED_EDIT_GATES,
        Depends(attach_two_factor_state),
        Depends(require_two_factor),
    ],
)
async def delete_property(
    id: str,  # noqa: A002
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
) -> None:
    repo = PropertyRepo(session)
    owner_filter = None if identity.is_admin else identity.subject
    if not await repo.soft_delete_owned(id, owner_id=owner_filter):
        await _raise_lost_ownership(repo, id)
    await session.commit()


async def _raise_lost_ownership(repo: PropertyRepo, property_id: str) -> None:
    # The conditional write matched nothing: the listing vanished or changed owner
    # after the ownership gate read it.
    still_exists = await repo.get(property_id) is not None
    raise lost_ownership(ResourceType.property, still_exists=still_exists)
