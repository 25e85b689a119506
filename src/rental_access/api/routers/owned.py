"""
rental_access.api.routers.owned

Small owner-only endpoints for reviews, favorites, saved searches and inquiries.

Gate chain for every route: auth -> ownership(<resource type>).

Writes repeat the owner predicate, so a record that changed hands after the gate
read it is not touched; such a write answers 403, a record deleted meanwhile 404.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_204_NO_CONTENT

from rental_access.api.deps import db_session
from rental_access.auth.deps import authenticate, require_ownership
from rental_access.auth.errors import lost_ownership
from rental_access.auth.models import Identity
from rental_access.auth.resources import ResourceType
from rental_access.db.repositories.owned import OwnedRecordRepo

router = APIRouter(prefix="/api", tags=["owned"])


class InquiryStatusRequest(BaseModel):
    status: Literal["pending", "responded", "closed"]


def _gates(resource_type: ResourceType) -> list:
    return [Depends(authenticate), Depends(require_ownership(resource_type))]


async def _raise_lost_ownership(
    repo: OwnedRecordRepo, resource_type: ResourceType, record_id: str
) -> None:
    raise lost_ownership(resource_type, still_exists=await repo.exists(resource_type, record_id))


async def _remove(
    resource_type: ResourceType, record_id: str, identity: Identity, session: AsyncSession
) -> None:
    repo = OwnedRecordRepo(session)
    owner_filter = None if identity.is_admin else identity.subject
    if not await repo.remove(resource_type, record_id, owner_id=owner_filter):
        await _raise_lost_ownership(repo, resource_type, record_id)
    await session.commit()


@router.delete(
    "/reviews/{id}", status_code=HTTP_204_NO_CONTENT, dependencies=_gates(ResourceType.review)
)
async def delete_review(
    id: str,  # noqa: A002
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
) -> None:
    await _remove(ResourceType.review, id, identity, session)


@router.delete(
    "/favorites/{id}", status_code=HTTP_204_NO_CONTENT, dependencies=_gates(ResourceType.favorite)
)
async def delete_favorite(
    id: str,  # noqa: A002
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
) -> None:
    await _remove(ResourceType.favorite, id, identity, session)


@router.delete(
    "/saved-searches/{id}",
    status_code=HTTP_204_NO_CONTENT,
    dependencies=_gates(ResourceType.saved_search),
)
async def delete_saved_search(
    id: str,  # noqa: A002
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
) -> None:
    await _remove(ResourceType.saved_search, id, identity, session)


@router.patch("/inquiries/{id}/status", dependencies=_gates(ResourceType.inquiry))
async def update_inquiry_status(
    id: str,  # noqa: A002
    body: InquiryStatusRequest,
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
) -> dict[str, str]:
    repo = OwnedRecordRepo(session)
    owner_filter = None if identity.is_admin else identity.subject
    if not await repo.set_status(ResourceType.inquiry, id, body.status, owner_id=owner_filter):
        await _raise_lost_ownership(repo, ResourceType.inquiry, id)
    await session.commit()
    return {"id": id, "status": body.status}
