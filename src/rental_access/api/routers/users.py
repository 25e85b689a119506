"""
rental_access.api.routers.users

User profile and role administration endpoints.

Gate chains:
- read profile: auth -> ownership(user) (a user owns their own record; admins bypass)
- change role: auth -> role gate (admin) -> 2FA state -> 2FA step-up

A role change drops the target's cached role so it applies on their next request.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from rental_access.api.deps import db_session
from rental_access.auth.audit import request_context
from rental_access.auth.deps import (
    audit_from_app,
    authenticate,
    require_ownership,
    require_roles,
    resolver_from_app,
)
from rental_access.auth.errors import not_found
from rental_access.auth.guards import attach_two_factor_state, require_two_factor
from rental_access.auth.interfaces import AuditLogger
from rental_access.auth.models import Identity
from rental_access.auth.resolver import IdentityResolver
from rental_access.auth.resources import ResourceType
from rental_access.auth.roles import Role
from rental_access.db.repositories.users import UserRepo

router = APIRouter(prefix="/api/users", tags=["users"])


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str | None
    role: str | None
    two_factor_enabled: bool


class RoleChangeRequest(BaseModel):
    role: Role


@router.get(
    "/{id}",
    response_model=UserResponse,
    dependencies=[Depends(authenticate), Depends(require_ownership(ResourceType.user))],
)
async def get_user(
    id: str,  # noqa: A002
    session: AsyncSession = Depends(db_session),
) -> UserResponse:
    user = await UserRepo(session).get(id)
    if user is None:
        raise not_found(ResourceType.user)
    return UserResponse.model_validate(user)


@router.patch(
    "/{id}/role",
    response_model=UserResponse,
    dependencies=[
        Depends(authenticate),
        Depends(require_roles(Role.admin)),
        Depends(attach_two_factor_state),
        Depends(require_two_factor),
    ],
)
async def change_user_role(
    request: Request,
    id: str,  # noqa: A002
    body: RoleChangeRequest,
    identity: Identity = Depends(authenticate),
    session: AsyncSession = Depends(db_session),
    resolver: IdentityResolver = Depends(resolver_from_app),
    audit: AuditLogger = Depends(audit_from_app),
) -> UserResponse:
    repo = UserRepo(session)
    if not await repo.set_role(id, body.role):
        raise not_found(ResourceType.user)
    await session.commit()
    # The new role takes effect on the target's next request, not after the cache TTL.
    resolver.forget(id)

    audit.log_security_event(
        subject_id=identity.subject,
        event_kind="role_change",
        success=True,
        detail={"resource_type": "user", "resource_id": id, "new_role": str(body.role)},
        request_context=request_context(request),
    )
    user = await repo.get(id)
    if user is None:
        raise not_found(ResourceType.user)
    return UserResponse.model_validate(user)
