"""
rental_access.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Authentication gate: bearer token -> `Identity` on `request.state.identity`.
- Optional authentication gate: same, but anonymous on any failure.
- Role gate and ownership gate factories.

Gates are attached in order through route `dependencies=[...]`; each one either
returns (call-through) or raises `GateError` (request terminated).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from rental_access.auth.errors import (
    GateError,
    IdentityProviderError,
    InvalidTokenError,
    PersistenceError,
    not_found,
    not_owner,
)
from rental_access.auth.interfaces import AccessStore, AuditLogger
from rental_access.auth.models import Identity, OwnershipRecord
from rental_access.auth.resolver import IdentityResolver
from rental_access.auth.resources import ResourceType
from rental_access.observability.logging import get_logger

log = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def resolver_from_app(request: Request) -> IdentityResolver:
    # Built on app startup in `rental_access.api.app.create_app`.
    return request.app.state.identity_resolver  # type: ignore[no-any-return]


def store_from_app(request: Request) -> AccessStore:
    return request.app.state.access_store  # type: ignore[no-any-return]


def audit_from_app(request: Request) -> AuditLogger:
    return request.app.state.audit_logger  # type: ignore[no-any-return]


def _bearer_token(creds: HTTPAuthorizationCredentials | None) -> str | None:
    if creds is None or not creds.credentials:
        return None
    return creds.credentials


def attach_identity(request: Request, identity: Identity) -> None:
    request.state.identity = identity
    structlog.contextvars.bind_contextvars(subject_id=identity.subject)


def current_identity(request: Request) -> Identity | None:
    return getattr(request.state, "identity", None)


async def authenticate(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    resolver: IdentityResolver = Depends(resolver_from_app),
) -> Identity:
    token = _bearer_token(creds)
    if token is None:
        raise GateError(HTTP_401_UNAUTHORIZED, "Access token required")

    try:
        identity = await resolver.resolve(token)
    except InvalidTokenError as e:
        log.info("token_rejected", reason=str(e))
        raise GateError(HTTP_401_UNAUTHORIZED, "Invalid or expired token") from e
    except (IdentityProviderError, PersistenceError) as e:
        log.error("authentication_failed", error_type=type(e).__name__)
        raise GateError(HTTP_500_INTERNAL_SERVER_ERROR, "Authentication failed") from e
    except Exception as e:
        log.exception("authentication_failed", error_type=type(e).__name__)
        raise GateError(HTTP_500_INTERNAL_SERVER_ERROR, "Authentication failed") from e

    if identity is None:
        raise GateError(HTTP_401_UNAUTHORIZED, "Access token required")
    attach_identity(request, identity)
    return identity


async def optional_authenticate(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    resolver: IdentityResolver = Depends(resolver_from_app),
) -> Identity | None:
    token = _bearer_token(creds)
    if token is None:
        return None

    try:
        identity = await resolver.resolve(token)
    except Exception as e:  # noqa: BLE001
        # Anonymous fallback: never surfaced to the client.
        log.debug("optional_auth_skipped", error_type=type(e).__name__)
        return None

    if identity is not None:
        attach_identity(request, identity)
    return identity


def require_identity(request: Request) -> Identity:
    # Used with use_cache=False so each gate sees the identity as currently attached.
    identity = current_identity(request)
    if identity is None:
        raise GateError(HTTP_401_UNAUTHORIZED, "Authentication required")
    return identity


def require_roles(*allowed: str) -> Callable[..., Identity]:
    allowed_set = frozenset(str(r) for r in allowed)

    def _dep(identity: Identity = Depends(require_identity, use_cache=False)) -> Identity:
        # Literal membership: a higher-ranked role that is not listed is still rejected,
        # admin included.
        if identity.role not in allowed_set:
            raise GateError(HTTP_403_FORBIDDEN, "Insufficient permissions")
        return identity

    return _dep


def require_ownership(resource_type: ResourceType) -> Callable[..., Awaitable[Identity]]:
    async def _dep(
        request: Request,
        identity: Identity = Depends(require_identity, use_cache=False),
        store: AccessStore = Depends(store_from_app),
    ) -> Identity:
        if identity.is_admin:
            return identity

        resource_id = request.path_params.get("id")
        if not resource_id:
            raise not_found(resource_type)

        try:
            owner_id = await store.get_resource_owner(resource_type, str(resource_id))
        except Exception as e:
            log.error(
                "ownership_check_failed",
                resource_type=str(resource_type),
                error_type=type(e).__name__,
            )
            raise GateError(HTTP_500_INTERNAL_SERVER_ERROR, "Failed to verify ownership") from e

        if owner_id is None:
            raise not_found(resource_type)
        if owner_id != identity.subject:
            raise not_owner()

        # Handlers reuse this instead of reading ownership a second time.
        request.state.ownership = OwnershipRecord(
            resource_type=resource_type,
            resource_id=str(resource_id),
            owner_id=owner_id,
        )
        return identity

    return _dep


# --- Module Notes -----------------------------------------------------------
# Ownership is a single read before the handler runs; handlers that mutate should use
# the conditional repository helpers (WHERE owner = :subject) to close the race.
