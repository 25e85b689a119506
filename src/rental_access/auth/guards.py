"""
rental_access.auth.guards

Composite access policies for listings, applications and step-up auth.

Responsibilities:
- Property-edit and application-review guards (capability allow-lists + audit on denial).
- Tenant blocklist for listing mutations (additive to the edit guard).
- Two-factor step-up guard and the loader that fills in the 2FA flags.
"""

from __future__ import annotations

from dataclasses import replace

from fastapi import Depends, Request
from starlette.status import HTTP_403_FORBIDDEN, HTTP_500_INTERNAL_SERVER_ERROR

from rental_access.auth import roles
from rental_access.auth.audit import request_context
from rental_access.auth.deps import (
    attach_identity,
    audit_from_app,
    require_identity,
    store_from_app,
)
from rental_access.auth.errors import GateError
from rental_access.auth.interfaces import AccessStore, AuditLogger
from rental_access.auth.models import Identity
from rental_access.auth.roles import Role
from rental_access.observability.logging import get_logger

log = get_logger(__name__)

_PROPERTY_EDIT_DENIALS: dict[str, str] = {
    Role.renter: "Renters cannot create or edit property listings. "
    "Contact the listing agent or landlord instead.",
    Role.buyer: "Buyers cannot create or edit property listings. "
    "Contact the listing agent to ask about this property.",
    Role.guest: "Guest accounts cannot edit property listings. "
    "Upgrade to a landlord, agent or property manager account.",
}

_APPLICATION_REVIEW_DENIALS: dict[str, str] = {
    Role.renter: "Renters cannot review rental applications.",
    Role.buyer: "Buyers cannot review rental applications.",
    Role.guest: "Guest accounts cannot review rental applications.",
}

TENANT_EDIT_DENIAL = (
    "Tenants cannot modify property listings. Contact the property owner or listing agent."
)


def _deny(
    request: Request,
    audit: AuditLogger,
    identity: Identity,
    *,
    event_kind: str,
    message: str,
    include_route: bool = False,
) -> GateError:
    detail = {"reason": message, "attempted_role": identity.role}
    ctx = request_context(request)
    if include_route:
        detail.update(path=ctx["path"], method=ctx["method"])
    try:
        audit.log_security_event(
            subject_id=identity.subject,
            event_kind=event_kind,
            success=False,
            detail=detail,
            request_context=ctx,
        )
    except Exception as e:  # noqa: BLE001
        log.warning("audit_emit_failed", event_kind=event_kind, error_type=type(e).__name__)
    return GateError(HTTP_403_FORBIDDEN, message)


async def require_property_edit_access(
    request: Request,
    identity: Identity = Depends(require_identity, use_cache=False),
    audit: AuditLogger = Depends(audit_from_app),
) -> Identity:
    if roles.can_edit_properties(identity.role):
        return identity
    message = _PROPERTY_EDIT_DENIALS.get(
        identity.role,
        f"Your role ({identity.role}) does not have permission to create or edit properties.",
    )
    raise _deny(request, audit, identity, event_kind="property_edit_denied", message=message)


async def require_application_review_access(
    request: Request,
    identity: Identity = Depends(require_identity, use_cache=False),
    audit: AuditLogger = Depends(audit_from_app),
) -> Identity:
    if roles.can_review_applications(identity.role):
        return identity
    message = _APPLICATION_REVIEW_DENIALS.get(
        identity.role,
        f"Your role ({identity.role}) does not have permission to review applications.",
    )
    raise _deny(request, audit, identity, event_kind="application_review_denied", message=message)


async def prevent_tenant_edit(
    request: Request,
    identity: Identity = Depends(require_identity, use_cache=False),
    audit: AuditLogger = Depends(audit_from_app),
) -> Identity:
    if not roles.is_tenant(identity.role):
        return identity
    raise _deny(
        request,
        audit,
        identity,
        event_kind="tenant_edit_blocked",
        message=TENANT_EDIT_DENIAL,
        include_route=True,
    )


async def attach_two_factor_state(
    request: Request,
    identity: Identity = Depends(require_identity, use_cache=False),
    store: AccessStore = Depends(store_from_app),
) -> Identity:
    try:
        enabled = await store.get_two_factor_enabled(identity.subject)
    except Exception as e:
        log.error("two_factor_lookup_failed", error_type=type(e).__name__)
        raise GateError(HTTP_500_INTERNAL_SERVER_ERROR, "Authentication failed") from e

    updated = replace(
        identity,
        two_factor_enabled=enabled,
        two_factor_verified=identity.assurance_level == "aal2",
    )
    attach_identity(request, updated)
    return updated


def require_two_factor(identity: Identity = Depends(require_identity, use_cache=False)) -> Identity:
    if identity.two_factor_enabled and not identity.two_factor_verified:
        raise GateError(
            HTTP_403_FORBIDDEN,
            "Two-factor authentication required",
            requiresTwoFactor=True,
        )
    return identity


# --- Module Notes -----------------------------------------------------------
# Guards that audit are coroutines: the database audit logger schedules its write on
# the running event loop, which threadpool-run sync dependencies do not have.
# Capability checks go through the `roles` module (not imported names) so policy can
# be swapped at runtime in tests.
