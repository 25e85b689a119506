"""
rental_access.auth.interfaces

Collaborator interfaces consumed by the access-control core.

Responsibilities:
- Identity provider: token -> verified subject.
- Access store: subject role, resource owner, two-factor enrollment.
- Audit logger: fire-and-forget security events.
"""

from __future__ import annotations

from typing import Any, Protocol

from rental_access.auth.models import VerifiedSubject
from rental_access.auth.resources import ResourceType


class IdentityProvider(Protocol):
    async def verify_token(self, token: str) -> VerifiedSubject:
        """
        Raise `InvalidTokenError` when the provider rejects the token and
        `IdentityProviderError` when the provider cannot be reached.
        """
        ...

    async def aclose(self) -> None: ...


class AccessStore(Protocol):
    # All methods raise `PersistenceError` on driver faults.

    async def get_user_role(self, subject_id: str) -> str | None: ...

    async def get_resource_owner(
        self, resource_type: ResourceType, resource_id: str
    ) -> str | None: ...

    async def get_two_factor_enabled(self, subject_id: str) -> bool: ...


class AuditLogger(Protocol):
    def log_security_event(
        self,
        *,
        subject_id: str | None,
        event_kind: str,
        success: bool,
        detail: dict[str, Any],
        request_context: dict[str, Any],
    ) -> None:
        """Must not raise and must not block the caller."""
        ...


# --- Module Notes -----------------------------------------------------------
# Concrete implementations: `auth.providers`, `db.repositories.access`, `auth.audit`.
