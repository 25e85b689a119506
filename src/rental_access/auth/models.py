"""
rental_access.auth.models

Auth domain models.

Responsibilities:
- Define the per-request authenticated identity (`Identity`).
- Carry provider output (`VerifiedSubject`) and cached role lookups (`RoleRecord`).
- Describe a verified ownership lookup (`OwnershipRecord`).
"""

from __future__ import annotations

from dataclasses import dataclass

from rental_access.auth.resources import ResourceType
from rental_access.auth.roles import Role


@dataclass(frozen=True, slots=True)
class VerifiedSubject:
    subject_id: str
    email: str = ""
    # Authenticator assurance level reported by the provider ("aal1", "aal2").
    assurance_level: str | None = None


@dataclass(frozen=True, slots=True)
class RoleRecord:
    # role=None means the subject has no stored role; coerced to the fallback later.
    role: str | None

    @property
    def resolved(self) -> bool:
        return self.role is not None


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Authenticated caller identity. Built fresh for every request and never persisted.

    `email` is for display and logging only; authorization uses `subject` and `role`.
    """

    subject: str
    email: str
    role: str
    role_resolved: bool = True
    assurance_level: str | None = None
    two_factor_enabled: bool = False
    two_factor_verified: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


@dataclass(frozen=True, slots=True)
class OwnershipRecord:
    resource_type: ResourceType
    resource_id: str
    owner_id: str


# --- Module Notes -----------------------------------------------------------
# Identity is written once to `request.state.identity` by the authentication gates
# and only read afterwards (the 2FA loader replaces it with an updated copy).
