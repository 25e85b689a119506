"""
rental_access.auth.roles

Role hierarchy and capability predicates.

Responsibilities:
- Rank every known role (higher = more privileged; unknown roles rank 0).
- Derive capability allow-lists from the hierarchy so ranks and lists cannot drift.

Pure functions over static configuration; no I/O.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from types import MappingProxyType


class Role(enum.StrEnum):
    admin = "admin"
    owner = "owner"
    agent = "agent"
    landlord = "landlord"
    property_manager = "property_manager"
    buyer = "buyer"
    renter = "renter"
    guest = "guest"


class Capability(enum.StrEnum):
    edit_properties = "edit_properties"
    review_applications = "review_applications"
    access_sensitive_data = "access_sensitive_data"
    admin_only = "admin_only"


ROLE_HIERARCHY: Mapping[str, int] = MappingProxyType(
    {
        Role.admin: 100,
        Role.owner: 80,
        Role.agent: 60,
        Role.landlord: 60,
        Role.property_manager: 60,
        Role.buyer: 20,
        Role.renter: 20,
        Role.guest: 10,
    }
)

# Minimum rank per capability. Allow-lists below are derived from these.
CAPABILITY_MIN_RANK: Mapping[Capability, int] = MappingProxyType(
    {
        Capability.edit_properties: 60,
        Capability.review_applications: 60,
        Capability.access_sensitive_data: 60,
        Capability.admin_only: 100,
    }
)


def rank_of(role: str | None) -> int:
    if role is None:
        return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_higher_or_equal_role(user_role: str | None, required_role: str | None) -> bool:
    return rank_of(user_role) >= rank_of(required_role)


def roles_with(capability: Capability) -> frozenset[str]:
    minimum = CAPABILITY_MIN_RANK[capability]
    return frozenset(str(role) for role, rank in ROLE_HIERARCHY.items() if rank >= minimum)


PROPERTY_EDIT_ROLES = roles_with(Capability.edit_properties)
APPLICATION_REVIEW_ROLES = roles_with(Capability.review_applications)
SENSITIVE_DATA_ROLES = roles_with(Capability.access_sensitive_data)
ADMIN_ONLY_ROLES = roles_with(Capability.admin_only)

# Blocklist for listing mutations; applied on top of the edit allow-list.
TENANT_ROLES: frozenset[str] = frozenset({Role.renter.value, Role.buyer.value})


def can_edit_properties(role: str | None) -> bool:
    return role in PROPERTY_EDIT_ROLES


def can_review_applications(role: str | None) -> bool:
    return role in APPLICATION_REVIEW_ROLES


def can_access_sensitive_data(role: str | None) -> bool:
    return role in SENSITIVE_DATA_ROLES


def is_admin_only(role: str | None) -> bool:
    return role in ADMIN_ONLY_ROLES


def is_tenant(role: str | None) -> bool:
    return role in TENANT_ROLES


# --- Module Notes -----------------------------------------------------------
# The route-level Role Gate (`auth.deps.require_roles`) does NOT use ranks: it is a
# literal membership test against the roles a route lists.
