"""
rental_access.auth.resolver

Bearer token -> `Identity` resolution.

Responsibilities:
- Verify the token with the identity provider.
- Resolve the subject's application role: role cache first, store on miss.
- Keep "no stored role" distinct until the `Identity` is built, then apply the fallback role.
"""

from __future__ import annotations

from rental_access.auth.cache import CacheTTL, LRUCache, role_cache_key
from rental_access.auth.interfaces import AccessStore, IdentityProvider
from rental_access.auth.models import Identity, RoleRecord
from rental_access.auth.roles import Role
from rental_access.observability.logging import get_logger

log = get_logger(__name__)


class IdentityResolver:
    def __init__(
        self,
        *,
        provider: IdentityProvider,
        store: AccessStore,
        cache: LRUCache,
        role_ttl_ms: float = CacheTTL.USER_ROLE,
        fallback_role: str = Role.renter,
    ) -> None:
        self._provider = provider
        self._store = store
        self._cache = cache
        self._role_ttl_ms = role_ttl_ms
        self._fallback_role = str(fallback_role)

    @property
    def cache(self) -> LRUCache:
        return self._cache

    async def resolve(self, token: str | None) -> Identity | None:
        """
        Returns None when no token was supplied.

        Raises `InvalidTokenError` for rejected tokens and lets provider/store
        faults propagate (`IdentityProviderError`, `PersistenceError`).
        """
        if not token:
            return None

        subject = await self._provider.verify_token(token)
        record = await self.role_for(subject.subject_id)
        return Identity(
            subject=subject.subject_id,
            email=subject.email,
            role=record.role if record.role is not None else self._fallback_role,
            role_resolved=record.resolved,
            assurance_level=subject.assurance_level,
        )

    async def role_for(self, subject_id: str) -> RoleRecord:
        key = role_cache_key(subject_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        role = await self._store.get_user_role(subject_id)
        record = RoleRecord(role=role or None)
        if not record.resolved:
            log.info("role_unresolved", subject_id=subject_id, fallback_role=self._fallback_role)
        # Cached for the full TTL whether resolved or not; `forget` clears it early.
        self._cache.set(key, record, self._role_ttl_ms)
        return record

    def forget(self, subject_id: str) -> None:
        self._cache.delete(role_cache_key(subject_id))


# --- Module Notes -----------------------------------------------------------
# Store faults are not cached and not coerced to the fallback role: the next request
# queries the store again, and the current one fails with 500.
