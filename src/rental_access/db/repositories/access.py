"""
rental_access.db.repositories.access

SQL implementation of the access store consumed by the auth gates.

Responsibilities:
- Map each protected resource type to the column that identifies its owner.
- Look up subject roles, resource owners and two-factor enrollment.
- Convert driver errors into `PersistenceError` (never leak driver text upward).
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import InstrumentedAttribute

from rental_access.auth.errors import PersistenceError
from rental_access.auth.resources import ResourceType
from rental_access.db.base import Base, is_soft_deletable
from rental_access.db.models import (
    Application,
    Favorite,
    Inquiry,
    Property,
    Review,
    SavedSearch,
    User,
)

OWNER_COLUMNS: dict[ResourceType, tuple[type[Base], InstrumentedAttribute[str | None]]] = {
    ResourceType.property: (Property, Property.owner_id),
    ResourceType.application: (Application, Application.user_id),
    ResourceType.review: (Review, Review.user_id),
    ResourceType.inquiry: (Inquiry, Inquiry.agent_id),
    ResourceType.saved_search: (SavedSearch, SavedSearch.user_id),
    ResourceType.favorite: (Favorite, Favorite.user_id),
    # A user owns their own record.
    ResourceType.user: (User, User.id),
}


def owner_lookup(resource_type: ResourceType, resource_id: str):
    model, column = OWNER_COLUMNS[resource_type]
    stmt = select(column).where(model.id == resource_id)  # type: ignore[attr-defined]
    if is_soft_deletable(model):
        stmt = stmt.where(model.deleted_at.is_(None))  # type: ignore[attr-defined]
    return stmt


class SqlAccessStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_user_role(self, subject_id: str) -> str | None:
        try:
            async with self._session_factory() as session:
                stmt = select(User.role).where(User.id == subject_id)
                return (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError("role lookup failed") from e

    async def get_resource_owner(
        self, resource_type: ResourceType, resource_id: str
    ) -> str | None:
        try:
            async with self._session_factory() as session:
                row = (await session.execute(owner_lookup(resource_type, resource_id))).first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"{resource_type} owner lookup failed") from e
        if row is None:
            return None
        # An existing row with a NULL owner column is owned by nobody; treat as empty id.
        return row[0] or ""

    async def get_two_factor_enabled(self, subject_id: str) -> bool:
        try:
            async with self._session_factory() as session:
                stmt = select(User.two_factor_enabled).where(User.id == subject_id)
                return bool((await session.execute(stmt)).scalar_one_or_none())
        except SQLAlchemyError as e:
            raise PersistenceError("two-factor lookup failed") from e


# --- Module Notes -----------------------------------------------------------
# Every call opens its own short session; the gates run before the handler's session
# is used and must not hold it open across the handler.
