"""
rental_access.db.repositories.properties

Repository for `Property` listings.

Mutations take the caller's subject and apply it in the WHERE clause, so a listing
that changed hands after the ownership gate ran is not modified (0 rows).
Administrators pass `owner_id=None` to skip the owner predicate.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rental_access.db.models import Property


class PropertyRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        owner_id: str,
        title: str,
        address: str,
        city: str | None = None,
        price: Any = None,
    ) -> Property:
        prop = Property(owner_id=owner_id, title=title, address=address, city=city, price=price)
        self._session.add(prop)
        await self._session.flush()
        return prop

    async def get(self, property_id: str) -> Property | None:
        stmt = select(Property).where(Property.id == property_id, Property.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_active(self, *, city: str | None = None, limit: int = 100) -> list[Property]:
        stmt = select(Property).where(Property.deleted_at.is_(None))
        if city:
            stmt = stmt.where(Property.city.ilike(f"%{city}%"))
        stmt = stmt.order_by(Property.created_at.desc()).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def update_owned(
        self, property_id: str, *, owner_id: str | None, changes: dict[str, Any]
    ) -> bool:
        stmt = (
            update(Property)
            .where(Property.id == property_id, Property.deleted_at.is_(None))
            .values(**changes, updated_at=datetime.utcnow())
        )
        if owner_id is not None:
            stmt = stmt.where(Property.owner_id == owner_id)
        return (await self._session.execute(stmt)).rowcount > 0

    async def soft_delete_owned(self, property_id: str, *, owner_id: str | None) -> bool:
        now = datetime.utcnow()
        stmt = (
            update(Property)
            .where(Property.id == property_id, Property.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
        )
        if owner_id is not None:
            stmt = stmt.where(Property.owner_id == owner_id)
        return (await self._session.execute(stmt)).rowcount > 0
