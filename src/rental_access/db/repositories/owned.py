"""
rental_access.db.repositories.owned

Owner-conditional mutations shared by the owned-record endpoints
(reviews, favorites, saved searches, inquiries), plus the existence check used
to tell "deleted meanwhile" from "changed owner meanwhile" when a write matches
no rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from rental_access.auth.resources import ResourceType
from rental_access.db.base import is_soft_deletable
from rental_access.db.repositories.access import OWNER_COLUMNS, owner_lookup


class OwnedRecordRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, resource_type: ResourceType, record_id: str) -> bool:
        # Soft-deleted rows do not count.
        row = (await self._session.execute(owner_lookup(resource_type, record_id))).first()
        return row is not None

    async def remove(
        self, resource_type: ResourceType, record_id: str, *, owner_id: str | None
    ) -> bool:
        # Soft-deletable tables keep the row; others are deleted outright.
        model, column = OWNER_COLUMNS[resource_type]
        if is_soft_deletable(model):
            stmt: Any = (
                update(model)
                .where(model.id == record_id, model.deleted_at.is_(None))  # type: ignore[attr-defined]
                .values(deleted_at=datetime.utcnow())
            )
        else:
            stmt = delete(model).where(model.id == record_id)  # type: ignore[attr-defined]
        if owner_id is not None:
            stmt = stmt.where(column == owner_id)
        return (await self._session.execute(stmt)).rowcount > 0

    async def set_status(
        self, resource_type: ResourceType, record_id: str, status: str, *, owner_id: str | None
    ) -> bool:
        model, column = OWNER_COLUMNS[resource_type]
        stmt = (
            update(model)
            .where(model.id == record_id)  # type: ignore[attr-defined]
            .values(status=status, updated_at=datetime.utcnow())
        )
        if is_soft_deletable(model):
            stmt = stmt.where(model.deleted_at.is_(None))  # type: ignore[attr-defined]
        if owner_id is not None:
            stmt = stmt.where(column == owner_id)
        return (await self._session.execute(stmt)).rowcount > 0
