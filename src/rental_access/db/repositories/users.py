from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from rental_access.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        email: str,
        role: str | None = "renter",
        user_id: str | None = None,
        full_name: str | None = None,
        two_factor_enabled: bool = False,
    ) -> User:
        user = User(
            email=email,
            role=role,
            full_name=full_name,
            two_factor_enabled=two_factor_enabled,
        )
        if user_id is not None:
            user.id = user_id
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: str) -> User | None:
        return await self._session.get(User, user_id)

    async def set_role(self, user_id: str, role: str) -> bool:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(role=role, updated_at=datetime.utcnow())
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0
