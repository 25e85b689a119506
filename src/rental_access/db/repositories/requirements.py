from __future__ import annotations

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from rental_access.db.models import Requirement


class RequirementRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: str | None,
        contact_name: str,
        contact_email: str,
        budget_min: Decimal | None = None,
        budget_max: Decimal | None = None,
        locations: list[str] | None = None,
        additional_notes: str | None = None,
    ) -> Requirement:
        req = Requirement(
            user_id=user_id,
            contact_name=contact_name,
            contact_email=contact_email,
            budget_min=budget_min,
            budget_max=budget_max,
            locations=locations or [],
            additional_notes=additional_notes,
        )
        self._session.add(req)
        await self._session.flush()
        return req
