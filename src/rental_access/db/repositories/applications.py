from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rental_access.db.models import Application


class ApplicationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, *, property_id: str, user_id: str, personal_info: dict[str, Any]
    ) -> Application:
        app = Application(property_id=property_id, user_id=user_id, personal_info=personal_info)
        self._session.add(app)
        await self._session.flush()
        return app

    async def get(self, application_id: str) -> Application | None:
        return await self._session.get(Application, application_id)

    async def set_status(self, application_id: str, status: str) -> Application | None:
        app = await self._session.get(Application, application_id, with_for_update=True)
        if app is None:
            return None
        app.previous_status = app.status
        app.status = status
        app.updated_at = datetime.utcnow()
        return app
