"""
rental_access.db.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Build the engine from `RENTAL_DATABASE_URL`.
- On SQLite, enforce foreign keys per connection so ownership rows cascade
  with their owners the same way they do on Postgres.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rental_access.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    url = settings.database_url
    if url.startswith("sqlite"):
        engine = create_async_engine(url)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    # pool_pre_ping detects connections dropped by the server between requests.
    return create_async_engine(url, pool_pre_ping=True)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Gates and handlers read ORM objects after commit; keep them loaded.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
