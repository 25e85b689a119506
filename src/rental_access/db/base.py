"""
rental_access.db.base

Declarative base and shared column mixins.

Responsibilities:
- Provide the declarative `Base` with a stable constraint naming convention
  (Alembic autogenerate diffs stay clean across backends).
- Provide `SoftDeletable` for tables whose rows are hidden rather than removed.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class SoftDeletable:
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)


def is_soft_deletable(model: type[Base]) -> bool:
    return issubclass(model, SoftDeletable)


# --- Module Notes -----------------------------------------------------------
# A soft-deleted row is invisible to the ownership gate: lookups filter `deleted_at IS NULL`,
# so acting on a deleted listing yields "not found" rather than "forbidden".
