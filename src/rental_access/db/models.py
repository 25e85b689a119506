"""
rental_access.db.models

Persistence schema for the marketplace tables the access layer reads or guards.

Responsibilities:
- Users (role, two-factor enrollment).
- Owned resources, each with the single column that identifies its owner:
  properties.owner_id, applications/reviews/saved_searches/favorites.user_id,
  inquiries.agent_id.
- Append-only audit log.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import Mapped, mapped_column

from rental_access.db.base import Base, SoftDeletable


def _utcnow() -> datetime:
    return datetime.utcnow()


def _new_id() -> str:
    return str(uuid.uuid4())


# Ids are stored as canonical UUID strings so they compare directly with token subjects.
_ID = String(36)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[str | None] = mapped_column(String(32), nullable=True, default="renter")
    two_factor_enabled: Mapped[bool] = mapped_column(nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Property(SoftDeletable, Base):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    owner_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    address: Mapped[str] = mapped_column(String(512), nullable=False)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Application(Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    property_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="submitted")
    previous_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    personal_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Review(SoftDeletable, Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    property_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    rating: Mapped[int | None] = mapped_column(nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    __table_args__ = (UniqueConstraint("user_id", "property_id", name="uq_reviews_user_property"),)


class Inquiry(SoftDeletable, Base):
    __tablename__ = "inquiries"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    agent_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    property_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("properties.id", ondelete="CASCADE"), nullable=True
    )
    sender_name: Mapped[str] = mapped_column(String(256), nullable=False)
    sender_email: Mapped[str] = mapped_column(String(320), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class SavedSearch(Base):
    __tablename__ = "saved_searches"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    user_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    filters: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class Favorite(Base):
    __tablename__ = "favorites"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    user_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    property_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_favorites_user_property"),
    )


class Requirement(Base):
    __tablename__ = "requirements"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    # Anonymous submissions have no user.
    user_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    contact_name: Mapped[str] = mapped_column(String(256), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(320), nullable=False)
    budget_min: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    budget_max: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    locations: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(_ID, primary_key=True, default=_new_id)
    user_id: Mapped[str | None] = mapped_column(_ID, nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    resource_type: Mapped[str] = mapped_column(String(64), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(_ID, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    # "metadata" is reserved on declarative classes.
    event_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)

    __table_args__ = (Index("ix_audit_logs_user_created", "user_id", "created_at"),)


async def create_schema(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create missing tables. Production runs Alembic migrations.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# --- Module Notes -----------------------------------------------------------
# On SQLite, foreign keys (and their ON DELETE CASCADE) are only enforced because
# `db.session` turns on `PRAGMA foreign_keys` for every connection.
