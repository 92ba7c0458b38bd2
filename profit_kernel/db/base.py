"""
Module: profit_kernel.db.base
Responsibility: Declarative base for the project store.  Fixes the column
    type for every Python type the project tables use, so money, rates and
    hours are exact and ids round-trip as UUIDs on SQLite and PostgreSQL.
Architecture position: Kernel > DB.  Imported by every ORM module; MUST NOT
    import from profit_modules.

Invariants enforced:
    - Decimal columns are Numeric(38, 9); a float never reaches the store.
    - Every row has a uuid4 primary key and a NOT NULL created_by_id.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
        UUID: UUIDString(),
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds who-and-when audit columns.

    ``created_by_id`` is required: services always pass the acting user.
    ``updated_by_id`` is set by services on in-place changes (rates, hours,
    deliverable status) and stays NULL for rows that are only inserted.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
    created_by_id: Mapped[UUID] = mapped_column()
    updated_by_id: Mapped[UUID | None] = mapped_column()
