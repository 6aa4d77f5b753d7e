"""
Module: ledger_kernel.db.base
Responsibility: Declarative base classes for the SQLAlchemy models that
    persist consolidation runs.  Provides the UUID primary key convention,
    the type annotation map and the TrackedBase audit mixin.
Architecture position: Kernel > DB.  Lowest-level import target for ORM
    models; MUST NOT import from domain/ or outer layers.

Invariants enforced:
    - UUID primary keys stored as String(36) so SQLite and PostgreSQL
      behave the same.
    - Decimal maps to Numeric(38, 9).  Monetary columns are never float.
    - TrackedBase rows record creation/update time and the acting user.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return UUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all ledger ORM models.

    Guarantees:
        - id is a uuid4-generated UUID stored as String(36).
        - Decimal maps to Numeric(38, 9); datetime to timezone-aware DateTime.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
    }

    id: Mapped[UUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps and actor tracking.

    Guarantees:
        - created_at is set by the database on INSERT.
        - updated_at is refreshed on every UPDATE.
        - created_by_id is required.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    created_by_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    updated_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )
