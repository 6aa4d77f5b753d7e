"""
SQLAlchemy ORM persistence model for consolidation runs.

Responsibility
--------------
Persist the audit record of every consolidation run: summary columns for
lookups (group, fiscal period, status, timestamps, headline totals) and
the full run serialized as a JSON payload.

Architecture position
---------------------
**Modules layer** -- ORM model consumed by ``SqlAlchemyRunStore``.
Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* Monetary summary columns use ``Decimal`` (Numeric(38,9)) -- NEVER float.
* The JSON payload is produced by ``render_to_dict``, so amounts are
  stored as decimal strings.
* Reports are never persisted here; only runs.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.periods import FiscalPeriodRef


class ConsolidationRunModel(TrackedBase):
    """
    One consolidation run.

    Maps to the ``ConsolidationRun`` DTO in
    ``ledger_modules.consolidation.models``; ``to_summary`` rebuilds the
    ``RunSummary`` used for conflict checks.
    """

    __tablename__ = "consolidation_runs"

    __table_args__ = (
        Index("idx_consolidation_run_group_period", "group_id", "fiscal_year", "fiscal_period"),
        Index("idx_consolidation_run_status", "status"),
    )

    group_id: Mapped[UUID] = mapped_column(nullable=False)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    fiscal_period: Mapped[int] = mapped_column(Integer, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    as_of_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    initiated_by: Mapped[UUID] = mapped_column(nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    total_debits: Mapped[Decimal | None]
    total_credits: Mapped[Decimal | None]
    total_eliminations: Mapped[Decimal | None]
    total_nci: Mapped[Decimal | None]
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def to_summary(self):
        from ledger_modules.consolidation.models import RunStatus, RunSummary

        return RunSummary(
            run_id=self.id,
            group_id=self.group_id,
            period=FiscalPeriodRef(self.fiscal_year, self.fiscal_period),
            status=RunStatus(self.status),
            started_at=self.started_at,
            completed_at=self.completed_at,
            error_message=self.error_message,
        )

    @classmethod
    def from_dto(cls, run, created_by_id: UUID) -> "ConsolidationRunModel":
        from ledger_modules.reporting.statements import render_to_dict

        model = cls(id=run.id, created_by_id=created_by_id)
        model.apply(run)
        model.payload = render_to_dict(run)
        return model

    def apply(self, run) -> None:
        """Copy the run's summary columns onto this row."""
        tb = run.consolidated_trial_balance
        self.group_id = run.group_id
        self.fiscal_year = run.period.ref.year
        self.fiscal_period = run.period.ref.period
        self.period_start = run.period.start_date
        self.period_end = run.period.end_date
        self.as_of_date = run.as_of_date
        self.status = run.status.value
        self.initiated_by = run.initiated_by
        self.started_at = run.started_at
        self.completed_at = run.completed_at
        self.error_message = run.error_message
        self.currency = tb.currency if tb else None
        self.total_debits = tb.total_debits.amount if tb else None
        self.total_credits = tb.total_credits.amount if tb else None
        self.total_eliminations = tb.total_eliminations.amount if tb else None
        self.total_nci = tb.total_nci.amount if tb else None

    def __repr__(self) -> str:
        return (
            f"<ConsolidationRunModel {self.group_id} "
            f"{self.fiscal_year}-P{self.fiscal_period:02d} [{self.status}]>"
        )
