"""
Consolidation run stores.

Responsibility:
    Persist finished consolidation runs and answer whether a group and
    period already has a completed run (the force-regeneration conflict
    rule).

Architecture position:
    Modules -- persistence adapters behind the ConsolidationRunStore
    protocol.  ConsolidationService works without a store; with one it
    enforces the conflict rule and saves every finished run.

Failure modes:
    - SqlAlchemyRunStore propagates SQLAlchemy errors; transaction
      boundaries belong to the caller (see ledger_kernel.db.session_scope).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.periods import FiscalPeriodRef
from ledger_kernel.logging_config import get_logger
from ledger_modules.consolidation.models import (
    ConsolidationRun,
    RunStatus,
    RunSummary,
)
from ledger_modules.consolidation.orm import ConsolidationRunModel
from ledger_modules.reporting.statements import render_to_dict

logger = get_logger("modules.consolidation.store")


@runtime_checkable
class ConsolidationRunStore(Protocol):
    """Durable home of consolidation run records."""

    def find_completed_run(
        self, group_id: UUID, period: FiscalPeriodRef,
    ) -> RunSummary | None:
        """Latest COMPLETED run for the group and period, or None."""
        ...

    def save(self, run: ConsolidationRun) -> None:
        """Insert or replace the run."""
        ...


class InMemoryRunStore:
    """Dictionary-backed store, keyed by run id."""

    def __init__(self) -> None:
        self._runs: dict[UUID, ConsolidationRun] = {}

    def __len__(self) -> int:
        return len(self._runs)

    def get(self, run_id: UUID) -> ConsolidationRun | None:
        return self._runs.get(run_id)

    def list_runs(self, group_id: UUID) -> list[RunSummary]:
        runs = [r for r in self._runs.values() if r.group_id == group_id]
        return [RunSummary.of(r) for r in sorted(runs, key=lambda r: r.started_at)]

    def find_completed_run(
        self, group_id: UUID, period: FiscalPeriodRef,
    ) -> RunSummary | None:
        completed = [
            r for r in self._runs.values()
            if r.group_id == group_id
            and r.period.ref == period
            and r.status == RunStatus.COMPLETED
        ]
        if not completed:
            return None
        latest = max(completed, key=lambda r: (r.completed_at, str(r.id)))
        return RunSummary.of(latest)

    def save(self, run: ConsolidationRun) -> None:
        self._runs[run.id] = run


class SqlAlchemyRunStore:
    """
    Store backed by the ``consolidation_runs`` table.

    Contract:
        ``save`` adds or updates the row and flushes; committing is the
        caller's decision.
    """

    def __init__(self, session: Session):
        self._session = session

    def get(self, run_id: UUID) -> RunSummary | None:
        model = self._session.get(ConsolidationRunModel, run_id)
        return model.to_summary() if model is not None else None

    def payload(self, run_id: UUID) -> dict | None:
        """Serialized run as stored, for audit display."""
        model = self._session.get(ConsolidationRunModel, run_id)
        return model.payload if model is not None else None

    def list_runs(self, group_id: UUID) -> list[RunSummary]:
        stmt = (
            select(ConsolidationRunModel)
            .where(ConsolidationRunModel.group_id == group_id)
            .order_by(ConsolidationRunModel.started_at)
        )
        return [m.to_summary() for m in self._session.scalars(stmt)]

    def find_completed_run(
        self, group_id: UUID, period: FiscalPeriodRef,
    ) -> RunSummary | None:
        stmt = (
            select(ConsolidationRunModel)
            .where(
                ConsolidationRunModel.group_id == group_id,
                ConsolidationRunModel.fiscal_year == period.year,
                ConsolidationRunModel.fiscal_period == period.period,
                ConsolidationRunModel.status == RunStatus.COMPLETED.value,
            )
            .order_by(ConsolidationRunModel.completed_at.desc())
            .limit(1)
        )
        model = self._session.scalars(stmt).first()
        return model.to_summary() if model is not None else None

    def save(self, run: ConsolidationRun) -> None:
        model = self._session.get(ConsolidationRunModel, run.id)
        if model is None:
            model = ConsolidationRunModel.from_dto(run, created_by_id=run.initiated_by)
            self._session.add(model)
        else:
            model.apply(run)
            model.payload = render_to_dict(run)
            model.updated_by_id = run.initiated_by
        self._session.flush()

        logger.debug(
            "consolidation_run_saved",
            extra={"run_id": str(run.id), "status": run.status.value},
        )
