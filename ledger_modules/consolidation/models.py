"""
Consolidation Domain Models (``ledger_modules.consolidation.models``).

Responsibility
--------------
Frozen dataclass value objects for a consolidation run: run and step
state enums, the step records, run options, validation issues, the
consolidated trial balance and the statements built from it.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Produced by
``ConsolidationService`` and persisted, when a store is configured, by a
``ConsolidationRunStore``.

Invariants enforced
-------------------
* All models are ``frozen=True``; the pipeline advances a run by
  replacing records, never by mutating them.
* ``ConsolidationStep`` is a closed, ordered enumeration; a run always
  carries exactly one ``StepRecord`` per step, in order.
* Run status is derived from step states (``derive_run_status``).
* ``consolidated_amount == aggregated + elimination + nci`` on every
  consolidated trial balance line.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from ledger_engines.nci import NciAdjustment
from ledger_kernel.domain.accounts import AccountCategory, AccountType
from ledger_kernel.domain.periods import FiscalPeriod, FiscalPeriodRef
from ledger_kernel.domain.values import Money
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    CashFlowStatementReport,
    EquityStatementReport,
    IncomeStatementReport,
)


# =========================================================================
# Enums
# =========================================================================


class RunStatus(str, Enum):
    """Consolidation run lifecycle."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class StepStatus(str, Enum):
    """State of one pipeline step."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_done(self) -> bool:
        return self in (StepStatus.COMPLETED, StepStatus.SKIPPED)


class ConsolidationStep(str, Enum):
    """The seven pipeline steps, in execution order."""

    VALIDATE = "validate"
    TRANSLATE = "translate"
    AGGREGATE = "aggregate"
    MATCH_INTERCOMPANY = "match_intercompany"
    ELIMINATE = "eliminate"
    COMPUTE_NCI = "compute_nci"
    GENERATE_TRIAL_BALANCE = "generate_trial_balance"

    @property
    def display_name(self) -> str:
        return STEP_DISPLAY_NAMES[self]


STEP_DISPLAY_NAMES: dict[ConsolidationStep, str] = {
    ConsolidationStep.VALIDATE: "Validate Member Data",
    ConsolidationStep.TRANSLATE: "Currency Translation",
    ConsolidationStep.AGGREGATE: "Aggregate Balances",
    ConsolidationStep.MATCH_INTERCOMPANY: "Intercompany Matching",
    ConsolidationStep.ELIMINATE: "Generate Eliminations",
    ConsolidationStep.COMPUTE_NCI: "Calculate Minority Interest",
    ConsolidationStep.GENERATE_TRIAL_BALANCE: "Generate Consolidated TB",
}

PIPELINE: tuple[ConsolidationStep, ...] = tuple(ConsolidationStep)


class ValidationSeverity(str, Enum):
    """Errors block a run; warnings block only when configured to."""

    ERROR = "error"
    WARNING = "warning"


# =========================================================================
# Step records
# =========================================================================


@dataclass(frozen=True)
class StepRecord:
    """State of one step within a run."""

    step: ConsolidationStep
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = None
    error_message: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.step.display_name


def initial_steps() -> tuple[StepRecord, ...]:
    """One PENDING record per step, in pipeline order."""
    return tuple(StepRecord(step=step) for step in PIPELINE)


def derive_run_status(steps: tuple[StepRecord, ...]) -> RunStatus:
    """
    Run status implied by its steps.

    FAILED if any step failed, IN_PROGRESS while a step runs, COMPLETED
    once every step is completed or skipped, PENDING before anything ran.
    Cancellation is not derivable and is set by the driver.
    """
    if any(s.status == StepStatus.FAILED for s in steps):
        return RunStatus.FAILED
    if any(s.status == StepStatus.IN_PROGRESS for s in steps):
        return RunStatus.IN_PROGRESS
    if all(s.status.is_done for s in steps):
        return RunStatus.COMPLETED
    if all(s.status == StepStatus.PENDING for s in steps):
        return RunStatus.PENDING
    return RunStatus.IN_PROGRESS


# =========================================================================
# Options and validation
# =========================================================================


@dataclass(frozen=True)
class RunOptions:
    """Caller-selected behaviour of one run."""

    skip_validation: bool = False
    continue_on_warnings: bool = True
    include_equity_method_investments: bool = False
    force_regeneration: bool = False


@dataclass(frozen=True)
class ValidationIssue:
    """One data problem found while validating members."""

    severity: ValidationSeverity
    code: str
    message: str
    entity_reference: str | None = None

    @classmethod
    def error(cls, code: str, message: str, entity_reference: str | None = None) -> ValidationIssue:
        return cls(ValidationSeverity.ERROR, code, message, entity_reference)

    @classmethod
    def warning(cls, code: str, message: str, entity_reference: str | None = None) -> ValidationIssue:
        return cls(ValidationSeverity.WARNING, code, message, entity_reference)


@dataclass(frozen=True)
class ValidationResult:
    """All issues found in one validation pass."""

    issues: tuple[ValidationIssue, ...] = ()

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.severity == ValidationSeverity.ERROR)

    @property
    def warnings(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.severity == ValidationSeverity.WARNING)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    def codes(self) -> tuple[str, ...]:
        return tuple(i.code for i in self.issues)


# =========================================================================
# Consolidated trial balance
# =========================================================================


@dataclass(frozen=True)
class ConsolidatedTrialBalanceLine:
    """One group account after aggregation, eliminations and NCI."""

    account_number: str
    account_name: str
    account_type: AccountType
    category: AccountCategory
    aggregated_amount: Money
    elimination_amount: Money
    nci_amount: Money
    consolidated_amount: Money

    def __post_init__(self) -> None:
        expected = self.aggregated_amount + self.elimination_amount + self.nci_amount
        if self.consolidated_amount != expected:
            raise ValueError(
                f"Account {self.account_number}: consolidated amount "
                f"{self.consolidated_amount} != {expected}"
            )


@dataclass(frozen=True)
class ConsolidatedTrialBalance:
    """Final per-account view of the group plus the run's summary totals."""

    currency: str
    lines: tuple[ConsolidatedTrialBalanceLine, ...]
    total_debits: Money
    total_credits: Money
    total_eliminations: Money
    total_nci: Money
    is_balanced: bool

    def line(self, account_number: str) -> ConsolidatedTrialBalanceLine | None:
        for ln in self.lines:
            if ln.account_number == account_number:
                return ln
        return None


# =========================================================================
# Run
# =========================================================================


@dataclass(frozen=True)
class ConsolidationRun:
    """Auditable record of one consolidation attempt."""

    id: UUID
    group_id: UUID
    period: FiscalPeriod
    as_of_date: date
    status: RunStatus
    steps: tuple[StepRecord, ...]
    options: RunOptions
    initiated_by: UUID
    started_at: datetime
    completed_at: datetime | None = None
    validation_result: ValidationResult | None = None
    consolidated_trial_balance: ConsolidatedTrialBalance | None = None
    elimination_entry_ids: tuple[UUID, ...] = ()
    nci_adjustments: tuple[NciAdjustment, ...] = ()
    intercompany_issues: tuple[ValidationIssue, ...] = ()
    error_message: str | None = None

    def step(self, step: ConsolidationStep) -> StepRecord:
        for record in self.steps:
            if record.step == step:
                return record
        raise KeyError(step)

    @property
    def is_finished(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)


@dataclass(frozen=True)
class RunSummary:
    """Lightweight view of a stored run, used for conflict checks and listings."""

    run_id: UUID
    group_id: UUID
    period: FiscalPeriodRef
    status: RunStatus
    started_at: datetime
    completed_at: datetime | None = None
    error_message: str | None = None

    @classmethod
    def of(cls, run: ConsolidationRun) -> RunSummary:
        return cls(
            run_id=run.id,
            group_id=run.group_id,
            period=run.period.ref,
            status=run.status,
            started_at=run.started_at,
            completed_at=run.completed_at,
            error_message=run.error_message,
        )


# =========================================================================
# Consolidated statements
# =========================================================================


@dataclass(frozen=True)
class ConsolidatedStatements:
    """
    Group financial statements built from a run's consolidated trial balance.

    Flow statements cover the span from ``opening_run_id``'s as-of date
    (exclusive) to the run's as-of date; without an opening run they run
    from inception.
    """

    run_id: UUID
    opening_run_id: UUID | None
    balance_sheet: BalanceSheetReport
    income_statement: IncomeStatementReport
    cash_flow_statement: CashFlowStatementReport
    equity_statement: EquityStatementReport
