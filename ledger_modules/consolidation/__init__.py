"""
Group Consolidation Module (``ledger_modules.consolidation``).

Responsibility
--------------
Combine the ledgers of a consolidation group into one consolidated trial
balance in the group's reporting currency: member validation, currency
translation, aggregation, intercompany matching and elimination, and
non-controlling interest.  The consolidated trial balance of a completed
run feeds the group balance sheet, income statement, cash flow statement
and statement of changes in equity.

Architecture position
---------------------
**Modules layer** -- ``ConsolidationService`` drives the pipeline over the
pure engines in ``ledger_engines``; runs are recorded in an optional
``ConsolidationRunStore``.

Invariants enforced
-------------------
* Steps run strictly in order; a failed step halts the run.
* Eliminations are consolidation-only and never reach a member ledger.
* ``consolidated == aggregated + elimination + nci`` on every line.

Failure modes
-------------
* Unknown group -> ``ConsolidationGroupNotFoundError``.
* Completed run already exists -> ``ConsolidationRunExistsError``.
* Step failures are recorded on the returned run (status FAILED).
* Statements of a run without a trial balance ->
  ``ConsolidatedTrialBalanceUnavailableError``.
"""

from ledger_modules.consolidation.config import ConsolidationConfig
from ledger_modules.consolidation.models import (
    PIPELINE,
    ConsolidatedStatements,
    ConsolidatedTrialBalance,
    ConsolidatedTrialBalanceLine,
    ConsolidationRun,
    ConsolidationStep,
    RunOptions,
    RunStatus,
    RunSummary,
    StepRecord,
    StepStatus,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)
from ledger_modules.consolidation.reports import (
    build_consolidated_balance_sheet,
    build_consolidated_cash_flow_statement,
    build_consolidated_equity_statement,
    build_consolidated_income_statement,
)
from ledger_modules.consolidation.service import ConsolidationService
from ledger_modules.consolidation.store import (
    ConsolidationRunStore,
    InMemoryRunStore,
    SqlAlchemyRunStore,
)
from ledger_modules.consolidation.validation import MemberValidator

__all__ = [
    # Service
    "ConsolidationService",
    "MemberValidator",
    # Config
    "ConsolidationConfig",
    # Models
    "PIPELINE",
    "ConsolidationStep",
    "RunStatus",
    "StepStatus",
    "StepRecord",
    "RunOptions",
    "RunSummary",
    "ValidationSeverity",
    "ValidationIssue",
    "ValidationResult",
    "ConsolidatedTrialBalanceLine",
    "ConsolidatedTrialBalance",
    "ConsolidationRun",
    "ConsolidatedStatements",
    # Statements
    "build_consolidated_balance_sheet",
    "build_consolidated_income_statement",
    "build_consolidated_cash_flow_statement",
    "build_consolidated_equity_statement",
    # Stores
    "ConsolidationRunStore",
    "InMemoryRunStore",
    "SqlAlchemyRunStore",
]
