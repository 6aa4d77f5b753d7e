"""
Financial Reporting Module (``ledger_modules.reporting``).

Responsibility
--------------
Read-only module that generates financial statements for one company:
trial balance, classified balance sheet, multi-step income statement,
cash flow statement and statement of changes in equity.

Architecture position
---------------------
**Modules layer** -- pure read-only service.  All statement generation
is implemented as pure functions in ``statements.py``; the service only
loads records from a ``LedgerProvider``.

Invariants enforced
-------------------
* No journal entries are created by this module.
* Statement computations derive entirely from posted journal entries
  (no stored balances).

Failure modes
-------------
* Unknown company -> ``CompanyNotFoundError``.
* Orphaned journal line -> ``OrphanedLineError``.
"""

from ledger_modules.reporting.config import AccountClassification, ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    BalanceSheetTotals,
    CashFlowSection,
    CashFlowStatementReport,
    Comparison,
    EquityComponent,
    EquityMovementRow,
    EquityMovementType,
    EquityStatementReport,
    IncomeStatementFigures,
    IncomeStatementReport,
    LineStyle,
    ReportLineItem,
    ReportMetadata,
    ReportSection,
    ReportType,
    TrialBalanceLineItem,
    TrialBalanceReport,
)
from ledger_modules.reporting.service import ReportingService
from ledger_modules.reporting.statements import render_to_dict

__all__ = [
    # Service
    "ReportingService",
    # Config
    "AccountClassification",
    "ReportingConfig",
    # Models
    "ReportType",
    "LineStyle",
    "ReportMetadata",
    "Comparison",
    "ReportLineItem",
    "ReportSection",
    "TrialBalanceLineItem",
    "TrialBalanceReport",
    "BalanceSheetTotals",
    "BalanceSheetReport",
    "IncomeStatementFigures",
    "IncomeStatementReport",
    "CashFlowSection",
    "CashFlowStatementReport",
    "EquityMovementType",
    "EquityComponent",
    "EquityMovementRow",
    "EquityStatementReport",
    # Rendering
    "render_to_dict",
]
