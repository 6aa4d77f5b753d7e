"""
Financial Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects representing financial statement outputs:
trial balance, balance sheet, income statement, cash flow statement
and statement of changes in equity, plus the line, section and comparison types they are built from.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``ReportingService`` and returned to callers.  No dependency on the
database or the clock.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields are ``Money`` -- NEVER ``float``.
* Comparative data is a single optional ``Comparison``; a line either has
  all comparative figures or none.

Failure modes
-------------
* Construction with invalid enum values raises ``ValueError``.

Audit relevance
---------------
* ``ReportMetadata`` records carry generation timestamp and parameters
  for report reproducibility.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

from ledger_engines.classifier import SectionKey
from ledger_kernel.domain.accounts import CashFlowCategory
from ledger_kernel.domain.values import Money

_HUNDRED = Decimal("100")
_PERCENT_QUANTUM = Decimal("0.01")


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    """Types of financial reports."""

    TRIAL_BALANCE = "trial_balance"
    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"
    CASH_FLOW = "cash_flow"
    EQUITY_STATEMENT = "equity_statement"


class LineStyle(str, Enum):
    """Presentation style of a report line."""

    NORMAL = "normal"
    SUBTOTAL = "subtotal"
    TOTAL = "total"
    HEADER = "header"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every financial report."""

    report_type: ReportType
    company_id: UUID
    entity_name: str
    currency: str
    as_of_date: date
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None
    comparative_date: date | None = None
    comparative_period_start: date | None = None
    comparative_period_end: date | None = None


# =========================================================================
# Shared line types
# =========================================================================


@dataclass(frozen=True)
class Comparison:
    """Comparative figure of a line and its variance from the current one."""

    comparative_amount: Money
    variance: Money
    variance_percentage: Decimal | None

    @classmethod
    def between(cls, current: Money, comparative: Money) -> Comparison:
        """
        Compare ``current`` against ``comparative``.

        The percentage is rounded to two places half-up and is None when
        the comparative amount is zero.
        """
        variance = current - comparative
        percentage = None
        if not comparative.is_zero:
            percentage = (variance.amount / comparative.amount * _HUNDRED).quantize(
                _PERCENT_QUANTUM, rounding=ROUND_HALF_UP,
            )
        return cls(
            comparative_amount=comparative,
            variance=variance,
            variance_percentage=percentage,
        )


@dataclass(frozen=True)
class ReportLineItem:
    """A single presented line: an account, a subtotal or a heading."""

    description: str
    current_amount: Money
    account_id: UUID | None = None
    account_number: str | None = None
    comparison: Comparison | None = None
    style: LineStyle = LineStyle.NORMAL
    indent_level: int = 0


@dataclass(frozen=True)
class ReportSection:
    """A classified block of lines (e.g., Current Assets)."""

    key: SectionKey
    label: str
    lines: tuple[ReportLineItem, ...]
    subtotal: Money
    comparative_subtotal: Money | None = None

    def as_lines(self) -> tuple[ReportLineItem, ...]:
        """Heading, account lines and subtotal, in presentation order."""
        comparison = None
        if self.comparative_subtotal is not None:
            comparison = Comparison.between(self.subtotal, self.comparative_subtotal)
        return (
            ReportLineItem(
                description=self.label,
                current_amount=Money.zero(self.subtotal.currency),
                style=LineStyle.HEADER,
            ),
            *self.lines,
            ReportLineItem(
                description=f"Total {self.label}",
                current_amount=self.subtotal,
                comparison=comparison,
                style=LineStyle.SUBTOTAL,
            ),
        )


# =========================================================================
# Trial Balance Report
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLineItem:
    """A single line in the trial balance."""

    account_id: UUID
    account_number: str
    account_name: str
    account_type: str  # "asset", "liability", "equity", "revenue", "expense"
    debit_balance: Money
    credit_balance: Money
    net_balance: Money  # Natural-balance-adjusted


@dataclass(frozen=True)
class TrialBalanceReport:
    """Complete trial balance report."""

    metadata: ReportMetadata
    lines: tuple[TrialBalanceLineItem, ...]
    total_debits: Money
    total_credits: Money
    is_balanced: bool  # total_debits == total_credits


# =========================================================================
# Balance Sheet Report
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetTotals:
    """Headline figures of one balance sheet date."""

    total_assets: Money
    total_liabilities: Money
    total_equity: Money
    total_liabilities_and_equity: Money

    @property
    def is_balanced(self) -> bool:
        return self.total_assets == self.total_liabilities_and_equity


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Classified balance sheet.

    Assets = Liabilities + Equity holds for any balanced ledger because
    cumulative earnings appear as a synthetic equity line.
    """

    metadata: ReportMetadata
    sections: tuple[ReportSection, ...]
    totals: BalanceSheetTotals
    summary: tuple[ReportLineItem, ...]
    comparative_totals: BalanceSheetTotals | None = None

    def section(self, key: SectionKey) -> ReportSection:
        for section in self.sections:
            if section.key == key:
                return section
        raise KeyError(key)

    @property
    def total_assets(self) -> Money:
        return self.totals.total_assets

    @property
    def total_liabilities(self) -> Money:
        return self.totals.total_liabilities

    @property
    def total_equity(self) -> Money:
        return self.totals.total_equity

    @property
    def total_liabilities_and_equity(self) -> Money:
        return self.totals.total_liabilities_and_equity

    @property
    def is_balanced(self) -> bool:
        return self.totals.is_balanced


# =========================================================================
# Income Statement
# =========================================================================


@dataclass(frozen=True)
class IncomeStatementFigures:
    """
    Multi-step income statement figures for one period.

    Revenue - Cost of Sales = Gross Profit - Operating Expenses
    = Operating Income - Other Expenses = Income Before Tax - Tax
    = Net Income
    """

    total_revenue: Money
    cost_of_sales: Money
    gross_profit: Money
    operating_expenses: Money
    operating_income: Money
    other_expenses: Money
    income_before_tax: Money
    income_tax_expense: Money
    total_expenses: Money
    net_income: Money  # revenue - expenses


@dataclass(frozen=True)
class IncomeStatementReport:
    """Income statement (P&L) for a period."""

    metadata: ReportMetadata
    sections: tuple[ReportSection, ...]
    figures: IncomeStatementFigures
    summary: tuple[ReportLineItem, ...]
    comparative_figures: IncomeStatementFigures | None = None

    def section(self, key: SectionKey) -> ReportSection:
        for section in self.sections:
            if section.key == key:
                return section
        raise KeyError(key)

    @property
    def total_revenue(self) -> Money:
        return self.figures.total_revenue

    @property
    def total_expenses(self) -> Money:
        return self.figures.total_expenses

    @property
    def gross_profit(self) -> Money:
        return self.figures.gross_profit

    @property
    def operating_income(self) -> Money:
        return self.figures.operating_income

    @property
    def income_before_tax(self) -> Money:
        return self.figures.income_before_tax

    @property
    def net_income(self) -> Money:
        return self.figures.net_income


# =========================================================================
# Cash Flow Statement
# =========================================================================


@dataclass(frozen=True)
class CashFlowSection:
    """Cash effect of one activity (operating, investing or financing)."""

    category: CashFlowCategory
    label: str
    lines: tuple[ReportLineItem, ...]
    total: Money


@dataclass(frozen=True)
class CashFlowStatementReport:
    """
    Statement of cash flows (indirect method).

    Operating activities start from net income, add back movements in
    accounts that did not touch cash (depreciation against accumulated
    depreciation, accruals into long-term balances), then apply working
    capital changes.  Investing and financing list the credits minus debits
    each account booked against cash.

    ``non_cash_adjustments`` and ``working_capital_changes`` are the
    operating lines after the net income line, split out for callers.
    """

    metadata: ReportMetadata

    net_income: Money
    non_cash_adjustments: tuple[ReportLineItem, ...]
    working_capital_changes: tuple[ReportLineItem, ...]

    operating_activities: CashFlowSection
    investing_activities: CashFlowSection
    financing_activities: CashFlowSection

    # Summary
    net_change_in_cash: Money
    beginning_cash: Money
    ending_cash: Money

    # Verification
    cash_change_reconciles: bool  # ending - beginning == net_change

    @property
    def net_cash_from_operations(self) -> Money:
        return self.operating_activities.total

    @property
    def net_cash_from_investing(self) -> Money:
        return self.investing_activities.total

    @property
    def net_cash_from_financing(self) -> Money:
        return self.financing_activities.total


# =========================================================================
# Statement of Changes in Equity
# =========================================================================


class EquityMovementType(str, Enum):
    """Rows of the statement of changes in equity, in presentation order."""

    OPENING_BALANCE = "opening_balance"
    NET_INCOME = "net_income"
    OTHER_COMPREHENSIVE_INCOME = "other_comprehensive_income"
    DIVIDENDS = "dividends"
    STOCK_ISSUANCE = "stock_issuance"
    STOCK_REPURCHASE = "stock_repurchase"
    NON_CONTROLLING_INTEREST = "non_controlling_interest"
    OTHER_ADJUSTMENTS = "other_adjustments"
    CLOSING_BALANCE = "closing_balance"


EQUITY_MOVEMENT_LABELS: dict[EquityMovementType, str] = {
    EquityMovementType.OPENING_BALANCE: "Opening Balance",
    EquityMovementType.NET_INCOME: "Net Income",
    EquityMovementType.OTHER_COMPREHENSIVE_INCOME: "Other Comprehensive Income",
    EquityMovementType.DIVIDENDS: "Dividends Declared",
    EquityMovementType.STOCK_ISSUANCE: "Stock Issuance",
    EquityMovementType.STOCK_REPURCHASE: "Stock Repurchase",
    EquityMovementType.NON_CONTROLLING_INTEREST: "Non-Controlling Interest",
    EquityMovementType.OTHER_ADJUSTMENTS: "Other Adjustments",
    EquityMovementType.CLOSING_BALANCE: "Closing Balance",
}


@dataclass(frozen=True)
class EquityComponent:
    """One column of the equity statement: an equity account or earnings."""

    description: str
    account_id: UUID | None = None
    account_number: str | None = None


@dataclass(frozen=True)
class EquityMovementRow:
    """One row; ``amounts`` line up with the statement's components."""

    movement_type: EquityMovementType
    label: str
    amounts: tuple[Money, ...]
    total: Money


@dataclass(frozen=True)
class EquityStatementReport:
    """
    Statement of changes in equity.

    Every component's opening balance plus its movements equals its
    closing balance; ``reconciles`` records whether that held for all of
    them.  Total closing equity equals the balance sheet's total equity at
    the period end.
    """

    metadata: ReportMetadata
    components: tuple[EquityComponent, ...]
    rows: tuple[EquityMovementRow, ...]
    net_income: Money
    total_opening_equity: Money
    total_closing_equity: Money
    reconciles: bool

    def row(self, movement_type: EquityMovementType) -> EquityMovementRow:
        for row in self.rows:
            if row.movement_type == movement_type:
                return row
        raise KeyError(movement_type)

    def amount(self, movement_type: EquityMovementType, description: str) -> Money:
        """Amount of one row in the column with the given description."""
        row = self.row(movement_type)
        for component, value in zip(self.components, row.amounts):
            if component.description == description:
                return value
        raise KeyError(description)

    @property
    def total_change_in_equity(self) -> Money:
        return self.total_closing_equity - self.total_opening_equity
