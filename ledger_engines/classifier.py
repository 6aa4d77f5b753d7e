"""
Module: ledger_engines.classifier
Responsibility:
    Map an account to its reporting placement: which statement, which
    section, which cash-flow activity, and which sign convention turns its
    raw debit-minus-credit balance into a "natural" positive number.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Every AccountCategory maps to exactly one (statement, section) pair
      and one default cash-flow activity.  Both tables cover the whole
      closed enum.
    - sign_multiplier is +1 for DEBIT-normal accounts and -1 otherwise.

Placement reads only ``category``, so consolidated trial balance lines
(which carry a category but are not ``Account`` records) are placed by
the same tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ledger_kernel.domain.accounts import (
    Account,
    AccountCategory,
    CashFlowCategory,
    NormalBalance,
)


class Statement(str, Enum):
    """Financial statement an account is reported on."""

    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"


class SectionKey(str, Enum):
    """Statement sections, in presentation order within each statement."""

    CURRENT_ASSETS = "current_assets"
    NON_CURRENT_ASSETS = "non_current_assets"
    CURRENT_LIABILITIES = "current_liabilities"
    NON_CURRENT_LIABILITIES = "non_current_liabilities"
    EQUITY = "equity"
    REVENUE = "revenue"
    COST_OF_SALES = "cost_of_sales"
    OPERATING_EXPENSES = "operating_expenses"
    OTHER_EXPENSES = "other_expenses"
    INCOME_TAX_EXPENSE = "income_tax_expense"


SECTION_LABELS: dict[SectionKey, str] = {
    SectionKey.CURRENT_ASSETS: "Current Assets",
    SectionKey.NON_CURRENT_ASSETS: "Non-Current Assets",
    SectionKey.CURRENT_LIABILITIES: "Current Liabilities",
    SectionKey.NON_CURRENT_LIABILITIES: "Non-Current Liabilities",
    SectionKey.EQUITY: "Equity",
    SectionKey.REVENUE: "Revenue",
    SectionKey.COST_OF_SALES: "Cost of Sales",
    SectionKey.OPERATING_EXPENSES: "Operating Expenses",
    SectionKey.OTHER_EXPENSES: "Other Expenses",
    SectionKey.INCOME_TAX_EXPENSE: "Income Tax Expense",
}


@dataclass(frozen=True)
class ReportPlacement:
    """Where an account appears: statement plus section."""

    statement: Statement
    section: SectionKey


_BS = Statement.BALANCE_SHEET
_IS = Statement.INCOME_STATEMENT

_PLACEMENT_BY_CATEGORY: dict[AccountCategory, ReportPlacement] = {
    AccountCategory.CURRENT_ASSET: ReportPlacement(_BS, SectionKey.CURRENT_ASSETS),
    AccountCategory.NON_CURRENT_ASSET: ReportPlacement(_BS, SectionKey.NON_CURRENT_ASSETS),
    AccountCategory.FIXED_ASSET: ReportPlacement(_BS, SectionKey.NON_CURRENT_ASSETS),
    AccountCategory.INTANGIBLE_ASSET: ReportPlacement(_BS, SectionKey.NON_CURRENT_ASSETS),
    AccountCategory.CURRENT_LIABILITY: ReportPlacement(_BS, SectionKey.CURRENT_LIABILITIES),
    AccountCategory.NON_CURRENT_LIABILITY: ReportPlacement(
        _BS, SectionKey.NON_CURRENT_LIABILITIES,
    ),
    AccountCategory.CONTRIBUTED_CAPITAL: ReportPlacement(_BS, SectionKey.EQUITY),
    AccountCategory.RETAINED_EARNINGS: ReportPlacement(_BS, SectionKey.EQUITY),
    AccountCategory.OTHER_COMPREHENSIVE_INCOME: ReportPlacement(_BS, SectionKey.EQUITY),
    AccountCategory.TREASURY_STOCK: ReportPlacement(_BS, SectionKey.EQUITY),
    AccountCategory.OPERATING_REVENUE: ReportPlacement(_IS, SectionKey.REVENUE),
    AccountCategory.OTHER_REVENUE: ReportPlacement(_IS, SectionKey.REVENUE),
    AccountCategory.COST_OF_GOODS_SOLD: ReportPlacement(_IS, SectionKey.COST_OF_SALES),
    AccountCategory.OPERATING_EXPENSE: ReportPlacement(_IS, SectionKey.OPERATING_EXPENSES),
    AccountCategory.DEPRECIATION_AMORTIZATION: ReportPlacement(
        _IS, SectionKey.OPERATING_EXPENSES,
    ),
    AccountCategory.INTEREST_EXPENSE: ReportPlacement(_IS, SectionKey.OTHER_EXPENSES),
    AccountCategory.OTHER_EXPENSE: ReportPlacement(_IS, SectionKey.OTHER_EXPENSES),
    AccountCategory.TAX_EXPENSE: ReportPlacement(_IS, SectionKey.INCOME_TAX_EXPENSE),
}

# Activity used when an account carries no explicit cash_flow_category.
_DEFAULT_CASH_FLOW_BY_CATEGORY: dict[AccountCategory, CashFlowCategory] = {
    AccountCategory.CURRENT_ASSET: CashFlowCategory.OPERATING,
    AccountCategory.NON_CURRENT_ASSET: CashFlowCategory.INVESTING,
    AccountCategory.FIXED_ASSET: CashFlowCategory.INVESTING,
    AccountCategory.INTANGIBLE_ASSET: CashFlowCategory.INVESTING,
    AccountCategory.CURRENT_LIABILITY: CashFlowCategory.OPERATING,
    AccountCategory.NON_CURRENT_LIABILITY: CashFlowCategory.FINANCING,
    AccountCategory.CONTRIBUTED_CAPITAL: CashFlowCategory.FINANCING,
    AccountCategory.RETAINED_EARNINGS: CashFlowCategory.FINANCING,
    AccountCategory.OTHER_COMPREHENSIVE_INCOME: CashFlowCategory.NON_CASH,
    AccountCategory.TREASURY_STOCK: CashFlowCategory.FINANCING,
    AccountCategory.OPERATING_REVENUE: CashFlowCategory.OPERATING,
    AccountCategory.OTHER_REVENUE: CashFlowCategory.OPERATING,
    AccountCategory.COST_OF_GOODS_SOLD: CashFlowCategory.OPERATING,
    AccountCategory.OPERATING_EXPENSE: CashFlowCategory.OPERATING,
    AccountCategory.DEPRECIATION_AMORTIZATION: CashFlowCategory.NON_CASH,
    AccountCategory.INTEREST_EXPENSE: CashFlowCategory.OPERATING,
    AccountCategory.TAX_EXPENSE: CashFlowCategory.OPERATING,
    AccountCategory.OTHER_EXPENSE: CashFlowCategory.OPERATING,
}


def section_for(account: Account) -> ReportPlacement:
    """Statement and section for an account (or any record with a category)."""
    return _PLACEMENT_BY_CATEGORY[account.category]


def default_cash_flow_category(category: AccountCategory) -> CashFlowCategory:
    return _DEFAULT_CASH_FLOW_BY_CATEGORY[category]


def cash_flow_category_for(account: Account) -> CashFlowCategory:
    """Explicit cash-flow category, else the default for the account category."""
    if account.cash_flow_category is not None:
        return account.cash_flow_category
    return _DEFAULT_CASH_FLOW_BY_CATEGORY[account.category]


def sign_multiplier(account: Account) -> int:
    """+1 for debit-normal accounts, -1 for credit-normal accounts."""
    return 1 if account.normal_balance == NormalBalance.DEBIT else -1


def has_cash_prefix(
    account_number: str,
    category: AccountCategory,
    cash_account_prefixes: tuple[str, ...],
) -> bool:
    """A current asset whose number starts with one of the cash prefixes."""
    if category != AccountCategory.CURRENT_ASSET:
        return False
    return any(account_number.startswith(p) for p in cash_account_prefixes)


def is_cash_account(account: Account, cash_account_prefixes: tuple[str, ...] = ()) -> bool:
    """
    Whether an account counts as cash or a cash equivalent.

    An account qualifies when tagged ``cash`` or when its number starts with
    one of ``cash_account_prefixes``.  Only current assets qualify.
    """
    if account.category != AccountCategory.CURRENT_ASSET:
        return False
    if "cash" in account.tags:
        return True
    return has_cash_prefix(account.account_number, account.category, cash_account_prefixes)
