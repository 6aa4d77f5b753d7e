"""
Accounts -- Chart-of-accounts domain records.

Responsibility:
    Defines the closed enumerations an account is described by (type,
    normal balance, category, cash-flow category) and the immutable
    ``Account`` record consumed by the classifier and the aggregator.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - The normal balance side follows from the account type:
      ASSET/EXPENSE are DEBIT-normal, LIABILITY/EQUITY/REVENUE CREDIT-normal.
      A contradicting value is rejected at construction.
    - Every category belongs to exactly one account type.

Failure modes:
    - ValueError on construction with a contradicting normal balance or a
      category from another account type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


class AccountCategory(str, Enum):
    """Account sub-types used to place accounts on financial statements."""

    # Assets
    CURRENT_ASSET = "current_asset"
    NON_CURRENT_ASSET = "non_current_asset"
    FIXED_ASSET = "fixed_asset"
    INTANGIBLE_ASSET = "intangible_asset"
    # Liabilities
    CURRENT_LIABILITY = "current_liability"
    NON_CURRENT_LIABILITY = "non_current_liability"
    # Equity
    CONTRIBUTED_CAPITAL = "contributed_capital"
    RETAINED_EARNINGS = "retained_earnings"
    OTHER_COMPREHENSIVE_INCOME = "other_comprehensive_income"
    TREASURY_STOCK = "treasury_stock"
    # Revenue
    OPERATING_REVENUE = "operating_revenue"
    OTHER_REVENUE = "other_revenue"
    # Expenses
    COST_OF_GOODS_SOLD = "cost_of_goods_sold"
    OPERATING_EXPENSE = "operating_expense"
    DEPRECIATION_AMORTIZATION = "depreciation_amortization"
    INTEREST_EXPENSE = "interest_expense"
    TAX_EXPENSE = "tax_expense"
    OTHER_EXPENSE = "other_expense"


class CashFlowCategory(str, Enum):
    """Cash flow statement activity an account's movements belong to."""

    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"
    NON_CASH = "non_cash"


NORMAL_BALANCE_BY_TYPE: dict[AccountType, NormalBalance] = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.REVENUE: NormalBalance.CREDIT,
}

ACCOUNT_TYPE_BY_CATEGORY: dict[AccountCategory, AccountType] = {
    AccountCategory.CURRENT_ASSET: AccountType.ASSET,
    AccountCategory.NON_CURRENT_ASSET: AccountType.ASSET,
    AccountCategory.FIXED_ASSET: AccountType.ASSET,
    AccountCategory.INTANGIBLE_ASSET: AccountType.ASSET,
    AccountCategory.CURRENT_LIABILITY: AccountType.LIABILITY,
    AccountCategory.NON_CURRENT_LIABILITY: AccountType.LIABILITY,
    AccountCategory.CONTRIBUTED_CAPITAL: AccountType.EQUITY,
    AccountCategory.RETAINED_EARNINGS: AccountType.EQUITY,
    AccountCategory.OTHER_COMPREHENSIVE_INCOME: AccountType.EQUITY,
    AccountCategory.TREASURY_STOCK: AccountType.EQUITY,
    AccountCategory.OPERATING_REVENUE: AccountType.REVENUE,
    AccountCategory.OTHER_REVENUE: AccountType.REVENUE,
    AccountCategory.COST_OF_GOODS_SOLD: AccountType.EXPENSE,
    AccountCategory.OPERATING_EXPENSE: AccountType.EXPENSE,
    AccountCategory.DEPRECIATION_AMORTIZATION: AccountType.EXPENSE,
    AccountCategory.INTEREST_EXPENSE: AccountType.EXPENSE,
    AccountCategory.TAX_EXPENSE: AccountType.EXPENSE,
    AccountCategory.OTHER_EXPENSE: AccountType.EXPENSE,
}


@dataclass(frozen=True)
class Account:
    """
    A chart-of-accounts entry owned by one company.

    Contract:
        ``normal_balance`` may be omitted and is then derived from
        ``account_type``.  Only postable (leaf) accounts receive lines.

    Guarantees:
        - normal_balance never contradicts account_type
        - category always belongs to account_type
    """

    id: UUID
    company_id: UUID
    account_number: str
    name: str
    account_type: AccountType
    category: AccountCategory
    normal_balance: NormalBalance | None = None
    is_postable: bool = True
    parent_id: UUID | None = None
    cash_flow_category: CashFlowCategory | None = None
    is_active: bool = True
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        expected = NORMAL_BALANCE_BY_TYPE[self.account_type]
        if self.normal_balance is None:
            object.__setattr__(self, "normal_balance", expected)
        elif self.normal_balance != expected:
            raise ValueError(
                f"Account {self.account_number}: {self.account_type.value} accounts "
                f"are {expected.value}-normal, got {self.normal_balance.value}"
            )
        if ACCOUNT_TYPE_BY_CATEGORY[self.category] != self.account_type:
            raise ValueError(
                f"Account {self.account_number}: category {self.category.value} "
                f"does not belong to type {self.account_type.value}"
            )

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.DEBIT

    @property
    def is_balance_sheet(self) -> bool:
        return self.account_type in (
            AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY,
        )
