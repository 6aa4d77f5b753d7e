"""
Pure domain layer.

Immutable records and value objects with NO dependencies on the ORM,
the database, the clock or any I/O.
"""

from ledger_kernel.domain.accounts import (
    Account,
    AccountCategory,
    AccountType,
    CashFlowCategory,
    NormalBalance,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.company import (
    Company,
    ConsolidationGroup,
    ConsolidationMember,
    ConsolidationMethod,
)
from ledger_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from ledger_kernel.domain.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    LineSide,
)
from ledger_kernel.domain.periods import FiscalPeriod, FiscalPeriodRef, PeriodStatus
from ledger_kernel.domain.values import Currency, ExchangeRate, Money, sum_money

__all__ = [
    "Account",
    "AccountCategory",
    "AccountType",
    "CashFlowCategory",
    "Clock",
    "Company",
    "ConsolidationGroup",
    "ConsolidationMember",
    "ConsolidationMethod",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "ExchangeRate",
    "FiscalPeriod",
    "FiscalPeriodRef",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryStatus",
    "LineSide",
    "Money",
    "NormalBalance",
    "PeriodStatus",
    "SystemClock",
    "sum_money",
]
