"""
Pytest fixtures for the ledger reporting and consolidation test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- A deterministic clock and actor id
- ``make_ledger``: builder for one company's chart and journal entries
- ``make_provider``: InMemoryLedgerProvider over one or more builders
"""

import json
import logging
from datetime import date, datetime, timezone
from io import StringIO
from uuid import UUID, uuid4

import pytest

from ledger_kernel.domain.accounts import Account, AccountCategory, ACCOUNT_TYPE_BY_CATEGORY
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.company import Company
from ledger_kernel.domain.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    LineSide,
)
from ledger_kernel.domain.periods import FiscalPeriodRef
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_modules.providers import InMemoryLedgerProvider


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, reporting_service):
            reporting_service.trial_balance(...)
            logs = captured_logs()
            assert any(r["message"] == "report_generated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and actor
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 1, 31, 18, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def test_actor_id() -> UUID:
    return uuid4()


# =============================================================================
# Ledger builders
# =============================================================================


STANDARD_CHART = (
    ("1000", "Cash", AccountCategory.CURRENT_ASSET),
    ("1100", "Accounts Receivable", AccountCategory.CURRENT_ASSET),
    ("1500", "Equipment", AccountCategory.FIXED_ASSET),
    ("2000", "Accounts Payable", AccountCategory.CURRENT_LIABILITY),
    ("2500", "Long-Term Loan", AccountCategory.NON_CURRENT_LIABILITY),
    ("3000", "Share Capital", AccountCategory.CONTRIBUTED_CAPITAL),
    ("3100", "Retained Earnings", AccountCategory.RETAINED_EARNINGS),
    ("4000", "Sales Revenue", AccountCategory.OPERATING_REVENUE),
    ("5000", "Cost of Goods Sold", AccountCategory.COST_OF_GOODS_SOLD),
    ("6000", "Operating Expenses", AccountCategory.OPERATING_EXPENSE),
    ("7000", "Interest Expense", AccountCategory.INTEREST_EXPENSE),
    ("8000", "Income Tax Expense", AccountCategory.TAX_EXPENSE),
)


class LedgerBuilder:
    """One company's chart of accounts and journal, built in a test."""

    def __init__(self, name: str = "Parent Co", currency: str = "USD", is_active: bool = True):
        self.company = Company(
            id=uuid4(),
            name=name,
            functional_currency=Currency(currency),
            is_active=is_active,
        )
        self.accounts: dict[str, Account] = {}
        self.entries: list[JournalEntry] = []

    @property
    def id(self) -> UUID:
        return self.company.id

    @property
    def currency(self) -> Currency:
        return self.company.functional_currency

    def money(self, amount) -> Money:
        return Money.of(amount, self.currency)

    def account(
        self,
        number: str,
        name: str,
        category: AccountCategory,
        **kwargs,
    ) -> Account:
        account = Account(
            id=uuid4(),
            company_id=self.company.id,
            account_number=number,
            name=name,
            account_type=ACCOUNT_TYPE_BY_CATEGORY[category],
            category=category,
            **kwargs,
        )
        self.accounts[number] = account
        return account

    def standard_chart(self, *numbers: str) -> "LedgerBuilder":
        """Add the standard accounts (all of them when no numbers are given)."""
        for number, name, category in STANDARD_CHART:
            if not numbers or number in numbers:
                self.account(number, name, category)
        return self

    def post(
        self,
        on: date,
        lines,
        *,
        status: JournalEntryStatus = JournalEntryStatus.POSTED,
        posting_date: date | None = None,
        description: str | None = None,
    ) -> JournalEntry:
        """
        Add an entry.  ``lines`` holds (account_number, side, amount) or
        (account_number, side, amount, partner_company_id) tuples.
        """
        built = []
        for number, (account_number, side, amount, *rest) in enumerate(lines, start=1):
            partner = rest[0] if rest else None
            built.append(
                JournalEntryLine(
                    id=uuid4(),
                    account_id=self.accounts[account_number].id,
                    side=LineSide(side),
                    amount=self.money(amount),
                    intercompany_partner_id=partner,
                    line_number=number,
                )
            )
        is_posted = status == JournalEntryStatus.POSTED
        entry = JournalEntry(
            id=uuid4(),
            company_id=self.company.id,
            status=status,
            transaction_date=on,
            fiscal_period=FiscalPeriodRef(on.year, on.month),
            lines=tuple(built),
            posting_date=(posting_date or on) if is_posted else None,
            description=description,
        )
        self.entries.append(entry)
        return entry

    def transfer(
        self,
        on: date,
        debit: str,
        credit: str,
        amount,
        *,
        debit_partner: UUID | None = None,
        credit_partner: UUID | None = None,
        status: JournalEntryStatus = JournalEntryStatus.POSTED,
    ) -> JournalEntry:
        """Two-line entry: Dr ``debit`` / Cr ``credit``."""
        return self.post(
            on,
            [
                (debit, "debit", amount, debit_partner),
                (credit, "credit", amount, credit_partner),
            ],
            status=status,
        )


@pytest.fixture
def make_ledger():
    """Factory for LedgerBuilder instances."""

    def _make(name: str = "Parent Co", currency: str = "USD", **kwargs) -> LedgerBuilder:
        return LedgerBuilder(name=name, currency=currency, **kwargs)

    return _make


@pytest.fixture
def make_provider():
    """Factory for an InMemoryLedgerProvider over LedgerBuilder instances."""

    def _make(*ledgers: LedgerBuilder, **kwargs) -> InMemoryLedgerProvider:
        return InMemoryLedgerProvider(
            companies=[lg.company for lg in ledgers],
            accounts=[a for lg in ledgers for a in lg.accounts.values()],
            entries=[e for lg in ledgers for e in lg.entries],
            **kwargs,
        )

    return _make


@pytest.fixture
def usd():
    return Currency("USD")
