"""
Property-based tests over randomly generated balanced ledgers.

Properties checked:
- A trial balance of balanced entries always balances
- A balance sheet always satisfies Assets = Liabilities + Equity
- Reporting the same ledger twice gives identical reports
- Translating into the functional currency is the identity
- Any translation is re-balanced exactly by its adjustment
- A cash flow statement always reconciles to the change in cash, with
  contra assets and non-cash accounts in the chart
- Closing equity of the equity statement always equals balance sheet equity
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

from hypothesis import given, settings
from hypothesis import strategies as st

from ledger_engines.aggregation import aggregate_balances
from ledger_engines.translation import AccountBalance, TranslationRates, translate
from ledger_kernel.domain.accounts import (
    ACCOUNT_TYPE_BY_CATEGORY,
    Account,
    AccountCategory,
    AccountType,
    CashFlowCategory,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.company import Company
from ledger_kernel.domain.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    LineSide,
)
from ledger_kernel.domain.periods import FiscalPeriodRef
from ledger_kernel.domain.values import Currency, ExchangeRate, Money
from ledger_modules.providers import InMemoryLedgerProvider
from ledger_modules.reporting.service import ReportingService

CHART = (
    ("1000", AccountCategory.CURRENT_ASSET),
    ("1100", AccountCategory.CURRENT_ASSET),
    ("1500", AccountCategory.FIXED_ASSET),
    ("2000", AccountCategory.CURRENT_LIABILITY),
    ("2500", AccountCategory.NON_CURRENT_LIABILITY),
    ("3000", AccountCategory.CONTRIBUTED_CAPITAL),
    ("4000", AccountCategory.OPERATING_REVENUE),
    ("5000", AccountCategory.COST_OF_GOODS_SOLD),
    ("6000", AccountCategory.OPERATING_EXPENSE),
)
# Accumulated depreciation (contra asset) and reserves that never touch cash
CASH_FLOW_CHART = (
    *CHART,
    ("1590", AccountCategory.FIXED_ASSET),
    ("1600", AccountCategory.NON_CURRENT_ASSET, CashFlowCategory.NON_CASH),
    ("3100", AccountCategory.RETAINED_EARNINGS),
    ("3200", AccountCategory.TREASURY_STOCK),
    ("3300", AccountCategory.OTHER_COMPREHENSIVE_INCOME),
    ("6500", AccountCategory.DEPRECIATION_AMORTIZATION),
)
START = date(2024, 1, 1)
REPORT_DATE = date(2024, 3, 31)

amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("9999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
rates = st.decimals(
    min_value=Decimal("0.0001"),
    max_value=Decimal("500"),
    places=4,
    allow_nan=False,
    allow_infinity=False,
)


def _transfers(chart):
    return st.lists(
        st.tuples(
            st.integers(0, len(chart) - 1),
            st.integers(0, len(chart) - 1),
            amounts,
            st.integers(0, 120),
        ).filter(lambda t: t[0] != t[1]),
        max_size=25,
    )


transfers = _transfers(CHART)
cash_flow_transfers = _transfers(CASH_FLOW_CHART)


def _build_ledger(moves, currency: str = "USD", chart=CHART):
    """Company, accounts by number and posted two-line entries."""
    company = Company(id=uuid4(), name="Fuzz Co", functional_currency=Currency(currency))
    accounts = {
        number: Account(
            id=uuid4(),
            company_id=company.id,
            account_number=number,
            name=f"Account {number}",
            account_type=ACCOUNT_TYPE_BY_CATEGORY[category],
            category=category,
            cash_flow_category=rest[0] if rest else None,
        )
        for number, category, *rest in chart
    }
    numbers = [number for number, *_ in chart]

    entries = []
    for debit_idx, credit_idx, amount, offset in moves:
        on = START + timedelta(days=offset)
        money = Money.of(amount, currency)
        entries.append(
            JournalEntry(
                id=uuid4(),
                company_id=company.id,
                status=JournalEntryStatus.POSTED,
                transaction_date=on,
                fiscal_period=FiscalPeriodRef(on.year, on.month),
                posting_date=on,
                lines=(
                    JournalEntryLine(
                        id=uuid4(),
                        account_id=accounts[numbers[debit_idx]].id,
                        side=LineSide.DEBIT,
                        amount=money,
                    ),
                    JournalEntryLine(
                        id=uuid4(),
                        account_id=accounts[numbers[credit_idx]].id,
                        side=LineSide.CREDIT,
                        amount=money,
                    ),
                ),
            )
        )
    return company, accounts, entries


def _service(company, accounts, entries) -> ReportingService:
    provider = InMemoryLedgerProvider(
        companies=[company], accounts=accounts.values(), entries=entries,
    )
    return ReportingService(provider, clock=DeterministicClock())


def _natural_balances(accounts, entries, currency: str) -> tuple[AccountBalance, ...]:
    by_id = {a.id: a for a in accounts.values()}
    balances = aggregate_balances(entries, by_id, currency=Currency(currency))
    return tuple(
        AccountBalance(account=by_id[account_id], balance=amount)
        for account_id, amount in balances.items()
    )


class TestReportProperties:

    @given(moves=transfers)
    @settings(max_examples=100, deadline=None)
    def test_trial_balance_always_balances(self, moves):
        company, accounts, entries = _build_ledger(moves)
        report = _service(company, accounts, entries).trial_balance(company.id, REPORT_DATE)
        assert report.is_balanced
        assert report.total_debits == report.total_credits

    @given(moves=transfers)
    @settings(max_examples=100, deadline=None)
    def test_accounting_equation_holds(self, moves):
        company, accounts, entries = _build_ledger(moves)
        report = _service(company, accounts, entries).balance_sheet(company.id, REPORT_DATE)
        assert report.total_assets == report.total_liabilities + report.total_equity
        assert report.totals.is_balanced

    @given(moves=transfers, cutoff=st.integers(0, 120))
    @settings(max_examples=50, deadline=None)
    def test_reports_are_reproducible(self, moves, cutoff):
        company, accounts, entries = _build_ledger(moves)
        service = _service(company, accounts, entries)
        as_of = START + timedelta(days=cutoff)
        assert service.trial_balance(company.id, as_of) == service.trial_balance(company.id, as_of)
        assert service.balance_sheet(company.id, as_of) == service.balance_sheet(company.id, as_of)


class TestFlowStatementProperties:

    @given(moves=cash_flow_transfers, start=st.integers(0, 90))
    @settings(max_examples=100, deadline=None)
    def test_cash_flow_reconciles(self, moves, start):
        company, accounts, entries = _build_ledger(moves, chart=CASH_FLOW_CHART)
        period_start = START + timedelta(days=start)
        report = _service(company, accounts, entries).cash_flow_statement(
            company.id, period_start, REPORT_DATE,
        )
        assert report.cash_change_reconciles
        assert report.net_change_in_cash == report.ending_cash - report.beginning_cash

    @given(moves=cash_flow_transfers, start=st.integers(0, 90))
    @settings(max_examples=50, deadline=None)
    def test_equity_statement_closes_to_balance_sheet(self, moves, start):
        company, accounts, entries = _build_ledger(moves, chart=CASH_FLOW_CHART)
        service = _service(company, accounts, entries)
        period_start = START + timedelta(days=start)
        report = service.equity_statement(company.id, period_start, REPORT_DATE)
        sheet = service.balance_sheet(company.id, REPORT_DATE)
        assert report.reconciles
        assert report.total_closing_equity == sheet.total_equity


class TestTranslationProperties:

    @given(moves=transfers)
    @settings(max_examples=50, deadline=None)
    def test_same_currency_is_identity(self, moves):
        _, accounts, entries = _build_ledger(moves)
        balances = _natural_balances(accounts, entries, "USD")
        usd = Currency("USD")
        result = translate(balances, functional_currency=usd, group_currency=usd)
        assert result.balances == balances
        assert result.cta.is_zero

    @given(moves=transfers, closing=rates, average=rates, historical=rates)
    @settings(max_examples=100, deadline=None)
    def test_adjustment_rebalances_translation(self, moves, closing, average, historical):
        _, accounts, entries = _build_ledger(moves, currency="EUR")
        balances = _natural_balances(accounts, entries, "EUR")
        result = translate(
            balances,
            functional_currency=Currency("EUR"),
            group_currency=Currency("USD"),
            rates=TranslationRates(
                closing=ExchangeRate.of("EUR", "USD", closing),
                average=ExchangeRate.of("EUR", "USD", average),
                historical=ExchangeRate.of("EUR", "USD", historical),
            ),
        )

        debit_normal = Money.zero("USD")
        credit_normal = Money.zero("USD")
        for item in result.balances:
            if item.account.account_type in (AccountType.ASSET, AccountType.EXPENSE):
                debit_normal = debit_normal + item.balance
            else:
                credit_normal = credit_normal + item.balance
        assert debit_normal == credit_normal + result.cta
