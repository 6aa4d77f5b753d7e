"""
Consolidation-specific test fixtures.

Provides:
- ``JANUARY``: the fiscal period every scenario consolidates
- ``GroupBuilder``: a parent ledger plus members, rates, mappings and
  period statuses, turned into a provider and a ConsolidationService
- ``make_group``: factory fixture for GroupBuilder
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_engines.group_aggregation import ChartOfAccountsMapping
from ledger_engines.translation import RateQuote, RateType
from ledger_kernel.domain.company import (
    ConsolidationGroup,
    ConsolidationMember,
    ConsolidationMethod,
)
from ledger_kernel.domain.periods import FiscalPeriod, FiscalPeriodRef, PeriodStatus
from ledger_modules.consolidation.config import ConsolidationConfig
from ledger_modules.consolidation.service import ConsolidationService
from ledger_modules.providers import InMemoryLedgerProvider

JANUARY = FiscalPeriod(FiscalPeriodRef(2024, 1), date(2024, 1, 1), date(2024, 1, 31))


class GroupBuilder:
    """A consolidation group under construction in a test."""

    def __init__(self, parent, currency: str = "USD", clock=None):
        self.id = uuid4()
        self.currency = currency
        self.parent = parent
        self.ledgers = [parent]
        self.members = [ConsolidationMember(company_id=parent.id)]
        self.period_statuses = {(parent.id, JANUARY.ref): PeriodStatus.CLOSED}
        self.rates: list[RateQuote] = []
        self.mapping: ChartOfAccountsMapping | None = None
        self.historical_rates = {}
        self.clock = clock

    def add(
        self,
        ledger,
        ownership: str = "100",
        method: ConsolidationMethod = ConsolidationMethod.FULL,
        period_status: PeriodStatus | None = PeriodStatus.CLOSED,
    ) -> "GroupBuilder":
        self.ledgers.append(ledger)
        self.members.append(
            ConsolidationMember(
                company_id=ledger.id,
                ownership_percentage=Decimal(ownership),
                consolidation_method=method,
            )
        )
        if period_status is not None:
            self.period_statuses[(ledger.id, JANUARY.ref)] = period_status
        return self

    def rate(self, from_ccy, to_ccy, on: date, rate: str, rate_type=RateType.CLOSING):
        self.rates.append(RateQuote(from_ccy, to_ccy, on, Decimal(rate), rate_type))
        return self

    @property
    def group(self) -> ConsolidationGroup:
        return ConsolidationGroup(
            id=self.id,
            name="Test Group",
            reporting_currency=self.currency,
            parent_company_id=self.parent.id,
            members=self.members,
        )

    def provider(self) -> InMemoryLedgerProvider:
        return InMemoryLedgerProvider(
            companies=[lg.company for lg in self.ledgers],
            accounts=[a for lg in self.ledgers for a in lg.accounts.values()],
            entries=[e for lg in self.ledgers for e in lg.entries],
            groups=[self.group],
            period_statuses=self.period_statuses,
            rates=self.rates,
            mappings={self.id: self.mapping} if self.mapping is not None else None,
            historical_rates=self.historical_rates,
        )

    def service(self, config: ConsolidationConfig | None = None, store=None) -> ConsolidationService:
        return ConsolidationService(
            self.provider(), clock=self.clock, config=config, store=store,
        )


@pytest.fixture
def make_group(deterministic_clock):
    """Factory for GroupBuilder around a parent LedgerBuilder."""

    def _make(parent, currency: str = "USD") -> GroupBuilder:
        return GroupBuilder(parent, currency=currency, clock=deterministic_clock)

    return _make


@pytest.fixture
def intercompany_pair(make_ledger):
    """
    Parent and wholly owned subsidiary with a 500 receivable/payable pair.

    Parent: Dr 1100 (partner Sub) / Cr 4000.  Sub: Dr 6000 / Cr 2000
    (partner Parent).  Both are funded with share capital.
    """
    parent = make_ledger("Parent Co").standard_chart()
    sub = make_ledger("Sub Co").standard_chart()
    parent.transfer(date(2024, 1, 2), "1000", "3000", "10000")
    sub.transfer(date(2024, 1, 2), "1000", "3000", "2000")
    parent.transfer(date(2024, 1, 15), "1100", "4000", "500", debit_partner=sub.id)
    sub.transfer(date(2024, 1, 15), "6000", "2000", "500", credit_partner=parent.id)
    return parent, sub
