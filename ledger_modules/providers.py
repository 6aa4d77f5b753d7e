"""
Input providers (``ledger_modules.providers``).

Responsibility
--------------
Define the read-only interface through which the reporting and
consolidation services obtain companies, charts of accounts, journal
entries, consolidation groups, period status and exchange rates, plus an
in-memory snapshot implementation.

Architecture position
---------------------
**Modules layer** -- boundary type.  Persistence adapters implement
``LedgerProvider``; services depend only on the protocol.

Invariants enforced
-------------------
* Records handed out are the frozen domain records; callers cannot mutate
  the snapshot through them.
* ``InMemoryLedgerProvider`` copies its inputs into tuples at construction
  so later changes to the caller's lists are not observed.

Failure modes
-------------
* Unknown ids return ``None`` or empty collections; raising typed errors
  is the services' job.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from ledger_engines.group_aggregation import ChartOfAccountsMapping
from ledger_engines.translation import ExchangeRateTable, RateQuote
from ledger_kernel.domain.accounts import Account
from ledger_kernel.domain.company import Company, ConsolidationGroup
from ledger_kernel.domain.journal import JournalEntry
from ledger_kernel.domain.periods import FiscalPeriodRef, PeriodStatus
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.providers")


@runtime_checkable
class LedgerProvider(Protocol):
    """Read-only source of ledger records for one tenant."""

    def get_company(self, company_id: UUID) -> Company | None:
        """Company by id, or None."""
        ...

    def get_accounts(self, company_id: UUID) -> tuple[Account, ...]:
        """The company's chart of accounts."""
        ...

    def get_journal_entries(self, company_id: UUID) -> tuple[JournalEntry, ...]:
        """Every journal entry of the company, in any status."""
        ...

    def get_group(self, group_id: UUID) -> ConsolidationGroup | None:
        """Consolidation group by id, or None."""
        ...

    def get_period_status(
        self, company_id: UUID, period: FiscalPeriodRef,
    ) -> PeriodStatus | None:
        """Status of a company's fiscal period; None when the period is unknown."""
        ...

    def get_exchange_rates(self) -> ExchangeRateTable:
        """Snapshot of published exchange rates."""
        ...

    def get_account_mapping(self, group_id: UUID) -> ChartOfAccountsMapping:
        """Member-to-group chart of accounts mapping for a group."""
        ...

    def get_historical_rates(self, company_id: UUID) -> Mapping[str, Decimal]:
        """Account number -> historical rate override for equity translation."""
        ...


class InMemoryLedgerProvider:
    """
    Snapshot provider over records the caller already holds.

    Contract
    --------
    * Every getter is a dictionary lookup; nothing is computed.

    Non-goals
    ---------
    * Does NOT validate that entries balance or reference known accounts;
      report generators detect orphaned lines themselves.
    """

    def __init__(
        self,
        companies: Iterable[Company] = (),
        accounts: Iterable[Account] = (),
        entries: Iterable[JournalEntry] = (),
        groups: Iterable[ConsolidationGroup] = (),
        period_statuses: Mapping[tuple[UUID, FiscalPeriodRef], PeriodStatus] | None = None,
        rates: Iterable[RateQuote] = (),
        mappings: Mapping[UUID, ChartOfAccountsMapping] | None = None,
        historical_rates: Mapping[UUID, Mapping[str, Decimal]] | None = None,
    ):
        self._companies = {c.id: c for c in companies}
        self._groups = {g.id: g for g in groups}

        self._accounts: dict[UUID, list[Account]] = {}
        for account in accounts:
            self._accounts.setdefault(account.company_id, []).append(account)

        self._entries: dict[UUID, list[JournalEntry]] = {}
        for entry in entries:
            self._entries.setdefault(entry.company_id, []).append(entry)

        self._period_statuses = dict(period_statuses or {})
        self._rates = ExchangeRateTable(rates)
        self._mappings = dict(mappings or {})
        self._historical_rates = {
            cid: dict(overrides) for cid, overrides in (historical_rates or {}).items()
        }

        logger.debug(
            "in_memory_provider_loaded",
            extra={
                "company_count": len(self._companies),
                "group_count": len(self._groups),
                "entry_count": sum(len(v) for v in self._entries.values()),
                "rate_count": len(self._rates),
            },
        )

    def get_company(self, company_id: UUID) -> Company | None:
        return self._companies.get(company_id)

    def get_accounts(self, company_id: UUID) -> tuple[Account, ...]:
        return tuple(self._accounts.get(company_id, ()))

    def get_journal_entries(self, company_id: UUID) -> tuple[JournalEntry, ...]:
        return tuple(self._entries.get(company_id, ()))

    def get_group(self, group_id: UUID) -> ConsolidationGroup | None:
        return self._groups.get(group_id)

    def get_period_status(
        self, company_id: UUID, period: FiscalPeriodRef,
    ) -> PeriodStatus | None:
        return self._period_statuses.get((company_id, period))

    def get_exchange_rates(self) -> ExchangeRateTable:
        return self._rates

    def get_account_mapping(self, group_id: UUID) -> ChartOfAccountsMapping:
        return self._mappings.get(group_id, ChartOfAccountsMapping())

    def get_historical_rates(self, company_id: UUID) -> Mapping[str, Decimal]:
        return self._historical_rates.get(company_id, {})
