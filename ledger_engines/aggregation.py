"""
Module: ledger_engines.aggregation
Responsibility:
    Fold a company's journal entries into per-account balances in a single
    linear pass.  Every report generator and the consolidation pipeline
    reuse this fold; none of them re-filters lines per section.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only POSTED entries of the target company are visible, with
      posting_date <= as_of (point-in-time) or inside
      [period_start, period_end] (period mode).
    - Amounts are accumulated in the company's functional currency using
      each line's functional_amount; a foreign-currency functional amount
      raises CurrencyMismatchError.
    - Natural balance = (debits - credits) * sign_multiplier(account).
    - No rounding and no hidden state: equal input gives equal output.

Failure modes:
    - OrphanedLineError when a line references an account outside the
      supplied chart of accounts.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from ledger_engines.classifier import sign_multiplier
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.accounts import Account
from ledger_kernel.domain.journal import JournalEntry
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import OrphanedLineError


@dataclass(frozen=True)
class LedgerTotals:
    """Debit and credit totals of one account in the functional currency."""

    account_id: UUID
    debit_total: Money
    credit_total: Money

    @property
    def net_debit(self) -> Money:
        """Debits minus credits (raw, not sign-adjusted)."""
        return self.debit_total - self.credit_total


def visible_entries(
    entries: Iterable[JournalEntry],
    company_id: UUID,
    as_of: date,
    period_start: date | None = None,
) -> list[JournalEntry]:
    """
    Entries of ``company_id`` the reporting engine may see.

    With ``period_start`` the posting date must fall inside
    [period_start, as_of]; otherwise anything posted on or before as_of.
    """
    if period_start is not None and as_of < period_start:
        raise ValueError(f"Period end {as_of} precedes period start {period_start}")
    visible: list[JournalEntry] = []
    for entry in entries:
        if entry.company_id != company_id:
            continue
        if period_start is None:
            if entry.is_visible_as_of(as_of):
                visible.append(entry)
        elif entry.is_visible_in(period_start, as_of):
            visible.append(entry)
    return visible


@traced_engine("aggregation", "1.0", fingerprint_fields=("currency",))
def accumulate_ledger(
    entries: Iterable[JournalEntry],
    accounts: Mapping[UUID, Account],
    *,
    currency: Currency,
) -> dict[UUID, LedgerTotals]:
    """
    Accumulate debit/credit totals per account.

    ``entries`` must already be filtered (see ``visible_entries``).  Accounts
    without lines are absent from the result.

    Raises:
        OrphanedLineError: A line references an account not in ``accounts``.
        CurrencyMismatchError: A functional amount is not in ``currency``.
    """
    zero = Money.zero(currency)
    debits: dict[UUID, Money] = {}
    credits: dict[UUID, Money] = {}

    for entry in entries:
        for line in entry.lines:
            if line.account_id not in accounts:
                raise OrphanedLineError(
                    str(entry.id), str(line.id), str(line.account_id),
                )
            bucket = debits if line.is_debit else credits
            bucket[line.account_id] = bucket.get(line.account_id, zero) + line.functional_amount

    return {
        account_id: LedgerTotals(
            account_id=account_id,
            debit_total=debits.get(account_id, zero),
            credit_total=credits.get(account_id, zero),
        )
        for account_id in sorted(debits.keys() | credits.keys(), key=str)
    }


def natural_balance(totals: LedgerTotals, account: Account) -> Money:
    """Sign-adjusted balance: positive when on the account's normal side."""
    return totals.net_debit * sign_multiplier(account)


def aggregate_balances(
    entries: Iterable[JournalEntry],
    accounts: Mapping[UUID, Account],
    *,
    currency: Currency,
) -> dict[UUID, Money]:
    """Account id -> natural balance for every account that has lines."""
    totals = accumulate_ledger(entries, accounts, currency=currency)
    return {
        account_id: natural_balance(t, accounts[account_id])
        for account_id, t in totals.items()
    }


class BalanceAggregator:
    """
    Point-in-time and period aggregation over one company's chart.

    Contract:
        Holds only the immutable chart of accounts and the functional
        currency; every call folds the entries it is given.

    Guarantees:
        - point_in_time() covers posting dates <= as_of.
        - for_period() covers posting dates inside [period_start, period_end].
    """

    def __init__(
        self,
        company_id: UUID,
        accounts: Iterable[Account],
        currency: Currency,
    ):
        self._company_id = company_id
        self._accounts: dict[UUID, Account] = {
            a.id: a for a in accounts if a.company_id == company_id
        }
        self._currency = currency

    @property
    def accounts(self) -> Mapping[UUID, Account]:
        return self._accounts

    @property
    def currency(self) -> Currency:
        return self._currency

    def point_in_time(
        self,
        entries: Iterable[JournalEntry],
        as_of: date,
    ) -> dict[UUID, LedgerTotals]:
        visible = visible_entries(entries, self._company_id, as_of)
        return accumulate_ledger(visible, self._accounts, currency=self._currency)

    def for_period(
        self,
        entries: Iterable[JournalEntry],
        period_start: date,
        period_end: date,
    ) -> dict[UUID, LedgerTotals]:
        return self.fold(self.period_entries(entries, period_start, period_end))

    def period_entries(
        self,
        entries: Iterable[JournalEntry],
        period_start: date,
        period_end: date,
    ) -> list[JournalEntry]:
        return visible_entries(entries, self._company_id, period_end, period_start)

    def fold(self, entries: Iterable[JournalEntry]) -> dict[UUID, LedgerTotals]:
        """Totals over entries that are already filtered."""
        return accumulate_ledger(entries, self._accounts, currency=self._currency)

    def natural_balances(self, totals: Mapping[UUID, LedgerTotals]) -> dict[UUID, Money]:
        return {
            account_id: natural_balance(t, self._accounts[account_id])
            for account_id, t in totals.items()
        }

    def balance_of(self, totals: Mapping[UUID, LedgerTotals], account_id: UUID) -> Money:
        """Natural balance of one account, zero when it has no lines."""
        t = totals.get(account_id)
        if t is None:
            return Money.zero(self._currency)
        return natural_balance(t, self._accounts[account_id])
