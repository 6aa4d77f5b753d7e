"""Tests for the balance aggregator: visibility, accumulation and sign convention."""

from datetime import date
from uuid import uuid4

import pytest

from ledger_engines.aggregation import (
    BalanceAggregator,
    accumulate_ledger,
    aggregate_balances,
    visible_entries,
)
from ledger_kernel.domain.journal import JournalEntryStatus
from ledger_kernel.domain.values import Money
from ledger_kernel.exceptions import CurrencyMismatchError, OrphanedLineError


@pytest.fixture
def ledger(make_ledger):
    lg = make_ledger().standard_chart()
    lg.transfer(date(2024, 1, 5), "1000", "3000", "1000")
    lg.transfer(date(2024, 1, 20), "1000", "4000", "400")
    lg.transfer(date(2024, 2, 3), "6000", "1000", "150")
    return lg


def _aggregator(lg) -> BalanceAggregator:
    return BalanceAggregator(lg.id, lg.accounts.values(), lg.currency)


class TestVisibleEntries:

    def test_filters_company_and_status(self, ledger, make_ledger):
        other = make_ledger("Other").standard_chart("1000", "3000")
        other.transfer(date(2024, 1, 5), "1000", "3000", "5")
        ledger.transfer(date(2024, 1, 6), "1000", "3000", "1", status=JournalEntryStatus.DRAFT)

        visible = visible_entries(ledger.entries + other.entries, ledger.id, date(2024, 12, 31))
        assert len(visible) == 3
        assert all(e.company_id == ledger.id and e.is_posted for e in visible)

    def test_point_in_time_cutoff(self, ledger):
        assert len(visible_entries(ledger.entries, ledger.id, date(2024, 1, 19))) == 1

    def test_period_range(self, ledger):
        visible = visible_entries(
            ledger.entries, ledger.id, date(2024, 2, 29), period_start=date(2024, 2, 1),
        )
        assert len(visible) == 1

    def test_period_end_before_start_rejected(self, ledger):
        with pytest.raises(ValueError, match="precedes"):
            visible_entries(ledger.entries, ledger.id, date(2024, 1, 1), date(2024, 2, 1))


class TestAccumulation:

    def test_debit_and_credit_totals(self, ledger):
        totals = accumulate_ledger(
            ledger.entries,
            {a.id: a for a in ledger.accounts.values()},
            currency=ledger.currency,
        )
        cash = totals[ledger.accounts["1000"].id]
        assert cash.debit_total == Money.of("1400", "USD")
        assert cash.credit_total == Money.of("150", "USD")
        assert cash.net_debit == Money.of("1250", "USD")

    def test_accounts_without_lines_absent(self, ledger):
        totals = accumulate_ledger(
            ledger.entries,
            {a.id: a for a in ledger.accounts.values()},
            currency=ledger.currency,
        )
        assert ledger.accounts["2000"].id not in totals

    def test_orphaned_line_raises(self, ledger):
        known = {a.id: a for a in ledger.accounts.values() if a.account_number != "4000"}
        with pytest.raises(OrphanedLineError) as exc_info:
            accumulate_ledger(ledger.entries, known, currency=ledger.currency)
        assert exc_info.value.account_id == str(ledger.accounts["4000"].id)

    def test_wrong_currency_raises(self, ledger, make_ledger):
        eur = make_ledger("Euro Co", "EUR").standard_chart("1000", "3000")
        eur.transfer(date(2024, 1, 5), "1000", "3000", "10")
        with pytest.raises(CurrencyMismatchError):
            accumulate_ledger(
                eur.entries,
                {a.id: a for a in eur.accounts.values()},
                currency=ledger.currency,
            )


class TestNaturalBalances:

    def test_sign_convention(self, ledger):
        balances = aggregate_balances(
            ledger.entries,
            {a.id: a for a in ledger.accounts.values()},
            currency=ledger.currency,
        )
        # Debit-normal asset with a net debit, credit-normal accounts with net credits
        assert balances[ledger.accounts["1000"].id] == Money.of("1250", "USD")
        assert balances[ledger.accounts["3000"].id] == Money.of("1000", "USD")
        assert balances[ledger.accounts["4000"].id] == Money.of("400", "USD")
        assert balances[ledger.accounts["6000"].id] == Money.of("150", "USD")

    def test_point_in_time_and_period(self, ledger):
        agg = _aggregator(ledger)
        jan = agg.point_in_time(ledger.entries, date(2024, 1, 31))
        feb = agg.for_period(ledger.entries, date(2024, 2, 1), date(2024, 2, 29))
        cash_id = ledger.accounts["1000"].id
        assert agg.balance_of(jan, cash_id) == Money.of("1400", "USD")
        assert agg.balance_of(feb, cash_id) == Money.of("-150", "USD")

    def test_balance_of_untouched_account_is_zero(self, ledger):
        agg = _aggregator(ledger)
        totals = agg.point_in_time(ledger.entries, date(2024, 12, 31))
        assert agg.balance_of(totals, ledger.accounts["2500"].id).is_zero

    def test_idempotent(self, ledger):
        agg = _aggregator(ledger)
        first = agg.natural_balances(agg.point_in_time(ledger.entries, date(2024, 12, 31)))
        second = agg.natural_balances(agg.point_in_time(ledger.entries, date(2024, 12, 31)))
        assert first == second

    def test_foreign_accounts_ignored(self, ledger):
        foreign = uuid4()
        agg = BalanceAggregator(foreign, ledger.accounts.values(), ledger.currency)
        assert agg.accounts == {}
