"""Tests for elimination entries built from intercompany matches."""

from datetime import date
from uuid import UUID, uuid4

import pytest

from ledger_engines.elimination import (
    build_elimination_entries,
    elimination_effects,
    total_eliminated,
)
from ledger_engines.group_aggregation import GroupAccount
from ledger_engines.ic_matching import (
    IntercompanyItem,
    MatchingTolerance,
    match_intercompany,
)
from ledger_kernel.domain.accounts import AccountCategory, AccountType
from ledger_kernel.domain.journal import LineSide
from ledger_kernel.domain.values import Currency, Money

USD = Currency("USD")
PARENT_ID = UUID("00000000-0000-0000-0000-00000000000a")
SUB_ID = UUID("00000000-0000-0000-0000-00000000000b")

GROUP_ACCOUNTS = {
    "1100": GroupAccount("1100", "Receivables", AccountType.ASSET, AccountCategory.CURRENT_ASSET),
    "2000": GroupAccount(
        "2000", "Payables", AccountType.LIABILITY, AccountCategory.CURRENT_LIABILITY,
    ),
}


def _item(company_id, partner_id, number, account_type, side, amount):
    return IntercompanyItem(
        company_id=company_id,
        partner_company_id=partner_id,
        entry_id=uuid4(),
        line_id=uuid4(),
        group_account_number=number,
        account_type=account_type,
        side=side,
        amount=Money.of(amount, USD),
        transaction_date=date(2024, 1, 10),
    )


def _matches(receivable="500", payable="500", percent="0"):
    items = [
        _item(PARENT_ID, SUB_ID, "1100", AccountType.ASSET, LineSide.DEBIT, receivable),
        _item(SUB_ID, PARENT_ID, "2000", AccountType.LIABILITY, LineSide.CREDIT, payable),
    ]
    tolerance = MatchingTolerance(amount_tolerance_percent=percent)
    return match_intercompany(items, tolerance=tolerance).matches


class TestBuildEliminationEntries:

    def test_reverses_both_lines(self):
        (entry,) = build_elimination_entries(_matches())
        by_account = {ln.group_account_number: ln for ln in entry.lines}
        assert by_account["1100"].side is LineSide.CREDIT
        assert by_account["2000"].side is LineSide.DEBIT
        assert by_account["1100"].company_id == PARENT_ID
        assert entry.is_balanced
        assert entry.total_debits == Money.of("500", USD)

    def test_partial_match_eliminates_smaller_amount(self):
        (entry,) = build_elimination_entries(_matches("500", "495", percent="1"))
        assert all(ln.amount == Money.of("495", USD) for ln in entry.lines)
        assert entry.is_balanced

    def test_ids_follow_match_ids(self):
        matches = _matches()
        first = build_elimination_entries(matches)
        second = build_elimination_entries(matches)
        assert first[0].id == second[0].id
        assert first[0].match_id == matches[0].id
        assert first[0].id != matches[0].id

    def test_no_matches_no_entries(self):
        assert build_elimination_entries(()) == ()


class TestEliminationEffects:

    def test_receivable_and_payable_both_reduced(self):
        entries = build_elimination_entries(_matches())
        effects = elimination_effects(entries, GROUP_ACCOUNTS, USD)
        assert effects == {
            "1100": Money.of("-500", USD),
            "2000": Money.of("-500", USD),
        }

    def test_unknown_group_account_raises(self):
        entries = build_elimination_entries(_matches())
        with pytest.raises(KeyError):
            elimination_effects(entries, {"1100": GROUP_ACCOUNTS["1100"]}, USD)

    def test_total_eliminated(self):
        entries = build_elimination_entries(_matches())
        assert total_eliminated(entries, USD) == Money.of("500", USD)
        assert total_eliminated((), USD).is_zero
