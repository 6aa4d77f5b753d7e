"""Tests for non-controlling interest apportionment."""

from decimal import Decimal
from uuid import uuid4

from ledger_engines.group_aggregation import GroupAccount
from ledger_engines.nci import compute_nci, nci_effects
from ledger_kernel.domain.accounts import AccountCategory, AccountType
from ledger_kernel.domain.company import ConsolidationMember
from ledger_kernel.domain.values import Currency, Money

USD = Currency("USD")

ACCOUNTS = {
    "1000": GroupAccount("1000", "Cash", AccountType.ASSET, AccountCategory.CURRENT_ASSET),
    "3000": GroupAccount(
        "3000", "Share Capital", AccountType.EQUITY, AccountCategory.CONTRIBUTED_CAPITAL,
    ),
    "3100": GroupAccount(
        "3100", "Retained Earnings", AccountType.EQUITY, AccountCategory.RETAINED_EARNINGS,
    ),
    "4000": GroupAccount(
        "4000", "Revenue", AccountType.REVENUE, AccountCategory.OPERATING_REVENUE,
    ),
    "6000": GroupAccount(
        "6000", "Expenses", AccountType.EXPENSE, AccountCategory.OPERATING_EXPENSE,
    ),
}


def _usd(amount: str) -> Money:
    return Money.of(amount, USD)


def _sub_balances():
    return {
        "1000": _usd("1700"),
        "3000": _usd("1000"),
        "3100": _usd("200"),
        "4000": _usd("800"),
        "6000": _usd("300"),
    }


class TestComputeNci:

    def test_eighty_percent_owned(self):
        sub = uuid4()
        members = {sub: ConsolidationMember(company_id=sub, ownership_percentage=Decimal("80"))}
        (adj,) = compute_nci(members, {sub: _sub_balances()}, ACCOUNTS, currency=USD)
        assert adj.nci_percentage == Decimal("20")
        assert adj.member_equity == _usd("1200")
        assert adj.member_net_income == _usd("500")
        assert adj.equity_share == _usd("240")
        assert adj.net_income_share == _usd("100")
        assert adj.total == _usd("340")
        assert adj.equity_reductions == {"3000": _usd("-200"), "3100": _usd("-40")}

    def test_wholly_owned_skipped(self):
        sub = uuid4()
        members = {sub: ConsolidationMember(company_id=sub)}
        assert compute_nci(members, {sub: _sub_balances()}, ACCOUNTS, currency=USD) == ()

    def test_member_without_balances(self):
        sub = uuid4()
        members = {sub: ConsolidationMember(company_id=sub, ownership_percentage=Decimal("60"))}
        (adj,) = compute_nci(members, {}, ACCOUNTS, currency=USD)
        assert adj.total.is_zero
        assert adj.equity_reductions == {}


class TestNciEffects:

    def test_self_balancing(self):
        sub = uuid4()
        members = {sub: ConsolidationMember(company_id=sub, ownership_percentage=Decimal("80"))}
        adjustments = compute_nci(members, {sub: _sub_balances()}, ACCOUNTS, currency=USD)
        effects = nci_effects(
            adjustments,
            currency=USD,
            nci_account_number="3950",
            nci_income_account_number="3960",
        )
        assert effects == {
            "3000": _usd("-200"),
            "3100": _usd("-40"),
            "3960": _usd("-100"),
            "3950": _usd("340"),
        }
        # All touched accounts are credit-normal equity, so effects net to zero
        total = sum((m.amount for m in effects.values()), Decimal("0"))
        assert total == Decimal("0")

    def test_no_adjustments(self):
        assert nci_effects(
            (), currency=USD, nci_account_number="3950", nci_income_account_number="3960",
        ) == {}
