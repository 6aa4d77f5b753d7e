"""Tests for group aggregation through the chart-of-accounts mapping."""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_engines.group_aggregation import (
    ChartOfAccountsMapping,
    GroupAccount,
    MemberContribution,
    aggregate_group,
    find_mapping_conflicts,
)
from ledger_engines.translation import AccountBalance
from ledger_kernel.domain.accounts import (
    ACCOUNT_TYPE_BY_CATEGORY,
    Account,
    AccountCategory,
    AccountType,
)
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import AccountMappingConflictError, CurrencyMismatchError

USD = Currency("USD")
CTA = GroupAccount(
    "3900", "Cumulative Translation Adjustment", AccountType.EQUITY,
    AccountCategory.OTHER_COMPREHENSIVE_INCOME,
)


def _account(company_id, number, category, name=None) -> Account:
    return Account(
        id=uuid4(),
        company_id=company_id,
        account_number=number,
        name=name or number,
        account_type=ACCOUNT_TYPE_BY_CATEGORY[category],
        category=category,
    )


def _contribution(company_id, *rows, cta="0", weight=Decimal("1")):
    balances = tuple(
        AccountBalance(_account(company_id, number, category), Money.of(amount, USD))
        for number, category, amount in rows
    )
    return MemberContribution(company_id, balances, Money.of(cta, USD), weight)


class TestAggregateGroup:

    def test_same_number_sums_across_members(self):
        parent, sub = uuid4(), uuid4()
        result = aggregate_group(
            [
                _contribution(parent, ("1000", AccountCategory.CURRENT_ASSET, "700")),
                _contribution(sub, ("1000", AccountCategory.CURRENT_ASSET, "300")),
            ],
            ChartOfAccountsMapping(),
            currency=USD,
            cta_account=CTA,
        )
        assert result.amount("1000") == Money.of("1000", USD)
        assert result.by_member[parent]["1000"] == Money.of("700", USD)
        assert result.by_member[sub]["1000"] == Money.of("300", USD)

    def test_override_maps_member_number(self):
        sub = uuid4()
        mapping = ChartOfAccountsMapping(overrides={(sub, "1010"): "1000"})
        result = aggregate_group(
            [_contribution(sub, ("1010", AccountCategory.CURRENT_ASSET, "50"))],
            mapping,
            currency=USD,
            cta_account=CTA,
        )
        assert list(result.amounts) == ["1000"]

    def test_cta_booked_to_configured_account(self):
        sub = uuid4()
        result = aggregate_group(
            [_contribution(sub, ("1000", AccountCategory.CURRENT_ASSET, "10"), cta="4")],
            ChartOfAccountsMapping(),
            currency=USD,
            cta_account=CTA,
        )
        assert result.amount("3900") == Money.of("4", USD)
        assert result.accounts["3900"].account_type == AccountType.EQUITY

    def test_proportional_weight(self):
        sub = uuid4()
        result = aggregate_group(
            [_contribution(
                sub, ("4000", AccountCategory.OPERATING_REVENUE, "1000"),
                weight=Decimal("0.5"),
            )],
            ChartOfAccountsMapping(),
            currency=USD,
            cta_account=CTA,
        )
        assert result.amount("4000") == Money.of("500", USD)

    def test_untouched_account_is_zero(self):
        result = aggregate_group([], ChartOfAccountsMapping(), currency=USD, cta_account=CTA)
        assert result.amount("9999").is_zero

    def test_type_conflict_raises(self):
        parent, sub = uuid4(), uuid4()
        with pytest.raises(AccountMappingConflictError) as exc_info:
            aggregate_group(
                [
                    _contribution(parent, ("1500", AccountCategory.FIXED_ASSET, "10")),
                    _contribution(sub, ("1500", AccountCategory.OPERATING_EXPENSE, "10")),
                ],
                ChartOfAccountsMapping(),
                currency=USD,
                cta_account=CTA,
            )
        assert exc_info.value.group_account_number == "1500"
        assert exc_info.value.types == ("asset", "expense")

    def test_foreign_contribution_rejected(self):
        sub = uuid4()
        foreign = MemberContribution(
            sub,
            (AccountBalance(
                _account(sub, "1000", AccountCategory.CURRENT_ASSET), Money.of("1", "EUR"),
            ),),
            Money.zero(USD),
        )
        with pytest.raises(CurrencyMismatchError):
            aggregate_group([foreign], ChartOfAccountsMapping(), currency=USD, cta_account=CTA)


class TestFindMappingConflicts:

    def test_no_conflicts(self):
        parent = uuid4()
        charts = {parent: [_account(parent, "1000", AccountCategory.CURRENT_ASSET)]}
        assert find_mapping_conflicts(charts, ChartOfAccountsMapping()) == {}

    def test_conflict_reported_by_group_number(self):
        parent, sub = uuid4(), uuid4()
        charts = {
            parent: [_account(parent, "2000", AccountCategory.CURRENT_LIABILITY)],
            sub: [_account(sub, "2010", AccountCategory.OPERATING_REVENUE)],
        }
        mapping = ChartOfAccountsMapping(overrides={(sub, "2010"): "2000"})
        assert find_mapping_conflicts(charts, mapping) == {"2000": ("liability", "revenue")}

    def test_named_group_account_type_checked(self):
        parent = uuid4()
        charts = {parent: [_account(parent, "1000", AccountCategory.CURRENT_ASSET)]}
        mapping = ChartOfAccountsMapping(group_accounts={
            "1000": GroupAccount(
                "1000", "Cash", AccountType.LIABILITY, AccountCategory.CURRENT_LIABILITY,
            ),
        })
        assert find_mapping_conflicts(charts, mapping) == {"1000": ("asset", "liability")}
