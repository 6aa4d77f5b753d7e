"""
Module: ledger_engines.group_aggregation
Responsibility:
    Sum translated member balances into group accounts.  Member accounts
    are matched through a chart-of-accounts mapping keyed by group account
    number; account identities are never assumed to be shared across
    companies.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Every contribution is in the group currency (Money arithmetic
      raises CurrencyMismatchError otherwise).
    - All member accounts mapped to one group account share an account
      type; a conflict raises AccountMappingConflictError.
    - Each member's CTA is booked to the configured CTA group account.
    - Per-member amounts are kept alongside the group totals so that the
      NCI step can apportion one member's equity.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from ledger_engines.translation import AccountBalance
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.accounts import (
    Account,
    AccountCategory,
    AccountType,
    NORMAL_BALANCE_BY_TYPE,
    NormalBalance,
)
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import AccountMappingConflictError

_ONE = Decimal("1")


@dataclass(frozen=True)
class GroupAccount:
    """An account of the consolidated chart, identified by its number."""

    account_number: str
    name: str
    account_type: AccountType
    category: AccountCategory

    @property
    def normal_balance(self) -> NormalBalance:
        return NORMAL_BALANCE_BY_TYPE[self.account_type]

    @property
    def sign_multiplier(self) -> int:
        return 1 if self.normal_balance == NormalBalance.DEBIT else -1

    @classmethod
    def from_account(cls, account: Account, account_number: str) -> GroupAccount:
        return cls(
            account_number=account_number,
            name=account.name,
            account_type=account.account_type,
            category=account.category,
        )


@dataclass(frozen=True)
class ChartOfAccountsMapping:
    """
    Member account -> group account number.

    ``overrides`` is keyed by (company id, member account number).  Accounts
    without an override map to their own account number.  ``group_accounts``
    optionally names group accounts; otherwise the first mapped member
    account supplies name and category.
    """

    overrides: Mapping[tuple[UUID, str], str] = field(default_factory=dict)
    group_accounts: Mapping[str, GroupAccount] = field(default_factory=dict)

    def group_number_for(self, company_id: UUID, account: Account) -> str:
        return self.overrides.get((company_id, account.account_number), account.account_number)

    def group_account_for(self, company_id: UUID, account: Account) -> GroupAccount:
        number = self.group_number_for(company_id, account)
        named = self.group_accounts.get(number)
        if named is not None:
            return named
        return GroupAccount.from_account(account, number)


def find_mapping_conflicts(
    charts: Mapping[UUID, Iterable[Account]],
    mapping: ChartOfAccountsMapping,
) -> dict[str, tuple[str, ...]]:
    """Group account number -> conflicting account type values."""
    seen: dict[str, set[AccountType]] = {}
    for company_id, accounts in charts.items():
        for account in accounts:
            group = mapping.group_account_for(company_id, account)
            types = seen.setdefault(group.account_number, set())
            types.add(account.account_type)
            if group.account_type != account.account_type:
                types.add(group.account_type)
    return {
        number: tuple(sorted(t.value for t in types))
        for number, types in sorted(seen.items())
        if len(types) > 1
    }


@dataclass(frozen=True)
class MemberContribution:
    """
    One member's translated balances entering the group.

    ``weight`` scales the member's figures: 1 for full consolidation, the
    ownership fraction for proportional consolidation.
    """

    company_id: UUID
    balances: tuple[AccountBalance, ...]
    cta: Money
    weight: Decimal = _ONE


@dataclass(frozen=True)
class GroupBalances:
    """Aggregated natural balances per group account number."""

    currency: Currency
    accounts: Mapping[str, GroupAccount]
    amounts: Mapping[str, Money]
    by_member: Mapping[UUID, Mapping[str, Money]]

    def amount(self, account_number: str) -> Money:
        return self.amounts.get(account_number, Money.zero(self.currency))


@traced_engine("group_aggregation", "1.0", fingerprint_fields=("currency",))
def aggregate_group(
    contributions: Iterable[MemberContribution],
    mapping: ChartOfAccountsMapping,
    *,
    currency: Currency,
    cta_account: GroupAccount,
) -> GroupBalances:
    """
    Sum member contributions account by account.

    Raises:
        AccountMappingConflictError: Two account types map to one number.
        CurrencyMismatchError: A contribution is not in ``currency``.
    """
    zero = Money.zero(currency)
    accounts: dict[str, GroupAccount] = {}
    amounts: dict[str, Money] = {}
    by_member: dict[UUID, dict[str, Money]] = {}

    def _book(company_id: UUID, group: GroupAccount, amount: Money) -> None:
        known = accounts.get(group.account_number)
        if known is None:
            accounts[group.account_number] = group
        elif known.account_type != group.account_type:
            raise AccountMappingConflictError(
                group.account_number,
                tuple(sorted({known.account_type.value, group.account_type.value})),
            )
        amounts[group.account_number] = amounts.get(group.account_number, zero) + amount
        member = by_member.setdefault(company_id, {})
        member[group.account_number] = member.get(group.account_number, zero) + amount

    for contribution in contributions:
        for item in contribution.balances:
            group = mapping.group_account_for(contribution.company_id, item.account)
            _book(contribution.company_id, group, item.balance * contribution.weight)
        if not contribution.cta.is_zero:
            _book(contribution.company_id, cta_account, contribution.cta * contribution.weight)

    ordered = sorted(accounts)
    return GroupBalances(
        currency=currency,
        accounts={n: accounts[n] for n in ordered},
        amounts={n: amounts[n] for n in ordered},
        by_member={cid: dict(sorted(m.items())) for cid, m in by_member.items()},
    )
