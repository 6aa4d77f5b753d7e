"""
Module: ledger_engines.nci
Responsibility:
    Apportion the non-controlling share of a partly owned member's equity
    and net income, and express it as natural-balance adjustments on group
    accounts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only members with ownership below 100% produce an adjustment.
    - equity_share = nci% x member equity (including its translation
      adjustment); net_income_share = nci% x (revenue - expense).
    - The adjustment is self-balancing: each member equity account is
      reduced by its NCI share, "NCI share of net income" is debited with
      the income share, and the NCI equity account is credited with both.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from ledger_engines.group_aggregation import GroupAccount
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.accounts import AccountType
from ledger_kernel.domain.company import ConsolidationMember
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.nci")


@dataclass(frozen=True)
class NciAdjustment:
    """Non-controlling interest apportioned for one member."""

    company_id: UUID
    ownership_percentage: Decimal
    nci_percentage: Decimal
    member_equity: Money
    member_net_income: Money
    equity_share: Money
    net_income_share: Money
    equity_reductions: Mapping[str, Money]

    @property
    def total(self) -> Money:
        return self.equity_share + self.net_income_share


@traced_engine("nci", "1.0", fingerprint_fields=("currency",))
def compute_nci(
    members: Mapping[UUID, ConsolidationMember],
    member_balances: Mapping[UUID, Mapping[str, Money]],
    accounts: Mapping[str, GroupAccount],
    *,
    currency: Currency,
) -> tuple[NciAdjustment, ...]:
    """
    NCI adjustment for every member not wholly owned.

    ``member_balances`` holds each member's natural balances by group
    account number, as produced by group aggregation.
    """
    zero = Money.zero(currency)
    adjustments: list[NciAdjustment] = []

    for company_id, member in members.items():
        if member.is_wholly_owned:
            continue
        balances = member_balances.get(company_id, {})
        fraction = member.nci_fraction

        equity = zero
        revenue = zero
        expense = zero
        reductions: dict[str, Money] = {}
        for number, amount in balances.items():
            account_type = accounts[number].account_type
            if account_type == AccountType.EQUITY:
                equity = equity + amount
                share = amount * fraction
                if not share.is_zero:
                    reductions[number] = -share
            elif account_type == AccountType.REVENUE:
                revenue = revenue + amount
            elif account_type == AccountType.EXPENSE:
                expense = expense + amount

        net_income = revenue - expense
        adjustment = NciAdjustment(
            company_id=company_id,
            ownership_percentage=member.ownership_percentage,
            nci_percentage=fraction * Decimal("100"),
            member_equity=equity,
            member_net_income=net_income,
            equity_share=equity * fraction,
            net_income_share=net_income * fraction,
            equity_reductions=reductions,
        )
        adjustments.append(adjustment)

        logger.debug(
            "nci_apportioned",
            extra={
                "company_id": str(company_id),
                "nci_percentage": str(adjustment.nci_percentage),
                "equity_share": str(adjustment.equity_share.amount),
                "net_income_share": str(adjustment.net_income_share.amount),
            },
        )

    return tuple(adjustments)


def nci_effects(
    adjustments: tuple[NciAdjustment, ...],
    *,
    currency: Currency,
    nci_account_number: str,
    nci_income_account_number: str,
) -> dict[str, Money]:
    """
    Natural-balance change per group account caused by NCI.

    Both synthetic accounts are credit-normal equity accounts: the NCI
    account rises by the full share, the income-share account carries the
    debit that moves net income attributable to NCI out of group equity.
    """
    zero = Money.zero(currency)
    effects: dict[str, Money] = {}
    for adj in adjustments:
        for number, amount in adj.equity_reductions.items():
            effects[number] = effects.get(number, zero) + amount
        if not adj.net_income_share.is_zero:
            effects[nci_income_account_number] = (
                effects.get(nci_income_account_number, zero) - adj.net_income_share
            )
        if not adj.total.is_zero:
            effects[nci_account_number] = effects.get(nci_account_number, zero) + adj.total
    return effects
