"""
Module: ledger_engines.elimination
Responsibility:
    Turn intercompany matches into balanced elimination entries and express
    their effect on group accounts as natural-balance adjustments.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - One elimination entry per match, reversing both lines at the smaller
      of the two amounts.  Every entry balances.
    - Entry ids derive from the match id; re-running the same ledger
      reproduces them.
    - Eliminations are kept as separate entries and only netted against
      aggregated balances when the consolidated trial balance is built.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from uuid import UUID

from ledger_engines.group_aggregation import GroupAccount
from ledger_engines.ic_matching import IntercompanyMatch
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.journal import LineSide
from ledger_kernel.domain.values import Currency, Money, sum_money


@dataclass(frozen=True)
class EliminationLine:
    """One side of an elimination entry, on a group account."""

    group_account_number: str
    side: LineSide
    amount: Money
    company_id: UUID


@dataclass(frozen=True)
class EliminationEntry:
    """Consolidation-only entry that cancels one intercompany pair."""

    id: UUID
    match_id: UUID
    description: str
    lines: tuple[EliminationLine, ...]

    @property
    def total_debits(self) -> Money:
        currency = self.lines[0].amount.currency
        return sum_money((ln.amount for ln in self.lines if ln.side is LineSide.DEBIT), currency)

    @property
    def total_credits(self) -> Money:
        currency = self.lines[0].amount.currency
        return sum_money((ln.amount for ln in self.lines if ln.side is LineSide.CREDIT), currency)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


def _entry_id(match_id: UUID) -> UUID:
    return uuid.uuid5(uuid.NAMESPACE_URL, f"ledger:elimination:{match_id}")


@traced_engine("elimination", "1.0")
def build_elimination_entries(
    matches: Iterable[IntercompanyMatch],
) -> tuple[EliminationEntry, ...]:
    """One reversing entry per match."""
    entries: list[EliminationEntry] = []
    for match in matches:
        amount = match.eliminated_amount
        if amount.is_zero:
            continue
        item, counterpart = match.item, match.counterpart
        entries.append(
            EliminationEntry(
                id=_entry_id(match.id),
                match_id=match.id,
                description=(
                    f"Eliminate {item.group_account_number}/"
                    f"{counterpart.group_account_number} "
                    f"({item.company_id} <-> {counterpart.company_id})"
                ),
                lines=(
                    EliminationLine(
                        group_account_number=item.group_account_number,
                        side=item.side.opposite(),
                        amount=amount,
                        company_id=item.company_id,
                    ),
                    EliminationLine(
                        group_account_number=counterpart.group_account_number,
                        side=counterpart.side.opposite(),
                        amount=amount,
                        company_id=counterpart.company_id,
                    ),
                ),
            )
        )
    return tuple(entries)


def elimination_effects(
    entries: Iterable[EliminationEntry],
    accounts: Mapping[str, GroupAccount],
    currency: Currency,
) -> dict[str, Money]:
    """
    Natural-balance change per group account caused by the eliminations.

    A debit raises a debit-normal account and lowers a credit-normal one.
    """
    zero = Money.zero(currency)
    effects: dict[str, Money] = {}
    for entry in entries:
        for line in entry.lines:
            account = accounts[line.group_account_number]
            signed = line.amount if line.side is LineSide.DEBIT else -line.amount
            effects[line.group_account_number] = (
                effects.get(line.group_account_number, zero)
                + signed * account.sign_multiplier
            )
    return effects


def total_eliminated(entries: Iterable[EliminationEntry], currency: Currency) -> Money:
    """Sum of elimination debits (equal to credits for balanced entries)."""
    return sum_money((e.total_debits for e in entries), currency)
