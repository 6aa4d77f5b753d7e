"""
Module: ledger_engines.ic_matching
Responsibility:
    Pair intercompany-flagged journal lines of two group members so the
    elimination step can reverse them.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A pair joins A's line naming B as partner with B's line naming A.
    - The two lines sit on opposite sides (one debit, one credit).
    - Amounts (in the group currency) differ by at most
      amount_tolerance_percent of the larger amount; dates by at most
      date_tolerance_days.
    - Each line is used in at most one pair.  Among eligible counterparts
      the engine prefers complementary account types (receivable vs.
      payable, revenue vs. expense), then the closest amount, then the
      closest date.
    - Match ids are derived from the paired line ids, so a re-run over
      the same ledger yields the same ids.

Failure modes:
    - Unpaired lines are not an error; they come back in ``unmatched``
      for the caller to report.
    - CurrencyMismatchError when a foreign-currency member is collected
      without translation rates.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_engines.group_aggregation import ChartOfAccountsMapping
from ledger_engines.tracer import traced_engine
from ledger_engines.translation import TranslationRates
from ledger_kernel.domain.accounts import Account, AccountType
from ledger_kernel.domain.journal import JournalEntry, LineSide
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import CurrencyMismatchError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.ic_matching")

_HUNDRED = Decimal("100")

_COMPLEMENTARY_TYPES: dict[AccountType, AccountType] = {
    AccountType.ASSET: AccountType.LIABILITY,
    AccountType.LIABILITY: AccountType.ASSET,
    AccountType.REVENUE: AccountType.EXPENSE,
    AccountType.EXPENSE: AccountType.REVENUE,
}


@dataclass(frozen=True)
class MatchingTolerance:
    """Matching thresholds.  Defaults: 3 days, exact amounts."""

    date_tolerance_days: int = 3
    amount_tolerance_percent: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if self.date_tolerance_days < 0:
            raise ValueError("date_tolerance_days cannot be negative")
        if not isinstance(self.amount_tolerance_percent, Decimal):
            object.__setattr__(
                self, "amount_tolerance_percent", Decimal(str(self.amount_tolerance_percent)),
            )
        if not Decimal("0") <= self.amount_tolerance_percent <= _HUNDRED:
            raise ValueError("amount_tolerance_percent must be between 0 and 100")


class MatchStatus(str, Enum):
    """Quality of a pairing."""

    MATCHED = "matched"
    PARTIAL = "partial"


@dataclass(frozen=True)
class IntercompanyItem:
    """An intercompany line expressed in group terms."""

    company_id: UUID
    partner_company_id: UUID
    entry_id: UUID
    line_id: UUID
    group_account_number: str
    account_type: AccountType
    side: LineSide
    amount: Money
    transaction_date: date

    def sort_key(self) -> tuple:
        return (self.transaction_date, str(self.company_id), str(self.line_id))


@dataclass(frozen=True)
class IntercompanyMatch:
    """Two lines recognised as the same intercompany transaction."""

    id: UUID
    item: IntercompanyItem
    counterpart: IntercompanyItem
    status: MatchStatus

    @property
    def variance(self) -> Money:
        return self.item.amount - self.counterpart.amount

    @property
    def eliminated_amount(self) -> Money:
        return min(self.item.amount, self.counterpart.amount)


@dataclass(frozen=True)
class IntercompanyMatchResult:
    """All pairs found plus the lines left over."""

    matches: tuple[IntercompanyMatch, ...]
    unmatched: tuple[IntercompanyItem, ...]

    @property
    def matched_count(self) -> int:
        return len(self.matches)

    @property
    def unmatched_count(self) -> int:
        return len(self.unmatched)


def collect_intercompany_items(
    company_id: UUID,
    entries: Iterable[JournalEntry],
    accounts: Mapping[UUID, Account],
    mapping: ChartOfAccountsMapping,
    group_member_ids: Iterable[UUID],
    *,
    group_currency: Currency,
    rates: TranslationRates | None = None,
) -> list[IntercompanyItem]:
    """
    Intercompany lines of one member whose partner is in the group.

    Amounts are translated like the balances they belong to (closing rate
    for balance-sheet accounts, average for P&L, historical for equity).
    ``entries`` must already be filtered to what the run can see.
    Lines of accounts absent from ``accounts`` are skipped here; the
    aggregation step reports them as orphaned.
    """
    members = set(group_member_ids)
    items: list[IntercompanyItem] = []
    for entry in entries:
        for line in entry.lines:
            partner = line.intercompany_partner_id
            if partner is None or partner == company_id or partner not in members:
                continue
            account = accounts.get(line.account_id)
            if account is None:
                continue
            amount = line.functional_amount
            if rates is not None:
                rate, _ = rates.rate_for(account)
                amount = rate.convert(amount)
            if amount.currency != group_currency:
                raise CurrencyMismatchError(
                    amount.currency.code, group_currency.code, "match",
                )
            items.append(
                IntercompanyItem(
                    company_id=company_id,
                    partner_company_id=partner,
                    entry_id=entry.id,
                    line_id=line.id,
                    group_account_number=mapping.group_number_for(company_id, account),
                    account_type=account.account_type,
                    side=line.side,
                    amount=amount,
                    transaction_date=entry.transaction_date,
                )
            )
    return items


def _amounts_within(a: Money, b: Money, tolerance: MatchingTolerance) -> bool:
    diff = abs(a.amount - b.amount)
    if diff == 0:
        return True
    allowed = max(a.amount, b.amount) * tolerance.amount_tolerance_percent / _HUNDRED
    return diff <= allowed


def _is_candidate(
    item: IntercompanyItem,
    other: IntercompanyItem,
    tolerance: MatchingTolerance,
) -> bool:
    return (
        other.company_id == item.partner_company_id
        and other.partner_company_id == item.company_id
        and other.side == item.side.opposite()
        and abs((other.transaction_date - item.transaction_date).days)
        <= tolerance.date_tolerance_days
        and _amounts_within(item.amount, other.amount, tolerance)
    )


def _match_id(a: IntercompanyItem, b: IntercompanyItem) -> UUID:
    first, second = sorted((str(a.line_id), str(b.line_id)))
    return uuid.uuid5(uuid.NAMESPACE_URL, f"ledger:ic-match:{first}:{second}")


@traced_engine("ic_matching", "1.0", fingerprint_fields=("tolerance",))
def match_intercompany(
    items: Iterable[IntercompanyItem],
    *,
    tolerance: MatchingTolerance,
) -> IntercompanyMatchResult:
    """Greedy deterministic pairing of intercompany items."""
    ordered = sorted(items, key=IntercompanyItem.sort_key)
    used: set[UUID] = set()
    matches: list[IntercompanyMatch] = []

    for item in ordered:
        if item.line_id in used:
            continue
        candidates = [
            other for other in ordered
            if other.line_id not in used
            and other.line_id != item.line_id
            and _is_candidate(item, other, tolerance)
        ]
        if not candidates:
            continue
        best = min(
            candidates,
            key=lambda other: (
                _COMPLEMENTARY_TYPES.get(item.account_type) != other.account_type,
                abs(item.amount.amount - other.amount.amount),
                abs((other.transaction_date - item.transaction_date).days),
                other.sort_key(),
            ),
        )
        used.add(item.line_id)
        used.add(best.line_id)
        status = MatchStatus.MATCHED if item.amount == best.amount else MatchStatus.PARTIAL
        matches.append(
            IntercompanyMatch(
                id=_match_id(item, best),
                item=item,
                counterpart=best,
                status=status,
            )
        )

    unmatched = tuple(i for i in ordered if i.line_id not in used)

    logger.info(
        "intercompany_matching_completed",
        extra={
            "item_count": len(ordered),
            "matched_count": len(matches),
            "partial_count": sum(1 for m in matches if m.status == MatchStatus.PARTIAL),
            "unmatched_count": len(unmatched),
        },
    )
    return IntercompanyMatchResult(matches=tuple(matches), unmatched=unmatched)
