"""
Journal -- Posted journal entries as seen by the reporting engine.

Responsibility:
    Immutable ``JournalEntry`` / ``JournalEntryLine`` records.  A line
    carries one ``LineSide`` and one positive amount, so "debit XOR credit"
    holds by construction instead of being checked on two nullable fields.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.  The entry lifecycle (draft,
    approval, posting) belongs to the ledger that supplies these records.

Invariants enforced:
    - Line amounts are positive Money values.
    - ``functional_amount`` (company functional currency) defaults to the
      entry-currency ``amount`` for single-currency entries.
    - A POSTED entry has a posting date; no other status carries one.
    - Only POSTED entries with posting_date <= as-of are visible to reports.

Failure modes:
    - ValueError on construction when any of the above is violated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.periods import FiscalPeriodRef
from ledger_kernel.domain.values import Money


class JournalEntryStatus(str, Enum):
    """Lifecycle states of a journal entry."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    POSTED = "posted"
    VOIDED = "voided"


class LineSide(str, Enum):
    """Side of a journal line."""

    DEBIT = "debit"
    CREDIT = "credit"

    def opposite(self) -> LineSide:
        return LineSide.CREDIT if self is LineSide.DEBIT else LineSide.DEBIT


@dataclass(frozen=True)
class JournalEntryLine:
    """One debit or credit line of a journal entry."""

    id: UUID
    account_id: UUID
    side: LineSide
    amount: Money
    functional_amount: Money | None = None
    intercompany_partner_id: UUID | None = None
    line_number: int = 0
    memo: str | None = None

    def __post_init__(self) -> None:
        if not self.amount.is_positive:
            raise ValueError(f"Line {self.id}: amount must be positive, got {self.amount}")
        if self.functional_amount is None:
            object.__setattr__(self, "functional_amount", self.amount)
        elif not self.functional_amount.is_positive:
            raise ValueError(
                f"Line {self.id}: functional amount must be positive, "
                f"got {self.functional_amount}"
            )

    @property
    def is_debit(self) -> bool:
        return self.side is LineSide.DEBIT

    @property
    def is_intercompany(self) -> bool:
        return self.intercompany_partner_id is not None

    @property
    def debit_amount(self) -> Money:
        return self.amount if self.is_debit else Money.zero(self.amount.currency)

    @property
    def credit_amount(self) -> Money:
        return Money.zero(self.amount.currency) if self.is_debit else self.amount

    @property
    def signed_functional_amount(self) -> Money:
        """Functional amount signed debit-positive, credit-negative."""
        return self.functional_amount if self.is_debit else -self.functional_amount


@dataclass(frozen=True)
class JournalEntry:
    """A journal entry header with its lines."""

    id: UUID
    company_id: UUID
    status: JournalEntryStatus
    transaction_date: date
    fiscal_period: FiscalPeriodRef
    lines: tuple[JournalEntryLine, ...] = field(default_factory=tuple)
    posting_date: date | None = None
    entry_number: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if self.status == JournalEntryStatus.POSTED and self.posting_date is None:
            raise ValueError(f"Entry {self.id}: posted entries require a posting date")
        if self.status != JournalEntryStatus.POSTED and self.posting_date is not None:
            raise ValueError(
                f"Entry {self.id}: only posted entries carry a posting date "
                f"(status {self.status.value})"
            )
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    def is_visible_as_of(self, as_of: date) -> bool:
        """Posted entries with posting_date <= as_of are visible."""
        return self.is_posted and self.posting_date <= as_of

    def is_visible_in(self, period_start: date, period_end: date) -> bool:
        """Posted entries with posting_date inside the closed range are visible."""
        return self.is_posted and period_start <= self.posting_date <= period_end
