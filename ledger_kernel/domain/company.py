"""Companies and consolidation groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.values import Currency

_HUNDRED = Decimal("100")


class ConsolidationMethod(str, Enum):
    """How a member's ledger enters the group figures."""

    FULL = "full"
    EQUITY = "equity"
    PROPORTIONAL = "proportional"


@dataclass(frozen=True)
class Company:
    """A legal entity keeping its own ledger in its functional currency."""

    id: UUID
    name: str
    functional_currency: Currency
    is_active: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.functional_currency, str):
            object.__setattr__(self, "functional_currency", Currency(self.functional_currency))


@dataclass(frozen=True)
class ConsolidationMember:
    """
    A company's membership in a group.

    ``ownership_percentage`` is expressed on a 0-100 scale.  Range checks
    happen in the validation step so that every bad member is reported in
    one pass instead of failing on the first.
    """

    company_id: UUID
    ownership_percentage: Decimal = _HUNDRED
    consolidation_method: ConsolidationMethod = ConsolidationMethod.FULL

    @property
    def is_wholly_owned(self) -> bool:
        return self.ownership_percentage >= _HUNDRED

    @property
    def ownership_fraction(self) -> Decimal:
        return self.ownership_percentage / _HUNDRED

    @property
    def nci_fraction(self) -> Decimal:
        """Share held by owners other than the parent."""
        return (_HUNDRED - self.ownership_percentage) / _HUNDRED


@dataclass(frozen=True)
class ConsolidationGroup:
    """A parent company and the members consolidated into it."""

    id: UUID
    name: str
    reporting_currency: Currency
    parent_company_id: UUID
    members: tuple[ConsolidationMember, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if isinstance(self.reporting_currency, str):
            object.__setattr__(self, "reporting_currency", Currency(self.reporting_currency))
        if not isinstance(self.members, tuple):
            object.__setattr__(self, "members", tuple(self.members))

    @property
    def member_ids(self) -> tuple[UUID, ...]:
        return tuple(m.company_id for m in self.members)

    def member(self, company_id: UUID) -> ConsolidationMember | None:
        for m in self.members:
            if m.company_id == company_id:
                return m
        return None
