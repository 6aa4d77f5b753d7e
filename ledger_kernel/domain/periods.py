"""Fiscal period references used by entries and consolidation runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class PeriodStatus(str, Enum):
    """Close state of a company's fiscal period."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(frozen=True, order=True)
class FiscalPeriodRef:
    """(fiscal year, period number) identifying a period across companies."""

    year: int
    period: int

    def __post_init__(self) -> None:
        if not 1 <= self.period <= 13:
            raise ValueError(f"Fiscal period must be 1-13, got {self.period}")

    def __str__(self) -> str:
        return f"{self.year}-P{self.period:02d}"


@dataclass(frozen=True)
class FiscalPeriod:
    """A period reference with its date range."""

    ref: FiscalPeriodRef
    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError(
                f"Period {self.ref}: end_date {self.end_date} precedes "
                f"start_date {self.start_date}"
            )

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
