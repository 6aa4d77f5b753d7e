"""
Consolidation Configuration Schema.

Matching tolerances, validation strictness, the group accounts the
pipeline books its synthetic amounts to (translation adjustment,
non-controlling interest, NCI share of net income) and the group account
numbers treated as cash by the consolidated cash flow statement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from ledger_engines.group_aggregation import GroupAccount
from ledger_engines.ic_matching import MatchingTolerance
from ledger_kernel.domain.accounts import AccountCategory, AccountType
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.consolidation.config")


@dataclass
class ConsolidationConfig:
    """
    Configuration schema for the consolidation module.

    Controls intercompany matching, validation strictness and synthetic
    group accounts.
    """

    # Intercompany matching thresholds
    matching: MatchingTolerance = field(default_factory=MatchingTolerance)

    # Open periods are errors (True) or warnings (False)
    require_closed_periods: bool = True

    # Unmatched intercompany lines fail the run instead of warning
    fail_on_unmatched_intercompany: bool = False

    # Synthetic group accounts
    cta_account_number: str = "3900"
    cta_account_name: str = "Cumulative Translation Adjustment"
    nci_account_number: str = "3950"
    nci_account_name: str = "Non-Controlling Interest"
    nci_income_account_number: str = "3960"
    nci_income_account_name: str = "NCI Share of Net Income"

    # Group accounts counted as cash (current assets with these prefixes)
    cash_account_prefixes: tuple[str, ...] = ("1000", "1010", "1020", "1030")

    def __post_init__(self):
        if isinstance(self.cash_account_prefixes, list):
            self.cash_account_prefixes = tuple(self.cash_account_prefixes)
        numbers = (
            self.cta_account_number,
            self.nci_account_number,
            self.nci_income_account_number,
        )
        if any(not n for n in numbers):
            raise ValueError("synthetic account numbers cannot be empty")
        if len(set(numbers)) != len(numbers):
            raise ValueError("synthetic account numbers must be distinct")

    @property
    def cta_account(self) -> GroupAccount:
        return GroupAccount(
            account_number=self.cta_account_number,
            name=self.cta_account_name,
            account_type=AccountType.EQUITY,
            category=AccountCategory.OTHER_COMPREHENSIVE_INCOME,
        )

    @property
    def nci_account(self) -> GroupAccount:
        return GroupAccount(
            account_number=self.nci_account_number,
            name=self.nci_account_name,
            account_type=AccountType.EQUITY,
            category=AccountCategory.CONTRIBUTED_CAPITAL,
        )

    @property
    def nci_income_account(self) -> GroupAccount:
        return GroupAccount(
            account_number=self.nci_income_account_number,
            name=self.nci_income_account_name,
            account_type=AccountType.EQUITY,
            category=AccountCategory.RETAINED_EARNINGS,
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("consolidation_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        data = dict(data)
        if "matching" in data and isinstance(data["matching"], dict):
            matching = dict(data["matching"])
            if "amount_tolerance_percent" in matching:
                matching["amount_tolerance_percent"] = Decimal(
                    str(matching["amount_tolerance_percent"]),
                )
            data["matching"] = MatchingTolerance(**matching)
        logger.info(
            "consolidation_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
