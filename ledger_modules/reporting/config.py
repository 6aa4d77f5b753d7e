"""
Reporting Configuration Schema.

Defines report formatting options and the rule that decides which
accounts count as cash.  Statement placement itself comes from the
account category (see ``ledger_engines.classifier``), not from number
prefixes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Self

from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


@dataclass
class AccountClassification:
    """
    Rules for identifying cash and cash-equivalent accounts.

    An account counts as cash when it is a current asset and either carries
    the ``cash`` tag or its number starts with one of the prefixes.
    """

    cash_account_prefixes: tuple[str, ...] = ("1000", "1010", "1020", "1030")

    def __post_init__(self):
        if isinstance(self.cash_account_prefixes, list):
            self.cash_account_prefixes = tuple(self.cash_account_prefixes)


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    Controls cash classification, formatting, and report generation.
    """

    # Classification rules
    classification: AccountClassification = field(
        default_factory=AccountClassification,
    )

    # Currency used when a company has none on record
    default_currency: str = "USD"

    # Entity name shown on reports when the company name is unavailable
    entity_name: str = "Company"

    # Rounding precision for display only
    display_precision: int = 2

    # Whether to include accounts with zero balance in the trial balance
    include_zero_balances: bool = False

    # Whether to include inactive accounts
    include_inactive: bool = False

    def __post_init__(self):
        if self.display_precision < 0:
            raise ValueError("display_precision cannot be negative")
        if not CurrencyRegistry.is_valid(self.default_currency):
            raise ValueError(
                f"default_currency must be a known ISO 4217 code: {self.default_currency}"
            )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        data = dict(data)
        if "classification" in data and isinstance(data["classification"], dict):
            data["classification"] = AccountClassification(**data["classification"])
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
