"""
Reporting-specific test fixtures.

Provides:
- ReportingConfig and ReportingService instances over in-memory ledgers
- ``report_for``: service bound to the given ledgers with optional config
"""

import pytest

from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.service import ReportingService


@pytest.fixture
def reporting_config() -> ReportingConfig:
    """Standard reporting configuration for tests."""
    return ReportingConfig.with_defaults()


@pytest.fixture
def report_for(make_provider, deterministic_clock, reporting_config):
    """ReportingService over the given LedgerBuilders."""

    def _make(*ledgers, config: ReportingConfig | None = None) -> ReportingService:
        return ReportingService(
            make_provider(*ledgers),
            clock=deterministic_clock,
            config=config or reporting_config,
        )

    return _make
