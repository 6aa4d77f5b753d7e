"""
Reporting Module Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Orchestrates financial statement generation -- trial balance, balance
sheet, income statement, cash flow statement and statement of changes
in equity -- by loading one
company's records from a ``LedgerProvider`` and handing them to the pure
transformation functions in ``statements.py``.  This is a **read-only**
service: nothing is posted and no report is persisted.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``ReportingService`` is the sole public
entry point for financial statement generation.
Constructor: ``provider`` + ``clock`` + ``config``.

Invariants enforced
-------------------
* Read-only -- the provider is only queried.
* All monetary amounts are ``Money`` in the company's functional currency.
* Report metadata carries the generation timestamp from the injected clock.

Failure modes
-------------
* Unknown company -> ``CompanyNotFoundError`` before any aggregation.
* Invalid report parameters (end before start) -> ``ValueError``.
* Line referencing an unknown account -> ``OrphanedLineError``; no partial
  report is returned.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from ledger_kernel.domain.accounts import Account
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.company import Company
from ledger_kernel.exceptions import CompanyNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_modules.providers import LedgerProvider
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    CashFlowStatementReport,
    EquityStatementReport,
    IncomeStatementReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from ledger_modules.reporting.statements import (
    build_balance_sheet,
    build_cash_flow_statement,
    build_equity_statement,
    build_income_statement,
    build_trial_balance,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")


class ReportingService:
    """
    Financial statement generation service.

    Contract
    --------
    * Every public method returns a typed report DTO (e.g.,
      ``TrialBalanceReport``, ``IncomeStatementReport``).
    * All methods are **read-only**.

    Guarantees
    ----------
    * Report generation delegates to pure transformation functions in
      ``statements.py``; no financial logic lives in this class.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT enforce fiscal-period locks.
    * Does NOT cache or persist reports; every call refolds the ledger.
    """

    def __init__(
        self,
        provider: LedgerProvider,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._provider = provider
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()

        logger.info(
            "reporting_service_initialized",
            extra={
                "entity_name": self._config.entity_name,
                "default_currency": self._config.default_currency,
            },
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _load(self, company_id: UUID) -> tuple[Company, tuple[Account, ...], tuple]:
        """Company, chart and entries; raises before any aggregation."""
        company = self._provider.get_company(company_id)
        if company is None:
            raise CompanyNotFoundError(str(company_id))
        accounts = self._provider.get_accounts(company_id)
        entries = self._provider.get_journal_entries(company_id)

        logger.debug(
            "ledger_loaded_for_reporting",
            extra={
                "company_id": str(company_id),
                "account_count": len(accounts),
                "entry_count": len(entries),
            },
        )
        return company, accounts, entries

    def _build_metadata(
        self,
        report_type: ReportType,
        company: Company,
        as_of_date: date,
        period_start: date | None = None,
        period_end: date | None = None,
        comparative_date: date | None = None,
        comparative_period: tuple[date, date] | None = None,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            company_id=company.id,
            entity_name=company.name or self._config.entity_name,
            currency=company.functional_currency.code,
            as_of_date=as_of_date,
            generated_at=self._clock.now().isoformat(),
            period_start=period_start,
            period_end=period_end,
            comparative_date=comparative_date,
            comparative_period_start=comparative_period[0] if comparative_period else None,
            comparative_period_end=comparative_period[1] if comparative_period else None,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def trial_balance(self, company_id: UUID, as_of_date: date) -> TrialBalanceReport:
        """
        Generate a trial balance report.

        Args:
            company_id: Company whose ledger is reported.
            as_of_date: Cutoff posting date.

        Returns:
            TrialBalanceReport; ``is_balanced`` is computed, not assumed.
        """
        with LogContext.bind(company_id=company_id):
            company, accounts, entries = self._load(company_id)
            metadata = self._build_metadata(ReportType.TRIAL_BALANCE, company, as_of_date)

            report = build_trial_balance(
                company.id, accounts, entries, as_of_date,
                company.functional_currency, self._config, metadata,
            )

            logger.info(
                "trial_balance_generated",
                extra={
                    "as_of_date": as_of_date.isoformat(),
                    "currency": metadata.currency,
                    "line_count": len(report.lines),
                    "total_debits": str(report.total_debits.amount),
                    "is_balanced": report.is_balanced,
                },
            )
            return report

    def balance_sheet(
        self,
        company_id: UUID,
        as_of_date: date,
        comparative_date: date | None = None,
    ) -> BalanceSheetReport:
        """
        Generate a classified balance sheet.

        Args:
            company_id: Company whose ledger is reported.
            as_of_date: Report date.
            comparative_date: Optional prior date for comparison.

        Returns:
            BalanceSheetReport with A = L + E verification.
        """
        with LogContext.bind(company_id=company_id):
            company, accounts, entries = self._load(company_id)
            metadata = self._build_metadata(
                ReportType.BALANCE_SHEET, company, as_of_date,
                comparative_date=comparative_date,
            )

            report = build_balance_sheet(
                company.id, accounts, entries, as_of_date,
                company.functional_currency, self._config, metadata,
                comparative_date=comparative_date,
            )

            logger.info(
                "balance_sheet_generated",
                extra={
                    "as_of_date": as_of_date.isoformat(),
                    "currency": metadata.currency,
                    "total_assets": str(report.total_assets.amount),
                    "total_l_and_e": str(report.total_liabilities_and_equity.amount),
                    "is_balanced": report.is_balanced,
                },
            )
            if not report.is_balanced:
                logger.warning(
                    "balance_sheet_out_of_balance",
                    extra={
                        "difference": str(
                            (report.total_assets - report.total_liabilities_and_equity).amount
                        ),
                    },
                )
            return report

    def income_statement(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
        comparative_start: date | None = None,
        comparative_end: date | None = None,
    ) -> IncomeStatementReport:
        """
        Generate an income statement (P&L) for a period.

        Args:
            company_id: Company whose ledger is reported.
            period_start: Start of reporting period.
            period_end: End of reporting period.
            comparative_start: Prior period start for comparison.
            comparative_end: Prior period end for comparison.

        Raises:
            ValueError: A period ends before it starts, or only one
                comparative bound is given.
        """
        if period_end < period_start:
            raise ValueError(f"Period end {period_end} precedes period start {period_start}")
        if (comparative_start is None) != (comparative_end is None):
            raise ValueError("comparative_start and comparative_end must be given together")
        comparative_period = None
        if comparative_start is not None:
            comparative_period = (comparative_start, comparative_end)

        with LogContext.bind(company_id=company_id):
            company, accounts, entries = self._load(company_id)
            metadata = self._build_metadata(
                ReportType.INCOME_STATEMENT, company, period_end,
                period_start=period_start,
                period_end=period_end,
                comparative_period=comparative_period,
            )

            report = build_income_statement(
                company.id, accounts, entries, period_start, period_end,
                company.functional_currency, self._config, metadata,
                comparative_period=comparative_period,
            )

            logger.info(
                "income_statement_generated",
                extra={
                    "period_start": period_start.isoformat(),
                    "period_end": period_end.isoformat(),
                    "currency": metadata.currency,
                    "net_income": str(report.net_income.amount),
                },
            )
            return report

    def cash_flow_statement(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
    ) -> CashFlowStatementReport:
        """
        Generate a statement of cash flows for a period.

        Args:
            company_id: Company whose ledger is reported.
            period_start: Start of reporting period.
            period_end: End of reporting period.

        Returns:
            CashFlowStatementReport with reconciliation verification.
        """
        if period_end < period_start:
            raise ValueError(f"Period end {period_end} precedes period start {period_start}")

        with LogContext.bind(company_id=company_id):
            company, accounts, entries = self._load(company_id)
            metadata = self._build_metadata(
                ReportType.CASH_FLOW, company, period_end,
                period_start=period_start,
                period_end=period_end,
            )

            report = build_cash_flow_statement(
                company.id, accounts, entries, period_start, period_end,
                company.functional_currency, self._config, metadata,
            )

            logger.info(
                "cash_flow_statement_generated",
                extra={
                    "period_start": period_start.isoformat(),
                    "period_end": period_end.isoformat(),
                    "net_income": str(report.net_income.amount),
                    "net_change_in_cash": str(report.net_change_in_cash.amount),
                    "reconciles": report.cash_change_reconciles,
                },
            )
            if not report.cash_change_reconciles:
                logger.warning(
                    "cash_flow_statement_unreconciled",
                    extra={
                        "beginning_cash": str(report.beginning_cash.amount),
                        "ending_cash": str(report.ending_cash.amount),
                    },
                )
            return report

    def equity_statement(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
    ) -> EquityStatementReport:
        """
        Generate a statement of changes in equity for a period.

        Returns:
            EquityStatementReport whose closing total equals the balance
            sheet's total equity at ``period_end``.
        """
        if period_end < period_start:
            raise ValueError(f"Period end {period_end} precedes period start {period_start}")

        with LogContext.bind(company_id=company_id):
            company, accounts, entries = self._load(company_id)
            metadata = self._build_metadata(
                ReportType.EQUITY_STATEMENT, company, period_end,
                period_start=period_start,
                period_end=period_end,
            )

            report = build_equity_statement(
                company.id, accounts, entries, period_start, period_end,
                company.functional_currency, self._config, metadata,
            )

            logger.info(
                "equity_statement_generated",
                extra={
                    "period_start": period_start.isoformat(),
                    "period_end": period_end.isoformat(),
                    "component_count": len(report.components),
                    "total_closing_equity": str(report.total_closing_equity.amount),
                    "reconciles": report.reconciles,
                },
            )
            return report

    def to_dict(self, report: object) -> dict:
        """
        Convert any report DTO to a plain dict for JSON serialization.

        Delegates to the pure render_to_dict function.
        """
        return render_to_dict(report)
