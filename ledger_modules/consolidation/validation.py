"""
Member data validation for consolidation runs.

Responsibility:
    Inspect every group member's records before any figures are computed
    and collect all problems in one pass, so an accountant can fix them
    together before repeating the run.

Architecture position:
    Modules -- pure over provider data.  Called by ConsolidationService
    as the VALIDATE step.

Invariants enforced:
    - Never raises for data problems; every problem becomes a
      ValidationIssue with a stable code and an entity reference.
    - Errors: NO_MEMBERS, INVALID_OWNERSHIP, COMPANY_NOT_FOUND,
      COMPANY_INACTIVE, EMPTY_CHART_OF_ACCOUNTS, PERIOD_NOT_FOUND /
      PERIOD_NOT_CLOSED (warnings when closed periods are not required),
      ORPHANED_LINE, FUNCTIONAL_CURRENCY_MISMATCH,
      TRIAL_BALANCE_NOT_BALANCED, MISSING_EXCHANGE_RATE,
      ACCOUNT_MAPPING_CONFLICT.
    - Warnings: UNPOSTED_ENTRIES, NO_ACTIVITY, EQUITY_METHOD_NOT_CONSOLIDATED.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_engines.aggregation import visible_entries
from ledger_engines.group_aggregation import find_mapping_conflicts
from ledger_engines.translation import resolve_translation_rates
from ledger_kernel.domain.accounts import Account
from ledger_kernel.domain.company import ConsolidationGroup, ConsolidationMethod
from ledger_kernel.domain.journal import JournalEntry, JournalEntryStatus
from ledger_kernel.domain.periods import FiscalPeriod, PeriodStatus
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import MissingExchangeRateError
from ledger_kernel.logging_config import get_logger
from ledger_modules.consolidation.config import ConsolidationConfig
from ledger_modules.consolidation.models import (
    RunOptions,
    ValidationIssue,
    ValidationResult,
)
from ledger_modules.providers import LedgerProvider

logger = get_logger("modules.consolidation.validation")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

_PENDING_STATUSES = (
    JournalEntryStatus.DRAFT,
    JournalEntryStatus.PENDING_APPROVAL,
    JournalEntryStatus.APPROVED,
)


def _company_ref(company_id: UUID) -> str:
    return f"company:{company_id}"


class MemberValidator:
    """
    Runs every member check for one group and period.

    Contract:
        ``validate()`` returns a ValidationResult; it never raises for bad
        data.  Provider failures propagate.
    """

    def __init__(
        self,
        provider: LedgerProvider,
        config: ConsolidationConfig,
    ):
        self._provider = provider
        self._config = config

    def validate(
        self,
        group: ConsolidationGroup,
        period: FiscalPeriod,
        as_of_date: date,
        options: RunOptions,
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []

        if not group.members:
            issues.append(ValidationIssue.error(
                "NO_MEMBERS",
                f"Group {group.name} has no members",
                f"group:{group.id}",
            ))

        charts: dict[UUID, tuple[Account, ...]] = {}
        for member in group.members:
            ref = _company_ref(member.company_id)

            if not _ZERO < member.ownership_percentage <= _HUNDRED:
                issues.append(ValidationIssue.error(
                    "INVALID_OWNERSHIP",
                    f"Ownership {member.ownership_percentage}% is outside (0, 100]",
                    ref,
                ))

            company = self._provider.get_company(member.company_id)
            if company is None:
                issues.append(ValidationIssue.error(
                    "COMPANY_NOT_FOUND", f"Company {member.company_id} not found", ref,
                ))
                continue
            if not company.is_active:
                issues.append(ValidationIssue.error(
                    "COMPANY_INACTIVE", f"Company {company.name} is inactive", ref,
                ))

            if member.consolidation_method == ConsolidationMethod.EQUITY:
                if options.include_equity_method_investments:
                    issues.append(ValidationIssue.warning(
                        "EQUITY_METHOD_NOT_CONSOLIDATED",
                        f"{company.name} uses the equity method; its ledger is not "
                        "aggregated line by line",
                        ref,
                    ))
                continue

            accounts = self._provider.get_accounts(company.id)
            if not accounts:
                issues.append(ValidationIssue.error(
                    "EMPTY_CHART_OF_ACCOUNTS",
                    f"{company.name} has no chart of accounts",
                    ref,
                ))
                continue
            charts[company.id] = accounts

            issues.extend(self._check_period(company.id, company.name, period))

            entries = self._provider.get_journal_entries(company.id)
            issues.extend(self._check_ledger(
                company.id, company.name, company.functional_currency,
                accounts, entries, period, as_of_date,
            ))

            if company.functional_currency != group.reporting_currency:
                try:
                    resolve_translation_rates(
                        self._provider.get_exchange_rates(),
                        company.functional_currency,
                        group.reporting_currency,
                        period.start_date,
                        period.end_date,
                        self._provider.get_historical_rates(company.id),
                        company.id,
                    )
                except MissingExchangeRateError as exc:
                    issues.append(ValidationIssue.error(
                        "MISSING_EXCHANGE_RATE", str(exc), ref,
                    ))

        mapping = self._provider.get_account_mapping(group.id)
        for number, types in find_mapping_conflicts(charts, mapping).items():
            issues.append(ValidationIssue.error(
                "ACCOUNT_MAPPING_CONFLICT",
                f"Group account {number} receives accounts of types {', '.join(types)}",
                f"group_account:{number}",
            ))

        result = ValidationResult(issues=tuple(issues))
        logger.info(
            "consolidation_validation_completed",
            extra={
                "group_id": str(group.id),
                "member_count": len(group.members),
                "error_count": result.error_count,
                "warning_count": result.warning_count,
            },
        )
        return result

    def _check_period(
        self, company_id: UUID, name: str, period: FiscalPeriod,
    ) -> list[ValidationIssue]:
        status = self._provider.get_period_status(company_id, period.ref)
        ref = f"{_company_ref(company_id)}/period:{period.ref}"
        if status is None:
            code, message = "PERIOD_NOT_FOUND", f"{name} has no fiscal period {period.ref}"
        elif status != PeriodStatus.CLOSED:
            code, message = (
                "PERIOD_NOT_CLOSED",
                f"{name} period {period.ref} is {status.value}, not closed",
            )
        else:
            return []
        if self._config.require_closed_periods:
            return [ValidationIssue.error(code, message, ref)]
        return [ValidationIssue.warning(code, message, ref)]

    def _check_ledger(
        self,
        company_id: UUID,
        name: str,
        currency: Currency,
        accounts: tuple[Account, ...],
        entries: Iterable[JournalEntry],
        period: FiscalPeriod,
        as_of_date: date,
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        known = {a.id for a in accounts}
        ref = _company_ref(company_id)

        pending = [
            e for e in entries
            if e.company_id == company_id
            and e.status in _PENDING_STATUSES
            and period.contains(e.transaction_date)
        ]
        if pending:
            issues.append(ValidationIssue.warning(
                "UNPOSTED_ENTRIES",
                f"{name} has {len(pending)} unposted entries dated in {period.ref}",
                ref,
            ))

        visible = visible_entries(entries, company_id, as_of_date)
        if not visible:
            issues.append(ValidationIssue.warning(
                "NO_ACTIVITY", f"{name} has no posted entries as of {as_of_date}", ref,
            ))
            return issues

        debits = Money.zero(currency)
        credits = Money.zero(currency)
        for entry in visible:
            for line in entry.lines:
                line_ref = f"entry:{entry.id}/line:{line.id}"
                if line.account_id not in known:
                    issues.append(ValidationIssue.error(
                        "ORPHANED_LINE",
                        f"Line references unknown account {line.account_id}",
                        line_ref,
                    ))
                    continue
                if line.functional_amount.currency != currency:
                    issues.append(ValidationIssue.error(
                        "FUNCTIONAL_CURRENCY_MISMATCH",
                        f"Line is in {line.functional_amount.currency}, "
                        f"{name} reports in {currency}",
                        line_ref,
                    ))
                    continue
                if line.is_debit:
                    debits = debits + line.functional_amount
                else:
                    credits = credits + line.functional_amount

        if debits != credits:
            issues.append(ValidationIssue.error(
                "TRIAL_BALANCE_NOT_BALANCED",
                f"{name} trial balance is out by {(debits - credits).amount}",
                ref,
            ))
        return issues
