"""
Typed Exception Hierarchy for the Ledger Reporting Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Reports and consolidation runs are consumed by other programs (API layers,
schedulers, audit tooling).  Those callers must be able to react to a failure
without parsing message text, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (entity ids, currencies, dates)

Example:
    try:
        report = service.trial_balance(company_id, as_of)
    except OrphanedLineError as e:
        api_response(code=e.code, entry=e.entry_id, account=e.account_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- CurrencyError
    |   +-- CurrencyMismatchError
    |   +-- MissingExchangeRateError
    |
    +-- AccountError
    |   +-- AccountMappingConflictError
    |
    +-- LedgerIntegrityError
    |   +-- OrphanedLineError
    |
    +-- EntityError
    |   +-- CompanyNotFoundError
    |   +-- ConsolidationGroupNotFoundError
    |
    +-- ConsolidationError
        +-- ConsolidationRunExistsError
        +-- ConsolidationValidationError
        +-- UnmatchedIntercompanyError
        +-- ConsolidatedTrialBalanceUnavailableError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                           | When Raised
----------------|--------------------------------|-------------------------------------
Currency        | CURRENCY_MISMATCH              | Arithmetic across two currencies
                | MISSING_EXCHANGE_RATE          | No rate for pair/date/rate type
----------------|--------------------------------|-------------------------------------
Account         | ACCOUNT_MAPPING_CONFLICT       | Group account mapped from two types
----------------|--------------------------------|-------------------------------------
Integrity       | ORPHANED_LINE                  | Line references an unknown account
----------------|--------------------------------|-------------------------------------
Entity          | COMPANY_NOT_FOUND              | Company id unknown
                | CONSOLIDATION_GROUP_NOT_FOUND  | Group id unknown
----------------|--------------------------------|-------------------------------------
Consolidation   | CONSOLIDATION_RUN_EXISTS       | Completed run exists, no force flag
                | CONSOLIDATION_VALIDATION_FAILED| Validation step blocked the run
                | UNMATCHED_INTERCOMPANY         | Unmatched IC items, strict config
                | CONSOLIDATED_TB_UNAVAILABLE    | Reports asked of an unfinished run

===============================================================================
HANDLING PATTERNS
===============================================================================

Precondition violations (unknown ids, currency mismatch) and data-integrity
faults (orphaned lines, missing rates) are fatal for the computation in
progress and propagate to the caller.  Inside a consolidation run they are
caught once by the pipeline driver, recorded on the failing step, and the
run is returned with status FAILED.
"""

from __future__ import annotations

from datetime import date


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Currency exceptions


class CurrencyError(LedgerKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class CurrencyMismatchError(CurrencyError):
    """Arithmetic or comparison attempted across two currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str, operation: str = "combine"):
        self.currency1 = currency1
        self.currency2 = currency2
        self.operation = operation
        super().__init__(
            f"Cannot {operation} amounts in different currencies: "
            f"{currency1} and {currency2}"
        )


class MissingExchangeRateError(CurrencyError):
    """No exchange rate is available for a required (pair, date, type)."""

    code: str = "MISSING_EXCHANGE_RATE"

    def __init__(
        self,
        from_currency: str,
        to_currency: str,
        as_of: date,
        rate_type: str,
        company_id: str | None = None,
    ):
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.as_of = as_of
        self.rate_type = rate_type
        self.company_id = company_id
        suffix = f" for company {company_id}" if company_id else ""
        super().__init__(
            f"No {rate_type} rate {from_currency}->{to_currency} "
            f"on or before {as_of.isoformat()}{suffix}"
        )


# Account exceptions


class AccountError(LedgerKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountMappingConflictError(AccountError):
    """Member accounts of different types map to one group account."""

    code: str = "ACCOUNT_MAPPING_CONFLICT"

    def __init__(self, group_account_number: str, types: tuple[str, ...]):
        self.group_account_number = group_account_number
        self.types = types
        super().__init__(
            f"Group account {group_account_number} is mapped from accounts of "
            f"different types: {', '.join(types)}"
        )


# Ledger integrity exceptions


class LedgerIntegrityError(LedgerKernelError):
    """Base exception for report-time data consistency faults."""

    code: str = "LEDGER_INTEGRITY_ERROR"


class OrphanedLineError(LedgerIntegrityError):
    """A journal line references an account that is not in the chart."""

    code: str = "ORPHANED_LINE"

    def __init__(self, entry_id: str, line_id: str, account_id: str):
        self.entry_id = entry_id
        self.line_id = line_id
        self.account_id = account_id
        super().__init__(
            f"Line {line_id} of entry {entry_id} references unknown account {account_id}"
        )


# Entity exceptions


class EntityError(LedgerKernelError):
    """Base exception for unknown companies and groups."""

    code: str = "ENTITY_ERROR"


class CompanyNotFoundError(EntityError):
    """Company with given ID was not found."""

    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


class ConsolidationGroupNotFoundError(EntityError):
    """Consolidation group with given ID was not found."""

    code: str = "CONSOLIDATION_GROUP_NOT_FOUND"

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Consolidation group not found: {group_id}")


# Consolidation exceptions


class ConsolidationError(LedgerKernelError):
    """Base exception for consolidation pipeline errors."""

    code: str = "CONSOLIDATION_ERROR"


class ConsolidationRunExistsError(ConsolidationError):
    """A completed run already exists for the group and period."""

    code: str = "CONSOLIDATION_RUN_EXISTS"

    def __init__(self, group_id: str, period: str, existing_run_id: str):
        self.group_id = group_id
        self.period = period
        self.existing_run_id = existing_run_id
        super().__init__(
            f"Consolidation for group {group_id} period {period} already completed "
            f"(run {existing_run_id}); set force_regeneration to run again"
        )


class ConsolidationValidationError(ConsolidationError):
    """Validation step produced blocking issues."""

    code: str = "CONSOLIDATION_VALIDATION_FAILED"

    def __init__(self, error_count: int, warning_count: int):
        self.error_count = error_count
        self.warning_count = warning_count
        super().__init__(
            f"Validation failed with {error_count} error(s) "
            f"and {warning_count} warning(s)"
        )


class UnmatchedIntercompanyError(ConsolidationError):
    """Intercompany items were left unmatched and the config is strict."""

    code: str = "UNMATCHED_INTERCOMPANY"

    def __init__(self, unmatched_count: int):
        self.unmatched_count = unmatched_count
        super().__init__(f"{unmatched_count} intercompany item(s) left unmatched")


class ConsolidatedTrialBalanceUnavailableError(ConsolidationError):
    """Consolidated statements requested from a run without a trial balance."""

    code: str = "CONSOLIDATED_TB_UNAVAILABLE"

    def __init__(self, run_id: str, status: str):
        self.run_id = run_id
        self.status = status
        super().__init__(
            f"Consolidation run {run_id} has status {status} and no consolidated "
            f"trial balance"
        )
