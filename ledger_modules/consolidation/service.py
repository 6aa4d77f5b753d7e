"""
Consolidation Module Service (``ledger_modules.consolidation.service``).

Responsibility
--------------
Run the seven-step consolidation pipeline for a group and fiscal period:
validate members, translate, aggregate, match intercompany lines,
eliminate, apportion non-controlling interest and assemble the
consolidated trial balance.  Completed runs are turned into group
financial statements by ``consolidated_statements``.

Architecture position
---------------------
**Modules layer** -- orchestration over the pure engines in
``ledger_engines``.  Records come from a ``LedgerProvider``; finished
runs go to an optional ``ConsolidationRunStore``.

Invariants enforced
-------------------
* Sequential: a step starts only after its predecessor is COMPLETED or
  SKIPPED.  ``run_consolidation`` is the single driver loop and the only
  place a run or step record is replaced.
* Run status is derived from the step records; CANCELLED is set by the
  driver when the cancellation signal is seen between steps.
* A hard failure halts the pipeline; both the run's and the failing
  step's error message are filled.
* Eliminations and NCI are kept apart from aggregated balances until the
  consolidated trial balance is built.

Failure modes
-------------
* ``ConsolidationGroupNotFoundError`` -- unknown group (raised, no run).
* ``ConsolidationRunExistsError`` -- a completed run exists and
  ``force_regeneration`` is not set (raised, no run).
* ``LedgerKernelError`` inside a step -- recorded on the run, which is
  saved and returned with status FAILED.
* Any other exception inside a step -- recorded, saved, re-raised.
* ``ConsolidatedTrialBalanceUnavailableError`` -- statements requested
  for a run that did not complete with a trial balance.

Audit relevance
---------------
Every run is saved with its step timings, validation issues, elimination
entry ids and NCI adjustments.  Structured log events carry the run id,
group id and step through ``LogContext``.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from ledger_engines.aggregation import BalanceAggregator, visible_entries
from ledger_engines.elimination import (
    EliminationEntry,
    build_elimination_entries,
    elimination_effects,
    total_eliminated,
)
from ledger_engines.group_aggregation import (
    ChartOfAccountsMapping,
    GroupAccount,
    GroupBalances,
    MemberContribution,
    aggregate_group,
)
from ledger_engines.ic_matching import (
    IntercompanyItem,
    IntercompanyMatchResult,
    collect_intercompany_items,
    match_intercompany,
)
from ledger_engines.nci import NciAdjustment, compute_nci, nci_effects
from ledger_engines.translation import (
    AccountBalance,
    TranslationRates,
    TranslationResult,
    resolve_translation_rates,
    translate,
)
from ledger_kernel.domain.accounts import Account, NormalBalance
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.company import (
    Company,
    ConsolidationGroup,
    ConsolidationMember,
    ConsolidationMethod,
)
from ledger_kernel.domain.journal import JournalEntry
from ledger_kernel.domain.periods import FiscalPeriod
from ledger_kernel.domain.values import Currency, Money, sum_money
from ledger_kernel.exceptions import (
    CompanyNotFoundError,
    ConsolidationGroupNotFoundError,
    ConsolidationRunExistsError,
    ConsolidationValidationError,
    LedgerKernelError,
    UnmatchedIntercompanyError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_modules.consolidation.config import ConsolidationConfig
from ledger_modules.consolidation.models import (
    PIPELINE,
    ConsolidatedStatements,
    ConsolidatedTrialBalance,
    ConsolidatedTrialBalanceLine,
    ConsolidationRun,
    ConsolidationStep,
    RunOptions,
    RunStatus,
    StepStatus,
    ValidationIssue,
    ValidationResult,
    derive_run_status,
    initial_steps,
)
from ledger_modules.consolidation.reports import (
    build_consolidated_balance_sheet,
    build_consolidated_cash_flow_statement,
    build_consolidated_equity_statement,
    build_consolidated_income_statement,
    trial_balances,
)
from ledger_modules.consolidation.store import ConsolidationRunStore
from ledger_modules.consolidation.validation import MemberValidator
from ledger_modules.providers import LedgerProvider
from ledger_modules.reporting.models import ReportMetadata, ReportType

logger = get_logger("modules.consolidation.service")

_FULL_WEIGHT = Decimal("1")


# =========================================================================
# Working state of one run
# =========================================================================


@dataclass
class _RunContext:
    """
    Intermediate results handed from one step to the next.

    Private to a single ``run_consolidation`` call; never shared.
    """

    group: ConsolidationGroup
    period: FiscalPeriod
    as_of_date: date
    options: RunOptions
    mapping: ChartOfAccountsMapping
    companies: dict[UUID, Company] = field(default_factory=dict)
    charts: dict[UUID, dict[UUID, Account]] = field(default_factory=dict)
    entries: dict[UUID, list[JournalEntry]] = field(default_factory=dict)
    balances: dict[UUID, tuple[AccountBalance, ...]] = field(default_factory=dict)
    rates: dict[UUID, TranslationRates] = field(default_factory=dict)
    translations: dict[UUID, TranslationResult] = field(default_factory=dict)
    group_balances: GroupBalances | None = None
    match_result: IntercompanyMatchResult | None = None
    eliminations: tuple[EliminationEntry, ...] = ()
    nci: tuple[NciAdjustment, ...] = ()

    # Run-level outputs copied onto the run record by the driver
    validation_result: ValidationResult | None = None
    consolidated_trial_balance: ConsolidatedTrialBalance | None = None
    intercompany_issues: tuple[ValidationIssue, ...] = ()

    # Details of the step in progress
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def currency(self) -> Currency:
        return self.group.reporting_currency

    def consolidated_members(self) -> list[ConsolidationMember]:
        """Members whose ledgers are aggregated line by line."""
        return [
            m for m in self.group.members
            if m.consolidation_method != ConsolidationMethod.EQUITY
        ]

    def run_fields(self) -> dict[str, Any]:
        return {
            "validation_result": self.validation_result,
            "consolidated_trial_balance": self.consolidated_trial_balance,
            "elimination_entry_ids": tuple(e.id for e in self.eliminations),
            "nci_adjustments": self.nci,
            "intercompany_issues": self.intercompany_issues,
        }


# =========================================================================
# Service
# =========================================================================


class ConsolidationService:
    """
    Group consolidation pipeline.

    Contract
    --------
    * ``run_consolidation`` returns a finished ``ConsolidationRun``
      (COMPLETED, FAILED or CANCELLED) or raises before a run exists.
    * Step handlers only read the provider and call pure engines.

    Guarantees
    ----------
    * Never two steps IN_PROGRESS; never a step started after a failure.
    * Deterministic ids for eliminations; the run id itself is random.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT arbitrate concurrent runs for the same group and period;
      the store's conflict check is advisory under concurrency.
    * Does NOT post elimination entries to any ledger.
    """

    def __init__(
        self,
        provider: LedgerProvider,
        clock: Clock | None = None,
        config: ConsolidationConfig | None = None,
        store: ConsolidationRunStore | None = None,
    ):
        self._provider = provider
        self._clock = clock or SystemClock()
        self._config = config or ConsolidationConfig.with_defaults()
        self._store = store
        self._validator = MemberValidator(provider, self._config)
        self._handlers: dict[ConsolidationStep, Callable[[_RunContext], None]] = {
            ConsolidationStep.VALIDATE: self._validate,
            ConsolidationStep.TRANSLATE: self._translate,
            ConsolidationStep.AGGREGATE: self._aggregate,
            ConsolidationStep.MATCH_INTERCOMPANY: self._match_intercompany,
            ConsolidationStep.ELIMINATE: self._eliminate,
            ConsolidationStep.COMPUTE_NCI: self._compute_nci,
            ConsolidationStep.GENERATE_TRIAL_BALANCE: self._generate_trial_balance,
        }

        logger.info(
            "consolidation_service_initialized",
            extra={
                "has_store": store is not None,
                "date_tolerance_days": self._config.matching.date_tolerance_days,
                "amount_tolerance_percent": str(self._config.matching.amount_tolerance_percent),
            },
        )

    # =========================================================================
    # Driver
    # =========================================================================

    def run_consolidation(
        self,
        group_id: UUID,
        period: FiscalPeriod,
        initiated_by: UUID,
        options: RunOptions | None = None,
        as_of_date: date | None = None,
        cancel_requested: Callable[[], bool] | None = None,
    ) -> ConsolidationRun:
        """
        Consolidate a group for one fiscal period.

        Args:
            group_id: Consolidation group.
            period: Fiscal period; balances are taken as of its end date
                unless ``as_of_date`` is given.
            initiated_by: Actor recorded on the run.
            options: Run options (defaults: validate, continue on warnings).
            as_of_date: Posting-date cutoff for member balances.
            cancel_requested: Polled between steps; True cancels the run.

        Raises:
            ConsolidationGroupNotFoundError: Unknown group.
            ConsolidationRunExistsError: Completed run exists and
                force_regeneration is not set.
        """
        options = options or RunOptions()
        as_of = as_of_date or period.end_date

        group = self._provider.get_group(group_id)
        if group is None:
            raise ConsolidationGroupNotFoundError(str(group_id))

        if self._store is not None and not options.force_regeneration:
            existing = self._store.find_completed_run(group_id, period.ref)
            if existing is not None:
                logger.warning(
                    "consolidation_run_conflict",
                    extra={
                        "group_id": str(group_id),
                        "period": str(period.ref),
                        "existing_run_id": str(existing.run_id),
                    },
                )
                raise ConsolidationRunExistsError(
                    str(group_id), str(period.ref), str(existing.run_id),
                )

        run = ConsolidationRun(
            id=uuid.uuid4(),
            group_id=group_id,
            period=period,
            as_of_date=as_of,
            status=RunStatus.PENDING,
            steps=initial_steps(),
            options=options,
            initiated_by=initiated_by,
            started_at=self._clock.now(),
        )
        ctx = _RunContext(
            group=group,
            period=period,
            as_of_date=as_of,
            options=options,
            mapping=self._provider.get_account_mapping(group_id),
        )

        with LogContext.bind(group_id=group_id, run_id=run.id):
            logger.info(
                "consolidation_run_started",
                extra={
                    "period": str(period.ref),
                    "as_of_date": as_of.isoformat(),
                    "member_count": len(group.members),
                    "force_regeneration": options.force_regeneration,
                    "skip_validation": options.skip_validation,
                },
            )

            for index, step in enumerate(PIPELINE):
                if cancel_requested is not None and cancel_requested():
                    run = dataclasses.replace(
                        run,
                        status=RunStatus.CANCELLED,
                        completed_at=self._clock.now(),
                        error_message=f"Cancelled before step {step.display_name}",
                        **ctx.run_fields(),
                    )
                    logger.warning(
                        "consolidation_run_cancelled",
                        extra={"next_step": step.value},
                    )
                    break

                skip_reason = self._skip_reason(step, ctx)
                if skip_reason is not None:
                    run = self._replace_step(
                        run, index,
                        status=StepStatus.SKIPPED,
                        details={"reason": skip_reason},
                    )
                    logger.info(
                        "consolidation_step_skipped",
                        extra={"step": step.value, "reason": skip_reason},
                    )
                    continue

                started = self._clock.now()
                run = self._replace_step(
                    run, index, status=StepStatus.IN_PROGRESS, started_at=started,
                )
                ctx.details = {}

                with LogContext.bind(step=step.value):
                    try:
                        self._handlers[step](ctx)
                    except LedgerKernelError as exc:
                        run = self._fail(run, index, started, ctx, exc)
                        break
                    except Exception as exc:
                        run = self._fail(run, index, started, ctx, exc)
                        self._save(run)
                        raise

                    completed = self._clock.now()
                    run = self._replace_step(
                        run, index,
                        status=StepStatus.COMPLETED,
                        completed_at=completed,
                        duration_ms=_duration_ms(started, completed),
                        details=dict(ctx.details),
                    )
                    run = dataclasses.replace(run, **ctx.run_fields())
                    logger.info(
                        "consolidation_step_completed",
                        extra={"step": step.value, "duration_ms": run.steps[index].duration_ms},
                    )

            if run.status not in (RunStatus.CANCELLED, RunStatus.FAILED):
                run = dataclasses.replace(
                    run,
                    status=derive_run_status(run.steps),
                    completed_at=self._clock.now(),
                )

            self._save(run)
            tb = run.consolidated_trial_balance
            logger.info(
                "consolidation_run_finished",
                extra={
                    "status": run.status.value,
                    "duration_ms": _duration_ms(run.started_at, run.completed_at),
                    "total_debits": str(tb.total_debits.amount) if tb else None,
                    "total_credits": str(tb.total_credits.amount) if tb else None,
                    "elimination_count": len(run.elimination_entry_ids),
                },
            )
            return run

    # =========================================================================
    # Statements
    # =========================================================================

    def consolidated_statements(
        self,
        run: ConsolidationRun,
        opening_run: ConsolidationRun | None = None,
    ) -> ConsolidatedStatements:
        """
        Group financial statements from a completed run.

        Args:
            run: Completed run whose trial balance closes the span.
            opening_run: Earlier completed run of the same group; flows are
                measured from its as-of date.  Without it they run from
                inception and the balance sheet has no comparative.

        Raises:
            ConsolidatedTrialBalanceUnavailableError: A run is not
                COMPLETED or has no trial balance.
            ValueError: The opening run is from another group or not earlier.
            ConsolidationGroupNotFoundError: The run's group is unknown.
        """
        trial_balances(run, opening_run)
        group = self._provider.get_group(run.group_id)
        if group is None:
            raise ConsolidationGroupNotFoundError(str(run.group_id))

        with LogContext.bind(group_id=run.group_id, run_id=run.id):
            period_start = (
                opening_run.as_of_date + timedelta(days=1) if opening_run is not None else None
            )
            generated_at = self._clock.now().isoformat()

            def _metadata(report_type: ReportType, flows: bool) -> ReportMetadata:
                return ReportMetadata(
                    report_type=report_type,
                    company_id=group.id,
                    entity_name=group.name,
                    currency=group.reporting_currency.code,
                    as_of_date=run.as_of_date,
                    generated_at=generated_at,
                    period_start=period_start if flows else None,
                    period_end=run.as_of_date if flows else None,
                    comparative_date=(
                        opening_run.as_of_date
                        if opening_run is not None and not flows else None
                    ),
                )

            statements = ConsolidatedStatements(
                run_id=run.id,
                opening_run_id=opening_run.id if opening_run is not None else None,
                balance_sheet=build_consolidated_balance_sheet(
                    run, _metadata(ReportType.BALANCE_SHEET, flows=False), opening_run,
                ),
                income_statement=build_consolidated_income_statement(
                    run, _metadata(ReportType.INCOME_STATEMENT, flows=True), opening_run,
                ),
                cash_flow_statement=build_consolidated_cash_flow_statement(
                    run, _metadata(ReportType.CASH_FLOW, flows=True), self._config, opening_run,
                ),
                equity_statement=build_consolidated_equity_statement(
                    run, _metadata(ReportType.EQUITY_STATEMENT, flows=True), self._config,
                    opening_run,
                ),
            )

            logger.info(
                "consolidated_statements_generated",
                extra={
                    "opening_run_id": str(opening_run.id) if opening_run else None,
                    "as_of_date": run.as_of_date.isoformat(),
                    "total_assets": str(statements.balance_sheet.total_assets.amount),
                    "net_income": str(statements.income_statement.net_income.amount),
                    "cash_reconciles": statements.cash_flow_statement.cash_change_reconciles,
                    "equity_reconciles": statements.equity_statement.reconciles,
                },
            )
            if not statements.cash_flow_statement.cash_change_reconciles:
                logger.warning(
                    "consolidated_cash_flow_unreconciled",
                    extra={
                        "net_change_in_cash": str(
                            statements.cash_flow_statement.net_change_in_cash.amount
                        ),
                    },
                )
            return statements

    # =========================================================================
    # Driver helpers
    # =========================================================================

    def _replace_step(self, run: ConsolidationRun, index: int, **changes: Any) -> ConsolidationRun:
        steps = list(run.steps)
        steps[index] = dataclasses.replace(steps[index], **changes)
        steps_t = tuple(steps)
        return dataclasses.replace(run, steps=steps_t, status=derive_run_status(steps_t))

    def _fail(
        self,
        run: ConsolidationRun,
        index: int,
        started: datetime,
        ctx: _RunContext,
        exc: Exception,
    ) -> ConsolidationRun:
        completed = self._clock.now()
        step = run.steps[index].step
        details = dict(ctx.details)
        details["error_type"] = type(exc).__name__
        details["error_code"] = getattr(exc, "code", None)
        run = self._replace_step(
            run, index,
            status=StepStatus.FAILED,
            completed_at=completed,
            duration_ms=_duration_ms(started, completed),
            error_message=str(exc),
            details=details,
        )
        run = dataclasses.replace(
            run,
            completed_at=completed,
            error_message=f"Step {step.display_name} failed: {exc}",
            **ctx.run_fields(),
        )
        log = logger.error if not isinstance(exc, LedgerKernelError) else logger.warning
        log(
            "consolidation_step_failed",
            extra={
                "step": step.value,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        return run

    def _save(self, run: ConsolidationRun) -> None:
        if self._store is not None:
            self._store.save(run)

    def _skip_reason(self, step: ConsolidationStep, ctx: _RunContext) -> str | None:
        if step == ConsolidationStep.VALIDATE and ctx.options.skip_validation:
            return "skip_validation option set"
        if step == ConsolidationStep.TRANSLATE:
            for member in ctx.consolidated_members():
                company = self._provider.get_company(member.company_id)
                if company is None or company.functional_currency != ctx.currency:
                    return None
            return "all members use the group currency"
        return None

    # =========================================================================
    # Member data
    # =========================================================================

    def _company(self, ctx: _RunContext, company_id: UUID) -> Company:
        company = ctx.companies.get(company_id)
        if company is None:
            company = self._provider.get_company(company_id)
            if company is None:
                raise CompanyNotFoundError(str(company_id))
            ctx.companies[company_id] = company
        return company

    def _load_member(self, ctx: _RunContext, company_id: UUID) -> None:
        """Chart, visible entries and natural balances as of the run date."""
        if company_id in ctx.balances:
            return
        company = self._company(ctx, company_id)
        accounts = self._provider.get_accounts(company_id)
        aggregator = BalanceAggregator(company_id, accounts, company.functional_currency)
        entries = visible_entries(
            self._provider.get_journal_entries(company_id), company_id, ctx.as_of_date,
        )
        totals = aggregator.point_in_time(entries, ctx.as_of_date)
        natural = aggregator.natural_balances(totals)
        ctx.charts[company_id] = dict(aggregator.accounts)
        ctx.entries[company_id] = entries
        ctx.balances[company_id] = tuple(
            AccountBalance(account=aggregator.accounts[aid], balance=natural[aid])
            for aid in sorted(
                natural, key=lambda aid: aggregator.accounts[aid].account_number,
            )
        )

    def _translated(self, ctx: _RunContext, company_id: UUID) -> TranslationResult:
        """Member balances in the group currency (identity when no translation ran)."""
        result = ctx.translations.get(company_id)
        if result is not None:
            return result
        self._load_member(ctx, company_id)
        company = self._company(ctx, company_id)
        result = translate(
            ctx.balances[company_id],
            functional_currency=company.functional_currency,
            group_currency=ctx.currency,
        )
        ctx.translations[company_id] = result
        return result

    # =========================================================================
    # Steps
    # =========================================================================

    def _validate(self, ctx: _RunContext) -> None:
        result = self._validator.validate(ctx.group, ctx.period, ctx.as_of_date, ctx.options)
        ctx.validation_result = result
        ctx.details.update({
            "error_count": result.error_count,
            "warning_count": result.warning_count,
            "issue_codes": sorted(set(result.codes())),
        })
        blocked = result.error_count > 0 or (
            result.warning_count > 0 and not ctx.options.continue_on_warnings
        )
        if blocked:
            raise ConsolidationValidationError(result.error_count, result.warning_count)

    def _translate(self, ctx: _RunContext) -> None:
        table = self._provider.get_exchange_rates()
        translated: dict[str, str] = {}
        for member in ctx.consolidated_members():
            company = self._company(ctx, member.company_id)
            self._load_member(ctx, company.id)
            if company.functional_currency == ctx.currency:
                self._translated(ctx, company.id)
                continue
            rates = resolve_translation_rates(
                table,
                company.functional_currency,
                ctx.currency,
                ctx.period.start_date,
                ctx.period.end_date,
                self._provider.get_historical_rates(company.id),
                company.id,
            )
            ctx.rates[company.id] = rates
            result = translate(
                ctx.balances[company.id],
                functional_currency=company.functional_currency,
                group_currency=ctx.currency,
                rates=rates,
            )
            ctx.translations[company.id] = result
            translated[str(company.id)] = str(result.cta.amount)
        ctx.details.update({
            "translated_member_count": len(translated),
            "cta_by_member": translated,
        })

    def _aggregate(self, ctx: _RunContext) -> None:
        contributions = []
        for member in ctx.consolidated_members():
            result = self._translated(ctx, member.company_id)
            weight = (
                member.ownership_fraction
                if member.consolidation_method == ConsolidationMethod.PROPORTIONAL
                else _FULL_WEIGHT
            )
            contributions.append(
                MemberContribution(
                    company_id=member.company_id,
                    balances=result.balances,
                    cta=result.cta,
                    weight=weight,
                )
            )
        ctx.group_balances = aggregate_group(
            contributions,
            ctx.mapping,
            currency=ctx.currency,
            cta_account=self._config.cta_account,
        )
        ctx.details.update({
            "member_count": len(contributions),
            "account_count": len(ctx.group_balances.amounts),
        })

    def _match_intercompany(self, ctx: _RunContext) -> None:
        full_members = [
            m.company_id for m in ctx.consolidated_members()
            if m.consolidation_method == ConsolidationMethod.FULL
        ]
        items: list[IntercompanyItem] = []
        for company_id in full_members:
            self._load_member(ctx, company_id)
            items.extend(
                collect_intercompany_items(
                    company_id,
                    ctx.entries[company_id],
                    ctx.charts[company_id],
                    ctx.mapping,
                    full_members,
                    group_currency=ctx.currency,
                    rates=ctx.rates.get(company_id),
                )
            )
        result = match_intercompany(items, tolerance=self._config.matching)
        ctx.match_result = result
        ctx.intercompany_issues = tuple(
            ValidationIssue.warning(
                "UNMATCHED_INTERCOMPANY",
                f"{item.side.value} {item.amount} on {item.group_account_number} "
                f"toward {item.partner_company_id} has no counterpart",
                f"company:{item.company_id}/entry:{item.entry_id}/line:{item.line_id}",
            )
            for item in result.unmatched
        )
        ctx.details.update({
            "item_count": len(items),
            "matched_count": result.matched_count,
            "unmatched_count": result.unmatched_count,
        })
        if result.unmatched and self._config.fail_on_unmatched_intercompany:
            raise UnmatchedIntercompanyError(result.unmatched_count)

    def _eliminate(self, ctx: _RunContext) -> None:
        matches = ctx.match_result.matches if ctx.match_result else ()
        ctx.eliminations = build_elimination_entries(matches)
        ctx.details.update({
            "entry_count": len(ctx.eliminations),
            "total_eliminated": str(total_eliminated(ctx.eliminations, ctx.currency).amount),
        })

    def _compute_nci(self, ctx: _RunContext) -> None:
        balances = ctx.group_balances
        members = {
            m.company_id: m for m in ctx.consolidated_members()
            if m.consolidation_method == ConsolidationMethod.FULL
        }
        ctx.nci = compute_nci(
            members,
            balances.by_member,
            balances.accounts,
            currency=ctx.currency,
        )
        ctx.details.update({
            "member_count": len(ctx.nci),
            "total_nci": str(
                sum_money((a.total for a in ctx.nci), ctx.currency).amount
            ),
        })

    def _generate_trial_balance(self, ctx: _RunContext) -> None:
        balances = ctx.group_balances
        currency = ctx.currency
        zero = Money.zero(currency)

        accounts: dict[str, GroupAccount] = dict(balances.accounts)
        accounts.setdefault(self._config.nci_account_number, self._config.nci_account)
        accounts.setdefault(
            self._config.nci_income_account_number, self._config.nci_income_account,
        )

        eliminations = elimination_effects(ctx.eliminations, accounts, currency)
        nci = nci_effects(
            ctx.nci,
            currency=currency,
            nci_account_number=self._config.nci_account_number,
            nci_income_account_number=self._config.nci_income_account_number,
        )

        lines: list[ConsolidatedTrialBalanceLine] = []
        for number in sorted(set(balances.amounts) | set(eliminations) | set(nci)):
            account = accounts[number]
            aggregated = balances.amount(number)
            elimination = eliminations.get(number, zero)
            nci_amount = nci.get(number, zero)
            if aggregated.is_zero and elimination.is_zero and nci_amount.is_zero:
                continue
            lines.append(
                ConsolidatedTrialBalanceLine(
                    account_number=number,
                    account_name=account.name,
                    account_type=account.account_type,
                    category=account.category,
                    aggregated_amount=aggregated,
                    elimination_amount=elimination,
                    nci_amount=nci_amount,
                    consolidated_amount=aggregated + elimination + nci_amount,
                )
            )

        debit_normal = {
            n for n, a in accounts.items() if a.normal_balance == NormalBalance.DEBIT
        }
        total_debits = sum_money(
            (ln.consolidated_amount for ln in lines if ln.account_number in debit_normal),
            currency,
        )
        total_credits = sum_money(
            (ln.consolidated_amount for ln in lines if ln.account_number not in debit_normal),
            currency,
        )
        tb = ConsolidatedTrialBalance(
            currency=currency.code,
            lines=tuple(lines),
            total_debits=total_debits,
            total_credits=total_credits,
            total_eliminations=total_eliminated(ctx.eliminations, currency),
            total_nci=sum_money((a.total for a in ctx.nci), currency),
            is_balanced=(total_debits == total_credits),
        )
        ctx.consolidated_trial_balance = tb
        ctx.details.update({
            "line_count": len(lines),
            "total_debits": str(total_debits.amount),
            "total_credits": str(total_credits.amount),
            "is_balanced": tb.is_balanced,
        })
        if not tb.is_balanced:
            logger.warning(
                "consolidated_trial_balance_out_of_balance",
                extra={"difference": str((total_debits - total_credits).amount)},
            )


def _duration_ms(start: datetime | None, end: datetime | None) -> int | None:
    if start is None or end is None:
        return None
    return int((end - start).total_seconds() * 1000)
