"""
Consolidated Financial Statements (``ledger_modules.consolidation.reports``).

Responsibility
--------------
Turn the consolidated trial balance of a completed run into a balance
sheet, income statement, cash flow statement and statement of changes in
equity, in the same report DTOs single-company reporting returns.

Architecture position
---------------------
**Modules layer** -- pure functions with ZERO I/O.  Trial balance lines
are placed by ``section_for`` on their category; layout, totals and
verification come from the ``assemble_*`` functions of
``ledger_modules.reporting.statements``.

Invariants enforced
-------------------
* Only COMPLETED runs carrying a trial balance are reported.
* Flows are differences between two runs of the same group: the closing
  run and an optional earlier opening run.  Without an opening run every
  flow runs from inception.
* Cash effect of a non-cash balance sheet line is the change in its
  natural balance, negated for debit-normal lines.  With balanced trial
  balances the cash flow statement reconciles.

Failure modes
-------------
* ``ConsolidatedTrialBalanceUnavailableError`` -- a run is not COMPLETED
  or has no consolidated trial balance.
* ``ValueError`` -- the opening run belongs to another group, is not
  earlier, or reports in another currency.
"""

from __future__ import annotations

from collections.abc import Iterator

from ledger_engines.classifier import (
    SectionKey,
    Statement,
    default_cash_flow_category,
    has_cash_prefix,
    section_for,
)
from ledger_kernel.domain.accounts import (
    NORMAL_BALANCE_BY_TYPE,
    AccountCategory,
    AccountType,
    CashFlowCategory,
    NormalBalance,
)
from ledger_kernel.domain.values import Currency, Money, sum_money
from ledger_kernel.exceptions import ConsolidatedTrialBalanceUnavailableError
from ledger_modules.consolidation.config import ConsolidationConfig
from ledger_modules.consolidation.models import (
    ConsolidatedTrialBalance,
    ConsolidatedTrialBalanceLine,
    ConsolidationRun,
    RunStatus,
)
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    CashFlowStatementReport,
    EquityComponent,
    EquityMovementType,
    EquityStatementReport,
    IncomeStatementReport,
    ReportLineItem,
    ReportMetadata,
)
from ledger_modules.reporting.statements import (
    BALANCE_SHEET_SECTIONS,
    CURRENT_PERIOD_EARNINGS,
    INCOME_STATEMENT_SECTIONS,
    SINGLE_ENTITY_EQUITY_MOVEMENTS,
    assemble_balance_sheet,
    assemble_cash_flow_statement,
    assemble_equity_statement,
    assemble_income_statement,
    earnings_line,
    statement_line,
)

CONSOLIDATED_EQUITY_MOVEMENTS = (
    *SINGLE_ENTITY_EQUITY_MOVEMENTS,
    EquityMovementType.NON_CONTROLLING_INTEREST,
)

_NET_EQUITY_MOVEMENT: dict[AccountCategory, EquityMovementType] = {
    AccountCategory.CONTRIBUTED_CAPITAL: EquityMovementType.STOCK_ISSUANCE,
    AccountCategory.TREASURY_STOCK: EquityMovementType.STOCK_REPURCHASE,
    AccountCategory.OTHER_COMPREHENSIVE_INCOME: EquityMovementType.OTHER_COMPREHENSIVE_INCOME,
}


# =========================================================================
# Helpers
# =========================================================================


def consolidated_trial_balance_of(run: ConsolidationRun) -> ConsolidatedTrialBalance:
    """The run's trial balance; raises unless the run completed with one."""
    tb = run.consolidated_trial_balance
    if run.status != RunStatus.COMPLETED or tb is None:
        raise ConsolidatedTrialBalanceUnavailableError(str(run.id), run.status.value)
    return tb


def trial_balances(
    closing: ConsolidationRun,
    opening: ConsolidationRun | None = None,
) -> tuple[ConsolidatedTrialBalance, ConsolidatedTrialBalance | None]:
    """
    Closing and opening trial balances of a reporting span.

    Raises:
        ConsolidatedTrialBalanceUnavailableError: Either run is unusable.
        ValueError: The runs do not describe one group over a forward span.
    """
    closing_tb = consolidated_trial_balance_of(closing)
    if opening is None:
        return closing_tb, None
    if opening.group_id != closing.group_id:
        raise ValueError(
            f"Opening run {opening.id} belongs to group {opening.group_id}, "
            f"not {closing.group_id}"
        )
    if opening.as_of_date >= closing.as_of_date:
        raise ValueError(
            f"Opening run as-of {opening.as_of_date} is not before "
            f"closing run as-of {closing.as_of_date}"
        )
    opening_tb = consolidated_trial_balance_of(opening)
    if opening_tb.currency != closing_tb.currency:
        raise ValueError(
            f"Opening run reports in {opening_tb.currency}, closing run in {closing_tb.currency}"
        )
    return closing_tb, opening_tb


def _amount(tb: ConsolidatedTrialBalance | None, number: str, currency: Currency) -> Money:
    if tb is None:
        return Money.zero(currency)
    line = tb.line(number)
    return line.consolidated_amount if line is not None else Money.zero(currency)


def _lines_on(
    statement: Statement,
    closing_tb: ConsolidatedTrialBalance,
    opening_tb: ConsolidatedTrialBalance | None,
) -> Iterator[ConsolidatedTrialBalanceLine]:
    """Lines of either trial balance on ``statement``, by account number."""
    by_number = {ln.account_number: ln for ln in (opening_tb.lines if opening_tb else ())}
    by_number.update({ln.account_number: ln for ln in closing_tb.lines})
    for number in sorted(by_number):
        line = by_number[number]
        if section_for(line).statement == statement:
            yield line


def _earnings(tb: ConsolidatedTrialBalance | None, currency: Currency) -> Money:
    """Revenue minus expense carried in the trial balance."""
    if tb is None:
        return Money.zero(currency)
    revenue = sum_money(
        (ln.consolidated_amount for ln in tb.lines if ln.account_type == AccountType.REVENUE),
        currency,
    )
    expense = sum_money(
        (ln.consolidated_amount for ln in tb.lines if ln.account_type == AccountType.EXPENSE),
        currency,
    )
    return revenue - expense


def _is_debit_normal(line: ConsolidatedTrialBalanceLine) -> bool:
    return NORMAL_BALANCE_BY_TYPE[line.account_type] == NormalBalance.DEBIT


def _line(
    line: ConsolidatedTrialBalanceLine,
    amount: Money,
    comparative: Money | None = None,
) -> ReportLineItem:
    return statement_line(
        line.account_name, amount, comparative, account_number=line.account_number,
    )


# =========================================================================
# Statements
# =========================================================================


def build_consolidated_balance_sheet(
    closing: ConsolidationRun,
    metadata: ReportMetadata,
    opening: ConsolidationRun | None = None,
) -> BalanceSheetReport:
    """Balance sheet at the run date, compared to the opening run when given."""
    closing_tb, opening_tb = trial_balances(closing, opening)
    currency = Currency(closing_tb.currency)
    with_comparative = opening_tb is not None

    lines: dict[SectionKey, list[ReportLineItem]] = {k: [] for k in BALANCE_SHEET_SECTIONS}
    for line in _lines_on(Statement.BALANCE_SHEET, closing_tb, opening_tb):
        amount = _amount(closing_tb, line.account_number, currency)
        comp_amount = (
            _amount(opening_tb, line.account_number, currency) if with_comparative else None
        )
        if amount.is_zero and (comp_amount is None or comp_amount.is_zero):
            continue
        lines[section_for(line).section].append(_line(line, amount, comp_amount))

    earnings = earnings_line(
        _earnings(closing_tb, currency),
        _earnings(opening_tb, currency) if with_comparative else None,
    )
    if earnings is not None:
        lines[SectionKey.EQUITY].append(earnings)

    return assemble_balance_sheet(metadata, lines, currency, with_comparative)


def build_consolidated_income_statement(
    closing: ConsolidationRun,
    metadata: ReportMetadata,
    opening: ConsolidationRun | None = None,
) -> IncomeStatementReport:
    """Income and expense accrued between the opening and closing runs."""
    closing_tb, opening_tb = trial_balances(closing, opening)
    currency = Currency(closing_tb.currency)

    lines: dict[SectionKey, list[ReportLineItem]] = {k: [] for k in INCOME_STATEMENT_SECTIONS}
    for line in _lines_on(Statement.INCOME_STATEMENT, closing_tb, opening_tb):
        amount = (
            _amount(closing_tb, line.account_number, currency)
            - _amount(opening_tb, line.account_number, currency)
        )
        if amount.is_zero:
            continue
        lines[section_for(line).section].append(_line(line, amount))

    return assemble_income_statement(metadata, lines, currency, with_comparative=False)


def build_consolidated_cash_flow_statement(
    closing: ConsolidationRun,
    metadata: ReportMetadata,
    config: ConsolidationConfig,
    opening: ConsolidationRun | None = None,
) -> CashFlowStatementReport:
    """
    Indirect-method cash flow from the change between two trial balances.

    Each non-cash balance sheet line goes to the activity of its category's
    default.  Balance deltas cannot tell settled movement from accrued
    movement, so a contra asset such as accumulated depreciation reports
    under investing rather than as a non-cash adjustment.
    """
    closing_tb, opening_tb = trial_balances(closing, opening)
    currency = Currency(closing_tb.currency)
    zero = Money.zero(currency)
    prefixes = config.cash_account_prefixes

    adjustments: list[ReportLineItem] = []
    working_capital: list[ReportLineItem] = []
    activities: dict[CashFlowCategory, list[ReportLineItem]] = {
        CashFlowCategory.INVESTING: [],
        CashFlowCategory.FINANCING: [],
    }
    beginning_cash = zero
    ending_cash = zero
    for line in _lines_on(Statement.BALANCE_SHEET, closing_tb, opening_tb):
        before = _amount(opening_tb, line.account_number, currency)
        after = _amount(closing_tb, line.account_number, currency)
        if has_cash_prefix(line.account_number, line.category, prefixes):
            beginning_cash = beginning_cash + before
            ending_cash = ending_cash + after
            continue
        delta = after - before
        if delta.is_zero:
            continue
        effect = -delta if _is_debit_normal(line) else delta
        category = default_cash_flow_category(line.category)
        if category == CashFlowCategory.OPERATING:
            bucket = working_capital
        elif category == CashFlowCategory.NON_CASH:
            bucket = adjustments
        else:
            bucket = activities[category]
        bucket.append(_line(line, effect))

    return assemble_cash_flow_statement(
        metadata,
        net_income=_earnings(closing_tb, currency) - _earnings(opening_tb, currency),
        non_cash_adjustments=adjustments,
        working_capital_changes=working_capital,
        investing=activities[CashFlowCategory.INVESTING],
        financing=activities[CashFlowCategory.FINANCING],
        beginning_cash=beginning_cash,
        ending_cash=ending_cash,
        currency=currency,
    )


def _equity_movement(
    line: ConsolidatedTrialBalanceLine,
    delta: Money,
    config: ConsolidationConfig,
) -> EquityMovementType:
    if line.account_number == config.cta_account_number:
        return EquityMovementType.OTHER_COMPREHENSIVE_INCOME
    if line.account_number in (config.nci_account_number, config.nci_income_account_number):
        return EquityMovementType.NON_CONTROLLING_INTEREST
    if line.category in _NET_EQUITY_MOVEMENT:
        return _NET_EQUITY_MOVEMENT[line.category]
    if delta.is_negative:
        return EquityMovementType.DIVIDENDS
    return EquityMovementType.OTHER_ADJUSTMENTS


def build_consolidated_equity_statement(
    closing: ConsolidationRun,
    metadata: ReportMetadata,
    config: ConsolidationConfig,
    opening: ConsolidationRun | None = None,
) -> EquityStatementReport:
    """
    Changes in group equity between the opening and closing runs.

    Only net changes are visible in trial balances, so each equity line
    contributes its whole change to one row: the translation adjustment to
    other comprehensive income, the NCI accounts to non-controlling
    interest, capital to issuance, treasury stock to repurchase and a fall
    in retained earnings to dividends.
    """
    closing_tb, opening_tb = trial_balances(closing, opening)
    currency = Currency(closing_tb.currency)
    zero = Money.zero(currency)

    components: list[EquityComponent] = []
    opening_amounts: list[Money] = []
    closing_amounts: list[Money] = []
    movements: dict[EquityMovementType, list[Money]] = {
        kind: [] for kind in CONSOLIDATED_EQUITY_MOVEMENTS
    }
    for line in _lines_on(Statement.BALANCE_SHEET, closing_tb, opening_tb):
        if line.account_type != AccountType.EQUITY:
            continue
        before = _amount(opening_tb, line.account_number, currency)
        after = _amount(closing_tb, line.account_number, currency)
        if before.is_zero and after.is_zero:
            continue
        delta = after - before
        row = _equity_movement(line, delta, config)
        components.append(
            EquityComponent(description=line.account_name, account_number=line.account_number)
        )
        opening_amounts.append(before)
        closing_amounts.append(after)
        for kind, amounts in movements.items():
            amounts.append(delta if kind == row else zero)

    opening_earnings = _earnings(opening_tb, currency)
    closing_earnings = _earnings(closing_tb, currency)
    net_income = closing_earnings - opening_earnings
    components.append(EquityComponent(description=CURRENT_PERIOD_EARNINGS))
    opening_amounts.append(opening_earnings)
    closing_amounts.append(closing_earnings)
    for kind, amounts in movements.items():
        amounts.append(net_income if kind == EquityMovementType.NET_INCOME else zero)

    return assemble_equity_statement(
        metadata,
        components,
        opening_amounts,
        movements,
        closing_amounts,
        net_income,
        currency,
    )
