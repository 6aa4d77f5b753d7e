"""
Pure financial statement transformation functions.

These functions fold journal entries into balances through the
``BalanceAggregator`` and arrange them into structured financial
statements.  ZERO I/O.  ZERO side effects.

All monetary values are Money.  All inputs/outputs are frozen dataclasses.

The ``assemble_*`` functions take lines that are already placed and
amounts that are already computed; the ledger builders here and the
consolidated builders in ``ledger_modules.consolidation.reports`` share
them so both produce the same report shapes.

Functions in this module follow the ledger_kernel/domain/ purity convention:
- No database access
- No clock access (dates and metadata are parameters)
- No file I/O
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_engines.aggregation import BalanceAggregator, LedgerTotals
from ledger_engines.classifier import (
    SECTION_LABELS,
    SectionKey,
    Statement,
    cash_flow_category_for,
    is_cash_account,
    section_for,
)
from ledger_kernel.domain.accounts import (
    Account,
    AccountCategory,
    AccountType,
    CashFlowCategory,
)
from ledger_kernel.domain.journal import JournalEntry
from ledger_kernel.domain.values import Currency, Money, sum_money
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    EQUITY_MOVEMENT_LABELS,
    BalanceSheetReport,
    BalanceSheetTotals,
    CashFlowSection,
    CashFlowStatementReport,
    Comparison,
    EquityComponent,
    EquityMovementRow,
    EquityMovementType,
    EquityStatementReport,
    IncomeStatementFigures,
    IncomeStatementReport,
    LineStyle,
    ReportLineItem,
    ReportMetadata,
    ReportSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
)

CURRENT_PERIOD_EARNINGS = "Current Period Earnings"
NET_INCOME = "Net Income"

BALANCE_SHEET_SECTIONS = (
    SectionKey.CURRENT_ASSETS,
    SectionKey.NON_CURRENT_ASSETS,
    SectionKey.CURRENT_LIABILITIES,
    SectionKey.NON_CURRENT_LIABILITIES,
    SectionKey.EQUITY,
)

INCOME_STATEMENT_SECTIONS = (
    SectionKey.REVENUE,
    SectionKey.COST_OF_SALES,
    SectionKey.OPERATING_EXPENSES,
    SectionKey.OTHER_EXPENSES,
    SectionKey.INCOME_TAX_EXPENSE,
)

_CASH_FLOW_LABELS = {
    CashFlowCategory.OPERATING: "Operating Activities",
    CashFlowCategory.INVESTING: "Investing Activities",
    CashFlowCategory.FINANCING: "Financing Activities",
}

# Rows receiving an equity account's period debits and credits.
_EQUITY_ROWS_BY_CATEGORY: dict[
    AccountCategory, tuple[EquityMovementType, EquityMovementType]
] = {
    AccountCategory.CONTRIBUTED_CAPITAL: (
        EquityMovementType.OTHER_ADJUSTMENTS, EquityMovementType.STOCK_ISSUANCE,
    ),
    AccountCategory.TREASURY_STOCK: (
        EquityMovementType.STOCK_REPURCHASE, EquityMovementType.OTHER_ADJUSTMENTS,
    ),
    AccountCategory.OTHER_COMPREHENSIVE_INCOME: (
        EquityMovementType.OTHER_COMPREHENSIVE_INCOME,
        EquityMovementType.OTHER_COMPREHENSIVE_INCOME,
    ),
    AccountCategory.RETAINED_EARNINGS: (
        EquityMovementType.DIVIDENDS, EquityMovementType.OTHER_ADJUSTMENTS,
    ),
}

SINGLE_ENTITY_EQUITY_MOVEMENTS = (
    EquityMovementType.NET_INCOME,
    EquityMovementType.OTHER_COMPREHENSIVE_INCOME,
    EquityMovementType.DIVIDENDS,
    EquityMovementType.STOCK_ISSUANCE,
    EquityMovementType.STOCK_REPURCHASE,
    EquityMovementType.OTHER_ADJUSTMENTS,
)


# =========================================================================
# Helpers
# =========================================================================


def _shown(account: Account, config: ReportingConfig) -> bool:
    """Accounts listed even without a balance."""
    if not account.is_postable:
        return False
    return account.is_active or config.include_inactive


def _by_number(accounts: Iterable[Account]) -> list[Account]:
    return sorted(accounts, key=lambda a: (a.account_number, str(a.id)))


def compute_net_income(
    aggregator: BalanceAggregator,
    totals: Mapping[UUID, LedgerTotals],
) -> Money:
    """
    Revenue minus expense over the folded entries.

    Only REVENUE and EXPENSE accounts are considered.
    """
    revenue = Money.zero(aggregator.currency)
    expense = Money.zero(aggregator.currency)
    for account_id in totals:
        account = aggregator.accounts[account_id]
        if account.account_type == AccountType.REVENUE:
            revenue = revenue + aggregator.balance_of(totals, account_id)
        elif account.account_type == AccountType.EXPENSE:
            expense = expense + aggregator.balance_of(totals, account_id)
    return revenue - expense


def statement_line(
    description: str,
    current: Money,
    comparative: Money | None = None,
    *,
    account_id: UUID | None = None,
    account_number: str | None = None,
) -> ReportLineItem:
    """An indented account line, with a comparison when a prior amount is given."""
    return ReportLineItem(
        description=description,
        current_amount=current,
        account_id=account_id,
        account_number=account_number,
        comparison=(
            Comparison.between(current, comparative) if comparative is not None else None
        ),
        style=LineStyle.NORMAL,
        indent_level=1,
    )


def _account_line(
    account: Account,
    current: Money,
    comparative: Money | None,
) -> ReportLineItem:
    return statement_line(
        account.name, current, comparative,
        account_id=account.id, account_number=account.account_number,
    )


def _make_section(
    key: SectionKey,
    lines: Sequence[ReportLineItem],
    currency: Currency,
    with_comparative: bool,
) -> ReportSection:
    subtotal = sum_money((ln.current_amount for ln in lines), currency)
    comparative_subtotal = None
    if with_comparative:
        comparative_subtotal = sum_money(
            (ln.comparison.comparative_amount for ln in lines if ln.comparison),
            currency,
        )
    return ReportSection(
        key=key,
        label=SECTION_LABELS[key],
        lines=tuple(lines),
        subtotal=subtotal,
        comparative_subtotal=comparative_subtotal,
    )


def _total_line(
    description: str,
    current: Money,
    comparative: Money | None,
    style: LineStyle = LineStyle.TOTAL,
) -> ReportLineItem:
    return ReportLineItem(
        description=description,
        current_amount=current,
        comparison=(
            Comparison.between(current, comparative) if comparative is not None else None
        ),
        style=style,
    )


def earnings_line(earnings: Money, comparative: Money | None) -> ReportLineItem | None:
    """Synthetic equity line for unclosed revenue minus expense, or None when nil."""
    if earnings.is_zero and (comparative is None or comparative.is_zero):
        return None
    return statement_line(CURRENT_PERIOD_EARNINGS, earnings, comparative)


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def build_trial_balance(
    company_id: UUID,
    accounts: Iterable[Account],
    entries: Iterable[JournalEntry],
    as_of_date: date,
    currency: Currency,
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    """
    Build a trial balance as of a date.

    A net debit goes to the debit column, a net credit to the credit
    column.  Postable accounts without a balance appear only with
    ``include_zero_balances``; a non-postable account appears whenever it
    carries a balance.
    """
    aggregator = BalanceAggregator(company_id, accounts, currency)
    totals = aggregator.point_in_time(entries, as_of_date)
    zero = Money.zero(currency)

    items: list[TrialBalanceLineItem] = []
    for account in _by_number(aggregator.accounts.values()):
        t = totals.get(account.id)
        net_debit = t.net_debit if t is not None else zero
        if net_debit.is_zero:
            if not (config.include_zero_balances and _shown(account, config)):
                continue

        items.append(
            TrialBalanceLineItem(
                account_id=account.id,
                account_number=account.account_number,
                account_name=account.name,
                account_type=account.account_type.value,
                debit_balance=net_debit if net_debit.is_positive else zero,
                credit_balance=-net_debit if net_debit.is_negative else zero,
                net_balance=aggregator.balance_of(totals, account.id),
            )
        )

    total_debits = sum_money((item.debit_balance for item in items), currency)
    total_credits = sum_money((item.credit_balance for item in items), currency)

    return TrialBalanceReport(
        metadata=metadata,
        lines=tuple(items),
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=(total_debits == total_credits),
    )


# =========================================================================
# 2. BALANCE SHEET
# =========================================================================


def _balance_sheet_totals(
    sections: Mapping[SectionKey, Money],
) -> BalanceSheetTotals:
    total_assets = sections[SectionKey.CURRENT_ASSETS] + sections[SectionKey.NON_CURRENT_ASSETS]
    total_liabilities = (
        sections[SectionKey.CURRENT_LIABILITIES] + sections[SectionKey.NON_CURRENT_LIABILITIES]
    )
    total_equity = sections[SectionKey.EQUITY]
    return BalanceSheetTotals(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        total_equity=total_equity,
        total_liabilities_and_equity=total_liabilities + total_equity,
    )


def assemble_balance_sheet(
    metadata: ReportMetadata,
    lines: Mapping[SectionKey, Sequence[ReportLineItem]],
    currency: Currency,
    with_comparative: bool,
) -> BalanceSheetReport:
    """Sections, totals and summary lines from lines already placed by section."""
    sections = tuple(
        _make_section(key, lines.get(key, ()), currency, with_comparative)
        for key in BALANCE_SHEET_SECTIONS
    )
    totals = _balance_sheet_totals({s.key: s.subtotal for s in sections})
    comparative_totals = None
    if with_comparative:
        comparative_totals = _balance_sheet_totals(
            {s.key: s.comparative_subtotal for s in sections},
        )

    def _comp(attr: str) -> Money | None:
        return getattr(comparative_totals, attr) if comparative_totals else None

    summary = (
        _total_line("Total Assets", totals.total_assets, _comp("total_assets")),
        _total_line("Total Liabilities", totals.total_liabilities, _comp("total_liabilities")),
        _total_line("Total Equity", totals.total_equity, _comp("total_equity")),
        _total_line(
            "Total Liabilities and Equity",
            totals.total_liabilities_and_equity,
            _comp("total_liabilities_and_equity"),
        ),
    )

    return BalanceSheetReport(
        metadata=metadata,
        sections=sections,
        totals=totals,
        summary=summary,
        comparative_totals=comparative_totals,
    )


def build_balance_sheet(
    company_id: UUID,
    accounts: Iterable[Account],
    entries: Iterable[JournalEntry],
    as_of_date: date,
    currency: Currency,
    config: ReportingConfig,
    metadata: ReportMetadata,
    comparative_date: date | None = None,
) -> BalanceSheetReport:
    """
    Build a classified balance sheet.

    Classification logic:
    1. Place every balance-sheet account by category (classifier table)
    2. Cumulative revenue minus expense becomes a synthetic
       "Current Period Earnings" equity line
    3. A line is dropped only when current and comparative are both zero
    4. A = L + E is computed, never asserted
    """
    entries = tuple(entries)
    aggregator = BalanceAggregator(company_id, accounts, currency)
    current = aggregator.point_in_time(entries, as_of_date)
    comparative = (
        aggregator.point_in_time(entries, comparative_date)
        if comparative_date is not None else None
    )
    with_comparative = comparative is not None

    lines: dict[SectionKey, list[ReportLineItem]] = {k: [] for k in BALANCE_SHEET_SECTIONS}
    for account in _by_number(aggregator.accounts.values()):
        placement = section_for(account)
        if placement.statement != Statement.BALANCE_SHEET:
            continue
        amount = aggregator.balance_of(current, account.id)
        comp_amount = (
            aggregator.balance_of(comparative, account.id) if with_comparative else None
        )
        if amount.is_zero and (comp_amount is None or comp_amount.is_zero):
            continue
        lines[placement.section].append(_account_line(account, amount, comp_amount))

    earnings = earnings_line(
        compute_net_income(aggregator, current),
        compute_net_income(aggregator, comparative) if with_comparative else None,
    )
    if earnings is not None:
        lines[SectionKey.EQUITY].append(earnings)

    return assemble_balance_sheet(metadata, lines, currency, with_comparative)


# =========================================================================
# 3. INCOME STATEMENT
# =========================================================================


def _income_figures(subtotals: Mapping[SectionKey, Money]) -> IncomeStatementFigures:
    revenue = subtotals[SectionKey.REVENUE]
    cost_of_sales = subtotals[SectionKey.COST_OF_SALES]
    operating_expenses = subtotals[SectionKey.OPERATING_EXPENSES]
    other_expenses = subtotals[SectionKey.OTHER_EXPENSES]
    tax = subtotals[SectionKey.INCOME_TAX_EXPENSE]

    gross_profit = revenue - cost_of_sales
    operating_income = gross_profit - operating_expenses
    income_before_tax = operating_income - other_expenses
    total_expenses = cost_of_sales + operating_expenses + other_expenses + tax
    return IncomeStatementFigures(
        total_revenue=revenue,
        cost_of_sales=cost_of_sales,
        gross_profit=gross_profit,
        operating_expenses=operating_expenses,
        operating_income=operating_income,
        other_expenses=other_expenses,
        income_before_tax=income_before_tax,
        income_tax_expense=tax,
        total_expenses=total_expenses,
        net_income=revenue - total_expenses,
    )


def assemble_income_statement(
    metadata: ReportMetadata,
    lines: Mapping[SectionKey, Sequence[ReportLineItem]],
    currency: Currency,
    with_comparative: bool,
) -> IncomeStatementReport:
    """Multi-step figures and summary from lines already placed by section."""
    sections = tuple(
        _make_section(key, lines.get(key, ()), currency, with_comparative)
        for key in INCOME_STATEMENT_SECTIONS
    )
    figures = _income_figures({s.key: s.subtotal for s in sections})
    comparative_figures = None
    if with_comparative:
        comparative_figures = _income_figures(
            {s.key: s.comparative_subtotal for s in sections},
        )

    def _comp(attr: str) -> Money | None:
        return getattr(comparative_figures, attr) if comparative_figures else None

    summary = (
        _total_line("Gross Profit", figures.gross_profit, _comp("gross_profit"), LineStyle.SUBTOTAL),
        _total_line(
            "Operating Income", figures.operating_income, _comp("operating_income"),
            LineStyle.SUBTOTAL,
        ),
        _total_line(
            "Income Before Tax", figures.income_before_tax, _comp("income_before_tax"),
            LineStyle.SUBTOTAL,
        ),
        _total_line(NET_INCOME, figures.net_income, _comp("net_income")),
    )

    return IncomeStatementReport(
        metadata=metadata,
        sections=sections,
        figures=figures,
        summary=summary,
        comparative_figures=comparative_figures,
    )


def build_income_statement(
    company_id: UUID,
    accounts: Iterable[Account],
    entries: Iterable[JournalEntry],
    period_start: date,
    period_end: date,
    currency: Currency,
    config: ReportingConfig,
    metadata: ReportMetadata,
    comparative_period: tuple[date, date] | None = None,
) -> IncomeStatementReport:
    """
    Build a multi-step income statement over [period_start, period_end].

    Raises:
        ValueError: period_end precedes period_start.
    """
    if period_end < period_start:
        raise ValueError(f"Period end {period_end} precedes period start {period_start}")

    entries = tuple(entries)
    aggregator = BalanceAggregator(company_id, accounts, currency)
    current = aggregator.for_period(entries, period_start, period_end)
    comparative = None
    if comparative_period is not None:
        comparative = aggregator.for_period(entries, *comparative_period)
    with_comparative = comparative is not None

    lines: dict[SectionKey, list[ReportLineItem]] = {k: [] for k in INCOME_STATEMENT_SECTIONS}
    for account in _by_number(aggregator.accounts.values()):
        placement = section_for(account)
        if placement.statement != Statement.INCOME_STATEMENT:
            continue
        amount = aggregator.balance_of(current, account.id)
        comp_amount = (
            aggregator.balance_of(comparative, account.id) if with_comparative else None
        )
        if amount.is_zero and (comp_amount is None or comp_amount.is_zero):
            continue
        lines[placement.section].append(_account_line(account, amount, comp_amount))

    return assemble_income_statement(metadata, lines, currency, with_comparative)


# =========================================================================
# 4. CASH FLOW STATEMENT
# =========================================================================


def _cash_balance(
    aggregator: BalanceAggregator,
    totals: Mapping[UUID, LedgerTotals],
    cash_ids: Iterable[UUID],
) -> Money:
    return sum_money((aggregator.balance_of(totals, aid) for aid in cash_ids), aggregator.currency)


def _cash_effect(
    account: Account,
    totals: Mapping[UUID, LedgerTotals],
) -> ReportLineItem | None:
    """Credits minus debits of one account as a cash flow line, None when nil."""
    t = totals.get(account.id)
    if t is None:
        return None
    effect = t.credit_total - t.debit_total
    if effect.is_zero:
        return None
    return statement_line(
        account.name, effect,
        account_id=account.id, account_number=account.account_number,
    )


def _cash_flow_section(
    category: CashFlowCategory,
    lines: Sequence[ReportLineItem],
    currency: Currency,
) -> CashFlowSection:
    return CashFlowSection(
        category=category,
        label=_CASH_FLOW_LABELS[category],
        lines=tuple(lines),
        total=sum_money((ln.current_amount for ln in lines), currency),
    )


def assemble_cash_flow_statement(
    metadata: ReportMetadata,
    *,
    net_income: Money,
    non_cash_adjustments: Sequence[ReportLineItem],
    working_capital_changes: Sequence[ReportLineItem],
    investing: Sequence[ReportLineItem],
    financing: Sequence[ReportLineItem],
    beginning_cash: Money,
    ending_cash: Money,
    currency: Currency,
) -> CashFlowStatementReport:
    """
    Lay out an indirect-method statement and check it against cash.

    Operating lines are net income, then the non-cash adjustments, then the
    working capital changes.
    """
    operating_lines = (
        ReportLineItem(
            description=NET_INCOME,
            current_amount=net_income,
            style=LineStyle.SUBTOTAL,
            indent_level=1,
        ),
        *non_cash_adjustments,
        *working_capital_changes,
    )
    operating = _cash_flow_section(CashFlowCategory.OPERATING, operating_lines, currency)
    investing_section = _cash_flow_section(CashFlowCategory.INVESTING, investing, currency)
    financing_section = _cash_flow_section(CashFlowCategory.FINANCING, financing, currency)

    net_change = operating.total + investing_section.total + financing_section.total
    return CashFlowStatementReport(
        metadata=metadata,
        net_income=net_income,
        non_cash_adjustments=tuple(non_cash_adjustments),
        working_capital_changes=tuple(working_capital_changes),
        operating_activities=operating,
        investing_activities=investing_section,
        financing_activities=financing_section,
        net_change_in_cash=net_change,
        beginning_cash=beginning_cash,
        ending_cash=ending_cash,
        cash_change_reconciles=(ending_cash - beginning_cash == net_change),
    )


def build_cash_flow_statement(
    company_id: UUID,
    accounts: Iterable[Account],
    entries: Iterable[JournalEntry],
    period_start: date,
    period_end: date,
    currency: Currency,
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> CashFlowStatementReport:
    """
    Build a statement of cash flows with the indirect method.

    Period entries are split into those that touch a cash account and
    those that do not.  For each non-cash balance sheet account the cash
    effect is credits minus debits:

    1. OPERATING accounts: the whole movement is a working capital change
    2. INVESTING / FINANCING accounts: movement booked against cash goes
       to the activity; movement booked without cash is a non-cash
       adjustment (depreciation into accumulated depreciation)
    3. NON_CASH accounts: the whole movement is a non-cash adjustment

    Income statement accounts enter only through net income.  Every
    non-cash line of every balanced entry is counted exactly once, so the
    net change equals ending minus beginning cash.  Beginning cash is
    measured the day before ``period_start``.

    Raises:
        ValueError: period_end precedes period_start.
    """
    if period_end < period_start:
        raise ValueError(f"Period end {period_end} precedes period start {period_start}")

    entries = tuple(entries)
    aggregator = BalanceAggregator(company_id, accounts, currency)
    prefixes = config.classification.cash_account_prefixes
    cash_ids = {
        a.id for a in aggregator.accounts.values() if is_cash_account(a, prefixes)
    }

    period = aggregator.period_entries(entries, period_start, period_end)
    through_cash = [e for e in period if any(ln.account_id in cash_ids for ln in e.lines)]
    without_cash = [e for e in period if not any(ln.account_id in cash_ids for ln in e.lines)]
    activity = aggregator.fold(period)
    settled = aggregator.fold(through_cash)
    accrued = aggregator.fold(without_cash)

    adjustments: list[ReportLineItem] = []
    working_capital: list[ReportLineItem] = []
    activities: dict[CashFlowCategory, list[ReportLineItem]] = {
        CashFlowCategory.INVESTING: [],
        CashFlowCategory.FINANCING: [],
    }
    for account in _by_number(aggregator.accounts.values()):
        if account.id in cash_ids or account.id not in activity:
            continue
        if not account.is_balance_sheet:
            continue
        category = cash_flow_category_for(account)
        if category == CashFlowCategory.OPERATING:
            moves = [(working_capital, activity)]
        elif category == CashFlowCategory.NON_CASH:
            moves = [(adjustments, activity)]
        else:
            moves = [(activities[category], settled), (adjustments, accrued)]
        for bucket, totals in moves:
            line = _cash_effect(account, totals)
            if line is not None:
                bucket.append(line)

    beginning_cash = _cash_balance(
        aggregator,
        aggregator.point_in_time(entries, period_start - timedelta(days=1)),
        cash_ids,
    )
    ending_cash = _cash_balance(
        aggregator, aggregator.point_in_time(entries, period_end), cash_ids,
    )

    return assemble_cash_flow_statement(
        metadata,
        net_income=compute_net_income(aggregator, activity),
        non_cash_adjustments=adjustments,
        working_capital_changes=working_capital,
        investing=activities[CashFlowCategory.INVESTING],
        financing=activities[CashFlowCategory.FINANCING],
        beginning_cash=beginning_cash,
        ending_cash=ending_cash,
        currency=currency,
    )


# =========================================================================
# 5. STATEMENT OF CHANGES IN EQUITY
# =========================================================================


def assemble_equity_statement(
    metadata: ReportMetadata,
    components: Sequence[EquityComponent],
    opening: Sequence[Money],
    movements: Mapping[EquityMovementType, Sequence[Money]],
    closing: Sequence[Money],
    net_income: Money,
    currency: Currency,
) -> EquityStatementReport:
    """
    Rows of the equity statement from per-column amounts.

    ``opening``, ``closing`` and every sequence in ``movements`` line up
    with ``components``.  Movement rows appear in presentation order; a
    movement type absent from ``movements`` has no row.
    """
    def _row(kind: EquityMovementType, amounts: Sequence[Money]) -> EquityMovementRow:
        amounts = tuple(amounts)
        return EquityMovementRow(
            movement_type=kind,
            label=EQUITY_MOVEMENT_LABELS[kind],
            amounts=amounts,
            total=sum_money(amounts, currency),
        )

    middle = [kind for kind in EquityMovementType if kind in movements]
    rows = (
        _row(EquityMovementType.OPENING_BALANCE, opening),
        *(_row(kind, movements[kind]) for kind in middle),
        _row(EquityMovementType.CLOSING_BALANCE, closing),
    )
    reconciles = all(
        opening[i] + sum_money((movements[kind][i] for kind in middle), currency) == closing[i]
        for i in range(len(components))
    )
    return EquityStatementReport(
        metadata=metadata,
        components=tuple(components),
        rows=rows,
        net_income=net_income,
        total_opening_equity=rows[0].total,
        total_closing_equity=rows[-1].total,
        reconciles=reconciles,
    )


def build_equity_statement(
    company_id: UUID,
    accounts: Iterable[Account],
    entries: Iterable[JournalEntry],
    period_start: date,
    period_end: date,
    currency: Currency,
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> EquityStatementReport:
    """
    Build a statement of changes in equity over [period_start, period_end].

    One column per equity account with an opening balance, a closing
    balance or period activity, plus a "Current Period Earnings" column
    for revenue minus expense not yet closed to retained earnings.  Period
    debits and credits of each account are routed to rows by category:

    - contributed capital: credits are issuances
    - treasury stock: debits are repurchases
    - retained earnings: debits are dividends
    - other comprehensive income: the net movement

    Whatever is left over lands in "Other Adjustments".  Closing equity
    equals the balance sheet's total equity at ``period_end``.

    Raises:
        ValueError: period_end precedes period_start.
    """
    if period_end < period_start:
        raise ValueError(f"Period end {period_end} precedes period start {period_start}")

    entries = tuple(entries)
    aggregator = BalanceAggregator(company_id, accounts, currency)
    before = aggregator.point_in_time(entries, period_start - timedelta(days=1))
    after = aggregator.point_in_time(entries, period_end)
    activity = aggregator.for_period(entries, period_start, period_end)
    zero = Money.zero(currency)

    components: list[EquityComponent] = []
    opening: list[Money] = []
    closing: list[Money] = []
    movements: dict[EquityMovementType, list[Money]] = {
        kind: [] for kind in SINGLE_ENTITY_EQUITY_MOVEMENTS
    }
    for account in _by_number(aggregator.accounts.values()):
        if account.account_type != AccountType.EQUITY:
            continue
        start = aggregator.balance_of(before, account.id)
        end = aggregator.balance_of(after, account.id)
        t = activity.get(account.id)
        if t is None and start.is_zero and end.is_zero:
            continue

        moved = {kind: zero for kind in movements}
        if t is not None:
            debit_row, credit_row = _EQUITY_ROWS_BY_CATEGORY[account.category]
            moved[debit_row] = moved[debit_row] - t.debit_total
            moved[credit_row] = moved[credit_row] + t.credit_total

        components.append(
            EquityComponent(
                description=account.name,
                account_id=account.id,
                account_number=account.account_number,
            )
        )
        opening.append(start)
        closing.append(end)
        for kind, amounts in movements.items():
            amounts.append(moved[kind])

    net_income = compute_net_income(aggregator, activity)
    components.append(EquityComponent(description=CURRENT_PERIOD_EARNINGS))
    opening.append(compute_net_income(aggregator, before))
    closing.append(compute_net_income(aggregator, after))
    for kind, amounts in movements.items():
        amounts.append(net_income if kind == EquityMovementType.NET_INCOME else zero)

    return assemble_equity_statement(
        metadata, components, opening, movements, closing, net_income, currency,
    )


# =========================================================================
# 6. RENDERER (dict/JSON output)
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Money -> {"amount": str, "currency": code}
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value (also as a mapping key)
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Money):
        return {"amount": str(obj.amount), "currency": obj.currency.code}
    if isinstance(obj, Currency):
        return obj.code
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, Mapping):
        return {
            (k.value if isinstance(k, Enum) else str(k)): render_to_dict(v)
            for k, v in obj.items()
        }
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
