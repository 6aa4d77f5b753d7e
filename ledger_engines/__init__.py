"""
Module: ledger_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by
    the reporting and consolidation modules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel (domain, exceptions, logging).
    MUST NOT import ledger_modules.

Invariants enforced:
    - Purity: engines never read the clock; dates are parameters.
    - Decimal-only arithmetic through Money; no rounding.
    - Determinism: identical inputs always produce identical outputs.
"""

from ledger_engines.aggregation import (
    BalanceAggregator,
    LedgerTotals,
    accumulate_ledger,
    aggregate_balances,
    natural_balance,
    visible_entries,
)
from ledger_engines.classifier import (
    ReportPlacement,
    SectionKey,
    Statement,
    cash_flow_category_for,
    default_cash_flow_category,
    has_cash_prefix,
    is_cash_account,
    section_for,
    sign_multiplier,
)
from ledger_engines.elimination import (
    EliminationEntry,
    EliminationLine,
    build_elimination_entries,
    elimination_effects,
)
from ledger_engines.group_aggregation import (
    ChartOfAccountsMapping,
    GroupAccount,
    GroupBalances,
    MemberContribution,
    aggregate_group,
    find_mapping_conflicts,
)
from ledger_engines.ic_matching import (
    IntercompanyItem,
    IntercompanyMatch,
    IntercompanyMatchResult,
    MatchingTolerance,
    MatchStatus,
    collect_intercompany_items,
    match_intercompany,
)
from ledger_engines.nci import NciAdjustment, compute_nci, nci_effects
from ledger_engines.translation import (
    AccountBalance,
    ExchangeRateTable,
    RateQuote,
    RateType,
    TranslationRates,
    TranslationResult,
    resolve_translation_rates,
    translate,
)

__all__ = [
    "AccountBalance",
    "BalanceAggregator",
    "ChartOfAccountsMapping",
    "EliminationEntry",
    "EliminationLine",
    "ExchangeRateTable",
    "GroupAccount",
    "GroupBalances",
    "IntercompanyItem",
    "IntercompanyMatch",
    "IntercompanyMatchResult",
    "LedgerTotals",
    "MatchStatus",
    "MatchingTolerance",
    "MemberContribution",
    "NciAdjustment",
    "RateQuote",
    "RateType",
    "ReportPlacement",
    "SectionKey",
    "Statement",
    "TranslationRates",
    "TranslationResult",
    "accumulate_ledger",
    "aggregate_balances",
    "aggregate_group",
    "build_elimination_entries",
    "cash_flow_category_for",
    "collect_intercompany_items",
    "compute_nci",
    "default_cash_flow_category",
    "elimination_effects",
    "find_mapping_conflicts",
    "has_cash_prefix",
    "is_cash_account",
    "match_intercompany",
    "natural_balance",
    "nci_effects",
    "resolve_translation_rates",
    "section_for",
    "sign_multiplier",
    "translate",
    "visible_entries",
]
