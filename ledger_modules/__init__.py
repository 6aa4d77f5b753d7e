"""
Ledger Modules.

Thin orchestration layers over the ledger kernel and the calculation
engines:

- Reporting: trial balance, balance sheet, income statement, cash flow,
  changes in equity
- Consolidation: the seven-step group consolidation pipeline, its run
  store and the group statements built from a run

Records reach the modules through a ``LedgerProvider``; the modules never
talk to a database themselves, except the optional SQLAlchemy run store.
"""

from ledger_modules.providers import InMemoryLedgerProvider, LedgerProvider

__all__ = [
    "InMemoryLedgerProvider",
    "LedgerProvider",
]
