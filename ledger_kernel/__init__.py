"""
Ledger Kernel - reporting and consolidation core

Pure, replayable computations over a snapshot of posted journal entries:
- Exact decimal money with currency checks
- Immutable chart-of-accounts, journal and group records
- Typed exceptions and structured logging shared by engines and modules
"""

__version__ = "0.1.0"
