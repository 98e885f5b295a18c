"""
Pocket Ledger - Source Package

A personal finance tracker for people living between two currencies.
Its core is a read-only analytics engine that turns an append-only log
of transactions into summaries, budgets and item-level price statistics.

DESIGN PRINCIPLES:
1. Transactions are immutable once recorded
2. Analytics are pure functions of a snapshot
3. External services (extraction, rates, storage) stay at the boundary
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Pocket Ledger Team"
