"""
Ledgerbook

A single-user ledger manager: named accounts with integer-cent balances,
an append-only transaction history, and flat-file persistence.
"""

__version__ = "1.0.0"
