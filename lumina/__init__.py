"""
Lumina Ledger - Source Package

The state and reconciliation core of a personal finance tracker
(expenses, bank accounts, peer loans) that uses a Google Sheets
spreadsheet as its database.

DESIGN PRINCIPLES:
1. Local state changes first, the spreadsheet confirms later
2. A failed write puts local state back exactly as it was
3. Derived views are pure recomputations, never sources of truth
4. Referential rules return answers, they don't raise
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Lumina Ledger Team"
