"""
Ledger Stores

In-memory authoritative collections with optimistic persistence to the
tabular store. See lumina.stores.base for the shared protocol.
"""

from lumina.stores.base import LedgerStore, StoreState
from lumina.stores.banks import BankStore
from lumina.stores.categories import CategoryStore
from lumina.stores.expenses import ExpenseStore
from lumina.stores.loans import LoanStore
from lumina.stores.preferences import PreferencesStore

__all__ = [
    "BankStore",
    "CategoryStore",
    "ExpenseStore",
    "LedgerStore",
    "LoanStore",
    "PreferencesStore",
    "StoreState",
]
