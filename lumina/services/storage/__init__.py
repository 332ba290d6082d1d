"""
Storage Services Package

Provides the abstract tabular-store contract and its implementations.
Google Sheets is the production backend; the in-memory store stands in
for it in tests, and the local JSON store is the signed-out fallback.
"""

from lumina.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    SpreadsheetSourceInterface,
    StorageError,
    TabularStoreInterface,
)
from lumina.services.storage.local import LocalJsonStore
from lumina.services.storage.memory import (
    InMemorySpreadsheetSource,
    InMemoryTabularStore,
)
from lumina.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsSource,
    GoogleSheetsTabularStore,
)

__all__ = [
    # Interfaces
    "SpreadsheetSourceInterface",
    "TabularStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsSource",
    "GoogleSheetsTabularStore",
    "InMemorySpreadsheetSource",
    "InMemoryTabularStore",
    "LocalJsonStore",
]
