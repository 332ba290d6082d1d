"""Services package."""

from lumina.services.auth import (
    AuthSession,
    AuthUser,
    GoogleServiceAccountSession,
)
from lumina.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsSource,
    GoogleSheetsTabularStore,
    InMemorySpreadsheetSource,
    InMemoryTabularStore,
    LocalJsonStore,
    NotFoundError,
    SpreadsheetSourceInterface,
    StorageError,
    TabularStoreInterface,
)

__all__ = [
    # Auth
    "AuthSession",
    "AuthUser",
    "GoogleServiceAccountSession",
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsSource",
    "GoogleSheetsTabularStore",
    "InMemorySpreadsheetSource",
    "InMemoryTabularStore",
    "LocalJsonStore",
    "NotFoundError",
    "SpreadsheetSourceInterface",
    "StorageError",
    "TabularStoreInterface",
]
