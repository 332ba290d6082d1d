"""
Ledger Exceptions

Only genuinely exceptional situations raise. Expected outcomes such as
"this category is still in use" or "the spreadsheet rejected the write"
come back as result objects (see lumina.models.results).
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class LedgerValidationError(LedgerError, ValueError):
    """
    Input rejected before any state change.

    Subclasses ValueError so callers that already guard against bad
    values keep working.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class StoreNotReadyError(LedgerError):
    """A mutation was attempted before the store finished loading."""
    pass


class CategoryNotFoundError(LedgerError):
    """No category record with the requested id."""

    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__(f"Category not found: {category_id}")
