"""
Result Models

Expected failures travel back to the caller as values:
- a spreadsheet write that failed and was rolled back
- a category delete blocked by usage or children
- an import that found nothing to do

Callers branch on `success` instead of catching exceptions.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class MutationResult(BaseModel):
    """
    Outcome of one optimistic mutation.

    On failure the store has already restored `snapshot` (the collection
    as it was before the mutation); it is returned for callers that
    keep their own copies.
    """

    success: bool
    operation: str = Field(..., description="e.g. 'add', 'update', 'delete'")
    entity_type: str
    entity_id: Optional[str] = None
    error_message: Optional[str] = None
    entity: Optional[Any] = Field(
        default=None,
        description="The entity as applied (None for deletes)"
    )
    snapshot: list[Any] = Field(default_factory=list)

    @classmethod
    def ok(
        cls,
        operation: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        entity: Optional[Any] = None,
    ) -> "MutationResult":
        return cls(
            success=True,
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            entity=entity,
        )

    @classmethod
    def failed(
        cls,
        operation: str,
        entity_type: str,
        error_message: str,
        snapshot: list,
        entity_id: Optional[str] = None,
    ) -> "MutationResult":
        return cls(
            success=False,
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            error_message=error_message,
            snapshot=list(snapshot),
        )


class CategoryDeleteReason(str, Enum):
    """Why a category delete did not happen."""
    IN_USE = "in_use"
    HAS_CHILDREN = "has_children"
    NOT_FOUND = "not_found"
    PERSISTENCE_FAILED = "persistence_failed"


class CategoryDeleteResult(BaseModel):
    """Outcome of a category delete."""

    success: bool
    category_id: str
    reason: Optional[CategoryDeleteReason] = None
    message: str = ""


class CategoryRenameResult(BaseModel):
    """
    Outcome of a rename and its cascade over expenses.

    Cascade updates are independent: some may fail while others stick.
    """

    success: bool
    category_id: str
    old_name: str
    new_name: str
    cascaded: int = 0
    cascade_failures: int = 0
    error_message: Optional[str] = None


class CategoryImportResult(BaseModel):
    """Outcome of creating categories from expense category names."""

    created: int = 0
    names: list[str] = Field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def nothing_to_import(self) -> bool:
        """True when every expense category already existed."""
        return self.created == 0 and self.error_message is None

    @property
    def failed(self) -> bool:
        return self.error_message is not None


class ImportSummary(BaseModel):
    """Aggregate counts for a spreadsheet import run."""

    imported: int = 0
    errors: int = 0
    skipped_duplicates: int = 0
    skipped_invalid: int = 0
    skipped_bad_dates: int = Field(
        default=0,
        description="Rows with a filled date cell that could not be read"
    )
    log: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return self.errors > 0
