"""
Audit Models for Lumina Ledger

Every store load, mutation, rollback and import step produces an audit
event. Events are written to the structured log; the ones a person
needs to act on (a rolled-back save, a blocked delete) are also flagged
as user-visible and end up in the notice feed.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from lumina.models.rows import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_LOADED = "store_loaded"
    STORE_LOAD_FAILED = "store_load_failed"

    # Mutations
    ENTITY_ADDED = "entity_added"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"
    PERSISTENCE_FAILED = "persistence_failed"
    MUTATION_ROLLED_BACK = "mutation_rolled_back"

    # Categories
    CATEGORY_DELETE_BLOCKED = "category_delete_blocked"
    CATEGORY_RENAME_CASCADED = "category_rename_cascaded"
    CATEGORIES_IMPORTED = "categories_imported"

    # Spreadsheet import
    IMPORT_STARTED = "import_started"
    IMPORT_TAB_IMPORTED = "import_tab_imported"
    IMPORT_TAB_FAILED = "import_tab_failed"
    IMPORT_SPREADSHEET_FAILED = "import_spreadsheet_failed"
    IMPORT_COMPLETED = "import_completed"

    # Session
    AUTH_SIGNED_IN = "auth_signed_in"
    AUTH_SIGNED_OUT = "auth_signed_out"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="e.g. 'expense', 'bank', 'bank_transaction', 'category'"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_visible: bool = Field(
        default=False,
        description="Should the user be shown a notice for this event?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_visible": self.is_user_visible,
        }


class Notice(BaseModel):
    """A message meant for the person using the app."""

    event_id: UUID
    severity: AuditSeverity
    message: str
    timestamp: datetime = Field(default_factory=utc_now)


_MUTATION_EVENT_TYPES = {
    "add": AuditEventType.ENTITY_ADDED,
    "update": AuditEventType.ENTITY_UPDATED,
    "delete": AuditEventType.ENTITY_DELETED,
}

_OPERATION_VERBS = {
    "add": "save",
    "update": "update",
    "delete": "delete",
}


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.mutation_applied("add", "expense", "42")
        event = AuditEventBuilder.persistence_failed("add", "expense", "42", str(e))
    """

    @staticmethod
    def store_loaded(store: str, count: int, source: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            entity_type=store,
            description=f"Loaded {count} {store} records from {source}",
            details={"count": count, "source": source},
        )

    @staticmethod
    def store_load_failed(store: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=store,
            description=f"Failed to load {store} data. Please check your connection.",
            error_message=error_message,
            is_user_visible=True,
        )

    @staticmethod
    def mutation_applied(
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=_MUTATION_EVENT_TYPES.get(operation, AuditEventType.ENTITY_UPDATED),
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type} {operation}: {entity_id}",
            details={"operation": operation, **(details or {})},
        )

    @staticmethod
    def persistence_failed(
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        error_message: str,
    ) -> AuditEvent:
        verb = _OPERATION_VERBS.get(operation, operation)
        label = entity_type.replace("_", " ")
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Failed to {verb} {label} in Google Sheets. Your change was undone.",
            details={"operation": operation},
            error_message=error_message,
            is_user_visible=True,
        )

    @staticmethod
    def mutation_rolled_back(
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        restored_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_ROLLED_BACK,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Rolled back {operation} of {entity_type} {entity_id}",
            details={"operation": operation, "restored_count": restored_count},
        )

    @staticmethod
    def category_delete_blocked(
        category_id: str,
        name: str,
        reason: str,
        message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETE_BLOCKED,
            severity=AuditSeverity.WARNING,
            entity_type="category",
            entity_id=category_id,
            description=message,
            details={"name": name, "reason": reason},
            is_user_visible=True,
        )

    @staticmethod
    def category_rename_cascaded(
        category_id: str,
        old_name: str,
        new_name: str,
        updated: int,
        failed: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_RENAME_CASCADED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            entity_type="category",
            entity_id=category_id,
            description=(
                f"Renamed '{old_name}' to '{new_name}' on {updated} expenses"
                + (f" ({failed} failed)" if failed else "")
            ),
            details={
                "old_name": old_name,
                "new_name": new_name,
                "updated": updated,
                "failed": failed,
            },
            is_user_visible=failed > 0,
        )

    @staticmethod
    def categories_imported(names: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_IMPORTED,
            entity_type="category",
            description=f"Created {len(names)} categories from expenses",
            details={"names": names},
        )

    @staticmethod
    def import_started(spreadsheet_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_STARTED,
            entity_type="import",
            description=f"Import started for {spreadsheet_count} spreadsheets",
            details={"spreadsheet_count": spreadsheet_count},
        )

    @staticmethod
    def import_tab_imported(spreadsheet_id: str, tab: str, rows: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_TAB_IMPORTED,
            entity_type="import",
            entity_id=spreadsheet_id,
            description=f"Imported {rows} rows from tab {tab}",
            details={"tab": tab, "rows": rows},
        )

    @staticmethod
    def import_tab_failed(spreadsheet_id: str, tab: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_TAB_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="import",
            entity_id=spreadsheet_id,
            description=f"Error reading tab {tab}",
            details={"tab": tab},
            error_message=error_message,
        )

    @staticmethod
    def import_spreadsheet_failed(spreadsheet_id: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_SPREADSHEET_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="import",
            entity_id=spreadsheet_id,
            description="Error processing spreadsheet. Check ID and permissions.",
            error_message=error_message,
        )

    @staticmethod
    def import_completed(imported: int, errors: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            severity=AuditSeverity.WARNING if errors else AuditSeverity.INFO,
            entity_type="import",
            description=f"Import complete: {imported} imported, {errors} errors",
            details={"imported": imported, "errors": errors},
        )

    @staticmethod
    def signed_in(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_SIGNED_IN,
            entity_type="session",
            description=f"Signed in as {email}",
            details={"email": email},
        )

    @staticmethod
    def signed_out() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_SIGNED_OUT,
            entity_type="session",
            description="Signed out; expenses fall back to local storage",
        )
