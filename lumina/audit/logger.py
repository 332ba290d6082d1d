"""
Audit Logger

DESIGN DECISION: Every load, mutation and rollback is logged.
This provides:
1. Traceability of what the spreadsheet was asked to do
2. Debugging capability when a write is rolled back
3. The user-visible notice feed for failures

The audit logger:
- Is synchronous, so it can run inside optimistic apply and rollback
- Never raises into the mutation path it is called from
- Publishes user-visible events as notices through a Signal
"""

import logging
from typing import Optional

import structlog

from lumina.models.audit import AuditEvent, AuditSeverity, Notice
from lumina.reactive import Signal


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `log_level`."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The notice feed, when the event is meant for the user
    """

    def __init__(self, max_notices: int = 50):
        """
        Initialize audit logger.

        Args:
            max_notices: Oldest notices are dropped beyond this many.
        """
        self._logger = structlog.get_logger("lumina.audit")
        self._max_notices = max_notices
        self.notices: Signal[list[Notice]] = Signal([])

    def log(self, event: AuditEvent) -> None:
        """
        Log an audit event.

        Always logs locally. User-visible events are also published as
        notices.
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if event.is_user_visible:
            self.notify(event)

    def notify(self, event: AuditEvent) -> Notice:
        """Publish a notice for an event."""
        notice = Notice(
            event_id=event.event_id,
            severity=event.severity,
            message=event.description,
        )
        notices = [*self.notices.value, notice][-self._max_notices:]
        self.notices.set(notices)
        return notice

    @property
    def latest_notice(self) -> Optional[Notice]:
        notices = self.notices.value
        return notices[-1] if notices else None

    def dismiss_notices(self) -> None:
        """Clear the notice feed (e.g. after the user has read them)."""
        if self.notices.value:
            self.notices.set([])
