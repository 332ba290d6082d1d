"""Audit logging package."""

from lumina.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
