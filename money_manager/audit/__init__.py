"""Audit logging package."""

from money_manager.audit.logger import (
    AuditLogger,
    configure_log_level,
    create_correlation_id,
)

__all__ = ["AuditLogger", "configure_log_level", "create_correlation_id"]
