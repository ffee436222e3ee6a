"""
Audit Logger

DESIGN DECISION: Every write to the ledger, and every rejected write,
is logged. This provides:
1. Complete traceability of changes to records that are replaced in place
2. Debugging capability for rejected requests
3. A history the user can review

The audit logger:
- Always writes a structured local log line
- Persists to audit storage when one is configured
- Does not fail a ledger operation when the audit store is unavailable;
  that failure is itself logged as audit_storage_failed
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from money_manager.models.audit import AuditEvent, AuditEventBuilder
from money_manager.services.storage import AuditStorageInterface, StoreError


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


def configure_log_level(level: str) -> None:
    """Route stdlib logging (which structlog renders through) at level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except StoreError as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(
        self,
        transaction_id: UUID,
        tx_type: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new ledger record."""
        event = AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            tx_type=tx_type,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        transaction_id: UUID,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an in-place replacement."""
        event = AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        issues: list[dict],
        transaction_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected candidate."""
        event = AuditEventBuilder.validation_failed(
            issues=issues,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_edit_window_expired(
        self,
        transaction_id: UUID,
        elapsed_hours: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.edit_window_expired(
            transaction_id=transaction_id,
            elapsed_hours=elapsed_hours,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_not_found(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_not_found(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_summary(
        self,
        summary: str,
        record_count: int,
        filtered: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.summary_computed(
            summary=summary,
            record_count=record_count,
            filtered=filtered,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_store_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger store failure."""
        event = AuditEventBuilder.store_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a client request and pass it through
    all subsequent operations.
    """
    return uuid4()
