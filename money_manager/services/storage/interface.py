"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the ledger store.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the aggregation engine decoupled from persistence

The interface is intentionally small: append, get, scan and replace.
There is no per-record delete; the ledger is append-mostly.

CONTRACT:
- append and replace are atomic; readers never see a half-written record
- replace calls on the same id serialize, and the precondition passed to
  replace is evaluated against the current record under that serialization
- scan returns records in insertion order
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional
from uuid import UUID

from money_manager.models.audit import AuditEvent
from money_manager.models.transaction import Transaction, TransactionDraft


TransactionPredicate = Callable[[Transaction], bool]
ReplacePrecondition = Callable[[Transaction], None]


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def append(self, draft: TransactionDraft) -> Transaction:
        """
        Store a new transaction.

        The store assigns id, created_at and updated_at.

        Args:
            draft: The validated transaction to store

        Returns:
            The stored transaction

        Raises:
            StoreError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, transaction_id: UUID) -> Transaction:
        """
        Retrieve a transaction by its ID.

        Raises:
            NotFoundError: If no such transaction exists
            StoreError: If the read fails
        """
        pass

    @abstractmethod
    async def scan(
        self,
        predicate: Optional[TransactionPredicate] = None,
    ) -> list[Transaction]:
        """
        Read every transaction matching predicate, in insertion order.

        Args:
            predicate: Filter to apply; None returns the whole ledger

        Raises:
            StoreError: If the read fails
        """
        pass

    @abstractmethod
    async def replace(
        self,
        transaction_id: UUID,
        fields: TransactionDraft,
        precondition: Optional[ReplacePrecondition] = None,
    ) -> Transaction:
        """
        Overwrite the content fields of an existing transaction.

        id and created_at are preserved; updated_at is refreshed.

        Args:
            transaction_id: Record to replace
            fields: The full, validated set of content fields
            precondition: Called with the current record while the write
                is serialized; if it raises, nothing is written and the
                exception propagates

        Raises:
            NotFoundError: If no such transaction exists
            StoreError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StoreError(Exception):
    """Base exception for ledger store operations."""
    pass


class NotFoundError(StoreError):
    """Transaction not found in storage."""

    def __init__(self, transaction_id: UUID):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


class ConnectionError(StoreError):
    """Could not connect to storage backend."""
    pass
