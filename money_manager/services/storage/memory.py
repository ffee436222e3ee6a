"""
In-Memory Storage Implementation

Keeps the ledger in a process-local dict. Used by tests and as the
default backend when no spreadsheet is configured.

Records are handed out as copies, so a caller mutating a returned
Transaction never changes what other readers see.
"""

import asyncio
from typing import Optional
from uuid import UUID, uuid4

from money_manager.models.audit import AuditEvent
from money_manager.models.transaction import Transaction, TransactionDraft
from money_manager.policy.clock import Clock, SystemClock
from money_manager.services.storage.interface import (
    AuditStorageInterface,
    LedgerStoreInterface,
    NotFoundError,
    ReplacePrecondition,
    TransactionPredicate,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Dict-backed ledger store.

    Writes are serialized by a single asyncio.Lock; dict insertion order
    gives scan its insertion ordering.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or SystemClock()
        self._records: dict[UUID, Transaction] = {}
        self._lock = asyncio.Lock()

    async def append(self, draft: TransactionDraft) -> Transaction:
        now = self._clock.now()
        record = Transaction(
            **draft.model_dump(),
            id=uuid4(),
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._records[record.id] = record
        return record.model_copy()

    async def get(self, transaction_id: UUID) -> Transaction:
        record = self._records.get(transaction_id)
        if record is None:
            raise NotFoundError(transaction_id)
        return record.model_copy()

    async def scan(
        self,
        predicate: Optional[TransactionPredicate] = None,
    ) -> list[Transaction]:
        records = list(self._records.values())
        if predicate is not None:
            records = [r for r in records if predicate(r)]
        return [r.model_copy() for r in records]

    async def replace(
        self,
        transaction_id: UUID,
        fields: TransactionDraft,
        precondition: Optional[ReplacePrecondition] = None,
    ) -> Transaction:
        async with self._lock:
            current = self._records.get(transaction_id)
            if current is None:
                raise NotFoundError(transaction_id)
            if precondition is not None:
                precondition(current.model_copy())

            replaced = Transaction(
                **fields.model_dump(),
                id=current.id,
                created_at=current.created_at,
                updated_at=self._clock.now(),
            )
            self._records[transaction_id] = replaced
        return replaced.model_copy()

    def __len__(self) -> int:
        return len(self._records)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
