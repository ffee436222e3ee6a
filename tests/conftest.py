"""Shared fixtures for the ledger tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import pytest

from money_manager.audit import AuditLogger
from money_manager.ledger import LedgerService
from money_manager.models.transaction import (
    Division,
    Transaction,
    TransactionType,
    parse_timestamp,
)
from money_manager.policy import Clock, EditWindowPolicy
from money_manager.services.storage import InMemoryAuditStorage, InMemoryLedgerStore


T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class MutableClock(Clock):
    """Clock that only moves when a test moves it."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


def build_transaction(
    tx_type: TransactionType = TransactionType.EXPENSE,
    amount: str = "100",
    category: str = "Food",
    division: Division = Division.PERSONAL,
    date: str = "2024-01-05T12:00:00+00:00",
    from_account: Optional[str] = None,
    to_account: Optional[str] = None,
    description: str = "Test transaction",
    created_at: datetime = T0,
) -> Transaction:
    return Transaction(
        id=uuid4(),
        created_at=created_at,
        updated_at=created_at,
        type=tx_type,
        amount=Decimal(amount),
        description=description,
        category=category,
        division=division,
        date=parse_timestamp(date),
        from_account=from_account,
        to_account=to_account,
    )


@pytest.fixture
def make_tx():
    return build_transaction


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def store(clock) -> InMemoryLedgerStore:
    return InMemoryLedgerStore(clock=clock)


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def service(store, clock, audit_storage) -> LedgerService:
    return LedgerService(
        store=store,
        edit_policy=EditWindowPolicy(clock=clock),
        audit_logger=AuditLogger(audit_storage),
    )


@pytest.fixture
def candidate() -> dict:
    """A valid transaction as a client would send it."""
    return {
        "type": "expense",
        "amount": 120.5,
        "description": "Weekly groceries",
        "category": "Food",
        "division": "Personal",
        "date": "2024-02-28T18:30:00Z",
        "fromAccount": "Bank",
    }
