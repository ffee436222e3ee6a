"""
Storage Services Package

Provides the abstract ledger store contract and its implementations:
an in-memory store and a Google Sheets backend.
"""

from money_manager.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    NotFoundError,
    StoreError,
)
from money_manager.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
)
from money_manager.services.storage.google_sheets import (
    AUDIT_COLUMNS,
    TRANSACTION_COLUMNS,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StoreError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    # Google Sheets implementation
    "AUDIT_COLUMNS",
    "TRANSACTION_COLUMNS",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
]
