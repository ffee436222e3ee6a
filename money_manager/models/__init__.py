"""
Data Models Package

This package contains all Pydantic models used by the ledger.
All data flowing through the system must conform to these schemas.
"""

from money_manager.models.transaction import (
    AccountBalance,
    CategoryTotal,
    Division,
    Granularity,
    PeriodBucket,
    PeriodTotal,
    Transaction,
    TransactionDraft,
    TransactionFilter,
    TransactionType,
    TransactionUpdate,
    ValidationIssue,
    ValidationResult,
)
from money_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "AccountBalance",
    "CategoryTotal",
    "Division",
    "Granularity",
    "PeriodBucket",
    "PeriodTotal",
    "Transaction",
    "TransactionDraft",
    "TransactionFilter",
    "TransactionType",
    "TransactionUpdate",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
