"""Transaction validation package."""

from money_manager.validation.validator import (
    TRANSACTION_CONSTRAINTS,
    FieldConstraint,
    TransactionValidator,
    ValidationError,
)

__all__ = [
    "FieldConstraint",
    "TRANSACTION_CONSTRAINTS",
    "TransactionValidator",
    "ValidationError",
]
