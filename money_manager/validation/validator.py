"""
Transaction Validation

DESIGN DECISION: Validation is an explicit, declarative list of field
constraints evaluated in order, not schema errors thrown from deep inside
the store. Every constraint is checked, so the caller receives all issues
at once.

The validator is a pure function of its input: it never touches storage
and never fills in values the client did not send.

A candidate may use Python field names (from_account) or the camelCase
wire names (fromAccount).
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from money_manager.models.transaction import (
    Division,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    lookup_member,
    parse_amount,
    parse_timestamp,
)


class ValidationError(Exception):
    """A candidate transaction was rejected."""

    def __init__(self, field: str, message: str, issues: Optional[list[ValidationIssue]] = None):
        self.field = field
        self.message = message
        self.issues = issues or []
        super().__init__(f"{field}: {message}")

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationError":
        first = result.first_error
        return cls(
            field=first.field if first else "transaction",
            message=first.message if first else "invalid transaction",
            issues=result.issues,
        )


class ConstraintViolation(ValueError):
    """Raised by a field parser; carries the issue type to report."""

    def __init__(self, issue_type: str, message: str):
        self.issue_type = issue_type
        super().__init__(message)


# =============================================================================
# FIELD PARSERS
# =============================================================================

def _enum_member(enum_cls: type[Enum]) -> Callable[[Any], Enum]:
    def parse(value: Any) -> Enum:
        if not isinstance(value, (str, enum_cls)):
            raise ConstraintViolation("invalid_type", f"Expected text, got {type(value).__name__}")
        try:
            return lookup_member(enum_cls, value)
        except ValueError as e:
            raise ConstraintViolation("not_allowed", str(e))

    return parse


def _positive_amount(value: Any) -> Decimal:
    try:
        amount = parse_amount(value)
    except ValueError as e:
        raise ConstraintViolation("invalid_type", str(e))
    if amount <= 0:
        raise ConstraintViolation("invalid_value", "Amount must be greater than zero")
    return amount


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise ConstraintViolation("invalid_type", f"Expected text, got {type(value).__name__}")
    return value.strip()


def _timestamp(value: Any):
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ConstraintViolation("invalid_format", str(e))


@dataclass(frozen=True)
class FieldConstraint:
    """
    One declarative rule: where the value lives, whether it must be
    present, and how to parse it.
    """
    field: str
    wire_name: str
    required: bool
    parse: Callable[[Any], Any]

    def lookup(self, candidate: Mapping[str, Any]) -> Any:
        if self.field in candidate:
            return candidate[self.field]
        return candidate.get(self.wire_name)


TRANSACTION_CONSTRAINTS: tuple[FieldConstraint, ...] = (
    FieldConstraint("type", "type", True, _enum_member(TransactionType)),
    FieldConstraint("amount", "amount", True, _positive_amount),
    FieldConstraint("description", "description", True, _text),
    FieldConstraint("category", "category", True, _text),
    FieldConstraint("division", "division", True, _enum_member(Division)),
    FieldConstraint("date", "date", True, _timestamp),
    # Accounts are optional for every type, transfers included
    FieldConstraint("from_account", "fromAccount", False, _text),
    FieldConstraint("to_account", "toAccount", False, _text),
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class TransactionValidator:
    """
    Validates candidate transactions against TRANSACTION_CONSTRAINTS.
    """

    def __init__(self, constraints: tuple[FieldConstraint, ...] = TRANSACTION_CONSTRAINTS):
        self._constraints = constraints

    def validate(self, candidate: Mapping[str, Any]) -> ValidationResult:
        """
        Check a candidate and return a typed result.

        Args:
            candidate: Raw field values (no id/created_at)

        Returns:
            ValidationResult with the draft when valid, the issues otherwise
        """
        issues: list[ValidationIssue] = []
        values: dict[str, Any] = {}

        for constraint in self._constraints:
            raw = constraint.lookup(candidate)

            if _is_blank(raw):
                if constraint.required:
                    issues.append(ValidationIssue(
                        field=constraint.field,
                        issue_type="missing",
                        message=f"{constraint.wire_name} is required",
                    ))
                else:
                    values[constraint.field] = None
                continue

            try:
                values[constraint.field] = constraint.parse(raw)
            except ConstraintViolation as e:
                issues.append(ValidationIssue(
                    field=constraint.field,
                    issue_type=e.issue_type,
                    message=str(e),
                ))

        if issues:
            return ValidationResult(is_valid=False, issues=issues)

        try:
            draft = TransactionDraft.model_validate(values)
        except PydanticValidationError as e:
            for error in e.errors():
                issues.append(ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "transaction",
                    issue_type="invalid_value",
                    message=error["msg"],
                ))
            return ValidationResult(is_valid=False, issues=issues)

        return ValidationResult(is_valid=True, draft=draft)

    def validate_or_raise(self, candidate: Mapping[str, Any]) -> TransactionDraft:
        """
        Validate and return the draft.

        Raises:
            ValidationError: Naming the first offending field
        """
        result = self.validate(candidate)
        if not result.is_valid:
            raise ValidationError.from_result(result)
        return result.draft

    def validate_update(
        self,
        current: Transaction,
        changes: Mapping[str, Any],
    ) -> ValidationResult:
        """
        Validate the record that results from applying changes to current.

        The merged record is checked in full, so a partial update can
        never leave a stored record invalid.
        """
        merged = current.content_fields()
        for constraint in self._constraints:
            if constraint.field in changes:
                merged[constraint.field] = changes[constraint.field]
            elif constraint.wire_name in changes:
                merged[constraint.field] = changes[constraint.wire_name]
        return self.validate(merged)
