"""
Tests for the Money Manager models

Test strategy:
1. Unit tests for individual components (models, validator, aggregators)
2. Service tests against the in-memory store
3. No real API calls in tests (Google Sheets is faked)
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from money_manager.models.transaction import (
    Division,
    Granularity,
    PeriodBucket,
    PeriodTotal,
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


def _draft(**overrides) -> TransactionDraft:
    data = {
        "type": TransactionType.INCOME,
        "amount": Decimal("50000"),
        "description": "Salary",
        "category": "Salary",
        "division": Division.OFFICE,
        "date": "2024-02-01T00:00:00Z",
        "to_account": "Bank",
    }
    data.update(overrides)
    return TransactionDraft(**data)


class TestTransactionModels:
    """Tests for transaction Pydantic models."""

    def test_draft_creation(self):
        """Test TransactionDraft creation."""
        draft = _draft()
        assert draft.type == TransactionType.INCOME
        assert draft.amount == Decimal("50000")
        assert draft.to_account == "Bank"
        assert draft.from_account is None

    def test_draft_strips_whitespace(self):
        """Test that whitespace is stripped from text fields."""
        draft = _draft(description="  Salary  ", category=" Salary ")
        assert draft.description == "Salary"
        assert draft.category == "Salary"

    def test_draft_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            _draft(amount=Decimal("0"))
        with pytest.raises(ValueError):
            _draft(amount=Decimal("-10"))

    def test_blank_account_is_absent(self):
        """Test that an empty account name is treated as no account."""
        draft = _draft(to_account="   ")
        assert draft.to_account is None

    def test_naive_date_is_utc(self):
        """Test that naive timestamps are taken as UTC."""
        draft = _draft(date=datetime(2024, 1, 5, 10, 30))
        assert draft.date == datetime(2024, 1, 5, 10, 30, tzinfo=timezone.utc)

    def test_offset_date_is_normalized(self):
        """Test that offset timestamps are converted to UTC."""
        draft = _draft(date="2024-01-31T23:30:00-05:00")
        assert draft.date == datetime(2024, 2, 1, 4, 30, tzinfo=timezone.utc)

    def test_camel_case_input_and_wire_output(self):
        """Test that wire names are accepted and produced."""
        draft = TransactionDraft.model_validate({
            "type": "transfer",
            "amount": "10000",
            "description": "Transfer to savings",
            "category": "Transfer",
            "division": "Personal",
            "date": "2024-02-01",
            "fromAccount": "Bank",
            "toAccount": "Savings",
        })
        wire = draft.to_wire()
        assert wire["fromAccount"] == "Bank"
        assert wire["toAccount"] == "Savings"
        assert wire["amount"] == 10000.0
        assert wire["type"] == "transfer"
        assert wire["date"].startswith("2024-02-01T00:00:00")

    def test_update_keeps_only_sent_fields(self):
        """Test that a partial update reports only the fields sent."""
        update = TransactionUpdate.model_validate({
            "amount": 75,
            "toAccount": "Savings",
            "createdAt": "2030-01-01T00:00:00Z",
            "id": str(uuid4()),
        })
        assert update.changes() == {"amount": 75, "to_account": "Savings"}


class TestQueryModels:
    """Tests for filter criteria and granularity."""

    def test_granularity_defaults_to_month(self):
        assert Granularity.parse(None) == Granularity.MONTH
        assert Granularity.parse("") == Granularity.MONTH

    def test_granularity_parse(self):
        assert Granularity.parse("Week") == Granularity.WEEK
        assert Granularity.parse(Granularity.YEAR) == Granularity.YEAR
        with pytest.raises(ValueError):
            Granularity.parse("decade")

    def test_filter_accepts_wire_and_legacy_names(self):
        """Test dateFrom/dateTo and startDate/endDate are both understood."""
        wire = TransactionFilter.model_validate({"dateFrom": "2024-01-01", "dateTo": "2024-01-31"})
        legacy = TransactionFilter.model_validate({"startDate": "2024-01-01", "endDate": "2024-01-31"})
        assert wire.date_from == legacy.date_from == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert wire.date_to == legacy.date_to == datetime(2024, 1, 31, tzinfo=timezone.utc)

    def test_filter_blank_values_are_unset(self):
        criteria = TransactionFilter.model_validate({"division": "", "category": ""})
        assert criteria.is_empty

    def test_period_bucket_missing_type_is_zero(self):
        bucket = PeriodBucket(
            period="2024-02",
            totals=[PeriodTotal(type=TransactionType.EXPENSE, total_amount=Decimal("50"))],
        )
        assert bucket.total_for(TransactionType.EXPENSE) == Decimal("50")
        assert bucket.total_for(TransactionType.INCOME) == Decimal("0")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Test transaction recorded",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            description="Transaction updated",
            details={"changed_fields": ["amount"]},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_updated"
        assert log_dict["details"]["changed_fields"] == ["amount"]

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEventBuilder.validation_failed(
            issues=[{"field": "amount", "message": "Amount must be greater than zero"}],
        )
        row = event.to_sheets_row()
        assert len(row) == 10  # Expected number of columns
        assert row[2] == "validation_failed"
        assert row[3] == "warning"
        assert "amount" in row[8]

    def test_audit_event_builder_edit_window_expired(self):
        """Test AuditEventBuilder.edit_window_expired."""
        transaction_id = uuid4()
        correlation_id = uuid4()

        event = AuditEventBuilder.edit_window_expired(
            transaction_id=transaction_id,
            elapsed_hours=(timedelta(hours=12, seconds=1).total_seconds() / 3600),
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.EDIT_WINDOW_EXPIRED
        assert event.entity_id == transaction_id
        assert event.correlation_id == correlation_id
        assert event.severity == AuditSeverity.WARNING


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="amount is required",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.first_error.field == "amount"

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            is_valid=True,
            draft=_draft(),
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.first_error is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
