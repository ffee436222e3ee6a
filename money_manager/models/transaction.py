"""
Core Data Models for the Money Manager Ledger

These models define the schemas for every record and read view in the ledger.
They are designed to:
1. Enforce type safety at runtime
2. Serialize with the camelCase wire names clients exchange
3. Keep timestamps normalized to UTC so bucketing is deterministic

DESIGN DECISION: Amounts are always strictly positive Decimals.
The direction of money movement is carried by the transaction type,
never by the sign of the amount.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a ledger movement."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class Division(str, Enum):
    """
    Organizational tag on a transaction.

    Values keep their capitalized form because clients display them as-is.
    """
    OFFICE = "Office"
    PERSONAL = "Personal"


class Granularity(str, Enum):
    """Calendar grouping used by the period summary."""
    MONTH = "month"
    WEEK = "week"
    YEAR = "year"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Granularity":
        """
        Resolve a client-supplied granularity.

        A missing value falls back to MONTH, matching the dashboard default.
        Unknown values raise ValueError.
        """
        if value is None or value == "":
            return cls.MONTH
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


# =============================================================================
# PARSING HELPERS
# =============================================================================

def to_utc(moment: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp (or a date/datetime object) into aware UTC.

    Raises:
        ValueError: If the value is not a recognizable timestamp
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        return to_utc(datetime.fromisoformat(text))
    raise ValueError(f"Not an ISO-8601 timestamp: {value!r}")


def parse_amount(value: Any) -> Decimal:
    """
    Parse a numeric amount into a finite Decimal.

    Booleans are rejected even though Python treats them as ints.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a number: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a number: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return amount


def lookup_member(enum_cls: type[Enum], value: Any) -> Enum:
    """
    Find an enum member by value, ignoring case and surrounding whitespace.

    Raises:
        ValueError: If no member matches
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if member.value.lower() == wanted:
                return member
    choices = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"'{value}' is not one of: {choices}")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# =============================================================================
# CORE TRANSACTION MODELS
# =============================================================================

class LedgerModel(BaseModel):
    """Base for models exchanged with clients (camelCase on the wire)."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """JSON-ready dict using wire names."""
        return self.model_dump(mode="json", by_alias=True)


class TransactionDraft(LedgerModel):
    """
    A validated transaction that has not been stored yet.

    This is what the validator produces. The store turns it into a
    Transaction by assigning id and timestamps.
    """

    type: TransactionType = Field(
        ...,
        description="income, expense or transfer"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Strictly positive amount in the ledger's single currency"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="What the transaction was for"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Free-form classification label"
    )
    division: Division = Field(
        ...,
        description="Office or Personal"
    )
    date: datetime = Field(
        ...,
        description="Economic event timestamp (UTC), used for filtering and bucketing"
    )
    from_account: Optional[str] = Field(
        default=None,
        description="Account debited (expense/transfer)"
    )
    to_account: Optional[str] = Field(
        default=None,
        description="Account credited (income/transfer)"
    )

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v: Any) -> datetime:
        return parse_timestamp(v)

    @field_validator("from_account", "to_account", mode="before")
    @classmethod
    def blank_account_is_absent(cls, v: Any) -> Any:
        """An empty account name means no account was given."""
        return _blank_to_none(v)

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)


class Transaction(TransactionDraft):
    """
    A stored transaction.

    CRITICAL: id and created_at are assigned once by the store and are
    never part of a later mutation. created_at anchors the edit window.
    """

    id: UUID = Field(
        ...,
        description="Store-assigned identifier"
    )
    created_at: datetime = Field(
        ...,
        description="When the record was created (UTC)"
    )
    updated_at: datetime = Field(
        ...,
        description="Last time the record was replaced (UTC)"
    )

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def normalize_timestamps(cls, v: Any) -> datetime:
        return parse_timestamp(v)

    def content_fields(self) -> dict:
        """The client-editable fields, keyed by Python name."""
        return self.model_dump(include=set(TransactionDraft.model_fields))


class TransactionUpdate(LedgerModel):
    """
    Partial field set for an update.

    Only the fields explicitly provided are applied. Identity and
    timestamp fields are not part of this model, so they can never be
    overwritten by a client.
    """

    type: Optional[Any] = None
    amount: Optional[Any] = None
    description: Optional[Any] = None
    category: Optional[Any] = None
    division: Optional[Any] = None
    date: Optional[Any] = None
    from_account: Optional[Any] = None
    to_account: Optional[Any] = None

    def changes(self) -> dict:
        """Fields the client actually sent, keyed by Python name."""
        return self.model_dump(exclude_unset=True)


# =============================================================================
# QUERY MODELS
# =============================================================================

class TransactionFilter(LedgerModel):
    """
    Optional criteria for listing and aggregating transactions.

    Every criterion is optional; absent criteria impose no constraint.
    Present criteria are combined with AND. Date bounds are inclusive.
    """

    division: Optional[Division] = None
    category: Optional[Any] = None
    type: Optional[TransactionType] = None
    # startDate/endDate are the names the list endpoint's query string used
    date_from: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("dateFrom", "date_from", "startDate"),
    )
    date_to: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("dateTo", "date_to", "endDate"),
    )

    @field_validator("category", mode="before")
    @classmethod
    def blank_is_unset(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("division", mode="before")
    @classmethod
    def resolve_division(cls, v: Any) -> Optional[Division]:
        v = _blank_to_none(v)
        return None if v is None else lookup_member(Division, v)

    @field_validator("type", mode="before")
    @classmethod
    def resolve_type(cls, v: Any) -> Optional[TransactionType]:
        # Same spellings the validator accepts on create
        v = _blank_to_none(v)
        return None if v is None else lookup_member(TransactionType, v)

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def normalize_bounds(cls, v: Any) -> Optional[datetime]:
        v = _blank_to_none(v)
        return None if v is None else parse_timestamp(v)

    @property
    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


# =============================================================================
# READ VIEWS
# =============================================================================

class PeriodTotal(LedgerModel):
    """Sum of amounts for one type inside one period."""
    type: TransactionType
    total_amount: Decimal

    @field_serializer("total_amount", when_used="json")
    def serialize_total(self, total: Decimal) -> float:
        return float(total)


class PeriodBucket(LedgerModel):
    """
    One calendar period of the period summary.

    Types with no transactions in the period are omitted from totals;
    callers treat a missing type as zero.
    """
    period: str
    totals: list[PeriodTotal] = Field(default_factory=list)

    def total_for(self, tx_type: TransactionType) -> Decimal:
        for total in self.totals:
            if total.type == tx_type:
                return total.total_amount
        return Decimal("0")


class CategoryTotal(LedgerModel):
    """Sum of amounts for one (category, type) pair."""
    category: str
    type: TransactionType
    total_amount: Decimal

    @field_serializer("total_amount", when_used="json")
    def serialize_total(self, total: Decimal) -> float:
        return float(total)


class AccountBalance(LedgerModel):
    """A derived account balance (signed)."""
    account: str
    balance: Decimal

    @field_serializer("balance", when_used="json")
    def serialize_balance(self, balance: Decimal) -> float:
        return float(balance)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'not_allowed')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Typed outcome of validating a candidate transaction.

    Exactly one of these holds:
    - is_valid is True and draft carries the validated transaction
    - is_valid is False and issues lists every rejected field
    """

    is_valid: bool = Field(
        ...,
        description="Did every constraint pass?"
    )
    draft: Optional[TransactionDraft] = Field(
        default=None,
        description="The validated transaction when is_valid is True"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def first_error(self) -> Optional[ValidationIssue]:
        for issue in self.issues:
            if issue.severity == "error":
                return issue
        return None
