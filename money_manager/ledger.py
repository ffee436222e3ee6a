"""
Ledger Service

This module ties the components together and defines the operations
clients call:
1. create_transaction   (candidate → validate → append)
2. list_transactions    (criteria → scan → newest first)
3. update_transaction   (id + partial fields → window check → validate → replace)
4. period_summary       (granularity → scan → bucket by period)
5. category_summary     (scan → bucket by category and type)
6. account_balances     (scan → fold into balances)

DESIGN DECISION: The service enforces the boundaries:
- Nothing reaches the store without passing the validator
- Nothing is replaced after the edit window has closed; the window is
  checked up front for a fast rejection and again by the store while
  the write is serialized
- Every write and every rejection is audited
- The engine never retries a store failure; it is surfaced to the caller

The three summaries take optional criteria. Without criteria they cover
the whole ledger (dashboard-wide totals); with criteria they cover the
same subset list_transactions would return.
"""

from decimal import Decimal
from typing import Any, Mapping, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from money_manager.audit import AuditLogger, configure_log_level, create_correlation_id
from money_manager.config import get_settings
from money_manager.models.transaction import (
    AccountBalance,
    CategoryTotal,
    Granularity,
    PeriodBucket,
    Transaction,
    TransactionFilter,
    TransactionUpdate,
    ValidationIssue,
)
from money_manager.policy import Clock, EditWindowExpiredError, EditWindowPolicy, SystemClock
from money_manager.queries import (
    DEFAULT_ACCOUNT,
    balances_as_list,
    build_predicate,
    derive_balances,
    newest_first,
    summarize,
    summarize_by_category,
)
from money_manager.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StoreError,
)
from money_manager.validation import TransactionValidator, ValidationError


logger = structlog.get_logger(__name__)

Criteria = Union[TransactionFilter, Mapping[str, Any], None]


def _criteria_field(loc: tuple) -> str:
    """Map an error location (field name or any accepted alias) to the field name."""
    name = str(loc[0]) if loc else "criteria"
    for field_name, info in TransactionFilter.model_fields.items():
        aliases = getattr(info.validation_alias, "choices", ())
        if name == field_name or name == info.alias or name in aliases:
            return field_name
    return name


def _as_filter(criteria: Criteria) -> Optional[TransactionFilter]:
    """
    Raises:
        ValidationError: If a criterion cannot be parsed
    """
    if criteria is None or isinstance(criteria, TransactionFilter):
        return criteria
    try:
        return TransactionFilter.model_validate(dict(criteria))
    except PydanticValidationError as e:
        issues = [
            ValidationIssue(
                field=_criteria_field(error["loc"]),
                issue_type="invalid_value",
                message=error["msg"],
            )
            for error in e.errors()
        ]
        raise ValidationError(field=issues[0].field, message=issues[0].message, issues=issues)


def _as_changes(fields: Union[TransactionUpdate, Mapping[str, Any]]) -> dict:
    if isinstance(fields, TransactionUpdate):
        return fields.changes()
    # Identity and timestamps are never part of a mutation
    return TransactionUpdate.model_validate(dict(fields)).changes()


class LedgerService:
    """
    The six ledger operations over one store.

    Stateless apart from its collaborators; safe to share between
    concurrent requests.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        validator: Optional[TransactionValidator] = None,
        edit_policy: Optional[EditWindowPolicy] = None,
        audit_logger: Optional[AuditLogger] = None,
        default_account: str = DEFAULT_ACCOUNT,
    ):
        self._store = store
        self._validator = validator or TransactionValidator()
        self._edit_policy = edit_policy or EditWindowPolicy()
        self._audit_logger = audit_logger
        self._default_account = default_account

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_transaction(
        self,
        candidate: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Validate and store a new transaction.

        Raises:
            ValidationError: If the candidate is rejected
            StoreError: If the store write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate(candidate)
        if not result.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    issues=[issue.model_dump() for issue in result.issues],
                    correlation_id=correlation_id,
                )
            raise ValidationError.from_result(result)

        try:
            record = await self._store.append(result.draft)
        except StoreError as e:
            await self._store_failed("append", e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_created(
                transaction_id=record.id,
                tx_type=record.type.value,
                amount=str(record.amount),
                correlation_id=correlation_id,
            )
        return record

    async def update_transaction(
        self,
        transaction_id: UUID,
        fields: Union[TransactionUpdate, Mapping[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Apply a partial update while the edit window is open.

        The type may be changed like any other content field.

        Raises:
            NotFoundError: If the transaction does not exist
            EditWindowExpiredError: If the record is older than the window
            ValidationError: If the merged record would be invalid
        """
        correlation_id = correlation_id or create_correlation_id()
        changes = _as_changes(fields)

        try:
            current = await self._store.get(transaction_id)
            self._edit_policy.ensure_editable(current)

            result = self._validator.validate_update(current, changes)
            if not result.is_valid:
                if self._audit_logger:
                    await self._audit_logger.log_validation_failed(
                        issues=[issue.model_dump() for issue in result.issues],
                        transaction_id=transaction_id,
                        correlation_id=correlation_id,
                    )
                raise ValidationError.from_result(result)

            record = await self._store.replace(
                transaction_id,
                result.draft,
                precondition=self._edit_policy.ensure_editable,
            )
        except NotFoundError:
            if self._audit_logger:
                await self._audit_logger.log_not_found(transaction_id, correlation_id)
            raise
        except EditWindowExpiredError as e:
            if self._audit_logger:
                await self._audit_logger.log_edit_window_expired(
                    transaction_id=transaction_id,
                    elapsed_hours=e.elapsed_hours,
                    correlation_id=correlation_id,
                )
            raise
        except StoreError as e:
            await self._store_failed("replace", e, correlation_id)
            raise

        if self._audit_logger:
            changed = [
                name for name, value in record.content_fields().items()
                if current.content_fields()[name] != value
            ]
            await self._audit_logger.log_transaction_updated(
                transaction_id=record.id,
                changed_fields=changed,
                correlation_id=correlation_id,
            )
        return record

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_transaction(self, transaction_id: UUID) -> Transaction:
        """
        Raises:
            NotFoundError: If the transaction does not exist
        """
        return await self._store.get(transaction_id)

    async def list_transactions(self, criteria: Criteria = None) -> list[Transaction]:
        """
        Transactions matching every given criterion, newest event first.

        Enum criteria accept the same spellings as create_transaction.

        Raises:
            ValidationError: If a criterion cannot be parsed
        """
        return newest_first(await self._scan(_as_filter(criteria)))

    async def period_summary(
        self,
        granularity: Union[Granularity, str, None] = Granularity.MONTH,
        criteria: Criteria = None,
    ) -> list[PeriodBucket]:
        """
        Income/expense/transfer totals per calendar period, oldest first.

        Raises:
            ValidationError: If granularity is not month, week or year,
                or a criterion cannot be parsed
        """
        try:
            resolved = Granularity.parse(granularity)
        except ValueError:
            raise ValidationError(
                field="granularity",
                message=f"'{granularity}' is not one of: month, week, year",
            )

        criteria = _as_filter(criteria)
        transactions = await self._scan(criteria)
        buckets = summarize(transactions, resolved)
        await self._summary_done(f"period:{resolved.value}", len(transactions), criteria)
        return buckets

    async def category_summary(self, criteria: Criteria = None) -> list[CategoryTotal]:
        """Totals per (category, type), ordered by category."""
        criteria = _as_filter(criteria)
        transactions = await self._scan(criteria)
        totals = summarize_by_category(transactions)
        await self._summary_done("category", len(transactions), criteria)
        return totals

    async def account_balances(self, criteria: Criteria = None) -> dict[str, Decimal]:
        """Signed balance per account, recomputed from the ledger."""
        criteria = _as_filter(criteria)
        transactions = await self._scan(criteria)
        balances = derive_balances(transactions, self._default_account)
        await self._summary_done("balances", len(transactions), criteria)
        return balances

    async def account_balance_list(self, criteria: Criteria = None) -> list[AccountBalance]:
        """account_balances as [{account, balance}] rows."""
        return balances_as_list(await self.account_balances(criteria))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _scan(self, criteria: Optional[TransactionFilter]) -> list[Transaction]:
        predicate = None if criteria is None or criteria.is_empty else build_predicate(criteria)
        try:
            return await self._store.scan(predicate)
        except StoreError as e:
            await self._store_failed("scan", e, None)
            raise

    async def _summary_done(
        self,
        summary: str,
        record_count: int,
        criteria: Optional[TransactionFilter],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_summary(
                summary=summary,
                record_count=record_count,
                filtered=criteria is not None and not criteria.is_empty,
            )

    async def _store_failed(
        self,
        operation: str,
        error: StoreError,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_store_error(
                operation=operation,
                error_message=str(error),
                correlation_id=correlation_id,
            )
        else:
            logger.error("ledger_store_failed", operation=operation, error=str(error))


def create_app_components(
    use_storage: Optional[str] = None,
    clock: Optional[Clock] = None,
) -> LedgerService:
    """
    Factory function to wire a LedgerService from settings.

    Args:
        use_storage: "memory" or "google_sheets"; defaults to the
                    configured storage_backend.
        clock: Time source shared by the store and the edit window.

    Returns:
        A ready LedgerService
    """
    app_settings = get_settings().app
    backend = use_storage or app_settings.storage_backend
    clock = clock or SystemClock()
    configure_log_level(app_settings.log_level)

    if backend == "google_sheets":
        sheets_client = GoogleSheetsClient()
        store = GoogleSheetsLedgerStore(sheets_client, clock=clock)
        audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
    elif backend == "memory":
        store = InMemoryLedgerStore(clock=clock)
        audit_logger = AuditLogger()  # Local-only logging
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    logger.info("ledger_configured", backend=backend, environment=app_settings.app_environment)

    return LedgerService(
        store=store,
        validator=TransactionValidator(),
        edit_policy=EditWindowPolicy(clock=clock, window_hours=app_settings.edit_window_hours),
        audit_logger=audit_logger,
        default_account=app_settings.default_account,
    )
