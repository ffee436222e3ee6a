"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a durable backend because:
1. Non-technical users can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions: each append is one row write and each replace is one
  range update, so a reader never sees half a record
- Writes are serialized per process only; run one writer per spreadsheet
- Limited query capabilities (we filter in Python)
"""

import asyncio
import json
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import retry, stop_after_attempt, wait_exponential

from money_manager.config import GoogleSheetsSettings, get_settings
from money_manager.models.audit import AuditEvent, AuditEventType, AuditSeverity
from money_manager.models.transaction import (
    Division,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from money_manager.policy.clock import Clock, SystemClock
from money_manager.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    NotFoundError,
    ReplacePrecondition,
    StoreError,
    TransactionPredicate,
)


logger = structlog.get_logger(__name__)

# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "created_at",
    "updated_at",
    "type",
    "amount",
    "description",
    "category",
    "division",
    "date",
    "from_account",
    "to_account",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
]

# Errors raised by gspread or the HTTP transport underneath it
SHEETS_ERRORS = (gspread.exceptions.GSpreadException, OSError)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for idempotent API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except (ValueError, *SHEETS_ERRORS) as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def read_rows(self, sheet: gspread.Worksheet) -> list[list[str]]:
        """All rows of a sheet including the header row."""
        return sheet.get_all_values()


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    One transaction per row, in insertion order.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        clock: Optional[Clock] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._clock = clock or SystemClock()
        self._lock = asyncio.Lock()

    def _transaction_to_row(self, tx: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            str(tx.id),
            tx.created_at.isoformat(),
            tx.updated_at.isoformat(),
            tx.type.value,
            str(tx.amount),
            tx.description,
            tx.category,
            tx.division.value,
            tx.date.isoformat(),
            tx.from_account or "",
            tx.to_account or "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        # Handle missing trailing columns (Sheets drops empty cells)
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Transaction(
            id=UUID(safe_get(0)),
            created_at=datetime.fromisoformat(safe_get(1)),
            updated_at=datetime.fromisoformat(safe_get(2)),
            type=TransactionType(safe_get(3)),
            amount=Decimal(safe_get(4)),
            description=safe_get(5),
            category=safe_get(6),
            division=Division(safe_get(7)),
            date=datetime.fromisoformat(safe_get(8)),
            from_account=safe_get(9) or None,
            to_account=safe_get(10) or None,
        )

    def _read_data_rows(self) -> tuple[gspread.Worksheet, list[list[str]]]:
        try:
            sheet = self._client.get_transactions_sheet()
            return sheet, self._client.read_rows(sheet)[1:]  # Skip header
        except SHEETS_ERRORS as e:
            raise StoreError(f"Failed to read ledger: {e}") from e

    def _parse_rows(self, rows: list[list[str]]) -> list[Transaction]:
        records = []
        for row_number, row in enumerate(rows, start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                records.append(self._row_to_transaction(row))
            except (ValueError, ArithmeticError) as e:
                logger.warning(
                    "ledger_row_unreadable",
                    row=row_number,
                    error=str(e),
                )
        return records

    async def append(self, draft: TransactionDraft) -> Transaction:
        """Append a transaction as a new row."""
        now = self._clock.now()
        record = Transaction(
            **draft.model_dump(),
            id=uuid4(),
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            try:
                sheet = self._client.get_transactions_sheet()
                sheet.append_row(
                    self._transaction_to_row(record),
                    value_input_option="RAW",
                )
            except SHEETS_ERRORS as e:
                raise StoreError(f"Failed to save transaction: {e}") from e
        return record

    async def get(self, transaction_id: UUID) -> Transaction:
        """Retrieve a transaction by its ID."""
        _, rows = self._read_data_rows()
        for row in rows:
            if row and row[0] == str(transaction_id):
                try:
                    return self._row_to_transaction(row)
                except (ValueError, ArithmeticError) as e:
                    raise StoreError(f"Unreadable ledger row for {transaction_id}: {e}") from e
        raise NotFoundError(transaction_id)

    async def scan(
        self,
        predicate: Optional[TransactionPredicate] = None,
    ) -> list[Transaction]:
        """Read the ledger in row order, keeping records matching predicate."""
        _, rows = self._read_data_rows()
        records = self._parse_rows(rows)
        if predicate is not None:
            records = [r for r in records if predicate(r)]
        return records

    async def replace(
        self,
        transaction_id: UUID,
        fields: TransactionDraft,
        precondition: Optional[ReplacePrecondition] = None,
    ) -> Transaction:
        """Overwrite one row with a single range update."""
        async with self._lock:
            sheet, rows = self._read_data_rows()

            # Row 1 is the header
            for idx, row in enumerate(rows, start=2):
                if row and row[0] == str(transaction_id):
                    try:
                        current = self._row_to_transaction(row)
                    except (ValueError, ArithmeticError) as e:
                        raise StoreError(
                            f"Unreadable ledger row for {transaction_id}: {e}"
                        ) from e
                    break
            else:
                raise NotFoundError(transaction_id)

            if precondition is not None:
                precondition(current)

            replaced = Transaction(
                **fields.model_dump(),
                id=current.id,
                created_at=current.created_at,
                updated_at=self._clock.now(),
            )
            cell_range = (
                f"{rowcol_to_a1(idx, 1)}:{rowcol_to_a1(idx, len(TRANSACTION_COLUMNS))}"
            )
            try:
                sheet.update(
                    range_name=cell_range,
                    values=[self._transaction_to_row(replaced)],
                    value_input_option="RAW",
                )
            except SHEETS_ERRORS as e:
                raise StoreError(f"Failed to update transaction: {e}") from e
        return replaced


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
        )

    def _read_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            rows = self._client.read_rows(sheet)[1:]
        except SHEETS_ERRORS as e:
            raise StoreError(f"Failed to get audit events: {e}") from e

        events = []
        for row in rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("audit_row_unreadable", error=str(e))
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except SHEETS_ERRORS as e:
            raise StoreError(f"Failed to write audit event: {e}") from e

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            e for e in self._read_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._read_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
