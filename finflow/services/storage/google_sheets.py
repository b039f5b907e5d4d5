"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote storage backend because:
1. The user can view and fix their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions: a group edit is written member by member
- Limited query capabilities (we filter in Python)

Network calls are retried with exponential backoff; the scheduling
engine itself never retries.
"""

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Sequence, TypeVar
from uuid import UUID

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finflow.config import GoogleSheetsSettings, get_settings
from finflow.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finflow.models.transaction import (
    Budget,
    Category,
    FixedExpense,
    InstallmentInfo,
    Transaction,
    TransactionType,
)
from finflow.scheduling.calendar import parse_utc_midnight_iso, to_utc_midnight_iso
from finflow.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    NotFoundError,
    StorageUnavailableError,
)


TRANSACTION_COLUMNS = [
    "id",
    "type",
    "category",
    "amount",
    "description",
    "date",
    "fixed_expense_id",
    "installment_current",
    "installment_total",
    "installment_group_id",
]

FIXED_EXPENSE_COLUMNS = [
    "id",
    "description",
    "amount",
    "category",
    "day_of_month",
]

BUDGET_COLUMNS = [
    "id",
    "category",
    "limit",
]

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
    "is_user_action",
]

# Failures that mean "the backend is unreachable or refused the call"
BACKEND_ERRORS = (gspread.exceptions.GSpreadException, GoogleAuthError, OSError)

sheets_retry = retry(
    retry=retry_if_exception_type(StorageUnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)

T = TypeVar("T")

# Raised by row conversion when a cell holds something the model rejects
ROW_ERRORS = (ValueError, InvalidOperation)


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @sheets_retry
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
            except FileNotFoundError:
                raise StorageUnavailableError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except BACKEND_ERRORS as e:
                raise StorageUnavailableError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageUnavailableError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS)

    def get_fixed_expenses_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.fixed_expenses_sheet_name, FIXED_EXPENSE_COLUMNS)

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.budgets_sheet_name, BUDGET_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


# =============================================================================
# ROW MAPPING
# =============================================================================

def transaction_to_row(tx: Transaction) -> list:
    """Convert a Transaction to a spreadsheet row."""
    info = tx.installment_info
    return [
        tx.id,
        tx.type.value,
        tx.category.value,
        str(tx.amount),
        tx.description,
        to_utc_midnight_iso(tx.date),
        tx.fixed_expense_id or "",
        str(info.current) if info else "",
        str(info.total) if info else "",
        info.group_id if info else "",
    ]


def row_to_transaction(row: list) -> Transaction:
    """Convert a spreadsheet row to a Transaction."""
    installment_info = None
    if _cell(row, 9):
        installment_info = InstallmentInfo(
            current=int(_cell(row, 7)),
            total=int(_cell(row, 8)),
            group_id=_cell(row, 9),
        )
    return Transaction(
        id=_cell(row, 0),
        type=TransactionType(_cell(row, 1)),
        category=Category(_cell(row, 2)),
        amount=Decimal(_cell(row, 3)),
        description=_cell(row, 4),
        date=parse_utc_midnight_iso(_cell(row, 5)),
        fixed_expense_id=_cell(row, 6) or None,
        installment_info=installment_info,
    )


def fixed_expense_to_row(fixed_expense: FixedExpense) -> list:
    return [
        fixed_expense.id,
        fixed_expense.description,
        str(fixed_expense.amount),
        fixed_expense.category.value,
        str(fixed_expense.day_of_month),
    ]


def row_to_fixed_expense(row: list) -> FixedExpense:
    return FixedExpense(
        id=_cell(row, 0),
        description=_cell(row, 1),
        amount=Decimal(_cell(row, 2)),
        category=Category(_cell(row, 3)),
        day_of_month=int(_cell(row, 4)),
    )


def budget_to_row(budget: Budget) -> list:
    return [budget.id, budget.category.value, str(budget.limit)]


def row_to_budget(row: list) -> Budget:
    return Budget(
        id=_cell(row, 0),
        category=Category(_cell(row, 1)),
        limit=Decimal(_cell(row, 2)),
    )


def row_to_event(row: list) -> AuditEvent:
    """Convert a spreadsheet row to an AuditEvent."""
    return AuditEvent(
        event_id=UUID(_cell(row, 0)),
        timestamp=datetime.fromisoformat(_cell(row, 1)),
        event_type=AuditEventType(_cell(row, 2)),
        severity=AuditSeverity(_cell(row, 3)),
        entity_type=_cell(row, 4) or None,
        entity_id=_cell(row, 5) or None,
        correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
        description=_cell(row, 7),
        details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
        error_message=_cell(row, 9) or None,
        is_user_action=_cell(row, 10).lower() == "true",
    )


def _parse_rows(rows: list[list], parse: Callable[[list], T], name: str) -> list[T]:
    """Convert data rows, reporting a malformed row as unavailable storage."""
    try:
        return [parse(row) for row in rows if row and row[0]]
    except ROW_ERRORS as e:
        raise StorageUnavailableError(f"Corrupt {name} data: {e}")


def _find_row(all_rows: list[list], record_id: str) -> Optional[int]:
    """1-based sheet row number of `record_id` (row 1 is the header)."""
    for idx, row in enumerate(all_rows[1:], start=2):
        if row and row[0] == record_id:
            return idx
    return None


# =============================================================================
# STORAGE
# =============================================================================

class GoogleSheetsFinanceStorage(FinanceStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    One worksheet per entity, one record per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @sheets_retry
    async def _data_rows(
        self,
        get_sheet: Callable[[], gspread.Worksheet],
        name: str,
    ) -> list[list]:
        """Every row below the header. Parsing happens outside the retry."""
        try:
            return get_sheet().get_all_values()[1:]
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to list {name}: {e}")

    # -- Transactions ---------------------------------------------------------

    async def list_transactions(self) -> list[Transaction]:
        rows = await self._data_rows(self._client.get_transactions_sheet, "transactions")
        return _parse_rows(rows, row_to_transaction, "transactions")

    @sheets_retry
    async def insert_transactions(self, transactions: Sequence[Transaction]) -> None:
        if not transactions:
            return
        try:
            sheet = self._client.get_transactions_sheet()
            known = {row[0] for row in sheet.get_all_values()[1:] if row}
            duplicates = known.intersection(t.id for t in transactions)
            if duplicates:
                raise DuplicateError(f"Transaction ids already exist: {sorted(duplicates)}")
            sheet.append_rows(
                [transaction_to_row(t) for t in transactions],
                value_input_option="RAW",
            )
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to insert transactions: {e}")

    @sheets_retry
    async def update_transaction(self, transaction: Transaction) -> None:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = _find_row(sheet.get_all_values(), transaction.id)
            if idx is None:
                raise NotFoundError(f"Transaction not found: {transaction.id}")
            sheet.update(
                values=[transaction_to_row(transaction)],
                range_name=f"A{idx}",
                value_input_option="RAW",
            )
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to update transaction: {e}")

    @sheets_retry
    async def delete_transaction(self, transaction_id: str) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = _find_row(sheet.get_all_values(), transaction_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to delete transaction: {e}")

    # -- Fixed expenses -------------------------------------------------------

    async def list_fixed_expenses(self) -> list[FixedExpense]:
        rows = await self._data_rows(self._client.get_fixed_expenses_sheet, "fixed expenses")
        return _parse_rows(rows, row_to_fixed_expense, "fixed expenses")

    @sheets_retry
    async def add_fixed_expense(self, fixed_expense: FixedExpense) -> None:
        try:
            sheet = self._client.get_fixed_expenses_sheet()
            if _find_row(sheet.get_all_values(), fixed_expense.id) is not None:
                raise DuplicateError(f"Fixed expense already exists: {fixed_expense.id}")
            sheet.append_row(fixed_expense_to_row(fixed_expense), value_input_option="RAW")
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to add fixed expense: {e}")

    @sheets_retry
    async def delete_fixed_expense(self, fixed_expense_id: str) -> bool:
        try:
            sheet = self._client.get_fixed_expenses_sheet()
            idx = _find_row(sheet.get_all_values(), fixed_expense_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to delete fixed expense: {e}")

    # -- Budgets --------------------------------------------------------------

    async def list_budgets(self) -> list[Budget]:
        rows = await self._data_rows(self._client.get_budgets_sheet, "budgets")
        return _parse_rows(rows, row_to_budget, "budgets")

    @sheets_retry
    async def upsert_budget(self, budget: Budget) -> None:
        try:
            sheet = self._client.get_budgets_sheet()
            idx = _find_row(sheet.get_all_values(), budget.id)
            if idx is None:
                sheet.append_row(budget_to_row(budget), value_input_option="RAW")
            else:
                sheet.update(
                    values=[budget_to_row(budget)],
                    range_name=f"A{idx}",
                    value_input_option="RAW",
                )
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to save budget: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @sheets_retry
    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to write audit event: {e}")

    def _all_events(self) -> list[AuditEvent]:
        try:
            rows = self._client.get_audit_sheet().get_all_values()[1:]
        except BACKEND_ERRORS as e:
            raise StorageUnavailableError(f"Failed to get audit events: {e}")
        return _parse_rows(rows, row_to_event, "audit events")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._all_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._all_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
