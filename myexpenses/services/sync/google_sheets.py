"""
Google Sheets Remote Store

DESIGN DECISION: Google Sheets works as a remote store for personal use:
1. Users can see and fix their synced data directly in Sheets
2. No server to run
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for one household)
- No transactions; a full-snapshot push is clear-then-write
- Lookups scan the sheet (we filter in Python)
- A hand-edited row that no longer parses fails the whole fetch, so a
  full sync stops before the push would erase it

gspread is a blocking client. Every sheet call runs in a worker thread so
a slow API call never stalls local mutations on the event loop.
"""

import asyncio
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from myexpenses.config import GoogleSheetsSettings, get_settings
from myexpenses.models.expense import Expense
from myexpenses.services.sync.interface import RemoteSyncInterface, TransientSyncError


logger = structlog.get_logger(__name__)

# Column order for the Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "amount",
    "category",
    "description",
    "date",
    "currency",
    "createdAt",
    "updatedAt",
    "syncStatus",
]

_sheet_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @_sheet_retry
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
                raise TransientSyncError(
                    f"Google credentials file not found: {self._settings.credentials_path}",
                    operation="connect",
                ) from e
            except Exception as e:
                raise TransientSyncError(
                    f"Failed to connect to Google Sheets: {e}",
                    operation="connect",
                ) from e

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
                raise TransientSyncError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}",
                    operation="connect",
                ) from e
        return self._spreadsheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.expenses_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.expenses_sheet_name,
                rows=1000,
                cols=len(EXPENSE_COLUMNS),
            )
            sheet.append_row(EXPENSE_COLUMNS)
        return sheet


def expense_to_row(expense: Expense) -> list[str]:
    """Convert an Expense to a spreadsheet row."""
    data = expense.to_json_dict()
    return [
        "" if data[column] is None else str(data[column])
        for column in EXPENSE_COLUMNS
    ]


def row_to_expense(row: list[str]) -> Expense:
    """Convert a spreadsheet row to an Expense."""
    # Handle missing trailing columns gracefully
    def safe_get(index: int) -> Optional[str]:
        try:
            return row[index] or None
        except IndexError:
            return None

    data = {
        column: safe_get(index)
        for index, column in enumerate(EXPENSE_COLUMNS)
    }
    # Let model defaults apply instead of validating explicit blanks
    return Expense.model_validate({k: v for k, v in data.items() if v is not None})


class GoogleSheetsSyncAdapter(RemoteSyncInterface):
    """
    Google Sheets implementation of the remote store.

    Expenses are stored one per row, keyed by the `id` column.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except TransientSyncError:
            raise
        except Exception as e:
            raise TransientSyncError(f"Google Sheets {operation} failed: {e}", operation=operation) from e

    async def initialize(self) -> bool:
        try:
            await asyncio.to_thread(self._client.get_expenses_sheet)
            return True
        except Exception as e:
            logger.warning("google_sheets_unavailable", error=str(e))
            return False

    @_sheet_retry
    def _upsert_row(self, expense: Expense) -> None:
        sheet = self._client.get_expenses_sheet()
        all_rows = sheet.get_all_values()
        new_row = expense_to_row(expense)

        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == expense.id:
                end_cell = gspread.utils.rowcol_to_a1(idx, len(EXPENSE_COLUMNS))
                sheet.update(
                    range_name=f"A{idx}:{end_cell}",
                    values=[new_row],
                    value_input_option="RAW",
                )
                return

        sheet.append_row(new_row, value_input_option="RAW")

    @_sheet_retry
    def _delete_rows(self, expense_id: str) -> int:
        sheet = self._client.get_expenses_sheet()
        all_rows = sheet.get_all_values()
        matches = [
            idx for idx, row in enumerate(all_rows[1:], start=2)
            if row and row[0] == expense_id
        ]
        # Bottom-up so earlier row numbers stay valid
        for idx in reversed(matches):
            sheet.delete_rows(idx)
        return len(matches)

    @_sheet_retry
    def _read_rows(self) -> list[list[str]]:
        sheet = self._client.get_expenses_sheet()
        return sheet.get_all_values()[1:]  # Skip header

    @_sheet_retry
    def _replace_rows(self, rows: list[list[str]]) -> None:
        sheet = self._client.get_expenses_sheet()
        sheet.clear()
        sheet.update(
            range_name="A1",
            values=[EXPENSE_COLUMNS] + rows,
            value_input_option="RAW",
        )

    async def sync_expense(self, expense: Expense) -> Expense:
        await self._run("sync_expense", self._upsert_row, expense)
        return expense

    async def delete_expense(self, expense_id: str) -> int:
        return await self._run("delete_expense", self._delete_rows, expense_id)

    async def fetch_all_expenses(self) -> list[Expense]:
        rows = await self._run("fetch_all_expenses", self._read_rows)

        expenses = []
        for position, row in enumerate(rows, start=2):
            if not any(cell.strip() for cell in row):  # Skip blank rows
                continue
            try:
                expenses.append(row_to_expense(row))
            except ValueError as e:
                # A full push rewrites the sheet, so an unread row would be erased
                logger.warning("google_sheets_row_unreadable", row=position, error=str(e))
                raise TransientSyncError(
                    f"Unreadable row {position} in Google Sheets: {e}",
                    operation="fetch_all_expenses",
                ) from e
        return expenses

    async def sync_all_expenses(self, expenses: list[Expense]) -> int:
        rows = [expense_to_row(expense) for expense in expenses]
        await self._run("sync_all_expenses", self._replace_rows, rows)
        return len(rows)
