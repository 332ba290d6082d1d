"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the ledger's database because:
1. Users can view and fix their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Old expense sheets can be imported as they are

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (the stores roll back local state instead)
- Limited query capabilities (we filter in Python)

Each ledger table is one worksheet (tab) of the configured spreadsheet.
"""

from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from lumina.config import GoogleSheetsSettings, get_settings
from lumina.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    SpreadsheetSourceInterface,
    StorageError,
    TabularStoreInterface,
)


SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

# Columns read from foreign spreadsheets: Date, Purpose, Amount, Description
IMPORT_RANGE = "A:D"

_retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type(NotFoundError),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._credentials: Optional[Credentials] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @property
    def service_account_email(self) -> Optional[str]:
        if self._credentials is None:
            return None
        return self._credentials.service_account_email

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
                self._credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(self._credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured ledger spreadsheet."""
        if self._spreadsheet is None:
            self._spreadsheet = self.open_spreadsheet(self._settings.spreadsheet_id)
        return self._spreadsheet

    def open_spreadsheet(self, spreadsheet_id: str) -> gspread.Spreadsheet:
        """Open any spreadsheet the service account can read."""
        client = self.connect()
        try:
            return client.open_by_key(spreadsheet_id)
        except gspread.SpreadsheetNotFound:
            raise NotFoundError(f"Spreadsheet not found: {spreadsheet_id}")

    def get_worksheet(self, title: str) -> gspread.Worksheet:
        """Get a worksheet of the ledger spreadsheet by title."""
        if title not in self._worksheets:
            spreadsheet = self.get_spreadsheet()
            try:
                self._worksheets[title] = spreadsheet.worksheet(title)
            except gspread.WorksheetNotFound:
                raise NotFoundError(f"Worksheet not found: {title}")
        return self._worksheets[title]

    def ensure_worksheet(self, title: str, header: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet, writing `header` into a new one."""
        try:
            return self.get_worksheet(title)
        except NotFoundError:
            spreadsheet = self.get_spreadsheet()
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(header),
            )
            sheet.append_row(header, value_input_option="RAW")
            self._worksheets[title] = sheet
            return sheet


class GoogleSheetsTabularStore(TabularStoreInterface):
    """
    Google Sheets implementation of the tabular store.

    Values are written with USER_ENTERED so amounts and dates stay
    numbers and dates in the sheet, as if typed by hand.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @property
    def client(self) -> GoogleSheetsClient:
        return self._client

    @_retry_transient
    async def list_rows(self, table: str) -> list[list[str]]:
        try:
            sheet = self._client.get_worksheet(table)
            return sheet.get_all_values()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {table}: {e}")

    @_retry_transient
    async def append_rows(self, table: str, rows: list[list]) -> None:
        if not rows:
            return
        try:
            sheet = self._client.get_worksheet(table)
            sheet.append_rows(rows, value_input_option="USER_ENTERED")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to append to {table}: {e}")

    @_retry_transient
    async def update_row(self, table: str, row_number: int, values: list) -> None:
        if row_number < 1:
            raise NotFoundError(f"Row {row_number} not found in {table}")
        try:
            sheet = self._client.get_worksheet(table)
            sheet.update(
                range_name=f"A{row_number}",
                values=[values],
                value_input_option="USER_ENTERED",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update row {row_number} of {table}: {e}")

    @_retry_transient
    async def delete_row(self, table: str, row_number: int) -> None:
        if row_number < 1:
            raise NotFoundError(f"Row {row_number} not found in {table}")
        try:
            sheet = self._client.get_worksheet(table)
            sheet.delete_rows(row_number)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete row {row_number} of {table}: {e}")

    @_retry_transient
    async def ensure_table(self, table: str, header: list[str]) -> None:
        try:
            self._client.ensure_worksheet(table, header)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create {table}: {e}")


class GoogleSheetsSource(SpreadsheetSourceInterface):
    """Reads foreign spreadsheets (old expense sheets) for import."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @_retry_transient
    async def list_tabs(self, spreadsheet_id: str) -> list[str]:
        try:
            spreadsheet = self._client.open_spreadsheet(spreadsheet_id)
            return [sheet.title for sheet in spreadsheet.worksheets()]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to open spreadsheet {spreadsheet_id}: {e}")

    @_retry_transient
    async def read_tab(self, spreadsheet_id: str, title: str) -> list[list[str]]:
        try:
            spreadsheet = self._client.open_spreadsheet(spreadsheet_id)
            return spreadsheet.worksheet(title).get(IMPORT_RANGE)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read tab {title}: {e}")
