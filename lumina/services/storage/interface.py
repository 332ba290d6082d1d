"""
Abstract Storage Interface

DESIGN DECISION: The ledger treats a spreadsheet as a very small
relational database: named tables, ordered rows, a header in row 1.
This allows us to:
1. Run against Google Sheets in production
2. Use in-memory storage for tests and offline development
3. Keep the stores free of any spreadsheet API details

The interface is intentionally simple - we're not building an ORM.
Rows are addressed by position (1-indexed, header included), exactly
as a spreadsheet addresses them.
"""

from abc import ABC, abstractmethod


class TabularStoreInterface(ABC):
    """
    Row-oriented CRUD over named tables.

    Any call may fail (network, permissions, quota). Callers treat that
    as transient.
    """

    @abstractmethod
    async def list_rows(self, table: str) -> list[list[str]]:
        """
        Read every row of a table.

        Returns:
            Rows in sheet order; row 1 (index 0) is conventionally the header.
            An empty list for an empty table.

        Raises:
            NotFoundError: If the table doesn't exist
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def append_rows(self, table: str, rows: list[list]) -> None:
        """
        Append rows after the existing ones.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update_row(self, table: str, row_number: int, values: list) -> None:
        """
        Overwrite one row.

        Args:
            table: Table name
            row_number: 1-indexed, header inclusive (data starts at 2)
            values: New cell values, starting at column A

        Raises:
            NotFoundError: If the row doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_row(self, table: str, row_number: int) -> None:
        """
        Remove exactly one row; later rows shift up.

        Raises:
            NotFoundError: If the row doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def ensure_table(self, table: str, header: list[str]) -> None:
        """
        Create the table with `header` as row 1 if it doesn't exist yet.

        Idempotent: an existing table is left untouched.
        """
        pass


class SpreadsheetSourceInterface(ABC):
    """Read-only access to other people's spreadsheets, for imports."""

    @abstractmethod
    async def list_tabs(self, spreadsheet_id: str) -> list[str]:
        """
        List the tab titles of a spreadsheet.

        Raises:
            NotFoundError: If the spreadsheet doesn't exist
            StorageError: If it can't be read (permissions, network)
        """
        pass

    @abstractmethod
    async def read_tab(self, spreadsheet_id: str, title: str) -> list[list[str]]:
        """
        Read all rows of one tab, header included.

        Raises:
            StorageError: If the tab can't be read
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Table, row or spreadsheet not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
