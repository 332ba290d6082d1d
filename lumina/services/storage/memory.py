"""
In-Memory Storage Implementation

Keeps tables as lists of rows in a dict. Addressing and shifting
behave like a spreadsheet, so stores can't tell the difference. Used by
the test suite and by the app when Google Sheets isn't configured.
"""

import copy
from typing import Optional

from lumina.services.storage.interface import (
    NotFoundError,
    SpreadsheetSourceInterface,
    TabularStoreInterface,
)


class InMemoryTabularStore(TabularStoreInterface):
    """Dict-of-tables implementation of the tabular store contract."""

    def __init__(self, tables: Optional[dict[str, list[list]]] = None):
        self._tables: dict[str, list[list[str]]] = {}
        for name, rows in (tables or {}).items():
            self._tables[name] = [self._as_cells(row) for row in rows]

    @staticmethod
    def _as_cells(row: list) -> list[str]:
        # Sheets hands everything back as display strings
        return ["" if value is None else str(value) for value in row]

    def _table(self, table: str) -> list[list[str]]:
        try:
            return self._tables[table]
        except KeyError:
            raise NotFoundError(f"Table not found: {table}")

    def _check_row(self, rows: list, row_number: int, table: str) -> None:
        if row_number < 1 or row_number > len(rows):
            raise NotFoundError(f"Row {row_number} not found in {table}")

    async def list_rows(self, table: str) -> list[list[str]]:
        return copy.deepcopy(self._table(table))

    async def append_rows(self, table: str, rows: list[list]) -> None:
        self._tables.setdefault(table, []).extend(self._as_cells(row) for row in rows)

    async def update_row(self, table: str, row_number: int, values: list) -> None:
        rows = self._table(table)
        self._check_row(rows, row_number, table)
        rows[row_number - 1] = self._as_cells(values)

    async def delete_row(self, table: str, row_number: int) -> None:
        rows = self._table(table)
        self._check_row(rows, row_number, table)
        del rows[row_number - 1]

    async def ensure_table(self, table: str, header: list[str]) -> None:
        if table not in self._tables:
            self._tables[table] = [list(header)]

    def snapshot(self, table: str) -> list[list[str]]:
        """Synchronous copy of a table, for inspection."""
        return copy.deepcopy(self._tables.get(table, []))


class InMemorySpreadsheetSource(SpreadsheetSourceInterface):
    """Foreign spreadsheets held in memory: {spreadsheet_id: {tab: rows}}."""

    def __init__(self, spreadsheets: Optional[dict[str, dict[str, list[list]]]] = None):
        self._spreadsheets = spreadsheets or {}

    async def list_tabs(self, spreadsheet_id: str) -> list[str]:
        try:
            return list(self._spreadsheets[spreadsheet_id].keys())
        except KeyError:
            raise NotFoundError(f"Spreadsheet not found: {spreadsheet_id}")

    async def read_tab(self, spreadsheet_id: str, title: str) -> list[list[str]]:
        tabs = self._spreadsheets.get(spreadsheet_id)
        if tabs is None or title not in tabs:
            raise NotFoundError(f"Tab not found: {spreadsheet_id}/{title}")
        return [
            ["" if value is None else str(value) for value in row]
            for row in tabs[title]
        ]
