"""
Shared fixtures.

No test talks to Google: FailingTabularStore is the in-memory table
store with switchable write/read failures standing in for the
spreadsheet.
"""

import asyncio
from typing import Optional

import pytest

from lumina.audit import AuditLogger
from lumina.services.auth import AuthSession, AuthUser
from lumina.services.storage import InMemoryTabularStore, LocalJsonStore, StorageError
from lumina.stores import BankStore, CategoryStore, ExpenseStore, LoanStore


class FailingTabularStore(InMemoryTabularStore):
    """In-memory table store that fails on demand."""

    def __init__(self, tables: Optional[dict] = None):
        super().__init__(tables)
        self.fail_writes = False
        self.fail_reads = False
        self.failing_tables: set[str] = set()
        self.writes: list[tuple[str, str]] = []

    def _check_write(self, table: str, operation: str) -> None:
        if self.fail_writes or table in self.failing_tables:
            raise StorageError(f"simulated {operation} failure on {table}")
        self.writes.append((operation, table))

    async def list_rows(self, table):
        if self.fail_reads:
            raise StorageError(f"simulated read failure on {table}")
        return await super().list_rows(table)

    async def append_rows(self, table, rows):
        self._check_write(table, "append")
        await super().append_rows(table, rows)

    async def update_row(self, table, row_number, values):
        self._check_write(table, "update")
        await super().update_row(table, row_number, values)

    async def delete_row(self, table, row_number):
        self._check_write(table, "delete")
        await super().delete_row(table, row_number)


@pytest.fixture
def user():
    return AuthUser(email="me@example.com", display_name="Me")


@pytest.fixture
def adapter():
    return FailingTabularStore()


@pytest.fixture
def seed(adapter):
    """Create a table with a header and data rows before anything loads."""
    def _seed(table: str, header: list, rows: list) -> None:
        asyncio.run(adapter.ensure_table(table, header))
        if rows:
            asyncio.run(InMemoryTabularStore.append_rows(adapter, table, rows))
    return _seed


@pytest.fixture
def local_store(tmp_path):
    return LocalJsonStore(tmp_path / "storage.json")


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def auth():
    return AuthSession()


@pytest.fixture
def expense_store(adapter, local_store, auth, audit_logger):
    return ExpenseStore(adapter, local_store, auth=auth, audit_logger=audit_logger)


@pytest.fixture
def category_store(adapter, expense_store, auth, audit_logger):
    return CategoryStore(adapter, expense_store, auth=auth, audit_logger=audit_logger)


@pytest.fixture
def bank_store(adapter, auth, audit_logger):
    return BankStore(adapter, auth=auth, audit_logger=audit_logger)


@pytest.fixture
def loan_store(adapter, auth, audit_logger):
    return LoanStore(adapter, auth=auth, audit_logger=audit_logger)


@pytest.fixture
def sign_in(auth, user):
    """Sign the shared session in; stores react as they would in the app."""
    def _sign_in() -> None:
        asyncio.run(auth.sign_in(user))
    return _sign_in
