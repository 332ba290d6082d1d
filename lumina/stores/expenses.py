"""
Expense Store

Two persistence modes:
- remote: a Google session is active; each mutation touches one row
- local: no session; the whole collection is rewritten to the local
  JSON store under a single key

Ids are max(existing id) + 1 over the current collection. That never
collides while working offline, unlike wall-clock ids.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from lumina.audit import AuditLogger
from lumina.errors import LedgerValidationError, StoreNotReadyError
from lumina.models.audit import AuditEventBuilder
from lumina.models.expense import EXPENSE_COLUMNS, Expense, ExpenseDraft
from lumina.models.results import MutationResult
from lumina.models.rows import parse_numeric_id, safe_get
from lumina.reactive import Signal
from lumina.services.auth import AuthSession
from lumina.services.storage.interface import TabularStoreInterface
from lumina.services.storage.local import LocalJsonStore
from lumina.stores.base import LedgerStore, build_entity, to_amount


logger = structlog.get_logger(__name__)

DEFAULT_TABLE = "Spending"
DEFAULT_LOCAL_KEY = "lumina_expenses"


class ExpenseStore(LedgerStore):
    """Authoritative in-memory expense collection."""

    entity_type = "expense"

    def __init__(
        self,
        adapter: TabularStoreInterface,
        local_store: LocalJsonStore,
        auth: Optional[AuthSession] = None,
        audit_logger: Optional[AuditLogger] = None,
        table: str = DEFAULT_TABLE,
        local_key: str = DEFAULT_LOCAL_KEY,
    ):
        self.expenses: Signal[list[Expense]] = Signal([])
        self._local = local_store
        self._table = table
        self._local_key = local_key
        self._row_keys: dict[int, str] = {}
        super().__init__(adapter, auth=auth, audit_logger=audit_logger)

    @property
    def is_remote(self) -> bool:
        return self._auth is not None and self._auth.is_authenticated

    # ---- loading ---------------------------------------------------------

    async def _load_data(self) -> None:
        self._row_keys = {}
        if self.is_remote:
            await self._adapter.ensure_table(self._table, EXPENSE_COLUMNS)
            rows = await self._adapter.list_rows(self._table)
            expenses = self._parse_remote(rows)
            # Sheets append at the bottom; show newest first
            expenses.sort(key=lambda e: e.date, reverse=True)
            source = "google_sheets"
        else:
            expenses = self._read_local()
            source = "local"

        self.expenses.set(expenses)
        self._audit.log(AuditEventBuilder.store_loaded(self.entity_type, len(expenses), source))

    def _parse_remote(self, rows: Sequence[list]) -> list[Expense]:
        """
        Parse sheet rows, keyed by column A.

        Rows whose column A is numeric but not a unique whole number
        (older imports wrote ids like "1706789012345.25") get fresh ids
        above the current maximum. Their original cell text is kept in
        `_row_keys` so the row can still be found for updates and deletes.
        """
        data_rows = [row for row in rows[1:] if any(str(cell).strip() for cell in row)]
        numbers = [parse_numeric_id(safe_get(row, 0)) for row in data_rows]

        taken: set[int] = set()
        clean_ids: list[Optional[int]] = []
        for number in numbers:
            if (
                number is not None
                and number == number.to_integral_value()
                and number >= 1
                and int(number) not in taken
            ):
                taken.add(int(number))
                clean_ids.append(int(number))
            else:
                clean_ids.append(None)

        next_id = max(taken, default=0) + 1
        expenses: list[Expense] = []
        skipped = 0
        for row, number, expense_id in zip(data_rows, numbers, clean_ids):
            if number is None:
                skipped += 1
                continue
            rekeyed = expense_id is None
            try:
                expense = Expense.from_row(row, expense_id=next_id if rekeyed else expense_id)
            except (ValueError, ArithmeticError):
                skipped += 1
                continue
            if rekeyed:
                next_id += 1
            key = safe_get(row, 0)
            if key != str(expense.id):
                self._row_keys[expense.id] = key
            expenses.append(expense)

        if skipped:
            logger.warning("rows_skipped", table=self._table, skipped=skipped)
        if self._row_keys:
            logger.info("expense_ids_rekeyed", table=self._table, count=len(self._row_keys))
        return expenses

    def _row_key(self, expense_id: int) -> str:
        """Column A text of the row holding `expense_id`."""
        return self._row_keys.get(expense_id, str(expense_id))

    def _row_matches(self, cell: str, entity_id: str) -> bool:
        # "7", "7.0" and "7.00" all name expense 7
        if cell == entity_id:
            return True
        number = parse_numeric_id(cell)
        return number is not None and number == parse_numeric_id(entity_id)

    def _read_local(self) -> list[Expense]:
        expenses = []
        for item in self._local.get(self._local_key, []) or []:
            try:
                expenses.append(Expense.model_validate(item))
            except ValueError:
                continue
        return expenses

    def _write_local(self, expenses: Sequence[Expense]) -> None:
        self._local.set(self._local_key, [e.model_dump(mode="json") for e in expenses])

    def _reset(self) -> None:
        self._row_keys = {}
        self.expenses.set([])

    def _signals(self) -> list[Signal]:
        return [self.expenses]

    async def _on_signed_out(self) -> None:
        await self.reload()

    async def _ensure_writable(self) -> None:
        # Local mode can load on demand; remote mode must have loaded first
        if self.is_initialized:
            return
        if self.is_remote:
            raise StoreNotReadyError("expense store is not loaded yet")
        await self.init()

    # ---- helpers ---------------------------------------------------------

    def next_id(self) -> int:
        return max((e.id for e in self.expenses.value), default=0) + 1

    def get(self, expense_id: int) -> Optional[Expense]:
        return next((e for e in self.expenses.value if e.id == expense_id), None)

    async def _persist_all(self, expenses: list[Expense]) -> None:
        self._write_local(expenses)

    # ---- mutations -------------------------------------------------------

    async def add_expense(
        self,
        amount: Decimal,
        category: str,
        note: str = "",
        date: Optional[dt.date] = None,
        bank_id: Optional[str] = None,
    ) -> MutationResult:
        """Record a new expense at the front of the collection."""
        await self._ensure_writable()
        amount = to_amount(amount)
        if amount <= 0:
            raise LedgerValidationError("Amount must be greater than 0", field="amount")

        expense = build_entity(
            Expense,
            id=self.next_id(),
            date=date or dt.date.today(),
            category=category,
            amount=amount,
            note=note or "",
            bank_id=bank_id or None,
        )
        updated = [expense, *self.expenses.value]

        async def persist() -> None:
            if self.is_remote:
                await self._adapter.append_rows(self._table, [expense.to_row()])
            else:
                await self._persist_all(updated)

        return await self._commit(
            self.expenses, updated, persist, "add", str(expense.id), entity=expense
        )

    async def update_expense(self, expense: Expense) -> MutationResult:
        """
        Replace the expense with the same id.

        Edits usually come from `model_copy(update=...)`, which skips
        pydantic validation, so the expense is validated again here.
        """
        await self._ensure_writable()
        expense = build_entity(Expense, **expense.model_dump())
        if expense.amount <= 0:
            raise LedgerValidationError("Amount must be greater than 0", field="amount")

        current = self.expenses.value
        index = next((i for i, e in enumerate(current) if e.id == expense.id), None)
        if index is None:
            raise LedgerValidationError(f"Expense not found: {expense.id}", field="id")

        updated = list(current)
        updated[index] = expense
        row_key = self._row_key(expense.id)

        async def persist() -> None:
            if self.is_remote:
                await self._update_row(self._table, row_key, expense.to_row())
            else:
                await self._persist_all(updated)

        result = await self._commit(
            self.expenses, updated, persist, "update", str(expense.id), entity=expense
        )
        if result.success:
            # The row now carries the canonical id in column A
            self._row_keys.pop(expense.id, None)
        return result

    async def delete_expense(self, expense_id: int) -> MutationResult:
        await self._ensure_writable()
        if self.get(expense_id) is None:
            raise LedgerValidationError(f"Expense not found: {expense_id}", field="id")

        updated = [e for e in self.expenses.value if e.id != expense_id]
        row_key = self._row_key(expense_id)

        async def persist() -> None:
            if self.is_remote:
                await self._delete_row(self._table, row_key)
            else:
                await self._persist_all(updated)

        result = await self._commit(
            self.expenses, updated, persist, "delete", str(expense_id)
        )
        if result.success:
            self._row_keys.pop(expense_id, None)
        return result

    async def append_expenses(self, drafts: Sequence[ExpenseDraft]) -> MutationResult:
        """
        Add many expenses with a single append (used by the importer).

        Ids are numbered sequentially from next_id(). The batch succeeds
        or rolls back as a whole.
        """
        await self._ensure_writable()
        if not drafts:
            return MutationResult.ok("append", self.entity_type)

        first_id = self.next_id()
        new_expenses = [draft.with_id(first_id + i) for i, draft in enumerate(drafts)]
        updated = [*new_expenses, *self.expenses.value]

        async def persist() -> None:
            if self.is_remote:
                await self._adapter.append_rows(
                    self._table, [e.to_row() for e in new_expenses]
                )
            else:
                await self._persist_all(updated)

        return await self._commit(
            self.expenses,
            updated,
            persist,
            "add",
            f"{new_expenses[0].id}-{new_expenses[-1].id}",
            entity=new_expenses,
        )

    # ---- read helpers ----------------------------------------------------

    def daily_total(self, day: Optional[dt.date] = None) -> Decimal:
        day = day or dt.date.today()
        return sum((e.amount for e in self.expenses.value if e.date == day), Decimal("0"))

    def monthly_total(self, year: Optional[int] = None, month: Optional[int] = None) -> Decimal:
        """Total for a calendar month (1-12); defaults to this month."""
        year, month = self._year_month(year, month)
        return sum(
            (
                e.amount for e in self.expenses.value
                if e.date.year == year and e.date.month == month
            ),
            Decimal("0"),
        )

    def category_totals(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> dict[str, Decimal]:
        """Per-category totals for a calendar month (1-12)."""
        year, month = self._year_month(year, month)
        totals: dict[str, Decimal] = {}
        for e in self.expenses.value:
            if e.date.year == year and e.date.month == month:
                totals[e.category] = totals.get(e.category, Decimal("0")) + e.amount
        return totals

    @staticmethod
    def _year_month(year: Optional[int], month: Optional[int]) -> tuple[int, int]:
        today = dt.date.today()
        return year or today.year, month or today.month
