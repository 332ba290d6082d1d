"""
Category Store

Holds the flat category records and publishes the derived tree.
Expenses reference categories by name, so this store works closely
with the ExpenseStore:
- a rename rewrites the category name on every matching expense
- a delete is blocked while any expense still uses the name
- expense category names with no category record can be imported
"""

from typing import Optional

from lumina.audit import AuditLogger
from lumina.engines.category_tree import build_tree, category_path, find_node
from lumina.errors import CategoryNotFoundError, LedgerError, LedgerValidationError
from lumina.models.audit import AuditEventBuilder
from lumina.models.category import CATEGORY_COLUMNS, CategoryNode, CategoryRecord
from lumina.models.results import (
    CategoryDeleteReason,
    CategoryDeleteResult,
    CategoryImportResult,
    CategoryRenameResult,
    MutationResult,
)
from lumina.reactive import Signal, combine
from lumina.services.auth import AuthSession
from lumina.services.storage.interface import TabularStoreInterface
from lumina.stores.base import LedgerStore, StoreState, build_entity, parse_rows
from lumina.stores.expenses import ExpenseStore
from lumina.stores.ids import new_category_id


DEFAULT_TABLE = "Categories"


class CategoryStore(LedgerStore):
    """Flat category records plus the tree built from them."""

    entity_type = "category"

    def __init__(
        self,
        adapter: TabularStoreInterface,
        expense_store: ExpenseStore,
        auth: Optional[AuthSession] = None,
        audit_logger: Optional[AuditLogger] = None,
        table: str = DEFAULT_TABLE,
        sync_with_expenses: bool = True,
    ):
        self.records: Signal[list[CategoryRecord]] = Signal([])
        self.tree = combine([self.records], build_tree)
        self._expenses = expense_store
        self._table = table
        self._sync_with_expenses = sync_with_expenses
        super().__init__(adapter, auth=auth, audit_logger=audit_logger)

    # ---- lifecycle -------------------------------------------------------

    async def init(self) -> None:
        """Load, then import expense categories that have no record yet."""
        if self.state != StoreState.UNINITIALIZED:
            return
        await super().init()
        # An empty list after a failed load would re-import every category
        if self._sync_with_expenses and self.load_error is None:
            await self.sync_with_expenses()

    async def _load_data(self) -> None:
        await self._adapter.ensure_table(self._table, CATEGORY_COLUMNS)
        rows = await self._adapter.list_rows(self._table)
        records = parse_rows(rows, CategoryRecord.from_row, self._table)
        self.records.set(records)
        self._audit.log(
            AuditEventBuilder.store_loaded(self.entity_type, len(records), "google_sheets")
        )

    def _reset(self) -> None:
        self.records.set([])

    def _signals(self) -> list[Signal]:
        return [self.records]

    def dispose(self) -> None:
        self.tree.detach()
        super().dispose()

    async def sync_with_expenses(self) -> Optional[CategoryImportResult]:
        """Import missing expense categories once expenses are available."""
        if not self._expenses.is_initialized:
            await self._expenses.init()
        if not self._expenses.expenses.value:
            return None
        return await self.import_from_expenses()

    # ---- lookups ---------------------------------------------------------

    @property
    def forest(self) -> list[CategoryNode]:
        return self.tree.value

    def get(self, category_id: str) -> Optional[CategoryRecord]:
        return next((r for r in self.records.value if r.id == category_id), None)

    def find_node(self, category_id: str) -> Optional[CategoryNode]:
        return find_node(self.tree.value, category_id)

    def path(self, category_id: str) -> str:
        return category_path(self.records.value, category_id)

    def _name_in_use(self, name: str) -> bool:
        return any(e.category == name for e in self._expenses.expenses.value)

    # ---- mutations -------------------------------------------------------

    async def add_category(
        self,
        name: str,
        parent_id: Optional[str] = None,
    ) -> Optional[MutationResult]:
        """
        Create a category.

        Returns None without doing anything when a sibling with the same
        name (case-insensitive) already exists.
        """
        self._require_ready()
        name = (name or "").strip()
        if not name:
            raise LedgerValidationError("Category name is required", field="name")
        parent_id = parent_id or None
        if parent_id is not None and self.get(parent_id) is None:
            raise LedgerValidationError(f"Parent category not found: {parent_id}", field="parent_id")

        lowered = name.lower()
        if any(
            r.name.lower() == lowered and r.parent_id == parent_id
            for r in self.records.value
        ):
            return None

        record = build_entity(CategoryRecord, id=new_category_id(), name=name, parent_id=parent_id)
        updated = [*self.records.value, record]

        async def persist() -> None:
            await self._adapter.append_rows(self._table, [record.to_row()])

        return await self._commit(self.records, updated, persist, "add", record.id, entity=record)

    async def update_category(self, category_id: str, new_name: str) -> CategoryRenameResult:
        """
        Rename a category and cascade the new name to its expenses.

        Each expense is updated on its own; a failed expense update is
        rolled back alone and counted in `cascade_failures`.

        Raises:
            CategoryNotFoundError: Unknown id
        """
        self._require_ready()
        record = self.get(category_id)
        if record is None:
            raise CategoryNotFoundError(category_id)
        new_name = (new_name or "").strip()
        if not new_name:
            raise LedgerValidationError("Category name is required", field="name")

        old_name = record.name
        renamed = record.model_copy(update={"name": new_name})
        updated = [renamed if r.id == category_id else r for r in self.records.value]

        async def persist() -> None:
            await self._update_row(self._table, category_id, renamed.to_row())

        result = await self._commit(
            self.records, updated, persist, "update", category_id, entity=renamed
        )
        if not result.success:
            return CategoryRenameResult(
                success=False,
                category_id=category_id,
                old_name=old_name,
                new_name=new_name,
                error_message=result.error_message,
            )

        cascaded = 0
        failures = 0
        affected = [e for e in self._expenses.expenses.value if e.category == old_name]
        for expense in affected:
            try:
                outcome = await self._expenses.update_expense(
                    expense.model_copy(update={"category": new_name})
                )
            except LedgerError:
                # The expense went away while earlier updates were in flight
                failures += 1
                continue
            if outcome.success:
                cascaded += 1
            else:
                failures += 1

        if affected:
            self._audit.log(
                AuditEventBuilder.category_rename_cascaded(
                    category_id, old_name, new_name, cascaded, failures
                )
            )

        return CategoryRenameResult(
            success=True,
            category_id=category_id,
            old_name=old_name,
            new_name=new_name,
            cascaded=cascaded,
            cascade_failures=failures,
        )

    async def delete_category(self, category_id: str) -> CategoryDeleteResult:
        """
        Delete an unused, childless category.

        Checked in order: used by an expense, then has sub-categories.
        A blocked delete changes nothing and is reported, not raised.
        """
        self._require_ready()
        record = self.get(category_id)
        if record is None:
            return CategoryDeleteResult(
                success=False,
                category_id=category_id,
                reason=CategoryDeleteReason.NOT_FOUND,
                message=f"Category not found: {category_id}",
            )

        blocked: Optional[tuple[CategoryDeleteReason, str]] = None
        if self._name_in_use(record.name):
            blocked = (
                CategoryDeleteReason.IN_USE,
                f'Cannot delete category "{record.name}" because it is used in expenses.',
            )
        elif any(r.parent_id == category_id for r in self.records.value):
            blocked = (
                CategoryDeleteReason.HAS_CHILDREN,
                f'Cannot delete category "{record.name}" because it has sub-categories.',
            )

        if blocked is not None:
            reason, message = blocked
            self._audit.log(
                AuditEventBuilder.category_delete_blocked(
                    category_id, record.name, reason.value, message
                )
            )
            return CategoryDeleteResult(
                success=False, category_id=category_id, reason=reason, message=message
            )

        updated = [r for r in self.records.value if r.id != category_id]

        async def persist() -> None:
            await self._delete_row(self._table, category_id)

        result = await self._commit(self.records, updated, persist, "delete", category_id)
        if not result.success:
            return CategoryDeleteResult(
                success=False,
                category_id=category_id,
                reason=CategoryDeleteReason.PERSISTENCE_FAILED,
                message=result.error_message or "",
            )
        return CategoryDeleteResult(success=True, category_id=category_id)

    async def import_from_expenses(self) -> CategoryImportResult:
        """
        Create a root category for every expense category name that has
        no record yet (case-insensitive; the first spelling seen wins).

        All new records go to the sheet in one append.
        """
        self._require_ready()
        known = {r.name.lower() for r in self.records.value}
        names: list[str] = []
        for expense in self._expenses.expenses.value:
            name = expense.category.strip()
            if name and name.lower() not in known:
                known.add(name.lower())
                names.append(name)

        if not names:
            return CategoryImportResult()

        new_records = [
            build_entity(CategoryRecord, id=new_category_id(), name=name, parent_id=None)
            for name in names
        ]
        updated = [*self.records.value, *new_records]

        async def persist() -> None:
            await self._adapter.append_rows(self._table, [r.to_row() for r in new_records])

        result = await self._commit(self.records, updated, persist, "add", "batch")
        if not result.success:
            return CategoryImportResult(error_message=result.error_message)

        self._audit.log(AuditEventBuilder.categories_imported(names))
        return CategoryImportResult(created=len(names), names=names)
