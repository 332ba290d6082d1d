"""Loan Store: money lent to and borrowed from people."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from lumina.audit import AuditLogger
from lumina.engines import loans
from lumina.errors import LedgerValidationError
from lumina.models.audit import AuditEventBuilder
from lumina.models.loan import LOAN_TRANSACTION_COLUMNS, LoanSummary, LoanTransaction
from lumina.models.results import MutationResult
from lumina.models.rows import utc_now
from lumina.reactive import Signal
from lumina.services.auth import AuthSession
from lumina.services.storage.interface import TabularStoreInterface
from lumina.stores.base import LedgerStore, build_entity, parse_rows, to_amount
from lumina.stores.ids import new_loan_id


DEFAULT_TABLE = "LoanTransactions"


def _validate_amounts(user_gave: Decimal, user_received: Decimal) -> None:
    if user_gave < 0 or user_received < 0:
        raise LedgerValidationError("Amounts can't be negative", field="amount")
    if user_gave == 0 and user_received == 0:
        raise LedgerValidationError("Amount is required", field="amount")


class LoanStore(LedgerStore):
    """Loan transactions, netted per counterparty on demand."""

    entity_type = "loan_transaction"

    def __init__(
        self,
        adapter: TabularStoreInterface,
        auth: Optional[AuthSession] = None,
        audit_logger: Optional[AuditLogger] = None,
        table: str = DEFAULT_TABLE,
    ):
        self.transactions: Signal[list[LoanTransaction]] = Signal([])
        self._table = table
        super().__init__(adapter, auth=auth, audit_logger=audit_logger)

    async def _load_data(self) -> None:
        await self._adapter.ensure_table(self._table, LOAN_TRANSACTION_COLUMNS)
        rows = await self._adapter.list_rows(self._table)
        transactions = parse_rows(rows, LoanTransaction.from_row, self._table)
        self.transactions.set(transactions)
        self._audit.log(
            AuditEventBuilder.store_loaded(self.entity_type, len(transactions), "google_sheets")
        )

    def _reset(self) -> None:
        self.transactions.set([])

    def _signals(self) -> list[Signal]:
        return [self.transactions]

    def get(self, transaction_id: str) -> Optional[LoanTransaction]:
        return next((t for t in self.transactions.value if t.id == transaction_id), None)

    async def add_transaction(
        self,
        name: str,
        user_gave: Decimal = Decimal("0"),
        user_received: Decimal = Decimal("0"),
        date: Optional[dt.date] = None,
        medium: str = "Cash",
    ) -> MutationResult:
        """
        Record money given to or received from `name`.

        Raises:
            LedgerValidationError: Blank name, negative amounts, or both
                amounts zero
        """
        self._require_ready()
        if not (name or "").strip():
            raise LedgerValidationError("Name is required", field="name")
        user_gave = to_amount(user_gave or 0, field="user_gave")
        user_received = to_amount(user_received or 0, field="user_received")
        _validate_amounts(user_gave, user_received)

        now = utc_now()
        transaction = build_entity(
            LoanTransaction,
            id=new_loan_id(),
            name=name,
            user_gave=user_gave,
            user_received=user_received,
            date=date or dt.date.today(),
            medium=medium or "Cash",
            created_at=now,
            updated_at=now,
        )
        updated = [*self.transactions.value, transaction]

        async def persist() -> None:
            await self._adapter.append_rows(self._table, [transaction.to_row()])

        return await self._commit(
            self.transactions, updated, persist, "add", transaction.id, entity=transaction
        )

    async def update_transaction(self, transaction: LoanTransaction) -> MutationResult:
        self._require_ready()
        transaction = build_entity(LoanTransaction, **transaction.model_dump())
        current = self.transactions.value
        index = next((i for i, t in enumerate(current) if t.id == transaction.id), None)
        if index is None:
            raise LedgerValidationError(
                f"Loan transaction not found: {transaction.id}", field="id"
            )
        _validate_amounts(transaction.user_gave, transaction.user_received)

        refreshed = transaction.model_copy(update={"updated_at": utc_now()})
        updated = list(current)
        updated[index] = refreshed

        async def persist() -> None:
            await self._update_row(self._table, refreshed.id, refreshed.to_row())

        return await self._commit(
            self.transactions, updated, persist, "update", refreshed.id, entity=refreshed
        )

    async def delete_transaction(self, transaction_id: str) -> MutationResult:
        self._require_ready()
        if self.get(transaction_id) is None:
            raise LedgerValidationError(
                f"Loan transaction not found: {transaction_id}", field="id"
            )
        updated = [t for t in self.transactions.value if t.id != transaction_id]

        async def persist() -> None:
            await self._delete_row(self._table, transaction_id)

        return await self._commit(
            self.transactions, updated, persist, "delete", transaction_id
        )

    # ---- derived views ---------------------------------------------------

    def summaries(self) -> list[LoanSummary]:
        return loans.summarize(self.transactions.value)

    def receivables(self) -> list[LoanSummary]:
        return loans.receivables(self.transactions.value)

    def payables(self) -> list[LoanSummary]:
        return loans.payables(self.transactions.value)

    def net_position(self) -> Decimal:
        return loans.net_position(self.transactions.value)
