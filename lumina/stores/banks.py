"""
Bank Store

Bank accounts and their debit/credit log, kept in two tabs. Balances
and statements are derived on demand by lumina.engines.balance.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from lumina.audit import AuditLogger
from lumina.engines import balance
from lumina.errors import LedgerValidationError
from lumina.models.audit import AuditEventBuilder
from lumina.models.bank import (
    BANK_COLUMNS,
    BANK_TRANSACTION_COLUMNS,
    Bank,
    BankTransaction,
    Statement,
    TransactionType,
)
from lumina.models.results import MutationResult
from lumina.models.rows import utc_now
from lumina.reactive import Signal
from lumina.services.auth import AuthSession
from lumina.services.storage.interface import TabularStoreInterface
from lumina.stores.base import LedgerStore, build_entity, parse_rows, to_amount
from lumina.stores.ids import new_transaction_id, next_bank_id


DEFAULT_BANKS_TABLE = "Banks"
DEFAULT_TRANSACTIONS_TABLE = "BankTransactions"

# Fields a caller may set on add_bank
BANK_FIELDS = (
    "bank_name",
    "bank_code",
    "account_name",
    "account_number",
    "account_type",
    "home_branch",
    "branch_zone",
    "branch_district",
    "opening_balance",
)


class BankStore(LedgerStore):
    """Banks plus bank transactions."""

    entity_type = "bank"

    def __init__(
        self,
        adapter: TabularStoreInterface,
        auth: Optional[AuthSession] = None,
        audit_logger: Optional[AuditLogger] = None,
        banks_table: str = DEFAULT_BANKS_TABLE,
        transactions_table: str = DEFAULT_TRANSACTIONS_TABLE,
    ):
        self.banks: Signal[list[Bank]] = Signal([])
        self.transactions: Signal[list[BankTransaction]] = Signal([])
        self._banks_table = banks_table
        self._transactions_table = transactions_table
        super().__init__(adapter, auth=auth, audit_logger=audit_logger)

    async def _load_data(self) -> None:
        await self._adapter.ensure_table(self._banks_table, BANK_COLUMNS)
        await self._adapter.ensure_table(self._transactions_table, BANK_TRANSACTION_COLUMNS)

        bank_rows = await self._adapter.list_rows(self._banks_table)
        transaction_rows = await self._adapter.list_rows(self._transactions_table)
        banks = parse_rows(bank_rows, Bank.from_row, self._banks_table)
        transactions = parse_rows(
            transaction_rows, BankTransaction.from_row, self._transactions_table
        )

        self.banks.set(banks)
        self.transactions.set(transactions)
        self._audit.log(AuditEventBuilder.store_loaded("bank", len(banks), "google_sheets"))
        self._audit.log(
            AuditEventBuilder.store_loaded("bank_transaction", len(transactions), "google_sheets")
        )

    def _reset(self) -> None:
        self.banks.set([])
        self.transactions.set([])

    def _signals(self) -> list[Signal]:
        return [self.banks, self.transactions]

    # ---- lookups ---------------------------------------------------------

    def get_bank(self, bank_id: str) -> Optional[Bank]:
        return next((b for b in self.banks.value if b.id == bank_id), None)

    def get_transaction(self, transaction_id: str) -> Optional[BankTransaction]:
        return next((t for t in self.transactions.value if t.id == transaction_id), None)

    def active_banks(self) -> list[Bank]:
        """Banks that can take new transactions."""
        return [b for b in self.banks.value if not b.is_closed]

    def has_transactions(self, bank_id: str) -> bool:
        return any(t.bank_id == bank_id for t in self.transactions.value)

    # ---- banks -----------------------------------------------------------

    async def add_bank(self, **fields: Any) -> MutationResult:
        """
        Create a bank with the next sequential id.

        Raises:
            LedgerValidationError: Missing bank name, unknown field or
                non-numeric opening balance
        """
        self._require_ready()
        unknown = set(fields) - set(BANK_FIELDS)
        if unknown:
            raise LedgerValidationError(f"Unknown bank fields: {sorted(unknown)}")
        if not str(fields.get("bank_name") or "").strip():
            raise LedgerValidationError("Bank name is required", field="bank_name")

        values = {k: v for k, v in fields.items() if v is not None}
        values["opening_balance"] = to_amount(
            fields.get("opening_balance") or 0, field="opening_balance"
        )
        now = utc_now()
        bank = build_entity(
            Bank,
            id=next_bank_id(self.banks.value),
            is_closed=False,
            created_at=now,
            updated_at=now,
            **values,
        )
        updated = [*self.banks.value, bank]

        async def persist() -> None:
            await self._adapter.append_rows(self._banks_table, [bank.to_row()])

        return await self._commit(self.banks, updated, persist, "add", bank.id, entity=bank)

    async def update_bank(self, bank: Bank) -> MutationResult:
        """
        Replace a bank record, refreshing updated_at.

        The opening balance is frozen once the bank has transactions.
        """
        self._require_ready()
        bank = build_entity(Bank, **bank.model_dump())
        current = self.banks.value
        index = next((i for i, b in enumerate(current) if b.id == bank.id), None)
        if index is None:
            raise LedgerValidationError(f"Bank not found: {bank.id}", field="id")
        if (
            bank.opening_balance != current[index].opening_balance
            and self.has_transactions(bank.id)
        ):
            raise LedgerValidationError(
                "Opening balance can't change once the bank has transactions",
                field="opening_balance",
            )

        refreshed = bank.model_copy(update={"updated_at": utc_now()})
        updated = list(current)
        updated[index] = refreshed

        async def persist() -> None:
            await self._update_row(self._banks_table, refreshed.id, refreshed.to_row())

        return await self._commit(
            self.banks, updated, persist, "update", refreshed.id, entity=refreshed
        )

    async def close_bank(self, bank_id: str) -> MutationResult:
        """Mark a bank closed; it stays visible for reporting."""
        bank = self.get_bank(bank_id)
        if bank is None:
            raise LedgerValidationError(f"Bank not found: {bank_id}", field="id")
        return await self.update_bank(bank.model_copy(update={"is_closed": True}))

    # ---- transactions ----------------------------------------------------

    async def add_transaction(
        self,
        bank_id: str,
        type: TransactionType,
        amount: Decimal,
        date: Optional[dt.date] = None,
        details: str = "",
    ) -> MutationResult:
        """
        Record a debit or credit.

        Raises:
            LedgerValidationError: Amount not positive, or bank missing
                or closed
        """
        self._require_ready()
        amount = to_amount(amount)
        if amount <= 0:
            raise LedgerValidationError("Amount must be greater than 0", field="amount")
        bank = self.get_bank(bank_id)
        if bank is None or bank.is_closed:
            raise LedgerValidationError("Bank must exist and be active", field="bank_id")

        now = utc_now()
        transaction = build_entity(
            BankTransaction,
            id=new_transaction_id(),
            bank_id=bank_id,
            type=type,
            amount=amount,
            date=date or dt.date.today(),
            details=details or "",
            created_at=now,
            updated_at=now,
        )
        updated = [*self.transactions.value, transaction]

        async def persist() -> None:
            await self._adapter.append_rows(self._transactions_table, [transaction.to_row()])

        return await self._commit(
            self.transactions,
            updated,
            persist,
            "add",
            transaction.id,
            entity=transaction,
            entity_type="bank_transaction",
        )

    async def update_transaction(self, transaction: BankTransaction) -> MutationResult:
        """Replace a transaction. Closed banks are not re-checked here."""
        self._require_ready()
        transaction = build_entity(BankTransaction, **transaction.model_dump())
        current = self.transactions.value
        index = next((i for i, t in enumerate(current) if t.id == transaction.id), None)
        if index is None:
            raise LedgerValidationError(
                f"Transaction not found: {transaction.id}", field="id"
            )
        if transaction.amount <= 0:
            raise LedgerValidationError("Amount must be greater than 0", field="amount")

        refreshed = transaction.model_copy(update={"updated_at": utc_now()})
        updated = list(current)
        updated[index] = refreshed

        async def persist() -> None:
            await self._update_row(self._transactions_table, refreshed.id, refreshed.to_row())

        return await self._commit(
            self.transactions,
            updated,
            persist,
            "update",
            refreshed.id,
            entity=refreshed,
            entity_type="bank_transaction",
        )

    async def delete_transaction(self, transaction_id: str) -> MutationResult:
        self._require_ready()
        if self.get_transaction(transaction_id) is None:
            raise LedgerValidationError(
                f"Transaction not found: {transaction_id}", field="id"
            )
        updated = [t for t in self.transactions.value if t.id != transaction_id]

        async def persist() -> None:
            await self._delete_row(self._transactions_table, transaction_id)

        return await self._commit(
            self.transactions,
            updated,
            persist,
            "delete",
            transaction_id,
            entity_type="bank_transaction",
        )

    # ---- derived views ---------------------------------------------------

    def current_balance(self, bank_id: str) -> Decimal:
        return balance.current_balance(self.banks.value, self.transactions.value, bank_id)

    def balances(self) -> dict[str, Decimal]:
        return balance.balances(self.banks.value, self.transactions.value)

    def statement(
        self,
        bank_id: str,
        start_date: dt.date,
        end_date: dt.date,
        type_filter: Optional[TransactionType] = None,
        details: Optional[str] = None,
    ) -> Statement:
        return balance.statement(
            self.banks.value,
            self.transactions.value,
            bank_id,
            start_date,
            end_date,
            type_filter=type_filter,
            details=details,
        )
