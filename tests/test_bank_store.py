"""Tests for banks, bank transactions and statements."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from lumina.engines import balance
from lumina.errors import LedgerValidationError, StoreNotReadyError
from lumina.models.bank import BANK_COLUMNS, Bank, BankTransaction, TransactionType


def _tx(tx_id, bank_id, kind, amount, day, details=""):
    return BankTransaction(
        id=tx_id,
        bank_id=bank_id,
        type=kind,
        amount=Decimal(amount),
        date=day,
        details=details,
    )


@pytest.fixture
def ready_banks(bank_store, sign_in):
    sign_in()
    return bank_store


class TestBanks:
    """Tests for bank records."""

    def test_sequential_ids(self, ready_banks, adapter):
        """Test that banks are numbered B001, B002..."""
        asyncio.run(ready_banks.add_bank(bank_name="City Bank", opening_balance="1000"))
        asyncio.run(ready_banks.add_bank(bank_name="Dutch Bangla"))

        assert [b.id for b in ready_banks.banks.value] == ["B001", "B002"]
        assert ready_banks.get_bank("B001").opening_balance == Decimal("1000")
        assert len(adapter.snapshot("Banks")) == 3

    def test_ids_continue_after_loaded_rows(self, bank_store, seed, sign_in):
        """Test that the next id follows the highest existing sequence."""
        seed("Banks", BANK_COLUMNS, [["B007", "Old Bank"]])
        sign_in()
        asyncio.run(bank_store.add_bank(bank_name="New Bank"))
        assert bank_store.banks.value[-1].id == "B008"

    def test_validation(self, ready_banks):
        """Test required name, unknown fields and numeric balance."""
        with pytest.raises(LedgerValidationError):
            asyncio.run(ready_banks.add_bank(bank_name=" "))
        with pytest.raises(LedgerValidationError):
            asyncio.run(ready_banks.add_bank(bank_name="X", swift="ABC"))
        with pytest.raises(LedgerValidationError):
            asyncio.run(ready_banks.add_bank(bank_name="X", opening_balance="lots"))
        assert ready_banks.banks.value == []

    def test_requires_load(self, bank_store):
        """Test that mutations before loading raise."""
        with pytest.raises(StoreNotReadyError):
            asyncio.run(bank_store.add_bank(bank_name="X"))

    def test_opening_balance_frozen_after_transactions(self, ready_banks):
        """Test that the opening balance can't move once there is history."""
        asyncio.run(ready_banks.add_bank(bank_name="City", opening_balance=100))
        bank = ready_banks.get_bank("B001")

        result = asyncio.run(ready_banks.update_bank(bank.model_copy(update={"opening_balance": Decimal("200")})))
        assert result.success is True

        asyncio.run(ready_banks.add_transaction("B001", TransactionType.CREDIT, 5))
        bank = ready_banks.get_bank("B001")
        with pytest.raises(LedgerValidationError):
            asyncio.run(ready_banks.update_bank(bank.model_copy(update={"opening_balance": Decimal("0")})))

        renamed = bank.model_copy(update={"account_name": "Savings"})
        assert asyncio.run(ready_banks.update_bank(renamed)).success is True

    def test_update_revalidates_copied_bank(self, ready_banks, adapter):
        """Test that an edit made with model_copy can't blank the bank name."""
        asyncio.run(ready_banks.add_bank(bank_name="City"))
        bank = ready_banks.get_bank("B001")
        before = adapter.snapshot("Banks")

        with pytest.raises(LedgerValidationError):
            asyncio.run(ready_banks.update_bank(bank.model_copy(update={"bank_name": "  "})))

        assert ready_banks.get_bank("B001").bank_name == "City"
        assert adapter.snapshot("Banks") == before

    def test_close_bank_blocks_new_transactions(self, ready_banks, adapter):
        """Test that closed banks accept no new transactions."""
        asyncio.run(ready_banks.add_bank(bank_name="City"))
        asyncio.run(ready_banks.close_bank("B001"))

        assert ready_banks.get_bank("B001").is_closed is True
        assert ready_banks.active_banks() == []
        assert adapter.snapshot("Banks")[1][10] == "TRUE"
        with pytest.raises(LedgerValidationError, match="Bank must exist and be active"):
            asyncio.run(ready_banks.add_transaction("B001", TransactionType.DEBIT, 5))

    def test_failed_add_rolls_back(self, ready_banks, adapter, audit_logger):
        """Test that a failed bank append leaves no bank behind."""
        adapter.fail_writes = True
        result = asyncio.run(ready_banks.add_bank(bank_name="City"))

        assert result.success is False
        assert ready_banks.banks.value == []
        assert audit_logger.latest_notice.message == (
            "Failed to save bank in Google Sheets. Your change was undone."
        )


class TestTransactions:
    """Tests for debits and credits."""

    def test_balance_after_credit_and_debit(self, ready_banks):
        """Test 1000 opening + 500 credit - 200 debit = 1300."""
        asyncio.run(ready_banks.add_bank(bank_name="City", opening_balance=1000))
        asyncio.run(ready_banks.add_transaction("B001", TransactionType.CREDIT, 500, date(2024, 1, 10)))
        asyncio.run(ready_banks.add_transaction("B001", TransactionType.DEBIT, 200, date(2024, 1, 12)))

        assert ready_banks.current_balance("B001") == Decimal("1300")
        assert ready_banks.balances() == {"B001": Decimal("1300")}

    def test_amount_and_bank_checks(self, ready_banks):
        """Test that amounts must be positive and the bank must exist."""
        asyncio.run(ready_banks.add_bank(bank_name="City"))
        with pytest.raises(LedgerValidationError):
            asyncio.run(ready_banks.add_transaction("B001", TransactionType.CREDIT, 0))
        with pytest.raises(LedgerValidationError):
            asyncio.run(ready_banks.add_transaction("B404", TransactionType.CREDIT, 5))

    def test_update_and_delete(self, ready_banks, adapter):
        """Test that transaction rows are updated and removed by id."""
        asyncio.run(ready_banks.add_bank(bank_name="City"))
        added = asyncio.run(ready_banks.add_transaction("B001", TransactionType.CREDIT, 5))
        tx = added.entity

        asyncio.run(ready_banks.update_transaction(tx.model_copy(update={"details": "Salary"})))
        assert adapter.snapshot("BankTransactions")[1][5] == "Salary"

        asyncio.run(ready_banks.delete_transaction(tx.id))
        assert ready_banks.transactions.value == []
        assert adapter.snapshot("BankTransactions")[1:] == []

    def test_update_rejects_non_positive_amount(self, ready_banks):
        """Test that an edit can't zero out a transaction."""
        asyncio.run(ready_banks.add_bank(bank_name="City"))
        tx = asyncio.run(ready_banks.add_transaction("B001", TransactionType.CREDIT, 5)).entity
        with pytest.raises(LedgerValidationError):
            asyncio.run(ready_banks.update_transaction(tx.model_copy(update={"amount": Decimal("0")})))

    def test_failed_delete_restores_transaction(self, ready_banks, adapter):
        """Test rollback on a failed transaction delete."""
        asyncio.run(ready_banks.add_bank(bank_name="City"))
        tx = asyncio.run(ready_banks.add_transaction("B001", TransactionType.CREDIT, 5)).entity
        adapter.failing_tables = {"BankTransactions"}

        result = asyncio.run(ready_banks.delete_transaction(tx.id))

        assert result.success is False
        assert result.entity_type == "bank_transaction"
        assert ready_banks.get_transaction(tx.id) is not None


class TestBalanceEngine:
    """Tests for the pure balance and statement functions."""

    @pytest.fixture
    def banks(self):
        return [Bank(id="B001", bank_name="City", opening_balance=Decimal("1000"))]

    @pytest.fixture
    def transactions(self):
        return [
            _tx("T3", "B001", TransactionType.DEBIT, "50", date(2024, 2, 1), "Groceries"),
            _tx("T1", "B001", TransactionType.CREDIT, "500", date(2024, 1, 10), "Salary"),
            _tx("T2", "B001", TransactionType.DEBIT, "200", date(2024, 1, 12), "Rent"),
            _tx("T4", "B001", TransactionType.CREDIT, "20", date(2024, 2, 1), "Refund"),
            _tx("X1", "B002", TransactionType.CREDIT, "999", date(2024, 1, 1)),
        ]

    def test_unknown_bank(self, banks, transactions):
        """Test that unknown banks have zero balance and an empty statement."""
        assert balance.current_balance(banks, transactions, "B404") == Decimal("0")
        stmt = balance.statement(banks, transactions, "B404", date(2024, 1, 1), date(2024, 12, 31))
        assert stmt.transactions == []
        assert stmt.opening_balance == Decimal("0")

    def test_transactions_for_unknown_bank_are_ignored(self, banks, transactions):
        """Test that orphan transactions don't create balances."""
        assert balance.balances(banks, transactions) == {"B001": Decimal("1270")}

    def test_statement_running_balance(self, banks, transactions):
        """Test opening balance, inclusive range and running balance."""
        stmt = balance.statement(banks, transactions, "B001", date(2024, 1, 12), date(2024, 2, 1))

        assert stmt.opening_balance == Decimal("1500")
        # stable sort: T3 then T4 on the same day
        assert [r.id for r in stmt.transactions] == ["T2", "T3", "T4"]
        assert [r.running_balance for r in stmt.transactions] == [
            Decimal("1300"), Decimal("1250"), Decimal("1270"),
        ]
        assert stmt.closing_balance == Decimal("1270")
        assert stmt.total_credits == Decimal("20")
        assert stmt.total_debits == Decimal("250")

    def test_statement_filters(self, banks, transactions):
        """Test that type and details filters only pick listed rows."""
        stmt = balance.statement(
            banks, transactions, "B001", date(2024, 1, 1), date(2024, 12, 31),
            type_filter=TransactionType.DEBIT, details="groc",
        )
        assert stmt.opening_balance == Decimal("1000")
        assert [r.id for r in stmt.transactions] == ["T3"]
        assert stmt.closing_balance == Decimal("950")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
