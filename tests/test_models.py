"""
Tests for Lumina Ledger

Test strategy:
1. Unit tests for individual components (models, engines, row codecs)
2. Store tests against an in-memory table store with injected failures
3. No real API calls in tests
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from lumina.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Bank,
    BankTransaction,
    CategoryRecord,
    Expense,
    ExpenseDraft,
    FilterState,
    ImportSummary,
    CategoryImportResult,
    LoanTransaction,
    MutationResult,
    TransactionType,
)
from lumina.models.rows import (
    clean_amount,
    format_amount,
    parse_bool,
    parse_iso_date,
    parse_timestamp,
    safe_get,
)


class TestRowHelpers:
    """Tests for spreadsheet cell parsing."""

    def test_safe_get_missing_cell(self):
        """Test that missing and blank cells fall back to the default."""
        assert safe_get(["a"], 3) == ""
        assert safe_get(["a", "  "], 1, "x") == "x"
        assert safe_get([" a "], 0) == "a"

    def test_clean_amount_strips_currency(self):
        """Test that currency symbols and separators are ignored."""
        assert clean_amount("$1,045.50") == Decimal("1045.50")
        assert clean_amount("৳ 200") == Decimal("200")
        assert clean_amount("-12") == Decimal("-12")

    def test_clean_amount_unreadable(self):
        """Test that text with no usable number gives None."""
        assert clean_amount("abc") is None
        assert clean_amount("") is None
        assert clean_amount("1.2.3") is None

    def test_format_amount(self):
        """Test that amounts are written without trailing zeros."""
        assert format_amount(Decimal("45.00")) == "45"
        assert format_amount(Decimal("12.50")) == "12.5"
        assert format_amount(Decimal("100")) == "100"

    def test_parse_iso_date_drops_time(self):
        """Test that only the date portion of a timestamp is used."""
        assert parse_iso_date("2024-01-05T10:00:00.000Z") == date(2024, 1, 5)
        assert parse_iso_date("2024-01-05") == date(2024, 1, 5)

    def test_parse_timestamp_accepts_z(self):
        """Test that JavaScript-style UTC timestamps parse."""
        parsed = parse_timestamp("2024-01-05T10:00:00Z")
        assert parsed == datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)

    def test_parse_bool(self):
        """Test sheet boolean spellings."""
        assert parse_bool("TRUE") is True
        assert parse_bool("false") is False
        assert parse_bool("") is False


class TestExpenseModels:
    """Tests for expense models."""

    def test_expense_to_row(self):
        """Test conversion to an Expenses tab row."""
        expense = Expense(
            id=7,
            date=date(2024, 2, 1),
            category="Travel",
            amount=Decimal("45.00"),
            note="Taxi",
        )
        assert expense.to_row() == ["7", "2024-02-01", "Travel", "45", "Taxi", ""]

    def test_expense_from_row(self):
        """Test reading a hand-edited sheet row."""
        expense = Expense.from_row(
            ["42", "2024-01-05T00:00:00.000Z", "Food", "$1,200.50", "Lunch"]
        )
        assert expense.id == 42
        assert expense.date == date(2024, 1, 5)
        assert expense.amount == Decimal("1200.50")
        assert expense.bank_id is None

    def test_expense_from_row_rejects_bad_amount(self):
        """Test that rows without a readable amount raise ValueError."""
        with pytest.raises(ValueError):
            Expense.from_row(["1", "2024-01-05", "Food", "n/a", ""])

    def test_expense_from_row_id_must_be_whole(self):
        """Test that fractional ids are not truncated silently."""
        assert Expense.from_row(["7.0", "2024-01-05", "Food", "1", ""]).id == 7
        with pytest.raises(ValueError):
            Expense.from_row(["1706789012345.25", "2024-01-05", "Food", "1", ""])
        renamed = Expense.from_row(["1706789012345.25", "2024-01-05", "Food", "1", ""], expense_id=3)
        assert renamed.id == 3

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(id=1, date=date(2024, 1, 1), category="Food", amount=Decimal("-1"))

    def test_expense_strips_whitespace(self):
        """Test that whitespace is stripped from the category."""
        expense = Expense(id=1, date=date(2024, 1, 1), category="  Food  ", amount=1)
        assert expense.category == "Food"

    def test_draft_with_id(self):
        """Test that a draft becomes an expense with the given id."""
        draft = ExpenseDraft(date=date(2024, 1, 1), category="Food", amount=Decimal("3"))
        expense = draft.with_id(12)
        assert expense.id == 12
        assert expense.category == "Food"
        assert expense.note == ""


class TestCategoryRecord:
    """Tests for the Categories tab codec."""

    def test_root_uses_null_sentinel(self):
        """Test that a missing parent is written as NULL."""
        record = CategoryRecord(id="c1", name="Food")
        assert record.to_row() == ["c1", "Food", "NULL"]

    def test_from_row_null_sentinel(self):
        """Test that NULL and blank parents both read as None."""
        assert CategoryRecord.from_row(["c1", "Food", "NULL"]).parent_id is None
        assert CategoryRecord.from_row(["c1", "Food"]).parent_id is None
        assert CategoryRecord.from_row(["c2", "Groceries", "c1"]).parent_id == "c1"


class TestBankModels:
    """Tests for bank and bank transaction models."""

    def test_bank_row_has_13_columns(self):
        """Test the Banks tab layout."""
        bank = Bank(id="B001", bank_name="City Bank", opening_balance=Decimal("1000"))
        row = bank.to_row()
        assert len(row) == 13
        assert row[9] == "1000"
        assert row[10] == "FALSE"

    def test_bank_from_minimal_row(self):
        """Test that missing columns get defaults."""
        bank = Bank.from_row(["B002", "Dutch Bangla"])
        assert bank.opening_balance == Decimal("0")
        assert bank.is_closed is False
        assert bank.sequence_number == 2

    def test_bank_id_format(self):
        """Test that ids must look like B001."""
        with pytest.raises(ValueError):
            Bank(id="X1", bank_name="Bad")

    def test_transaction_signed_amount(self):
        """Test that credits add and debits subtract."""
        credit = BankTransaction(
            id="TX1", bank_id="B001", type=TransactionType.CREDIT,
            amount=Decimal("5"), date=date(2024, 1, 1),
        )
        debit = credit.model_copy(update={"type": TransactionType.DEBIT})
        assert credit.signed_amount == Decimal("5")
        assert debit.signed_amount == Decimal("-5")

    def test_transaction_rejects_zero_amount(self):
        """Test that transaction amounts must be positive."""
        with pytest.raises(ValueError):
            BankTransaction(
                id="TX1", bank_id="B001", type=TransactionType.DEBIT,
                amount=Decimal("0"), date=date(2024, 1, 1),
            )

    def test_transaction_from_row_lowercase_type(self):
        """Test that the type column is case-insensitive."""
        tx = BankTransaction.from_row(
            ["TX1", "B001", "credit", "500", "2024-01-10", "Salary"]
        )
        assert tx.type == TransactionType.CREDIT
        assert tx.amount == Decimal("500")


class TestLoanModels:
    """Tests for loan models."""

    def test_defaults(self):
        """Test default medium and zero amounts."""
        tx = LoanTransaction(id="LTX-1-1", name="Rahim", date=date(2024, 1, 1))
        assert tx.medium == "Cash"
        assert tx.user_gave == Decimal("0")

    def test_row_layout(self):
        """Test the LoanTransactions tab layout (received before gave)."""
        tx = LoanTransaction(
            id="LTX-1-1", name="Rahim", user_received=Decimal("0"),
            user_gave=Decimal("300"), date=date(2024, 1, 1),
        )
        row = tx.to_row()
        assert len(row) == 8
        assert row[2] == "0"
        assert row[3] == "300"


class TestFilterState:
    """Tests for the analytics filter model."""

    def test_current_month_is_zero_based(self):
        """Test that January is month 0."""
        state = FilterState.current_month(date(2024, 1, 15))
        assert state.month == 0
        assert state.year == 2024

    def test_month_bounds(self):
        """Test that month 12 is rejected."""
        with pytest.raises(ValueError):
            FilterState(month=12)

    def test_has_date_range(self):
        """Test that either end of the range counts."""
        assert FilterState(start_date=date(2024, 1, 1)).has_date_range is True
        assert FilterState().has_date_range is False


class TestResultModels:
    """Tests for result models."""

    def test_mutation_result_failed_keeps_snapshot(self):
        """Test that a failed result carries the pre-mutation snapshot."""
        result = MutationResult.failed("add", "expense", "boom", [1, 2])
        assert result.success is False
        assert result.snapshot == [1, 2]

    def test_category_import_nothing_to_import(self):
        """Test that zero created is distinct from an error."""
        assert CategoryImportResult().nothing_to_import is True
        failed = CategoryImportResult(error_message="boom")
        assert failed.nothing_to_import is False
        assert failed.failed is True

    def test_import_summary_has_errors(self):
        """Test the error flag on import summaries."""
        assert ImportSummary(errors=1).has_errors is True
        assert ImportSummary().has_errors is False


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            description="Loaded",
        )
        assert event.event_type == AuditEventType.STORE_LOADED
        assert event.severity == AuditSeverity.INFO
        assert event.is_user_visible is False

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dict."""
        event = AuditEventBuilder.mutation_applied("add", "expense", "42", {"amount": "5"})
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "entity_added"
        assert log_dict["details"]["amount"] == "5"

    def test_persistence_failed_is_user_visible(self):
        """Test the rollback notice wording."""
        event = AuditEventBuilder.persistence_failed(
            "add", "bank_transaction", "TX1", "timeout"
        )
        assert event.is_user_visible is True
        assert event.severity == AuditSeverity.ERROR
        assert event.description.startswith("Failed to save bank transaction")
        assert event.error_message == "timeout"

    def test_category_delete_blocked(self):
        """Test that blocked deletes are shown to the user."""
        event = AuditEventBuilder.category_delete_blocked(
            "c1", "Food", "in_use", "Cannot delete"
        )
        assert event.event_type == AuditEventType.CATEGORY_DELETE_BLOCKED
        assert event.entity_id == "c1"
        assert event.is_user_visible is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
