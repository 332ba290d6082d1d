"""
Data Models Package

This package contains all Pydantic models used in Lumina Ledger.
All data flowing through the system must conform to these schemas.
"""

from lumina.models.analytics import AnalyticsResult, FilterState
from lumina.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Notice,
)
from lumina.models.bank import (
    BANK_COLUMNS,
    BANK_TRANSACTION_COLUMNS,
    Bank,
    BankTransaction,
    Statement,
    StatementRow,
    TransactionType,
)
from lumina.models.category import CATEGORY_COLUMNS, CategoryNode, CategoryRecord
from lumina.models.expense import EXPENSE_COLUMNS, Expense, ExpenseDraft
from lumina.models.loan import LOAN_TRANSACTION_COLUMNS, LoanSummary, LoanTransaction
from lumina.models.results import (
    CategoryDeleteReason,
    CategoryDeleteResult,
    CategoryImportResult,
    CategoryRenameResult,
    ImportSummary,
    MutationResult,
)

__all__ = [
    # Analytics
    "AnalyticsResult",
    "FilterState",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    "Notice",
    # Banks
    "BANK_COLUMNS",
    "BANK_TRANSACTION_COLUMNS",
    "Bank",
    "BankTransaction",
    "Statement",
    "StatementRow",
    "TransactionType",
    # Categories
    "CATEGORY_COLUMNS",
    "CategoryNode",
    "CategoryRecord",
    # Expenses
    "EXPENSE_COLUMNS",
    "Expense",
    "ExpenseDraft",
    # Loans
    "LOAN_TRANSACTION_COLUMNS",
    "LoanSummary",
    "LoanTransaction",
    # Results
    "CategoryDeleteReason",
    "CategoryDeleteResult",
    "CategoryImportResult",
    "CategoryRenameResult",
    "ImportSummary",
    "MutationResult",
]
