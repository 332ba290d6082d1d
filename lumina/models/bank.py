"""
Bank Models

Banks carry an opening balance only; the current balance is always
computed from the transaction log (see lumina.engines.balance).
"""

import datetime as dt
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from lumina.models.rows import (
    clean_amount,
    format_amount,
    parse_bool,
    parse_iso_date,
    parse_timestamp,
    safe_get,
    utc_now,
)


BANK_COLUMNS = [
    "ID",
    "BankName",
    "BankCode",
    "AccountName",
    "AccountNumber",
    "AccountType",
    "HomeBranch",
    "BranchZone",
    "BranchDistrict",
    "OpeningBalance",
    "IsClosed",
    "CreatedAt",
    "UpdatedAt",
]

BANK_TRANSACTION_COLUMNS = [
    "ID",
    "BankID",
    "Type",
    "Amount",
    "Date",
    "Details",
    "CreatedAt",
    "UpdatedAt",
]


class TransactionType(str, Enum):
    """Direction of money for a bank account."""
    DEBIT = "DEBIT"    # money out
    CREDIT = "CREDIT"  # money in


class Bank(BaseModel):
    """A bank account."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        pattern=r"^B\d{3,}$",
        description="Sequential id: B001, B002, ..."
    )
    bank_name: str = Field(..., min_length=1, max_length=200)
    bank_code: str = ""
    account_name: str = ""
    account_number: str = ""
    account_type: str = ""
    home_branch: str = ""
    branch_zone: str = ""
    branch_district: str = ""
    opening_balance: Decimal = Field(
        default=Decimal("0"),
        description="Balance before the first recorded transaction"
    )
    is_closed: bool = Field(
        default=False,
        description="Closed accounts stay visible but take no new transactions"
    )
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)

    @property
    def sequence_number(self) -> int:
        return int(self.id[1:])

    def to_row(self) -> list:
        return [
            self.id,
            self.bank_name,
            self.bank_code,
            self.account_name,
            self.account_number,
            self.account_type,
            self.home_branch,
            self.branch_zone,
            self.branch_district,
            format_amount(self.opening_balance),
            "TRUE" if self.is_closed else "FALSE",
            self.created_at.isoformat(),
            self.updated_at.isoformat(),
        ]

    @classmethod
    def from_row(cls, row: list) -> "Bank":
        created = safe_get(row, 11)
        updated = safe_get(row, 12)
        return cls(
            id=safe_get(row, 0),
            bank_name=safe_get(row, 1),
            bank_code=safe_get(row, 2),
            account_name=safe_get(row, 3),
            account_number=safe_get(row, 4),
            account_type=safe_get(row, 5),
            home_branch=safe_get(row, 6),
            branch_zone=safe_get(row, 7),
            branch_district=safe_get(row, 8),
            opening_balance=clean_amount(safe_get(row, 9, "0")) or Decimal("0"),
            is_closed=parse_bool(safe_get(row, 10)),
            created_at=parse_timestamp(created) if created else utc_now(),
            updated_at=parse_timestamp(updated) if updated else utc_now(),
        )


class BankTransaction(BaseModel):
    """A debit or credit against one bank account."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    bank_id: str = Field(..., min_length=1)
    type: TransactionType
    amount: Decimal = Field(..., gt=0)
    date: dt.date
    details: str = Field(default="", max_length=1000)
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)

    @property
    def signed_amount(self) -> Decimal:
        """Effect on the account balance: credits add, debits subtract."""
        return self.amount if self.type == TransactionType.CREDIT else -self.amount

    def to_row(self) -> list:
        return [
            self.id,
            self.bank_id,
            self.type.value,
            format_amount(self.amount),
            self.date.isoformat(),
            self.details,
            self.created_at.isoformat(),
            self.updated_at.isoformat(),
        ]

    @classmethod
    def from_row(cls, row: list) -> "BankTransaction":
        amount = clean_amount(safe_get(row, 3))
        if amount is None:
            raise ValueError(f"Unreadable amount in row: {row!r}")
        created = safe_get(row, 6)
        updated = safe_get(row, 7)
        return cls(
            id=safe_get(row, 0),
            bank_id=safe_get(row, 1),
            type=TransactionType(safe_get(row, 2).upper()),
            amount=amount,
            date=parse_iso_date(safe_get(row, 4)),
            details=safe_get(row, 5),
            created_at=parse_timestamp(created) if created else utc_now(),
            updated_at=parse_timestamp(updated) if updated else utc_now(),
        )


class StatementRow(BankTransaction):
    """A transaction annotated with the balance right after it."""

    running_balance: Decimal


class Statement(BaseModel):
    """A date-ranged account statement."""

    bank_id: str
    start_date: dt.date
    end_date: dt.date
    opening_balance: Decimal = Decimal("0")
    transactions: list[StatementRow] = Field(default_factory=list)
    closing_balance: Decimal = Decimal("0")

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.type == TransactionType.CREDIT),
            Decimal("0"),
        )

    @property
    def total_debits(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.type == TransactionType.DEBIT),
            Decimal("0"),
        )
