"""
Expense Model

An expense stores its category as a plain name rather than a category
id. Category renames cascade by rewriting that name, and category
filters match on names, so the denormalization is load-bearing.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from lumina.models.rows import (
    clean_amount,
    format_amount,
    parse_iso_date,
    parse_numeric_id,
    safe_get,
)


EXPENSE_COLUMNS = [
    "ID",
    "Date",
    "Category",
    "Amount",
    "Note",
    "BankID",
]


class Expense(BaseModel):
    """A single spending record."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(
        ...,
        ge=1,
        description="Numeric id, unique within the expense collection"
    )
    date: dt.date = Field(
        ...,
        description="Day the money was spent"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Category name (denormalized)"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount spent"
    )
    note: str = Field(
        default="",
        max_length=1000,
    )
    bank_id: Optional[str] = Field(
        default=None,
        description="Bank account the expense was paid from, if any"
    )

    def to_row(self) -> list:
        """Convert to a row for the Expenses tab."""
        return [
            str(self.id),
            self.date.isoformat(),
            self.category,
            format_amount(self.amount),
            self.note,
            self.bank_id or "",
        ]

    @classmethod
    def from_row(cls, row: list, expense_id: Optional[int] = None) -> "Expense":
        """
        Build an expense from a sheet row.

        Column A must hold a whole number unless `expense_id` is given
        (loaders pass one to re-key rows with fractional or repeated ids).

        Raises ValueError for rows that cannot be read (header, blanks,
        garbage); loaders skip those.
        """
        amount = clean_amount(safe_get(row, 3))
        if amount is None:
            raise ValueError(f"Unreadable amount in row: {row!r}")

        if expense_id is None:
            number = parse_numeric_id(safe_get(row, 0))
            if number is None or number != number.to_integral_value():
                raise ValueError(f"Expense id is not a whole number: {safe_get(row, 0)!r}")
            expense_id = int(number)

        return cls(
            id=expense_id,
            date=parse_iso_date(safe_get(row, 1)),
            category=safe_get(row, 2),
            amount=amount,
            note=safe_get(row, 4),
            bank_id=safe_get(row, 5) or None,
        )


class ExpenseDraft(BaseModel):
    """An expense that has not been given an id yet (used for batch imports)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date
    category: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)
    note: str = ""
    bank_id: Optional[str] = None

    def with_id(self, expense_id: int) -> Expense:
        return Expense(id=expense_id, **self.model_dump())
