"""
Loan Models

There is no loan entity: a counterparty is whatever string sits in
`name`, compared exactly. "Rahim" and "rahim" are two different
ledgers.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from lumina.models.rows import (
    clean_amount,
    format_amount,
    parse_iso_date,
    parse_timestamp,
    safe_get,
    utc_now,
)


LOAN_TRANSACTION_COLUMNS = [
    "ID",
    "Name",
    "UserReceived",
    "UserGave",
    "Date",
    "Medium",
    "CreatedAt",
    "UpdatedAt",
]


class LoanTransaction(BaseModel):
    """Money lent to or borrowed from a person."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Counterparty name (free text)"
    )
    user_received: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Amount the user received from the counterparty"
    )
    user_gave: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Amount the user gave to the counterparty"
    )
    date: dt.date
    medium: str = Field(
        default="Cash",
        description="Cash, a bank id, or any free text"
    )
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)

    def to_row(self) -> list:
        return [
            self.id,
            self.name,
            format_amount(self.user_received),
            format_amount(self.user_gave),
            self.date.isoformat(),
            self.medium,
            self.created_at.isoformat(),
            self.updated_at.isoformat(),
        ]

    @classmethod
    def from_row(cls, row: list) -> "LoanTransaction":
        created = safe_get(row, 6)
        updated = safe_get(row, 7)
        return cls(
            id=safe_get(row, 0),
            name=safe_get(row, 1),
            user_received=clean_amount(safe_get(row, 2, "0")) or Decimal("0"),
            user_gave=clean_amount(safe_get(row, 3, "0")) or Decimal("0"),
            date=parse_iso_date(safe_get(row, 4)),
            medium=safe_get(row, 5, "Cash"),
            created_at=parse_timestamp(created) if created else utc_now(),
            updated_at=parse_timestamp(updated) if updated else utc_now(),
        )


class LoanSummary(BaseModel):
    """Net position with one counterparty."""

    name: str
    total_received: Decimal = Decimal("0")
    total_gave: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
