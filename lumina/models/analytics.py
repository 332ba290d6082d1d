"""Analytics filter and result models."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from lumina.models.expense import Expense


class FilterState(BaseModel):
    """
    The active analytics filter.

    Precedence when several are set: date range, then specific date,
    then year/month. The category filter always applies on top.
    """

    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    month: Optional[int] = Field(
        default=None,
        ge=0,
        le=11,
        description="Zero-based month (0 = January)"
    )
    year: Optional[int] = Field(default=None, ge=1900, le=9999)
    category_id: Optional[str] = None
    specific_date: Optional[dt.date] = None

    @classmethod
    def current_month(cls, today: Optional[dt.date] = None) -> "FilterState":
        """Default filter: this calendar month."""
        today = today or dt.date.today()
        return cls(month=today.month - 1, year=today.year)

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None


class AnalyticsResult(BaseModel):
    """Aggregates over the filtered expenses."""

    total: Decimal = Decimal("0")
    filtered_expenses: list[Expense] = Field(default_factory=list)
    category_distribution: dict[str, Decimal] = Field(default_factory=dict)
    daily_trend: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def expense_count(self) -> int:
        return len(self.filtered_expenses)
