"""
Analytics Engine

Filters expenses and aggregates them into a total, a per-category
distribution and a daily trend. The functions are pure; AnalyticsEngine
just keeps a filter and re-runs them whenever expenses, categories or
the filter change.

Filter precedence for each expense:
1. A date range (start and/or end) wins over everything date-related
2. Otherwise a specific date
3. Otherwise year and month, each applied if set
The category filter applies on top, by name, over the category and all
its descendants.
"""

from decimal import Decimal
from typing import Optional, Sequence

from lumina.engines.category_tree import descendant_names
from lumina.models.analytics import AnalyticsResult, FilterState
from lumina.models.category import CategoryNode
from lumina.models.expense import Expense
from lumina.reactive import Signal, combine


def _matches_dates(expense: Expense, filter_state: FilterState) -> bool:
    if filter_state.has_date_range:
        if filter_state.start_date and expense.date < filter_state.start_date:
            return False
        if filter_state.end_date and expense.date > filter_state.end_date:
            return False
        return True

    if filter_state.specific_date is not None:
        return expense.date == filter_state.specific_date

    if filter_state.year is not None and expense.date.year != filter_state.year:
        return False
    # FilterState months are zero-based
    if filter_state.month is not None and expense.date.month - 1 != filter_state.month:
        return False
    return True


def filter_expenses(
    expenses: Sequence[Expense],
    forest: Sequence[CategoryNode],
    filter_state: FilterState,
) -> list[Expense]:
    allowed_names: Optional[set[str]] = None
    if filter_state.category_id:
        allowed_names = descendant_names(forest, filter_state.category_id)

    return [
        e for e in expenses
        if _matches_dates(e, filter_state)
        and (allowed_names is None or e.category in allowed_names)
    ]


def analyze(
    expenses: Sequence[Expense],
    forest: Sequence[CategoryNode],
    filter_state: FilterState,
) -> AnalyticsResult:
    """Filter, then aggregate."""
    filtered = filter_expenses(expenses, forest, filter_state)

    total = Decimal("0")
    distribution: dict[str, Decimal] = {}
    trend: dict[str, Decimal] = {}
    for e in filtered:
        total += e.amount
        distribution[e.category] = distribution.get(e.category, Decimal("0")) + e.amount
        day = e.date.isoformat()
        trend[day] = trend.get(day, Decimal("0")) + e.amount

    return AnalyticsResult(
        total=total,
        filtered_expenses=filtered,
        category_distribution=distribution,
        daily_trend=trend,
    )


class AnalyticsEngine:
    """
    Live analytics over the expense and category stores.

    `result` is a derived signal: it republishes whenever the expenses,
    the category tree or `filter` publish. The engine never mutates
    either store.
    """

    def __init__(self, expense_store, category_store, initial_filter: Optional[FilterState] = None):
        self.filter: Signal[FilterState] = Signal(initial_filter or FilterState.current_month())
        self.result = combine(
            [expense_store.expenses, category_store.tree, self.filter],
            analyze,
        )

    def update_filter(self, **changes) -> FilterState:
        """Merge changes into the current filter (validated) and publish it."""
        merged = {**self.filter.value.model_dump(), **changes}
        new_filter = FilterState(**merged)
        self.filter.set(new_filter)
        return new_filter

    def set_filter(self, filter_state: FilterState) -> None:
        self.filter.set(filter_state)

    def reset_filter(self) -> FilterState:
        """Back to the current month."""
        new_filter = FilterState.current_month()
        self.filter.set(new_filter)
        return new_filter

    def dispose(self) -> None:
        self.result.detach()
        self.filter.clear()
