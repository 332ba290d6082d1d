"""
Derived views over store collections.

Everything here is a pure recomputation: engines read collections and
never mutate them.
"""

from lumina.engines.analytics import AnalyticsEngine, analyze, filter_expenses
from lumina.engines.balance import balances, current_balance, statement
from lumina.engines.category_tree import (
    build_tree,
    category_path,
    descendant_names,
    find_node,
    iter_nodes,
)
from lumina.engines.loans import net_position, payables, receivables, summarize

__all__ = [
    # Analytics
    "AnalyticsEngine",
    "analyze",
    "filter_expenses",
    # Balances
    "balances",
    "current_balance",
    "statement",
    # Categories
    "build_tree",
    "category_path",
    "descendant_names",
    "find_node",
    "iter_nodes",
    # Loans
    "net_position",
    "payables",
    "receivables",
    "summarize",
]
