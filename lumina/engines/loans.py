"""
Loan Netting Engine

Groups loan transactions by counterparty name (exact match, no
normalization) and nets what the user gave against what they received.
"""

from decimal import Decimal
from typing import Sequence

from lumina.models.loan import LoanSummary, LoanTransaction


def summarize(transactions: Sequence[LoanTransaction]) -> list[LoanSummary]:
    """
    Per-counterparty totals, in first-seen order.

    `balance` is total_gave - total_received: positive means the
    counterparty owes the user.
    """
    groups: dict[str, LoanSummary] = {}
    for t in transactions:
        summary = groups.setdefault(t.name, LoanSummary(name=t.name))
        summary.total_gave += t.user_gave
        summary.total_received += t.user_received

    for summary in groups.values():
        summary.balance = summary.total_gave - summary.total_received
    return list(groups.values())


def receivables(transactions: Sequence[LoanTransaction]) -> list[LoanSummary]:
    """People who owe the user, largest balance first."""
    owed = [s for s in summarize(transactions) if s.balance > 0]
    return sorted(owed, key=lambda s: s.balance, reverse=True)


def payables(transactions: Sequence[LoanTransaction]) -> list[LoanSummary]:
    """People the user owes, largest balance first (balances positive)."""
    owing = [
        s.model_copy(update={"balance": s.total_received - s.total_gave})
        for s in summarize(transactions)
        if s.balance < 0
    ]
    return sorted(owing, key=lambda s: s.balance, reverse=True)


def net_position(transactions: Sequence[LoanTransaction]) -> Decimal:
    """Total receivable minus total payable."""
    return sum((s.balance for s in summarize(transactions)), Decimal("0"))
