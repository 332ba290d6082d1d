"""
Balance & Statement Engine

Pure functions over the bank and transaction collections. Balances are
never stored anywhere; they are recomputed from the full transaction
log on every call, which is fine at personal-finance volumes.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional, Sequence

from lumina.models.bank import (
    Bank,
    BankTransaction,
    Statement,
    StatementRow,
    TransactionType,
)


def _find_bank(banks: Sequence[Bank], bank_id: str) -> Optional[Bank]:
    return next((bank for bank in banks if bank.id == bank_id), None)


def current_balance(
    banks: Sequence[Bank],
    transactions: Sequence[BankTransaction],
    bank_id: str,
) -> Decimal:
    """Opening balance plus credits minus debits. 0 for an unknown bank."""
    bank = _find_bank(banks, bank_id)
    if bank is None:
        return Decimal("0")
    return bank.opening_balance + sum(
        (t.signed_amount for t in transactions if t.bank_id == bank_id),
        Decimal("0"),
    )


def balances(
    banks: Sequence[Bank],
    transactions: Sequence[BankTransaction],
) -> dict[str, Decimal]:
    """Current balance of every bank, keyed by bank id."""
    totals = {bank.id: bank.opening_balance for bank in banks}
    for t in transactions:
        if t.bank_id in totals:
            totals[t.bank_id] += t.signed_amount
    return totals


def statement(
    banks: Sequence[Bank],
    transactions: Sequence[BankTransaction],
    bank_id: str,
    start_date: dt.date,
    end_date: dt.date,
    type_filter: Optional[TransactionType] = None,
    details: Optional[str] = None,
) -> Statement:
    """
    Build a statement for [start_date, end_date], both inclusive.

    The opening balance covers everything before start_date and ignores
    the type and details filters; those only pick which rows in the
    range are listed and walked.
    """
    bank = _find_bank(banks, bank_id)
    if bank is None:
        return Statement(bank_id=bank_id, start_date=start_date, end_date=end_date)

    # sorted() is stable, so same-day transactions keep their log order
    history = sorted(
        (t for t in transactions if t.bank_id == bank_id),
        key=lambda t: t.date,
    )

    opening = bank.opening_balance + sum(
        (t.signed_amount for t in history if t.date < start_date),
        Decimal("0"),
    )

    selected = [t for t in history if start_date <= t.date <= end_date]
    if type_filter is not None:
        selected = [t for t in selected if t.type == type_filter]
    if details:
        needle = details.lower()
        selected = [t for t in selected if needle in t.details.lower()]

    running = opening
    rows: list[StatementRow] = []
    for t in selected:
        running += t.signed_amount
        rows.append(StatementRow(**t.model_dump(), running_balance=running))

    return Statement(
        bank_id=bank_id,
        start_date=start_date,
        end_date=end_date,
        opening_balance=opening,
        transactions=rows,
        closing_balance=running,
    )
