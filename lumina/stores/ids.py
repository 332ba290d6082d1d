"""
Id generation.

- Expenses: max + 1 over the collection (see ExpenseStore.next_id)
- Banks: B001, B002, ... (max numeric suffix + 1)
- Everything else: epoch milliseconds plus a random tail, so two ids
  created in the same millisecond still differ
"""

import random
import time
from typing import Sequence

from lumina.models.bank import Bank


_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


def to_base36(number: int) -> str:
    """Upper-case base-36 text of a non-negative integer."""
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def _random_base36(length: int) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def next_bank_id(banks: Sequence[Bank]) -> str:
    """B + zero-padded (max numeric suffix + 1); B001 for the first bank."""
    highest = max((bank.sequence_number for bank in banks), default=0)
    return f"B{highest + 1:03d}"


def new_transaction_id() -> str:
    """e.g. TXLQ3K9Z1A7F"""
    return f"TX{to_base36(_now_millis())}{_random_base36(2)}"


def new_loan_id() -> str:
    """LTX-<last 6 digits of epoch ms>-<random 0-999>."""
    return f"LTX-{str(_now_millis())[-6:]}-{random.randint(0, 999)}"


def new_category_id() -> str:
    """Lower-case base-36 milliseconds plus 8 random base-36 chars."""
    return (to_base36(_now_millis()) + _random_base36(8)).lower()
