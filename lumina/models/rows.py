"""
Spreadsheet cell helpers.

Google Sheets hands every cell back as a display string, and users edit
the sheet by hand, so parsing here is forgiving: missing cells become
defaults and currency decoration is stripped from amounts.
"""

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from typing import Optional


NULL_SENTINEL = "NULL"

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")


def utc_now() -> dt.datetime:
    """Current time as an aware UTC datetime."""
    return dt.datetime.now(dt.timezone.utc)


def safe_get(row: list, index: int, default: str = "") -> str:
    """Cell value at index, or default when the cell is missing or blank."""
    try:
        value = row[index]
    except IndexError:
        return default
    if value is None:
        return default
    text = str(value).strip()
    return text if text else default


def parse_numeric_id(text: str) -> Optional[Decimal]:
    """Column A as a number ("7", "7.0", "1706789012345.25"), or None."""
    try:
        number = Decimal(str(text).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def clean_amount(text: str) -> Optional[Decimal]:
    """
    Parse an amount, ignoring currency symbols and thousands separators.

    "$1,045.50" -> Decimal("1045.50"). Returns None when nothing
    numeric is left.
    """
    if text is None:
        return None
    stripped = _NON_NUMERIC.sub("", str(text))
    if not stripped:
        return None
    try:
        return Decimal(stripped)
    except InvalidOperation:
        return None


def format_amount(amount: Decimal) -> str:
    """Plain decimal text without exponent or trailing zeros ("45", "12.5")."""
    normalized = amount.normalize()
    if normalized == normalized.to_integral_value():
        normalized = normalized.quantize(Decimal(1))
    return format(normalized, "f")


def parse_iso_date(text: str) -> dt.date:
    """Date portion of an ISO date or datetime string."""
    return dt.date.fromisoformat(text.strip().split("T")[0].split(" ")[0])


def parse_timestamp(text: str) -> dt.datetime:
    """ISO timestamp, accepting the trailing 'Z' JavaScript writes."""
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return dt.datetime.fromisoformat(text)


def parse_bool(text: str) -> bool:
    return text.strip().lower() in {"true", "1", "yes"}
