"""
Record mapping from generic CSV rows to typed banking transactions.
Handles currency amount cleaning and bank timestamp parsing.
"""
import math
import re
import warnings
from datetime import datetime, timedelta
from typing import List, Optional

import pandas as pd

from core.schema import Row, Table, Transaction

# Characters removed from an amount before the sign check: "$", ",", "+", whitespace
_AMOUNT_NOISE = re.compile(r"[$,+\s]")

# Longest leading decimal literal, e.g. "12.50" in "12.50USD"
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Bank export timestamp: "07/Aug/2025 23:13"
_BANK_DATE = re.compile(r"(\d{2})/([A-Za-z0-9_]{3})/(\d{4})\s+(\d{2}):(\d{2})")

MONTHS = {
    "Jan": 1, "Feb": 2, "Mar": 3, "Apr": 4, "May": 5, "Jun": 6,
    "Jul": 7, "Aug": 8, "Sep": 9, "Oct": 10, "Nov": 11, "Dec": 12,
}

EPOCH = datetime(1970, 1, 1)


def parse_amount(value: str) -> float:
    """
    Parse amount strings like "+$500" or "-$2,500" to floats.

    The sign comes only from a literal leading "-" left after stripping
    currency symbols, separators, "+" and whitespace.

    Args:
        value: Raw amount text

    Returns:
        Parsed amount, or NaN when no number can be read
    """
    clean = _AMOUNT_NOISE.sub("", value or "")
    is_negative = clean.startswith("-")
    numeric_part = clean[1:] if is_negative else clean

    match = _LEADING_NUMBER.match(numeric_part)
    if not match:
        return math.nan
    number = float(match.group(0))
    return -number if is_negative else number


def month_number(abbreviation: str) -> int:
    """Month number for "Jan".."Dec"; anything else is treated as January."""
    return MONTHS.get(abbreviation, 1)


def _parse_bank_date(match: "re.Match[str]") -> Optional[datetime]:
    day, month, year, hour, minute = match.groups()
    year_number = int(year)
    if year_number < 100:
        year_number += 1900
    try:
        # Day, hour and minute overflow roll into the next unit.
        return datetime(year_number, month_number(month), 1) + timedelta(
            days=int(day) - 1, hours=int(hour), minutes=int(minute)
        )
    except OverflowError:
        return None


def _parse_generic_date(value: str) -> Optional[datetime]:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(value, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert(None)
    return parsed.to_pydatetime()


def parse_date(value: str) -> Optional[datetime]:
    """
    Parse bank timestamps like "07/Aug/2025 23:13".

    Strings that do not match the bank pattern go through generic date
    parsing. Returns None for an invalid instant.

    Args:
        value: Raw date text

    Returns:
        Naive datetime or None
    """
    if not value or not value.strip():
        return None
    match = _BANK_DATE.search(value)
    if match:
        return _parse_bank_date(match)
    return _parse_generic_date(value.strip())


def date_sort_key(value: str) -> datetime:
    """Ordering key for date text; invalid instants sort as the epoch."""
    parsed = parse_date(value)
    return parsed if parsed is not None else EPOCH


def format_amount(amount: float) -> str:
    """
    Format an amount the way bank exports display it, e.g. "+$1,234.5".

    Args:
        amount: Signed amount

    Returns:
        Display string with an explicit sign
    """
    if math.isnan(amount):
        return "$NaN"
    sign = "+" if amount >= 0 else "-"
    magnitude = f"{abs(amount):,.3f}".rstrip("0").rstrip(".")
    return f"{sign}${magnitude}"


BANKING_HEADERS = ["", "From", "Routing", "Reason", "Amount", "Balance", "Date"]


def is_valid_banking_csv(content: str) -> bool:
    """
    Check that text looks like a bank export.

    The first non-empty line must hold exactly as many comma-separated
    headers as the canonical banking header, including ones mentioning
    "from", "amount" and "date".
    """
    lines = [line for line in content.split("\n") if line.strip() != ""]
    if len(lines) < 2:
        return False

    headers = [h.replace('"', "").strip().lower() for h in lines[0].split(",")]
    if len(headers) != len(BANKING_HEADERS):
        return False
    return all(any(key in h for h in headers) for key in ("from", "amount", "date"))


def row_to_transaction(row: Row) -> Transaction:
    """
    Re-key a single generic row into a typed transaction.

    Args:
        row: Parsed CSV row (unknown headers read as "")

    Returns:
        Transaction referencing the same row object
    """
    return Transaction(
        id=row["TransactionID"] or row[""] or "",
        from_=row["From"],
        routing_code=row["Routing"],
        reason=row["Reason"],
        amount=parse_amount(row["Amount"]),
        balance_text=row["Balance"],
        date_text=row["Date"],
        source_row=row,
    )


def to_transactions(table: Table) -> List[Transaction]:
    """
    Map every row of a parsed table to a transaction, in table order.

    Args:
        table: Generic table from the tokenizer

    Returns:
        List of transactions
    """
    return [row_to_transaction(row) for row in table.rows]
