"""
CSV exporters for generic tables and banking transaction tables.
Every field is wrapped in double quotes; embedded quotes are not escaped.
"""
from typing import Iterable, List

from core.normalize import format_amount
from core.schema import Table, TransactionTable

BANKING_EXPORT_HEADERS: List[str] = [
    "TransactionID", "From", "Routing", "Reason", "Amount", "Balance", "Date",
]


def _quoted_line(values: Iterable[str]) -> str:
    return ",".join(f'"{value}"' for value in values)


def export_to_csv(table: Table) -> str:
    """
    Serialize a table back to quoted CSV text.

    One header line, then one line per row in table order. Values that
    contain a literal quote do not survive a round trip unchanged.

    Args:
        table: Table to serialize

    Returns:
        CSV text joined with "\\n" (no trailing newline)
    """
    lines = [_quoted_line(table.headers)]
    lines.extend(
        _quoted_line(row[header] for header in table.headers)
        for row in table.rows
    )
    return "\n".join(lines)


def export_banking_data(table: TransactionTable) -> str:
    """
    Export transactions with the canonical banking header and formatted amounts.

    Args:
        table: Summarized transaction table

    Returns:
        CSV text
    """
    lines = [_quoted_line(BANKING_EXPORT_HEADERS)]
    for txn in table.transactions:
        lines.append(_quoted_line([
            txn.id,
            txn.from_,
            txn.routing_code,
            txn.reason,
            format_amount(txn.amount),
            txn.balance_text,
            txn.date_text,
        ]))
    return "\n".join(lines)
