"""
Quote-aware CSV tokenizer and generic table builder.
Turns raw bank export text into ordered headers and string-keyed rows,
and offers read-only queries over the resulting table.
"""
import unicodedata
from typing import Callable, List, Optional, Tuple

import pandas as pd

from core.exporters import export_to_csv
from core.logger import setup_logger
from core.normalize import parse_amount
from core.schema import ColumnStats, ParseOptions, Row, Table

logger = setup_logger(__name__)

# Name given to an unlabeled first column (bank exports leave the id header blank)
FIRST_COLUMN_NAME = "TransactionID"


def parse_csv_line(line: str) -> List[str]:
    """
    Split a single CSV line into raw field values.

    A quote toggles quoted mode; inside quotes a doubled quote emits one
    literal quote. Commas only separate fields outside quotes. The last
    field is always emitted.

    Args:
        line: One line of CSV text

    Returns:
        List of untrimmed field values
    """
    values: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    values.append("".join(current))
    return values


def process_headers(headers: List[str], options: Optional[ParseOptions] = None) -> List[str]:
    """
    Trim headers and name the empty ones.

    Position 0 becomes "TransactionID", any other empty header at
    zero-based position N becomes "Column<N+1>".

    Args:
        headers: Raw header tokens
        options: Parse options (``handle_empty_headers`` controls renaming)

    Returns:
        Processed header names
    """
    options = options or ParseOptions()
    processed = []
    for index, header in enumerate(headers):
        name = header.strip()
        if name == "" and options.handle_empty_headers:
            name = FIRST_COLUMN_NAME if index == 0 else f"Column{index + 1}"
        processed.append(name)
    return processed


def build_row(headers: List[str], values: List[str], trim: bool = True) -> Row:
    """Key values by header position; missing values become ""."""
    row = Row()
    for index, header in enumerate(headers):
        value = values[index] if index < len(values) else ""
        row[header] = value.strip() if trim else value
    return row


def parse(text: str, options: Optional[ParseOptions] = None) -> Table:
    """
    Parse CSV text into a Table.

    Blank lines are discarded up front. The first remaining line is the
    header row; extra fields on data rows are dropped.

    Args:
        text: Raw CSV text
        options: Parse options, defaults to ``ParseOptions()``

    Returns:
        Table with processed headers and rows
    """
    options = options or ParseOptions()
    lines = [line for line in (text or "").split("\n") if line.strip() != ""]

    if not lines:
        return Table(headers=[], rows=[])

    headers = process_headers(parse_csv_line(lines[0]), options)

    rows: List[Row] = []
    for raw_line in lines[1:]:
        line = raw_line.strip()
        if line == "" and options.skip_empty_rows:
            continue
        values = parse_csv_line(line)
        rows.append(build_row(headers, values, trim=options.trim_whitespace))

    logger.debug(f"Parsed {len(rows)} rows with {len(headers)} columns")
    return Table(headers=headers, rows=rows)


def get_column(table: Table, header: str) -> List[str]:
    """All values of one column, "" where a row lacks it."""
    return [row[header] for row in table.rows]


def filter_rows(table: Table, predicate: Callable[[Row], bool]) -> List[Row]:
    return [row for row in table.rows if predicate(row)]


def collation_key(value: str) -> Tuple[str, str, str]:
    """
    Sort key that orders text the way people read it.

    Letters compare first without case or accents ("a" and "A" sit
    together before "b"), then accented forms follow plain ones, then
    lowercase comes before uppercase.
    """
    normalized = unicodedata.normalize("NFKC", value)
    base = "".join(
        char for char in unicodedata.normalize("NFKD", normalized)
        if not unicodedata.combining(char)
    )
    return base.casefold(), normalized.casefold(), normalized.swapcase()


def sort_rows(table: Table, header: str, ascending: bool = True) -> List[Row]:
    """
    Rows sorted by one column in collation order (see ``collation_key``).

    Rows with equal values keep their table order in both directions.

    Args:
        table: Parsed table (not modified)
        header: Column to sort by
        ascending: Sort direction

    Returns:
        New list of rows
    """
    return sorted(table.rows, key=lambda row: collation_key(row[header]), reverse=not ascending)


def search_rows(table: Table, term: str) -> List[Row]:
    """Rows where any value contains ``term``, ignoring case."""
    needle = term.lower()
    return [row for row in table.rows if any(needle in value.lower() for value in row.values())]


def get_unique_values(table: Table, header: str) -> List[str]:
    """Distinct non-empty values of a column in first-seen order."""
    return list(dict.fromkeys(value for value in get_column(table, header) if value != ""))


def get_column_stats(table: Table, header: str) -> ColumnStats:
    """
    Count/sum/average/min/max over the values of a column that parse as amounts.

    Non-numeric values are left out rather than propagated.

    Args:
        table: Parsed table
        header: Column name

    Returns:
        ColumnStats, all zero when the column has no numeric values
    """
    amounts = pd.Series([parse_amount(value) for value in get_column(table, header)], dtype="float64").dropna()
    if amounts.empty:
        return ColumnStats()
    return ColumnStats(
        count=int(amounts.count()),
        sum=float(amounts.sum()),
        average=float(amounts.mean()),
        min=float(amounts.min()),
        max=float(amounts.max()),
    )


def is_valid_csv(content: str) -> bool:
    """
    Heuristic check that text looks like CSV.

    Requires at least two lines; each non-empty line among the next four
    must have a comma count within one of the first line's.
    """
    lines = content.split("\n")
    if len(lines) < 2:
        return False

    comma_count = lines[0].count(",")
    for line in lines[1:5]:
        line = line.strip()
        if line == "":
            continue
        if abs(line.count(",") - comma_count) > 1:
            return False
    return True


__all__ = [
    "FIRST_COLUMN_NAME",
    "build_row",
    "collation_key",
    "export_to_csv",
    "filter_rows",
    "get_column",
    "get_column_stats",
    "get_unique_values",
    "is_valid_csv",
    "parse",
    "parse_csv_line",
    "process_headers",
    "search_rows",
    "sort_rows",
]
