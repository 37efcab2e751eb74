"""
Incremental ingestion of bank exports into previously stored CSV text.

Only incoming transactions dated strictly after the newest stored
transaction are appended, so re-importing an overlapping export window
never duplicates rows.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from core.exporters import export_to_csv
from core.logger import setup_logger
from core.normalize import parse_date, to_transactions
from core.parsing import parse
from core.schema import MergeResult, ParseOptions, Table, Transaction

logger = setup_logger(__name__)


def latest_transaction_date(transactions: List[Transaction]) -> datetime:
    """
    Newest parseable date among the transactions.

    Returns ``datetime.min`` when no date parses.
    """
    cutoff = datetime.min
    for txn in transactions:
        if not txn.date_text:
            continue
        when = parse_date(txn.date_text)
        if when is not None and when > cutoff:
            cutoff = when
    return cutoff


def select_new_transactions(incoming: List[Transaction], cutoff: datetime) -> List[Transaction]:
    """
    Incoming transactions dated strictly after ``cutoff``, oldest first.

    Transactions without a parseable date are never selected.
    """
    dated: List[Tuple[datetime, Transaction]] = []
    for txn in incoming:
        if not txn.date_text:
            continue
        when = parse_date(txn.date_text)
        if when is not None and when > cutoff:
            dated.append((when, txn))
    dated.sort(key=lambda pair: pair[0])
    return [txn for _, txn in dated]


def merge_or_replace(
    existing_raw_text: Optional[str],
    incoming_raw_text: str,
    options: Optional[ParseOptions] = None,
) -> MergeResult:
    """
    Decide how incoming CSV text combines with stored text.

    Args:
        existing_raw_text: Previously stored CSV text; None or blank text means there is none
        incoming_raw_text: Newly imported CSV text
        options: Parse options used for both texts

    Returns:
        MergeResult with the text to persist, the mode and the number of rows added
    """
    if not existing_raw_text or not existing_raw_text.strip():
        logger.info("No stored data, saving incoming CSV as-is")
        return MergeResult(merged_raw_text=incoming_raw_text, mode="replaced", added_count=0)

    existing_table = parse(existing_raw_text, options)
    incoming = to_transactions(parse(incoming_raw_text, options))

    cutoff = latest_transaction_date(to_transactions(existing_table))
    selected = select_new_transactions(incoming, cutoff)

    undated = sum(1 for txn in incoming if parse_date(txn.date_text) is None)
    if undated:
        logger.warning(f"Dropped {undated} incoming transactions without a parseable date")

    skipped = len(incoming) - len(selected) - undated
    if skipped:
        logger.info(f"Skipped {skipped} incoming transactions not newer than {cutoff:%Y-%m-%d %H:%M}")

    if not selected:
        return MergeResult(merged_raw_text=existing_raw_text, mode="merged", added_count=0)

    merged_table = Table(
        headers=existing_table.headers,
        rows=existing_table.rows + [txn.source_row for txn in selected],
    )
    logger.info(f"Appending {len(selected)} new transactions to {existing_table.row_count} stored rows")
    return MergeResult(
        merged_raw_text=export_to_csv(merged_table),
        mode="merged",
        added_count=len(selected),
    )
