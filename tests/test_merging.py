"""
Unit tests for the incremental merge policy.
"""
from datetime import datetime

from conftest import make_csv
from core.merging import latest_transaction_date, merge_or_replace, select_new_transactions
from core.normalize import to_transactions
from core.parsing import parse


EXISTING = make_csv(
    ("1", "Employer", "Salary", "+$1,000", "07/Aug/2025 18:00"),
    ("2", "Grocer", "Food", "-$50", "07/Aug/2025 20:00"),
)


def test_no_existing_text_replaces():
    incoming = make_csv(("9", "A", "x", "+$1", "01/Jan/2025 00:00"))
    result = merge_or_replace(None, incoming)
    assert result.mode == "replaced"
    assert result.added_count == 0
    assert result.merged_raw_text == incoming

    assert merge_or_replace("", incoming).mode == "replaced"


def test_blank_existing_text_is_replaced_not_merged():
    incoming = make_csv(("9", "A", "x", "+$1", "01/Jan/2025 00:00"))
    result = merge_or_replace("\n  \n", incoming)
    assert result.mode == "replaced"
    assert result.added_count == 0
    assert result.merged_raw_text == incoming
    assert parse(result.merged_raw_text).row_count == 1


def test_only_rows_after_cutoff_are_appended():
    """Existing max is 20:00; incoming 19:00 is dropped, 21:00 is added."""
    incoming = make_csv(
        ("3", "Cafe", "Coffee", "-$4", "07/Aug/2025 19:00"),
        ("4", "Cafe", "Coffee", "-$5", "07/Aug/2025 21:00"),
    )
    result = merge_or_replace(EXISTING, incoming)

    assert result.mode == "merged"
    assert result.added_count == 1
    merged = parse(result.merged_raw_text)
    assert [row["TransactionID"] for row in merged.rows] == ["1", "2", "4"]


def test_row_equal_to_cutoff_is_not_appended():
    incoming = make_csv(("3", "Grocer", "Food", "-$50", "07/Aug/2025 20:00"))
    result = merge_or_replace(EXISTING, incoming)
    assert result.added_count == 0
    assert result.merged_raw_text == EXISTING


def test_nothing_new_keeps_existing_text_verbatim():
    result = merge_or_replace(EXISTING, EXISTING)
    assert result.mode == "merged"
    assert result.added_count == 0
    assert result.merged_raw_text == EXISTING


def test_appended_rows_are_sorted_by_date():
    incoming = make_csv(
        ("5", "B", "x", "+$1", "09/Aug/2025 08:00"),
        ("4", "A", "x", "+$1", "08/Aug/2025 08:00"),
        ("6", "C", "x", "+$1", "08/Aug/2025 12:00"),
    )
    result = merge_or_replace(EXISTING, incoming)
    merged = parse(result.merged_raw_text)
    assert [row["TransactionID"] for row in merged.rows] == ["1", "2", "4", "6", "5"]
    assert result.added_count == 3


def test_incoming_rows_with_bad_dates_are_dropped():
    incoming = make_csv(
        ("7", "A", "x", "+$1", ""),
        ("8", "A", "x", "+$1", "not a date"),
        ("9", "A", "x", "+$1", "10/Aug/2025 08:00"),
    )
    result = merge_or_replace(EXISTING, incoming)
    assert result.added_count == 1
    assert parse(result.merged_raw_text).rows[-1]["TransactionID"] == "9"


def test_existing_without_dates_accepts_any_dated_row():
    existing = make_csv(("1", "A", "x", "+$1", "n/a"))
    incoming = make_csv(("2", "A", "x", "+$1", "01/Jan/1990 00:00"))
    assert latest_transaction_date(to_transactions(parse(existing))) == datetime.min
    assert merge_or_replace(existing, incoming).added_count == 1


def test_merged_text_keeps_existing_headers_and_re_exports():
    result = merge_or_replace(
        EXISTING,
        make_csv(("4", "Cafe", "Coffee", "-$5", "07/Aug/2025 21:00")),
    )
    lines = result.merged_raw_text.split("\n")
    assert lines[0] == '"TransactionID","From","Routing","Reason","Amount","Balance","Date"'
    assert lines[-1] == '"4","Cafe","000000000","Coffee","-$5","0","07/Aug/2025 21:00"'


def test_select_new_transactions_strictly_after_cutoff():
    transactions = to_transactions(parse(make_csv(
        ("1", "A", "x", "+$1", "07/Aug/2025 20:00"),
        ("2", "A", "x", "+$1", "07/Aug/2025 20:01"),
    )))
    selected = select_new_transactions(transactions, datetime(2025, 8, 7, 20, 0))
    assert [t.id for t in selected] == ["2"]
