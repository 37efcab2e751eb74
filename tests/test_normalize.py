"""
Unit tests for row-to-transaction mapping and amount/date parsing.
"""
import math
from datetime import datetime

import pytest

from core.normalize import (
    EPOCH,
    date_sort_key,
    format_amount,
    is_valid_banking_csv,
    parse_amount,
    parse_date,
    to_transactions,
)
from core.parsing import parse


@pytest.mark.parametrize("raw, expected", [
    ("+$500", 500.0),
    ("-$2,500", -2500.0),
    ("$0", 0.0),
    ("1,234.56", 1234.56),
    (" - $ 12.5 ", -12.5),
    ("12abc", 12.0),
    (".5", 0.5),
])
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "$", "-", "--"])
def test_parse_amount_unparseable_is_nan(raw):
    assert math.isnan(parse_amount(raw))


def test_parse_date_bank_format():
    assert parse_date("07/Aug/2025 23:13") == datetime(2025, 8, 7, 23, 13)


def test_parse_date_unknown_month_falls_back_to_january():
    assert parse_date("07/Foo/2025 10:00") == datetime(2025, 1, 7, 10, 0)


def test_parse_date_month_is_case_sensitive():
    assert parse_date("07/aug/2025 10:00") == datetime(2025, 1, 7, 10, 0)


def test_parse_date_day_overflow_rolls_forward():
    assert parse_date("32/Jan/2025 00:00") == datetime(2025, 2, 1, 0, 0)


def test_parse_date_generic_fallback():
    assert parse_date("2025-08-07") == datetime(2025, 8, 7)
    assert parse_date("2025-08-07T10:30:00") == datetime(2025, 8, 7, 10, 30)


def test_parse_date_invalid_is_none():
    assert parse_date("") is None
    assert parse_date("   ") is None
    assert parse_date("not a date") is None


def test_date_sort_key_uses_epoch_for_invalid_dates():
    assert date_sort_key("not a date") == EPOCH
    assert date_sort_key("07/Aug/2025 23:13") == datetime(2025, 8, 7, 23, 13)


@pytest.mark.parametrize("amount, expected", [
    (500.0, "+$500"),
    (-2500.0, "-$2,500"),
    (0.0, "+$0"),
    (1234.5, "+$1,234.5"),
])
def test_format_amount(amount, expected):
    assert format_amount(amount) == expected


def test_to_transactions_maps_columns(sample_csv):
    table = parse(sample_csv)
    transactions = to_transactions(table)

    assert len(transactions) == 4
    first = transactions[0]
    assert first.id == "84651091"
    assert first.from_ == "LS Bets"
    assert first.routing_code == "030016036"
    assert first.reason == "Gateway Payment"
    assert first.amount == -2500.0
    assert first.balance_text == "240313"
    assert first.date_text == "07/Aug/2025 23:13"
    assert first.source_row is table.rows[0]


def test_to_transactions_tolerates_missing_columns():
    transactions = to_transactions(parse('"Reason","Amount"\n"Coffee","oops"'))
    txn = transactions[0]
    assert txn.id == ""
    assert txn.from_ == ""
    assert txn.date_text == ""
    assert math.isnan(txn.amount)


def test_to_transactions_reads_unnamed_id_column_when_headers_not_recovered():
    from core.schema import ParseOptions

    table = parse('"","Amount"\n"42","$1"', ParseOptions(handle_empty_headers=False))
    assert to_transactions(table)[0].id == "42"


def test_is_valid_banking_csv(sample_csv):
    assert is_valid_banking_csv(sample_csv)
    assert not is_valid_banking_csv('"A","B"\n"1","2"')
    assert not is_valid_banking_csv(sample_csv.split("\n")[0])
