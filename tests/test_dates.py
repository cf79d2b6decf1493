import os
import sys

import pytest

sys.path.insert(0, os.path.abspath("src"))

from receipt_parser import parse_receipt
from receipt_parser.engine.dates import extract_date, find_date


@pytest.mark.parametrize(
    "text,expected",
    [
        ("05.03.24", "2024-03-05"),
        ("2024-3-5", "2024-03-05"),
        ("Datum: 5.3.2024 ob 12:31", "2024-03-05"),
        ("2024/12/01", "2024-12-01"),
        ("13-11-2023", "2023-11-13"),
    ],
)
def test_dates_are_canonicalised(text, expected):
    assert find_date(text) == expected


def test_first_line_with_a_date_wins():
    lines = ["RAČUN št. 2024-00123", "Datum: 05.03.2024", "Velja do: 20.03.2024"]
    assert extract_date(lines) == "2024-03-05"


def test_non_calendar_matches_are_skipped():
    assert find_date("Ref 31.02.2024 issued 01.03.2024") == "2024-03-01"


def test_slash_dates_are_day_first():
    assert find_date("04/03/2024") == "2024-03-04"
    assert find_date("25/03/2024") == "2024-03-25"


def test_english_receipt_date_is_day_first():
    receipt = parse_receipt("ACME\nDate: 04/03/2024\nCoffee 2.50\nTotal 2.50")
    assert receipt.date == "2024-03-04"


def test_day_and_month_swapped_when_month_out_of_range():
    assert find_date("12.25.2024") == "2024-12-25"
    assert find_date("03/25/2024") == "2024-03-25"


def test_no_date_is_absent():
    assert extract_date(["Coffee 2.50", "Total 2.50"]) is None
    assert extract_date([]) is None
