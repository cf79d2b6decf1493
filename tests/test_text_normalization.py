import os
import sys

# Ensure src/ is importable when tests run from repo root
sys.path.insert(0, os.path.abspath("src"))

from receipt_parser.domain.locale import Locale
from receipt_parser.engine.text import (
    join_pages,
    merge_continuation_lines,
    normalize_text,
    prepare_pages,
    prepare_text,
)


def test_normalize_strips_invisible_chars_and_collapses_spaces():
    raw = " Coffee\t\t2.50\u200b\n\n  Tea   1.80  \ufeff\n"
    assert normalize_text(raw) == "Coffee 2.50\nTea 1.80"


def test_normalize_joins_colon_label_with_value_line():
    raw = "Total:\n45.00 EUR\nThank you"
    assert normalize_text(raw) == "Total: 45.00 EUR\nThank you"


def test_normalize_joins_plain_label_with_amount_line():
    raw = "Espresso\n2.50\nMilk\n€1.20\nThank you"
    assert normalize_text(raw) == "Espresso 2.50\nMilk €1.20\nThank you"


def test_normalize_joins_label_containing_digits():
    assert normalize_text("Table 12\n45.00") == "Table 12 45.00"
    assert normalize_text("Article 3\n€9.90\nThank you") == "Article 3 €9.90\nThank you"


def test_normalize_does_not_join_priced_lines():
    raw = "Coffee 2.50\n2x Tea 3.60"
    assert normalize_text(raw) == "Coffee 2.50\n2x Tea 3.60"


def test_normalize_leaves_trailing_label_alone():
    assert normalize_text("Coffee 2.50\nTotal:") == "Coffee 2.50\nTotal:"


def test_normalize_is_idempotent():
    samples = [
        "Date:\nTime:\n12:00\nTotal\n45.00",
        "Skupaj za plačilo:\n\n  12,40 €\nHvala",
        "Item\n2 x Coffee\n5.00\nVAT:\n",
        "Table 12\n45.00\nRoom 4\n2 nights\n180.00",
        "",
    ]
    for raw in samples:
        once = normalize_text(raw)
        assert normalize_text(once) == once


def test_merge_folds_description_into_priced_line():
    text = "Consulting service\nfor March 120.00\nTotal 120.00"
    merged = merge_continuation_lines(text, Locale.ENGLISH)
    assert merged == "Consulting service for March 120.00\nTotal 120.00"


def test_merge_keeps_strongly_priced_lines_apart():
    text = "Laptop 899.00\nMouse 25.00"
    assert merge_continuation_lines(text, Locale.ENGLISH) == text


def test_merge_never_crosses_section_keywords():
    text = "Osnova za DDV\n40,00\nSkupaj DDV\n8,80"
    assert merge_continuation_lines(text, Locale.SLOVENIAN) == text


def test_merge_detects_locale_when_not_given():
    text = "Storitev\nsvetovanje 50,00\nSkupaj 50,00"
    assert merge_continuation_lines(text) == "Storitev svetovanje 50,00\nSkupaj 50,00"


def test_prepare_text_optionally_merges():
    raw = "Service\n\nrepair 80.00"
    assert prepare_text(raw) == "Service\nrepair 80.00"
    assert prepare_text(raw, merge_continuations=True) == "Service repair 80.00"
    assert prepare_text("Support\nhours x 3 60.00", merge_continuations=True) == "Support hours x 3 60.00"


def test_join_pages_preserves_order_with_markers():
    joined = join_pages(["Coffee 2.50\n", "Total 2.50"])
    assert joined == "--- Page 1 ---\nCoffee 2.50\n\n--- Page 2 ---\nTotal 2.50"
    assert join_pages([]) == ""


def test_prepare_pages_uses_one_locale_for_the_document():
    first = "Kava 9,50\nz mlekom 0,80"
    second = "Za plačilo 10,30 €"
    # On its own the first page reads as English and 9,50 as a strong price.
    assert prepare_text(first, merge_continuations=True) == first
    prepared = prepare_pages([first, second], merge_continuations=True)
    assert prepared == "--- Page 1 ---\nKava 9,50 z mlekom 0,80\n\n--- Page 2 ---\nZa plačilo 10,30 €"


def test_prepare_pages_single_page_has_no_marker():
    assert prepare_pages(["Total:\n9.99"], normalize=True) == "Total: 9.99"
    assert prepare_pages([]) == ""
