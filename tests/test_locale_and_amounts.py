import os
import sys

import pytest

sys.path.insert(0, os.path.abspath("src"))

from receipt_parser.domain.locale import Locale, SLOVENIAN_MARKERS, detect_locale, get_profile
from receipt_parser.domain.normalize import find_amount_tokens, normalize_amount


def test_text_without_markers_is_english():
    assert detect_locale("GROCERY STORE\nMilk 1.20\nTotal 1.20") is Locale.ENGLISH
    assert detect_locale("") is Locale.ENGLISH


@pytest.mark.parametrize("marker", SLOVENIAN_MARKERS)
def test_any_slovenian_marker_flips_locale(marker):
    base = "GROCERY STORE\nMilk 1.20\n"
    assert detect_locale(base + marker.upper()) is Locale.SLOVENIAN
    # More English content cannot flip it back
    assert detect_locale(base + marker + "\nTotal amount due\nThank you") is Locale.SLOVENIAN


def test_profiles_are_locale_specific():
    assert get_profile(Locale.SLOVENIAN).decimal_comma
    assert not get_profile(Locale.ENGLISH).decimal_comma
    assert "skupaj" in get_profile(Locale.SLOVENIAN).total_keywords


@pytest.mark.parametrize(
    "token,locale,expected",
    [
        ("1,234.56", Locale.ENGLISH, 1234.56),
        ("1.234,56", Locale.SLOVENIAN, 1234.56),
        ("12.50", Locale.SLOVENIAN, 12.5),
        ("12,50", Locale.SLOVENIAN, 12.5),
        ("1.234", Locale.SLOVENIAN, 1234.0),
        ("0.500", Locale.SLOVENIAN, 0.5),
        ("12.345", Locale.SLOVENIAN, 12345.0),
        ("1.234.567", Locale.SLOVENIAN, 1234567.0),
        ("45", Locale.ENGLISH, 45.0),
    ],
)
def test_normalize_amount_honours_locale_separators(token, locale, expected):
    assert normalize_amount(token, locale) == pytest.approx(expected)


@pytest.mark.parametrize("token", ["", "abc", "1..", None])
def test_unparseable_amount_is_absent(token):
    assert normalize_amount(token, Locale.ENGLISH) is None


def test_amount_tokens_skip_date_parts_and_carry_currency():
    tokens = find_amount_tokens("Date 05.03.24 Coffee 2.50 EUR")
    assert [(t.raw, t.currency) for t in tokens] == [("2.50", "EUR")]
    assert tokens[0].has_decimals


def test_price_tokens_require_decimals():
    line = "2x Coffee 5.00 €"
    assert [t.raw for t in find_amount_tokens(line)] == ["2", "5.00"]
    prices = find_amount_tokens(line, require_decimals=True)
    assert [(t.raw, t.currency) for t in prices] == [("5.00", "€")]
    assert line[: prices[0].start] == "2x Coffee "
