import datetime as dt
import math
import re
from typing import List, Optional

from ..logging import get_logger
from .locale import Locale
from .models import AmountToken, NormalizedAmount

_LOG = get_logger("normalize")

CURRENCY_MARK = r"EUR\b|USD\b|€|\$"
PRICE_NUMBER = r"\d{1,3}(?:[.,]\d{3})*[.,]\d{1,2}|\d+[.,]\d{1,2}"

_CURRENCY = rf"(?:\s*(?P<currency>{CURRENCY_MARK}))?"

# "1.234" but not "0.500": a lone dot groups thousands only after a real integer part.
_THOUSANDS_DOT = re.compile(r"[1-9]\d{0,2}\.\d{3}")

# A number not glued to other digits or separators, so date parts
# such as "05.03" in "05.03.24" never read as amounts.
AMOUNT_RE = re.compile(
    r"(?<![\d.,])"
    r"(?P<number>\d{1,3}(?:[.,]\d{3})+(?:[.,]\d{1,2})?|\d+(?:[.,]\d{1,2})?)"
    r"(?![.,]?\d)" + _CURRENCY,
    re.IGNORECASE,
)

# Same shape with mandatory decimals: what a price looks like.
PRICE_RE = re.compile(
    r"(?<![\d.,])"
    rf"(?P<number>{PRICE_NUMBER})"
    r"(?![.,]?\d)" + _CURRENCY,
    re.IGNORECASE,
)


def normalize_currency(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    v = value.strip()
    if v in {"€", "$"}:
        return v
    return v.upper() or None


def find_amount_tokens(text: str, *, require_decimals: bool = False) -> List[AmountToken]:
    """Return every amount-shaped token in ``text`` in order of appearance."""
    pattern = PRICE_RE if require_decimals else AMOUNT_RE
    tokens: List[AmountToken] = []
    for m in pattern.finditer(text or ""):
        tokens.append(
            AmountToken(
                raw=m.group("number"),
                currency=normalize_currency(m.group("currency")),
                start=m.start(),
                end=m.end(),
            )
        )
    return tokens


def normalize_amount(token: str, locale: Locale) -> Optional[float]:
    """Convert a raw numeric token to a float using the locale's separators.

    Slovenian: comma is the decimal separator and dot groups thousands.
    Without a comma, several dots are all thousands separators; a single dot
    is a thousands separator only when exactly three digits follow a non-zero
    integer part, so "12.50" stays 12.5 and "0.500" is 0.5 while "1.234"
    becomes 1234.
    English: commas group thousands, dot is the decimal point.

    Returns None for anything that does not parse to a finite number.
    """
    if token is None:
        return None
    s = str(token).strip().replace(" ", "")
    if not s:
        return None
    if locale is Locale.SLOVENIAN:
        if "," in s:
            s = s.replace(".", "").replace(",", ".")
        elif s.count(".") > 1:
            s = s.replace(".", "")
        elif _THOUSANDS_DOT.fullmatch(s):
            s = s.replace(".", "")
    else:
        s = s.replace(",", "")
    try:
        value = float(s)
    except ValueError:
        _LOG.debug(f"Discarding unparseable amount token '{token}'")
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def to_amount(token: AmountToken, locale: Locale) -> Optional[NormalizedAmount]:
    value = normalize_amount(token.raw, locale)
    if value is None:
        return None
    return NormalizedAmount(value=value, currency=token.currency)


def normalize_date_iso(year: int, month: int, day: int) -> Optional[str]:
    """Canonical YYYY-MM-DD for a calendar date, two-digit years mapped to 20xx."""
    if year < 100:
        year += 2000
    try:
        return dt.date(year, month, day).isoformat()
    except ValueError:
        return None
