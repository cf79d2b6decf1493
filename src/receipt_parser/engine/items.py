"""Line item extraction, one extractor per :class:`ItemMode`."""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..domain.locale import LocaleProfile
from ..domain.models import DEFAULT_CURRENCY, ItemMode, LineItem, format_money
from ..domain.normalize import find_amount_tokens, normalize_amount
from ..logging import get_logger

LOG = get_logger("items")

_QUANTITY_PREFIX = re.compile(r"^\d+\s*(?:[x×*]\s*|\s+)", re.IGNORECASE)
_LEADING_BULLETS = re.compile(r"^[\s\-–—•·*.:>]+")
_TRAILING_JUNK = re.compile(r"[\s\-–—:=.]+$")
_WS = re.compile(r"\s+")
_HAS_LETTER = re.compile(r"[^\W\d_]")
_PAGE_MARKER = re.compile(r"-{2,}\s*page\s+\d+[^\n-]*-{2,}", re.IGNORECASE)

MIN_NAME_LENGTH = 2
FLAT_NAME_REACH = 60

# Structural noise that flat scanning drags in as "names": payment footers,
# loyalty boilerplate, VAT recap rows, page markers.
FLAT_NOISE_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^(?:sub\s*)?total\b",
        r"^(?:skupaj|za\s+plačilo|znesek)\b",
        r"^(?:vat|tax|ddv)\b",
        r"^(?:osnova|neto|net)\b",
        r"^\d{1,2}(?:[.,]\d{1,2})?\s*%",
        r"^(?:visa|mastercard|maestro|amex|debit|credit|kartica|card)\b",
        r"^(?:auth|approval|approved|ref|slip|terminal|transaction|transakcija|odobritev)\b",
        r"^(?:points|rewards|loyalty|member|bonus|točke|zvestob)",
        r"^(?:cash|change|gotovina|vračilo)\b",
        r"^(?:thank\s*you|hvala)",
        r"^(?:x{4,}|\*{4,})",
        r"^(?:eur|usd|€|\$)$",
    )
)


def clean_name(raw: str) -> str:
    """Collapse whitespace, drop quantity prefix and leading bullets."""
    name = _WS.sub(" ", raw or "").strip()
    name = _LEADING_BULLETS.sub("", name)
    name = _QUANTITY_PREFIX.sub("", name)
    name = _LEADING_BULLETS.sub("", name)
    return _TRAILING_JUNK.sub("", name).strip()


def _accepts(name: str, profile: LocaleProfile) -> bool:
    if len(name) < MIN_NAME_LENGTH or not _HAS_LETTER.search(name):
        return False
    return not profile.item_exclusions.matches(name)


def _dedupe(items: Sequence[LineItem]) -> List[LineItem]:
    seen: Set[Tuple[str, str]] = set()
    out: List[LineItem] = []
    for it in items:
        key = (it.name, it.price)
        if key in seen:
            continue
        seen.add(key)
        out.append(it)
    return out


def _price(raw: str, token_currency: Optional[str], currency: str, profile: LocaleProfile) -> Optional[str]:
    value = normalize_amount(raw, profile.locale)
    if value is None:
        return None
    return format_money(value, token_currency or currency)


def extract_items_by_line(
    lines: Sequence[str],
    profile: LocaleProfile,
    currency: str = DEFAULT_CURRENCY,
) -> List[LineItem]:
    items: List[LineItem] = []
    for line in lines:
        tokens = find_amount_tokens(line, require_decimals=True)
        if not tokens:
            continue
        last = tokens[-1]
        name = clean_name(line[:last.start])
        if not _accepts(name, profile):
            continue
        price = _price(last.raw, last.currency, currency, profile)
        if price is None:
            continue
        items.append(LineItem(name=name, price=price))
    return _dedupe(items)


def extract_items_flat(
    text: str,
    profile: LocaleProfile,
    currency: str = DEFAULT_CURRENCY,
) -> List[LineItem]:
    """Scan the whole block for prices; the span before each one is its name."""
    items: List[LineItem] = []
    prev_end = 0
    for token in find_amount_tokens(text, require_decimals=True):
        start = max(prev_end, token.start - FLAT_NAME_REACH)
        name = clean_name(_PAGE_MARKER.split(text[start:token.start])[-1])
        prev_end = token.end
        if not _accepts(name, profile):
            continue
        if any(p.search(name) for p in FLAT_NOISE_PATTERNS):
            continue
        price = _price(token.raw, token.currency, currency, profile)
        if price is None:
            continue
        items.append(LineItem(name=name, price=price))
    return _dedupe(items)


def _by_line(text: str, lines: Sequence[str], profile: LocaleProfile, currency: str) -> List[LineItem]:
    return extract_items_by_line(lines, profile, currency)


def _flat(text: str, lines: Sequence[str], profile: LocaleProfile, currency: str) -> List[LineItem]:
    return extract_items_flat(text, profile, currency)


EXTRACTORS: Dict[ItemMode, Callable[[str, Sequence[str], LocaleProfile, str], List[LineItem]]] = {
    ItemMode.LINE: _by_line,
    ItemMode.FLAT: _flat,
}


def extract_items(
    text: str,
    lines: Sequence[str],
    profile: LocaleProfile,
    mode: ItemMode = ItemMode.LINE,
    currency: str = DEFAULT_CURRENCY,
) -> List[LineItem]:
    items = EXTRACTORS[mode](text, lines, profile, currency)
    LOG.debug(f"Extracted {len(items)} item(s) in {mode.value} mode")
    return items
