"""Locale detection and the per-locale keyword tables.

Every downstream step takes a :class:`LocaleProfile` instead of reaching for
module globals. Keyword patterns are compiled once here, at import time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Pattern, Tuple

from ..logging import get_logger

LOG = get_logger("locale")


class Locale(str, Enum):
    ENGLISH = "en"
    SLOVENIAN = "sl"


# Presence of any of these (lowercased substring) marks a Slovenian document.
SLOVENIAN_MARKERS: Tuple[str, ...] = (
    "račun",
    "kupec",
    "ddv",
    "znesek",
    "ponudba",
    "skupaj",
    "za plačilo",
    "plačano",
)


def _word_pattern(keywords: Iterable[str]) -> Tuple[Pattern[str], ...]:
    # Whole-word, case-insensitive; inner spaces tolerate OCR spacing noise.
    out = []
    for kw in keywords:
        body = r"\s+".join(re.escape(part) for part in kw.split())
        out.append(re.compile(rf"(?<!\w){body}(?!\w)", re.IGNORECASE))
    return tuple(out)


def _window_pattern(keyword: str, width: int) -> Pattern[str]:
    body = r"\s+".join(re.escape(part) for part in keyword.split())
    return re.compile(rf"(?<!\w){body}(?!\w)(?P<window>[^\n]{{0,{width}}})", re.IGNORECASE)


@dataclass(frozen=True)
class KeywordSet:
    words: Tuple[str, ...]
    patterns: Tuple[Pattern[str], ...]

    @classmethod
    def of(cls, *words: str) -> "KeywordSet":
        return cls(tuple(words), _word_pattern(words))

    def search(self, text: str):
        """Return the earliest whole-word match in ``text`` or None."""
        best = None
        for pat in self.patterns:
            m = pat.search(text)
            if m and (best is None or m.start() < best.start()):
                best = m
        return best

    def matches(self, text: str) -> bool:
        return any(pat.search(text) for pat in self.patterns)


@dataclass(frozen=True)
class LocaleProfile:
    locale: Locale
    total_keywords: Tuple[str, ...]
    total_windows: Tuple[Pattern[str], ...]
    net_keywords: KeywordSet
    vat_keywords: KeywordSet
    forbidden_merge: KeywordSet
    description: KeywordSet
    item_exclusions: KeywordSet

    @property
    def decimal_comma(self) -> bool:
        return self.locale is Locale.SLOVENIAN


TOTAL_WINDOW = 80


def _profile(
    locale: Locale,
    *,
    totals: Tuple[str, ...],
    net: Tuple[str, ...],
    vat: Tuple[str, ...],
    forbidden: Tuple[str, ...],
    description: Tuple[str, ...],
    exclusions: Tuple[str, ...],
) -> LocaleProfile:
    return LocaleProfile(
        locale=locale,
        total_keywords=totals,
        total_windows=tuple(_window_pattern(kw, TOTAL_WINDOW) for kw in totals),
        net_keywords=KeywordSet.of(*net),
        vat_keywords=KeywordSet.of(*vat),
        forbidden_merge=KeywordSet.of(*forbidden),
        description=KeywordSet.of(*description),
        item_exclusions=KeywordSet.of(*exclusions),
    )


_ENGLISH_EXCLUSIONS = (
    "transaction", "terminal", "id", "number", "purchase", "type", "response",
    "approval", "credit", "paid by", "card", "visa", "mastercard", "maestro",
    "sub total", "subtotal", "tax",
    "total", "vat", "invoice", "date", "valid", "validity", "valid until",
    "balance", "change",
)

ENGLISH = _profile(
    Locale.ENGLISH,
    totals=(
        "total", "grand total", "total amount", "total price", "amount due",
        "balance due", "amount", "sum", "end sum", "to pay",
    ),
    net=("subtotal", "sub total", "net amount", "net total", "net", "tax base"),
    vat=("vat", "tax"),
    forbidden=(
        "total", "subtotal", "sub total", "vat", "tax", "date", "period",
        "due", "valid", "balance",
    ),
    description=("description", "service", "item", "product"),
    exclusions=_ENGLISH_EXCLUSIONS,
)

# Slovenian receipts routinely print English footer words too.
SLOVENIAN = _profile(
    Locale.SLOVENIAN,
    totals=(
        "skupaj", "skupaj z ddv", "skupaj za plačilo", "za plačilo",
        "znesek za plačilo", "končni znesek", "skupaj znesek",
        "skupna vrednost", "znesek", "total",
    ),
    net=("osnova za ddv", "osnova", "vrednost brez ddv", "brez ddv", "neto"),
    vat=("skupaj ddv", "znesek ddv", "ddv"),
    forbidden=(
        "skupaj", "ddv", "znesek", "za plačilo", "osnova", "datum",
        "obdobje", "rok plačila", "veljavnost", "velja do",
    ),
    description=("opis", "storitev", "artikel", "izdelek"),
    exclusions=(
        "transakcija", "terminal", "številka", "nakup", "tip", "odgovor",
        "odobritev", "kredit", "plačano z", "kartica", "vrednost brez ddv",
        "ddv", "skupaj", "račun", "datum", "veljavnost", "velja do",
        "za plačilo", "znesek", "osnova", "vračilo",
    ) + _ENGLISH_EXCLUSIONS,
)

PROFILES: Mapping[Locale, LocaleProfile] = MappingProxyType(
    {Locale.ENGLISH: ENGLISH, Locale.SLOVENIAN: SLOVENIAN}
)


def detect_locale(text: str) -> Locale:
    lowered = (text or "").lower()
    for marker in SLOVENIAN_MARKERS:
        if marker in lowered:
            LOG.debug(f"Locale: slovenian (marker '{marker}')")
            return Locale.SLOVENIAN
    LOG.debug("Locale: english (no slovenian marker)")
    return Locale.ENGLISH


def get_profile(locale: Locale) -> LocaleProfile:
    return PROFILES[locale]
