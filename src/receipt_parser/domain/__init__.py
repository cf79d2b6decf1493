"""Domain types, locale tables and value normalization."""

from .locale import Locale, LocaleProfile, detect_locale, get_profile
from .models import (
    DEFAULT_CURRENCY,
    AmountToken,
    FallbackPolicy,
    ItemMode,
    LineItem,
    NormalizedAmount,
    ParsedReceipt,
    TotalCandidate,
)
from .normalize import find_amount_tokens, normalize_amount

__all__ = [
    "DEFAULT_CURRENCY",
    "AmountToken",
    "FallbackPolicy",
    "ItemMode",
    "LineItem",
    "Locale",
    "LocaleProfile",
    "NormalizedAmount",
    "ParsedReceipt",
    "TotalCandidate",
    "detect_locale",
    "find_amount_tokens",
    "get_profile",
    "normalize_amount",
]
