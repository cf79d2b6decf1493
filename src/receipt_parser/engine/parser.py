"""Receipt text → :class:`ParsedReceipt`.

Each stage runs in isolation: a failure in one stage is logged and turns
into an absent field, never into an exception for the caller.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

from ..domain.locale import Locale, detect_locale, get_profile
from ..domain.models import (
    DEFAULT_CURRENCY,
    DEFAULT_FALLBACK_POLICY,
    FallbackPolicy,
    ItemMode,
    NormalizedAmount,
    ParsedReceipt,
)
from ..logging import get_logger
from .dates import extract_date
from .items import extract_items
from .text import split_lines
from .totals import resolve_total

LOG = get_logger("parser")

PARSER_VERSION = "1.2.0"

T = TypeVar("T")


def _guarded(stage: str, fn: Callable[[], T], default: T) -> T:
    try:
        return fn()
    except Exception as exc:
        LOG.error(f"Stage '{stage}' failed with {exc.__class__.__name__}: {exc}")
        return default


class ReceiptParser:
    """Reusable parser bound to an item mode and a fallback policy."""

    def __init__(
        self,
        mode: ItemMode = ItemMode.LINE,
        policy: Optional[FallbackPolicy] = None,
    ) -> None:
        self.mode = ItemMode.parse(mode)
        self.policy = policy or DEFAULT_FALLBACK_POLICY

    def parse(self, text: Any) -> ParsedReceipt:
        raw = text if isinstance(text, str) else ""
        flat = self.mode is ItemMode.FLAT

        locale = _guarded("locale", lambda: detect_locale(raw), Locale.ENGLISH)
        profile = get_profile(locale)
        lines = split_lines(raw)
        units = [raw] if flat else lines

        total: Optional[NormalizedAmount] = _guarded(
            "total",
            lambda: resolve_total(raw, units, profile, self.policy, flat=flat),
            None,
        )
        date = _guarded("date", lambda: extract_date(units), None)
        currency = (total.currency if total else None) or DEFAULT_CURRENCY
        items = _guarded(
            "items",
            lambda: extract_items(raw, lines, profile, self.mode, currency),
            [],
        )

        receipt = ParsedReceipt(
            version=PARSER_VERSION,
            date=date,
            total=total.format(currency) if total else None,
            items=tuple(items),
        )
        LOG.debug(
            f"Parsed receipt: locale={locale.value} mode={self.mode.value} "
            f"date={receipt.date} total={receipt.total} items={len(receipt.items)}"
        )
        return receipt


def parse_receipt(
    text: Any,
    mode: ItemMode = ItemMode.LINE,
    *,
    policy: Optional[FallbackPolicy] = None,
) -> ParsedReceipt:
    """Parse one (possibly multi-page) receipt text block."""
    return ReceiptParser(mode=mode, policy=policy).parse(text)
