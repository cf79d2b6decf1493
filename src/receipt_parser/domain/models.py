from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


DEFAULT_CURRENCY = "€"


class ItemMode(str, Enum):
    """How line items are located in the text."""

    LINE = "line"
    FLAT = "flat"

    @classmethod
    def parse(cls, value: Any) -> "ItemMode":
        if isinstance(value, ItemMode):
            return value
        if isinstance(value, str):
            candidate = value.strip().lower()
            for mode in cls:
                if mode.value == candidate:
                    return mode
        raise ValueError(f"Unknown item mode: {value!r} (expected 'line' or 'flat')")


@dataclass(frozen=True)
class FallbackPolicy:
    """When a reconstructed total replaces the keyword-anchored one.

    A fallback wins if there is no candidate, if it lies within ``tolerance``
    of the candidate, or (with ``prefer_larger``) if it is strictly larger:
    OCR drops digits far more often than it invents them.
    """

    tolerance: float = 0.05
    prefer_larger: bool = True

    def prefers(self, fallback: float, current: Optional[float]) -> bool:
        if current is None:
            return True
        if abs(fallback - current) <= self.tolerance + 1e-9:
            return True
        return self.prefer_larger and fallback > current


DEFAULT_FALLBACK_POLICY = FallbackPolicy()


@dataclass(frozen=True)
class AmountToken:
    """A number-shaped substring with its offsets in the scanned text."""

    raw: str
    currency: Optional[str]
    start: int
    end: int

    @property
    def has_decimals(self) -> bool:
        tail = self.raw[-3:]
        return "." in tail or "," in tail


@dataclass(frozen=True)
class NormalizedAmount:
    value: float
    currency: Optional[str] = None

    def format(self, default_currency: str = DEFAULT_CURRENCY) -> str:
        return format_money(self.value, self.currency or default_currency)


@dataclass(frozen=True)
class TotalCandidate:
    context: str
    value: float
    currency: Optional[str] = None


@dataclass(frozen=True)
class LineItem:
    name: str
    price: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "price": self.price}


@dataclass(frozen=True)
class ParsedReceipt:
    version: str
    date: Optional[str] = None
    total: Optional[str] = None
    items: Tuple[LineItem, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "date": self.date,
            "total": self.total,
            "items": [it.to_dict() for it in self.items],
        }


def format_money(value: float, currency: str) -> str:
    return f"{value:.2f} {currency}"
