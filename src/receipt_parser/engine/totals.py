"""Total amount: keyword-anchored candidates plus net/VAT reconstruction."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

from ..domain.locale import LocaleProfile
from ..domain.models import (
    AmountToken,
    DEFAULT_FALLBACK_POLICY,
    FallbackPolicy,
    NormalizedAmount,
    TotalCandidate,
)
from ..domain.normalize import (
    CURRENCY_MARK,
    PRICE_NUMBER,
    find_amount_tokens,
    normalize_amount,
    normalize_currency,
)
from ..logging import get_logger

LOG = get_logger("totals")

# "<rate>% <net> <vat>" as printed in a VAT recap table.
_VAT_RECAP_RE = re.compile(
    r"(?<![\d.,])(?P<rate>\d{1,2}(?:[.,]\d{1,2})?)\s*%\s*"
    rf"(?P<net>{PRICE_NUMBER})(?![.,]?\d)(?:\s*(?P<net_cur>{CURRENCY_MARK}))?\s+"
    rf"(?P<vat>{PRICE_NUMBER})(?![.,]?\d)(?:\s*(?P<vat_cur>{CURRENCY_MARK}))?",
    re.IGNORECASE,
)

FLAT_AMOUNT_REACH = 80


def _pick_window_token(tokens: Sequence[AmountToken]) -> Optional[AmountToken]:
    # Quantities and codes precede the amount; prefer the last real-looking price.
    for token in reversed(tokens):
        if token.has_decimals or token.currency:
            return token
    return tokens[-1] if tokens else None


def find_total_candidates(text: str, profile: LocaleProfile) -> List[TotalCandidate]:
    """Scan every total keyword occurrence and collect positive amounts, largest first."""
    candidates: List[TotalCandidate] = []
    for pattern in profile.total_windows:
        for m in pattern.finditer(text or ""):
            token = _pick_window_token(find_amount_tokens(m.group("window")))
            if token is None:
                continue
            value = normalize_amount(token.raw, profile.locale)
            if value is None or value <= 0:
                continue
            candidates.append(TotalCandidate(context=m.group(0).strip(), value=value, currency=token.currency))
    candidates.sort(key=lambda c: c.value, reverse=True)
    LOG.debug(f"Total candidates: {[(c.context, c.value) for c in candidates]}")
    return candidates


def vat_summary_total(units: Sequence[str], profile: LocaleProfile) -> Optional[NormalizedAmount]:
    """Net + VAT from recap lines, one per distinct rate."""
    by_rate: Dict[str, NormalizedAmount] = {}
    for unit in units:
        for m in _VAT_RECAP_RE.finditer(unit):
            rate = normalize_amount(m.group("rate"), profile.locale)
            net = normalize_amount(m.group("net"), profile.locale)
            vat = normalize_amount(m.group("vat"), profile.locale)
            if rate is None or net is None or vat is None:
                continue
            if rate > 100 or vat >= net:
                continue
            key = f"{rate:.2f}"
            if key in by_rate:
                continue
            currency = normalize_currency(m.group("net_cur")) or normalize_currency(m.group("vat_cur"))
            by_rate[key] = NormalizedAmount(value=net + vat, currency=currency)
    if not by_rate:
        return None
    parts = list(by_rate.values())
    currency = next((p.currency for p in parts if p.currency), None)
    return NormalizedAmount(value=round(sum(p.value for p in parts), 2), currency=currency)


def _amount_after(unit: str, pos: int, profile: LocaleProfile, *, flat: bool) -> Optional[NormalizedAmount]:
    segment = unit[pos:pos + FLAT_AMOUNT_REACH] if flat else unit[pos:]
    tokens = find_amount_tokens(segment, require_decimals=True) or find_amount_tokens(segment)
    if not tokens:
        return None
    token = tokens[0] if flat else tokens[-1]
    value = normalize_amount(token.raw, profile.locale)
    if value is None or value <= 0:
        return None
    return NormalizedAmount(value=value, currency=token.currency)


def _net_spans(unit: str, profile: LocaleProfile):
    spans = []
    for pat in profile.net_keywords.patterns:
        spans.extend(m.span() for m in pat.finditer(unit))
    return spans


def net_vat_total(
    units: Sequence[str],
    profile: LocaleProfile,
    *,
    flat: bool = False,
) -> Optional[NormalizedAmount]:
    """Sum the first net/base amount with the first smaller VAT amount.

    In line mode a unit that names the tax base is a net line even when it
    also mentions VAT ("Osnova za DDV"). In flat mode the single unit holds
    both, so VAT keywords inside a net phrase are skipped instead.
    """
    net: Optional[NormalizedAmount] = None
    vats: List[NormalizedAmount] = []
    for unit in units:
        net_match = profile.net_keywords.search(unit)
        if net_match and net is None:
            net = _amount_after(unit, net_match.end(), profile, flat=flat)
        if net_match and not flat:
            continue
        spans = _net_spans(unit, profile)
        vat_matches = []
        for pat in profile.vat_keywords.patterns:
            for m in pat.finditer(unit):
                if any(s <= m.start() < e for s, e in spans):
                    continue
                vat_matches.append(m)
        vat_matches.sort(key=lambda m: (m.start(), -m.end()))
        if not flat:
            vat_matches = vat_matches[:1]
        for m in vat_matches:
            amount = _amount_after(unit, m.end(), profile, flat=flat)
            if amount is not None:
                vats.append(amount)
    if net is None:
        return None
    vat = next((v for v in vats if v.value < net.value), None)
    if vat is None:
        return None
    LOG.debug(f"Net+VAT reconstruction: {net.value} + {vat.value}")
    return NormalizedAmount(value=round(net.value + vat.value, 2), currency=net.currency or vat.currency)


def resolve_total(
    text: str,
    units: Sequence[str],
    profile: LocaleProfile,
    policy: FallbackPolicy = DEFAULT_FALLBACK_POLICY,
    *,
    flat: bool = False,
) -> Optional[NormalizedAmount]:
    """Pick the best keyword candidate, then let each fallback override it."""
    candidates = find_total_candidates(text, profile)
    best: Optional[NormalizedAmount] = None
    if candidates:
        top = candidates[0]
        best = NormalizedAmount(value=top.value, currency=top.currency)
    fallbacks = (
        ("vat-summary", vat_summary_total(units, profile)),
        ("net+vat", net_vat_total(units, profile, flat=flat)),
    )
    for label, fallback in fallbacks:
        if fallback is None:
            continue
        if policy.prefers(fallback.value, best.value if best else None):
            LOG.debug(f"Total from {label} fallback: {fallback.value} (was {best.value if best else None})")
            best = NormalizedAmount(value=fallback.value, currency=fallback.currency or (best.currency if best else None))
    return best
