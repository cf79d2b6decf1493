"""Text cleanup and line joining applied to OCR/PDF output before parsing."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from ..domain.locale import Locale, detect_locale, get_profile
from ..domain.normalize import find_amount_tokens, normalize_amount
from ..logging import get_logger

LOG = get_logger("text")

_INVISIBLE = re.compile("[\u200b-\u200d\u2060\ufeff\u00ad]")
_MULTI_SPACE = re.compile(r" {2,}")
# Word characters, spaces and - / . , + only: a label waiting for its value.
_PLAIN_LABEL = re.compile(r"[^\W\d_][\w \-/.,+]*")
_ENDS_WITH_PRICE = re.compile(r"\d[.,]\d{1,2}$")
_VALUE_START = re.compile(r"^(?:\d|[€$]|EUR\b|USD\b)", re.IGNORECASE)

STRONG_PRICE_THRESHOLD = 10.0


def split_lines(text: str) -> List[str]:
    return [ln.strip() for ln in (text or "").split("\n") if ln.strip()]


def _clean_chars(raw: str) -> str:
    s = raw.replace("\r\n", "\n").replace("\r", "\n")
    s = s.replace("\u00a0", " ")
    s = _INVISIBLE.sub("", s)
    s = s.replace("\t", " ")
    return _MULTI_SPACE.sub(" ", s)


def _joins(line: str, nxt: str) -> bool:
    # A line that already ends in a price has its value.
    if _PLAIN_LABEL.fullmatch(line) and not _ENDS_WITH_PRICE.search(line) and _VALUE_START.match(nxt):
        return True
    return line.endswith(":") and bool(nxt)


def normalize_text(raw: Optional[str]) -> str:
    """Clean invisible characters and spacing, then re-join split label/value lines.

    A line ending in ``:`` is joined with its successor, and so is a bare label
    (no price of its own) followed by a line that starts with a digit or
    currency. The joined line is checked again against its new successor, so
    normalizing twice is a no-op.
    """
    if not raw:
        return ""
    lines = split_lines(_clean_chars(raw))
    out: List[str] = []
    i = 0
    while i < len(lines):
        current = lines[i]
        while i + 1 < len(lines) and _joins(current, lines[i + 1]):
            current = f"{current} {lines[i + 1]}"
            i += 1
        out.append(current)
        i += 1
    return "\n".join(out)


def _has_strong_price(line: str, locale: Locale) -> bool:
    tokens = find_amount_tokens(line)
    if len(tokens) > 1:
        return True
    if len(tokens) == 1:
        value = normalize_amount(tokens[0].raw, locale)
        return value is not None and value > STRONG_PRICE_THRESHOLD
    return False


def merge_continuation_lines(text: str, locale: Optional[Locale] = None) -> str:
    """Fold multi-line item descriptions into the line that carries the price.

    The running buffer absorbs the next line only when neither line belongs
    to a total/VAT/date block, the current line has no strong price of its
    own (or is explicitly a description), and the next line has an amount.
    """
    lines = split_lines(text)
    if not lines:
        return ""
    profile = get_profile(locale or detect_locale(text))
    merged: List[str] = []
    buffer = ""
    for idx, line in enumerate(lines):
        buffer = f"{buffer} {line}" if buffer else line
        nxt = lines[idx + 1] if idx + 1 < len(lines) else None
        if nxt is not None:
            forbidden = profile.forbidden_merge.matches(line) or profile.forbidden_merge.matches(nxt)
            weak = not _has_strong_price(line, profile.locale) or profile.description.matches(line)
            if not forbidden and weak and find_amount_tokens(nxt):
                continue
        merged.append(buffer)
        buffer = ""
    LOG.debug(f"Continuation merge: {len(lines)} line(s) -> {len(merged)}")
    return "\n".join(merged)


def prepare_text(
    raw: Optional[str],
    *,
    merge_continuations: bool = False,
    locale: Optional[Locale] = None,
) -> str:
    """Normalize one page of text and optionally merge continuation lines."""
    text = normalize_text(raw)
    if merge_continuations:
        text = merge_continuation_lines(text, locale)
    return text


def join_pages(pages: Sequence[str]) -> str:
    """Concatenate per-page text in order with ``--- Page i ---`` markers."""
    chunks = []
    for i, page in enumerate(pages, start=1):
        chunks.append(f"\n\n--- Page {i} ---\n{(page or '').strip()}")
    return "".join(chunks).strip()


def prepare_pages(
    pages: Sequence[str],
    *,
    normalize: bool = False,
    merge_continuations: bool = False,
) -> str:
    """Turn per-page text into one parser input.

    Cleanup uses a single locale detected over all pages together. A single
    page is returned without a page marker.
    """
    pages = list(pages)
    if normalize or merge_continuations:
        locale = detect_locale("\n".join(pages))
        pages = [prepare_text(p, merge_continuations=merge_continuations, locale=locale) for p in pages]
    return pages[0] if len(pages) == 1 else join_pages(pages)
