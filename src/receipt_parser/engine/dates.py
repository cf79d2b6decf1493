from __future__ import annotations

import re
from typing import Iterable, Optional

from ..domain.normalize import normalize_date_iso
from ..logging import get_logger

LOG = get_logger("dates")

DATE_RE = re.compile(
    r"(?<!\d)(?:"
    r"(?P<y1>\d{4})(?P<s1>[./-])(?P<m1>\d{1,2})(?P=s1)(?P<d1>\d{1,2})"
    r"|(?P<d2>\d{1,2})(?P<s2>[./-])(?P<m2>\d{1,2})(?P=s2)(?P<y2>\d{4}|\d{2})"
    r")(?!\d)"
)


def _interpret(m: re.Match) -> Optional[str]:
    if m.group("y1"):
        return normalize_date_iso(int(m.group("y1")), int(m.group("m1")), int(m.group("d1")))
    day, month, year = int(m.group("d2")), int(m.group("m2")), int(m.group("y2"))
    iso = normalize_date_iso(year, month, day)
    # Month-first prints only when the middle field cannot be a month.
    if iso is None and month > 12:
        iso = normalize_date_iso(year, day, month)
    return iso


def find_date(text: str) -> Optional[str]:
    """First calendar date in ``text`` as YYYY-MM-DD."""
    for m in DATE_RE.finditer(text or ""):
        iso = _interpret(m)
        if iso:
            return iso
        LOG.debug(f"Skipping non-calendar date token '{m.group(0)}'")
    return None


def extract_date(units: Iterable[str]) -> Optional[str]:
    """Return the issue date from the first unit (line, or whole text) holding one."""
    for unit in units:
        iso = find_date(unit)
        if iso:
            return iso
    return None
