"""Value parsing helpers shared across dialects, normalization, and identity.

Amounts are handled as :class:`~decimal.Decimal` end to end and formatted with
exactly two decimals (``ROUND_HALF_UP``). Dates are returned as ISO
``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CENTS = Decimal("0.01")

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def to_decimal(raw: str | int | float | Decimal | None) -> Decimal:
    """Parse a printed amount such as ``"-$1,234.56"`` or ``"($12.00)"``.

    Leading ``+``/``-``, a ``$`` symbol, and surrounding parentheses may appear
    in any order; parentheses mean negative. Thousands separators are dropped.
    """

    if raw is None:
        raise ValueError("amount is required")
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, int | float):
        return Decimal(str(raw))
    s = raw.strip()
    if not s:
        raise ValueError("amount is empty")
    negative = False
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break
    s = s.replace(",", "").strip()
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    return -abs(d) if negative else d


def quantize_money(d: Decimal) -> Decimal:
    return d.quantize(_CENTS, rounding=ROUND_HALF_UP)


def fmt_amount(d: Decimal) -> str:
    """Exactly two decimals, ASCII dot, leading minus for negatives."""

    return f"{quantize_money(d):.2f}"


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11,
    "december": 12, "jan": 1, "feb": 2, "mar": 3, "apr": 4, "jun": 6, "jul": 7,
    "aug": 8, "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}  # fmt: skip

_US_FULL_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_US_SHORT_RE = re.compile(r"^(\d{1,2})/(\d{1,2})$")
_MONTH_DAY_YEAR_RE = re.compile(r"([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})")


def parse_us_date(
    text: str,
    statement_year: int | None = None,
    *,
    period_end: str | None = None,
) -> str:
    """Convert ``MM/DD/YY``, ``MM/DD/YYYY`` or ``MM/DD`` to ISO.

    ``MM/DD`` needs ``statement_year``. When ``period_end`` is given and the
    resulting date falls after it, the previous year is used instead so a
    December entry on a statement closing in January lands in the right year.
    """

    s = text.strip()
    m = _US_FULL_RE.match(s)
    if m:
        month, day, year = int(m.group(1)), int(m.group(2)), m.group(3)
        full_year = int(year) + 2000 if len(year) == 2 else int(year)
        return _iso(full_year, month, day, text)
    m = _US_SHORT_RE.match(s)
    if m:
        if statement_year is None:
            raise ValueError(f"year required to resolve date: {text!r}")
        month, day = int(m.group(1)), int(m.group(2))
        resolved = _iso(statement_year, month, day, text)
        if period_end is not None and resolved > period_end:
            resolved = _iso(statement_year - 1, month, day, text)
        return resolved
    raise ValueError(f"unable to parse date: {text!r}")


def parse_month_day_year(text: str) -> str:
    """Convert ``"March 11, 2025"`` (or ``"Mar 11 2025"``) to ISO."""

    m = _MONTH_DAY_YEAR_RE.search(text)
    if not m:
        raise ValueError(f"unable to parse date: {text!r}")
    month = _MONTHS.get(m.group(1).lower())
    if month is None:
        raise ValueError(f"unknown month name: {m.group(1)!r}")
    return _iso(int(m.group(3)), month, int(m.group(2)), text)


def _iso(year: int, month: int, day: int, source: str) -> str:
    try:
        return date(year, month, day).isoformat()
    except ValueError as exc:
        raise ValueError(f"invalid calendar date: {source!r}") from exc


def add_months(iso: str, months: int) -> str:
    """Shift an ISO date by whole months, clamping the day to the month end."""

    d = date.fromisoformat(iso)
    idx = d.year * 12 + (d.month - 1) + months
    year, month = divmod(idx, 12)
    month += 1
    day = d.day
    while True:
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            day -= 1


def shift_days(iso: str, days: int) -> str:
    return (date.fromisoformat(iso) + timedelta(days=days)).isoformat()


def period_label(start: str, end: str) -> str:
    """Human label for a statement period, named after its closing month."""

    d = date.fromisoformat(end or start)
    return d.strftime("%b %Y")


# ---------------------------------------------------------------------------
# Description text
# ---------------------------------------------------------------------------

# Card trace numbers printed at the end of CHECKCARD descriptions.
TRACE_SUFFIX_RE = re.compile(r"\s+\d{17,25}$")
_WS_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def strip_trace_number(text: str) -> str:
    return TRACE_SUFFIX_RE.sub("", text.strip())


def clean_description(text: str) -> str:
    """Canonical description: trace suffix removed, whitespace collapsed.

    The same rule produces the text hashed into transaction ids and the text
    handed to the categorizer.
    """

    return strip_trace_number(collapse_whitespace(text))


__all__ = [
    "TRACE_SUFFIX_RE",
    "add_months",
    "clean_description",
    "collapse_whitespace",
    "fmt_amount",
    "parse_month_day_year",
    "parse_us_date",
    "period_label",
    "quantize_money",
    "shift_days",
    "strip_trace_number",
    "to_decimal",
]
