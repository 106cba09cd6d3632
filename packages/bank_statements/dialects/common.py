"""Pieces shared by every statement layout parser."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from ..lines import TotalMatch
from ..models import AccountInfo, AccountType, BalanceInfo, RawLine, RawTransaction, Section
from ..values import parse_month_day_year, parse_us_date, to_decimal

DEFAULT_ACCOUNT_MASK = "****0000"

# "Total <label> <amount>" where the amount may be missing or signed.
TOTAL_LINE_RE = re.compile(r"^Total\s+(?P<label>.+?)\s*(?P<amount>-?\$?[0-9,]+\.\d{2})?$", re.I)

_MDY_PAIR_RE = re.compile(
    r"(?:for\s+)?([A-Za-z]+\.?\s+\d{1,2},?\s+\d{4})\s+(?:to|-|through)\s+"
    r"([A-Za-z]+\.?\s+\d{1,2},?\s+\d{4})",
    re.I,
)
_NUMERIC_PAIR_RE = re.compile(
    r"(\d{1,2}/\d{1,2}/\d{2,4})\s*(?:to|-|through)\s*(\d{1,2}/\d{1,2}/\d{2,4})", re.I
)


@dataclass(slots=True)
class DialectResult:
    """What one layout parser recovered from one statement's lines.

    ``totals_printed`` is false when no credit/debit subtotal was found, in
    which case the caller substitutes totals computed from transactions.
    """

    account_info: AccountInfo
    balance_info: BalanceInfo
    transactions: list[RawTransaction]
    warnings: list[str] = field(default_factory=list)
    section_totals: dict[Section, Decimal] = field(default_factory=dict)
    dropped_lines: int = 0
    totals_printed: bool = True
    is_combined: bool = False
    page_start: int | None = None
    page_end: int | None = None


def full_text(lines: Sequence[RawLine]) -> str:
    return "\n".join(line.text for line in lines)


def mask_account(last4: str) -> str:
    return f"****{last4}"


def default_period(today: date | None = None) -> tuple[str, str]:
    """Fallback period: the 30 days ending today."""

    end = today or date.today()
    return (end - timedelta(days=30)).isoformat(), end.isoformat()


def find_period(text: str) -> tuple[str, str] | None:
    """Locate ``<Month D, YYYY> to <Month D, YYYY>`` (or numeric) and return ISO bounds."""

    m = _MDY_PAIR_RE.search(text)
    if m:
        try:
            return parse_month_day_year(m.group(1)), parse_month_day_year(m.group(2))
        except ValueError:
            pass
    m = _NUMERIC_PAIR_RE.search(text)
    if m:
        return parse_us_date(m.group(1)), parse_us_date(m.group(2))
    return None


def find_amount(pattern: re.Pattern[str], text: str) -> Decimal | None:
    m = pattern.search(text)
    if m is None:
        return None
    return to_decimal(m.group(1))


def build_account_info(
    account_type: AccountType,
    account_number_masked: str,
    period: tuple[str, str],
    *,
    product_name: str | None = None,
    warnings: list[str],
) -> AccountInfo:
    start, end = period
    if start > end:
        warnings.append(f"Statement period start {start} is after end {end}; bounds swapped")
        start, end = end, start
    return AccountInfo(
        account_type=account_type,
        account_number_masked=account_number_masked,
        statement_period_start=start,
        statement_period_end=end,
        product_name=product_name,
    )


def total_matcher(
    label_to_section: Callable[[str], Section | None],
) -> Callable[[str], TotalMatch | None]:
    """Build a ``match_total`` recognizer resolving the label with ``label_to_section``."""

    def match_total(text: str) -> TotalMatch | None:
        m = TOTAL_LINE_RE.match(text)
        if m is None:
            return None
        return TotalMatch(section=label_to_section(m.group("label")), amount=m.group("amount"))

    return match_total


def decimal_totals(raw: Mapping[Section, str]) -> dict[Section, Decimal]:
    return {section: abs(to_decimal(amount)) for section, amount in raw.items()}


__all__ = [
    "DEFAULT_ACCOUNT_MASK",
    "DialectResult",
    "build_account_info",
    "decimal_totals",
    "default_period",
    "find_amount",
    "find_period",
    "full_text",
    "mask_account",
    "total_matcher",
]
