"""Credit card statements.

Rows carry a transaction date and, usually, a posting date:
``01/03 01/05 AMAZON MKTPLACE PMTS AMZN.COM/BILL WA 45.99``. Balances are
amounts owed, so the printed ``Previous``/``New`` balances grow with purchases
and shrink with payments.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal

from ..config import DEFAULT_CONFIG, ParserConfig
from ..lines import LineGrammar, StartMatch, classify_lines, is_common_skip, is_strict_continuation
from ..models import AccountType, BalanceInfo, RawLine, Section
from ..values import add_months, parse_month_day_year, shift_days
from .common import (
    DEFAULT_ACCOUNT_MASK,
    DialectResult,
    build_account_info,
    decimal_totals,
    default_period,
    find_amount,
    full_text,
    mask_account,
    total_matcher,
)

_TRANSACTION_RE = re.compile(
    r"^(\d{1,2}/\d{1,2})\s+(?:(\d{1,2}/\d{1,2})\s+)?(.+?)\s+(-?\$?[0-9,]+\.\d{2})$"
)
_TRANSACTION_ALT_RE = re.compile(r"^(\d{1,2}/\d{1,2}/\d{2,4})\s+(.+?)\s+(-?\$?[0-9,]+\.\d{2})$")

_PAYMENTS_RE = re.compile(r"payments\s+and\s+(?:other\s+)?credits", re.I)
_PURCHASES_RE = re.compile(r"purchases\s+and\s+adjustments|^transactions$", re.I)
_FEES_RE = re.compile(r"fees\s+charged", re.I)
_INTEREST_RE = re.compile(r"interest\s+charged", re.I)
_ACCOUNT_SUMMARY_RE = re.compile(r"account\s+summary", re.I)

_DATE = r"[A-Za-z]+\s+\d{1,2},?\s+\d{4}"
_ACCOUNT_RE = re.compile(
    r"Account\s*(?:number|#)?\s*:?\s*(?:ending\s+in\s+)?(?:[\dX*]{4}[\s-]+){0,3}(\d{4})\b", re.I
)
_CARD_RE = re.compile(r"Card\s*(?:number|#|:)?.*?(\d{4})", re.I)
_PERIOD_RANGE_RE = re.compile(
    rf"(?:Statement|Billing)\s+period\s*[:\s]*({_DATE})\s*(?:to|-|through)\s*({_DATE})", re.I
)
_CLOSING_DATE_RE = re.compile(
    rf"(?:Statement\s+(?:closing\s+)?date|Closing\s+date)\s*[:\s]*({_DATE})", re.I
)
_PREVIOUS_BALANCE_RE = re.compile(
    r"(?:Previous|Prior|Last)\s+(?:statement\s+)?balance\s*[:\s]*(-?\$?[0-9,]+\.\d{2})", re.I
)
_NEW_BALANCE_RE = re.compile(
    r"(?:New|Current|Statement)\s+balance\s*[:\s]*(-?\$?[0-9,]+\.\d{2})", re.I
)
_PAYMENTS_TOTAL_RE = re.compile(
    r"(?:Payments|Credits)(?:\s+and\s+(?:other\s+)?credits)?\s*[:\s]*(-?\$?[0-9,]+\.\d{2})", re.I
)
_PURCHASES_TOTAL_RE = re.compile(
    r"(?:Purchases|Charges)(?:\s+and\s+adjustments)?\s*[:\s]*(-?\$?[0-9,]+\.\d{2})", re.I
)
_FEES_TOTAL_RE = re.compile(r"Fees\s+charged\s*[:\s]*(-?\$?[0-9,]+\.\d{2})", re.I)
_INTEREST_TOTAL_RE = re.compile(r"Interest\s+charged\s*[:\s]*(-?\$?[0-9,]+\.\d{2})", re.I)


def _match_start(text: str, section: Section) -> StartMatch | None:
    m = _TRANSACTION_RE.match(text)
    if m is not None:
        date, posted, description, amount = m.groups()
        return StartMatch(
            date=date, description=description.strip(), amount=amount, posted_date=posted
        )
    m = _TRANSACTION_ALT_RE.match(text)
    if m is not None:
        date, description, amount = m.groups()
        return StartMatch(date=date, description=description.strip(), amount=amount)
    return None


def _match_section(text: str) -> Section | None:
    if _PAYMENTS_RE.search(text):
        return Section.PAYMENTS
    if _PURCHASES_RE.search(text):
        return Section.PURCHASES
    if _FEES_RE.search(text):
        return Section.FEES
    if _INTEREST_RE.search(text):
        return Section.INTEREST
    if _ACCOUNT_SUMMARY_RE.search(text):
        return Section.UNKNOWN
    return None


CREDIT_GRAMMAR = LineGrammar(
    name="credit",
    match_start=_match_start,
    match_section=_match_section,
    is_continuation=is_strict_continuation,
    is_skip=is_common_skip,
    match_total=total_matcher(_match_section),
)


def _period(text: str, warnings: list[str]) -> tuple[str, str]:
    m = _PERIOD_RANGE_RE.search(text)
    if m is not None:
        return parse_month_day_year(m.group(1)), parse_month_day_year(m.group(2))
    m = _CLOSING_DATE_RE.search(text)
    if m is not None:
        end = parse_month_day_year(m.group(1))
        return shift_days(add_months(end, -1), 1), end
    warnings.append("Statement period not found; assuming the last 30 days")
    return default_period()


def _total(
    totals: dict[Section, Decimal], section: Section, pattern: re.Pattern[str], text: str
) -> Decimal | None:
    if section in totals:
        return totals[section]
    found = find_amount(pattern, text)
    return abs(found) if found is not None else None


def parse_credit(
    lines: Sequence[RawLine], config: ParserConfig = DEFAULT_CONFIG
) -> list[DialectResult]:
    """Parse a credit card statement; always a single statement."""

    text = full_text(lines)
    warnings: list[str] = []
    classified = classify_lines(lines, CREDIT_GRAMMAR)
    warnings.extend(classified.warnings)

    m = _ACCOUNT_RE.search(text) or _CARD_RE.search(text)
    if m is not None:
        account = mask_account(m.group(1))
    else:
        warnings.append(f"Account number not found; using {DEFAULT_ACCOUNT_MASK}")
        account = DEFAULT_ACCOUNT_MASK

    account_info = build_account_info(
        AccountType.CREDIT, account, _period(text, warnings), warnings=warnings
    )

    previous = find_amount(_PREVIOUS_BALANCE_RE, text)
    if previous is None:
        warnings.append("Previous balance not found; assuming 0.00")
    new = find_amount(_NEW_BALANCE_RE, text)
    if new is None:
        warnings.append("New balance not found; assuming 0.00")

    totals = decimal_totals(classified.section_totals)
    payments = _total(totals, Section.PAYMENTS, _PAYMENTS_TOTAL_RE, text)
    charges = [
        _total(totals, Section.PURCHASES, _PURCHASES_TOTAL_RE, text),
        _total(totals, Section.FEES, _FEES_TOTAL_RE, text),
        _total(totals, Section.INTEREST, _INTEREST_TOTAL_RE, text),
    ]
    printed = payments is not None or any(c is not None for c in charges)

    return [
        DialectResult(
            account_info=account_info,
            balance_info=BalanceInfo(
                starting_balance=previous if previous is not None else Decimal("0"),
                ending_balance=new if new is not None else Decimal("0"),
                total_credits=payments or Decimal("0"),
                total_debits=sum((c for c in charges if c is not None), Decimal("0")),
            ),
            transactions=classified.transactions,
            warnings=warnings,
            section_totals=totals,
            dropped_lines=classified.dropped_lines,
            totals_printed=printed,
            page_start=lines[0].page if lines else None,
            page_end=lines[-1].page if lines else None,
        )
    ]


__all__ = ["CREDIT_GRAMMAR", "parse_credit"]
