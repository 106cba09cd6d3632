"""Online Banking "Print Transaction Details" exports.

These are printed web pages rather than monthly statements. Each row carries
an explicit type token::

    01/15/2026 CHECKCARD 0113 TRADER JOE S #123 GLENDALE CA Debit Card -45.67

followed by free-form continuation lines (location, confirmation numbers).
There are no section headers and no beginning balance; the printed balance is
the available balance on the day of the print.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal
from functools import partial

from ..config import DEFAULT_CONFIG, ParserConfig
from ..lines import LineGrammar, StartMatch, classify_lines, is_common_skip, is_short_continuation
from ..logging_setup import get_logger
from ..models import AccountType, BalanceInfo, RawLine, Section
from ..values import collapse_whitespace, parse_us_date, shift_days, to_decimal
from .common import (
    DEFAULT_ACCOUNT_MASK,
    DialectResult,
    build_account_info,
    default_period,
    full_text,
    mask_account,
)

_logger = get_logger("bank_statements.dialects.transaction_details")

MARKER_RE = re.compile(r"Print\s+Transaction\s+Details", re.I)

_TYPES = r"Debit Card|Transfer|Other|Check|Deposit|Virtual Card|Bank Charge|Credit"
_TYPED_RE = re.compile(
    rf"^(\d{{2}}/\d{{2}}/\d{{4}})\s+(.+?)\s+({_TYPES})\s+(-?\$?[\d,]+\.\d{{2}})$", re.I
)
_UNTYPED_RE = re.compile(r"^(\d{2}/\d{2}/\d{4})\s+(.+?)\s+(-?\$?[\d,]+\.\d{2})$")
_TRAILING_TYPE_RE = re.compile(rf"\s+(?:{_TYPES})\s*$", re.I)

_ACCOUNT_LINE_RE = re.compile(
    r"(Adv(?:antage)?\s+(?:Plus\s+Banking|Savings))\s*-\s*(\d{4})\s*:\s*Account Activity", re.I
)
_BALANCE_SUMMARY_RE = re.compile(
    r"Balance Summary:\s*(-?\$?[\d,]+\.\d{2})\s*"
    r"\(available balance as of today\s+(\d{2}/\d{2}/\d{4})\)",
    re.I,
)
_DATE_RANGE_RE = re.compile(
    r"Showing results for \"All Transactions,\s*(\d{2}/\d{2}/\d{4})\s*To\s*(\d{2}/\d{2}/\d{4})\"",
    re.I,
)

_SKIP_RE = re.compile(r"^(?:Cleared|Pending|Transactions)$|^Posting date|^View:", re.I)
_EXTRA_CONTINUATION_RE = re.compile(r"^(?:DEPOSIT\s+|PURCHASE\s+)|^(?:Payment|Charge|Card)$", re.I)
_CHECK_IN_DESCRIPTION_RE = re.compile(r"check\s+\d+", re.I)


def infer_type(description: str) -> str:
    """Guess the type token for a row printed without one."""

    desc = description.lower()
    if "debit card" in desc or "purchase" in desc:
        return "Debit Card"
    if "transfer" in desc or "zelle" in desc:
        return "Transfer"
    if "check " in desc or _CHECK_IN_DESCRIPTION_RE.search(description):
        return "Check"
    if "deposit" in desc or "atm" in desc:
        return "Deposit"
    if "fee" in desc or "charge" in desc:
        return "Bank Charge"
    if "virtual card" in desc:
        return "Virtual Card"
    return "Other"


def infer_section(type_token: str, amount: str) -> Section:
    negative = "-" in amount
    kind = type_token.lower()
    if "fee" in kind or "charge" in kind:
        return Section.SERVICE_FEES
    if kind == "check":
        return Section.CHECKS
    if kind == "deposit" or (kind == "transfer" and not negative):
        return Section.DEPOSITS
    if negative:
        if kind in {"debit card", "virtual card"}:
            return Section.ATM_DEBIT
        return Section.OTHER_SUBTRACTIONS
    return Section.UNKNOWN


def _clean(description: str) -> str:
    return collapse_whitespace(_TRAILING_TYPE_RE.sub("", description.strip()))


def _match_start(text: str, section: Section) -> StartMatch | None:
    m = _TYPED_RE.match(text)
    if m is not None:
        date, description, type_token, amount = m.groups()
    else:
        m = _UNTYPED_RE.match(text)
        if m is None:
            return None
        date, description, amount = m.groups()
        type_token = infer_type(description)
    amount = amount.replace("$", "")
    return StartMatch(
        date=date,
        description=_clean(description),
        amount=amount,
        type_hint=type_token,
        section=infer_section(type_token, amount),
    )


def _is_skip(text: str) -> bool:
    return is_common_skip(text) or _SKIP_RE.search(text) is not None


def _is_continuation(text: str, *, max_length: int) -> bool:
    if _EXTRA_CONTINUATION_RE.search(text) is not None:
        return True
    return is_short_continuation(text, max_length)


def build_grammar(config: ParserConfig = DEFAULT_CONFIG) -> LineGrammar:
    return LineGrammar(
        name="transaction_details",
        match_start=_match_start,
        match_section=lambda _text: None,
        is_continuation=partial(_is_continuation, max_length=config.max_continuation_length),
        is_skip=_is_skip,
    )


def parse_transaction_details(
    lines: Sequence[RawLine], config: ParserConfig = DEFAULT_CONFIG
) -> list[DialectResult]:
    """Parse an activity export as one statement spanning its date range.

    The beginning balance is not printed; it is derived from the printed
    balance and the net of the listed transactions.
    """

    text = full_text(lines)
    warnings: list[str] = []
    classified = classify_lines(lines, build_grammar(config))
    warnings.extend(classified.warnings)

    m = _ACCOUNT_LINE_RE.search(text)
    product_name: str | None = None
    account_type = AccountType.CHECKING
    if m is not None:
        product_name = collapse_whitespace(m.group(1))
        if "savings" in product_name.lower():
            account_type = AccountType.SAVINGS
        account = mask_account(m.group(2))
    else:
        warnings.append(f"Account number not found; using {DEFAULT_ACCOUNT_MASK}")
        account = DEFAULT_ACCOUNT_MASK

    m = _DATE_RANGE_RE.search(text)
    if m is not None:
        period = parse_us_date(m.group(1)), parse_us_date(m.group(2))
    else:
        warnings.append("Date range not found; assuming the year before the last row")
        dates = [parse_us_date(t.date) for t in classified.transactions]
        end_iso = max(dates) if dates else default_period()[1]
        period = shift_days(end_iso, -365), end_iso

    account_info = build_account_info(
        account_type, account, period, product_name=product_name, warnings=warnings
    )

    m = _BALANCE_SUMMARY_RE.search(text)
    if m is not None:
        ending = to_decimal(m.group(1))
    else:
        warnings.append("Balance summary not found; assuming 0.00")
        ending = Decimal("0")

    amounts = [to_decimal(t.amount) for t in classified.transactions]
    credits = sum((a for a in amounts if a > 0), Decimal("0"))
    debits = sum((-a for a in amounts if a < 0), Decimal("0"))
    starting = ending - credits + debits
    _logger.info("Derived beginning balance %s from %d row(s)", starting, len(amounts))

    return [
        DialectResult(
            account_info=account_info,
            balance_info=BalanceInfo(
                starting_balance=starting,
                ending_balance=ending,
                total_credits=credits,
                total_debits=debits,
            ),
            transactions=classified.transactions,
            warnings=warnings,
            section_totals={},
            dropped_lines=classified.dropped_lines,
            totals_printed=False,
            page_start=lines[0].page if lines else None,
            page_end=lines[-1].page if lines else None,
        )
    ]


__all__ = [
    "MARKER_RE",
    "build_grammar",
    "infer_section",
    "infer_type",
    "parse_transaction_details",
]
