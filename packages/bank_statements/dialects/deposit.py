"""Checking and savings statements: shared grammar, header, and balance parsing.

Both layouts print dated rows under section headers (``Deposits and other
additions``, ``ATM and debit card subtractions``, ...) closed by ``Total ...``
lines. Text extraction sometimes glues neighbouring cells together; the
recoveries below split a trailing amount off a confirmation number, a Zelle
confirmation code, or a card trace number before the row is matched.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from ..config import DEFAULT_CONFIG, ParserConfig
from ..lines import LineGrammar, StartMatch, classify_lines, is_common_skip, is_strict_continuation
from ..logging_setup import get_logger
from ..models import DEBIT_SECTIONS, AccountType, BalanceInfo, RawLine, Section
from ..values import to_decimal
from .common import (
    DEFAULT_ACCOUNT_MASK,
    DialectResult,
    build_account_info,
    decimal_totals,
    default_period,
    find_amount,
    find_period,
    full_text,
    mask_account,
    total_matcher,
)
from .segments import split_statement_segments

_logger = get_logger("bank_statements.dialects.deposit")

# ---- Row recognizers -------------------------------------------------------------

CHECK_GLUED_RE = re.compile(r"^(\d{2}/\d{2}/\d{2})(\d{1,6})(-?[0-9,]+\.\d{2})$")
CHECK_SPACED_RE = re.compile(r"^(\d{2}/\d{2}/\d{2})\s+(\d{1,6})\s+(-?[0-9,]+\.\d{2})$")
TRANSACTION_RE = re.compile(r"^(\d{1,2}/\d{1,2}(?:/\d{2,4})?)\s+(.+?)\s+(-?\$?[0-9,]+\.\d{2})$")
DATED_ONLY_RE = re.compile(r"^(\d{1,2}/\d{1,2}/\d{2,4})\s+(.+)$")

_GLUED_DATE_RE = re.compile(r"^(\d{2}/\d{2}/\d{2})(?=[A-Za-z])")
# Only a letter or symbol glued to the amount is split; "1,300.00" and "-45.99" stay whole.
_GLUED_AMOUNT_RE = re.compile(r"([^\d,\s$-])(-?\d{1,3}(?:,\d{3})*\.\d{2})$")
_CONF_MARK_RE = re.compile(r"Conf(?:irmation)?#", re.I)
_TRAILING_AMOUNT_RE = re.compile(r"-?\$?[0-9,]+\.\d{2}$")

_CONFIRMATION_GLUED_RE = re.compile(r"Confirmation#\s*(\d{10})(\d*,?\d*\.\d{2})$", re.I)
_ZELLE_CONF_RE = re.compile(r"Zelle.*Conf#", re.I)
_CONF_PREFIX_RE = re.compile(r"Conf#\s*", re.I)
_PLAIN_AMOUNT_RE = re.compile(r"^-?\d{1,3}(?:,\d{3})*\.\d{2}$")
_TRACE_GLUED_RE = re.compile(r"([A-Z]{2})\s+(\d{17,25})(\d{1,6}\.\d{2})$")
_TRACE_AMOUNT_LIMIT = Decimal("100000")

# ---- Section recognizers --------------------------------------------------------

_DEPOSITS_RE = re.compile(r"deposits\s+and\s+(?:other\s+)?additions", re.I)
_ATM_DEBIT_RE = re.compile(r"ATM\s+and\s+debit\s+card\s+subtractions", re.I)
_OTHER_SUBTRACTIONS_RE = re.compile(
    r"(?:withdrawals\s+and\s+)?other\s+subtractions|withdrawals\s+and\s+subtractions", re.I
)
_CHECKS_RE = re.compile(r"^checks(?:\s+paid)?\s*$", re.I)
_SERVICE_FEES_RE = re.compile(r"^service\s+fees\b", re.I)
_DAILY_BALANCE_RE = re.compile(r"daily\s+(?:ending\s+|ledger\s+)?balances?", re.I)

# ---- Header recognizers ---------------------------------------------------------

_ACCOUNT_RE = re.compile(r"Account\s*#?\s*[\d ]*(\d{4})", re.I | re.M)
_ACCOUNT_ALT_RE = re.compile(r"(?:Account|Acct).*?(\d{4})$", re.I | re.M)
_BEGINNING_BALANCE_RE = re.compile(
    r"(?:Beginning|Starting|Previous)\s+balance\s*(?:on\s+[A-Za-z]+\s+\d{1,2},?\s+\d{4})?"
    r"[:\s$]*(-?\$?[0-9,]+\.\d{2})",
    re.I,
)
_ENDING_BALANCE_RE = re.compile(
    r"(?:Ending|Closing|New)\s+balance\s*(?:on\s+[A-Za-z]+\s+\d{1,2},?\s+\d{4})?"
    r"[:\s$]*(-?\$?[0-9,]+\.\d{2})",
    re.I,
)


# ---------------------------------------------------------------------------
# Glued-cell recovery
# ---------------------------------------------------------------------------


def preprocess_deposit_line(text: str) -> str:
    """Separate a glued date prefix and, outside confirmation lines, a glued amount."""

    text = text.strip()
    if CHECK_GLUED_RE.match(text):
        return text
    text = _GLUED_DATE_RE.sub(r"\1 ", text)
    if _CONF_MARK_RE.search(text):
        return text
    return _GLUED_AMOUNT_RE.sub(r"\1 \2", text)


def _split_confirmation(line: str) -> tuple[str, str] | None:
    # "Confirmation# 757982788977.98": the number is always 10 digits.
    m = _CONFIRMATION_GLUED_RE.search(line)
    if m is None:
        return None
    number, amount = m.group(1), m.group(2)
    return f"{line[: m.start()]}Confirmation# {number} {amount}", amount


def _split_zelle_confirmation(line: str) -> tuple[str, str] | None:
    """Split ``Conf# T0ZGTJ9B91,000.00`` into the code and the amount.

    Codes are 6 to 12 characters and contain a letter. Among the possible
    split points, a comma-grouped amount takes the smallest value (the code
    keeps the most digits), otherwise the largest value wins.
    """

    if not _ZELLE_CONF_RE.search(line):
        return None
    prefix = _CONF_PREFIX_RE.search(line)
    if prefix is None:
        return None
    tail = line[prefix.end() :].lstrip()
    letters = [i for i, ch in enumerate(tail) if ch.isalpha()]
    if not letters:
        return None

    candidates: list[tuple[str, str, Decimal]] = []
    for split in range(len(tail) - 1, letters[-1], -1):
        code, amount = tail[:split].strip(), tail[split:].strip()
        if not 6 <= len(code) <= 12 or not any(ch.isalpha() for ch in code) or code.endswith(","):
            continue
        if not _PLAIN_AMOUNT_RE.match(amount):
            continue
        value = abs(to_decimal(amount))
        if value == 0:
            continue
        candidates.append((code, amount, value))
    if not candidates:
        return None

    grouped = [c for c in candidates if "," in c[1]]
    if grouped:
        code, amount, _ = min(grouped, key=lambda c: (c[2], -len(c[0])))
    else:
        code, amount, _ = min(candidates, key=lambda c: (-c[2], len(c[0])))
    return f"{line[: prefix.start()]}Conf# {code} {amount}", amount


def _split_trace_number(line: str) -> tuple[str, str] | None:
    # "CA 749064152172355304579864.32": trace 74906415217235530457986, amount 4.32
    m = _TRACE_GLUED_RE.search(line)
    if m is None:
        return None
    state, trace, amount = m.groups()
    if to_decimal(amount) >= _TRACE_AMOUNT_LIMIT:
        return None
    return f"{line[: m.start()]}{state} {trace} {amount}", amount


def recover_glued_amount(line: str) -> tuple[str, str | None]:
    """Return the line with a glued trailing amount separated, plus that amount."""

    for splitter in (_split_confirmation, _split_zelle_confirmation, _split_trace_number):
        found = splitter(line)
        if found is not None:
            return found
    return line, None


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------


def match_check_line(text: str) -> StartMatch | None:
    m = CHECK_GLUED_RE.match(text) or CHECK_SPACED_RE.match(text)
    if m is None:
        return None
    date, number, amount = m.groups()
    if not amount.startswith("-"):
        amount = f"-{amount}"
    return StartMatch(date=date, description=f"Check #{number}", amount=amount)


def match_deposit_start(text: str, section: Section) -> StartMatch | None:
    working, recovered = recover_glued_amount(text)
    m = TRANSACTION_RE.match(working)
    if m is not None:
        date, description, amount = m.groups()
        return StartMatch(date=date, description=description.strip(), amount=recovered or amount)
    m = DATED_ONLY_RE.match(working)
    if m is not None and not _TRAILING_AMOUNT_RE.search(working):
        return StartMatch(date=m.group(1), description=m.group(2).strip(), amount=None)
    return None


def deposit_section(text: str, *, with_checks: bool) -> Section | None:
    if _DEPOSITS_RE.search(text):
        return Section.DEPOSITS
    if _ATM_DEBIT_RE.search(text):
        return Section.ATM_DEBIT
    if _OTHER_SUBTRACTIONS_RE.search(text):
        return Section.OTHER_SUBTRACTIONS
    if with_checks and _CHECKS_RE.match(text):
        return Section.CHECKS
    if _SERVICE_FEES_RE.match(text):
        return Section.SERVICE_FEES
    return None


def is_daily_balance_table(text: str) -> bool:
    return _DAILY_BALANCE_RE.search(text) is not None


def build_deposit_grammar(name: str, *, with_checks: bool) -> LineGrammar:
    def match_start(text: str, section: Section) -> StartMatch | None:
        if with_checks:
            check = match_check_line(text)
            if check is not None:
                return check
        return match_deposit_start(text, section)

    def match_section(text: str) -> Section | None:
        return deposit_section(text, with_checks=with_checks)

    return LineGrammar(
        name=name,
        match_start=match_start,
        match_section=match_section,
        is_continuation=is_strict_continuation,
        is_skip=is_common_skip,
        match_total=total_matcher(match_section),
        is_table_end=is_daily_balance_table,
        preprocess=preprocess_deposit_line,
    )


# ---------------------------------------------------------------------------
# Header and balances
# ---------------------------------------------------------------------------


def find_account_number(text: str) -> str | None:
    m = _ACCOUNT_RE.search(text) or _ACCOUNT_ALT_RE.search(text)
    return mask_account(m.group(1)) if m else None


@dataclass(frozen=True, slots=True)
class DepositLayout:
    """Per-product knobs for the shared deposit parser."""

    account_type: AccountType
    grammar: LineGrammar


def parse_deposit_statement(
    lines: Sequence[RawLine],
    layout: DepositLayout,
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    period: tuple[str, str] | None = None,
    fallback_account: str | None = None,
) -> DialectResult:
    """Parse one checking or savings statement.

    ``period`` and ``fallback_account`` come from the enclosing document when
    ``lines`` is one segment of a combined PDF.
    """

    text = full_text(lines)
    warnings: list[str] = []
    classified = classify_lines(lines, layout.grammar)
    warnings.extend(classified.warnings)

    account = find_account_number(text) or fallback_account
    if account is None:
        warnings.append(f"Account number not found; using {DEFAULT_ACCOUNT_MASK}")
        account = DEFAULT_ACCOUNT_MASK

    if period is None:
        period = find_period(text)
    if period is None:
        warnings.append("Statement period not found; assuming the last 30 days")
        period = default_period()

    account_info = build_account_info(layout.account_type, account, period, warnings=warnings)

    starting = find_amount(_BEGINNING_BALANCE_RE, text)
    if starting is None:
        warnings.append("Beginning balance not found; assuming 0.00")
    ending = find_amount(_ENDING_BALANCE_RE, text)
    if ending is None:
        warnings.append("Ending balance not found; assuming 0.00")

    totals = decimal_totals(classified.section_totals)
    credits = totals.get(Section.DEPOSITS, Decimal("0"))
    debits = sum((totals.get(s, Decimal("0")) for s in DEBIT_SECTIONS), Decimal("0"))
    printed = Section.DEPOSITS in totals or any(s in totals for s in DEBIT_SECTIONS)

    return DialectResult(
        account_info=account_info,
        balance_info=BalanceInfo(
            starting_balance=starting if starting is not None else Decimal("0"),
            ending_balance=ending if ending is not None else Decimal("0"),
            total_credits=credits,
            total_debits=debits,
        ),
        transactions=classified.transactions,
        warnings=warnings,
        section_totals=totals,
        dropped_lines=classified.dropped_lines,
        totals_printed=printed,
        page_start=lines[0].page if lines else None,
        page_end=lines[-1].page if lines else None,
    )


def parse_deposit_statements(
    lines: Sequence[RawLine],
    layout: DepositLayout,
    config: ParserConfig = DEFAULT_CONFIG,
) -> list[DialectResult]:
    """Parse a document that may bundle several statements of one account."""

    segments = split_statement_segments(lines, config)
    if not segments:
        return [parse_deposit_statement(lines, layout, config)]

    document_account = find_account_number(full_text(lines))
    results: list[DialectResult] = []
    for segment in segments:
        result = parse_deposit_statement(
            segment.lines,
            layout,
            config,
            period=(segment.period_start, segment.period_end),
            fallback_account=document_account,
        )
        result.is_combined = True
        results.append(result)
    return results


__all__ = [
    "DepositLayout",
    "build_deposit_grammar",
    "deposit_section",
    "find_account_number",
    "match_check_line",
    "match_deposit_start",
    "parse_deposit_statement",
    "parse_deposit_statements",
    "preprocess_deposit_line",
    "recover_glued_amount",
]
