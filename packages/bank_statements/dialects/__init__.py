"""Statement layouts ("dialects") and dispatch.

The set of layouts is closed: :class:`Dialect` enumerates them and
:func:`parse_statements` dispatches through a plain mapping to one parse
function per layout. Detection is ordered; the online transaction export is
checked before account-type scoring because its text also mentions checking
phrases.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import StrEnum

from ..config import DEFAULT_CONFIG, ParserConfig
from ..errors import DialectUndetected
from ..logging_setup import get_logger
from ..models import AccountType, RawLine
from .checking import CHECKING_LAYOUT, parse_checking
from .common import DialectResult, full_text
from .credit import parse_credit
from .deposit import parse_deposit_statement
from .detect import detect_account_type
from .savings import SAVINGS_LAYOUT, parse_savings
from .transaction_details import MARKER_RE, parse_transaction_details

_logger = get_logger("bank_statements.dialects")


class Dialect(StrEnum):
    TRANSACTION_DETAILS = "transaction_details"
    CREDIT = "credit"
    SAVINGS = "savings"
    CHECKING = "checking"


ParseFn = Callable[[Sequence[RawLine], ParserConfig], list[DialectResult]]

_PARSERS: dict[Dialect, ParseFn] = {
    Dialect.TRANSACTION_DETAILS: parse_transaction_details,
    Dialect.CREDIT: parse_credit,
    Dialect.SAVINGS: parse_savings,
    Dialect.CHECKING: parse_checking,
}

_BY_ACCOUNT_TYPE = {
    AccountType.CREDIT: Dialect.CREDIT,
    AccountType.SAVINGS: Dialect.SAVINGS,
    AccountType.CHECKING: Dialect.CHECKING,
}


def detect_dialect(text: str, *, filename: str | None = None) -> Dialect:
    """Pick the layout for a document's full text.

    Raises
    ------
    DialectUndetected
        When neither the export marker nor account-type scoring matches.
    """

    if MARKER_RE.search(text):
        return Dialect.TRANSACTION_DETAILS
    dialect = _BY_ACCOUNT_TYPE.get(detect_account_type(text))
    if dialect is None:
        raise DialectUndetected("could not determine the statement layout", filename=filename)
    return dialect


def parse_statements(
    dialect: Dialect, lines: Sequence[RawLine], config: ParserConfig = DEFAULT_CONFIG
) -> list[DialectResult]:
    """Run ``dialect``'s parser; combined deposit PDFs yield one result per statement."""

    results = _PARSERS[dialect](lines, config)
    _logger.debug("%s layout produced %d statement(s)", dialect.value, len(results))
    return results


def parse_dialect(
    dialect: Dialect, lines: Sequence[RawLine], config: ParserConfig = DEFAULT_CONFIG
) -> DialectResult:
    """Parse ``lines`` as exactly one statement, without combined-PDF splitting."""

    if dialect in (Dialect.CHECKING, Dialect.SAVINGS):
        layout = CHECKING_LAYOUT if dialect is Dialect.CHECKING else SAVINGS_LAYOUT
        return parse_deposit_statement(lines, layout, config)
    return _PARSERS[dialect](lines, config)[0]


__all__ = [
    "Dialect",
    "DialectResult",
    "detect_dialect",
    "full_text",
    "parse_dialect",
    "parse_statements",
]
