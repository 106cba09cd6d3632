"""Savings account statements.

Same table layout as checking, without a checks section. Withdrawals are
printed under ``Withdrawals and other subtractions``.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..config import DEFAULT_CONFIG, ParserConfig
from ..models import AccountType, RawLine
from .common import DialectResult
from .deposit import DepositLayout, build_deposit_grammar, parse_deposit_statements

SAVINGS_GRAMMAR = build_deposit_grammar("savings", with_checks=False)
SAVINGS_LAYOUT = DepositLayout(account_type=AccountType.SAVINGS, grammar=SAVINGS_GRAMMAR)


def parse_savings(
    lines: Sequence[RawLine], config: ParserConfig = DEFAULT_CONFIG
) -> list[DialectResult]:
    return parse_deposit_statements(lines, SAVINGS_LAYOUT, config)


__all__ = ["SAVINGS_GRAMMAR", "SAVINGS_LAYOUT", "parse_savings"]
