"""Checking account statements (``Adv Plus Banking`` and similar)."""

from __future__ import annotations

from collections.abc import Sequence

from ..config import DEFAULT_CONFIG, ParserConfig
from ..models import AccountType, RawLine
from .common import DialectResult
from .deposit import DepositLayout, build_deposit_grammar, parse_deposit_statements

CHECKING_GRAMMAR = build_deposit_grammar("checking", with_checks=True)
CHECKING_LAYOUT = DepositLayout(account_type=AccountType.CHECKING, grammar=CHECKING_GRAMMAR)


def parse_checking(
    lines: Sequence[RawLine], config: ParserConfig = DEFAULT_CONFIG
) -> list[DialectResult]:
    return parse_deposit_statements(lines, CHECKING_LAYOUT, config)


__all__ = ["CHECKING_GRAMMAR", "CHECKING_LAYOUT", "parse_checking"]
