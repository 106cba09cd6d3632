"""Account type detection by indicator scoring."""

from __future__ import annotations

from ..models import AccountType

_CREDIT_INDICATORS = (
    "credit card",
    "card member",
    "minimum payment",
    "credit limit",
    "available credit",
    "cash advance",
    "purchase apr",
    "billing period",
)
_SAVINGS_INDICATORS = (
    "annual percentage yield",
    "interest paid year to date",
    "apy earned",
)
_CHECKING_INDICATORS = (
    "checks paid",
    "daily ending balance",
    "check number",
    "checkcard",
    "atm and debit card",
    "online and mobile banking",
    "service fees",
)
_DEPOSIT_INDICATORS = (
    "deposits and other additions",
    "withdrawals and other subtractions",
    "atm and debit card subtractions",
    "other subtractions",
    "beginning balance",
    "ending balance",
)


def _score(lowered: str, indicators: tuple[str, ...]) -> int:
    return sum(1 for ind in indicators if ind in lowered)


def detect_account_type(text: str) -> AccountType:
    """Classify a statement's full text as checking, savings, or credit.

    Product names decide outright. Otherwise a credit card needs at least two
    credit indicators and more than the checking and savings indicators
    combined. A deposit account needs two generic deposit phrases and is savings
    only when savings indicators outnumber checking ones. Anything weaker is
    ``UNKNOWN``.
    """

    lowered = text.lower()
    if "advantage savings" in lowered:
        return AccountType.SAVINGS
    if "advantage plus banking" in lowered:
        return AccountType.CHECKING

    credit = _score(lowered, _CREDIT_INDICATORS)
    savings = _score(lowered, _SAVINGS_INDICATORS)
    checking = _score(lowered, _CHECKING_INDICATORS)
    deposit = _score(lowered, _DEPOSIT_INDICATORS)

    if credit >= 2 and credit > checking + savings:
        return AccountType.CREDIT
    if deposit >= 2:
        return AccountType.SAVINGS if savings > checking else AccountType.CHECKING
    return AccountType.UNKNOWN


__all__ = ["detect_account_type"]
