"""Payment channel classification and bank-reference extraction.

Channels are decided by an ordered rule table; the first matching rule wins.
The printed section, when it implies a channel (checks, service fees), is
consulted before any text rule.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from ..models import BankReference, Channel, ChannelType, Section

# ---- Rule table ---------------------------------------------------------------

_ONLINE_TRANSFER_RE = re.compile(
    r"Online\s+Banking\s+(?:transfer|payment)\s*(?:(from|to)\s+([A-Z]{3}))?", re.I
)
_ATM_DEPOSIT_RE = re.compile(r"BKOFAMERICA\s+ATM\s+#?(\d+)\s+.*?DEPOSIT", re.I)
_ATM_WITHDRAWAL_RE = re.compile(
    r"(?:ATM|BKOFAMERICA\s+ATM)\s+#?(\d+)?.*?(?:WITHDRWL|WITHDRAWAL)", re.I
)
_ATM_GENERIC_RE = re.compile(r"BKOFAMERICA\s+ATM\s+#?(\d+)", re.I)
_ZELLE_PAYMENT_RE = re.compile(
    r"Zelle\s+(?:payment|transfer)\s+(from|to)\s+(.+?)\s+Conf#\s*(\w+)", re.I
)
_ZELLE_RE = re.compile(r"Zelle", re.I)
_FINANCIAL_CENTER_RE = re.compile(r"(?:FINANCIAL\s+CENTER|BRANCH)\s+DEPOSIT", re.I)
_CHECK_RE = re.compile(r"^(?:Check\s*#?\s*)?\d{1,6}$", re.I)
_CHECK_PAID_RE = re.compile(r"CHECK\s*#?\s*\d+", re.I)
_FEE_RE = re.compile(
    r"SERVICE\s+FEE|MONTHLY\s+MAINTENANCE|OVERDRAFT|NSF\s+FEE|RETURNED\s+ITEM", re.I
)
_CHECKCARD_RE = re.compile(r"CHECKCARD\s+\d{4}", re.I)
_PURCHASE_RE = re.compile(r"^(?:PURCHASE|POS)\s+", re.I)

_SECTION_CHANNELS = {
    Section.CHECKS: ChannelType.CHECK,
    Section.SERVICE_FEES: ChannelType.FEE,
    Section.FEES: ChannelType.FEE,
}


def _online_transfer(desc: str) -> Channel | None:
    m = _ONLINE_TRANSFER_RE.search(desc)
    if m is None:
        return None
    direction, account = m.groups()
    subtype = f"transfer_{direction.lower()}_{account.lower()}" if direction and account else None
    return Channel(type=ChannelType.ONLINE_BANKING_TRANSFER, subtype=subtype)


def _zelle(desc: str) -> Channel | None:
    if not _ZELLE_RE.search(desc):
        return None
    m = _ZELLE_PAYMENT_RE.search(desc)
    subtype = f"payment_{m.group(1).lower()}_{m.group(2).strip()}" if m else None
    return Channel(type=ChannelType.ZELLE, subtype=subtype)


def _pattern(pattern: re.Pattern[str], channel: ChannelType) -> Callable[[str], Channel | None]:
    def rule(desc: str) -> Channel | None:
        return Channel(type=channel) if pattern.search(desc) else None

    return rule


@dataclass(frozen=True, slots=True)
class ChannelRule:
    name: str
    match: Callable[[str], Channel | None]


CHANNEL_RULES: tuple[ChannelRule, ...] = (
    ChannelRule("online_banking", _online_transfer),
    ChannelRule("atm_deposit", _pattern(_ATM_DEPOSIT_RE, ChannelType.ATM_DEPOSIT)),
    ChannelRule("atm_withdrawal", _pattern(_ATM_WITHDRAWAL_RE, ChannelType.ATM_WITHDRAWAL)),
    ChannelRule("zelle", _zelle),
    ChannelRule(
        "financial_center", _pattern(_FINANCIAL_CENTER_RE, ChannelType.FINANCIAL_CENTER_DEPOSIT)
    ),
    ChannelRule("check", _pattern(_CHECK_RE, ChannelType.CHECK)),
    ChannelRule("check_paid", _pattern(_CHECK_PAID_RE, ChannelType.CHECK)),
    ChannelRule("fee", _pattern(_FEE_RE, ChannelType.FEE)),
    ChannelRule("checkcard", _pattern(_CHECKCARD_RE, ChannelType.CHECKCARD)),
    ChannelRule("purchase", _pattern(_PURCHASE_RE, ChannelType.PURCHASE)),
    ChannelRule("atm_generic", _pattern(_ATM_GENERIC_RE, ChannelType.ATM_WITHDRAWAL)),
)


def classify_channel(description: str, section: Section | None = None) -> Channel:
    """Return the channel for ``description``; ``OTHER`` when no rule matches."""

    if section is not None and section in _SECTION_CHANNELS:
        return Channel(type=_SECTION_CHANNELS[section])
    desc = description.strip()
    for rule in CHANNEL_RULES:
        channel = rule.match(desc)
        if channel is not None:
            return channel
    return Channel(type=ChannelType.OTHER)


# ---- Bank references ------------------------------------------------------------

_TRACE_RE = re.compile(r"(\d{17,25})$")
_CONFIRMATION_RE = re.compile(r"Confirmation#?\s*(\d+)", re.I)
_ZELLE_CONF_RE = re.compile(r"Conf#\s*(\w+)", re.I)
_ATM_ID_RE = re.compile(r"ATM\s+#?(\d{6,12})", re.I)
_CHECK_NUMBER_RE = re.compile(r"(?:Check\s*#?\s*|^)(\d{1,6})(?:\s|$)", re.I)
# "TRADER JOE S #123", "STARBUCKS STORE 123"
_STORE_ID_RE = re.compile(r"(?:#\s*|\bSTORE\s+)(\d{2,8})\b", re.I)


def _capture(pattern: re.Pattern[str], text: str) -> str | None:
    m = pattern.search(text)
    return m.group(1) if m else None


def extract_bank_reference(description: str, channel: ChannelType) -> BankReference:
    """Pull the reference numbers that ``channel`` is known to carry.

    Each reference is read only for its own channel: a long digit run on a
    non-card row is never reported as a card trace number.
    """

    desc = description.strip()
    fields: dict[str, str | None] = {}
    if channel is ChannelType.CHECKCARD:
        fields["card_transaction_trace_number"] = _capture(_TRACE_RE, desc)
        fields["terminal_or_store_id"] = _capture(_STORE_ID_RE, desc)
    elif channel is ChannelType.PURCHASE:
        fields["terminal_or_store_id"] = _capture(_STORE_ID_RE, desc)
    elif channel is ChannelType.ONLINE_BANKING_TRANSFER:
        fields["confirmation_number"] = _capture(_CONFIRMATION_RE, desc)
    elif channel is ChannelType.ZELLE:
        fields["zelle_confirmation"] = _capture(_ZELLE_CONF_RE, desc)
    elif channel in (ChannelType.ATM_DEPOSIT, ChannelType.ATM_WITHDRAWAL):
        fields["atm_id"] = _capture(_ATM_ID_RE, desc)
    elif channel is ChannelType.CHECK:
        fields["check_number"] = _capture(_CHECK_NUMBER_RE, desc)
    return BankReference(**fields)


__all__ = ["CHANNEL_RULES", "ChannelRule", "classify_channel", "extract_bank_reference"]
