"""Raw printed transaction -> canonical :class:`~bank_statements.models.Transaction`."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal

from ..categorize import Categorizer, DefaultCategorizer, categorize_safely, fees_categorization
from ..config import DEFAULT_CONFIG, ParserConfig
from ..identity import IdentityFields, compute_transaction_id
from ..models import (
    DEBIT_SECTIONS,
    ChannelType,
    Direction,
    RawTransaction,
    Section,
    Transaction,
    TransactionFlags,
    TransactionRaw,
)
from ..values import clean_description, parse_us_date, quantize_money, to_decimal
from .channel import classify_channel, extract_bank_reference
from .merchant import extract_merchant

_SUBSCRIPTION_RE = re.compile(
    r"netflix|spotify|hulu|disney|hbo|apple\s*(?:music|tv|one)|youtube\s*premium"
    r"|amazon\s*prime|audible",
    re.I,
)

_FEE_SECTIONS = frozenset({Section.SERVICE_FEES, Section.FEES})


@dataclass(frozen=True, slots=True)
class NormalizeContext:
    """Per-statement facts the normalizer needs.

    ``is_credit_card`` switches the sign convention: on a card statement a
    positive printed amount is a charge.
    """

    statement_id: str
    statement_year: int
    is_credit_card: bool = False
    period_end: str | None = None


def resolve_direction(
    raw_amount: Decimal, section: Section, *, is_credit_card: bool
) -> tuple[Decimal, Direction]:
    """Return the signed amount and its direction.

    A zero amount is always a credit so that ``amount < 0`` holds exactly for
    debits.
    """

    magnitude = abs(raw_amount)
    if is_credit_card:
        if section is Section.PAYMENTS:
            debit = False
        else:
            debit = raw_amount > 0
    elif section in DEBIT_SECTIONS:
        debit = True
    elif section is Section.DEPOSITS:
        debit = False
    else:
        debit = raw_amount < 0
    if magnitude == 0:
        debit = False
    return (-magnitude if debit else magnitude), (Direction.DEBIT if debit else Direction.CREDIT)


def compute_flags(channel: ChannelType, description: str) -> TransactionFlags | None:
    """Flags implied by the channel and description; ``None`` when none apply."""

    values: dict[str, bool] = {}
    if channel in (ChannelType.ZELLE, ChannelType.ONLINE_BANKING_TRANSFER):
        values["is_transfer"] = True
    if channel is ChannelType.ATM_WITHDRAWAL:
        values["is_cash_withdrawal"] = True
    if channel in (ChannelType.ATM_DEPOSIT, ChannelType.FINANCIAL_CENTER_DEPOSIT):
        values["is_cash_deposit"] = True
    if _SUBSCRIPTION_RE.search(description):
        values["is_subscription"] = True
        values["is_recurring"] = True
    return TransactionFlags(**values) if values else None


def _iso(date_text: str, context: NormalizeContext) -> str:
    return parse_us_date(date_text, context.statement_year, period_end=context.period_end)


def normalize_transaction(
    raw: RawTransaction,
    context: NormalizeContext,
    *,
    config: ParserConfig = DEFAULT_CONFIG,
    categorizer: Categorizer | None = None,
) -> Transaction:
    """Build the canonical transaction for one printed row.

    Raises
    ------
    ValueError
        When the printed date or amount cannot be parsed.
    """

    date = _iso(raw.date, context)
    posted_date = _iso(raw.posted_date, context) if raw.posted_date else None
    amount, direction = resolve_direction(
        to_decimal(raw.amount), raw.section, is_credit_card=context.is_credit_card
    )
    amount = quantize_money(amount)

    description = clean_description(raw.description)
    channel = classify_channel(raw.description, raw.section)
    bank_reference = extract_bank_reference(raw.description, channel.type)
    merchant = extract_merchant(raw.description)

    if raw.section in _FEE_SECTIONS:
        categorization = fees_categorization(config)
    else:
        categorization = categorize_safely(
            categorizer or DefaultCategorizer(config), description, channel.type, config=config
        )

    transaction_id = compute_transaction_id(
        IdentityFields(
            date=date,
            posted_date=posted_date,
            direction=direction,
            amount=amount,
            description=description,
            merchant=merchant.name,
            page=raw.page,
            original_text=raw.original_line,
        ),
        context.statement_id,
    )

    return Transaction(
        transaction_id=transaction_id,
        date=date,
        posted_date=posted_date,
        amount=amount,
        direction=direction,
        description=description,
        description_raw=raw.original_line,
        merchant=merchant,
        bank_reference=bank_reference,
        channel=channel,
        categorization=categorization,
        raw=TransactionRaw(
            page=raw.page,
            line_index=raw.line_index,
            section=raw.section,
            original_text=raw.original_line,
        ),
        flags=compute_flags(channel.type, raw.description),
    )


__all__ = ["NormalizeContext", "compute_flags", "normalize_transaction", "resolve_direction"]
