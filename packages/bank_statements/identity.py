"""Deterministic statement and transaction identifiers.

Transaction ids hash the canonical form of every identifying field, so the
same printed row always maps to the same id across runs and across source
files. That is what lets the merger drop a transaction seen in both a
monthly statement and a combined export.

Canonical form
--------------
- text fields: whitespace collapsed, trailing card trace number removed,
  upper-cased
- amount: exactly two decimals
- missing posted date: empty string

The pipe-joined fields are
``statement_id|date|posted_date|direction|amount|DESCRIPTION|MERCHANT|page|ORIGINAL``
and the id is ``tx_`` followed by the first 24 hex digits of their SHA-256.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from decimal import Decimal

from .models import AccountInfo, Direction
from .values import clean_description, fmt_amount

TRANSACTION_ID_PREFIX = "tx_"
TRANSACTION_ID_HEX_LENGTH = 24

_TRANSACTION_ID_RE = re.compile(
    rf"^{TRANSACTION_ID_PREFIX}[a-f0-9]{{{TRANSACTION_ID_HEX_LENGTH}}}$"
)
_STATEMENT_ID_RE = re.compile(r"^[\x21-\x7e]+$")
_NON_ID_CHARS_RE = re.compile(r"[^A-Z0-9]+")

_INSTITUTION_CODES = {
    "BANK OF AMERICA": "BOA",
    "BANK OF AMERICA, N.A.": "BOA",
    "BOFA": "BOA",
}


@dataclass(frozen=True, slots=True)
class IdentityFields:
    date: str
    posted_date: str | None
    direction: Direction
    amount: Decimal
    description: str
    merchant: str | None
    page: int
    original_text: str


def _canon(text: str | None) -> str:
    return clean_description(text or "").upper()


def institution_code(institution: str) -> str:
    upper = " ".join(institution.upper().split())
    if upper in _INSTITUTION_CODES:
        return _INSTITUTION_CODES[upper]
    return _NON_ID_CHARS_RE.sub("_", upper).strip("_") or "UNKNOWN"


def compute_statement_id(institution: str, account: AccountInfo) -> str:
    """Build ``{INSTITUTION}-{type}-{masked account}-{start}-{end}``.

    For example ``BOA-checking-****3529-2025-03-11-2025-04-09``.
    """

    return "-".join(
        (
            institution_code(institution),
            account.account_type.value,
            account.account_number_masked,
            account.statement_period_start,
            account.statement_period_end,
        )
    )


def canonical_identity(fields: IdentityFields, statement_id: str) -> str:
    return "|".join(
        (
            statement_id,
            fields.date,
            fields.posted_date or "",
            fields.direction.value,
            fmt_amount(fields.amount),
            _canon(fields.description),
            _canon(fields.merchant),
            str(fields.page),
            _canon(fields.original_text),
        )
    )


def compute_transaction_id(fields: IdentityFields, statement_id: str) -> str:
    digest = hashlib.sha256(canonical_identity(fields, statement_id).encode("utf-8")).hexdigest()
    return f"{TRANSACTION_ID_PREFIX}{digest[:TRANSACTION_ID_HEX_LENGTH]}"


def is_valid_transaction_id(value: object) -> bool:
    return isinstance(value, str) and _TRANSACTION_ID_RE.match(value) is not None


def is_valid_statement_id(value: object) -> bool:
    """Printable ASCII without whitespace."""

    return isinstance(value, str) and _STATEMENT_ID_RE.match(value) is not None


__all__ = [
    "TRANSACTION_ID_PREFIX",
    "IdentityFields",
    "canonical_identity",
    "compute_statement_id",
    "compute_transaction_id",
    "institution_code",
    "is_valid_statement_id",
    "is_valid_transaction_id",
]
