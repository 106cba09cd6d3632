"""Data models for the statement pipeline.

Two families live here:

- Intermediate records (``PositionedFragment``, ``Row``, ``RawLine``,
  ``RawTransaction``) are frozen ``dataclass`` values. They exist only while a
  single document is being parsed and are never serialized.
- Output records (``Transaction``, ``Statement``, ``MergeResult`` and their
  parts) are pydantic models so the JSON document written by the CLI is
  validated on construction. Money is carried as :class:`~decimal.Decimal`
  and rendered as a JSON number; dates are ISO ``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    PlainSerializer,
    field_serializer,
    field_validator,
    model_validator,
)

# A Decimal that serializes to a JSON number rather than a string.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Section(StrEnum):
    """Printed statement sub-table a transaction was found in."""

    DEPOSITS = "deposits"
    ATM_DEBIT = "atm_debit"
    OTHER_SUBTRACTIONS = "other_subtractions"
    CHECKS = "checks"
    SERVICE_FEES = "service_fees"
    # Credit-card statements
    PAYMENTS = "payments"
    PURCHASES = "purchases"
    FEES = "fees"
    INTEREST = "interest"
    UNKNOWN = "unknown"


# Sections whose entries are always money leaving a deposit account.
DEBIT_SECTIONS: frozenset[Section] = frozenset(
    {Section.ATM_DEBIT, Section.OTHER_SUBTRACTIONS, Section.CHECKS, Section.SERVICE_FEES}
)


class AccountType(StrEnum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    UNKNOWN = "unknown"


class Direction(StrEnum):
    DEBIT = "debit"
    CREDIT = "credit"


class ChannelType(StrEnum):
    CHECKCARD = "CHECKCARD"
    PURCHASE = "PURCHASE"
    ATM_DEPOSIT = "ATM_DEPOSIT"
    ATM_WITHDRAWAL = "ATM_WITHDRAWAL"
    FINANCIAL_CENTER_DEPOSIT = "FINANCIAL_CENTER_DEPOSIT"
    ONLINE_BANKING_TRANSFER = "ONLINE_BANKING_TRANSFER"
    ZELLE = "ZELLE"
    CHECK = "CHECK"
    FEE = "FEE"
    OTHER = "OTHER"


class Severity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Intermediate records (one document's lifetime)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PositionedFragment:
    """A run of text at an absolute page position (bottom-left origin)."""

    text: str
    x: float
    y: float
    width: float
    height: float
    page: int

    @property
    def end_x(self) -> float:
        return self.x + self.width


@dataclass(frozen=True, slots=True)
class Row:
    """Fragments sharing a Y band, sorted left to right, plus the joined text."""

    page: int
    y: float
    fragments: tuple[PositionedFragment, ...]
    text: str


@dataclass(frozen=True, slots=True)
class RawLine:
    text: str
    page: int
    line_index: int


@dataclass(frozen=True, slots=True)
class RawTransaction:
    """A transaction as printed: source-format date and unparsed amount.

    ``description`` accumulates continuation lines joined with a space while
    ``original_line`` keeps every physical line joined with ``" | "``.
    """

    date: str
    description: str
    amount: str
    page: int
    line_index: int
    section: Section
    original_line: str
    posted_date: str | None = None
    type_hint: str | None = None


# ---------------------------------------------------------------------------
# Statement-level value objects
# ---------------------------------------------------------------------------


class AccountInfo(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    account_type: AccountType
    account_number_masked: str
    statement_period_start: str
    statement_period_end: str
    product_name: str | None = None

    @model_validator(mode="after")
    def _period_ordered(self) -> AccountInfo:
        # ISO dates compare correctly as strings.
        if self.statement_period_start > self.statement_period_end:
            raise ValueError(
                "statement_period_start must not be after statement_period_end: "
                f"{self.statement_period_start} > {self.statement_period_end}"
            )
        return self


class BalanceInfo(BaseModel):
    """Printed balances. ``starting + credits - debits`` should equal ``ending``."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    starting_balance: Money
    ending_balance: Money
    total_credits: Money
    total_debits: Money


# ---------------------------------------------------------------------------
# Transaction parts
# ---------------------------------------------------------------------------


class Channel(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    type: ChannelType
    subtype: str | None = None


class BankReference(BaseModel):
    """Long reference numbers printed by the bank; never used for categorization."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    card_transaction_trace_number: str | None = None
    confirmation_number: str | None = None
    zelle_confirmation: str | None = None
    check_number: str | None = None
    atm_id: str | None = None
    terminal_or_store_id: str | None = None


class Merchant(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    name: str | None = None
    normalized_name: str | None = None
    city: str | None = None
    state: str | None = None
    phone: str | None = None
    online: bool | None = None
    network: str | None = None


class Categorization(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    category: str
    subcategory: str | None = None
    confidence: float
    rule_id: str | None = None
    rationale: str | None = None

    @field_validator("confidence")
    @classmethod
    def _confidence_in_unit_interval(cls, v: float) -> float:
        if 0.0 <= v <= 1.0:
            return v
        raise ValueError("confidence must be within [0,1]")


class TransactionFlags(BaseModel):
    """Sparse flags; serialize with ``exclude_defaults`` to emit only true keys."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    is_transfer: bool = False
    is_cash_withdrawal: bool = False
    is_cash_deposit: bool = False
    is_recurring: bool = False
    is_subscription: bool = False


class TransactionRaw(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    page: int
    line_index: int
    section: Section
    original_text: str


class Transaction(BaseModel):
    """Canonical output unit. ``amount < 0`` exactly when ``direction`` is debit."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    transaction_id: str
    date: str
    posted_date: str | None = None
    amount: Money
    direction: Direction
    description: str
    description_raw: str
    merchant: Merchant
    bank_reference: BankReference
    channel: Channel
    categorization: Categorization
    raw: TransactionRaw
    flags: TransactionFlags | None = None

    @model_validator(mode="after")
    def _sign_matches_direction(self) -> Transaction:
        if (self.amount < 0) != (self.direction is Direction.DEBIT):
            raise ValueError(
                f"amount {self.amount} is inconsistent with direction {self.direction.value}"
            )
        return self

    @field_serializer("flags")
    def _sparse_flags(self, flags: TransactionFlags | None) -> dict[str, bool] | None:
        if flags is None:
            return None
        return flags.model_dump(exclude_defaults=True)


# ---------------------------------------------------------------------------
# Statements and merge output
# ---------------------------------------------------------------------------


class StatementSummary(BaseModel):
    """Printed section subtotals (when found) and totals computed from transactions.

    ``dropped_lines`` counts lines that matched no transaction, continuation,
    header or skip pattern.
    """

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    deposits_total: Money | None = None
    atm_debit_total: Money | None = None
    other_subtractions_total: Money | None = None
    checks_total: Money | None = None
    service_fees_total: Money | None = None
    computed_credits: Money
    computed_debits: Money
    transaction_count: int
    dropped_lines: int = 0


class Statement(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    statement_id: str
    institution: str
    account: AccountInfo
    balances: BalanceInfo
    summary: StatementSummary
    transactions: list[Transaction]
    period_label: str
    source_file: str | None = None
    is_combined_source: bool = False
    page_start: int | None = None
    page_end: int | None = None
    warnings: list[str] = []


class MergeResult(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    statements: list[Statement]
    total_transactions: int
    duplicate_statements_removed: int
    duplicate_transactions_removed: int


class ReconciliationBreakdown(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    starting_balance: Money
    total_credits: Money
    total_debits: Money
    ending_balance: Money
    tolerance: Money


class ReconciliationResult(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    passed: bool
    expected_ending_balance: Money
    difference: Money
    breakdown: ReconciliationBreakdown


class TotalsMismatch(BaseModel):
    """A printed total that disagrees with the sum of parsed transactions."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    field: str
    printed: Money
    computed: Money
    difference: Money


class IntegrityEntry(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    statement_id: str
    period_label: str
    passed: bool
    severity: Severity
    difference: Money
    expected_ending_balance: Money
    ending_balance: Money
    mismatches: list[TotalsMismatch] = []


class IntegrityReport(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    entries: list[IntegrityEntry]
    passed: int
    failed: int


# ---------------------------------------------------------------------------
# Batch records
# ---------------------------------------------------------------------------


class ParseFailure(BaseModel):
    """Structured record of one file that could not be parsed."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    filename: str
    file_path: str
    error: str
    error_type: str
    timestamp: str


class BatchSummary(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    total_files: int
    succeeded: int
    failed: int
    statements_before_merge: int
    duplicate_statements_removed: int
    duplicate_transactions_removed: int
    total_transactions: int


__all__ = [
    "DEBIT_SECTIONS",
    "AccountInfo",
    "AccountType",
    "BalanceInfo",
    "BankReference",
    "BatchSummary",
    "Categorization",
    "Channel",
    "ChannelType",
    "Direction",
    "IntegrityEntry",
    "IntegrityReport",
    "Merchant",
    "MergeResult",
    "Money",
    "ParseFailure",
    "PositionedFragment",
    "RawLine",
    "RawTransaction",
    "ReconciliationBreakdown",
    "ReconciliationResult",
    "Row",
    "Section",
    "Severity",
    "Statement",
    "StatementSummary",
    "TotalsMismatch",
    "Transaction",
    "TransactionFlags",
    "TransactionRaw",
]
