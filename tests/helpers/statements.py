"""Synthetic statement documents for tests.

Real statement PDFs carry account numbers, so tests build documents from
plain text lines instead. Each line becomes one positioned fragment, stacked
top to bottom, which the layout stage turns back into the same lines.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from bank_statements.config import DEFAULT_CONFIG, ParserConfig
from bank_statements.models import PositionedFragment, RawLine, Statement
from bank_statements.pdf import DecodedDocument, DecodedPage
from bank_statements.pipeline import parse_document

PAGE_TOP = 760.0
LINE_HEIGHT = 14.0
CHAR_WIDTH = 5.0

# Advantage Plus checking, March 2025. Balances reconcile:
# 1,000.00 + 2,000.00 - 1,012.00 = 1,988.00
CHECKING_LINES: tuple[str, ...] = (
    "Bank of America Advantage Plus Banking",
    "Account # 0000 1234 3529",
    "for March 1, 2025 to March 31, 2025",
    "Beginning balance on March 1, 2025 $1,000.00",
    "Ending balance on March 31, 2025 $1,988.00",
    "Deposits and other additions",
    "Date Description Amount",
    "03/03/25 ACME CORP DES:PAYROLL ID:998877 700.00",
    "03/17/25 Online Banking transfer from SAV 5678 1,300.00",
    "Total deposits and other additions $2,000.00",
    "ATM and debit card subtractions",
    "03/05/25 CHECKCARD 0304 STARBUCKS STORE 123 -45.99",
    "SEATTLE WA",
    "Total ATM and debit card subtractions -$45.99",
    "Withdrawals and other subtractions",
    "03/20/25 PAYPAL DES:INST XFER ID:ABC123 -154.01",
    "Total withdrawals and other subtractions -$154.01",
    "Checks",
    "03/12/25 1234 800.00",
    "Total checks -$800.00",
    "Service fees",
    "03/31/25 Monthly Maintenance Fee -12.00",
    "Total service fees -$12.00",
    "Page 1 of 1",
)

CHECKING_STATEMENT_ID = "BOA-checking-****3529-2025-03-01-2025-03-31"

# Customized Cash Rewards card. Balances are owed:
# 500.00 - 300.00 + 245.99 + 4.01 = 450.00
CREDIT_LINES: tuple[str, ...] = (
    "Bank of America Customized Cash Rewards Visa Signature",
    "Account number: XXXX XXXX XXXX 4321",
    "Statement period: January 4, 2025 to February 3, 2025",
    "Previous Balance $500.00",
    "Payments and Other Credits -$300.00",
    "Purchases and Adjustments $245.99",
    "Interest Charged $4.01",
    "New Balance $450.00",
    "Minimum Payment Due $25.00",
    "Credit Limit $5,000.00",
    "Payments and Other Credits",
    "01/10 01/10 PAYMENT - THANK YOU -300.00",
    "Total payments and other credits for this period -$300.00",
    "Purchases and Adjustments",
    "01/15 01/16 AMAZON MKTPLACE PMTS AMZN.COM/BILL WA 245.99",
    "Total purchases and adjustments for this period $245.99",
    "Interest Charged",
    "02/03 02/03 INTEREST CHARGED ON PURCHASES 4.01",
    "Total interest charged for this period $4.01",
)

# Online Banking activity print. The beginning balance is derived:
# 2,500.00 - 100.00 + 57.67 = 2,457.67
TRANSACTION_DETAILS_LINES: tuple[str, ...] = (
    "Print Transaction Details",
    "Adv Plus Banking - 3529 : Account Activity",
    "Balance Summary: $2,500.00 (available balance as of today 01/20/2026)",
    'Showing results for "All Transactions, 01/01/2026 To 01/20/2026"',
    "Posting date Description Type Amount",
    "01/05/2026 CHECKCARD 0104 TRADER JOE S #123 GLENDALE CA Debit Card -45.67",
    "01/10/2026 Online Banking transfer from SAV 5678 Transfer 100.00",
    "Conf# abc123",
    "01/15/2026 Monthly Maintenance Fee Bank Charge -12.00",
)

# Two monthly checking statements bundled in one export.
COMBINED_LINES: tuple[str, ...] = (
    "Bank of America Advantage Plus Banking",
    "Account # 0000 1234 3529",
    "for January 1, 2025 to January 31, 2025",
    "Beginning balance on January 1, 2025 $100.00",
    "Ending balance on January 31, 2025 $150.00",
    "Deposits and other additions",
    "01/10/25 ACME CORP DES:PAYROLL 50.00",
    "Total deposits and other additions $50.00",
    "for February 1, 2025 to February 28, 2025",
    "Beginning balance on February 1, 2025 $150.00",
    "Ending balance on February 28, 2025 $130.00",
    "ATM and debit card subtractions",
    "02/03/25 CHECKCARD 0202 STARBUCKS STORE 123 -20.00",
    "Total ATM and debit card subtractions -$20.00",
)

UNKNOWN_LINES: tuple[str, ...] = (
    "Quarterly newsletter",
    "Thank you for banking with us.",
)


# ---- Builders -------------------------------------------------------------------


def raw_lines(texts: Sequence[str], *, page: int = 1) -> list[RawLine]:
    return [RawLine(text=t, page=page, line_index=i) for i, t in enumerate(texts)]


def page_fragments(
    texts: Sequence[str], *, page: int = 1, x: float = 20.0
) -> tuple[PositionedFragment, ...]:
    """One fragment per line at ``x``, each line ``LINE_HEIGHT`` below the last."""

    return tuple(
        PositionedFragment(
            text=text,
            x=x,
            y=PAGE_TOP - i * LINE_HEIGHT,
            width=len(text) * CHAR_WIDTH,
            height=10.0,
            page=page,
        )
        for i, text in enumerate(texts)
    )


def document(*pages: Sequence[str]) -> DecodedDocument:
    """A decoded document with one page per ``pages`` entry."""

    decoded = tuple(
        DecodedPage(page_number=n, fragments=page_fragments(texts, page=n))
        for n, texts in enumerate(pages, start=1)
    )
    return DecodedDocument(pages=decoded, page_count=len(decoded))


def parse_lines(
    texts: Sequence[str],
    *,
    filename: str = "statement.pdf",
    config: ParserConfig = DEFAULT_CONFIG,
) -> list[Statement]:
    return parse_document(document(texts), config, filename=filename)


class FakeDecoder:
    """Decoder returning canned documents keyed by file name.

    Unknown names decode to a one-page document with no text, which the
    pipeline reports as unreadable. ``calls`` records every decoded name.
    """

    def __init__(self, documents: Mapping[str, Sequence[str] | DecodedDocument]) -> None:
        self._documents = dict(documents)
        self.calls: list[str] = []

    def __call__(self, path: Path) -> DecodedDocument:
        name = Path(path).name
        self.calls.append(name)
        found = self._documents.get(name)
        if found is None:
            return DecodedDocument(pages=(DecodedPage(page_number=1, fragments=()),), page_count=1)
        if isinstance(found, DecodedDocument):
            return found
        return document(found)


__all__ = [
    "CHECKING_LINES",
    "CHECKING_STATEMENT_ID",
    "COMBINED_LINES",
    "CREDIT_LINES",
    "TRANSACTION_DETAILS_LINES",
    "UNKNOWN_LINES",
    "FakeDecoder",
    "document",
    "page_fragments",
    "parse_lines",
    "raw_lines",
]
