import json
from decimal import Decimal
from pathlib import Path

import pytest

from bank_statements import pipeline
from bank_statements.categorize import FEES_CATEGORY, UNCATEGORIZED
from bank_statements.config import ParserConfig
from bank_statements.dialects import Dialect, parse_statements
from bank_statements.errors import (
    DialectUndetected,
    NoTransactionsFound,
    PdfUnreadable,
    StrictModeViolation,
)
from bank_statements.identity import is_valid_transaction_id
from bank_statements.merge import SourceBatch, merge_statements
from bank_statements.models import AccountType, ChannelType, Direction, Section
from bank_statements.pipeline import detect_pdf, parse_document, parse_pdf
from tests.helpers.statements import (
    CHECKING_LINES,
    CHECKING_STATEMENT_ID,
    COMBINED_LINES,
    CREDIT_LINES,
    TRANSACTION_DETAILS_LINES,
    UNKNOWN_LINES,
    FakeDecoder,
    document,
    parse_lines,
    raw_lines,
)

RECONCILE_WARNING = (
    "Balance does not reconcile for Mar 2025: expected ending 1988.00, "
    "printed 1900.00 (difference 88.00)"
)


def _replace_line(lines, old, new):
    return tuple(new if line == old else line for line in lines)


def _unbalanced_checking():
    return _replace_line(
        CHECKING_LINES,
        "Ending balance on March 31, 2025 $1,988.00",
        "Ending balance on March 31, 2025 $1,900.00",
    )


# ---- Statement assembly ----------------------------------------------------------


def test_checking_statement_end_to_end():
    (statement,) = parse_lines(CHECKING_LINES, filename="eStmt_2025-03-31.pdf")

    assert statement.statement_id == CHECKING_STATEMENT_ID
    assert statement.institution == "Bank of America"
    assert statement.source_file == "eStmt_2025-03-31.pdf"
    assert statement.period_label == "Mar 2025"
    assert statement.warnings == []
    assert not statement.is_combined_source
    assert (statement.page_start, statement.page_end) == (1, 1)

    assert statement.balances.starting_balance == Decimal("1000.00")
    assert statement.balances.ending_balance == Decimal("1988.00")
    assert statement.summary.deposits_total == Decimal("2000.00")
    assert statement.summary.checks_total == Decimal("800.00")
    assert statement.summary.transaction_count == 6
    # Title, account, period and the two balance lines precede the first section.
    assert statement.summary.dropped_lines == 5
    assert (statement.summary.computed_credits, statement.summary.computed_debits) == (
        Decimal("2000.00"),
        Decimal("1012.00"),
    )

    assert len(statement.transactions) == 6
    assert all(is_valid_transaction_id(t.transaction_id) for t in statement.transactions)
    assert all((t.amount < 0) == (t.direction is Direction.DEBIT) for t in statement.transactions)


def test_checking_transactions_are_normalized():
    (statement,) = parse_lines(CHECKING_LINES)
    by_amount = {t.amount: t for t in statement.transactions}

    transfer = by_amount[Decimal("1300.00")]
    assert transfer.date == "2025-03-17"
    assert transfer.direction is Direction.CREDIT
    assert transfer.channel.type is ChannelType.ONLINE_BANKING_TRANSFER

    card = by_amount[Decimal("-45.99")]
    assert card.description == "CHECKCARD 0304 STARBUCKS STORE 123 SEATTLE WA"
    assert card.merchant.normalized_name == "Starbucks"
    assert card.raw.section is Section.ATM_DEBIT

    check = by_amount[Decimal("-800.00")]
    assert check.channel.type is ChannelType.CHECK
    assert check.bank_reference.check_number == "1234"

    fee = by_amount[Decimal("-12.00")]
    assert fee.categorization.category == FEES_CATEGORY
    assert by_amount[Decimal("700.00")].categorization.category == UNCATEGORIZED


def test_credit_card_signs_follow_amounts_owed():
    (statement,) = parse_lines(CREDIT_LINES)

    assert statement.account.account_type is AccountType.CREDIT
    assert statement.warnings == []
    assert [(t.date, t.posted_date, t.amount, t.direction) for t in statement.transactions] == [
        ("2025-01-10", "2025-01-10", Decimal("300.00"), Direction.CREDIT),
        ("2025-01-15", "2025-01-16", Decimal("-245.99"), Direction.DEBIT),
        ("2025-02-03", "2025-02-03", Decimal("-4.01"), Direction.DEBIT),
    ]


def test_transaction_details_export_uses_computed_totals():
    (statement,) = parse_lines(TRANSACTION_DETAILS_LINES)

    assert statement.warnings == []
    assert statement.balances.starting_balance == Decimal("2457.67")
    assert statement.balances.total_credits == Decimal("100.00")
    assert statement.balances.total_debits == Decimal("57.67")
    assert [t.amount for t in statement.transactions] == [
        Decimal("-45.67"),
        Decimal("100.00"),
        Decimal("-12.00"),
    ]


def test_combined_document_yields_one_statement_per_period():
    statements = parse_lines(COMBINED_LINES, filename="all_statements.pdf")

    assert [s.statement_id for s in statements] == [
        "BOA-checking-****3529-2025-01-01-2025-01-31",
        "BOA-checking-****3529-2025-02-01-2025-02-28",
    ]
    assert all(s.is_combined_source for s in statements)
    assert all(s.warnings == [] for s in statements)
    assert [s.balances.ending_balance for s in statements] == [
        Decimal("150.00"),
        Decimal("130.00"),
    ]


def test_parsing_the_same_document_twice_is_idempotent():
    first = parse_document(document(CHECKING_LINES), filename="march.pdf")
    second = parse_document(document(CHECKING_LINES), filename="march.pdf")

    assert [s.statement_id for s in first] == [s.statement_id for s in second]
    assert [t.transaction_id for t in first[0].transactions] == [
        t.transaction_id for t in second[0].transactions
    ]
    assert first == second

    merged = merge_statements(
        [SourceBatch("march.pdf", first), SourceBatch("march-copy.pdf", second)]
    )
    assert merged.duplicate_statements_removed == 1
    assert merged.total_transactions == 6
    assert merged.statements[0].source_file == "march.pdf"


def test_json_output_uses_numbers_and_sparse_flags():
    (statement,) = parse_lines(CHECKING_LINES)
    data = json.loads(statement.model_dump_json())

    assert data["balances"]["starting_balance"] == 1000.0
    by_amount = {t["amount"]: t for t in data["transactions"]}
    assert by_amount[1300.0]["flags"] == {"is_transfer": True}
    assert by_amount[700.0]["flags"] is None
    assert by_amount[-45.99]["direction"] == "debit"


# ---- Warnings and strict mode -----------------------------------------------------


def test_unbalanced_statement_carries_a_warning():
    (statement,) = parse_lines(_unbalanced_checking())
    assert statement.warnings == [RECONCILE_WARNING]


def test_strict_mode_turns_warnings_into_errors():
    with pytest.raises(StrictModeViolation) as excinfo:
        parse_lines(_unbalanced_checking(), filename="march.pdf", config=ParserConfig(strict=True))
    assert excinfo.value.warnings == (RECONCILE_WARNING,)
    assert excinfo.value.filename == "march.pdf"
    assert str(excinfo.value).startswith("march.pdf: strict mode: 1 warning(s): ")


def test_strict_mode_ignores_warnings_of_discarded_empty_statement():
    # A trailing March segment with no transactions and no ending balance.
    lines = COMBINED_LINES + (
        "for March 1, 2025 to March 31, 2025",
        "Beginning balance on March 1, 2025 $130.00",
    )
    assert "Ending balance not found; assuming 0.00" in _empty_march_warnings(lines)

    statements = parse_lines(lines, config=ParserConfig(strict=True))
    assert [s.period_label for s in statements] == ["Jan 2025", "Feb 2025"]


def _empty_march_warnings(lines):
    results = parse_statements(Dialect.CHECKING, raw_lines(lines), ParserConfig())
    (march,) = [r for r in results if r.account_info.statement_period_start == "2025-03-01"]
    assert march.transactions == []
    return march.warnings


def test_strict_mode_accepts_clean_statement():
    (statement,) = parse_lines(CHECKING_LINES, config=ParserConfig(strict=True))
    assert statement.warnings == []


def test_failing_categorizer_does_not_stop_the_statement():
    def categorizer(description, channel_type=None):
        raise RuntimeError("offline")

    (statement,) = parse_document(document(CHECKING_LINES), categorizer=categorizer)
    categories = {t.categorization.category for t in statement.transactions}
    assert categories == {UNCATEGORIZED, FEES_CATEGORY}


# ---- Fatal per-document errors ---------------------------------------------------------


def test_document_without_text_is_unreadable():
    with pytest.raises(PdfUnreadable) as excinfo:
        parse_document(document([]), filename="locked.pdf")
    assert excinfo.value.filename == "locked.pdf"
    assert "password-protected" in excinfo.value.message


def test_unknown_layout_is_fatal():
    with pytest.raises(DialectUndetected):
        parse_lines(UNKNOWN_LINES)


def test_statement_without_transactions_is_fatal():
    with pytest.raises(NoTransactionsFound) as excinfo:
        parse_lines(CHECKING_LINES[:5])
    assert excinfo.value.message == "no transactions found in checking statement"


# ---- File entry points ----------------------------------------------------------------


def test_parse_pdf_uses_injected_decoder():
    decoder = FakeDecoder({"card.pdf": CREDIT_LINES})
    statements = parse_pdf(Path("statements/card.pdf"), decoder=decoder)
    assert decoder.calls == ["card.pdf"]
    assert statements[0].source_file == "card.pdf"


def test_parse_pdf_defaults_to_module_decoder(monkeypatch):
    monkeypatch.setattr(pipeline, "decode_pdf", FakeDecoder({"march.pdf": CHECKING_LINES}))
    (statement,) = parse_pdf(Path("march.pdf"))
    assert statement.statement_id == CHECKING_STATEMENT_ID


def test_detect_pdf():
    decoder = FakeDecoder(
        {"card.pdf": CREDIT_LINES, "export.pdf": TRANSACTION_DETAILS_LINES, "x.pdf": UNKNOWN_LINES}
    )
    assert detect_pdf(Path("card.pdf"), decoder=decoder) is Dialect.CREDIT
    assert detect_pdf(Path("export.pdf"), decoder=decoder) is Dialect.TRANSACTION_DETAILS
    with pytest.raises(DialectUndetected):
        detect_pdf(Path("x.pdf"), decoder=decoder)
