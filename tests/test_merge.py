from decimal import Decimal

import pytest

from bank_statements.merge import SourceBatch, is_combined_pdf_filename, merge_statements
from tests.helpers.statements import (
    CHECKING_LINES,
    CHECKING_STATEMENT_ID,
    CREDIT_LINES,
    parse_lines,
)


def _checking(filename="march.pdf"):
    (statement,) = parse_lines(CHECKING_LINES, filename=filename)
    return statement


def _without_last_transaction(statement):
    return statement.model_copy(update={"transactions": statement.transactions[:-1]})


# ---- Statement duplicates ------------------------------------------------------


def test_same_statement_from_two_files_is_kept_once():
    result = merge_statements(
        [
            SourceBatch("march.pdf", [_checking("march.pdf")]),
            SourceBatch(
                "all_statements.pdf", [_checking("all_statements.pdf")], is_combined=True
            ),
        ]
    )
    (statement,) = result.statements
    assert statement.statement_id == CHECKING_STATEMENT_ID
    assert statement.source_file == "march.pdf"
    assert result.duplicate_statements_removed == 1
    assert result.duplicate_transactions_removed == 0
    assert result.total_transactions == 6


def test_single_statement_source_beats_combined_source():
    # The combined copy has more rows but still loses.
    partial = _without_last_transaction(_checking("march.pdf"))
    result = merge_statements(
        [
            SourceBatch("combined.pdf", [_checking("combined.pdf")], is_combined=True),
            SourceBatch("march.pdf", [partial]),
        ]
    )
    (statement,) = result.statements
    assert statement.source_file == "march.pdf"
    assert len(statement.transactions) == 5
    assert statement.summary.transaction_count == 5


def test_more_transactions_wins_between_single_sources():
    partial = _without_last_transaction(_checking("a.pdf"))
    result = merge_statements(
        [SourceBatch("a.pdf", [partial]), SourceBatch("b.pdf", [_checking("b.pdf")])]
    )
    (statement,) = result.statements
    assert statement.source_file == "b.pdf"
    assert len(statement.transactions) == 6


def test_smaller_filename_breaks_remaining_ties():
    result = merge_statements(
        [SourceBatch("b.pdf", [_checking("b.pdf")]), SourceBatch("a.pdf", [_checking("a.pdf")])]
    )
    assert [s.source_file for s in result.statements] == ["a.pdf"]


def test_merge_is_independent_of_input_order():
    batches = [
        SourceBatch("b.pdf", [_checking("b.pdf")]),
        SourceBatch("all.pdf", [_checking("all.pdf")], is_combined=True),
        SourceBatch("a.pdf", [_checking("a.pdf")]),
    ]
    assert merge_statements(batches) == merge_statements(list(reversed(batches)))


def test_combined_flag_on_statement_counts_as_combined_source():
    flagged = _checking("a.pdf").model_copy(update={"is_combined_source": True})
    result = merge_statements(
        [SourceBatch("a.pdf", [flagged]), SourceBatch("z.pdf", [_checking("z.pdf")])]
    )
    assert result.statements[0].source_file == "z.pdf"


# ---- Transactions and ordering -----------------------------------------------------


def test_duplicate_transactions_are_removed_and_summary_recomputed():
    statement = _checking()
    doubled = statement.model_copy(
        update={"transactions": statement.transactions + statement.transactions[:2]}
    )
    result = merge_statements([SourceBatch("march.pdf", [doubled])])

    (merged,) = result.statements
    assert result.duplicate_transactions_removed == 2
    assert merged.summary.transaction_count == 6
    assert merged.summary.computed_credits == Decimal("2000.00")
    assert merged.summary.computed_debits == Decimal("1012.00")
    keys = [(t.date, t.transaction_id) for t in merged.transactions]
    assert keys == sorted(keys)
    assert len({t.transaction_id for t in merged.transactions}) == 6


def test_statements_are_ordered_by_period_start():
    (card,) = parse_lines(CREDIT_LINES, filename="card.pdf")
    result = merge_statements(
        [SourceBatch("march.pdf", [_checking()]), SourceBatch("card.pdf", [card])]
    )
    assert [s.account.statement_period_start for s in result.statements] == [
        "2025-01-04",
        "2025-03-01",
    ]
    assert result.total_transactions == 9


def test_merge_of_nothing_is_empty():
    result = merge_statements([])
    assert result.statements == []
    assert result.total_transactions == 0


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("eStmt_2025-03-31.pdf", False),
        ("Combined_2025.pdf", True),
        ("merged-statements.pdf", True),
        ("All_Statements.pdf", True),
        ("all-statements-2024.pdf", True),
        ("allstatements.pdf", True),
    ],
)
def test_is_combined_pdf_filename(filename, expected):
    assert is_combined_pdf_filename(filename) is expected
