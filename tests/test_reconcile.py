from decimal import Decimal

import pytest

from bank_statements.config import ParserConfig
from bank_statements.models import Severity
from bank_statements.reconcile import (
    build_integrity_report,
    computed_totals,
    cross_check_totals,
    integrity_entry,
    reconcile_statement,
    severity_for,
    validate,
)
from tests.helpers.statements import CHECKING_LINES, CREDIT_LINES, parse_lines


def _with_balances(statement, **changes):
    return statement.model_copy(
        update={"balances": statement.balances.model_copy(update=changes)}
    )


# ---- validate --------------------------------------------------------------------


def test_validate_balanced():
    result = validate(1000, 1200, 500, 300)
    assert result.passed
    assert result.difference == 0
    assert result.expected_ending_balance == Decimal("1200.00")
    assert result.breakdown.total_debits == Decimal("300.00")


def test_validate_reports_the_difference():
    result = validate("1,000.00", "1,250.00", "500.00", "300.00")
    assert not result.passed
    assert result.expected_ending_balance == Decimal("1200.00")
    assert result.difference == Decimal("50.00")


def test_validate_tolerance_is_inclusive():
    assert validate("100.00", "100.01", "0", "0").passed
    assert not validate("100.00", "100.02", "0", "0").passed
    assert validate("100.00", "100.02", "0", "0", tolerance="0.05").passed


def test_validate_rejects_unparseable_input():
    with pytest.raises(ValueError):
        validate("abc", 0, 0, 0)


@pytest.mark.parametrize(
    ("difference", "passed", "expected"),
    [
        (Decimal("500.00"), True, Severity.INFO),
        (Decimal("0.50"), False, Severity.INFO),
        (Decimal("1.00"), False, Severity.WARNING),
        (Decimal("100.00"), False, Severity.WARNING),
        (Decimal("100.01"), False, Severity.ERROR),
    ],
)
def test_severity_for(difference, passed, expected):
    assert severity_for(difference, passed) is expected


# ---- Statement checks -------------------------------------------------------------


def test_checking_statement_totals_agree():
    (statement,) = parse_lines(CHECKING_LINES)
    assert computed_totals(statement.transactions) == (Decimal("2000.00"), Decimal("1012.00"))
    assert cross_check_totals(statement) == []
    assert reconcile_statement(statement).passed


def test_cross_check_reports_printed_total_mismatch():
    (statement,) = parse_lines(CHECKING_LINES)
    altered = _with_balances(statement, total_credits=Decimal("2100.00"))

    (mismatch,) = cross_check_totals(altered)
    assert mismatch.field == "total_credits"
    assert (mismatch.printed, mismatch.computed) == (Decimal("2100.00"), Decimal("2000.00"))
    assert mismatch.difference == Decimal("100.00")


def test_cross_check_compares_printed_section_totals():
    (statement,) = parse_lines(CHECKING_LINES)
    summary = statement.summary.model_copy(update={"checks_total": Decimal("850.00")})
    altered = statement.model_copy(update={"summary": summary})
    assert [m.field for m in cross_check_totals(altered)] == ["checks_total"]


def test_card_balances_reconcile_as_amounts_owed():
    (statement,) = parse_lines(CREDIT_LINES)
    result = reconcile_statement(statement)
    assert result.passed
    assert result.expected_ending_balance == Decimal("450.00")
    assert result.breakdown.starting_balance == Decimal("500.00")


def test_integrity_report_counts_and_severity():
    (statement,) = parse_lines(CHECKING_LINES)
    broken = _with_balances(statement, ending_balance=Decimal("1900.00"))

    report = build_integrity_report([statement, broken])
    assert (report.passed, report.failed) == (1, 1)
    entry = report.entries[1]
    assert not entry.passed
    assert entry.severity is Severity.WARNING
    assert entry.difference == Decimal("88.00")
    assert entry.expected_ending_balance == Decimal("1988.00")
    assert entry.period_label == "Mar 2025"


def test_integrity_entry_honours_configured_thresholds():
    (statement,) = parse_lines(CHECKING_LINES)
    broken = _with_balances(statement, ending_balance=Decimal("1900.00"))
    config = ParserConfig(integrity_error_threshold=Decimal("50.00"))
    assert integrity_entry(broken, config).severity is Severity.ERROR
