"""Balance reconciliation and statement integrity checks.

Nothing here mutates a statement. :func:`validate` answers whether the printed
balances add up; :func:`cross_check_totals` compares printed totals with the
sums of the parsed transactions; :func:`build_integrity_report` rolls both up
for a set of statements. Callers decide whether a failure is fatal.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from .config import DEFAULT_CONFIG, ParserConfig
from .logging_setup import get_logger
from .models import (
    AccountType,
    Direction,
    IntegrityEntry,
    IntegrityReport,
    ReconciliationBreakdown,
    ReconciliationResult,
    Section,
    Severity,
    Statement,
    TotalsMismatch,
    Transaction,
)
from .values import fmt_amount, quantize_money, to_decimal

_logger = get_logger("bank_statements.reconcile")

_DEFAULT_TOLERANCE = Decimal("0.01")

# Printed section subtotal field -> section whose transactions it sums.
_SECTION_TOTAL_FIELDS: tuple[tuple[str, Section], ...] = (
    ("deposits_total", Section.DEPOSITS),
    ("atm_debit_total", Section.ATM_DEBIT),
    ("other_subtractions_total", Section.OTHER_SUBTRACTIONS),
    ("checks_total", Section.CHECKS),
    ("service_fees_total", Section.SERVICE_FEES),
)


def validate(
    starting: Decimal | int | float | str,
    ending: Decimal | int | float | str,
    credits: Decimal | int | float | str,
    debits: Decimal | int | float | str,
    tolerance: Decimal | int | float | str = _DEFAULT_TOLERANCE,
) -> ReconciliationResult:
    """Check ``starting + credits - debits`` against ``ending``.

    ``debits`` is a magnitude. The result passes when the absolute difference
    is at most ``tolerance``.

    >>> validate(1000, 1200, 500, 300).passed
    True
    """

    start = quantize_money(to_decimal(starting))
    end = quantize_money(to_decimal(ending))
    credit_total = quantize_money(to_decimal(credits))
    debit_total = quantize_money(to_decimal(debits))
    tol = to_decimal(tolerance)

    expected = quantize_money(start + credit_total - debit_total)
    difference = quantize_money(abs(expected - end))
    return ReconciliationResult(
        passed=difference <= tol,
        expected_ending_balance=expected,
        difference=difference,
        breakdown=ReconciliationBreakdown(
            starting_balance=start,
            total_credits=credit_total,
            total_debits=debit_total,
            ending_balance=end,
            tolerance=tol,
        ),
    )


# ---- Transaction totals -----------------------------------------------------


def computed_totals(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    """Return ``(credits, debits)`` as positive magnitudes."""

    credits = Decimal("0")
    debits = Decimal("0")
    for txn in transactions:
        if txn.direction is Direction.CREDIT:
            credits += txn.amount
        else:
            debits += -txn.amount
    return quantize_money(credits), quantize_money(debits)


def _section_sum(transactions: Iterable[Transaction], section: Section) -> Decimal:
    magnitudes = (abs(t.amount) for t in transactions if t.raw.section is section)
    return quantize_money(sum(magnitudes, Decimal("0")))


def _mismatch(
    field: str, printed: Decimal, computed: Decimal, tolerance: Decimal
) -> TotalsMismatch | None:
    difference = quantize_money(abs(printed - computed))
    if difference <= tolerance:
        return None
    return TotalsMismatch(field=field, printed=printed, computed=computed, difference=difference)


def cross_check_totals(
    statement: Statement, tolerance: Decimal = _DEFAULT_TOLERANCE
) -> list[TotalsMismatch]:
    """Compare printed totals with sums over ``statement.transactions``.

    Balance totals are always compared; section subtotals only when printed.
    """

    credits, debits = computed_totals(statement.transactions)
    checks = [
        _mismatch("total_credits", statement.balances.total_credits, credits, tolerance),
        _mismatch("total_debits", statement.balances.total_debits, debits, tolerance),
    ]
    for field, section in _SECTION_TOTAL_FIELDS:
        printed = getattr(statement.summary, field)
        if printed is None:
            continue
        checks.append(
            _mismatch(field, printed, _section_sum(statement.transactions, section), tolerance)
        )
    return [m for m in checks if m is not None]


# ---- Statement level ----------------------------------------------------------


def reconcile_statement(
    statement: Statement, config: ParserConfig = DEFAULT_CONFIG
) -> ReconciliationResult:
    """Reconcile a statement's printed balances.

    Card balances are amounts owed: payments lower them and purchases raise
    them. The balances are negated before validation and the expected ending
    balance is negated back, so the result reads in the statement's own terms.
    """

    balances = statement.balances
    tolerance = config.reconciliation_tolerance
    if statement.account.account_type is not AccountType.CREDIT:
        return validate(
            balances.starting_balance,
            balances.ending_balance,
            balances.total_credits,
            balances.total_debits,
            tolerance,
        )
    result = validate(
        -balances.starting_balance,
        -balances.ending_balance,
        balances.total_credits,
        balances.total_debits,
        tolerance,
    )
    return ReconciliationResult(
        passed=result.passed,
        expected_ending_balance=-result.expected_ending_balance,
        difference=result.difference,
        breakdown=ReconciliationBreakdown(
            starting_balance=balances.starting_balance,
            total_credits=balances.total_credits,
            total_debits=balances.total_debits,
            ending_balance=balances.ending_balance,
            tolerance=tolerance,
        ),
    )


def severity_for(
    difference: Decimal, passed: bool, config: ParserConfig = DEFAULT_CONFIG
) -> Severity:
    if passed or difference < config.integrity_warning_threshold:
        return Severity.INFO
    if difference <= config.integrity_error_threshold:
        return Severity.WARNING
    return Severity.ERROR


def reconciliation_warning(statement: Statement, result: ReconciliationResult) -> str:
    return (
        f"Balance does not reconcile for {statement.period_label}: expected ending "
        f"{fmt_amount(result.expected_ending_balance)}, printed "
        f"{fmt_amount(statement.balances.ending_balance)} "
        f"(difference {fmt_amount(result.difference)})"
    )


def integrity_entry(statement: Statement, config: ParserConfig = DEFAULT_CONFIG) -> IntegrityEntry:
    result = reconcile_statement(statement, config)
    return IntegrityEntry(
        statement_id=statement.statement_id,
        period_label=statement.period_label,
        passed=result.passed,
        severity=severity_for(result.difference, result.passed, config),
        difference=result.difference,
        expected_ending_balance=result.expected_ending_balance,
        ending_balance=statement.balances.ending_balance,
        mismatches=cross_check_totals(statement, config.reconciliation_tolerance),
    )


def build_integrity_report(
    statements: Iterable[Statement], config: ParserConfig = DEFAULT_CONFIG
) -> IntegrityReport:
    entries = [integrity_entry(s, config) for s in statements]
    passed = sum(1 for e in entries if e.passed)
    for entry in entries:
        if not entry.passed:
            _logger.warning(
                "Integrity %s for %s (%s): difference %s",
                entry.severity.value,
                entry.statement_id,
                entry.period_label,
                fmt_amount(entry.difference),
            )
    return IntegrityReport(entries=entries, passed=passed, failed=len(entries) - passed)


__all__ = [
    "build_integrity_report",
    "computed_totals",
    "cross_check_totals",
    "integrity_entry",
    "reconcile_statement",
    "reconciliation_warning",
    "severity_for",
    "validate",
]
