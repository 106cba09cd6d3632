"""Single-document pipeline: decoded PDF -> canonical statements.

Stages run strictly in order for one document:

1. layout reconstruction (fragments -> lines)
2. dialect detection and parsing (lines -> raw transactions + account data)
3. normalization (raw -> :class:`~bank_statements.models.Transaction`)
4. statement assembly: totals, identifiers, reconciliation

Every recoverable anomaly becomes a warning string on the statement. With
``config.strict`` any warning aborts the document with
:class:`~bank_statements.errors.StrictModeViolation`.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path

from .categorize import Categorizer, DefaultCategorizer
from .config import DEFAULT_CONFIG, ParserConfig
from .dialects import Dialect, DialectResult, detect_dialect, full_text, parse_statements
from .errors import NoTransactionsFound, PdfUnreadable, StrictModeViolation
from .identity import compute_statement_id, is_valid_statement_id, is_valid_transaction_id
from .layout import reconstruct_lines
from .logging_setup import get_logger
from .models import (
    AccountType,
    BalanceInfo,
    Section,
    Statement,
    StatementSummary,
    Transaction,
)
from .normalize import NormalizeContext, normalize_transaction
from .pdf import DecodedDocument, Decoder, decode_pdf
from .reconcile import computed_totals, reconcile_statement, reconciliation_warning
from .values import period_label, quantize_money

_logger = get_logger("bank_statements.pipeline")

_PRINTED_SECTION_FIELDS = {
    Section.DEPOSITS: "deposits_total",
    Section.ATM_DEBIT: "atm_debit_total",
    Section.OTHER_SUBTRACTIONS: "other_subtractions_total",
    Section.CHECKS: "checks_total",
    Section.SERVICE_FEES: "service_fees_total",
}


# ---- Transactions ---------------------------------------------------------------


def _normalize_all(
    result: DialectResult,
    context: NormalizeContext,
    config: ParserConfig,
    categorizer: Categorizer,
    warnings: list[str],
) -> list[Transaction]:
    transactions: list[Transaction] = []
    for raw in result.transactions:
        try:
            transactions.append(
                normalize_transaction(raw, context, config=config, categorizer=categorizer)
            )
        except ValueError as exc:
            warnings.append(f"Skipped transaction on page {raw.page}: {exc}")
    return transactions


def _within_period(transactions: Iterable[Transaction], start: str, end: str) -> list[Transaction]:
    return [t for t in transactions if start <= t.date <= end]


def _balances(
    result: DialectResult, credits: Decimal, debits: Decimal, *, use_computed: bool
) -> BalanceInfo:
    printed = result.balance_info
    total_credits = printed.total_credits
    total_debits = printed.total_debits
    if use_computed or total_credits == 0:
        total_credits = credits
    if use_computed or total_debits == 0:
        total_debits = debits
    return BalanceInfo(
        starting_balance=printed.starting_balance,
        ending_balance=printed.ending_balance,
        total_credits=quantize_money(total_credits),
        total_debits=quantize_money(total_debits),
    )


def _summary(
    result: DialectResult, transactions: list[Transaction], credits: Decimal, debits: Decimal
) -> StatementSummary:
    printed = {
        field: quantize_money(result.section_totals[section])
        for section, field in _PRINTED_SECTION_FIELDS.items()
        if section in result.section_totals
    }
    return StatementSummary(
        computed_credits=credits,
        computed_debits=debits,
        transaction_count=len(transactions),
        dropped_lines=result.dropped_lines,
        **printed,
    )


# ---- Statement assembly -----------------------------------------------------------


def _assemble_statement(
    result: DialectResult,
    config: ParserConfig,
    *,
    source_file: str | None,
    categorizer: Categorizer | None,
) -> Statement:
    account = result.account_info
    warnings = list(result.warnings)
    statement_id = compute_statement_id(config.institution, account)
    if not is_valid_statement_id(statement_id):
        warnings.append(f"Malformed statement id: {statement_id!r}")

    context = NormalizeContext(
        statement_id=statement_id,
        statement_year=int(account.statement_period_end[:4]),
        is_credit_card=account.account_type is AccountType.CREDIT,
        period_end=account.statement_period_end,
    )
    transactions = _normalize_all(
        result, context, config, categorizer or DefaultCategorizer(config), warnings
    )
    if result.is_combined:
        kept = _within_period(
            transactions, account.statement_period_start, account.statement_period_end
        )
        if len(kept) != len(transactions):
            _logger.debug(
                "Dropped %d transaction(s) outside %s..%s",
                len(transactions) - len(kept),
                account.statement_period_start,
                account.statement_period_end,
            )
        transactions = kept

    for txn in transactions:
        if not is_valid_transaction_id(txn.transaction_id):
            warnings.append(f"Malformed transaction id: {txn.transaction_id!r}")

    credits, debits = computed_totals(transactions)
    statement = Statement(
        statement_id=statement_id,
        institution=config.institution,
        account=account,
        balances=_balances(
            result,
            credits,
            debits,
            use_computed=result.is_combined or not result.totals_printed,
        ),
        summary=_summary(result, transactions, credits, debits),
        transactions=transactions,
        period_label=period_label(account.statement_period_start, account.statement_period_end),
        source_file=source_file,
        is_combined_source=result.is_combined,
        page_start=result.page_start,
        page_end=result.page_end,
        warnings=warnings,
    )

    reconciliation = reconcile_statement(statement, config)
    if not reconciliation.passed:
        warnings.append(reconciliation_warning(statement, reconciliation))
        statement = statement.model_copy(update={"warnings": warnings})
    return statement


def _report_warnings(statement: Statement, config: ParserConfig) -> Statement:
    for warning in statement.warnings:
        _logger.warning("%s: %s", statement.statement_id, warning)
    if config.strict and statement.warnings:
        raise StrictModeViolation(statement.warnings, filename=statement.source_file)
    return statement


def build_statement(
    result: DialectResult,
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    source_file: str | None = None,
    categorizer: Categorizer | None = None,
) -> Statement:
    """Turn one dialect result into a canonical statement.

    Raises
    ------
    StrictModeViolation
        When ``config.strict`` is set and any warning was produced.
    """

    statement = _assemble_statement(
        result, config, source_file=source_file, categorizer=categorizer
    )
    return _report_warnings(statement, config)


def parse_document(
    document: DecodedDocument,
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    filename: str | None = None,
    categorizer: Categorizer | None = None,
) -> list[Statement]:
    """Parse every statement in a decoded document.

    Raises
    ------
    PdfUnreadable
        When the document has pages but no text at all.
    DialectUndetected
        When no known layout matches.
    NoTransactionsFound
        When no statement yields a transaction.
    StrictModeViolation
        In strict mode, when any statement carries a warning.
    """

    if document.page_count > 0 and document.fragment_count == 0:
        raise PdfUnreadable(
            "PDF appears to be password-protected or contains no extractable text",
            filename=filename,
        )

    lines = reconstruct_lines(
        (page.fragments for page in document.pages),
        config,
        merge_wraps=config.merge_wrapped_rows,
    )
    dialect = detect_dialect(full_text(lines), filename=filename)
    _logger.info("%s: detected %s layout", filename or "<document>", dialect.value)

    statements = []
    for result in parse_statements(dialect, lines, config):
        statement = _assemble_statement(
            result, config, source_file=filename, categorizer=categorizer
        )
        # An empty statement is discarded before its warnings can fail the document.
        if not statement.transactions:
            _logger.info("%s: skipping %s with no transactions", filename, statement.statement_id)
            continue
        statements.append(_report_warnings(statement, config))

    if not statements:
        raise NoTransactionsFound(
            f"no transactions found in {dialect.value} statement", filename=filename
        )
    return statements


def parse_pdf(
    path: Path,
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    decoder: Decoder | None = None,
    categorizer: Categorizer | None = None,
) -> list[Statement]:
    path = Path(path)
    decode = decoder if decoder is not None else decode_pdf
    return parse_document(decode(path), config, filename=path.name, categorizer=categorizer)


def detect_pdf(
    path: Path, config: ParserConfig = DEFAULT_CONFIG, *, decoder: Decoder | None = None
) -> Dialect:
    path = Path(path)
    # No wrap merging: detection only needs the text.
    document = (decoder if decoder is not None else decode_pdf)(path)
    lines = reconstruct_lines((page.fragments for page in document.pages), config)
    return detect_dialect(full_text(lines), filename=path.name)


__all__ = ["build_statement", "detect_pdf", "parse_document", "parse_pdf"]
