"""Merge statements parsed from several source files.

Two statements are the same logical statement when their ``statement_id``
matches. Among duplicates the winner is chosen, in order, by:

1. a single-statement source over a combined multi-statement source
2. more transactions
3. the lexicographically smaller source filename
4. the smaller serialized form (only reached for byte-identical inputs)

The losing candidates are discarded whole; fields are never merged across
sources. Transactions inside each kept statement are then deduplicated by
``transaction_id`` and ordered by ``(date, transaction_id)``, so the result
does not depend on the order of the input batches.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .dialects.common import DEFAULT_ACCOUNT_MASK
from .logging_setup import get_logger
from .models import MergeResult, Statement, Transaction
from .reconcile import computed_totals

_logger = get_logger("bank_statements.merge")

_COMBINED_FILENAME_MARKERS = (
    "combined",
    "merged",
    "all_statements",
    "all-statements",
    "allstatements",
)


@dataclass(frozen=True, slots=True)
class SourceBatch:
    """Statements parsed from one source file."""

    source_file: str
    statements: Sequence[Statement]
    is_combined: bool = False


def is_combined_pdf_filename(filename: str) -> bool:
    lower = filename.lower()
    return any(marker in lower for marker in _COMBINED_FILENAME_MARKERS)


def completeness_score(statement: Statement) -> int:
    """Rough extraction quality, logged when duplicates are resolved."""

    score = len(statement.transactions) * 10
    if statement.balances.total_credits > 0:
        score += 5
    if statement.balances.total_debits > 0:
        score += 5
    if statement.balances.starting_balance != 0 or statement.balances.ending_balance != 0:
        score += 3
    score -= len(statement.warnings) * 2
    if statement.account.account_number_masked != DEFAULT_ACCOUNT_MASK:
        score += 3
    return score


@dataclass(frozen=True, slots=True)
class _Candidate:
    statement: Statement
    source_file: str
    is_combined: bool

    def sort_key(self) -> tuple[bool, int, str, str]:
        return (
            self.is_combined,
            -len(self.statement.transactions),
            self.source_file,
            self.statement.model_dump_json(),
        )


def _dedupe_transactions(transactions: Iterable[Transaction]) -> tuple[list[Transaction], int]:
    ordered = sorted(transactions, key=lambda t: (t.date, t.transaction_id))
    kept: list[Transaction] = []
    seen: set[str] = set()
    for txn in ordered:
        if txn.transaction_id in seen:
            continue
        seen.add(txn.transaction_id)
        kept.append(txn)
    return kept, len(ordered) - len(kept)


def recalculate_summary(statement: Statement, transactions: list[Transaction]) -> Statement:
    """Return ``statement`` holding ``transactions`` with computed totals refreshed.

    Printed balances and printed section totals are left as parsed.
    """

    credits, debits = computed_totals(transactions)
    summary = statement.summary.model_copy(
        update={
            "computed_credits": credits,
            "computed_debits": debits,
            "transaction_count": len(transactions),
        }
    )
    return statement.model_copy(update={"transactions": transactions, "summary": summary})


def merge_statements(batches: Iterable[SourceBatch]) -> MergeResult:
    by_id: dict[str, list[_Candidate]] = {}
    for batch in batches:
        for statement in batch.statements:
            candidate = _Candidate(
                statement=statement,
                source_file=batch.source_file,
                is_combined=batch.is_combined or statement.is_combined_source,
            )
            by_id.setdefault(statement.statement_id, []).append(candidate)

    winners: list[Statement] = []
    duplicate_statements = 0
    for statement_id, candidates in by_id.items():
        ranked = sorted(candidates, key=_Candidate.sort_key)
        winner = ranked[0]
        if len(ranked) > 1:
            duplicate_statements += len(ranked) - 1
            _logger.info(
                "Kept %s from %s (score %d); discarded %d duplicate(s) from %s",
                statement_id,
                winner.source_file,
                completeness_score(winner.statement),
                len(ranked) - 1,
                ", ".join(c.source_file for c in ranked[1:]),
            )
        winners.append(winner.statement)

    merged: list[Statement] = []
    duplicate_transactions = 0
    for statement in winners:
        transactions, removed = _dedupe_transactions(statement.transactions)
        duplicate_transactions += removed
        merged.append(recalculate_summary(statement, transactions))

    merged.sort(key=lambda s: (s.account.statement_period_start, s.statement_id))
    total = sum(len(s.transactions) for s in merged)
    if duplicate_transactions:
        _logger.info("Removed %d duplicate transaction(s)", duplicate_transactions)
    return MergeResult(
        statements=merged,
        total_transactions=total,
        duplicate_statements_removed=duplicate_statements,
        duplicate_transactions_removed=duplicate_transactions,
    )


def empty_merge_result() -> MergeResult:
    return MergeResult(
        statements=[],
        total_transactions=0,
        duplicate_statements_removed=0,
        duplicate_transactions_removed=0,
    )


__all__ = [
    "SourceBatch",
    "completeness_score",
    "empty_merge_result",
    "is_combined_pdf_filename",
    "merge_statements",
    "recalculate_summary",
]
