"""Batch driver: many PDFs in, one merged result out.

Files are processed one at a time in the order given. A failure in one file
is recorded as a :class:`~bank_statements.models.ParseFailure` and the batch
moves on; only a batch in which every file fails raises.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from .categorize import Categorizer
from .config import DEFAULT_CONFIG, ParserConfig
from .errors import BatchFailed, StatementParseError
from .logging_setup import get_logger
from .merge import SourceBatch, empty_merge_result, is_combined_pdf_filename, merge_statements
from .models import BatchSummary, MergeResult, ParseFailure, Statement
from .pdf import Decoder
from .pipeline import parse_pdf

_logger = get_logger("bank_statements.batch")

ProgressCallback = Callable[[int, int, str], None]
ErrorCallback = Callable[[ParseFailure], None]


def find_statement_pdfs(paths: Iterable[Path | str]) -> list[Path]:
    """Expand files and directories into the PDFs to process.

    Directories contribute their top-level ``*.pdf`` files in name order.
    Duplicates are dropped, keeping the first occurrence.

    Raises
    ------
    FileNotFoundError
        When a path does not exist.
    ValueError
        When a file argument is not a PDF.
    """

    found: list[Path] = []
    seen: set[Path] = set()

    def add(path: Path) -> None:
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            found.append(path)

    for raw in paths:
        path = Path(raw)
        if not path.exists():
            raise FileNotFoundError(f"No such file or directory: {path}")
        if path.is_dir():
            for child in sorted(path.iterdir(), key=lambda p: p.name):
                if child.is_file() and child.suffix.lower() == ".pdf":
                    add(child)
        elif path.suffix.lower() == ".pdf":
            add(path)
        else:
            raise ValueError(f"Not a PDF file: {path}")
    return found


def _failure(path: Path, exc: BaseException) -> ParseFailure:
    message = exc.message if isinstance(exc, StatementParseError) else str(exc)
    return ParseFailure(
        filename=path.name,
        file_path=str(path),
        error=message,
        error_type=type(exc).__name__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@dataclass(slots=True)
class BatchResult:
    merge: MergeResult
    failures: list[ParseFailure]
    summary: BatchSummary
    sources: list[SourceBatch] = field(default_factory=list)

    @property
    def statements(self) -> list[Statement]:
        return self.merge.statements


def _unmerged(sources: Sequence[SourceBatch]) -> MergeResult:
    statements = [s for batch in sources for s in batch.statements]
    return MergeResult(
        statements=statements,
        total_transactions=sum(len(s.transactions) for s in statements),
        duplicate_statements_removed=0,
        duplicate_transactions_removed=0,
    )


def process_batch(
    files: Sequence[Path],
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    decoder: Decoder | None = None,
    categorizer: Categorizer | None = None,
    on_progress: ProgressCallback | None = None,
    on_error: ErrorCallback | None = None,
    merge: bool = True,
) -> BatchResult:
    """Parse ``files`` sequentially and merge the statements.

    Parameters
    ----------
    files:
        PDFs to parse, usually from :func:`find_statement_pdfs`.
    decoder:
        PDF decoder; ``None`` selects the pdfplumber adapter.
    on_progress:
        Called as ``(current, total, filename)`` before each file.
    on_error:
        Called with each failure record as it happens.
    merge:
        When false, statements are returned as parsed without deduplication.

    Raises
    ------
    BatchFailed
        When ``files`` is not empty and every file failed.
    """

    sources: list[SourceBatch] = []
    failures: list[ParseFailure] = []
    total = len(files)

    def record(path: Path, exc: Exception) -> None:
        failure = _failure(path, exc)
        failures.append(failure)
        if on_error is not None:
            on_error(failure)

    for index, path in enumerate(files, start=1):
        path = Path(path)
        if on_progress is not None:
            on_progress(index, total, path.name)
        _logger.info("[%d/%d] %s", index, total, path.name)
        try:
            statements = parse_pdf(path, config, decoder=decoder, categorizer=categorizer)
        except StatementParseError as exc:
            _logger.warning("%s failed: %s", path.name, exc.message)
            record(path, exc)
            continue
        except Exception as exc:  # noqa: BLE001 - one bad file must not stop the batch
            _logger.exception("%s failed unexpectedly", path.name)
            record(path, exc)
            continue
        sources.append(
            SourceBatch(
                source_file=path.name,
                statements=statements,
                is_combined=is_combined_pdf_filename(path.name),
            )
        )

    if total and not sources:
        raise BatchFailed(failures)

    if not sources:
        merged = empty_merge_result()
    elif merge:
        merged = merge_statements(sources)
    else:
        merged = _unmerged(sources)

    summary = BatchSummary(
        total_files=total,
        succeeded=len(sources),
        failed=len(failures),
        statements_before_merge=sum(len(b.statements) for b in sources),
        duplicate_statements_removed=merged.duplicate_statements_removed,
        duplicate_transactions_removed=merged.duplicate_transactions_removed,
        total_transactions=merged.total_transactions,
    )
    _logger.info(
        "Batch done: %d/%d file(s) parsed, %d statement(s), %d transaction(s)",
        summary.succeeded,
        summary.total_files,
        len(merged.statements),
        summary.total_transactions,
    )
    return BatchResult(merge=merged, failures=failures, summary=summary, sources=sources)


__all__ = ["BatchResult", "find_statement_pdfs", "process_batch"]
