"""Public API and orchestration for the ``bank_statements`` package.

Most callers need a single function: :func:`parse_statement_files` takes
files and/or directories and returns the complete output document. The
stage functions (:func:`parse_pdf`, :func:`merge_statements`,
:func:`validate`) are re-exported for callers that assemble their own flow.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .batch import ErrorCallback, ProgressCallback, find_statement_pdfs, process_batch
from .categorize import Categorizer
from .config import ParserConfig
from .merge import merge_statements
from .output import OutputDocument, build_output_document
from .pdf import Decoder
from .pipeline import parse_pdf
from .reconcile import validate


def parse_statement_files(
    paths: Iterable[Path | str],
    *,
    config: ParserConfig | None = None,
    merge: bool = True,
    decoder: Decoder | None = None,
    categorizer: Categorizer | None = None,
    on_progress: ProgressCallback | None = None,
    on_error: ErrorCallback | None = None,
) -> OutputDocument:
    """Parse every statement PDF under ``paths`` into one output document.

    ``config`` defaults to :meth:`ParserConfig.from_env`.

    Raises
    ------
    FileNotFoundError
        When a path does not exist.
    ValueError
        When a file argument is not a PDF, or no PDFs were found.
    BatchFailed
        When every file failed to parse.
    """

    config = config or ParserConfig.from_env()
    files = find_statement_pdfs(paths)
    if not files:
        raise ValueError("no PDF files found")
    result = process_batch(
        files,
        config,
        decoder=decoder,
        categorizer=categorizer,
        on_progress=on_progress,
        on_error=on_error,
        merge=merge,
    )
    return build_output_document(result.statements, result.failures, result.summary, config)


__all__ = ["merge_statements", "parse_pdf", "parse_statement_files", "validate"]
