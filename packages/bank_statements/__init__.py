"""Public interface for the ``bank_statements`` package.

This module exposes the package's API functions and public models/types as
the stable import surface. There is no runtime logic here, only re-exports.
"""

from .api import parse_statement_files
from .batch import BatchResult, find_statement_pdfs, process_batch
from .categorize import Categorizer, DefaultCategorizer
from .config import DEFAULT_CONFIG, ParserConfig
from .dialects import Dialect, detect_dialect
from .errors import (
    BatchFailed,
    DialectUndetected,
    NoTransactionsFound,
    PdfUnreadable,
    StatementParseError,
    StrictModeViolation,
)
from .identity import (
    compute_statement_id,
    compute_transaction_id,
    is_valid_statement_id,
    is_valid_transaction_id,
)
from .merge import SourceBatch, merge_statements
from .models import (
    AccountInfo,
    AccountType,
    BalanceInfo,
    Direction,
    MergeResult,
    ParseFailure,
    ReconciliationResult,
    Section,
    Statement,
    Transaction,
)
from .output import OutputDocument, build_output_document
from .pipeline import parse_document, parse_pdf
from .reconcile import build_integrity_report, cross_check_totals, validate

__all__ = [
    # API
    "build_integrity_report",
    "build_output_document",
    "compute_statement_id",
    "compute_transaction_id",
    "cross_check_totals",
    "detect_dialect",
    "find_statement_pdfs",
    "is_valid_statement_id",
    "is_valid_transaction_id",
    "merge_statements",
    "parse_document",
    "parse_pdf",
    "parse_statement_files",
    "process_batch",
    "validate",
    # Config and collaborators
    "DEFAULT_CONFIG",
    "Categorizer",
    "DefaultCategorizer",
    "ParserConfig",
    # Models
    "AccountInfo",
    "AccountType",
    "BalanceInfo",
    "BatchResult",
    "Dialect",
    "Direction",
    "MergeResult",
    "OutputDocument",
    "ParseFailure",
    "ReconciliationResult",
    "Section",
    "SourceBatch",
    "Statement",
    "Transaction",
    # Errors
    "BatchFailed",
    "DialectUndetected",
    "NoTransactionsFound",
    "PdfUnreadable",
    "StatementParseError",
    "StrictModeViolation",
]
