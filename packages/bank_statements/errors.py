"""Exception taxonomy for statement parsing.

Fatal-per-file conditions derive from :class:`StatementParseError` so the
batch driver can record them and continue with the next file. Everything
short of these becomes a warning string on the statement instead.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import ParseFailure


class StatementParseError(Exception):
    """Base class for errors that abort processing of a single file."""

    def __init__(self, message: str, *, filename: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}: {self.message}"
        return self.message


class PdfUnreadable(StatementParseError):
    """The PDF could not be opened or yielded no text (likely password-protected)."""


class DialectUndetected(StatementParseError):
    """None of the known statement layouts matched the document text."""


class NoTransactionsFound(StatementParseError):
    """A layout was recognized but no transaction lines could be extracted."""


class StrictModeViolation(StatementParseError):
    """Warnings were produced while strict mode was enabled."""

    def __init__(
        self, warnings: Sequence[str], *, filename: str | None = None
    ) -> None:
        self.warnings = tuple(warnings)
        joined = "; ".join(self.warnings)
        super().__init__(
            f"strict mode: {len(self.warnings)} warning(s): {joined}", filename=filename
        )


class BatchFailed(Exception):
    """Every file in a batch failed; carries the per-file failure records."""

    def __init__(self, failures: Sequence[ParseFailure]) -> None:
        self.failures = tuple(failures)
        super().__init__(f"all {len(self.failures)} file(s) failed to parse")


__all__ = [
    "BatchFailed",
    "DialectUndetected",
    "NoTransactionsFound",
    "PdfUnreadable",
    "StatementParseError",
    "StrictModeViolation",
]
