"""Splitting a combined PDF into one line range per statement.

Bank exports that bundle several monthly statements repeat a
``Beginning balance on <Month D, YYYY>`` line per statement. Each distinct
marker starts a segment; the segment is pulled back to the period header
(``March 11, 2025 to April 9, 2025``) printed shortly before the marker so the
statement's own header lines stay with it.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..config import DEFAULT_CONFIG, ParserConfig
from ..logging_setup import get_logger
from ..models import RawLine
from ..values import add_months, parse_month_day_year, shift_days

_logger = get_logger("bank_statements.dialects.segments")

BOUNDARY_RE = re.compile(r"Beginning\s+balance\s+on\s+([A-Za-z]+\s+\d{1,2},?\s+\d{4})", re.I)
_PERIOD_HEADER_RE = re.compile(
    r"(?:for\s+)?([A-Za-z]+\s+\d{1,2},?\s+\d{4})\s+to\s+([A-Za-z]+\s+\d{1,2},?\s+\d{4})", re.I
)


@dataclass(frozen=True, slots=True)
class StatementSegment:
    lines: tuple[RawLine, ...]
    period_start: str
    period_end: str

    @property
    def page_start(self) -> int:
        return self.lines[0].page

    @property
    def page_end(self) -> int:
        return self.lines[-1].page


@dataclass(frozen=True, slots=True)
class _Boundary:
    index: int
    start: int
    period: tuple[str, str] | None
    marker_date: str


def _find_boundaries(lines: Sequence[RawLine], lookback: int) -> list[_Boundary]:
    found: list[_Boundary] = []
    seen: set[str] = set()
    for idx, line in enumerate(lines):
        m = BOUNDARY_RE.search(line.text)
        if m is None:
            continue
        try:
            marker_date = parse_month_day_year(m.group(1))
        except ValueError:
            continue
        if marker_date in seen:
            continue
        seen.add(marker_date)

        floor = found[-1].index + 1 if found else 0
        start, period = idx, None
        budget = lookback
        j = idx
        while j >= floor and budget >= 0:
            header = _PERIOD_HEADER_RE.search(lines[j].text)
            if header is not None:
                try:
                    period = (
                        parse_month_day_year(header.group(1)),
                        parse_month_day_year(header.group(2)),
                    )
                except ValueError:
                    period = None
                else:
                    start = j
                    break
            budget -= len(lines[j].text) + 1
            j -= 1
        found.append(_Boundary(index=idx, start=start, period=period, marker_date=marker_date))
    return found


def split_statement_segments(
    lines: Sequence[RawLine], config: ParserConfig = DEFAULT_CONFIG
) -> list[StatementSegment]:
    """Return one segment per statement when ``lines`` hold more than one.

    A document with fewer than two distinct markers is not combined and yields
    an empty list. Lines before the first statement's header are kept with the
    first segment since they usually carry the account number.
    """

    boundaries = _find_boundaries(lines, config.combined_lookback_chars)
    if len(boundaries) < 2:
        return []

    segments: list[StatementSegment] = []
    for pos, boundary in enumerate(boundaries):
        begin = 0 if pos == 0 else boundary.start
        following = boundaries[pos + 1] if pos + 1 < len(boundaries) else None
        end = following.start if following is not None else len(lines)
        if boundary.period is not None:
            start_date, end_date = boundary.period
        else:
            start_date = boundary.marker_date
            if following is not None:
                end_date = shift_days(following.marker_date, -1)
            else:
                end_date = shift_days(add_months(start_date, 1), -1)
        segments.append(
            StatementSegment(
                lines=tuple(lines[begin:end]),
                period_start=start_date,
                period_end=end_date,
            )
        )

    _logger.info("Combined document split into %d statement(s)", len(segments))
    return segments


__all__ = ["BOUNDARY_RE", "StatementSegment", "split_statement_segments"]
