"""Layout reconstruction: positioned fragments to rows and text lines.

Fragments arrive with absolute coordinates (bottom-left origin, so larger Y is
higher on the page). Rows are formed top to bottom by comparing each fragment
against the row's *first* fragment Y, not a running average, so a slowly
drifting baseline cannot chain unrelated lines together.

Within a row the horizontal gap between neighbours picks the separator:

- ``gap <= space_gap``: nothing (the glyph runs are glued, as printed)
- ``space_gap < gap <= column_gap``: a single space
- ``gap > column_gap``: :data:`COLUMN_BREAK`, a tab marking a table column

Only spatial gaps are used; there is no OCR or font inference.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .config import DEFAULT_CONFIG, ParserConfig
from .lines import is_common_skip
from .logging_setup import get_logger
from .models import PositionedFragment, RawLine, Row

_logger = get_logger("bank_statements.layout")

COLUMN_BREAK = "\t"

_LEADING_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}(?:/\d{2,4})?")
_TRAILING_AMOUNT_RE = re.compile(r"-?\$?[\d,]+\.\d{2}$")
_TOTAL_LINE_RE = re.compile(r"^Total\b", re.I)


# ---- Rows ---------------------------------------------------------------------


def group_rows(
    fragments: Sequence[PositionedFragment], config: ParserConfig = DEFAULT_CONFIG
) -> list[Row]:
    """Group one page's fragments into rows ordered top to bottom.

    Sorting is stable, so fragments with identical coordinates keep their input
    order. An empty page yields an empty list.
    """

    if not fragments:
        return []
    pages = {f.page for f in fragments}
    if len(pages) > 1:
        raise ValueError(f"group_rows expects fragments from one page, got pages {sorted(pages)}")

    ordered = sorted(fragments, key=lambda f: (-f.y, f.x))
    buckets: list[list[PositionedFragment]] = []
    for frag in ordered:
        if buckets and abs(frag.y - buckets[-1][0].y) <= config.row_tolerance:
            buckets[-1].append(frag)
        else:
            buckets.append([frag])

    rows: list[Row] = []
    for bucket in buckets:
        cells = tuple(sorted(bucket, key=lambda f: f.x))
        text = join_row_text(cells, config)
        if not text:
            continue
        rows.append(Row(page=cells[0].page, y=bucket[0].y, fragments=cells, text=text))
    return rows


def join_row_text(
    cells: Sequence[PositionedFragment], config: ParserConfig = DEFAULT_CONFIG
) -> str:
    out: list[str] = []
    prev_end: float | None = None
    for cell in cells:
        if not cell.text:
            continue
        if prev_end is not None:
            gap = cell.x - prev_end
            if gap > config.column_gap:
                out.append(COLUMN_BREAK)
            elif gap > config.space_gap:
                out.append(" ")
        out.append(cell.text)
        prev_end = cell.end_x
    return "".join(out).rstrip(" \t")


# ---- Columns ------------------------------------------------------------------


def infer_columns(
    rows: Iterable[Row], config: ParserConfig = DEFAULT_CONFIG, *, min_support: int = 2
) -> list[float]:
    """Cluster the left edges of every fragment into column anchors.

    Each anchor is the mean X of a cluster whose members lie within
    ``column_x_tolerance`` of the cluster's first member. Clusters seen fewer
    than ``min_support`` times are discarded as noise.
    """

    xs = sorted(f.x for row in rows for f in row.fragments)
    clusters: list[list[float]] = []
    for x in xs:
        if clusters and x - clusters[-1][0] <= config.column_x_tolerance:
            clusters[-1].append(x)
        else:
            clusters.append([x])
    return [sum(c) / len(c) for c in clusters if len(c) >= min_support]


def _column_of(x: float, anchors: Sequence[float], tolerance: float) -> int | None:
    best: int | None = None
    best_dist = tolerance
    for idx, anchor in enumerate(anchors):
        dist = abs(x - anchor)
        if dist <= best_dist:
            best, best_dist = idx, dist
    return best


def merge_wrapped_rows(rows: Sequence[Row], config: ParserConfig = DEFAULT_CONFIG) -> list[Row]:
    """Fold description-only rows into the dated row above them.

    A row is a wrap when it has no leading date and no trailing amount, its
    first fragment sits in a column right of the leftmost (date) column, and
    the previous kept row starts with a date. Page footers, page counters and
    print timestamps are never wraps, nor are ``Total`` lines, whichever
    column they sit in.
    """

    anchors = infer_columns(rows, config)
    merged: list[Row] = []
    for row in rows:
        prev = merged[-1] if merged else None
        if prev is not None and anchors and _is_wrap(row, prev, anchors, config):
            merged[-1] = Row(
                page=prev.page,
                y=prev.y,
                fragments=prev.fragments + row.fragments,
                text=_splice_wrap(prev.text, row.text.strip()),
            )
            continue
        merged.append(row)
    if len(merged) != len(rows):
        _logger.debug("Folded %d wrapped row(s)", len(rows) - len(merged))
    return merged


def _splice_wrap(prev_text: str, wrap: str) -> str:
    # The wrapped text belongs to the description, which precedes the amount column.
    m = _TRAILING_AMOUNT_RE.search(prev_text)
    if m is None:
        return f"{prev_text} {wrap}"
    head = prev_text[: m.start()].rstrip(" \t")
    return f"{head} {wrap}{COLUMN_BREAK}{m.group(0)}"


def _is_wrap(row: Row, prev: Row, anchors: Sequence[float], config: ParserConfig) -> bool:
    text = row.text.strip()
    if not text or _LEADING_DATE_RE.match(text) or _TRAILING_AMOUNT_RE.search(text):
        return False
    flat = " ".join(text.split())
    if is_common_skip(flat) or _TOTAL_LINE_RE.match(flat):
        return False
    if not _LEADING_DATE_RE.match(prev.text) or row.page != prev.page:
        return False
    col = _column_of(row.fragments[0].x, anchors, config.column_x_tolerance)
    return col is not None and col > 0


# ---- Lines ----------------------------------------------------------------------


def reconstruct_lines(
    pages: Iterable[Sequence[PositionedFragment]],
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    merge_wraps: bool = False,
) -> list[RawLine]:
    """Rebuild the text lines of a whole document, page by page in input order.

    ``line_index`` counts lines across the document. Pages are never
    interleaved.
    """

    lines: list[RawLine] = []
    for page_fragments in pages:
        rows = group_rows(page_fragments, config)
        if merge_wraps:
            rows = merge_wrapped_rows(rows, config)
        for row in rows:
            lines.append(RawLine(text=row.text, page=row.page, line_index=len(lines)))
    _logger.debug("Reconstructed %d line(s)", len(lines))
    return lines


__all__ = [
    "COLUMN_BREAK",
    "group_rows",
    "infer_columns",
    "join_row_text",
    "merge_wrapped_rows",
    "reconstruct_lines",
]
