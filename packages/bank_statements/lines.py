"""Line classification, section tracking, and continuation merging.

A document's reconstructed lines are walked in page order. Each line is one of:

- a *skip* line (page footer, column header, timestamp): ignored;
- a *total* line (``Total deposits and other additions ...``): closes the
  current section and may carry a printed subtotal;
- a *transaction start* (date-prefixed): flushes any pending transaction and
  seeds a new one;
- an *amount-only* line completing a seed that was printed without an amount;
- a *section header*: switches the section inherited by later transactions;
- a *continuation* (city/state, confirmation number, short fragment): appended
  to the pending transaction;
- anything else: dropped and counted.

The pending transaction is held by :class:`TransactionAccumulator`, an explicit
two-state machine (:class:`AccumulatorState`) that can be driven without any
I/O. What counts as a start, header, continuation or skip line is supplied per
statement layout through a :class:`LineGrammar`.

Known limitation: the short-line continuation heuristic used by the online
export layout can absorb a genuine transaction whose description is short and
whose date/amount failed to parse. The threshold is kept as is so existing
outputs stay stable.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from .logging_setup import get_logger
from .models import RawLine, RawTransaction, Section

_logger = get_logger("bank_statements.lines")

AMOUNT_ONLY_RE = re.compile(r"^-?\$?[0-9,]+\.\d{2}$")
LEADING_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}(?:/\d{2,4})?\b")

# ---- Shared recognizers ---------------------------------------------------------

_COMMON_SKIP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^Page\s+\d+\s+of\s+\d+$", re.I),
    re.compile(r"^\d+\s*/\s*\d+$"),  # "1/5" page counters
    re.compile(r"^https?://", re.I),
    re.compile(r"^\d{1,2}/\d{1,2}/\d{2},\s+\d{1,2}:\d{2}\s*[AP]M", re.I),  # print timestamps
    re.compile(r"^continued\s+on\s+(?:the\s+)?next\s+page", re.I),
    re.compile(r"^Date\s+(?:Transaction\s+)?Description\b", re.I),
)

_STRICT_CONTINUATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^[A-Z]{2,}(?:\s+[A-Z]{2})?$"),  # "GLENDALE CA" or "CA"
    re.compile(r"^[A-Z][A-Za-z.'\s]+\s+[A-Z]{2}$"),  # "San Francisco CA"
    re.compile(r"^Conf#\s*\S+", re.I),
    re.compile(r"^Confirmation#\s*\S+", re.I),
    re.compile(r"^ID:\s*\S+", re.I),
    re.compile(r"^INDN:", re.I),
    re.compile(r"^CO\s+ID:", re.I),
)

_DATE_ANYWHERE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}")
_DOLLAR_AMOUNT_RE = re.compile(r"\$[\d,]+\.\d{2}")
_HEADER_WORD_RE = re.compile(r"^(?:Posting|Transactions|View|Balance|Showing)", re.I)


def is_common_skip(text: str) -> bool:
    return any(p.search(text) for p in _COMMON_SKIP_PATTERNS)


def is_strict_continuation(text: str) -> bool:
    """Location and reference fragments that only ever extend a description."""

    return any(p.search(text) for p in _STRICT_CONTINUATION_PATTERNS)


def is_short_continuation(text: str, max_length: int = 50) -> bool:
    """Heuristic: short text without a date or dollar amount, not a header word."""

    if is_strict_continuation(text):
        return True
    if _DATE_ANYWHERE_RE.match(text) or _DOLLAR_AMOUNT_RE.search(text):
        return False
    return len(text) < max_length and not _HEADER_WORD_RE.match(text)


# ---- Grammar ------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StartMatch:
    """Fields recognized on a transaction's first line.

    ``amount`` is ``None`` for a dated line whose amount is printed on the
    following line. ``section`` overrides the tracked section when the layout
    carries an explicit type token.
    """

    date: str
    description: str
    amount: str | None
    posted_date: str | None = None
    type_hint: str | None = None
    section: Section | None = None


@dataclass(frozen=True, slots=True)
class TotalMatch:
    section: Section | None
    amount: str | None


def _no_total(_text: str) -> TotalMatch | None:
    return None


def _never(_text: str) -> bool:
    return False


def _strip(text: str) -> str:
    return text.strip()


@dataclass(frozen=True, slots=True)
class LineGrammar:
    """Recognizers describing one statement layout's lines.

    ``is_table_end`` marks a line after which nothing is a transaction until
    the next section header (e.g. a daily balance table).
    """

    name: str
    match_start: Callable[[str, Section], StartMatch | None]
    match_section: Callable[[str], Section | None]
    is_continuation: Callable[[str], bool]
    is_skip: Callable[[str], bool] = is_common_skip
    match_total: Callable[[str], TotalMatch | None] = _no_total
    is_table_end: Callable[[str], bool] = _never
    preprocess: Callable[[str], str] = _strip
    amount_only_re: re.Pattern[str] = AMOUNT_ONLY_RE


# ---- Section tracking -------------------------------------------------------------


@dataclass(slots=True)
class SectionTracker:
    """Current section plus the first printed subtotal seen for each section."""

    current: Section = Section.UNKNOWN
    totals: dict[Section, str] = field(default_factory=dict)
    suspended: bool = False

    def enter(self, section: Section) -> None:
        if section is not self.current:
            _logger.debug("Section %s -> %s", self.current.value, section.value)
        self.current = section
        self.suspended = False

    def suspend(self) -> None:
        self.current = Section.UNKNOWN
        self.suspended = True

    def close(self, total: TotalMatch) -> None:
        section = total.section or self.current
        if total.amount is not None and section is not Section.UNKNOWN:
            self.totals.setdefault(section, total.amount)
        self.current = Section.UNKNOWN


# ---- Pending transaction ------------------------------------------------------------


class AccumulatorState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


class TransactionAccumulator:
    """Single-slot buffer for the transaction currently being assembled.

    ``IDLE`` holds nothing. ``start`` moves to ``ACCUMULATING`` and returns the
    previously pending transaction, if any, as completed. ``flush`` returns the
    pending transaction and goes back to ``IDLE``. A seed still waiting for its
    amount is not a transaction; ``flush`` drops it and records its text in
    :attr:`incomplete`.
    """

    def __init__(self) -> None:
        self.state = AccumulatorState.IDLE
        self.incomplete: list[str] = []
        self._seed: StartMatch | None = None
        self._page = 0
        self._line_index = 0
        self._section = Section.UNKNOWN
        self._amount: str | None = None
        self._description: list[str] = []
        self._original: list[str] = []

    @property
    def awaiting_amount(self) -> bool:
        return self.state is AccumulatorState.ACCUMULATING and self._amount is None

    def start(
        self, match: StartMatch, *, page: int, line_index: int, section: Section, original: str
    ) -> RawTransaction | None:
        completed = self.flush()
        self.state = AccumulatorState.ACCUMULATING
        self._seed = match
        self._page = page
        self._line_index = line_index
        self._section = match.section or section
        self._amount = match.amount
        self._description = [match.description] if match.description else []
        self._original = [original]
        return completed

    def append(self, text: str) -> None:
        if self.state is not AccumulatorState.ACCUMULATING:
            raise RuntimeError("cannot append a continuation with no pending transaction")
        self._description.append(text)
        self._original.append(text)

    def supply_amount(self, amount: str, original: str) -> None:
        if not self.awaiting_amount:
            raise RuntimeError("pending transaction is not waiting for an amount")
        self._amount = amount
        self._original.append(original)

    def flush(self) -> RawTransaction | None:
        if self.state is AccumulatorState.IDLE or self._seed is None:
            return None
        seed, amount = self._seed, self._amount
        self.state = AccumulatorState.IDLE
        self._seed = None
        if amount is None:
            self.incomplete.append(" | ".join(self._original))
            return None
        return RawTransaction(
            date=seed.date,
            description=" ".join(self._description),
            amount=amount,
            page=self._page,
            line_index=self._line_index,
            section=self._section,
            original_line=" | ".join(self._original),
            posted_date=seed.posted_date,
            type_hint=seed.type_hint,
        )


# ---- Driver -------------------------------------------------------------------------


@dataclass(slots=True)
class ClassifiedLines:
    transactions: list[RawTransaction]
    section_totals: dict[Section, str]
    warnings: list[str]
    dropped_lines: int


def classify_lines(
    lines: Iterable[RawLine],
    grammar: LineGrammar,
    *,
    initial_section: Section = Section.UNKNOWN,
) -> ClassifiedLines:
    """Walk ``lines`` once and return the raw transactions they describe."""

    tracker = SectionTracker(current=initial_section)
    acc = TransactionAccumulator()
    transactions: list[RawTransaction] = []
    warnings: list[str] = []
    dropped = 0

    def emit(txn: RawTransaction | None) -> None:
        if txn is not None:
            transactions.append(txn)

    for line in lines:
        original = line.text.strip()
        text = grammar.preprocess(line.text)
        if not text or grammar.is_skip(text):
            continue

        total = grammar.match_total(text)
        if total is not None:
            emit(acc.flush())
            tracker.close(total)
            continue

        if grammar.is_table_end(text):
            emit(acc.flush())
            tracker.suspend()
            continue

        if tracker.suspended:
            section = grammar.match_section(text)
            if section is not None:
                tracker.enter(section)
            else:
                dropped += 1
            continue

        start = grammar.match_start(text, tracker.current)
        if start is not None:
            emit(
                acc.start(
                    start,
                    page=line.page,
                    line_index=line.line_index,
                    section=tracker.current,
                    original=original,
                )
            )
            continue

        if acc.awaiting_amount and grammar.amount_only_re.match(text):
            acc.supply_amount(text, original)
            continue

        section = grammar.match_section(text)
        if section is not None:
            tracker.enter(section)
            continue

        if acc.state is AccumulatorState.ACCUMULATING and grammar.is_continuation(text):
            acc.append(text)
            continue

        dropped += 1
        if LEADING_DATE_RE.match(text):
            warnings.append(f"Unparsed transaction line on page {line.page}: {original!r}")
        else:
            _logger.debug("Dropped line %d on page %d: %r", line.line_index, line.page, original)

    emit(acc.flush())
    for text in acc.incomplete:
        warnings.append(f"Transaction line without an amount: {text!r}")

    _logger.debug(
        "%s grammar: %d transaction(s), %d dropped line(s)",
        grammar.name,
        len(transactions),
        dropped,
    )
    return ClassifiedLines(
        transactions=transactions,
        section_totals=dict(tracker.totals),
        warnings=warnings,
        dropped_lines=dropped,
    )


__all__ = [
    "AMOUNT_ONLY_RE",
    "LEADING_DATE_RE",
    "AccumulatorState",
    "ClassifiedLines",
    "LineGrammar",
    "SectionTracker",
    "StartMatch",
    "TotalMatch",
    "TransactionAccumulator",
    "classify_lines",
    "is_common_skip",
    "is_short_continuation",
    "is_strict_continuation",
]
