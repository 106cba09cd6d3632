"""PDF decode adapter built on ``pdfplumber``.

The rest of the package only sees :class:`DecodedDocument`: pages of
positioned text fragments with a bottom-left origin. Anything that produces
the same shape (a test fixture, another PDF library) can stand in for
:func:`decode_pdf`.
"""

from __future__ import annotations

import io
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pdfplumber

from .errors import PdfUnreadable
from .logging_setup import get_logger
from .models import PositionedFragment

_logger = get_logger("bank_statements.pdf")

# pdfplumber word grouping; small x tolerance keeps adjacent table cells apart.
_WORD_OPTIONS: dict[str, Any] = {
    "x_tolerance": 1.5,
    "y_tolerance": 3,
    "keep_blank_chars": False,
    "use_text_flow": False,
}


@dataclass(frozen=True, slots=True)
class DecodedPage:
    page_number: int
    fragments: tuple[PositionedFragment, ...]


@dataclass(frozen=True, slots=True)
class DecodedDocument:
    pages: tuple[DecodedPage, ...]
    page_count: int
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def fragment_count(self) -> int:
        return sum(len(p.fragments) for p in self.pages)


# Signature shared by decode_pdf and any injected replacement.
Decoder = Callable[[Path], DecodedDocument]


def _page_fragments(page: Any, page_number: int) -> tuple[PositionedFragment, ...]:
    height = float(page.height)
    fragments = []
    for word in page.extract_words(**_WORD_OPTIONS):
        text = word["text"]
        if not text.strip():
            continue
        top = float(word["top"])
        fragments.append(
            PositionedFragment(
                text=text,
                x=float(word["x0"]),
                y=height - top,
                width=float(word["x1"]) - float(word["x0"]),
                height=float(word["bottom"]) - top,
                page=page_number,
            )
        )
    return tuple(fragments)


def decode_pdf_bytes(data: bytes, *, filename: str | None = None) -> DecodedDocument:
    """Decode an in-memory PDF.

    Raises
    ------
    PdfUnreadable
        When pdfplumber cannot open or read the document.
    """

    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = tuple(
                DecodedPage(page_number=i, fragments=_page_fragments(page, i))
                for i, page in enumerate(pdf.pages, start=1)
            )
            metadata = dict(pdf.metadata or {})
    except Exception as exc:  # noqa: BLE001 - pdfminer raises a wide range of types
        raise PdfUnreadable(f"unable to read PDF: {exc}", filename=filename) from exc

    document = DecodedDocument(pages=pages, page_count=len(pages), metadata=metadata)
    _logger.debug(
        "Decoded %s: %d page(s), %d fragment(s)",
        filename or "<bytes>",
        document.page_count,
        document.fragment_count,
    )
    return document


def decode_pdf(path: Path) -> DecodedDocument:
    """Decode the PDF at ``path``.

    Raises
    ------
    FileNotFoundError
        When ``path`` does not exist.
    PdfUnreadable
        When the file is not a readable PDF.
    """

    data = Path(path).read_bytes()
    return decode_pdf_bytes(data, filename=Path(path).name)


__all__ = ["DecodedDocument", "DecodedPage", "Decoder", "decode_pdf", "decode_pdf_bytes"]
