import pytest

from bank_statements import pdf
from bank_statements.errors import PdfUnreadable
from bank_statements.models import PositionedFragment


class _FakePage:
    height = 792.0

    def __init__(self, words):
        self._words = words

    def extract_words(self, **options):
        return self._words


class _FakePdf:
    def __init__(self, pages):
        self.pages = pages
        self.metadata = {"Producer": "statement printer"}

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def _word(text, x0, top, x1, bottom):
    return {"text": text, "x0": x0, "top": top, "x1": x1, "bottom": bottom}


def test_words_become_bottom_left_fragments(monkeypatch):
    pages = [
        _FakePage([_word("03/05/25", 20.0, 100.0, 60.0, 110.0), _word("  ", 70, 100, 72, 110)]),
        _FakePage([]),
    ]
    monkeypatch.setattr(pdf.pdfplumber, "open", lambda stream: _FakePdf(pages))

    document = pdf.decode_pdf_bytes(b"%PDF-1.4", filename="march.pdf")

    assert document.page_count == 2
    assert document.fragment_count == 1
    assert document.metadata == {"Producer": "statement printer"}
    assert document.pages[0].fragments == (
        PositionedFragment(text="03/05/25", x=20.0, y=692.0, width=40.0, height=10.0, page=1),
    )
    assert document.pages[1].page_number == 2


def test_unreadable_bytes_raise_pdf_unreadable():
    with pytest.raises(PdfUnreadable) as excinfo:
        pdf.decode_pdf_bytes(b"this is not a pdf", filename="notes.pdf")
    assert excinfo.value.filename == "notes.pdf"
    assert excinfo.value.message.startswith("unable to read PDF")


def test_decode_pdf_reads_the_file(tmp_path, monkeypatch):
    seen = []

    def fake_open(stream):
        seen.append(stream.read())
        return _FakePdf([])

    monkeypatch.setattr(pdf.pdfplumber, "open", fake_open)
    path = tmp_path / "empty.pdf"
    path.write_bytes(b"%PDF-1.4 bytes")

    document = pdf.decode_pdf(path)
    assert seen == [b"%PDF-1.4 bytes"]
    assert document.page_count == 0

    with pytest.raises(FileNotFoundError):
        pdf.decode_pdf(tmp_path / "missing.pdf")
