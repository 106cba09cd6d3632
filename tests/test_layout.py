import pytest

from bank_statements.config import ParserConfig
from bank_statements.layout import (
    COLUMN_BREAK,
    group_rows,
    infer_columns,
    join_row_text,
    merge_wrapped_rows,
    reconstruct_lines,
)
from bank_statements.models import PositionedFragment
from tests.helpers.statements import page_fragments


def _frag(text, x, y, *, width=None, page=1):
    return PositionedFragment(
        text=text,
        x=x,
        y=y,
        width=width if width is not None else len(text) * 5.0,
        height=10.0,
        page=page,
    )


# ---- Rows -----------------------------------------------------------------------


def test_group_rows_orders_top_to_bottom_and_left_to_right():
    frags = [
        _frag("second", 20, 700),
        _frag("amount", 300, 760.5),
        _frag("first", 20, 760),
    ]
    rows = group_rows(frags)
    assert [r.text for r in rows] == [f"first{COLUMN_BREAK}amount", "second"]
    assert rows[0].y == 760.5


def test_group_rows_compares_against_first_fragment_not_running_average():
    # Each fragment is within tolerance of its neighbour but the third drifts
    # past the first fragment's band and starts a new row.
    frags = [_frag("a", 20, 100.0), _frag("b", 60, 97.5), _frag("c", 100, 95.0)]
    rows = group_rows(frags, ParserConfig(row_tolerance=3.0))
    assert [r.text for r in rows] == [f"a{COLUMN_BREAK}b", "c"]


def test_group_rows_empty_page_and_multi_page_guard():
    assert group_rows([]) == []
    with pytest.raises(ValueError, match="one page"):
        group_rows([_frag("a", 0, 0, page=1), _frag("b", 0, 0, page=2)])


def test_join_row_text_picks_separator_from_gap():
    cells = [
        _frag("Conf#", 0, 0, width=25),
        _frag("T0ZG", 26, 0, width=20),  # gap 1: glued
        _frag("WA", 56, 0, width=10),  # gap 10: space
        _frag("12.00", 100, 0, width=25),  # gap 34: column
    ]
    assert join_row_text(cells) == f"Conf#T0ZG WA{COLUMN_BREAK}12.00"


# ---- Columns and wraps ---------------------------------------------------------------


def test_infer_columns_drops_unsupported_clusters():
    rows = group_rows(
        [
            _frag("03/01/25", 20, 700, width=40),
            _frag("PAYROLL", 90, 700, width=35),
            _frag("03/02/25", 21, 680, width=40),
            _frag("COFFEE", 92, 680, width=30),
            _frag("stray", 400, 660, width=25),
        ]
    )
    anchors = infer_columns(rows)
    assert len(anchors) == 2
    assert anchors[0] == 20.5


def test_merge_wrapped_rows_folds_description_only_row_before_amount():
    rows = group_rows(
        [
            _frag("03/05/25", 20, 700, width=40),
            _frag("CHECKCARD 0304 STARBUCKS", 90, 700, width=120),
            _frag("-45.99", 400, 700, width=30),
            _frag("SEATTLE WA", 90, 686, width=50),
            _frag("03/06/25", 20, 672, width=40),
            _frag("PAYROLL", 90, 672, width=35),
            _frag("700.00", 400, 672, width=30),
        ]
    )
    merged = merge_wrapped_rows(rows)
    assert [r.text for r in merged] == [
        f"03/05/25{COLUMN_BREAK}CHECKCARD 0304 STARBUCKS SEATTLE WA{COLUMN_BREAK}-45.99",
        f"03/06/25{COLUMN_BREAK}PAYROLL{COLUMN_BREAK}700.00",
    ]


def test_merge_wrapped_rows_keeps_rows_in_the_date_column():
    rows = group_rows(
        [
            _frag("03/05/25", 20, 700, width=40),
            _frag("COFFEE", 90, 700, width=30),
            _frag("-4.00", 400, 700, width=25),
            _frag("Total", 20, 686, width=25),
        ]
    )
    assert len(merge_wrapped_rows(rows)) == 2


# ---- Lines ---------------------------------------------------------------------------


def test_reconstruct_lines_numbers_lines_across_pages():
    pages = [page_fragments(["one", "two"], page=1), page_fragments(["three"], page=2)]
    lines = reconstruct_lines(pages)
    assert [(ln.text, ln.page, ln.line_index) for ln in lines] == [
        ("one", 1, 0),
        ("two", 1, 1),
        ("three", 2, 2),
    ]


def _statement_page(page):
    return [
        _frag("03/05/25", 20, 700, width=40, page=page),
        _frag("CHECKCARD 0304 STARBUCKS", 90, 700, width=120, page=page),
        _frag("-45.99", 500, 700, width=30, page=page),
        _frag("03/06/25", 20, 686, width=40, page=page),
        _frag("PAYROLL", 90, 686, width=35, page=page),
        _frag("700.00", 500, 686, width=30, page=page),
        _frag("Page", 500, 40, width=20, page=page),
        _frag(f"{page} of 2", 524, 40, width=25, page=page),
    ]


def test_right_aligned_page_footer_is_not_folded_into_last_row():
    lines = reconstruct_lines([_statement_page(1), _statement_page(2)], merge_wraps=True)
    texts = [ln.text for ln in lines]
    assert texts == [
        f"03/05/25{COLUMN_BREAK}CHECKCARD 0304 STARBUCKS{COLUMN_BREAK}-45.99",
        f"03/06/25{COLUMN_BREAK}PAYROLL{COLUMN_BREAK}700.00",
        "Page 1 of 2",
        f"03/05/25{COLUMN_BREAK}CHECKCARD 0304 STARBUCKS{COLUMN_BREAK}-45.99",
        f"03/06/25{COLUMN_BREAK}PAYROLL{COLUMN_BREAK}700.00",
        "Page 2 of 2",
    ]


@pytest.mark.parametrize(
    "furniture",
    [
        "Continued on next page",
        "Total deposits and other additions",
        "https://www.bankofamerica.com",
    ],
)
def test_page_furniture_in_description_column_is_not_a_wrap(furniture):
    rows = group_rows(
        [
            _frag("03/05/25", 20, 700, width=40),
            _frag("COFFEE", 90, 700, width=30),
            _frag("-4.00", 400, 700, width=25),
            _frag("03/06/25", 20, 686, width=40),
            _frag("PAYROLL", 90, 686, width=35),
            _frag("700.00", 400, 686, width=30),
            _frag(furniture, 90, 672, width=len(furniture) * 5.0),
        ]
    )
    merged = merge_wrapped_rows(rows)
    assert [r.text for r in merged][-1] == furniture
    assert len(merged) == 3
