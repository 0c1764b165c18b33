from __future__ import annotations

import pytest

from magnate.pipeline.paginate import clamp_page, paginate, total_pages_for

TOTAL_ITEMS = 23
PAGE_SIZE = 8
EXPECTED_PAGES = 3

ITEMS = [{"id": str(n)} for n in range(1, TOTAL_ITEMS + 1)]


def _ids(page):
    return [int(item["id"]) for item in page.items]


def test_first_page_bounds():
    page = paginate(ITEMS, PAGE_SIZE, 1)
    assert page.total_pages == EXPECTED_PAGES
    assert _ids(page) == list(range(1, 9))
    assert (page.range_start, page.range_end) == (1, 8)
    assert not page.has_previous
    assert page.has_next


def test_last_page_range_end_is_clamped_to_total():
    page = paginate(ITEMS, PAGE_SIZE, 3)
    assert _ids(page) == list(range(17, 24))
    assert page.range_end == TOTAL_ITEMS
    assert not page.has_next


@pytest.mark.parametrize("requested, effective", [(10, 3), (0, 1), (-4, 1), (2, 2)])
def test_out_of_range_pages_clamp(requested, effective):
    page = paginate(ITEMS, PAGE_SIZE, requested)
    assert page.page == effective
    assert 1 <= page.range_start <= page.range_end <= TOTAL_ITEMS


def test_empty_set_has_one_page_and_zero_range():
    page = paginate([], PAGE_SIZE, 5)
    assert page.is_empty
    assert page.page == 1
    assert page.total_pages == 1
    assert (page.range_start, page.range_end) == (0, 0)
    assert page.items == ()


def test_exact_multiple_has_no_trailing_empty_page():
    assert total_pages_for(16, PAGE_SIZE) == 2


@pytest.mark.parametrize("page_size", [0, -1])
def test_page_size_below_one_is_rejected(page_size):
    with pytest.raises(ValueError):
        paginate(ITEMS, page_size, 1)


def test_clamp_page_never_returns_zero():
    assert clamp_page(0, 0) == 1
