"""
Paginator: fixed-size 1-indexed pages with clamped page numbers.
"""

from __future__ import annotations

import math
from typing import Sequence

from magnate.domain.models import Page, Record


def total_pages_for(total_items: int, page_size: int) -> int:
    """Number of pages, never less than one."""
    return max(1, math.ceil(total_items / page_size))


def clamp_page(page_number: int, total_pages: int) -> int:
    return min(max(1, page_number), max(1, total_pages))


def paginate(records: Sequence[Record], page_size: int, page_number: int = 1) -> Page:
    """
    Slice ``records`` into the requested page.

    A page number past the end clamps to the last page and one below 1 clamps
    to the first; ``Page.page`` carries the effective number so the caller can
    adjust its own state. ``range_start``/``range_end`` are 1-indexed and
    inclusive, and both 0 for an empty set.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    total_items = len(records)
    pages = total_pages_for(total_items, page_size)
    page = clamp_page(page_number, pages)

    start_index = (page - 1) * page_size
    items = tuple(records[start_index : start_index + page_size])

    if total_items == 0:
        range_start = range_end = 0
    else:
        range_start = start_index + 1
        range_end = min(start_index + page_size, total_items)

    return Page(
        items=items,
        page=page,
        page_size=page_size,
        total_pages=pages,
        total_items=total_items,
        range_start=range_start,
        range_end=range_end,
    )


__all__ = ["paginate", "clamp_page", "total_pages_for"]
