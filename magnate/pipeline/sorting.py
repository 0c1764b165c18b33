"""
View sorter: stable temporal ordering.

Records without a usable value for the sort field always come after dated
records, in both directions, and keep their fetch order among themselves.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Tuple

from magnate.domain.models import Record, SortDirection, resolve_field
from magnate.domain.timestamps import to_datetime


def sort_records(
    records: Iterable[Record],
    key: str,
    direction: SortDirection | str = SortDirection.NEWEST_FIRST,
) -> List[Record]:
    """
    Return a new list ordered by the temporal field ``key``.

    ``sorted`` is stable even with ``reverse=True``, so records sharing a
    timestamp keep their input order in both directions.
    """
    direction = SortDirection.parse(direction)
    dated: List[Tuple[datetime, Record]] = []
    undated: List[Record] = []
    for record in records:
        moment = to_datetime(resolve_field(record, key))
        if moment is None:
            undated.append(record)
        else:
            dated.append((moment, record))

    ordered = sorted(
        dated,
        key=lambda pair: pair[0],
        reverse=direction is SortDirection.NEWEST_FIRST,
    )
    return [record for _, record in ordered] + undated


__all__ = ["sort_records"]
