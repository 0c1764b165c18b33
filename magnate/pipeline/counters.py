"""
Derived counters for badges and tabs.

Always computed over the full fetched set for the current scope, never over a
filtered or paginated subset.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Sequence

from magnate.domain.kinds import RecordKind
from magnate.domain.models import Record, StatusCounts, resolve_field

UNKNOWN = "Unknown"


def count_by_field(
    records: Iterable[Record],
    field: str,
    default: str = UNKNOWN,
    seed: Sequence[str] = (),
) -> StatusCounts:
    """
    Distribution of ``field`` values; absent or blank values count under ``default``.
    """
    counts: Dict[str, int] = {name: 0 for name in seed}
    total = 0
    for record in records:
        value = resolve_field(record, field)
        if value is None or (isinstance(value, str) and not value.strip()):
            bucket = default
        else:
            bucket = str(value)
        counts[bucket] = counts.get(bucket, 0) + 1
        total += 1
    return StatusCounts(counts=counts, total=total)


def count_by_status(
    records: Iterable[Record],
    kind: Optional[RecordKind] = None,
    *,
    seed_known: bool = False,
) -> StatusCounts:
    """
    Count records per status.

    With a ``kind``, statuses are mapped onto its enumeration and anything
    absent or unrecognized lands in the kind's fallback category. Without one,
    raw values are counted and absent ones go under ``"Unknown"``.
    """
    if kind is None:
        return count_by_field(records, "status", UNKNOWN)

    counts: Dict[str, int] = {name: 0 for name in kind.statuses} if seed_known else {}
    total = 0
    for record in records:
        status = kind.status_of(record)
        counts[status] = counts.get(status, 0) + 1
        total += 1
    return StatusCounts(counts=counts, total=total)


__all__ = ["UNKNOWN", "count_by_field", "count_by_status"]
