"""
Pipeline package for DXD Magnate Views.

Pure, framework-free stages applied to an in-memory record snapshot:
filter -> sort -> paginate, with derived counters over the unfiltered set.
"""

from magnate.pipeline.counters import UNKNOWN, count_by_field, count_by_status
from magnate.pipeline.filtering import (
    ALL,
    FacetMode,
    filter_for_kind,
    filter_records,
    is_active,
)
from magnate.pipeline.paginate import clamp_page, paginate
from magnate.pipeline.sorting import sort_records

__all__ = [
    "ALL",
    "UNKNOWN",
    "FacetMode",
    "clamp_page",
    "count_by_field",
    "count_by_status",
    "filter_for_kind",
    "filter_records",
    "is_active",
    "paginate",
    "sort_records",
]
