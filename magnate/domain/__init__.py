"""
Domain package for DXD Magnate Views.

Exports record kind profiles, value objects and timestamp normalization used
across the pipeline, fetcher, dispatcher and controllers. Keep this package
focused on data definitions and validation concerns.
"""

from magnate.domain.kinds import RecordKind, available_kinds, get_kind
from magnate.domain.models import (
    CurrentUser,
    DateRange,
    Page,
    Predicate,
    Record,
    SortDirection,
    StatusCounts,
    UploadedAsset,
    resolve_field,
)
from magnate.domain.timestamps import to_datetime

__all__ = [
    "RecordKind",
    "available_kinds",
    "get_kind",
    "CurrentUser",
    "DateRange",
    "Page",
    "Predicate",
    "Record",
    "SortDirection",
    "StatusCounts",
    "UploadedAsset",
    "resolve_field",
    "to_datetime",
]
