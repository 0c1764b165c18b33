"""
View filter: free-text query plus categorical facets.

A record is kept when the query matches any of the whitelisted text fields and
every active facet matches. Facets whose selected value is ``"all"``, empty or
``None`` are inactive. Filtering is a pure predicate over each record, so
applying the same filter twice yields the same subset.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from magnate.domain.kinds import RecordKind
from magnate.domain.models import DateRange, Record, resolve_field

ALL = "all"


class FacetMode(str, enum.Enum):
    EXACT = "exact"
    NORMALIZED = "normalized"


# Status strings are stored with inconsistent casing ("In Progress" vs "in progress").
DEFAULT_FACET_MODES: Mapping[str, FacetMode] = {"status": FacetMode.NORMALIZED}

FacetResolver = Callable[[Record], Any]


def is_active(value: Any) -> bool:
    """Whether a selected facet value actually narrows the view."""
    if value is None:
        return False
    if isinstance(value, str):
        stripped = value.strip()
        return bool(stripped) and stripped.lower() != ALL
    return True


def _normalize(value: Any) -> str:
    return str(value).strip().lower()


def matches_query(record: Record, query: str, search_fields: Sequence[str]) -> bool:
    """Case-insensitive substring match against any of ``search_fields``."""
    needle = (query or "").strip().lower()
    if not needle:
        return True
    for path in search_fields:
        value = resolve_field(record, path)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (str, int, float)) and needle in str(value).lower():
            return True
    return False


def matches_facet(
    record: Record,
    field: str,
    selected: Any,
    mode: FacetMode = FacetMode.EXACT,
    resolver: Optional[FacetResolver] = None,
) -> bool:
    if not is_active(selected):
        return True
    actual = resolver(record) if resolver is not None else resolve_field(record, field)
    if actual is None:
        return False
    if mode is FacetMode.NORMALIZED:
        return _normalize(actual) == _normalize(selected)
    return actual == selected


def filter_records(
    records: Iterable[Record],
    query: str = "",
    facets: Optional[Mapping[str, Any]] = None,
    search_fields: Sequence[str] = (),
    *,
    facet_modes: Optional[Mapping[str, FacetMode]] = None,
    field_map: Optional[Mapping[str, str]] = None,
    resolvers: Optional[Mapping[str, FacetResolver]] = None,
    tabs: Optional[Mapping[str, Callable[[Record], bool]]] = None,
    date_range: Optional[DateRange] = None,
    date_field: Optional[str] = None,
) -> List[Record]:
    """
    Return the records matching ``query`` and every active facet.

    Parameters
    ----------
    facets : mapping
        Facet name -> selected value. The special ``tab`` facet selects one of
        ``tabs`` (a named predicate) instead of comparing a field.
    facet_modes : mapping
        Per-facet comparison mode; defaults to normalized for ``status`` and
        exact for everything else.
    field_map : mapping
        Facet name -> record field path, for facets whose name differs from
        the stored field (``project`` -> ``projectId``).
    resolvers : mapping
        Facet name -> function computing the compared value from the record,
        used instead of reading ``field_map`` when present.
    date_range, date_field :
        Inclusive window on ``date_field``; records lacking the date are
        excluded while the window has a bound.
    """
    modes = dict(DEFAULT_FACET_MODES)
    modes.update(facet_modes or {})
    fields = field_map or {}
    computed = resolvers or {}
    active = {name: value for name, value in (facets or {}).items() if is_active(value)}

    tab_check: Optional[Callable[[Record], bool]] = None
    if "tab" in active and tabs is not None:
        tab_name = active.pop("tab")
        if tab_name not in tabs:
            raise ValueError(f"Unknown tab '{tab_name}'. Available: {', '.join(sorted(tabs))}")
        tab_check = tabs[tab_name]

    use_dates = date_range is not None and not date_range.is_open and date_field is not None

    result: List[Record] = []
    for record in records:
        if not matches_query(record, query, search_fields):
            continue
        if tab_check is not None and not tab_check(record):
            continue
        if not all(
            matches_facet(
                record,
                fields.get(name, name),
                value,
                modes.get(name, FacetMode.EXACT),
                computed.get(name),
            )
            for name, value in active.items()
        ):
            continue
        if use_dates and not date_range.contains(resolve_field(record, date_field)):
            continue
        result.append(record)
    return result


def _kind_resolvers(kind: RecordKind) -> Dict[str, FacetResolver]:
    resolvers: Dict[str, FacetResolver] = {"status": kind.status_of}
    if kind.priorities:
        resolvers["priority"] = kind.priority_of
    return resolvers


def filter_for_kind(
    records: Iterable[Record],
    kind: RecordKind,
    query: str = "",
    facets: Optional[Mapping[str, Any]] = None,
    date_range: Optional[DateRange] = None,
) -> List[Record]:
    """
    Filter using a record kind's search fields, facet fields, tabs and date field.

    Status and priority facets compare the kind's resolved category, so a
    record with an absent or unknown status is selected by the fallback status
    just as the counters bucket it.
    """
    return filter_records(
        records,
        query,
        facets,
        kind.search_fields,
        field_map=kind.facet_fields,
        resolvers=_kind_resolvers(kind),
        tabs=kind.tabs,
        date_range=date_range,
        date_field=kind.date_field,
    )


__all__ = [
    "ALL",
    "FacetMode",
    "is_active",
    "matches_query",
    "matches_facet",
    "filter_records",
    "filter_for_kind",
]
