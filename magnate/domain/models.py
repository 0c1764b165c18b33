"""
Domain models for DXD Magnate Views.

Records themselves are opaque mappings (whatever the document store returns);
this module defines the value objects that travel around them: query
predicates, the current user, uploaded assets, date ranges, and the result
containers produced by the pagination and counting stages.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from magnate.domain.timestamps import to_datetime

Record = Mapping[str, Any]

_MISSING = object()


def resolve_field(record: Record, path: str, default: Any = None) -> Any:
    """
    Look up a possibly dotted field path (``assignee.id``) in a record.

    Returns ``default`` as soon as a segment is absent or a non-mapping value
    is reached.
    """
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return default
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return default
    return current


class SortDirection(str, enum.Enum):
    NEWEST_FIRST = "newest_first"
    OLDEST_FIRST = "oldest_first"

    @classmethod
    def parse(cls, value: "SortDirection | str") -> "SortDirection":
        """Accept enum members, their values, or the short ``newest``/``oldest`` aliases."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        aliases = {"newest": cls.NEWEST_FIRST, "oldest": cls.OLDEST_FIRST}
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)


PREDICATE_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in")


class Predicate(BaseModel):
    """
    One equality/range/membership constraint on a collection query.

    Predicates passed together are ANDed; there is no OR.
    """

    field: str = Field(..., min_length=1, description="Dotted field path.")
    op: str = Field("==", description="One of ==, !=, <, <=, >, >=, in.")
    value: Any = Field(None, description="Comparison operand; a list for 'in'.")

    model_config = {"frozen": True}

    @field_validator("op")
    @classmethod
    def _known_operator(cls, value: str) -> str:
        if value not in PREDICATE_OPERATORS:
            raise ValueError(f"Unsupported operator '{value}'")
        return value

    @classmethod
    def eq(cls, field: str, value: Any) -> "Predicate":
        return cls(field=field, op="==", value=value)

    @classmethod
    def isin(cls, field: str, values: Any) -> "Predicate":
        return cls(field=field, op="in", value=list(values))


class CurrentUser(BaseModel):
    """Identity of the signed-in user as reported by the identity provider."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        return self.display_name or self.email or self.id


class UploadedAsset(BaseModel):
    url: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class DateRange(BaseModel):
    """Inclusive date window; either bound may be open."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    model_config = {"frozen": True}

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Optional[datetime]:
        if value is None or value == "":
            return None
        normalized = to_datetime(value)
        if normalized is None:
            raise ValueError(f"Unrecognized date value: {value!r}")
        return normalized

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, value: Any) -> bool:
        """True when the value falls inside the window. Missing values never match."""
        moment = to_datetime(value)
        if moment is None:
            return False
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


@dataclass(frozen=True)
class Page:
    """
    One page of a derived view, plus the metadata for "Showing X-Y of Z".
    """

    items: Tuple[Record, ...]
    page: int
    page_size: int
    total_pages: int
    total_items: int
    range_start: int
    range_end: int

    @property
    def is_empty(self) -> bool:
        return self.total_items == 0

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass(frozen=True)
class StatusCounts:
    """Per-category counts over a full fetched set."""

    counts: Dict[str, int] = field(default_factory=dict)
    total: int = 0

    def get(self, status: str) -> int:
        return self.counts.get(status, 0)


__all__ = [
    "Record",
    "resolve_field",
    "SortDirection",
    "PREDICATE_OPERATORS",
    "Predicate",
    "CurrentUser",
    "UploadedAsset",
    "DateRange",
    "Page",
    "StatusCounts",
]
