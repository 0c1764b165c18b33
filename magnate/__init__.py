"""
DXD Magnate Views - the data core behind the DXD Magnate dashboards.

Fetches dashboard collections from a document store and derives what a list
view shows from that in-memory snapshot:

- Free-text search and categorical facets
- Stable newest/oldest ordering with undated records last
- Clamped, fixed-size pagination
- Badge counts over the full fetched set
- Single-record status actions with a write-confirmed local patch

Backends (in-memory JSON, PostgreSQL JSONB), reports and a small CLI sit on
top of the same pipeline.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from magnate.config import Settings, get_settings
from magnate.controller import LoadState, ViewController, ViewSnapshot, ViewState
from magnate.datastore import (
    DataStore,
    Identity,
    InMemoryDataStore,
    PostgresDataStore,
    StaticIdentity,
    build_datastore,
)
from magnate.dispatcher import ActionDispatcher, ActionResult, RecordSet
from magnate.domain import DateRange, Page, Predicate, RecordKind, SortDirection, StatusCounts, get_kind
from magnate.errors import ActionError, FetchError, MagnateError, SecondaryWriteError
from magnate.fetcher import CollectionFetcher
from magnate.pipeline import count_by_status, filter_records, paginate, sort_records
from magnate.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Views
    "LoadState",
    "ViewController",
    "ViewSnapshot",
    "ViewState",
    # Data access
    "CollectionFetcher",
    "DataStore",
    "Identity",
    "InMemoryDataStore",
    "PostgresDataStore",
    "StaticIdentity",
    "build_datastore",
    # Actions
    "ActionDispatcher",
    "ActionResult",
    "RecordSet",
    # Domain
    "DateRange",
    "Page",
    "Predicate",
    "RecordKind",
    "SortDirection",
    "StatusCounts",
    "get_kind",
    # Pipeline
    "count_by_status",
    "filter_records",
    "paginate",
    "sort_records",
    # Errors
    "ActionError",
    "FetchError",
    "MagnateError",
    "SecondaryWriteError",
    # Logging
    "configure_logging",
    "get_logger",
]
