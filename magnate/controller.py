"""
View controller: explicit view state over one record snapshot.

A controller owns everything one dashboard list needs: the serializable
``ViewState`` (search text, facets, sort, page), the fetched ``RecordSet``, the
load state, and an ``ActionDispatcher`` bound to that same set. Rendering
runs filter -> sort -> paginate against the current immutable snapshot;
badge counts come from the unfiltered set and are recomputed only when the
set itself changes.

Usage:
    view = ViewController(TASK, store, identity=identity, owner_scoped=True)
    await view.load()
    view.set_query("review")
    snapshot = view.render()
    await view.apply_action(snapshot.page.items[0]["id"], "approve")
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from magnate.config import get_settings
from magnate.datastore.abstract import AssetUploader, DataStore, Identity
from magnate.dispatcher import ActionDispatcher, ActionResult, NotificationSpec, RecordSet
from magnate.domain.kinds import RecordKind
from magnate.domain.models import DateRange, Page, Predicate, Record, SortDirection, StatusCounts
from magnate.errors import FetchError
from magnate.fetcher import CollectionFetcher
from magnate.pipeline.counters import count_by_status
from magnate.pipeline.filtering import filter_for_kind, is_active
from magnate.pipeline.paginate import paginate
from magnate.pipeline.sorting import sort_records
from magnate.utils.logging import get_logger

log = get_logger(__name__)

Enricher = Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]]


class LoadState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    EMPTY = "empty"
    FAILED = "failed"


class ViewState(BaseModel):
    """
    User-controlled state of one list view. Immutable; every change yields a
    new value via ``model_copy``.
    """

    query: str = ""
    facets: Dict[str, Any] = Field(default_factory=dict)
    sort_direction: SortDirection = SortDirection.NEWEST_FIRST
    date_range: Optional[DateRange] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1)

    model_config = {"frozen": True}

    def active_facets(self) -> Dict[str, Any]:
        return {name: value for name, value in self.facets.items() if is_active(value)}


@dataclass(frozen=True)
class ViewSnapshot:
    """What a UI layer needs to draw the list at one moment."""

    load_state: LoadState
    view_state: ViewState
    page: Page
    counts: StatusCounts
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.load_state is LoadState.LOADING

    @property
    def show_page_controls(self) -> bool:
        return self.load_state is LoadState.LOADED and not self.page.is_empty


class ViewController:
    def __init__(
        self,
        kind: RecordKind,
        store: DataStore,
        *,
        identity: Optional[Identity] = None,
        owner_scoped: bool = False,
        scope_predicates: Sequence[Predicate] = (),
        collection: Optional[str] = None,
        page_size: Optional[int] = None,
        sort_direction: Optional[SortDirection | str] = None,
        notification: Optional[NotificationSpec] = None,
        uploader: Optional[AssetUploader] = None,
        enrich: Optional[Enricher] = None,
    ) -> None:
        if owner_scoped and (identity is None or kind.owner_field is None):
            raise ValueError(f"Owner-scoped view of '{kind.name}' needs an identity and an owner field")
        settings = get_settings()
        self.kind = kind
        self.collection = collection or kind.collection
        self.identity = identity
        self.owner_scoped = owner_scoped
        self.scope_predicates = list(scope_predicates)
        self.uploader = uploader
        self.enrich = enrich
        self.fetcher = CollectionFetcher(store)
        self.records = RecordSet()
        self.dispatcher = ActionDispatcher(
            store,
            self.collection,
            self.records,
            identity=identity,
            notification=notification if settings.notifications_enabled else None,
        )
        self._state = ViewState(
            page_size=page_size or settings.default_page_size,
            sort_direction=SortDirection.parse(sort_direction or settings.default_sort),
        )
        self._load_state = LoadState.IDLE
        self._error: Optional[FetchError] = None
        self._generation = 0
        self._closed = False
        self._counts_cache: Optional[Tuple[int, StatusCounts]] = None

    # -- state -----------------------------------------------------------

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def load_state(self) -> LoadState:
        return self._load_state

    @property
    def error(self) -> Optional[FetchError]:
        return self._error

    def restore(self, state: ViewState) -> None:
        """Adopt a previously serialized view state."""
        self._state = state

    def set_query(self, query: str) -> ViewState:
        """Change the search text; a changed query always goes back to page 1."""
        if query != self._state.query:
            self._state = self._state.model_copy(update={"query": query, "page": 1})
        return self._state

    def set_facet(self, name: str, value: Any) -> ViewState:
        if self._state.facets.get(name) != value:
            facets = {**self._state.facets, name: value}
            self._state = self._state.model_copy(update={"facets": facets, "page": 1})
        return self._state

    def set_date_range(self, date_range: Optional[DateRange]) -> ViewState:
        if date_range != self._state.date_range:
            self._state = self._state.model_copy(update={"date_range": date_range, "page": 1})
        return self._state

    def clear_filters(self) -> ViewState:
        self._state = self._state.model_copy(
            update={"query": "", "facets": {}, "date_range": None, "page": 1}
        )
        return self._state

    def set_sort(self, direction: SortDirection | str) -> ViewState:
        self._state = self._state.model_copy(
            update={"sort_direction": SortDirection.parse(direction)}
        )
        return self._state

    def set_page_size(self, page_size: int) -> ViewState:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._state = self._state.model_copy(update={"page_size": page_size, "page": 1})
        return self._state

    def go_to_page(self, page: int) -> ViewState:
        """Move to ``page``, clamped to the pages the current filters produce."""
        effective = paginate(self.visible_records(), self._state.page_size, page).page
        self._state = self._state.model_copy(update={"page": effective})
        return self._state

    def next_page(self) -> ViewState:
        return self.go_to_page(self._state.page + 1)

    def previous_page(self) -> ViewState:
        return self.go_to_page(self._state.page - 1)

    # -- loading ---------------------------------------------------------

    async def load(self) -> LoadState:
        """
        Fetch the view's collection and replace the snapshot.

        A result that arrives after a newer ``load()`` started, or after
        ``close()``, is discarded.
        """
        if self._closed:
            raise RuntimeError("View controller is closed")
        identity, owner_field = self.identity, self.kind.owner_field
        if self.owner_scoped and (identity is None or owner_field is None):
            raise RuntimeError(f"Owner-scoped view of '{self.kind.name}' has no identity to scope by")
        self._generation += 1
        generation = self._generation
        self._load_state = LoadState.LOADING
        self._error = None

        try:
            if self.owner_scoped and identity is not None and owner_field is not None:
                records = await self.fetcher.fetch_for_user(
                    self.collection,
                    owner_field,
                    identity,
                    self.scope_predicates,
                )
            else:
                records = await self.fetcher.fetch(self.collection, self.scope_predicates)
        except FetchError as exc:
            if self._is_stale(generation):
                return self._load_state
            self._error = exc
            self._load_state = LoadState.FAILED
            return self._load_state

        if self._is_stale(generation):
            log.debug(
                "Discarded stale fetch result",
                extra={"collection": self.collection, "generation": generation},
            )
            return self._load_state

        fetched = records or []
        if self.enrich is not None:
            fetched = self.enrich(fetched)
        self.records.replace_all(fetched)
        self._load_state = LoadState.LOADED if self.records.records else LoadState.EMPTY
        return self._load_state

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    def close(self) -> None:
        """Stop accepting fetch results. Safe to call more than once."""
        self._closed = True

    # -- derived views ---------------------------------------------------

    def visible_records(self) -> List[Record]:
        """Filtered and sorted records for the current view state."""
        if self._load_state is not LoadState.LOADED:
            return []
        state = self._state
        matched = filter_for_kind(
            self.records.records,
            self.kind,
            state.query,
            state.facets,
            state.date_range,
        )
        return sort_records(matched, self.kind.sort_field, state.sort_direction)

    def counts(self) -> StatusCounts:
        """
        Per-status counts over the full fetched set, cached per set version.

        Empty unless the latest load succeeded, so a failed or in-flight reload
        never reports the previous snapshot's counts.
        """
        if self._load_state not in (LoadState.LOADED, LoadState.EMPTY):
            return StatusCounts()
        version = self.records.version
        if self._counts_cache is None or self._counts_cache[0] != version:
            self._counts_cache = (version, count_by_status(self.records.records, self.kind))
        return self._counts_cache[1]

    def render(self) -> ViewSnapshot:
        """
        Produce the current page. A requested page past the end is clamped and
        the clamped number is written back into the view state.
        """
        page = paginate(self.visible_records(), self._state.page_size, self._state.page)
        if page.page != self._state.page:
            self._state = self._state.model_copy(update={"page": page.page})
        return ViewSnapshot(
            load_state=self._load_state,
            view_state=self._state,
            page=page,
            counts=self.counts(),
            error=str(self._error) if self._error is not None else None,
        )

    # -- actions ---------------------------------------------------------

    async def apply_action(
        self,
        record_id: str,
        action: str,
        feedback: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> ActionResult:
        """Run a named action through the dispatcher; raises ActionError on failure."""
        return await self.dispatcher.dispatch(record_id, action, feedback=feedback, rating=rating)

    async def submit_feedback(
        self,
        record_id: str,
        feedback: Optional[str] = None,
        rating: Optional[int] = None,
        attachment: Optional[Tuple[str, bytes]] = None,
    ) -> ActionResult:
        """
        Store feedback (and an optional uploaded attachment) on a record
        without changing its status.
        """
        extra: Mapping[str, Any] = {}
        if attachment is not None:
            if self.uploader is None:
                raise ValueError("No asset uploader configured for attachments")
            filename, content = attachment
            asset = await self.uploader.upload(filename, content)
            extra = {"attachmentUrl": asset.url, "attachment": dict(asset.metadata)}
        return await self.dispatcher.dispatch(
            record_id,
            "submit_feedback",
            feedback=feedback,
            rating=rating,
            extra_fields=extra,
        )


__all__ = ["LoadState", "ViewState", "ViewSnapshot", "ViewController"]
