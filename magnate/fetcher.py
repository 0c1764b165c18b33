"""
Collection fetcher.

Loads a full collection snapshot (no store-level pagination) under ANDed
predicates. Independent fetches for one view are issued concurrently and
joined; each reports success or ``FetchError`` on its own.

Usage:
    fetcher = CollectionFetcher(store)
    tasks = await fetcher.fetch("client-tasks", [Predicate.eq("assignee.id", uid)])
    results = await fetcher.fetch_many({
        "projects": ("dxd-magnate-projects", []),
        "users": ("users", []),
    })
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from magnate.datastore.abstract import DataStore, Identity
from magnate.domain.models import Predicate
from magnate.errors import FetchError
from magnate.utils.logging import get_logger

log = get_logger(__name__)

FetchSpec = Tuple[str, Sequence[Predicate]]
FetchOutcome = Union[List[Dict[str, Any]], FetchError]


def dedupe_by_id(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Collapse repeated ids, keeping the first occurrence and its position."""
    seen: set = set()
    unique: List[Dict[str, Any]] = []
    for record in records:
        record_id = record.get("id")
        if record_id is not None:
            if record_id in seen:
                continue
            seen.add(record_id)
        unique.append(record)
    return unique


class CollectionFetcher:
    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def fetch(
        self, collection: str, predicates: Sequence[Predicate] = ()
    ) -> List[Dict[str, Any]]:
        """
        Fetch every record of ``collection`` matching all ``predicates``.

        Raises
        ------
        FetchError
            When the store query fails for any reason. Not retried.
        """
        try:
            records = await self.store.query(collection, list(predicates))
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - any store failure becomes a FetchError
            log.exception(
                f"[FETCH FAILED] {collection}",
                extra={"collection": collection, "predicates": len(predicates)},
            )
            raise FetchError(collection, exc) from exc

        unique = dedupe_by_id(records)
        log.info(
            f"[FETCH] {collection}",
            extra={"collection": collection, "rows": len(unique), "predicates": len(predicates)},
        )
        return unique

    async def fetch_many(self, specs: Mapping[str, FetchSpec]) -> Dict[str, FetchOutcome]:
        """
        Run several fetches concurrently and wait for all of them.

        Returns alias -> records, or alias -> FetchError for the ones that
        failed; one failure never hides the others' results.
        """
        aliases = list(specs)
        outcomes = await asyncio.gather(
            *(self.fetch(collection, predicates) for collection, predicates in specs.values()),
            return_exceptions=True,
        )
        results: Dict[str, FetchOutcome] = {}
        for alias, outcome in zip(aliases, outcomes):
            if isinstance(outcome, FetchError):
                results[alias] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[alias] = outcome
        return results

    async def fetch_for_user(
        self,
        collection: str,
        owner_field: str,
        identity: Identity,
        extra_predicates: Sequence[Predicate] = (),
    ) -> Optional[List[Dict[str, Any]]]:
        """
        Fetch records owned by the signed-in user.

        Returns None without touching the store when nobody is signed in.
        """
        user = identity.current_user()
        if user is None:
            log.info(
                f"[FETCH SKIPPED] {collection}: no current user",
                extra={"collection": collection},
            )
            return None
        predicates = [Predicate.eq(owner_field, user.id), *extra_predicates]
        return await self.fetch(collection, predicates)


__all__ = ["CollectionFetcher", "FetchOutcome", "FetchSpec", "dedupe_by_id"]
