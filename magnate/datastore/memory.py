"""
In-memory document store.

Backs tests, the CLI's default ``memory`` backend, and local demos seeded from
a JSON file shaped ``{"collection-name": [{"id": ..., ...}, ...]}``. Query
results are deep copies in insertion order so callers own their snapshot.
"""

from __future__ import annotations

import copy
import json
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from magnate.datastore.abstract import AbstractDataStore
from magnate.domain.models import Predicate, Record, resolve_field
from magnate.domain.timestamps import to_datetime
from magnate.utils.logging import get_logger

log = get_logger(__name__)

_MISSING = object()


def _comparable(left: Any, right: Any) -> tuple[Any, Any]:
    if isinstance(left, (datetime, date)) or isinstance(right, (datetime, date)):
        return to_datetime(left), to_datetime(right)
    return left, right


def evaluate_predicate(record: Record, predicate: Predicate) -> bool:
    """Apply one predicate to a document; a missing field never matches."""
    actual = resolve_field(record, predicate.field, _MISSING)
    if actual is _MISSING:
        return False
    op = predicate.op
    if op == "in":
        return actual in (predicate.value or ())
    left, right = _comparable(actual, predicate.value)
    if op == "==":
        return left == right
    if op == "!=":
        return left != right
    if left is None or right is None:
        return False
    try:
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        if op == ">=":
            return left >= right
    except TypeError:
        return False
    raise ValueError(f"Unsupported operator '{op}'")


class InMemoryDataStore(AbstractDataStore):
    """
    Dict-of-collections store implementing the DataStore protocol.

    ``fail_queries``/``fail_updates``/``fail_creates`` name collections whose
    operations raise ``ConnectionError``, to exercise error paths.
    """

    name: str = "memory"

    def __init__(self, collections: Optional[Mapping[str, Iterable[Record]]] = None) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.fail_queries: Set[str] = set()
        self.fail_updates: Set[str] = set()
        self.fail_creates: Set[str] = set()
        self.update_calls: List[tuple[str, str, Dict[str, Any]]] = []
        for collection, records in (collections or {}).items():
            self.seed(collection, records)

    @classmethod
    def from_json_file(cls, path: Path | str) -> "InMemoryDataStore":
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError(f"Seed file {path} must contain a JSON object of collections")
        store = cls(payload)
        log.info(
            "Seeded in-memory store",
            extra={"seed_file": str(path), "collections": sorted(payload)},
        )
        return store

    def seed(self, collection: str, records: Iterable[Record]) -> None:
        bucket = self._collections.setdefault(collection, {})
        for record in records:
            record_id = str(record.get("id") or uuid.uuid4().hex)
            bucket[record_id] = {**copy.deepcopy(dict(record)), "id": record_id}

    def collections(self) -> List[str]:
        return sorted(self._collections)

    def dump(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            name: [copy.deepcopy(doc) for doc in bucket.values()]
            for name, bucket in self._collections.items()
        }

    async def query(
        self, collection: str, predicates: Sequence[Predicate] = ()
    ) -> List[Dict[str, Any]]:
        if collection in self.fail_queries:
            raise ConnectionError(f"query on '{collection}' unavailable")
        bucket = self._collections.get(collection, {})
        return [
            copy.deepcopy(doc)
            for doc in bucket.values()
            if all(evaluate_predicate(doc, predicate) for predicate in predicates)
        ]

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        if collection in self.fail_queries:
            raise ConnectionError(f"read on '{collection}' unavailable")
        doc = self._collections.get(collection, {}).get(record_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        if collection in self.fail_updates:
            raise ConnectionError(f"update on '{collection}' unavailable")
        bucket = self._collections.get(collection, {})
        if record_id not in bucket:
            raise KeyError(f"{collection}/{record_id}")
        changes = copy.deepcopy(dict(fields))
        changes.pop("id", None)
        bucket[record_id].update(changes)
        self.update_calls.append((collection, record_id, changes))

    async def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        if collection in self.fail_creates:
            raise ConnectionError(f"create on '{collection}' unavailable")
        record_id = uuid.uuid4().hex
        self._collections.setdefault(collection, {})[record_id] = {
            **copy.deepcopy(dict(fields)),
            "id": record_id,
        }
        return record_id


__all__ = ["InMemoryDataStore", "evaluate_predicate"]
