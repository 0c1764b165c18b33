"""
Collaborator interfaces consumed by the view pipeline.

The fetcher, dispatcher and controllers only see these protocols; concrete
backends (in-memory, PostgreSQL) and identity/upload adapters are injected at
construction time, so the core can be exercised without a live backend.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from magnate.domain.models import CurrentUser, Predicate, Record, UploadedAsset


@runtime_checkable
class DataStore(Protocol):
    """
    Document store with ANDed predicate queries and partial-merge updates.
    """

    async def query(self, collection: str, predicates: Sequence[Predicate] = ()) -> List[Dict[str, Any]]:
        """Return every document in ``collection`` matching all ``predicates``."""
        ...

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        """
        Merge ``fields`` into the stored document; unspecified fields are untouched.

        Raises
        ------
        KeyError
            If no document with ``record_id`` exists in ``collection``.
        """
        ...

    async def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        """Insert a document and return its generated id."""
        ...


@runtime_checkable
class Identity(Protocol):
    def current_user(self) -> Optional[CurrentUser]:
        """The signed-in user, or None when nobody is signed in."""
        ...


@runtime_checkable
class AssetUploader(Protocol):
    async def upload(self, filename: str, content: bytes) -> UploadedAsset:
        ...


class AbstractDataStore(abc.ABC):
    """
    Optional ABC helper for class-based store implementations.
    """

    name: str

    @abc.abstractmethod
    async def query(
        self, collection: str, predicates: Sequence[Predicate] = ()
    ) -> List[Dict[str, Any]]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def get(
        self, collection: str, record_id: str
    ) -> Optional[Dict[str, Any]]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def update(
        self, collection: str, record_id: str, fields: Mapping[str, Any]
    ) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def create(
        self, collection: str, fields: Mapping[str, Any]
    ) -> str:  # pragma: no cover - interface only
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources. No-op by default."""


__all__ = [
    "DataStore",
    "Identity",
    "AssetUploader",
    "AbstractDataStore",
    "Record",
]
