"""
Data store package for DXD Magnate Views.

Re-exports the collaborator protocols and concrete backends, and builds the
configured backend from settings.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from magnate.config import Settings, get_settings
from magnate.datastore.abstract import AbstractDataStore, AssetUploader, DataStore, Identity
from magnate.datastore.identity import LocalAssetUploader, StaticIdentity
from magnate.datastore.memory import InMemoryDataStore
from magnate.datastore.postgres import PostgresDataStore


def _memory_store(settings: Settings) -> AbstractDataStore:
    if settings.seed_file:
        return InMemoryDataStore.from_json_file(settings.seed_file)
    return InMemoryDataStore()


def _postgres_store(settings: Settings) -> AbstractDataStore:
    return PostgresDataStore(
        pool_min_size=settings.db_pool_min,
        pool_max_size=settings.db_pool_max,
    )


def _store_factories() -> Dict[str, Callable[[Settings], AbstractDataStore]]:
    """Registry of available backends."""
    return {
        "memory": _memory_store,
        "postgres": _postgres_store,
    }


def available_backends() -> List[str]:
    return sorted(_store_factories())


def build_datastore(settings: Optional[Settings] = None) -> AbstractDataStore:
    """Instantiate the backend named by ``DATASTORE_BACKEND``."""
    settings = settings or get_settings()
    factories = _store_factories()
    if settings.datastore_backend not in factories:
        raise ValueError(
            f"Unknown datastore backend '{settings.datastore_backend}'. "
            f"Available: {', '.join(factories)}"
        )
    return factories[settings.datastore_backend](settings)


__all__ = [
    "AbstractDataStore",
    "AssetUploader",
    "DataStore",
    "Identity",
    "InMemoryDataStore",
    "LocalAssetUploader",
    "PostgresDataStore",
    "StaticIdentity",
    "available_backends",
    "build_datastore",
]
