"""
Infrastructure package for DXD Magnate Views.

Centralizes PostgreSQL connectivity concerns (DSN, async pool, schema).
Keep this layer focused on I/O and resource management, decoupled from the
view pipeline.
"""

from magnate.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    ensure_schema,
    get_sync_connection,
)

__all__ = [
    "PoolManager",
    "build_dsn",
    "ensure_schema",
    "get_sync_connection",
]
