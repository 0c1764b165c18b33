"""
PostgreSQL document store.

Documents live in a single ``documents(collection, id, body jsonb)`` table.
Predicates compile to parameterized JSONB comparisons on ``body #> path``, so
equality, range and membership behave like the document database's
collection queries (a missing field never matches). Updates are a top-level
JSONB merge, matching partial-field update semantics.
"""

from __future__ import annotations

import json
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from magnate.datastore.abstract import AbstractDataStore
from magnate.domain.models import Predicate
from magnate.infrastructure.db_factory import PoolManager
from magnate.utils.logging import get_logger

log = get_logger(__name__)

_SQL_OPERATORS = {"==": "=", "!=": "<>", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


def _json_value(value: Any) -> Any:
    """Make a value JSON-serializable (timestamps become ISO strings)."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _dumps(obj: Any) -> str:
    return json.dumps(obj, default=_default)


def _jsonb(value: Any) -> Jsonb:
    return Jsonb(_json_value(value), dumps=_dumps)


def compile_predicates(predicates: Sequence[Predicate]) -> Tuple[str, List[Any]]:
    """
    Translate predicates into a SQL fragment and its parameters.

    Returns an empty fragment when there are no predicates.
    """
    clauses: List[str] = []
    params: List[Any] = []
    for predicate in predicates:
        path = predicate.field.split(".")
        if predicate.op == "in":
            clauses.append("body #> %s = ANY(%s)")
            params.extend([path, [_jsonb(v) for v in (predicate.value or [])]])
        else:
            clauses.append(f"body #> %s {_SQL_OPERATORS[predicate.op]} %s")
            params.extend([path, _jsonb(predicate.value)])
    return " AND ".join(clauses), params


def _document(record_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
    return {**body, "id": record_id}


class PostgresDataStore(AbstractDataStore):
    """
    DataStore backed by a psycopg async connection pool.
    """

    name: str = "postgres"

    def __init__(
        self,
        pool: Optional[AsyncConnectionPool] = None,
        dsn_override: Optional[str] = None,
        pool_min_size: int = 1,
        pool_max_size: int = 10,
    ) -> None:
        self._pool = pool
        self._owns_pool = False
        self._dsn_override = dsn_override
        self.pool_min_size = pool_min_size
        self.pool_max_size = pool_max_size

    async def _get_pool(self) -> AsyncConnectionPool:
        if self._pool is None:
            self._pool = await PoolManager().get_async_pool(
                min_size=self.pool_min_size,
                max_size=self.pool_max_size,
                dsn=self._dsn_override,
            )
            self._owns_pool = True
        return self._pool

    async def query(
        self, collection: str, predicates: Sequence[Predicate] = ()
    ) -> List[Dict[str, Any]]:
        where, params = compile_predicates(predicates)
        sql = "SELECT id, body FROM public.documents WHERE collection = %s"
        if where:
            sql = f"{sql} AND {where}"
        sql = f"{sql} ORDER BY seq"

        pool = await self._get_pool()
        async with pool.connection() as conn:
            cur = await conn.execute(sql, [collection, *params])
            rows = await cur.fetchall()
        log.debug("Document query", extra={"collection": collection, "rows": len(rows)})
        return [_document(record_id, body) for record_id, body in rows]

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        pool = await self._get_pool()
        async with pool.connection() as conn:
            cur = await conn.execute(
                "SELECT id, body FROM public.documents WHERE collection = %s AND id = %s",
                (collection, record_id),
            )
            row = await cur.fetchone()
        return _document(row[0], row[1]) if row else None

    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        changes = {k: _json_value(v) for k, v in fields.items() if k != "id"}
        pool = await self._get_pool()
        async with pool.connection() as conn:
            cur = await conn.execute(
                "UPDATE public.documents SET body = body || %s WHERE collection = %s AND id = %s",
                (_jsonb(changes), collection, record_id),
            )
            if cur.rowcount == 0:
                raise KeyError(f"{collection}/{record_id}")

    async def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        record_id = str(fields.get("id") or uuid.uuid4().hex)
        body = {k: _json_value(v) for k, v in fields.items() if k != "id"}
        pool = await self._get_pool()
        async with pool.connection() as conn:
            await conn.execute(
                "INSERT INTO public.documents (collection, id, body) VALUES (%s, %s, %s)",
                (collection, record_id, _jsonb(body)),
            )
        return record_id

    async def close(self) -> None:
        if self._owns_pool:
            await PoolManager().close_all()
            self._pool = None
            self._owns_pool = False


__all__ = ["PostgresDataStore", "compile_predicates"]
