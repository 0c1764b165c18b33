from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from psycopg.types.json import Jsonb

from magnate.config import Settings
from magnate.datastore import (
    DataStore,
    InMemoryDataStore,
    PostgresDataStore,
    available_backends,
    build_datastore,
)
from magnate.datastore.memory import evaluate_predicate
from magnate.datastore.postgres import compile_predicates
from magnate.domain.kinds import TASK
from magnate.domain.models import Predicate

RECORD = {
    "id": "t1",
    "status": "pending",
    "amount": 120,
    "assignee": {"id": "client-1"},
    "createdAt": "2024-03-01T10:00:00Z",
}


@pytest.mark.parametrize(
    "predicate, expected",
    [
        (Predicate.eq("status", "pending"), True),
        (Predicate(field="status", op="!=", value="pending"), False),
        (Predicate.eq("assignee.id", "client-1"), True),
        (Predicate(field="amount", op=">=", value=120), True),
        (Predicate(field="amount", op="<", value=100), False),
        (Predicate.isin("status", ["pending", "approved"]), True),
        (Predicate.eq("missing", None), False),
        (Predicate(field="createdAt", op=">", value=datetime(2024, 2, 1, tzinfo=timezone.utc)), True),
        (Predicate(field="status", op=">", value=3), False),
    ],
)
def test_evaluate_predicate(predicate, expected):
    assert evaluate_predicate(RECORD, predicate) is expected


def test_unknown_operator_is_rejected_by_model():
    with pytest.raises(ValueError):
        Predicate(field="status", op="~", value="x")


@pytest.mark.asyncio
async def test_update_merges_fields_and_keeps_id():
    store = InMemoryDataStore({TASK.collection: [RECORD]})
    await store.update(TASK.collection, "t1", {"status": "approved", "id": "hijack"})
    stored = await store.get(TASK.collection, "t1")
    assert stored["status"] == "approved"
    assert stored["id"] == "t1"
    assert stored["amount"] == 120


@pytest.mark.asyncio
async def test_update_unknown_record_raises_key_error():
    with pytest.raises(KeyError):
        await InMemoryDataStore().update(TASK.collection, "nope", {"status": "x"})


@pytest.mark.asyncio
async def test_create_assigns_id():
    store = InMemoryDataStore()
    record_id = await store.create("notifications", {"message": "hi"})
    assert (await store.get("notifications", record_id))["message"] == "hi"


@pytest.mark.asyncio
async def test_seed_file_round_trip(tmp_path):
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps({TASK.collection: [RECORD, {"title": "no id"}]}), encoding="utf-8")

    store = InMemoryDataStore.from_json_file(seed)

    records = await store.query(TASK.collection)
    assert len(records) == 2
    assert all(record["id"] for record in records)
    assert store.collections() == [TASK.collection]


def test_seed_file_must_be_an_object(tmp_path):
    seed = tmp_path / "seed.json"
    seed.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        InMemoryDataStore.from_json_file(seed)


def test_stores_satisfy_protocol():
    assert isinstance(InMemoryDataStore(), DataStore)
    assert isinstance(PostgresDataStore(), DataStore)


def test_compile_predicates_builds_parameterized_sql():
    sql, params = compile_predicates(
        [Predicate.eq("assignee.id", "client-1"), Predicate.isin("type", ["performance", "financial"])]
    )
    assert sql == "body #> %s = %s AND body #> %s = ANY(%s)"
    assert params[0] == ["assignee", "id"]
    assert isinstance(params[1], Jsonb)
    assert params[1].obj == "client-1"
    assert params[2] == ["type"]
    assert [item.obj for item in params[3]] == ["performance", "financial"]


def test_compile_no_predicates_is_empty():
    assert compile_predicates([]) == ("", [])


def test_build_datastore_selects_backend(tmp_path):
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps({TASK.collection: [RECORD]}), encoding="utf-8")

    memory = build_datastore(Settings(DATASTORE_BACKEND="memory", SEED_FILE=str(seed)))
    postgres = build_datastore(Settings(DATASTORE_BACKEND="postgres", DB_POOL_MAX=3))

    assert isinstance(memory, InMemoryDataStore)
    assert memory.collections() == [TASK.collection]
    assert isinstance(postgres, PostgresDataStore)
    assert postgres.pool_max_size == 3
    assert available_backends() == ["memory", "postgres"]
