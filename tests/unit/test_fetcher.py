from __future__ import annotations

import pytest

from magnate.datastore import InMemoryDataStore, StaticIdentity
from magnate.domain.kinds import PROJECT, TASK
from magnate.domain.models import Predicate
from magnate.errors import FetchError
from magnate.fetcher import CollectionFetcher, dedupe_by_id

OWNED_TASKS = 4


@pytest.mark.asyncio
async def test_fetch_applies_anded_predicates(memory_store):
    fetcher = CollectionFetcher(memory_store)
    records = await fetcher.fetch(
        TASK.collection,
        [Predicate.eq("assignee.id", "client-1"), Predicate.isin("priority", ["High", "Low"])],
    )
    assert [record["id"] for record in records] == ["t1", "t3"]


@pytest.mark.asyncio
async def test_fetch_wraps_store_errors(memory_store):
    memory_store.fail_queries.add(TASK.collection)
    with pytest.raises(FetchError) as excinfo:
        await CollectionFetcher(memory_store).fetch(TASK.collection)
    assert excinfo.value.collection == TASK.collection
    assert isinstance(excinfo.value.cause, ConnectionError)


@pytest.mark.asyncio
async def test_fetched_records_are_independent_copies(memory_store):
    fetcher = CollectionFetcher(memory_store)
    first = await fetcher.fetch(TASK.collection)
    first[0]["status"] = "mutated"
    second = await fetcher.fetch(TASK.collection)
    assert second[0]["status"] == "pending"


@pytest.mark.asyncio
async def test_fetch_many_reports_errors_independently(sample_tasks):
    store = InMemoryDataStore({TASK.collection: sample_tasks, PROJECT.collection: [{"id": "p1"}]})
    store.fail_queries.add(PROJECT.collection)

    results = await CollectionFetcher(store).fetch_many(
        {
            "tasks": (TASK.collection, []),
            "projects": (PROJECT.collection, []),
        }
    )

    assert len(results["tasks"]) == len(sample_tasks)
    assert isinstance(results["projects"], FetchError)


@pytest.mark.asyncio
async def test_fetch_for_user_scopes_to_owner(memory_store, identity):
    records = await CollectionFetcher(memory_store).fetch_for_user(TASK.collection, "assignee.id", identity)
    assert len(records) == OWNED_TASKS


@pytest.mark.asyncio
async def test_fetch_for_user_without_user_returns_none(memory_store):
    memory_store.fail_queries.add(TASK.collection)
    result = await CollectionFetcher(memory_store).fetch_for_user(
        TASK.collection, "assignee.id", StaticIdentity(None)
    )
    assert result is None


def test_dedupe_keeps_first_occurrence():
    records = [{"id": "a", "v": 1}, {"id": "b"}, {"id": "a", "v": 2}, {"title": "no id"}]
    assert dedupe_by_id(records) == [{"id": "a", "v": 1}, {"id": "b"}, {"title": "no id"}]
