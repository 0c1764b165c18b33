from __future__ import annotations

import copy

import pytest

from magnate.datastore import InMemoryDataStore, StaticIdentity
from magnate.dispatcher import ActionDispatcher, RecordSet, status_change_notification
from magnate.domain.kinds import TASK
from magnate.errors import ActionError, SecondaryWriteError

FIXED_NOW = "2024-05-01T12:00:00+00:00"
NOTIFICATIONS = "notifications"


def _dispatcher(store, records, **kwargs):
    return ActionDispatcher(store, TASK.collection, records, clock=lambda: FIXED_NOW, **kwargs)


@pytest.fixture
def record_set(sample_tasks):
    return RecordSet(copy.deepcopy(sample_tasks))


@pytest.mark.asyncio
async def test_successful_action_patches_only_target_record(memory_store, record_set):
    before = record_set.records
    dispatcher = _dispatcher(memory_store, record_set)

    result = await dispatcher.apply_action("t1", "approved")

    patched = record_set.find("t1")
    assert patched["status"] == "approved"
    assert patched["updatedAt"] == FIXED_NOW
    assert result.previous["status"] == "pending"
    for old, new in zip(before[1:], record_set.records[1:]):
        assert old is new
    assert record_set.version == 1
    stored = await memory_store.get(TASK.collection, "t1")
    assert stored["status"] == "approved"


@pytest.mark.asyncio
async def test_exactly_one_remote_update_per_action(memory_store, record_set):
    await _dispatcher(memory_store, record_set).apply_action("t2", "rejected", {"feedback": "Not yet"})
    assert memory_store.update_calls == [
        (TASK.collection, "t2", {"updatedAt": FIXED_NOW, "feedback": "Not yet", "status": "rejected"})
    ]


@pytest.mark.asyncio
async def test_failed_update_leaves_set_unchanged(memory_store, record_set):
    memory_store.fail_updates.add(TASK.collection)
    snapshot = copy.deepcopy(record_set.records)
    version = record_set.version

    with pytest.raises(ActionError) as excinfo:
        await _dispatcher(memory_store, record_set).apply_action("t1", "approved")

    assert excinfo.value.record_id == "t1"
    assert isinstance(excinfo.value.cause, ConnectionError)
    assert record_set.records == snapshot
    assert record_set.version == version


@pytest.mark.asyncio
async def test_unknown_record_fails_before_any_write(memory_store, record_set):
    with pytest.raises(ActionError, match="not in this view"):
        await _dispatcher(memory_store, record_set).apply_action("nope", "approved")
    assert memory_store.update_calls == []


@pytest.mark.asyncio
async def test_notification_written_after_success(memory_store, record_set, identity):
    dispatcher = _dispatcher(
        memory_store,
        record_set,
        identity=identity,
        notification=status_change_notification(NOTIFICATIONS, "assignee.id"),
    )

    result = await dispatcher.dispatch("t1", "approve")

    assert result.notification_error is None
    notification = await memory_store.get(NOTIFICATIONS, result.notification_id)
    assert notification["userId"] == "client-1"
    assert notification["status"] == "approved"
    assert notification["previousStatus"] == "pending"
    assert notification["senderName"] == "Ava Stone"


@pytest.mark.asyncio
async def test_notification_failure_does_not_revert_or_raise(memory_store, record_set):
    memory_store.fail_creates.add(NOTIFICATIONS)
    dispatcher = _dispatcher(
        memory_store,
        record_set,
        notification=status_change_notification(NOTIFICATIONS, "assignee.id"),
    )

    result = await dispatcher.dispatch("t1", "approve")

    assert isinstance(result.notification_error, SecondaryWriteError)
    assert result.notification_id is None
    assert record_set.find("t1")["status"] == "approved"


@pytest.mark.asyncio
async def test_notification_skipped_without_recipient():
    store = InMemoryDataStore({TASK.collection: [{"id": "solo", "status": "pending"}]})
    records = RecordSet([{"id": "solo", "status": "pending"}])
    dispatcher = _dispatcher(store, records, notification=status_change_notification(NOTIFICATIONS, "assignee.id"))

    result = await dispatcher.dispatch("solo", "complete")

    assert result.notification_id is None
    assert result.notification_error is None
    assert NOTIFICATIONS not in store.collections()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action, status",
    [("reject", "rejected"), ("revoke", "revoked"), ("request_changes", "changes_requested"), ("start", "in_progress")],
)
async def test_named_actions_map_to_statuses(memory_store, record_set, action, status):
    result = await _dispatcher(memory_store, record_set).dispatch("t1", action)
    assert result.record["status"] == status


@pytest.mark.asyncio
async def test_submit_feedback_keeps_status(memory_store, record_set):
    result = await _dispatcher(memory_store, record_set).dispatch(
        "t2", "submit_feedback", feedback="Great work", rating=5
    )
    assert result.record["status"] == "approved"
    assert result.record["feedback"] == "Great work"
    assert result.record["rating"] == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6])
async def test_submit_feedback_rejects_out_of_range_rating(memory_store, record_set, rating):
    with pytest.raises(ValueError, match="rating"):
        await _dispatcher(memory_store, record_set).dispatch("t2", "submit_feedback", rating=rating)
    assert memory_store.update_calls == []


@pytest.mark.asyncio
async def test_unknown_action_is_rejected(memory_store, record_set):
    with pytest.raises(ValueError, match="Unknown action"):
        await _dispatcher(memory_store, record_set).dispatch("t1", "teleport")


@pytest.mark.asyncio
async def test_reload_during_write_skips_local_patch(record_set):
    class ReloadingStore(InMemoryDataStore):
        async def update(self, collection, record_id, fields):
            await super().update(collection, record_id, fields)
            record_set.replace_all([])

    store = ReloadingStore({TASK.collection: list(record_set.records)})

    result = await _dispatcher(store, record_set).apply_action("t1", "completed")

    assert result.record["status"] == "completed"
    assert record_set.records == ()


def test_record_set_patch_unknown_id_raises():
    with pytest.raises(KeyError):
        RecordSet([{"id": "a"}]).patch("b", {"status": "x"})


def test_identity_without_user_yields_no_sender():
    assert StaticIdentity.for_user_id(None).current_user() is None
