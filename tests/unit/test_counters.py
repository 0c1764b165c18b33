from __future__ import annotations

from magnate.domain.kinds import PROJECT, TASK
from magnate.pipeline.counters import UNKNOWN, count_by_field, count_by_status
from magnate.pipeline.filtering import filter_for_kind, filter_records

STATUSES = ["pending", "pending", "approved", "rejected", "pending"]
RECORDS = [{"id": f"r{n}", "title": f"Task {n}", "status": status} for n, status in enumerate(STATUSES)]
EXPECTED_COUNTS = {"pending": 3, "approved": 1, "rejected": 1}


def test_counts_by_raw_status():
    counts = count_by_status(RECORDS)
    assert counts.counts == EXPECTED_COUNTS
    assert counts.total == len(RECORDS)


def test_counts_unaffected_by_filtering_the_visible_list():
    visible = filter_records(RECORDS, query="Task 2", search_fields=("title",))
    assert len(visible) == 1
    assert count_by_status(RECORDS).counts == EXPECTED_COUNTS


def test_kind_maps_unknown_and_missing_into_fallback(sample_tasks):
    counts = count_by_status(sample_tasks, TASK)
    # t6 "archived" is not a task status and falls back to pending.
    assert counts.get("pending") == 3
    assert counts.get("in_progress") == 1
    assert counts.total == len(sample_tasks)
    assert sum(counts.counts.values()) == counts.total


def test_seed_known_lists_every_status_at_zero():
    counts = count_by_status([{"id": "p1", "status": "completed"}], PROJECT, seed_known=True)
    assert list(counts.counts) == list(PROJECT.statuses)
    assert counts.get("Completed") == 1
    assert counts.get("Delayed") == 0


def test_count_by_field_buckets_absent_values():
    records = [{"type": "design"}, {"type": ""}, {}, {"type": "design"}]
    counts = count_by_field(records, "type")
    assert counts.counts == {"design": 2, UNKNOWN: 2}


def test_count_by_field_uses_custom_default_and_seed():
    counts = count_by_field([{"priority": "High"}, {}], "priority", default="Medium", seed=("High", "Medium", "Low"))
    assert counts.counts == {"High": 1, "Medium": 1, "Low": 0}


def test_status_facet_agrees_with_status_counts(sample_tasks):
    records = [*sample_tasks, {"id": "t7", "title": "No status"}]
    counts = count_by_status(records, TASK)
    for status in TASK.statuses:
        assert counts.get(status) == len(filter_for_kind(records, TASK, facets={"status": status}))
