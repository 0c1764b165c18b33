"""
Record kind profiles.

Each dashboard collection gets one explicit profile naming the fields the
pipeline needs: which text fields the search box scans, which temporal field
orders the list, the closed status enumeration, and the fallback category used
when a stored status is absent or unrecognized. Defaults are chosen per kind;
there is no global default.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from magnate.domain.models import Record, resolve_field

TabPredicate = Callable[[Record], bool]


@dataclass(frozen=True)
class RecordKind:
    name: str
    collection: str
    search_fields: Tuple[str, ...]
    sort_field: str
    statuses: Tuple[str, ...]
    default_status: str
    date_field: Optional[str] = None
    owner_field: Optional[str] = None
    priorities: Tuple[str, ...] = ()
    default_priority: Optional[str] = None
    tabs: Mapping[str, TabPredicate] = field(default_factory=dict)
    facet_fields: Mapping[str, str] = field(default_factory=dict)

    def status_of(self, record: Record) -> str:
        """
        The record's status, mapped onto this kind's enumeration.

        Matching is case-insensitive so "In Progress" and "in progress" land in
        the same bucket; the canonical spelling from ``statuses`` is returned.
        Absent or unknown values fall back to ``default_status``.
        """
        raw = resolve_field(record, "status")
        if not isinstance(raw, str) or not raw.strip():
            return self.default_status
        lowered = raw.strip().lower()
        for status in self.statuses:
            if status.lower() == lowered:
                return status
        return self.default_status

    def priority_of(self, record: Record) -> Optional[str]:
        raw = resolve_field(record, "priority")
        if isinstance(raw, str) and raw.strip():
            lowered = raw.strip().lower()
            for priority in self.priorities:
                if priority.lower() == lowered:
                    return priority
            return raw
        return self.default_priority


def _truthy(path: str) -> TabPredicate:
    def _check(record: Record) -> bool:
        return bool(resolve_field(record, path))

    return _check


PROJECT = RecordKind(
    name="project",
    collection="dxd-magnate-projects",
    search_fields=("title", "description", "clientName", "projectManager"),
    sort_field="createdAt",
    statuses=("In progress", "Completed", "Not started", "Delayed", "On Hold"),
    default_status="Not started",
    date_field="createdAt",
    owner_field="clientId",
    priorities=("High", "Medium", "Low"),
    default_priority="Medium",
)

TASK = RecordKind(
    name="task",
    collection="client-tasks",
    search_fields=("title", "description"),
    sort_field="createdAt",
    statuses=("pending", "in_progress", "completed", "approved", "rejected", "changes_requested"),
    default_status="pending",
    date_field="dueDate",
    owner_field="assignee.id",
    priorities=("High", "Medium", "Low"),
    default_priority="Medium",
    facet_fields={"type": "type"},
)

APPROVAL_REQUEST = RecordKind(
    name="approval_request",
    collection="client-feedback",
    search_fields=("message", "clientName", "response"),
    sort_field="requestedAt",
    statuses=("pending", "approved", "rejected", "changes_requested", "revoked"),
    default_status="pending",
    date_field="requestedAt",
    owner_field="clientId",
)

ACTIVITY = RecordKind(
    name="activity",
    collection="admin-activities",
    search_fields=("action", "activityType", "userEmail", "details"),
    sort_field="timestamp",
    statuses=("success", "failed"),
    default_status="Unknown",
    date_field="timestamp",
    owner_field="userId",
)

TRANSACTION = RecordKind(
    name="transaction",
    collection="platform-transactions",
    search_fields=("projectTitle", "transactionNumber", "paymentId", "amount"),
    sort_field="timestamp",
    statuses=("completed", "pending", "failed", "refunded"),
    default_status="Unknown",
    date_field="timestamp",
    owner_field="clientId",
)

CONTACT = RecordKind(
    name="contact",
    collection="contacts",
    search_fields=("name", "projectRole", "department", "email"),
    sort_field="createdAt",
    statuses=("active", "inactive"),
    default_status="active",
    owner_field="clientId",
    tabs={
        "project": _truthy("projectRole"),
        "management": _truthy("isManagement"),
        "external": _truthy("isExternal"),
    },
)

MEETING = RecordKind(
    name="meeting",
    collection="client-meetings",
    search_fields=("title", "agenda", "organizer"),
    sort_field="date",
    statuses=("upcoming", "in-progress", "completed", "cancelled"),
    default_status="upcoming",
    date_field="date",
    owner_field="clientId",
)

MILESTONE = RecordKind(
    name="milestone",
    collection="project-milestones",
    search_fields=("title", "description"),
    sort_field="dueDate",
    statuses=("upcoming", "in-progress", "completed"),
    default_status="upcoming",
    date_field="dueDate",
    owner_field="clientId",
    facet_fields={"project": "projectId"},
)

REPORT = RecordKind(
    name="report",
    collection="reports",
    search_fields=("title", "type"),
    sort_field="createdAt",
    statuses=("ready", "generating", "failed"),
    default_status="ready",
    date_field="createdAt",
)

_REGISTRY: Dict[str, RecordKind] = {
    kind.name: kind
    for kind in (
        PROJECT,
        TASK,
        APPROVAL_REQUEST,
        ACTIVITY,
        TRANSACTION,
        CONTACT,
        MEETING,
        MILESTONE,
        REPORT,
    )
}


def available_kinds() -> List[str]:
    """List registered record kind names."""
    return sorted(_REGISTRY)


def get_kind(name: str) -> RecordKind:
    if name not in _REGISTRY:
        raise ValueError(f"Unknown record kind '{name}'. Available: {', '.join(available_kinds())}")
    return _REGISTRY[name]


def describe(kind: RecordKind) -> Dict[str, Any]:
    """Plain-dict summary of a kind, for CLI output."""
    return {
        "name": kind.name,
        "collection": kind.collection,
        "search_fields": list(kind.search_fields),
        "sort_field": kind.sort_field,
        "statuses": list(kind.statuses),
        "default_status": kind.default_status,
        "default_priority": kind.default_priority,
        "tabs": sorted(kind.tabs),
    }


__all__ = [
    "RecordKind",
    "PROJECT",
    "TASK",
    "APPROVAL_REQUEST",
    "ACTIVITY",
    "TRANSACTION",
    "CONTACT",
    "MEETING",
    "MILESTONE",
    "REPORT",
    "available_kinds",
    "get_kind",
    "describe",
]
