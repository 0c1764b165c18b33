"""
Dashboard report aggregations.

Pure functions over fetched record sets: the project status report, the
financial summary, the "recent reports" list merged from several report
collections, and a few small display derivations (task progress, activity
labels, transaction numbers).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from magnate.domain.kinds import PROJECT
from magnate.domain.models import DateRange, Record, SortDirection, resolve_field
from magnate.domain.timestamps import to_datetime
from magnate.pipeline.counters import count_by_field, count_by_status
from magnate.pipeline.sorting import sort_records

RECENT_REPORTS_LIMIT = 4


class NamedValue(BaseModel):
    name: str
    value: float


class ManagerPerformance(BaseModel):
    name: str
    total: int
    completed: int
    delayed: int
    completion_rate: int


class ProjectStatusReport(BaseModel):
    total_projects: int
    status_distribution: List[NamedValue]
    priority_distribution: List[NamedValue]
    managers_performance: List[ManagerPerformance]
    type_distribution: List[NamedValue] = Field(default_factory=list)


class FinancialSummary(BaseModel):
    total_revenue: float
    total_transactions: int
    average_revenue: float
    revenue_by_type: List[NamedValue] = Field(default_factory=list)
    monthly_revenue: List[NamedValue] = Field(default_factory=list)


def _within(records: Iterable[Record], field: str, date_range: Optional[DateRange]) -> List[Record]:
    if date_range is None or date_range.is_open:
        return list(records)
    return [record for record in records if date_range.contains(resolve_field(record, field))]


def _named(counts: Dict[str, Any]) -> List[NamedValue]:
    return [NamedValue(name=name, value=value) for name, value in counts.items()]


def _amount(record: Record) -> float:
    value = record.get("amount")
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def project_status_report(
    projects: Iterable[Record],
    date_range: Optional[DateRange] = None,
) -> ProjectStatusReport:
    """
    Status, priority, type and per-manager breakdown of projects created in
    ``date_range``.

    Every known status and priority is listed even at zero. Projects without
    a status count as "Not started", without a priority as "Medium", and
    without a manager under "Unassigned".
    """
    selected = _within(projects, "createdAt", date_range)

    statuses = count_by_status(selected, PROJECT, seed_known=True)

    priorities: Dict[str, int] = {name: 0 for name in PROJECT.priorities}
    for project in selected:
        priority = PROJECT.priority_of(project) or "Medium"
        priorities[priority] = priorities.get(priority, 0) + 1

    managers: Dict[str, Dict[str, int]] = {}
    for project in selected:
        name = resolve_field(project, "projectManager") or "Unassigned"
        stats = managers.setdefault(str(name), {"total": 0, "completed": 0, "delayed": 0})
        stats["total"] += 1
        status = PROJECT.status_of(project)
        if status == "Completed":
            stats["completed"] += 1
        elif status == "Delayed":
            stats["delayed"] += 1

    return ProjectStatusReport(
        total_projects=len(selected),
        status_distribution=_named(statuses.counts),
        priority_distribution=_named(priorities),
        managers_performance=[
            ManagerPerformance(
                name=name,
                completion_rate=round(stats["completed"] / stats["total"] * 100) if stats["total"] else 0,
                **stats,
            )
            for name, stats in managers.items()
        ],
        type_distribution=type_distribution(selected),
    )


def financial_summary(
    transactions: Iterable[Record],
    date_range: Optional[DateRange] = None,
) -> FinancialSummary:
    """
    Revenue totals for transactions in ``date_range``.

    Monthly buckets are labelled "Mon YYYY" and listed chronologically;
    transactions without a timestamp contribute to totals (when no range is
    active) but to no month.
    """
    selected = _within(transactions, "timestamp", date_range)

    total = sum(_amount(txn) for txn in selected)
    count = len(selected)

    by_type: Dict[str, float] = {}
    for txn in selected:
        project_type = resolve_field(txn, "projectType") or "Other"
        by_type[str(project_type)] = by_type.get(str(project_type), 0.0) + _amount(txn)

    monthly: Dict[Tuple[int, int], float] = {}
    for txn in selected:
        moment = to_datetime(resolve_field(txn, "timestamp"))
        if moment is None:
            continue
        bucket = (moment.year, moment.month)
        monthly[bucket] = monthly.get(bucket, 0.0) + _amount(txn)

    return FinancialSummary(
        total_revenue=total,
        total_transactions=count,
        average_revenue=total / count if count else 0.0,
        revenue_by_type=_named(by_type),
        monthly_revenue=[
            NamedValue(name=datetime(year, month, 1).strftime("%b %Y"), value=value)
            for (year, month), value in sorted(monthly.items())
        ],
    )


def recent_reports(
    *sources: Sequence[Record],
    limit: int = RECENT_REPORTS_LIMIT,
) -> List[Record]:
    """Merge report sets from several collections, newest first, keep ``limit``."""
    merged: List[Record] = [report for source in sources for report in source]
    return sort_records(merged, "createdAt", SortDirection.NEWEST_FIRST)[:limit]


def task_progress(task: Record) -> int:
    """Completion percentage shown on a task card."""
    status = str(task.get("status") or "").lower()
    if status in ("completed", "approved"):
        return 100
    if status == "in_progress":
        return 50
    if status == "rejected":
        return 0
    return 10


_ACTION_LABELS = {
    "password_change": "Password Changed",
    "login": "User Login",
    "logout": "User Logout",
    "session_revoked": "Session Revoked",
    "failed_login": "Failed Login Attempt",
}


def format_action_name(action: Optional[str]) -> str:
    if not action:
        return "Unknown"
    return _ACTION_LABELS.get(action, action.replace("_", " "))


def transaction_number(record_id: str) -> str:
    return f"TXN-{record_id[:8].upper()}"


def with_transaction_numbers(transactions: Iterable[Record]) -> List[Dict[str, Any]]:
    """Copy transactions adding the derived ``transactionNumber`` used by search."""
    return [
        {**txn, "transactionNumber": transaction_number(str(txn.get("id", "")))}
        for txn in transactions
    ]


def type_distribution(records: Iterable[Record], field: str = "type") -> List[NamedValue]:
    return _named(count_by_field(records, field).counts)


__all__ = [
    "RECENT_REPORTS_LIMIT",
    "NamedValue",
    "ManagerPerformance",
    "ProjectStatusReport",
    "FinancialSummary",
    "project_status_report",
    "financial_summary",
    "recent_reports",
    "task_progress",
    "format_action_name",
    "transaction_number",
    "with_transaction_numbers",
    "type_distribution",
]
