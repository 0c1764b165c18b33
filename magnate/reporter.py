from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from magnate.controller import LoadState, ViewSnapshot
from magnate.domain.kinds import RecordKind
from magnate.domain.models import Record, StatusCounts, resolve_field
from magnate.domain.timestamps import to_datetime
from magnate.reports import FinancialSummary, ProjectStatusReport, format_action_name, task_progress

MAX_CELL = 48

# Columns computed from the record instead of read from a stored field.
DERIVED_COLUMNS: Dict[str, Dict[str, Callable[[Record], str]]] = {
    "task": {"progress": lambda record: f"{task_progress(record)}%"},
    "activity": {"action": lambda record: format_action_name(resolve_field(record, "action"))},
}


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    moment = to_datetime(value) if not isinstance(value, (int, float, str)) else None
    if moment is not None:
        return moment.strftime("%Y-%m-%d %H:%M")
    text = str(value)
    return text if len(text) <= MAX_CELL else text[: MAX_CELL - 1] + "…"


def _columns_for(kind: RecordKind) -> List[str]:
    columns = ["id", *kind.search_fields[:2], "status", kind.sort_field, *DERIVED_COLUMNS.get(kind.name, {})]
    seen: List[str] = []
    for column in columns:
        if column not in seen:
            seen.append(column)
    return seen


def page_caption(snapshot: ViewSnapshot) -> str:
    """The "Showing X-Y of Z" line under a list."""
    page = snapshot.page
    if page.is_empty:
        return "No matching records"
    return (
        f"Showing {page.range_start}-{page.range_end} of {page.total_items} "
        f"(page {page.page}/{page.total_pages})"
    )


def print_page(
    snapshot: ViewSnapshot,
    kind: RecordKind,
    console: Optional[Console] = None,
) -> None:
    """
    Render the current page of a view as a rich table.

    Loading, failed and empty states get a one-line message instead of an
    empty table.
    """
    console = console or Console()

    if snapshot.load_state is LoadState.FAILED:
        console.print(f"[red]{snapshot.error or 'Failed to load records.'}[/red]")
        return
    if snapshot.load_state in (LoadState.IDLE, LoadState.LOADING):
        console.print("[yellow]Loading...[/yellow]")
        return
    if snapshot.load_state is LoadState.EMPTY:
        console.print(f"[yellow]No {kind.name} records to display.[/yellow]")
        return

    columns = _columns_for(kind)
    table = Table(
        title=f"{kind.name.replace('_', ' ').title()} ({kind.collection})",
        box=box.ROUNDED,
        caption=page_caption(snapshot),
    )
    for column in columns:
        style = "cyan" if column == "id" else ("magenta" if column == "status" else None)
        table.add_column(column, style=style, no_wrap=column == "id")

    derived = DERIVED_COLUMNS.get(kind.name, {})
    for record in snapshot.page.items:
        row = []
        for column in columns:
            if column == "status":
                row.append(kind.status_of(record))
            elif column in derived:
                row.append(derived[column](record))
            else:
                row.append(_cell(resolve_field(record, column)))
        table.add_row(*row)

    console.print(table)


def print_counts(counts: StatusCounts, title: str = "Status counts", console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title=title, box=box.ROUNDED, caption=f"Total: {counts.total:,}")
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right", style="bold green")
    for status, count in counts.counts.items():
        table.add_row(status, f"{count:,}")
    console.print(table)


def print_project_report(report: ProjectStatusReport, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(f"[bold]Projects:[/bold] {report.total_projects:,}")

    for title, values in (
        ("Status distribution", report.status_distribution),
        ("Priority distribution", report.priority_distribution),
        ("Type distribution", report.type_distribution),
    ):
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Name", style="cyan")
        table.add_column("Projects", justify="right", style="magenta")
        for item in values:
            table.add_row(item.name, f"{int(item.value):,}")
        console.print(table)

    managers = Table(title="Manager performance", box=box.ROUNDED)
    managers.add_column("Manager", style="cyan", no_wrap=True)
    managers.add_column("Total", justify="right")
    managers.add_column("Completed", justify="right", style="green")
    managers.add_column("Delayed", justify="right", style="red")
    managers.add_column("Completion %", justify="right", style="bold green")
    for manager in report.managers_performance:
        managers.add_row(
            manager.name,
            str(manager.total),
            str(manager.completed),
            str(manager.delayed),
            f"{manager.completion_rate}%",
        )
    console.print(managers)


def print_financial_summary(summary: FinancialSummary, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(
        f"[bold]Revenue:[/bold] ${summary.total_revenue:,.2f} over "
        f"{summary.total_transactions:,} transactions "
        f"(avg ${summary.average_revenue:,.2f})"
    )

    by_type = Table(title="Revenue by project type", box=box.ROUNDED)
    by_type.add_column("Type", style="cyan")
    by_type.add_column("Revenue", justify="right", style="bold green")
    for item in summary.revenue_by_type:
        by_type.add_row(item.name, f"${item.value:,.2f}")
    console.print(by_type)

    monthly = Table(title="Monthly revenue", box=box.ROUNDED)
    monthly.add_column("Month", style="cyan")
    monthly.add_column("Revenue", justify="right", style="bold green")
    for item in summary.monthly_revenue:
        monthly.add_row(item.name, f"${item.value:,.2f}")
    console.print(monthly)


def print_recent_reports(reports: Sequence[Record], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not reports:
        console.print("[yellow]No reports to display.[/yellow]")
        return
    table = Table(title="Recent reports", box=box.ROUNDED, caption="Newest first")
    table.add_column("Title", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Created", justify="right")
    for report in reports:
        table.add_row(
            _cell(report.get("title")),
            _cell(report.get("type")),
            _cell(to_datetime(report.get("createdAt"))),
        )
    console.print(table)


def print_mapping(title: str, values: Dict[str, Any], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in values.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(item) for item in value) or "-"
        table.add_row(key, _cell(value))
    console.print(table)


__all__ = [
    "page_caption",
    "print_page",
    "print_counts",
    "print_project_report",
    "print_financial_summary",
    "print_recent_reports",
    "print_mapping",
]
