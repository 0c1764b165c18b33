from __future__ import annotations

import asyncio
import json
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from magnate.config import get_settings
from magnate.controller import ViewController
from magnate.datastore import (
    AbstractDataStore,
    InMemoryDataStore,
    LocalAssetUploader,
    StaticIdentity,
    available_backends,
    build_datastore,
)
from magnate.dispatcher import NotificationSpec, available_actions, status_change_notification
from magnate.domain.kinds import PROJECT, REPORT, TRANSACTION, RecordKind, available_kinds, describe, get_kind
from magnate.domain.models import DateRange, Predicate
from magnate.errors import FetchError, MagnateError
from magnate.fetcher import CollectionFetcher
from magnate.reporter import (
    print_counts,
    print_financial_summary,
    print_mapping,
    print_page,
    print_project_report,
    print_recent_reports,
)
from magnate.reports import (
    financial_summary,
    project_status_report,
    recent_reports,
    with_transaction_numbers,
)
from magnate.utils.logging import configure_logging, get_logger

app = typer.Typer(help="DXD Magnate Views CLI.")
console = Console()
log = get_logger(__name__)

NOTIFICATIONS_COLLECTION = "notifications"
REPORT_SOURCES = (REPORT.collection, "admin-reports")
REPORT_TYPES = ["performance", "financial", "project"]


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _parse_facets(values: Optional[List[str]]) -> Dict[str, str]:
    facets: Dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Facet '{item}' must look like name=value")
        facets[name.strip()] = value.strip()
    return facets


def _date_range(start: Optional[str], end: Optional[str]) -> Optional[DateRange]:
    """
    Build a DateRange from CLI strings. A bare ``YYYY-MM-DD`` end date covers
    that whole day.
    """
    if not start and not end:
        return None
    end_value: Any = end
    if end and len(end) == 10:
        try:
            day = date.fromisoformat(end)
        except ValueError:
            pass
        else:
            end_value = datetime.combine(day + timedelta(days=1), time.min, tzinfo=timezone.utc) - timedelta(
                microseconds=1
            )
    try:
        return DateRange(start=start, end=end_value)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid date range: {exc.errors()[0]['msg']}") from exc


def _notification_for(kind: RecordKind) -> Optional[NotificationSpec]:
    if kind.owner_field is None:
        return None
    return status_change_notification(NOTIFICATIONS_COLLECTION, kind.owner_field)


def _build_view(kind: RecordKind, store: AbstractDataStore, user: Optional[str]) -> ViewController:
    settings = get_settings()
    identity = StaticIdentity.for_user_id(user) if user else None
    return ViewController(
        kind,
        store,
        identity=identity,
        owner_scoped=identity is not None and kind.owner_field is not None,
        notification=_notification_for(kind),
        uploader=LocalAssetUploader(settings.upload_dir),
        enrich=with_transaction_numbers if kind is TRANSACTION else None,
    )


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except MagnateError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


def _resolve_kind(name: str) -> RecordKind:
    try:
        return get_kind(name)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    backend = settings.datastore_backend
    if backend == "postgres":
        target = f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    else:
        target = settings.seed_file or "(empty)"
    typer.echo(
        f"env={settings.app_env} | backend={backend} ({target}) | "
        f"page_size={settings.default_page_size} sort={settings.default_sort} "
        f"notifications={'on' if settings.notifications_enabled else 'off'}"
    )
    typer.echo("Available backends: " + ", ".join(available_backends()))


@app.command()
def kinds(
    name: Optional[str] = typer.Argument(None, help="Show one kind in detail."),
) -> None:
    """
    List record kinds, or describe one.
    """
    if name:
        print_mapping(f"Kind: {name}", describe(_resolve_kind(name)), console=console)
        return
    typer.echo("Available kinds: " + ", ".join(available_kinds()))
    typer.echo("Available actions: " + ", ".join(available_actions()))


@app.command()
def view(
    kind_name: str = typer.Argument(..., metavar="KIND", help="Record kind (e.g., task, project)."),
    query: str = typer.Option("", "--query", "-q", help="Free-text search."),
    status: Optional[str] = typer.Option(None, "--status", help="Status facet."),
    priority: Optional[str] = typer.Option(None, "--priority", help="Priority facet."),
    tab: Optional[str] = typer.Option(None, "--tab", help="Tab facet (contacts)."),
    facet: Optional[List[str]] = typer.Option(None, "--facet", "-f", help="Extra facet as name=value."),
    sort: Optional[str] = typer.Option(None, "--sort", help="newest_first or oldest_first."),
    page: int = typer.Option(1, "--page", "-p", min=1),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Scope to records owned by this user id."),
    start: Optional[str] = typer.Option(None, "--from", help="Start of date range (inclusive)."),
    end: Optional[str] = typer.Option(None, "--to", help="End of date range (inclusive)."),
    as_json: bool = typer.Option(False, "--json", help="Print the page as JSON."),
) -> None:
    """
    Fetch a collection and show one filtered, sorted page of it.
    """
    _setup()
    kind = _resolve_kind(kind_name)
    facets = _parse_facets(facet)
    for name, value in (("status", status), ("priority", priority), ("tab", tab)):
        if value:
            facets[name] = value
    date_range = _date_range(start, end)

    async def _view() -> None:
        store = build_datastore()
        try:
            controller = _build_view(kind, store, user)
            if sort:
                controller.set_sort(sort)
            if page_size:
                controller.set_page_size(page_size)
            await controller.load()
            controller.set_query(query)
            for name, value in facets.items():
                controller.set_facet(name, value)
            controller.set_date_range(date_range)
            controller.go_to_page(page)
            snapshot = controller.render()
        finally:
            await store.close()

        if as_json:
            typer.echo(
                json.dumps(
                    {
                        "state": snapshot.load_state.value,
                        "page": snapshot.page.page,
                        "total_pages": snapshot.page.total_pages,
                        "total_items": snapshot.page.total_items,
                        "items": list(snapshot.page.items),
                    },
                    indent=2,
                    default=str,
                )
            )
        else:
            print_page(snapshot, kind, console=console)
        if snapshot.error:
            raise typer.Exit(code=1)

    try:
        _run(_view())
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def counts(
    kind_name: str = typer.Argument(..., metavar="KIND"),
    user: Optional[str] = typer.Option(None, "--user", "-u"),
) -> None:
    """
    Show per-status badge counts over the full fetched set.
    """
    _setup()
    kind = _resolve_kind(kind_name)

    async def _counts() -> None:
        store = build_datastore()
        try:
            controller = _build_view(kind, store, user)
            await controller.load()
        finally:
            await store.close()
        if controller.error is not None:
            raise controller.error
        print_counts(controller.counts(), title=f"{kind.name} status counts", console=console)

    _run(_counts())


@app.command()
def action(
    kind_name: str = typer.Argument(..., metavar="KIND"),
    record_id: str = typer.Argument(...),
    action_name: str = typer.Argument(..., metavar="ACTION", help="approve, reject, revoke, ..."),
    feedback: Optional[str] = typer.Option(None, "--feedback"),
    rating: Optional[int] = typer.Option(None, "--rating", min=1, max=5),
    attachment: Optional[Path] = typer.Option(None, "--attach", exists=True, dir_okay=False),
    user: Optional[str] = typer.Option(None, "--user", "-u"),
    write_back: bool = typer.Option(
        False,
        "--write-back/--no-write-back",
        help="Memory backend: save the updated store back to SEED_FILE.",
    ),
) -> None:
    """
    Apply a named action to one record and show the updated record.
    """
    _setup()
    kind = _resolve_kind(kind_name)
    settings = get_settings()

    async def _action() -> None:
        store = build_datastore()
        try:
            controller = _build_view(kind, store, user)
            await controller.load()
            if controller.error is not None:
                raise controller.error
            if action_name == "submit_feedback":
                payload = (attachment.name, attachment.read_bytes()) if attachment else None
                result = await controller.submit_feedback(record_id, feedback, rating, attachment=payload)
            else:
                result = await controller.apply_action(record_id, action_name, feedback=feedback, rating=rating)
        finally:
            await store.close()

        print_mapping(f"{kind.name} {record_id}", dict(result.record), console=console)
        if result.notification_error is not None:
            console.print(f"[yellow]Notification not sent: {result.notification_error}[/yellow]")
        if write_back and isinstance(store, InMemoryDataStore) and settings.seed_file:
            Path(settings.seed_file).write_text(json.dumps(store.dump(), indent=2, default=str), encoding="utf-8")
            log.info("Wrote store back to seed file", extra={"seed_file": settings.seed_file})

    try:
        _run(_action())
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def report(
    which: str = typer.Argument("project", help="project, financial or recent."),
    start: Optional[str] = typer.Option(None, "--from"),
    end: Optional[str] = typer.Option(None, "--to"),
) -> None:
    """
    Print a dashboard report.
    """
    _setup()
    date_range = _date_range(start, end)
    if which not in ("project", "financial", "recent"):
        raise typer.BadParameter(f"Unknown report '{which}'. Available: project, financial, recent")

    async def _report() -> None:
        store = build_datastore()
        fetcher = CollectionFetcher(store)
        try:
            if which == "project":
                projects = await fetcher.fetch(PROJECT.collection)
                print_project_report(project_status_report(projects, date_range), console=console)
            elif which == "financial":
                transactions = await fetcher.fetch(TRANSACTION.collection)
                print_financial_summary(financial_summary(transactions, date_range), console=console)
            else:
                outcomes = await fetcher.fetch_many(
                    {
                        source: (source, [Predicate.isin("type", REPORT_TYPES)])
                        for source in REPORT_SOURCES
                    }
                )
                loaded = []
                errors: List[FetchError] = []
                for outcome in outcomes.values():
                    if isinstance(outcome, FetchError):
                        errors.append(outcome)
                    else:
                        loaded.append(outcome)
                if errors and not loaded:
                    raise errors[0]
                for error in errors:
                    console.print(f"[yellow]{error}[/yellow]")
                print_recent_reports(recent_reports(*loaded), console=console)
        finally:
            await store.close()

    _run(_report())


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
