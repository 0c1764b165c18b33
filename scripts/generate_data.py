"""
Seed data generation and loading script for DXD Magnate Views.

Implements deterministic pseudo-random dashboard documents (projects, tasks,
approval requests, activities, transactions, contacts, meetings, milestones,
reports), JSON emission for the in-memory backend, and Postgres COPY loading
into the documents table.
"""

from __future__ import annotations

import json
import random
import sys
import time
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List

import typer

from magnate.domain.kinds import (
    ACTIVITY,
    APPROVAL_REQUEST,
    CONTACT,
    MEETING,
    MILESTONE,
    PROJECT,
    REPORT,
    TASK,
    TRANSACTION,
)
from magnate.infrastructure.db_factory import ensure_schema, get_sync_connection

app = typer.Typer(help="Generate synthetic dashboard documents (JSON) and optionally load them into Postgres.")

ADMIN_REPORTS = "admin-reports"
DEFAULT_ANCHOR = "2025-01-01T00:00:00+00:00"

_FIRST_NAMES = ["Ava", "Noah", "Mia", "Liam", "Zoe", "Ethan", "Isla", "Omar", "Lena", "Ravi"]
_LAST_NAMES = ["Stone", "Park", "Diaz", "Khan", "Meyer", "Silva", "Ng", "Brooks", "Ito", "Moreau"]
_PROJECT_TYPES = ["Web Development", "Mobile App", "Branding", "Marketing Campaign"]
_TASK_TYPES = ["design", "development", "content", "review"]
_ACTIVITY_ACTIONS = ["login", "logout", "password_change", "session_revoked", "failed_login", "profile_update"]
_REPORT_TYPES = ["performance", "financial", "project", "other"]
_DEPARTMENTS = ["Engineering", "Design", "Finance", "Marketing", "Operations"]


def _id(rng: random.Random) -> str:
    return uuid.UUID(int=rng.getrandbits(128)).hex


def _person(rng: random.Random) -> str:
    return f"{rng.choice(_FIRST_NAMES)} {rng.choice(_LAST_NAMES)}"


def _moment(rng: random.Random, anchor: datetime, days_back: int = 365) -> str:
    offset = timedelta(days=rng.randint(0, days_back), minutes=rng.randint(0, 24 * 60 - 1))
    return (anchor - offset).isoformat()


def _maybe(rng: random.Random, value: Any, probability: float = 0.9) -> Any:
    """Return ``value`` most of the time, None otherwise (absent field)."""
    return value if rng.random() < probability else None


def _status(rng: random.Random, statuses: tuple[str, ...]) -> Any:
    # Occasional odd casing or missing value exercises the fallback buckets.
    roll = rng.random()
    if roll < 0.05:
        return None
    if roll < 0.1:
        return rng.choice(statuses).lower()
    return rng.choice(statuses)


def _compact(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in doc.items() if value is not None}


def generate_documents(
    clients: int = 5,
    projects_per_client: int = 3,
    tasks_per_project: int = 6,
    seed: int = 42,
    anchor: datetime | None = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Build a deterministic set of dashboard documents keyed by collection name.

    Same arguments always produce the same documents (ids included).
    """
    rng = random.Random(seed)
    anchor = anchor or datetime.fromisoformat(DEFAULT_ANCHOR)
    docs: Dict[str, List[Dict[str, Any]]] = {
        kind.collection: []
        for kind in (PROJECT, TASK, APPROVAL_REQUEST, ACTIVITY, TRANSACTION, CONTACT, MEETING, MILESTONE, REPORT)
    }
    docs[ADMIN_REPORTS] = []

    managers = [_person(rng) for _ in range(4)]

    for _ in range(clients):
        client_id = _id(rng)
        client_name = _person(rng)
        email = client_name.lower().replace(" ", ".") + "@example.com"

        for _ in range(projects_per_client):
            project_id = _id(rng)
            title = f"{rng.choice(['Atlas', 'Beacon', 'Cobalt', 'Drift', 'Ember'])} {rng.choice(_PROJECT_TYPES)}"
            project_type = rng.choice(_PROJECT_TYPES)
            docs[PROJECT.collection].append(
                _compact(
                    {
                        "id": project_id,
                        "title": title,
                        "description": f"{project_type} engagement for {client_name}",
                        "clientId": client_id,
                        "clientName": client_name,
                        "projectManager": _maybe(rng, rng.choice(managers), 0.85),
                        "status": _status(rng, PROJECT.statuses),
                        "priority": _maybe(rng, rng.choice(PROJECT.priorities)),
                        "type": project_type,
                        "createdAt": _moment(rng, anchor),
                    }
                )
            )

            for index in range(tasks_per_project):
                docs[TASK.collection].append(
                    _compact(
                        {
                            "id": _id(rng),
                            "title": f"{rng.choice(_TASK_TYPES).title()} task {index + 1} for {title}",
                            "description": _maybe(rng, f"Deliverable {index + 1} of {title}"),
                            "status": _status(rng, TASK.statuses),
                            "priority": rng.choice(TASK.priorities),
                            "type": rng.choice(_TASK_TYPES),
                            "projectId": project_id,
                            "assignee": {"id": client_id, "name": client_name},
                            "createdAt": _maybe(rng, _moment(rng, anchor)),
                            "dueDate": _maybe(rng, _moment(rng, anchor, 120), 0.8),
                        }
                    )
                )

            docs[MILESTONE.collection].append(
                {
                    "id": _id(rng),
                    "clientId": client_id,
                    "projectId": project_id,
                    "title": f"{title} launch",
                    "description": f"Launch milestone for {title}",
                    "dueDate": _moment(rng, anchor, 90),
                    "status": rng.choice(MILESTONE.statuses),
                }
            )

            amount = round(rng.uniform(500, 25_000), 2)
            docs[TRANSACTION.collection].append(
                _compact(
                    {
                        "id": _id(rng),
                        "clientId": client_id,
                        "projectId": project_id,
                        "projectTitle": title,
                        "projectType": _maybe(rng, project_type),
                        "amount": amount,
                        "paymentId": f"pay_{rng.getrandbits(48):012x}",
                        "status": rng.choice(TRANSACTION.statuses),
                        "timestamp": _maybe(rng, _moment(rng, anchor), 0.95),
                    }
                )
            )

            docs[APPROVAL_REQUEST.collection].append(
                _compact(
                    {
                        "id": _id(rng),
                        "clientId": client_id,
                        "clientName": client_name,
                        "projectId": project_id,
                        "message": f"Please review the latest {title} deliverables",
                        "status": _status(rng, APPROVAL_REQUEST.statuses),
                        "requestedAt": _moment(rng, anchor, 60),
                        "response": _maybe(rng, "Looks good overall", 0.3),
                    }
                )
            )

        for _ in range(rng.randint(2, 4)):
            action = rng.choice(_ACTIVITY_ACTIONS)
            docs[ACTIVITY.collection].append(
                {
                    "id": _id(rng),
                    "userId": client_id,
                    "userEmail": email,
                    "action": action,
                    "activityType": "security" if action != "profile_update" else "account",
                    "status": "failed" if action == "failed_login" else "success",
                    "details": f"{action.replace('_', ' ')} from web dashboard",
                    "timestamp": _moment(rng, anchor, 30),
                }
            )

        for _ in range(rng.randint(2, 5)):
            contact = _person(rng)
            is_external = rng.random() < 0.3
            docs[CONTACT.collection].append(
                _compact(
                    {
                        "id": _id(rng),
                        "clientId": client_id,
                        "name": contact,
                        "email": contact.lower().replace(" ", ".") + "@example.com",
                        "department": rng.choice(_DEPARTMENTS),
                        "projectRole": _maybe(rng, rng.choice(["Lead", "Reviewer", "Stakeholder"]), 0.5),
                        "isManagement": rng.random() < 0.25,
                        "isExternal": is_external,
                        "status": rng.choice(CONTACT.statuses),
                        "createdAt": _moment(rng, anchor),
                    }
                )
            )

        docs[MEETING.collection].append(
            {
                "id": _id(rng),
                "clientId": client_id,
                "title": f"Weekly sync with {client_name}",
                "agenda": "Progress review and next steps",
                "organizer": rng.choice(managers),
                "date": _moment(rng, anchor, 14),
                "status": rng.choice(MEETING.statuses),
            }
        )

    for collection in (REPORT.collection, ADMIN_REPORTS):
        for _ in range(rng.randint(3, 6)):
            report_type = rng.choice(_REPORT_TYPES)
            docs[collection].append(
                {
                    "id": _id(rng),
                    "title": f"{report_type.title()} report",
                    "type": report_type,
                    "status": rng.choice(REPORT.statuses),
                    "createdAt": _moment(rng, anchor, 90),
                }
            )

    return docs


def _write_json(path: Path, docs: Dict[str, List[Dict[str, Any]]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(docs, f, indent=2)


def _copy_into_db(dsn: str | None, docs: Dict[str, List[Dict[str, Any]]], replace: bool) -> int:
    loaded = 0
    with get_sync_connection(dsn) as conn:
        ensure_schema(conn)
        with conn.cursor() as cur:
            if replace:
                cur.execute("DELETE FROM public.documents WHERE collection = ANY(%s)", (list(docs),))
            with cur.copy("COPY public.documents (collection, id, body) FROM STDIN") as copy:
                for collection, records in docs.items():
                    for record in records:
                        copy.write_row((collection, record["id"], json.dumps(record)))
                        loaded += 1
        conn.commit()
    return loaded


@app.command()
def main(
    clients: int = typer.Option(5, "--clients", "-c", help="Number of client accounts to generate."),
    projects: int = typer.Option(3, "--projects", "-p", help="Projects per client."),
    tasks: int = typer.Option(6, "--tasks", "-t", help="Tasks per project."),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    anchor: str = typer.Option(
        DEFAULT_ANCHOR,
        "--anchor",
        help="Newest possible timestamp (ISO 8601); generated dates fall before it.",
    ),
    output: Path = typer.Option(
        Path("data/seed.json"),
        "--output",
        "-o",
        help="JSON output path, usable as SEED_FILE for the memory backend.",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    load: bool = typer.Option(
        False,
        "--load/--no-load",
        help="Also load the documents into Postgres using COPY.",
    ),
    replace: bool = typer.Option(
        True,
        "--replace/--append",
        help="When loading, delete existing documents of the generated collections first.",
    ),
) -> None:
    """
    Generate synthetic dashboard documents and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    try:
        anchor_at = datetime.fromisoformat(anchor)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid anchor '{anchor}'") from exc
    if anchor_at.tzinfo is None:
        anchor_at = anchor_at.replace(tzinfo=UTC)

    docs = generate_documents(
        clients=clients,
        projects_per_client=projects,
        tasks_per_project=tasks,
        seed=seed,
        anchor=anchor_at,
    )
    total = sum(len(records) for records in docs.values())
    _write_json(output, docs)
    gen_duration = time.perf_counter() - start
    typer.echo(f"Generated {total:,} documents in {len(docs)} collections -> {output} ({gen_duration:.2f}s)")

    if not load:
        return

    load_start = time.perf_counter()
    typer.echo("Loading documents into Postgres via COPY...")
    loaded = _copy_into_db(dsn, docs, replace=replace)
    load_duration = time.perf_counter() - load_start
    typer.echo(f"Loaded {loaded:,} documents in {load_duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
