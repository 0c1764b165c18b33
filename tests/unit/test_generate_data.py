import json
from pathlib import Path

from typer.testing import CliRunner

from magnate.domain.kinds import PROJECT, TASK, TRANSACTION
from magnate.domain.timestamps import to_datetime
from scripts import generate_data

CLIENTS = 2
PROJECTS_PER_CLIENT = 3
TASKS_PER_PROJECT = 4


def test_generation_is_deterministic():
    first = generate_data.generate_documents(clients=CLIENTS, seed=123)
    second = generate_data.generate_documents(clients=CLIENTS, seed=123)
    other = generate_data.generate_documents(clients=CLIENTS, seed=124)
    assert first == second
    assert first != other


def test_generation_shape():
    docs = generate_data.generate_documents(
        clients=CLIENTS,
        projects_per_client=PROJECTS_PER_CLIENT,
        tasks_per_project=TASKS_PER_PROJECT,
        seed=1,
    )
    assert len(docs[PROJECT.collection]) == CLIENTS * PROJECTS_PER_CLIENT
    assert len(docs[TASK.collection]) == CLIENTS * PROJECTS_PER_CLIENT * TASKS_PER_PROJECT
    assert len(docs[TRANSACTION.collection]) == CLIENTS * PROJECTS_PER_CLIENT
    assert generate_data.ADMIN_REPORTS in docs

    ids = [doc["id"] for records in docs.values() for doc in records]
    assert len(ids) == len(set(ids))

    anchor = to_datetime(generate_data.DEFAULT_ANCHOR)
    for task in docs[TASK.collection]:
        assert task["assignee"]["id"]
        if "createdAt" in task:
            assert to_datetime(task["createdAt"]) <= anchor


def test_cli_writes_json_without_loading(tmp_path: Path):
    output = tmp_path / "seed.json"
    result = CliRunner().invoke(generate_data.app, ["--clients", "1", "--seed", "9", "--output", str(output)])

    assert result.exit_code == 0, result.output
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert len(payload[PROJECT.collection]) == 3
    assert "Generated" in result.stdout
