# tests/test_backends.py

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from task_flow.backends import (
    Condition,
    Database,
    FieldMap,
    RecordApiClient,
    RemoteBackend,
    memory_backends,
    remote,
    sqlite_backends,
)
from task_flow.backends.sqlite import CURRENT_SCHEMA_VERSION
from task_flow.errors import NotFound, TaskFlowError, TransportError, ValidationError
from task_flow.store import TaskStore

from .fakes import FakeSession


def test_field_map_translates_both_ways() -> None:
    field_map = FieldMap(["id", "category_id", "title"], {"id": "Id", "category_id": "categoryId"})

    backend = field_map.to_backend({"id": 1, "category_id": "work", "title": "x", "extra": 1})

    assert backend == {"Id": 1, "categoryId": "work", "title": "x"}
    assert field_map.to_canonical(backend) == {"id": 1, "category_id": "work", "title": "x"}
    assert field_map.condition(Condition("category_id", "work")) == Condition("categoryId", "work")
    with pytest.raises(ValidationError):
        field_map.backend_name("colour")


# Memory backend


@pytest.mark.asyncio
async def test_memory_backend_uses_fixture_names() -> None:
    backends = memory_backends()

    record = await backends.tasks.get_by_id(2)

    assert record["Id"] == 2
    assert record["categoryId"] == "home"
    assert "category_id" not in record


@pytest.mark.asyncio
async def test_memory_backend_next_id_is_one_past_highest() -> None:
    backends = memory_backends()

    created = await backends.tasks.create({"title": "New", "priority": "low"})

    assert created["Id"] == 8


@pytest.mark.asyncio
async def test_memory_backend_rejected_update_changes_nothing() -> None:
    backends = memory_backends()
    before = await backends.tasks.get_by_id(1)

    with pytest.raises(ValidationError):
        await backends.tasks.update(1, {"priority": "urgent"})

    assert await backends.tasks.get_by_id(1) == before


@pytest.mark.asyncio
async def test_memory_backend_returns_copies() -> None:
    backends = memory_backends()

    record = await backends.tasks.get_by_id(1)
    record["title"] = "Changed outside"

    assert (await backends.tasks.get_by_id(1))["title"] == "Prepare quarterly report"


@pytest.mark.asyncio
async def test_memory_backend_conditions() -> None:
    backends = memory_backends()

    archived = await backends.tasks.list([Condition("archived", True)])
    contains = await backends.tasks.list([Condition("title", "DOG", "contains")])

    assert [r["Id"] for r in archived] == [6]
    assert [r["title"] for r in contains] == ["Walk dog"]
    with pytest.raises(NotFound):
        await backends.tasks.delete(99)


# SQLite backend


@pytest.mark.asyncio
async def test_sqlite_new_database_is_seeded(tmp_path: Path) -> None:
    backends = sqlite_backends(tmp_path / "tasks.db")

    categories = await backends.categories.list()

    assert [c["key"] for c in categories] == ["general", "work", "personal", "home", "health"]
    assert categories[1]["sort_order"] == 2
    assert await backends.tasks.list() == []
    assert Database(tmp_path / "tasks.db").get_schema_version() == CURRENT_SCHEMA_VERSION


@pytest.mark.asyncio
async def test_sqlite_reopen_does_not_reseed(tmp_path: Path) -> None:
    path = tmp_path / "tasks.db"
    first = sqlite_backends(path)
    await first.categories.delete(1)

    second = sqlite_backends(path)

    assert len(await second.categories.list()) == 4


@pytest.mark.asyncio
async def test_sqlite_conditions_and_rules(tmp_path: Path) -> None:
    backends = sqlite_backends(tmp_path / "tasks.db")
    await backends.tasks.create({"title": "Alpha report", "archived": False})
    await backends.tasks.create({"title": "Beta", "archived": True, "due_date": None})

    archived = await backends.tasks.list([Condition("archived", True)])
    found = await backends.tasks.list([Condition("title", "REPORT", "contains")])
    no_due = await backends.tasks.list([Condition("due_date", None)])

    assert [r["title"] for r in archived] == ["Beta"]
    assert [r["title"] for r in found] == ["Alpha report"]
    assert len(no_due) == 2
    with pytest.raises(ValidationError):
        await backends.tasks.create({"title": "", "priority": "low"})
    with pytest.raises(ValidationError):
        await backends.tasks.update(1, {"priority": "urgent"})
    with pytest.raises(ValidationError):
        await backends.tasks.list([Condition("title; DROP TABLE tasks", "x")])
    assert (await backends.tasks.get_by_id(1))["priority"] == "medium"


@pytest.mark.asyncio
async def test_sqlite_missing_records_raise_not_found(tmp_path: Path) -> None:
    backends = sqlite_backends(tmp_path / "tasks.db")

    with pytest.raises(NotFound):
        await backends.tasks.get_by_id(5)
    with pytest.raises(NotFound):
        await backends.tasks.update(5, {"title": "x"})
    with pytest.raises(NotFound):
        await backends.tasks.delete(5)


def test_sqlite_refuses_newer_schema(tmp_path: Path) -> None:
    path = tmp_path / "tasks.db"
    sqlite_backends(path)
    conn = sqlite3.connect(path)
    conn.execute(
        "INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION + 1,)
    )
    conn.commit()
    conn.close()

    with pytest.raises(TransportError) as excinfo:
        sqlite_backends(path)

    assert "newer than supported" in str(excinfo.value)


def test_sqlite_corrupt_file_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "tasks.db"
    path.write_bytes(b"this is not a sqlite database, just some text padding" * 20)

    with pytest.raises(TaskFlowError):
        sqlite_backends(path)


# Remote backend


def test_client_sends_auth_and_returns_json(client: RecordApiClient, session: FakeSession) -> None:
    session.queue(200, {"ok": True})

    assert client.request("get", "status") == {"ok": True}

    sent = session.sent[0]
    assert sent.method == "GET"
    assert sent.url == "https://records.example.test/api/status"
    assert sent.headers["Authorization"] == "Bearer secret"
    assert sent.timeout == 5.0


def test_client_maps_error_statuses(client: RecordApiClient, session: FakeSession) -> None:
    session.queue(404, {"message": "missing"})
    session.queue(422, {"message": "title is required"})
    session.queue(409, text="duplicate key")
    session.queue(503, text="maintenance")
    session.fail()

    with pytest.raises(NotFound) as not_found:
        client.request("GET", "/tasks/3", kind="task", record_id=3)
    assert str(not_found.value) == "Task 3 not found"

    with pytest.raises(ValidationError, match="title is required"):
        client.request("POST", "/tasks")
    with pytest.raises(ValidationError, match="duplicate key"):
        client.request("POST", "/categories")

    with pytest.raises(TransportError) as unavailable:
        client.request("GET", "/tasks/3")
    assert unavailable.value.status_code == 503

    with pytest.raises(TransportError) as unreachable:
        client.request("GET", "/tasks/3")
    assert unreachable.value.status_code is None


def test_client_empty_success_returns_none(client: RecordApiClient, session: FakeSession) -> None:
    session.queue(204)

    assert client.request("DELETE", "/tasks/1") is None


@pytest.mark.asyncio
async def test_remote_backend_list_sends_conditions(
    client: RecordApiClient, session: FakeSession
) -> None:
    backend = RemoteBackend(client, "tasks", kind="task", field_map=remote.TASK_FIELD_MAP)
    session.queue(200, {"records": [{"id": 1, "title": "Remote"}]})

    records = await backend.list([Condition("archived", False)])

    assert records == [{"id": 1, "title": "Remote"}]
    sent = session.sent[0]
    assert sent.method == "POST"
    assert sent.url.endswith("/tasks/query")
    assert sent.json == {"where": [{"field": "archived", "operator": "eq", "value": False}]}


@pytest.mark.asyncio
async def test_remote_backend_response_without_record(
    client: RecordApiClient, session: FakeSession
) -> None:
    backend = RemoteBackend(client, "tasks", kind="task", field_map=remote.TASK_FIELD_MAP)
    session.queue(200, {"unexpected": True})

    with pytest.raises(TransportError):
        await backend.get_by_id(1)


@pytest.mark.asyncio
@pytest.mark.parametrize("record_id", ["1/../x", "../categories", None])
async def test_remote_backend_rejects_malformed_ids(
    client: RecordApiClient, session: FakeSession, record_id: object
) -> None:
    backend = RemoteBackend(client, "tasks", kind="task", field_map=remote.TASK_FIELD_MAP)

    with pytest.raises(NotFound):
        await backend.get_by_id(record_id)
    with pytest.raises(NotFound):
        await backend.update(record_id, {"title": "x"})
    with pytest.raises(NotFound):
        await backend.delete(record_id)
    assert session.sent == []


@pytest.mark.asyncio
async def test_remote_backend_normalizes_numeric_ids(
    client: RecordApiClient, session: FakeSession
) -> None:
    backend = RemoteBackend(client, "tasks", kind="task", field_map=remote.TASK_FIELD_MAP)
    session.queue(200, {"record": {"id": 7}})

    await backend.get_by_id(" 7 ")

    assert session.sent[0].url.endswith("/tasks/7")


@pytest.mark.asyncio
async def test_task_store_over_remote_backend(
    client: RecordApiClient, session: FakeSession
) -> None:
    store = TaskStore(
        RemoteBackend(client, "tasks", kind="task", field_map=remote.TASK_FIELD_MAP)
    )
    created = {
        "id": 12,
        "title": "Remote task",
        "description": "",
        "category_id": "work",
        "priority": "high",
        "due_date": None,
        "completed": False,
        "completed_at": None,
        "created_at": "2025-06-12T09:00:00Z",
        "archived": False,
    }
    session.queue(200, {"record": created})
    session.queue(200, {"record": created})
    session.queue(404, text="not found")

    task = await store.create({"title": "Remote task", "category_id": "Work", "priority": "high"})

    assert task.id == 12
    body = session.sent[0].json["record"]
    assert "id" not in body
    assert body["category_id"] == "work"
    assert body["priority"] == "high"
    assert body["completed"] is False

    assert (await store.get(12)).title == "Remote task"
    with pytest.raises(NotFound):
        await store.delete(13)
    assert [s.method for s in session.sent] == ["POST", "GET", "GET"]


@pytest.mark.asyncio
async def test_remote_backend_close_closes_session(
    client: RecordApiClient, session: FakeSession
) -> None:
    backend = RemoteBackend(client, "tasks", kind="task", field_map=remote.TASK_FIELD_MAP)

    await backend.close()

    assert session.closed
