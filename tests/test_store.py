# tests/test_store.py

from __future__ import annotations

from typing import get_type_hints

import pytest

from task_flow import events
from task_flow.categories import normalize_key, sidebar_entries
from task_flow.errors import NotFound, ValidationError
from task_flow.events import StoreEvent
from task_flow.models import Category, Priority, Task
from task_flow.query import QuerySpec, query
from task_flow.store import CategoryStore, Stores, TaskStore


@pytest.mark.asyncio
async def test_create_assigns_sequential_ids_on_empty_store(empty_stores: Stores) -> None:
    first = await empty_stores.tasks.create({"title": "First"})
    second = await empty_stores.tasks.create({"title": "Second"})

    assert (first.id, second.id) == (1, 2)


@pytest.mark.asyncio
async def test_create_applies_defaults(empty_stores: Stores) -> None:
    task = await empty_stores.tasks.create({"title": "  Water plants  "})

    assert task.title == "Water plants"
    assert task.description == ""
    assert task.category_id == "general"
    assert task.priority is Priority.MEDIUM
    assert task.due_date is None
    assert task.completed is False
    assert task.completed_at is None
    assert task.archived is False
    assert task.created_at is not None

    stored = await empty_stores.tasks.get(task.id)
    assert stored == task


@pytest.mark.asyncio
async def test_create_normalizes_category_and_priority(empty_stores: Stores) -> None:
    task = await empty_stores.tasks.create(
        {"title": "Plan trip", "category_id": " Personal ", "priority": "HIGH"}
    )

    assert task.category_id == "personal"
    assert task.priority is Priority.HIGH


@pytest.mark.asyncio
async def test_completed_at_follows_completed(empty_stores: Stores) -> None:
    task = await empty_stores.tasks.create({"title": "Stretch"})

    done = await empty_stores.tasks.toggle_complete(task.id)
    assert done.completed is True
    assert done.completed_at is not None

    # Completing again keeps the original stamp
    again = await empty_stores.tasks.update(task.id, {"completed": True})
    assert again.completed_at == done.completed_at

    # Unrelated edits leave the stamp alone
    renamed = await empty_stores.tasks.update(task.id, {"title": "Stretch twice"})
    assert renamed.completed_at == done.completed_at

    undone = await empty_stores.tasks.toggle_complete(task.id)
    assert undone.completed is False
    assert undone.completed_at is None


@pytest.mark.asyncio
async def test_completed_at_cannot_be_set_directly(empty_stores: Stores) -> None:
    task = await empty_stores.tasks.create(
        {"title": "Sneaky", "completed_at": "2025-01-01T00:00:00", "id": 99}
    )

    assert task.completed_at is None
    assert task.id == 1


@pytest.mark.asyncio
async def test_delete_missing_task_raises_and_keeps_contents(empty_stores: Stores) -> None:
    await empty_stores.tasks.create({"title": "Keep me"})
    before = await empty_stores.tasks.list()

    with pytest.raises(NotFound) as excinfo:
        await empty_stores.tasks.delete(42)

    assert excinfo.value.record_id == 42
    assert await empty_stores.tasks.list() == before


@pytest.mark.asyncio
async def test_get_and_update_missing_task_raise_not_found(empty_stores: Stores) -> None:
    with pytest.raises(NotFound):
        await empty_stores.tasks.get(7)
    with pytest.raises(NotFound):
        await empty_stores.tasks.update(7, {"title": "Nope"})
    with pytest.raises(NotFound):
        await empty_stores.tasks.get("not-a-number")


@pytest.mark.asyncio
async def test_delete_returns_removed_task(empty_stores: Stores) -> None:
    task = await empty_stores.tasks.create({"title": "Temporary"})

    removed = await empty_stores.tasks.delete(task.id)

    assert removed.title == "Temporary"
    assert await empty_stores.tasks.list() == []


@pytest.mark.asyncio
async def test_archive_and_unarchive_round_trip(empty_stores: Stores) -> None:
    task = await empty_stores.tasks.create({"title": "Old idea", "priority": "low"})

    archived = await empty_stores.tasks.archive(task.id)
    assert archived.archived is True
    assert query(await empty_stores.tasks.list()) == []
    assert [t.id for t in await empty_stores.tasks.list(archived=True)] == [task.id]

    restored = await empty_stores.tasks.unarchive(task.id)
    assert restored == task
    assert query(await empty_stores.tasks.list()) == [task]


@pytest.mark.asyncio
async def test_list_filters_by_category(empty_stores: Stores) -> None:
    await empty_stores.tasks.create({"title": "Report", "category_id": "work"})
    await empty_stores.tasks.create({"title": "Dishes", "category_id": "home"})

    work = await empty_stores.tasks.list(category_id="Work")

    assert [t.title for t in work] == ["Report"]


@pytest.mark.asyncio
async def test_validation_errors_leave_store_unchanged(empty_stores: Stores) -> None:
    task = await empty_stores.tasks.create({"title": "Valid"})
    before = await empty_stores.tasks.list()

    with pytest.raises(ValidationError):
        await empty_stores.tasks.create({"title": "   "})
    with pytest.raises(ValidationError):
        await empty_stores.tasks.create({"title": "Bad", "priority": "urgent"})
    with pytest.raises(ValidationError):
        await empty_stores.tasks.create({"title": "Bad", "due_date": "next tuesday"})
    with pytest.raises(ValidationError) as excinfo:
        await empty_stores.tasks.update(task.id, {"colour": "red"})
    assert excinfo.value.field == "colour"
    with pytest.raises(ValidationError):
        await empty_stores.tasks.update(task.id, {"title": ""})

    assert await empty_stores.tasks.list() == before


@pytest.mark.asyncio
async def test_subscribers_notified_in_registration_order(empty_stores: Stores) -> None:
    received: list[tuple[str, str]] = []

    def first(event: StoreEvent) -> None:
        received.append(("first", event.action))

    def second(event: StoreEvent) -> None:
        received.append(("second", event.action))

    empty_stores.tasks.subscribe(first)
    empty_stores.tasks.subscribe(second)

    task = await empty_stores.tasks.create({"title": "Watched"})
    await empty_stores.tasks.archive(task.id)

    assert received == [
        ("first", events.CREATED),
        ("second", events.CREATED),
        ("first", events.ARCHIVED),
        ("second", events.ARCHIVED),
    ]


@pytest.mark.asyncio
async def test_unsubscribe_and_failing_listener(empty_stores: Stores) -> None:
    received: list[StoreEvent] = []

    def broken(event: StoreEvent) -> None:
        raise RuntimeError("boom")

    empty_stores.tasks.subscribe(broken)
    unsubscribe = empty_stores.tasks.subscribe(received.append)

    task = await empty_stores.tasks.create({"title": "Still saved"})
    assert [e.record.id for e in received] == [task.id]

    unsubscribe()
    await empty_stores.tasks.delete(task.id)
    assert len(received) == 1


@pytest.mark.asyncio
async def test_no_event_for_failed_write(empty_stores: Stores) -> None:
    received: list[StoreEvent] = []
    empty_stores.tasks.subscribe(received.append)

    with pytest.raises(NotFound):
        await empty_stores.tasks.delete(1)
    with pytest.raises(ValidationError):
        await empty_stores.tasks.create({"title": ""})

    assert received == []


@pytest.mark.asyncio
async def test_fixture_store_search_and_stats(stores: Stores) -> None:
    found = await stores.tasks.search("BREAD")
    assert [t.title for t in found] == ["Buy bread"]

    stats = await stores.tasks.stats()
    assert stats.total == 6
    assert stats.completed == 2
    assert stats.pending == 4
    assert stats.completion_rate == 33


@pytest.mark.asyncio
async def test_clear_archive_removes_only_archived(stores: Stores) -> None:
    removed = await stores.tasks.clear_archive()

    assert [t.title for t in removed] == ["Renew gym membership"]
    remaining = await stores.tasks.list()
    assert len(remaining) == 6
    assert not any(t.archived for t in remaining)


@pytest.mark.asyncio
async def test_category_create_derives_key_and_order(stores: Stores) -> None:
    category = await stores.categories.create({"name": " Errands "})

    assert category.name == "Errands"
    assert category.key == "errands"
    assert category.order == 6
    assert category.color == "#5B47E0"
    assert (await stores.categories.get_by_key("ERRANDS")) == category


@pytest.mark.asyncio
async def test_category_duplicate_key_rejected(sqlite_stores: Stores) -> None:
    with pytest.raises(ValidationError):
        await sqlite_stores.categories.create({"name": "work"})
    with pytest.raises(ValidationError):
        await sqlite_stores.categories.create({"name": ""})


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["Completed", " today ", "ALL", "Pending", "high-priority"])
async def test_category_view_name_rejected(stores: Stores, name: str) -> None:
    before = await stores.categories.list()

    with pytest.raises(ValidationError) as excinfo:
        await stores.categories.create({"name": name})

    assert excinfo.value.field == "key"
    assert await stores.categories.list() == before


@pytest.mark.asyncio
async def test_category_sidebar_views_select_their_own_tasks(stores: Stores) -> None:
    await stores.categories.create({"name": "Errands"})
    await stores.tasks.create({"title": "Post letter", "category_id": "errands"})
    tasks = await stores.tasks.list()

    entries = sidebar_entries(tasks, await stores.categories.list())

    for entry in entries:
        if entry.is_category:
            matched = query(tasks, QuerySpec.for_view(entry.view))
            assert len(matched) == entry.count
            assert all(normalize_key(t.category_id) == entry.view for t in matched)


def test_store_annotations_resolve() -> None:
    assert get_type_hints(TaskStore.clear_archive)["return"] == list[Task]
    assert get_type_hints(TaskStore.search)["return"] == list[Task]
    assert get_type_hints(CategoryStore.counts) == {
        "tasks": list[Task],
        "return": list[Category],
    }

@pytest.mark.asyncio
async def test_category_rename_keeps_key_and_task_references(sqlite_stores: Stores) -> None:
    work = await sqlite_stores.categories.get_by_key("work")
    task = await sqlite_stores.tasks.create({"title": "Ship it", "category_id": "work"})

    renamed = await sqlite_stores.categories.update(work.id, {"name": "Job", "key": "job"})

    assert renamed.name == "Job"
    assert renamed.key == "work"
    counted = {c.key: c.task_count for c in await sqlite_stores.categories.counts([task])}
    assert counted["work"] == 1


@pytest.mark.asyncio
async def test_category_delete_leaves_tasks(stores: Stores) -> None:
    home = await stores.categories.get_by_key("home")

    await stores.categories.delete(home.id)

    assert await stores.categories.get_by_key("home") is None
    bread = (await stores.tasks.search("bread"))[0]
    assert bread.category_id == "home"


@pytest.mark.asyncio
async def test_categories_listed_by_order(sqlite_stores: Stores) -> None:
    health = await sqlite_stores.categories.get_by_key("health")
    await sqlite_stores.categories.update(health.id, {"order": 0})

    keys = [c.key for c in await sqlite_stores.categories.list()]

    assert keys == ["health", "general", "work", "personal", "home"]
