"""Task and category stores.

The stores are the single owners of their collections. They speak canonical
field names, translate to and from the backend's naming through its
``FieldMap``, apply defaults and derived fields, and notify subscribers
after each successful write.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping

from task_flow import events
from task_flow.backends import Backends, open_backends
from task_flow.backends.base import Condition, RecordBackend
from task_flow.categories import RESERVED_VIEWS, normalize_key, with_counts
from task_flow.errors import ValidationError
from task_flow.events import Observable
from task_flow.models import (
    CATEGORY_FIELDS,
    DEFAULT_CATEGORY,
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    TASK_FIELDS,
    Category,
    Priority,
    Task,
    format_timestamp,
    now,
    parse_timestamp,
)
from task_flow.query import QuerySpec, query
from task_flow.stats import TaskStats, aggregate

if TYPE_CHECKING:
    from task_flow.config import Config

logger = logging.getLogger(__name__)

# Set by the store itself, never by callers.
TASK_READ_ONLY_FIELDS = ("id", "created_at", "completed_at")
CATEGORY_READ_ONLY_FIELDS = ("id", "key", "task_count")


def _require_text(values: dict[str, Any], name: str, kind: str) -> None:
    value = values.get(name)
    if value is None or not str(value).strip():
        raise ValidationError(f"{kind.capitalize()} {name} is required", field=name)


class TaskStore(Observable):
    """Create, read, update, archive and delete tasks."""

    def __init__(self, backend: RecordBackend) -> None:
        super().__init__()
        self.backend = backend
        self.field_map = backend.field_map

    def _to_task(self, record: dict[str, Any]) -> Task:
        return Task.from_record(self.field_map.to_canonical(record))

    def _clean(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        """Validate caller-supplied fields and convert them to record values."""
        values: dict[str, Any] = {}
        for name, value in changes.items():
            if name not in TASK_FIELDS:
                raise ValidationError(f"Unknown task field: {name}", field=name)
            if name in TASK_READ_ONLY_FIELDS:
                continue
            if name == "priority":
                try:
                    value = Priority.parse(value).value
                except ValueError:
                    raise ValidationError(f"Invalid priority: {value!r}", field=name) from None
            elif name == "category_id":
                value = normalize_key(value)
            elif name == "due_date":
                try:
                    value = format_timestamp(parse_timestamp(value))
                except (TypeError, ValueError):
                    raise ValidationError(f"Invalid due date: {value!r}", field=name) from None
            elif name in ("completed", "archived"):
                value = bool(value)
            elif name == "title":
                value = str(value).strip()
            elif name == "description":
                value = "" if value is None else str(value)
            values[name] = value
        return values

    async def list(
        self, *, archived: bool | None = None, category_id: str | None = None
    ) -> list[Task]:
        """Return tasks in insertion order, optionally filtered at the backend."""
        where = []
        if archived is not None:
            where.append(Condition("archived", archived))
        if category_id is not None:
            where.append(Condition("category_id", normalize_key(category_id)))
        records = await self.backend.list([self.field_map.condition(c) for c in where])
        return [self._to_task(record) for record in records]

    async def get(self, task_id: Any) -> Task:
        """Return one task or raise NotFound."""
        return self._to_task(await self.backend.get_by_id(task_id))

    async def create(self, fields: Mapping[str, Any]) -> Task:
        """Create a task from the given fields, applying defaults.

        Raises:
            ValidationError: If the title is missing or a field is invalid.
        """
        values = self._clean(fields)
        _require_text(values, "title", "task")
        record = {
            "title": values["title"],
            "description": values.get("description", ""),
            "category_id": values.get("category_id", DEFAULT_CATEGORY),
            "priority": values.get("priority", Priority.MEDIUM.value),
            "due_date": values.get("due_date"),
            "completed": False,
            "completed_at": None,
            "created_at": format_timestamp(now()),
            "archived": False,
        }
        task = self._to_task(await self.backend.create(self.field_map.to_backend(record)))
        logger.info("Created task %s %r", task.id, task.title)
        self.emit(events.CREATED, task)
        return task

    async def update(
        self, task_id: Any, changes: Mapping[str, Any], *, action: str = events.UPDATED
    ) -> Task:
        """Apply a partial update.

        Only the supplied fields change. When ``completed`` is supplied, the
        completion stamp is set on a false to true transition and cleared on
        a true to false one.

        Raises:
            NotFound: If the task does not exist.
            ValidationError: If a field is unknown or invalid.
        """
        values = self._clean(changes)
        if "title" in values:
            _require_text(values, "title", "task")
        current = await self.get(task_id)

        if "completed" in values:
            if values["completed"] and not current.completed:
                values["completed_at"] = format_timestamp(now())
            elif not values["completed"]:
                values["completed_at"] = None

        record = await self.backend.update(current.id, self.field_map.to_backend(values))
        task = self._to_task(record)
        logger.debug("Updated task %s fields=%s", task.id, sorted(values))
        self.emit(action, task)
        return task

    async def toggle_complete(self, task_id: Any) -> Task:
        """Flip a task between pending and completed."""
        current = await self.get(task_id)
        return await self.update(current.id, {"completed": not current.completed})

    async def archive(self, task_id: Any) -> Task:
        """Hide a task from active views without deleting it."""
        return await self.update(task_id, {"archived": True}, action=events.ARCHIVED)

    async def unarchive(self, task_id: Any) -> Task:
        """Return an archived task to active views."""
        return await self.update(task_id, {"archived": False}, action=events.UNARCHIVED)

    async def delete(self, task_id: Any) -> Task:
        """Permanently remove a task and return it."""
        task = await self.get(task_id)
        await self.backend.delete(task.id)
        logger.info("Deleted task %s", task.id)
        self.emit(events.DELETED, task)
        return task

    async def clear_archive(self) -> list[Task]:
        """Permanently remove every archived task."""
        removed = [await self.delete(task.id) for task in await self.list(archived=True)]
        logger.info("Cleared %d archived tasks", len(removed))
        return removed

    async def search(self, text: str) -> list[Task]:
        """Return non-archived tasks whose title or description contains ``text``."""
        return query(await self.list(), QuerySpec(search_text=text))

    async def stats(self, *, today: date | None = None) -> TaskStats:
        return aggregate(await self.list(), today=today)


class CategoryStore(Observable):
    """Create, read, update and delete categories.

    Deleting a category leaves tasks that reference its key untouched.
    """

    def __init__(self, backend: RecordBackend) -> None:
        super().__init__()
        self.backend = backend
        self.field_map = backend.field_map

    def _to_category(self, record: dict[str, Any]) -> Category:
        return Category.from_record(self.field_map.to_canonical(record))

    def _clean(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, value in changes.items():
            if name not in CATEGORY_FIELDS:
                raise ValidationError(f"Unknown category field: {name}", field=name)
            if name in CATEGORY_READ_ONLY_FIELDS:
                continue
            if name == "order":
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ValidationError(f"Invalid order: {value!r}", field=name) from None
            elif name == "name":
                value = str(value).strip()
            values[name] = value
        return values

    async def list(self) -> list[Category]:
        """Return categories sorted by their order, then id."""
        records = await self.backend.list()
        categories = [self._to_category(record) for record in records]
        return sorted(categories, key=lambda c: (c.order, c.id))

    async def get(self, category_id: Any) -> Category:
        return self._to_category(await self.backend.get_by_id(category_id))

    async def get_by_key(self, key: str) -> Category | None:
        """Return the category with the given matching key, if any."""
        key = normalize_key(key)
        for category in await self.list():
            if category.key == key:
                return category
        return None

    async def create(self, fields: Mapping[str, Any]) -> Category:
        """Create a category. Its key is derived from the name and never changes."""
        values = self._clean(fields)
        _require_text(values, "name", "category")
        existing = await self.list()
        key = normalize_key(fields.get("key") or values["name"])
        if key in RESERVED_VIEWS:
            raise ValidationError(
                f"Category key {key!r} is reserved for a built-in view", field="key"
            )
        if any(category.key == key for category in existing):
            raise ValidationError(f"Category {key!r} already exists", field="key")
        record = {
            "name": values["name"],
            "key": key,
            "color": values.get("color") or DEFAULT_CATEGORY_COLOR,
            "icon": values.get("icon") or DEFAULT_CATEGORY_ICON,
            "order": values.get("order", max((c.order for c in existing), default=0) + 1),
        }
        category = self._to_category(
            await self.backend.create(self.field_map.to_backend(record))
        )
        logger.info("Created category %s %r", category.id, category.key)
        self.emit(events.CREATED, category)
        return category

    async def update(self, category_id: Any, changes: Mapping[str, Any]) -> Category:
        """Apply a partial update. The id and key never change."""
        values = self._clean(changes)
        if "name" in values:
            _require_text(values, "name", "category")
        current = await self.get(category_id)
        record = await self.backend.update(current.id, self.field_map.to_backend(values))
        category = self._to_category(record)
        self.emit(events.UPDATED, category)
        return category

    async def delete(self, category_id: Any) -> Category:
        category = await self.get(category_id)
        await self.backend.delete(category.id)
        logger.info("Deleted category %s", category.id)
        self.emit(events.DELETED, category)
        return category

    async def counts(self, tasks: list[Task]) -> list[Category]:
        """Return the categories with ``task_count`` filled from ``tasks``."""
        return with_counts(tasks, await self.list())


class Stores:
    """The task and category stores sharing one set of backends."""

    def __init__(self, backends: Backends) -> None:
        self.backends = backends
        self.tasks = TaskStore(backends.tasks)
        self.categories = CategoryStore(backends.categories)

    async def close(self) -> None:
        await self.backends.close()


def open_stores(config: Config) -> Stores:
    """Open the stores for the backend named in the configuration."""
    return Stores(open_backends(config))
