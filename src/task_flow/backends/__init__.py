"""Record backends for Task Flow."""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from task_flow.backends import memory, remote, sqlite
from task_flow.backends.base import (
    Condition,
    FieldMap,
    RecordBackend,
    Rules,
    category_rules,
    task_rules,
)
from task_flow.backends.memory import MemoryBackend, load_fixture
from task_flow.backends.remote import RecordApiClient, RemoteBackend
from task_flow.backends.sqlite import Database, SqliteBackend
from task_flow.errors import TaskFlowError
from task_flow.models import Category

if TYPE_CHECKING:
    from task_flow.config import Config

BACKEND_NAMES = ("memory", "sqlite", "remote")

__all__ = [
    "BACKEND_NAMES",
    "Backends",
    "Condition",
    "Database",
    "FieldMap",
    "MemoryBackend",
    "RecordApiClient",
    "RecordBackend",
    "RemoteBackend",
    "Rules",
    "SqliteBackend",
    "default_categories",
    "memory_backends",
    "open_backends",
    "remote_backends",
    "sqlite_backends",
]


@dataclass
class Backends:
    """The task and category collections of one store."""

    tasks: RecordBackend
    categories: RecordBackend

    async def close(self) -> None:
        await self.tasks.close()
        await self.categories.close()


def default_categories() -> list[dict[str, Any]]:
    """Return the bundled categories as canonical records."""
    return [
        Category.from_record(memory.CATEGORY_FIELD_MAP.to_canonical(record)).to_record()
        for record in load_fixture("categories")
    ]


def memory_backends(*, seed: bool = True) -> Backends:
    """In-memory backends, seeded from the bundled fixtures unless ``seed`` is False."""

    def build(name: str, kind: str, field_map: FieldMap, rules: Rules) -> MemoryBackend:
        if seed:
            return MemoryBackend.from_fixture(name, kind=kind, field_map=field_map, rules=rules)
        return MemoryBackend(kind=kind, field_map=field_map, rules=rules)

    return Backends(
        tasks=build(
            "tasks", "task", memory.TASK_FIELD_MAP, task_rules(memory.TASK_FIELD_MAP)
        ),
        categories=build(
            "categories",
            "category",
            memory.CATEGORY_FIELD_MAP,
            category_rules(memory.CATEGORY_FIELD_MAP),
        ),
    )


def sqlite_backends(db_path: Path) -> Backends:
    """Backends over a SQLite file, created and seeded on first use."""
    database = Database(db_path)
    database.open(seed_categories=default_categories())
    if not database.verify_connection():
        raise TaskFlowError(
            f"Database at {db_path} appears corrupted. Consider removing it and restarting."
        )
    return Backends(
        tasks=SqliteBackend(
            database,
            "tasks",
            kind="task",
            field_map=sqlite.TASK_FIELD_MAP,
            rules=task_rules(sqlite.TASK_FIELD_MAP),
        ),
        categories=SqliteBackend(
            database,
            "categories",
            kind="category",
            field_map=sqlite.CATEGORY_FIELD_MAP,
            rules=category_rules(sqlite.CATEGORY_FIELD_MAP),
        ),
    )


def remote_backends(client: RecordApiClient) -> Backends:
    """Backends over the hosted record API."""
    return Backends(
        tasks=RemoteBackend(client, "tasks", kind="task", field_map=remote.TASK_FIELD_MAP),
        categories=RemoteBackend(
            client, "categories", kind="category", field_map=remote.CATEGORY_FIELD_MAP
        ),
    )


def open_backends(config: "Config") -> Backends:
    """Build the backends named by the configuration."""
    if config.backend == "memory":
        return memory_backends()
    if config.backend == "sqlite":
        return sqlite_backends(config.database)
    if config.backend == "remote":
        if not config.remote.base_url:
            raise TaskFlowError("The remote backend needs remote.base_url in the config file")
        client = RecordApiClient(
            base_url=config.remote.base_url,
            api_key=config.remote.api_key,
            timeout_seconds=config.remote.timeout,
        )
        return remote_backends(client)
    raise TaskFlowError(f"Unknown backend: {config.backend}")
