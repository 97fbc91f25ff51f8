"""In-memory backend seeded from packaged fixture data."""

import json
import logging
from importlib import resources
from typing import Any, Sequence

from task_flow.backends.base import (
    Condition,
    FieldMap,
    RecordBackend,
    Rules,
    coerce_id,
    matches_conditions,
)
from task_flow.errors import NotFound
from task_flow.models import CATEGORY_FIELDS, TASK_FIELDS

logger = logging.getLogger(__name__)

# Fixture records use the camelCase names and "Id" key of the mock data.
TASK_FIELD_MAP = FieldMap(
    TASK_FIELDS,
    {
        "id": "Id",
        "category_id": "categoryId",
        "due_date": "dueDate",
        "completed_at": "completedAt",
        "created_at": "createdAt",
    },
)
CATEGORY_FIELD_MAP = FieldMap(CATEGORY_FIELDS, {"id": "Id", "task_count": "taskCount"})


def load_fixture(name: str) -> list[dict[str, Any]]:
    """Load a JSON fixture bundled with the package."""
    source = resources.files("task_flow.fixtures").joinpath(f"{name}.json")
    return json.loads(source.read_text(encoding="utf-8"))


class MemoryBackend(RecordBackend):
    """A list of records held in process memory.

    Every write builds the new record, validates it, and only then swaps it
    into the list, so a rejected write leaves the collection untouched.
    Callers always receive copies.
    """

    def __init__(
        self,
        records: Sequence[dict[str, Any]] | None = None,
        *,
        kind: str = "record",
        field_map: FieldMap,
        rules: Rules | None = None,
    ) -> None:
        self.kind = kind
        self.field_map = field_map
        self.rules = rules or Rules()
        self._records: list[dict[str, Any]] = [dict(r) for r in records or ()]

    @classmethod
    def from_fixture(cls, name: str, **kwargs: Any) -> "MemoryBackend":
        """Create a backend seeded from ``fixtures/<name>.json``."""
        records = load_fixture(name)
        logger.debug("Seeded %s backend with %d records", name, len(records))
        return cls(records, **kwargs)

    def _index_of(self, record_id: Any) -> int:
        wanted = coerce_id(self.kind, record_id)
        for index, record in enumerate(self._records):
            if int(record[self.id_field]) == wanted:
                return index
        raise NotFound(self.kind, record_id)

    def _next_id(self) -> int:
        return max((int(r[self.id_field]) for r in self._records), default=0) + 1

    async def list(self, where: Sequence[Condition] | None = None) -> list[dict[str, Any]]:
        return [dict(r) for r in self._records if matches_conditions(r, where)]

    async def get_by_id(self, record_id: Any) -> dict[str, Any]:
        return dict(self._records[self._index_of(record_id)])

    async def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        record = dict(fields)
        record[self.id_field] = self._next_id()
        self.rules.check(record)
        self._records.append(record)
        return dict(record)

    async def update(self, record_id: Any, fields: dict[str, Any]) -> dict[str, Any]:
        index = self._index_of(record_id)
        current = self._records[index]
        record = {**current, **fields, self.id_field: current[self.id_field]}
        self.rules.check(record)
        self._records[index] = record
        return dict(record)

    async def delete(self, record_id: Any) -> None:
        del self._records[self._index_of(record_id)]
