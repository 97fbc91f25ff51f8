"""Record-store boundary shared by every backend."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from task_flow.errors import NotFound, ValidationError
from task_flow.models import Priority


@dataclass(frozen=True)
class Condition:
    """A field predicate for :meth:`RecordBackend.list`.

    ``eq`` compares for equality. ``contains`` is a case-insensitive
    substring match on text fields.
    """

    field: str
    value: Any
    operator: str = "eq"


class FieldMap:
    """Translate between canonical field names and a backend's own names.

    Fields not listed in ``fields`` are dropped in both directions, so a
    backend never sees derived values it does not store.
    """

    def __init__(self, fields: Iterable[str], renames: dict[str, str] | None = None) -> None:
        renames = renames or {}
        self.fields = tuple(fields)
        self._outbound = {name: renames.get(name, name) for name in self.fields}
        self._inbound = {backend: name for name, backend in self._outbound.items()}

    def backend_name(self, name: str) -> str:
        """Return the backend's name for a canonical field."""
        try:
            return self._outbound[name]
        except KeyError:
            raise ValidationError(f"Unknown field: {name}", field=name) from None

    def to_backend(self, record: dict[str, Any]) -> dict[str, Any]:
        return {self._outbound[k]: v for k, v in record.items() if k in self._outbound}

    def to_canonical(self, record: dict[str, Any]) -> dict[str, Any]:
        return {self._inbound[k]: v for k, v in record.items() if k in self._inbound}

    def condition(self, condition: Condition) -> Condition:
        return Condition(self.backend_name(condition.field), condition.value, condition.operator)


@dataclass(frozen=True)
class Rules:
    """Write validation applied by backends that own their storage."""

    required: tuple[str, ...] = ()
    choices: dict[str, frozenset[str]] = field(default_factory=dict)

    def check(self, record: dict[str, Any]) -> None:
        """Raise ValidationError if the record breaks a rule."""
        for name in self.required:
            value = record.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"Missing required field: {name}", field=name)
        for name, allowed in self.choices.items():
            value = record.get(name)
            if value is not None and value not in allowed:
                raise ValidationError(
                    f"Invalid value for {name}: {value!r}", field=name
                )


def task_rules(field_map: FieldMap) -> Rules:
    return Rules(
        required=(field_map.backend_name("title"),),
        choices={
            field_map.backend_name("priority"): frozenset(p.value for p in Priority)
        },
    )


def category_rules(field_map: FieldMap) -> Rules:
    return Rules(required=(field_map.backend_name("name"),))


def coerce_id(kind: str, record_id: Any) -> int:
    """Convert an id given as int or numeric string, or raise NotFound."""
    try:
        return int(record_id)
    except (TypeError, ValueError):
        raise NotFound(kind, record_id) from None


def matches_conditions(record: dict[str, Any], where: Sequence[Condition] | None) -> bool:
    """Evaluate AND-combined conditions against a backend-named record."""
    for condition in where or ():
        value = record.get(condition.field)
        if condition.operator == "eq":
            if value != condition.value:
                return False
        elif condition.operator == "contains":
            if str(condition.value).lower() not in str(value or "").lower():
                return False
        else:
            raise ValidationError(f"Unsupported operator: {condition.operator}")
    return True


class RecordBackend(ABC):
    """One collection of records reachable through create/read/update/delete.

    Records passed in and returned use the backend's own field names, as
    described by ``field_map``.
    """

    kind: str = "record"
    field_map: FieldMap

    @property
    def id_field(self) -> str:
        return self.field_map.backend_name("id")

    @abstractmethod
    async def list(self, where: Sequence[Condition] | None = None) -> list[dict[str, Any]]:
        """Return matching records in insertion order."""

    @abstractmethod
    async def get_by_id(self, record_id: Any) -> dict[str, Any]:
        """Return one record or raise NotFound."""

    @abstractmethod
    async def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it with its assigned id."""

    @abstractmethod
    async def update(self, record_id: Any, fields: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update and return the full record."""

    @abstractmethod
    async def delete(self, record_id: Any) -> None:
        """Remove a record or raise NotFound."""

    async def close(self) -> None:
        """Release any resources held by the backend."""
        return None
