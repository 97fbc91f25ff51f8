"""Data models for Task Flow."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from task_flow.categories import GENERAL_KEY, normalize_key

DEFAULT_CATEGORY = GENERAL_KEY
DEFAULT_CATEGORY_COLOR = "#5B47E0"
DEFAULT_CATEGORY_ICON = "Folder"

TASK_FIELDS = (
    "id",
    "title",
    "description",
    "category_id",
    "priority",
    "due_date",
    "completed",
    "completed_at",
    "created_at",
    "archived",
)

CATEGORY_FIELDS = ("id", "name", "key", "color", "icon", "order", "task_count")


class Priority(Enum):
    """Priority of a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: "Priority | str") -> "Priority":
        """Coerce a string such as ``"High"`` into a Priority.

        Raises:
            ValueError: If the value names no priority.
        """
        if isinstance(value, Priority):
            return value
        return cls(str(value).strip().lower())


def now() -> datetime:
    """Return the current time as an aware datetime in the local time zone."""
    return datetime.now().astimezone()


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 value into a datetime.

    Accepts datetimes, dates (promoted to midnight), and strings with an
    optional trailing ``Z``. Empty values return None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_timestamp(value: datetime | None) -> str | None:
    """Render a datetime as ISO-8601, or None."""
    return value.isoformat() if value is not None else None


def local_date(value: datetime) -> date:
    """Return the calendar date of a datetime in the local time zone.

    Naive datetimes are taken to already be local.
    """
    if value.tzinfo is None:
        return value.date()
    return value.astimezone().date()


@dataclass
class Task:
    """A to-do item."""

    id: int
    title: str
    description: str = ""
    category_id: str = DEFAULT_CATEGORY
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None
    completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime = field(default_factory=now)
    archived: bool = False

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Task":
        """Create a Task from a record keyed by canonical field names."""
        created_at = parse_timestamp(record.get("created_at"))
        return cls(
            id=int(record["id"]),
            title=record["title"],
            description=record.get("description") or "",
            category_id=normalize_key(record.get("category_id")),
            priority=Priority.parse(record.get("priority") or Priority.MEDIUM),
            due_date=parse_timestamp(record.get("due_date")),
            completed=bool(record.get("completed")),
            completed_at=parse_timestamp(record.get("completed_at")),
            created_at=created_at if created_at is not None else now(),
            archived=bool(record.get("archived")),
        )

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-friendly record keyed by canonical field names."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category_id": self.category_id,
            "priority": self.priority.value,
            "due_date": format_timestamp(self.due_date),
            "completed": self.completed,
            "completed_at": format_timestamp(self.completed_at),
            "created_at": format_timestamp(self.created_at),
            "archived": self.archived,
        }


@dataclass
class Category:
    """A user-defined grouping label for tasks.

    ``key`` is what tasks reference through ``Task.category_id``. It is
    fixed when the category is created, so renaming keeps references intact.
    ``task_count`` is derived for display and never stored.
    """

    id: int
    name: str
    key: str
    color: str = DEFAULT_CATEGORY_COLOR
    icon: str = DEFAULT_CATEGORY_ICON
    order: int = 0
    task_count: int = 0

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Category":
        """Create a Category from a record keyed by canonical field names."""
        name = record["name"]
        return cls(
            id=int(record["id"]),
            name=name,
            key=normalize_key(record.get("key") or name),
            color=record.get("color") or DEFAULT_CATEGORY_COLOR,
            icon=record.get("icon") or DEFAULT_CATEGORY_ICON,
            order=int(record.get("order") or 0),
            task_count=int(record.get("task_count") or 0),
        )

    def to_record(self) -> dict[str, Any]:
        """Return a record keyed by canonical field names."""
        return {
            "id": self.id,
            "name": self.name,
            "key": self.key,
            "color": self.color,
            "icon": self.icon,
            "order": self.order,
        }
