"""Filtering and search over task snapshots.

Every function here is pure: it takes an already-fetched sequence of tasks
and returns a new list, leaving the input untouched and preserving its
order.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Iterable

from task_flow.categories import normalize_key
from task_flow.models import Priority, Task, local_date


class DueBucket(Enum):
    """Due-date buckets a query can select."""

    TODAY = "today"


VIEW_TITLES = {
    "all": ("All Tasks", "Manage all your tasks in one place"),
    "today": ("Due Today", "Focus on tasks due today"),
    "high-priority": ("High Priority", "Important tasks that need attention"),
    "completed": ("Completed Tasks", "Tasks you've already finished"),
    "pending": ("Pending Tasks", "Tasks still waiting to be done"),
}


@dataclass(frozen=True)
class QuerySpec:
    """Predicates applied by :func:`query`.

    All set predicates must hold for a task to match (AND semantics), so
    turning on several filter toggles narrows the result further.
    """

    include_archived: bool = False
    category_equals: str | None = None
    due_bucket: DueBucket | None = None
    priority_equals: Priority | str | None = None
    completed_equals: bool | None = None
    search_text: str | None = None

    @classmethod
    def for_view(cls, view: str) -> "QuerySpec":
        """Return the spec behind a dashboard view name.

        Known names are ``all``, ``today``, ``high-priority``, ``completed``
        and ``pending``. Any other name is treated as a category key.
        """
        if view == "all":
            return cls()
        if view == "today":
            return cls(due_bucket=DueBucket.TODAY)
        if view == "high-priority":
            return cls(priority_equals=Priority.HIGH)
        if view == "completed":
            return cls(completed_equals=True)
        if view == "pending":
            return cls(completed_equals=False)
        return cls(category_equals=view)

    def merge(self, **changes) -> "QuerySpec":
        """Return a copy with the given predicates replaced."""
        return replace(self, **changes)

    def is_filtered(self) -> bool:
        """Whether any predicate beyond the archived filter is set."""
        return any(
            (
                self.category_equals is not None,
                self.due_bucket is not None,
                self.priority_equals is not None,
                self.completed_equals is not None,
                bool(self.search_text),
            )
        )


def view_title(view: str) -> tuple[str, str]:
    """Return the (title, description) shown for a dashboard view."""
    if view in VIEW_TITLES:
        return VIEW_TITLES[view]
    return view.capitalize(), f"Tasks in your {view} category"


def matches_search(task: Task, text: str | None) -> bool:
    """Case-insensitive substring match against title or description."""
    if not text:
        return True
    needle = text.lower()
    return needle in task.title.lower() or needle in (task.description or "").lower()


def is_due_on(task: Task, day: date) -> bool:
    """Whether the task's due date falls on the given calendar day."""
    if task.due_date is None:
        return False
    return local_date(task.due_date) == day


def query(
    tasks: Iterable[Task], spec: QuerySpec | None = None, *, today: date | None = None
) -> list[Task]:
    """Return the tasks matching ``spec`` in their original order.

    Args:
        tasks: Snapshot to filter.
        spec: Predicates to apply. Defaults to all non-archived tasks.
        today: The local calendar date used for due buckets. Defaults to
            the current date.

    Returns:
        A new list of the matching tasks.
    """
    spec = spec or QuerySpec()
    today = today or date.today()

    result = [task for task in tasks if spec.include_archived or not task.archived]

    if spec.category_equals is not None:
        key = normalize_key(spec.category_equals)
        result = [task for task in result if task.category_id == key]

    if spec.due_bucket is DueBucket.TODAY:
        result = [task for task in result if is_due_on(task, today)]

    if spec.priority_equals is not None:
        priority = Priority.parse(spec.priority_equals)
        result = [task for task in result if task.priority == priority]

    if spec.completed_equals is not None:
        result = [task for task in result if task.completed == spec.completed_equals]

    if spec.search_text:
        result = [task for task in result if matches_search(task, spec.search_text)]

    return result


FILTER_TOGGLES = {
    "pending": QuerySpec(completed_equals=False),
    "completed": QuerySpec(completed_equals=True),
    "today": QuerySpec(due_bucket=DueBucket.TODAY),
    "high": QuerySpec(priority_equals=Priority.HIGH),
    "medium": QuerySpec(priority_equals=Priority.MEDIUM),
    "low": QuerySpec(priority_equals=Priority.LOW),
}


def query_all(
    tasks: Iterable[Task], specs: Iterable[QuerySpec], *, today: date | None = None
) -> list[Task]:
    """Return the tasks matching every spec, in their original order.

    This is how filter toggles combine: each toggle is one spec, and turning
    on "pending" and "high" keeps only pending high-priority tasks. Two
    toggles on the same field (e.g. "high" and "low") match nothing.
    """
    result = list(tasks)
    for spec in specs:
        result = query(result, spec, today=today)
    return result


def toggle_specs(toggles: Iterable[str]) -> list[QuerySpec]:
    """Return the specs behind a set of filter toggle names.

    Raises:
        KeyError: If a toggle name is unknown.
    """
    return [FILTER_TOGGLES[name] for name in sorted(toggles)]


def due_status(task: Task, *, now: datetime | None = None) -> str | None:
    """Classify a task's due date for display.

    Returns:
        ``"overdue"`` for an incomplete task due before today, ``"today"``,
        ``"upcoming"``, ``"past"`` for a completed task due before today, or
        None when the task has no due date.
    """
    if task.due_date is None:
        return None
    today = local_date(now) if now is not None else date.today()
    due = local_date(task.due_date)
    if due < today:
        return "past" if task.completed else "overdue"
    if due == today:
        return "today"
    return "upcoming"
