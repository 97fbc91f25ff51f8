"""Category matching keys and per-category task counts."""

from dataclasses import dataclass, replace
from datetime import date
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from task_flow.models import Category, Task

GENERAL_KEY = "general"

# Dashboard view names that are not category keys.
RESERVED_VIEWS = frozenset({"all", "today", "high-priority", "completed", "pending"})


def normalize_key(value: str | None) -> str:
    """Normalize a category reference into its matching key.

    Keys are stripped and lowercased. Missing or blank values fall back to
    the general category.
    """
    if value is None:
        return GENERAL_KEY
    key = str(value).strip().lower()
    return key or GENERAL_KEY


def project_counts(
    tasks: Iterable["Task"], categories: Iterable["Category"]
) -> dict[str, int]:
    """Count non-archived tasks per category key.

    Every category appears in the result, with 0 when no task references it.
    Tasks that reference an unknown key are not counted anywhere.
    """
    counts = {normalize_key(category.key): 0 for category in categories}
    for task in tasks:
        if task.archived:
            continue
        key = normalize_key(task.category_id)
        if key in counts:
            counts[key] += 1
    return counts


def with_counts(
    tasks: Iterable["Task"], categories: Iterable["Category"]
) -> list["Category"]:
    """Return copies of the categories with ``task_count`` filled in."""
    categories = list(categories)
    counts = project_counts(tasks, categories)
    return [
        replace(category, task_count=counts[normalize_key(category.key)])
        for category in categories
    ]


@dataclass(frozen=True)
class SidebarEntry:
    """A row in the category sidebar."""

    view: str
    label: str
    icon: str
    count: int
    color: str | None = None
    is_category: bool = False


QUICK_FILTERS = (
    ("all", "All Tasks", "List"),
    ("today", "Due Today", "Calendar"),
    ("high-priority", "High Priority", "AlertCircle"),
    ("completed", "Completed", "CheckCircle"),
)


def sidebar_entries(
    tasks: Iterable["Task"],
    categories: Iterable["Category"],
    *,
    today: date | None = None,
) -> list[SidebarEntry]:
    """Build the sidebar: quick filters first, then one row per category."""
    from task_flow.query import QuerySpec, query

    tasks = list(tasks)
    entries = [
        SidebarEntry(
            view=view,
            label=label,
            icon=icon,
            count=len(query(tasks, QuerySpec.for_view(view), today=today)),
        )
        for view, label, icon in QUICK_FILTERS
    ]
    for category in with_counts(tasks, categories):
        entries.append(
            SidebarEntry(
                view=category.key,
                label=category.name,
                icon=category.icon,
                count=category.task_count,
                color=category.color,
                is_category=True,
            )
        )
    return entries
