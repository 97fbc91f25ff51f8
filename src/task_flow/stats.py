"""Aggregate statistics over task snapshots."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable

from task_flow.models import Priority, Task, local_date

DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def percentage(part: int, whole: int) -> int:
    """Integer percentage rounded half up, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (part * 200 + whole) // (2 * whole)


def completed_on(task: Task, day: date) -> bool:
    """Whether the task was completed on the given local calendar day."""
    return (
        task.completed
        and task.completed_at is not None
        and local_date(task.completed_at) == day
    )


@dataclass(frozen=True)
class TaskStats:
    """Counts shown on the dashboard and analytics views."""

    total: int = 0
    completed: int = 0
    pending: int = 0
    completion_rate: int = 0
    today_completed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "completionRate": self.completion_rate,
            "todayCompleted": self.today_completed,
        }


def aggregate(tasks: Iterable[Task], *, today: date | None = None) -> TaskStats:
    """Compute totals over the non-archived tasks.

    Args:
        tasks: Snapshot to aggregate. Archived tasks are ignored.
        today: Local calendar date for ``today_completed``. Defaults to the
            current date.
    """
    today = today or date.today()
    active = [task for task in tasks if not task.archived]
    total = len(active)
    completed = sum(1 for task in active if task.completed)
    return TaskStats(
        total=total,
        completed=completed,
        pending=total - completed,
        completion_rate=percentage(completed, total),
        today_completed=sum(1 for task in active if completed_on(task, today)),
    )


@dataclass(frozen=True)
class DayCount:
    """Tasks completed on one day of the week."""

    label: str
    day: date
    completed: int
    is_today: bool


def week_of(today: date) -> list[date]:
    """Return the Sunday-to-Saturday week containing ``today``."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return [start + timedelta(days=offset) for offset in range(7)]


def weekly_completions(
    tasks: Iterable[Task], *, today: date | None = None
) -> list[DayCount]:
    """Count completions per day for the current week.

    Archived tasks are included, since archiving does not undo the work.
    """
    today = today or date.today()
    tasks = list(tasks)
    return [
        DayCount(
            label=DAY_LABELS[day.weekday()],
            day=day,
            completed=sum(1 for task in tasks if completed_on(task, day)),
            is_today=day == today,
        )
        for day in week_of(today)
    ]


@dataclass(frozen=True)
class Insights:
    """Completion habits derived from timestamps.

    Fields that need at least one completion are None until there is one.
    """

    most_productive_day: str | None = None
    average_daily: float = 0.0
    current_streak: int = 0
    average_days_to_complete: float | None = None


def _days_between(start: datetime, end: datetime) -> float:
    # astimezone() treats naive values as local time.
    return (end.astimezone() - start.astimezone()).total_seconds() / 86400


def insights(tasks: Iterable[Task], *, today: date | None = None) -> Insights:
    """Derive completion habits from every completed task, archived or not.

    Args:
        tasks: Snapshot to inspect.
        today: Local calendar date. Defaults to the current date.

    The most productive day is the weekday with the most completions,
    ties going to the earliest day of the Sunday-first week. The daily
    average covers the days of the current week up to and including
    today. The streak counts consecutive days with a completion, ending
    today, or yesterday when nothing is done yet today.
    """
    today = today or date.today()
    done = [task for task in tasks if task.completed and task.completed_at is not None]
    if not done:
        return Insights()
    days = [local_date(task.completed_at) for task in done]

    per_weekday = [0] * 7
    for day in days:
        per_weekday[day.weekday()] += 1
    week_order = [day.weekday() for day in week_of(today)]
    best = max(week_order, key=per_weekday.__getitem__)

    elapsed = [day for day in week_of(today) if day <= today]
    this_week = sum(1 for day in days if day in elapsed)

    active_days = set(days)
    cursor = today if today in active_days else today - timedelta(days=1)
    streak = 0
    while cursor in active_days:
        streak += 1
        cursor -= timedelta(days=1)

    durations = [_days_between(task.created_at, task.completed_at) for task in done]
    return Insights(
        most_productive_day=DAY_NAMES[best],
        average_daily=round(this_week / len(elapsed), 1),
        current_streak=streak,
        average_days_to_complete=round(sum(durations) / len(durations), 1),
    )


@dataclass(frozen=True)
class PriorityCount:
    priority: Priority
    count: int
    percentage: int


def priority_breakdown(tasks: Iterable[Task]) -> list[PriorityCount]:
    """Count non-archived tasks per priority, highest first."""
    active = [task for task in tasks if not task.archived]
    order = (Priority.HIGH, Priority.MEDIUM, Priority.LOW)
    counts = {priority: 0 for priority in order}
    for task in active:
        counts[task.priority] += 1
    return [
        PriorityCount(priority, counts[priority], percentage(counts[priority], len(active)))
        for priority in order
    ]


@dataclass(frozen=True)
class ArchiveSummary:
    total: int = 0
    completed: int = 0
    incomplete: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "incomplete": self.incomplete,
        }


def archive_summary(tasks: Iterable[Task]) -> ArchiveSummary:
    """Summarize archived tasks by completion."""
    archived = [task for task in tasks if task.archived]
    completed = sum(1 for task in archived if task.completed)
    return ArchiveSummary(
        total=len(archived), completed=completed, incomplete=len(archived) - completed
    )
