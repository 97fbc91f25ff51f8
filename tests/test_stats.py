# tests/test_stats.py

from __future__ import annotations

from datetime import date, datetime

from task_flow.models import Priority
from task_flow.stats import (
    Insights,
    TaskStats,
    aggregate,
    archive_summary,
    insights,
    percentage,
    priority_breakdown,
    week_of,
    weekly_completions,
)

from .fakes import make_task

TODAY = date(2025, 6, 12)  # a Thursday


def test_empty_snapshot_is_all_zeros() -> None:
    stats = aggregate([], today=TODAY)

    assert stats == TaskStats()
    assert stats.completion_rate == 0


def test_completion_rate_counts_non_archived_only() -> None:
    tasks = [
        make_task(1, completed=True, completed_at=datetime(2025, 6, 10, 9, 0)),
        make_task(2, completed=True, completed_at=datetime(2025, 6, 11, 9, 0)),
        make_task(3, completed=True, completed_at=datetime(2025, 6, 12, 9, 0)),
        make_task(4),
        make_task(5, archived=True),
    ]

    stats = aggregate(tasks, today=TODAY)

    assert stats.total == 4
    assert stats.completed == 3
    assert stats.pending == 1
    assert stats.completion_rate == 75
    assert stats.today_completed == 1


def test_today_completed_ignores_pending_and_archived() -> None:
    tasks = [
        make_task(1, completed=True, completed_at=datetime(2025, 6, 12, 23, 59)),
        make_task(2, completed=False, completed_at=datetime(2025, 6, 12, 8, 0)),
        make_task(3, completed=True, completed_at=datetime(2025, 6, 12, 8, 0), archived=True),
        make_task(4, completed=True, completed_at=datetime(2025, 6, 11, 23, 59)),
    ]

    assert aggregate(tasks, today=TODAY).today_completed == 1


def test_percentage_rounds_half_up() -> None:
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13
    assert percentage(0, 5) == 0
    assert percentage(5, 5) == 100
    assert percentage(3, 0) == 0


def test_as_dict_uses_display_keys() -> None:
    stats = TaskStats(total=4, completed=3, pending=1, completion_rate=75, today_completed=1)

    assert stats.as_dict() == {
        "total": 4,
        "completed": 3,
        "pending": 1,
        "completionRate": 75,
        "todayCompleted": 1,
    }


def test_week_runs_sunday_to_saturday() -> None:
    days = week_of(TODAY)

    assert days[0] == date(2025, 6, 8)
    assert days[-1] == date(2025, 6, 14)
    assert week_of(date(2025, 6, 8))[0] == date(2025, 6, 8)


def test_weekly_completions_include_archived() -> None:
    tasks = [
        make_task(1, completed=True, completed_at=datetime(2025, 6, 9, 10, 0)),
        make_task(2, completed=True, completed_at=datetime(2025, 6, 12, 10, 0), archived=True),
        make_task(3, completed=True, completed_at=datetime(2025, 6, 12, 18, 0)),
        make_task(4, completed=True, completed_at=datetime(2025, 6, 1, 10, 0)),
    ]

    week = weekly_completions(tasks, today=TODAY)

    assert [d.label for d in week] == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    assert [d.completed for d in week] == [0, 1, 0, 0, 2, 0, 0]
    assert [d.is_today for d in week].index(True) == 4


def test_priority_breakdown_highest_first() -> None:
    tasks = [
        make_task(1, priority="high"),
        make_task(2, priority="low"),
        make_task(3, priority="low"),
        make_task(4, priority="medium", archived=True),
    ]

    breakdown = priority_breakdown(tasks)

    assert [(b.priority, b.count, b.percentage) for b in breakdown] == [
        (Priority.HIGH, 1, 33),
        (Priority.MEDIUM, 0, 0),
        (Priority.LOW, 2, 67),
    ]


def test_archive_summary() -> None:
    tasks = [
        make_task(1, archived=True, completed=True),
        make_task(2, archived=True),
        make_task(3, archived=True),
        make_task(4, completed=True),
    ]

    summary = archive_summary(tasks)

    assert summary.as_dict() == {"total": 3, "completed": 1, "incomplete": 2}


def test_insights_from_completion_history() -> None:
    tasks = [
        make_task(1, completed=True, completed_at=datetime(2025, 6, 10, 9, 0)),
        make_task(2, completed=True, completed_at=datetime(2025, 6, 11, 21, 0)),
        make_task(3, completed=True, completed_at=datetime(2025, 6, 12, 9, 0), archived=True),
        make_task(4, completed=True, completed_at=datetime(2025, 6, 3, 9, 0)),
        make_task(5),
    ]

    found = insights(tasks, today=TODAY)

    assert found.most_productive_day == "Tuesday"
    assert found.average_daily == 0.6
    assert found.current_streak == 3
    assert found.average_days_to_complete == 8.1


def test_insights_streak_continues_from_yesterday() -> None:
    tasks = [
        make_task(1, completed=True, completed_at=datetime(2025, 6, 8, 9, 0)),
        make_task(2, completed=True, completed_at=datetime(2025, 6, 9, 9, 0)),
        make_task(3, completed=True, completed_at=datetime(2025, 6, 11, 9, 0)),
    ]

    found = insights(tasks, today=TODAY)

    assert found.current_streak == 1
    assert found.most_productive_day == "Sunday"


def test_insights_without_completions() -> None:
    tasks = [make_task(1), make_task(2, completed=True, completed_at=None)]

    assert insights(tasks, today=TODAY) == Insights()
