"""Widgets for Task Flow."""

from task_flow.widgets.quick_add import QuickAddBar
from task_flow.widgets.sidebar import CategorySidebar
from task_flow.widgets.stats import FilterBar, StatsBar
from task_flow.widgets.task_list import TaskList

__all__ = ["CategorySidebar", "FilterBar", "QuickAddBar", "StatsBar", "TaskList"]
