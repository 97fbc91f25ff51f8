"""Analytics screen."""

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from task_flow.categories import with_counts
from task_flow.errors import TaskFlowError
from task_flow.models import Category, Priority, Task
from task_flow.stats import (
    DayCount,
    Insights,
    PriorityCount,
    TaskStats,
    aggregate,
    insights,
    percentage,
    priority_breakdown,
    weekly_completions,
)
from task_flow.store import Stores

logger = logging.getLogger(__name__)

BAR_WIDTH = 30

PRIORITY_COLORS = {
    Priority.HIGH: "red",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "green",
}


def bar(value: int, maximum: int, width: int = BAR_WIDTH) -> str:
    if maximum <= 0:
        return ""
    return "█" * round(width * value / maximum)


def render_overview(stats: TaskStats) -> Text:
    return Text.assemble(
        ("Overview\n", "bold"),
        f"  Total tasks      {stats.total}\n",
        f"  Completed        {stats.completed}\n",
        f"  Pending          {stats.pending}\n",
        f"  Completion rate  {stats.completion_rate}%\n",
        f"  Completed today  {stats.today_completed}",
    )


def render_insights(found: Insights) -> Text:
    def days(value: float | None) -> str:
        if value is None:
            return "-"
        return f"{value} day" if value == 1 else f"{value} days"

    return Text.assemble(
        ("Insights\n", "bold"),
        f"  Most productive day   {found.most_productive_day or '-'}\n",
        f"  Average daily tasks   {found.average_daily}\n",
        f"  Current streak        {days(found.current_streak)}\n",
        f"  Time to complete      {days(found.average_days_to_complete)}",
    )


def render_week(days: list[DayCount]) -> Text:
    text = Text("This week\n", style="bold")
    peak = max((day.completed for day in days), default=0)
    for day in days:
        style = "bold cyan" if day.is_today else "cyan"
        text.append(f"  {day.label} ")
        text.append(f"{bar(day.completed, peak):<{BAR_WIDTH}}", style=style)
        text.append(f" {day.completed}\n")
    return text


def render_priorities(counts: list[PriorityCount]) -> Text:
    text = Text("By priority\n", style="bold")
    for item in counts:
        text.append(f"  {item.priority.value.capitalize():<7} ")
        text.append(
            f"{bar(item.percentage, 100):<{BAR_WIDTH}}", style=PRIORITY_COLORS[item.priority]
        )
        text.append(f" {item.count} ({item.percentage}%)\n")
    return text


def render_categories(categories: list[Category]) -> Text:
    text = Text("By category\n", style="bold")
    total = sum(category.task_count for category in categories)
    for category in categories:
        share = percentage(category.task_count, total)
        text.append(f"  {category.name:<12} ")
        text.append(f"{bar(share, 100):<{BAR_WIDTH}}", style=category.color)
        text.append(f" {category.task_count} ({share}%)\n")
    return text


class AnalyticsScreen(Screen):
    """Completion trends and breakdowns of the active tasks."""

    BINDINGS = [
        Binding("escape", "back", "Back"),
        Binding("r", "reload", "Refresh"),
    ]

    CSS = """
    AnalyticsScreen Static {
        padding: 0 1;
        margin-bottom: 1;
    }
    """

    def __init__(self, stores: Stores) -> None:
        super().__init__()
        self.stores = stores

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll():
            yield Static("", id="overview")
            yield Static("", id="insights")
            yield Static("", id="week")
            yield Static("", id="priorities")
            yield Static("", id="categories")
        yield Footer()

    async def on_mount(self) -> None:
        await self.action_reload()

    async def action_reload(self) -> None:
        try:
            tasks = await self.stores.tasks.list()
            categories = await self.stores.categories.list()
        except TaskFlowError as e:
            logger.warning("Loading analytics failed: %s", e)
            self.notify(f"Failed to load analytics: {e}", severity="error")
            return
        self.render_analytics(tasks, categories)

    def render_analytics(self, tasks: list[Task], categories: list[Category]) -> None:
        self.query_one("#overview", Static).update(render_overview(aggregate(tasks)))
        self.query_one("#insights", Static).update(render_insights(insights(tasks)))
        self.query_one("#week", Static).update(render_week(weekly_completions(tasks)))
        self.query_one("#priorities", Static).update(
            render_priorities(priority_breakdown(tasks))
        )
        self.query_one("#categories", Static).update(
            render_categories(with_counts(tasks, categories))
        )

    def action_back(self) -> None:
        self.app.pop_screen()
