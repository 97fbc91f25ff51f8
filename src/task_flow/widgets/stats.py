"""Stat cards and filter summary widgets."""

from rich.text import Text
from textual.widgets import Static

from task_flow.stats import TaskStats

FILTER_KEYS = (
    ("pending", "P", "Pending"),
    ("completed", "C", "Completed"),
    ("today", "T", "Due today"),
    ("high", "H", "High"),
    ("medium", "M", "Medium"),
    ("low", "L", "Low"),
)


class StatsBar(Static):
    """One line of stat cards: totals, completion rate and today's count."""

    DEFAULT_CSS = """
    StatsBar {
        height: 1;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.stats = TaskStats()

    def show(self, stats: TaskStats) -> None:
        self.stats = stats
        self.update(
            Text.assemble(
                ("Total ", "dim"),
                (str(stats.total), "bold"),
                ("   Completed ", "dim"),
                (str(stats.completed), "bold green"),
                ("   Pending ", "dim"),
                (str(stats.pending), "bold yellow"),
                ("   Today Done ", "dim"),
                (str(stats.today_completed), "bold cyan"),
                ("   ", ""),
                (f"{stats.completion_rate}% Complete", "bold magenta"),
            )
        )


class FilterBar(Static):
    """Shows which filter toggles are on and the key for each."""

    DEFAULT_CSS = """
    FilterBar {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    """

    def show(self, toggles: set[str]) -> None:
        label = Text("Filters: ")
        for name, key, title in FILTER_KEYS:
            style = "bold reverse" if name in toggles else ""
            label.append(f"[{key}] {title}", style=style)
            label.append("  ")
        if toggles:
            label.append("[X] Clear all", style="italic")
        self.update(label)
