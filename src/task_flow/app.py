"""Main application module."""

import logging
import sys

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Input, Static

from task_flow.categories import sidebar_entries
from task_flow.cli import build_config, create_parser, dispatch
from task_flow.config import Config, load_config
from task_flow.errors import TaskFlowError
from task_flow.events import StoreEvent
from task_flow.logging_setup import setup_logging
from task_flow.models import Category, Task
from task_flow.query import QuerySpec, query_all, toggle_specs, view_title
from task_flow.screens import (
    AnalyticsScreen,
    ArchiveScreen,
    CreateDatabaseDialog,
    TaskEditModal,
)
from task_flow.stats import aggregate
from task_flow.store import Stores, open_stores
from task_flow.utils import parse_quick_add
from task_flow.widgets import CategorySidebar, FilterBar, QuickAddBar, StatsBar, TaskList
from task_flow.widgets.quick_add import TaskCreated
from task_flow.widgets.sidebar import ViewSelected
from task_flow.widgets.task_list import (
    StatusBarUpdate,
    TaskArchiveRequested,
    TaskDeleted,
    TaskEditRequested,
    TaskToggled,
)

logger = logging.getLogger(__name__)

DASHBOARD_ACTIONS = {
    "focus_quick_add",
    "new_task",
    "start_search",
    "toggle_filter",
    "clear_filters",
    "show_archive",
    "show_analytics",
}


class TaskFlowApp(App):
    """A Textual task dashboard."""

    TITLE = "Task Flow"

    BINDINGS = [
        ("a", "focus_quick_add", "Add task"),
        ("n", "new_task", "New task"),
        ("/", "start_search", "Search"),
        Binding("P", "toggle_filter('pending')", "Pending", show=False),
        Binding("C", "toggle_filter('completed')", "Completed", show=False),
        Binding("T", "toggle_filter('today')", "Due today", show=False),
        Binding("H", "toggle_filter('high')", "High", show=False),
        Binding("M", "toggle_filter('medium')", "Medium", show=False),
        Binding("L", "toggle_filter('low')", "Low", show=False),
        ("X", "clear_filters", "Clear filters"),
        ("f2", "show_archive", "Archive"),
        ("f3", "show_analytics", "Analytics"),
        ("D", "toggle_dark", "Toggle dark mode"),
        ("q", "quit", "Quit"),
    ]

    CSS = """
    #body {
        height: 1fr;
    }

    #main {
        width: 1fr;
    }

    #view-title {
        text-style: bold;
        padding: 0 1;
    }

    #view-description {
        color: $text-muted;
        padding: 0 1;
    }

    #search-input {
        margin: 0 1;
    }

    #search-input.hidden {
        display: none;
    }

    #results {
        height: 1;
        color: $text-muted;
        padding: 0 1;
    }

    #status-bar {
        height: 1;
        width: 100%;
        background: $surface;
        color: $warning;
        padding: 0 1;
    }

    #status-bar.hidden {
        display: none;
    }
    """

    def __init__(self, config: Config | None = None, stores: Stores | None = None) -> None:
        """Initialize the application.

        Args:
            config: Settings to use. Defaults to the config file.
            stores: Already-open stores. When omitted they are opened from
                ``config`` on mount.
        """
        super().__init__()
        self._config = config or load_config()
        self.stores = stores
        self._tasks: list[Task] = []
        self._categories: list[Category] = []
        self.active_view = "all"
        self.search_term = ""
        self.toggles: set[str] = set()
        self._unsubscribe: list = []

    @property
    def dashboard(self) -> Screen:
        """The main screen, which stays at the bottom of the screen stack."""
        return self.screen_stack[0]

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Disable dashboard actions while another screen is on top."""
        if action in DASHBOARD_ACTIONS and len(self.screen_stack) > 1:
            return False
        return True

    def _apply_theme(self) -> None:
        """Apply the configured theme, keeping the default when it is unknown."""
        if self._config.theme in self.available_themes:
            self.theme = self._config.theme
        else:
            logger.warning("Unknown theme %r, using %r", self._config.theme, self.theme)

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield Header()
        with Horizontal(id="body"):
            yield CategorySidebar(id="sidebar")
            with Vertical(id="main"):
                yield Static("", id="view-title")
                yield Static("", id="view-description")
                yield StatsBar(id="stats")
                yield Input(placeholder="Search tasks...", id="search-input", classes="hidden")
                yield FilterBar(id="filters")
                yield TaskList(id="task-list")
                yield Static("", id="results")
                yield Static("", id="status-bar", classes="hidden")
                yield QuickAddBar(id="quick-add")
        yield Footer()

    async def on_mount(self) -> None:
        """Open the stores, asking first when the database file is missing."""
        self._apply_theme()

        if self.stores is not None:
            await self._attach_stores(self.stores)
            return

        config = self._config
        if config.backend == "sqlite" and not config.database.exists():
            self.push_screen(CreateDatabaseDialog(config.database), self._on_dialog_result)
        else:
            await self._open_stores()

    async def _on_dialog_result(self, result: bool) -> None:
        if result:
            await self._open_stores()
        else:
            self.exit()

    async def _open_stores(self) -> None:
        try:
            stores = open_stores(self._config)
        except PermissionError:
            self.notify(
                f"Permission denied: Cannot open database at {self._config.database}",
                severity="error",
            )
            self.exit()
            return
        except TaskFlowError as e:
            logger.error("Opening the %s backend failed: %s", self._config.backend, e)
            self.notify(f"Failed to open tasks: {e}", severity="error")
            self.exit()
            return
        await self._attach_stores(stores)

    async def _attach_stores(self, stores: Stores) -> None:
        self.stores = stores
        self._unsubscribe = [
            stores.tasks.subscribe(self._on_store_event),
            stores.categories.subscribe(self._on_store_event),
        ]
        logger.info("Using %s backend", self._config.backend)
        await self.refresh_data()
        self.dashboard.query_one(TaskList).focus()

    async def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        if self.stores is not None:
            await self.stores.close()

    def _on_store_event(self, event: StoreEvent) -> None:
        logger.debug("Store event %s", event.action)
        self.run_worker(self.refresh_data(), exclusive=True, group="refresh")

    async def refresh_data(self) -> None:
        """Re-read tasks and categories, then redraw the dashboard."""
        if self.stores is None:
            return
        try:
            self._tasks = await self.stores.tasks.list()
            self._categories = await self.stores.categories.list()
        except TaskFlowError as e:
            logger.warning("Refreshing tasks failed: %s", e)
            self.notify(f"Failed to load tasks: {e}", severity="error")
            return
        self.render_dashboard()

    def visible_tasks(self) -> list[Task]:
        """The tasks shown for the active view, search and filter toggles."""
        view_spec = QuerySpec.for_view(self.active_view).merge(
            search_text=self.search_term or None
        )
        return query_all(self._tasks, [view_spec, *toggle_specs(self.toggles)])

    def _view_heading(self) -> tuple[str, str]:
        for category in self._categories:
            if category.key == self.active_view:
                return category.name, f"Tasks in your {category.name} category"
        return view_title(self.active_view)

    def render_dashboard(self) -> None:
        """Recompute every derived view from the current snapshot."""
        visible = self.visible_tasks()
        stats = aggregate(self._tasks)
        title, description = self._view_heading()

        self.dashboard.query_one("#view-title", Static).update(title)
        self.dashboard.query_one("#view-description", Static).update(description)
        self.dashboard.query_one(StatsBar).show(stats)
        self.dashboard.query_one(FilterBar).show(self.toggles)
        self.dashboard.query_one(CategorySidebar).load_entries(
            sidebar_entries(self._tasks, self._categories), self.active_view
        )
        self.dashboard.query_one(TaskList).load_tasks(
            visible, show_category=not any(c.key == self.active_view for c in self._categories)
        )
        self.dashboard.query_one("#results", Static).update(
            f"Showing {len(visible)} of {stats.total} tasks"
        )

    def _set_status(self, text: str) -> None:
        status_bar = self.dashboard.query_one("#status-bar", Static)
        status_bar.update(text)
        status_bar.set_class(not text, "hidden")

    async def _run_store_action(self, description: str, action) -> None:
        try:
            await action
        except TaskFlowError as e:
            logger.warning("%s failed: %s", description, e)
            self.notify(f"Failed to {description}: {e}", severity="error")

    def action_focus_quick_add(self) -> None:
        self.dashboard.query_one(QuickAddBar).focus()

    def action_new_task(self) -> None:
        self.push_screen(TaskEditModal(None, self._categories), self._on_new_task_result)

    async def _on_new_task_result(self, result: dict | None) -> None:
        if result and self.stores is not None:
            await self._run_store_action("add task", self.stores.tasks.create(result))

    def action_start_search(self) -> None:
        search_input = self.dashboard.query_one("#search-input", Input)
        search_input.remove_class("hidden")
        search_input.focus()

    def action_toggle_filter(self, name: str) -> None:
        self.toggles ^= {name}
        self.render_dashboard()

    def action_clear_filters(self) -> None:
        """Turn off every filter toggle and clear the search."""
        self.toggles = set()
        self.search_term = ""
        search_input = self.dashboard.query_one("#search-input", Input)
        search_input.value = ""
        search_input.add_class("hidden")
        self.render_dashboard()

    def action_show_archive(self) -> None:
        if self.stores is not None:
            self.push_screen(ArchiveScreen(self.stores))

    def action_show_analytics(self) -> None:
        if self.stores is not None:
            self.push_screen(AnalyticsScreen(self.stores))

    def action_toggle_dark(self) -> None:
        """Toggle dark mode."""
        self.theme = "textual-light" if self.theme == "textual-dark" else "textual-dark"

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter live while typing in the search box."""
        if event.input.id == "search-input":
            self.search_term = event.value
            self.render_dashboard()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search-input":
            if not event.value:
                event.input.add_class("hidden")
            self.dashboard.query_one(TaskList).focus()

    def on_view_selected(self, event: ViewSelected) -> None:
        self.active_view = event.view
        self.render_dashboard()
        self.dashboard.query_one(TaskList).focus()

    async def on_task_created(self, event: TaskCreated) -> None:
        """Create a task from the quick-add line."""
        if self.stores is None:
            return
        title, category, priority = parse_quick_add(event.raw)
        fields: dict = {"title": title}
        if category is not None:
            fields["category_id"] = category
        elif any(c.key == self.active_view for c in self._categories):
            fields["category_id"] = self.active_view
        if priority is not None:
            fields["priority"] = priority
        await self._run_store_action("add task", self.stores.tasks.create(fields))

    async def on_task_toggled(self, event: TaskToggled) -> None:
        if self.stores is not None:
            await self._run_store_action(
                "update task", self.stores.tasks.toggle_complete(event.task_id)
            )

    async def on_task_archive_requested(self, event: TaskArchiveRequested) -> None:
        if self.stores is not None:
            await self._run_store_action("archive task", self.stores.tasks.archive(event.task_id))

    async def on_task_deleted(self, event: TaskDeleted) -> None:
        if self.stores is not None:
            await self._run_store_action("delete task", self.stores.tasks.delete(event.task_id))

    def on_task_edit_requested(self, event: TaskEditRequested) -> None:
        task_id = event.task.id

        async def apply(changes: dict | None) -> None:
            if changes and self.stores is not None:
                await self._run_store_action(
                    "update task", self.stores.tasks.update(task_id, changes)
                )

        self.push_screen(TaskEditModal(event.task, self._categories), apply)

    def on_status_bar_update(self, event: StatusBarUpdate) -> None:
        self._set_status(event.text)


def main() -> None:
    """Run a CLI command, or the dashboard when no command is given."""
    args = create_parser().parse_args()
    config = build_config(args)
    setup_logging(
        log_dir=config.logging.directory,
        level=config.logging.level,
        console=args.command is not None,
    )
    if args.command is not None:
        sys.exit(dispatch(args, config))

    app = TaskFlowApp(config)
    app.run()


if __name__ == "__main__":
    main()
