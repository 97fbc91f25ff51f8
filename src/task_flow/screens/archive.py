"""Archive screen: browse, restore and permanently delete archived tasks."""

import logging

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Input, ListView, Static

from task_flow.errors import TaskFlowError
from task_flow.models import Task
from task_flow.query import matches_search
from task_flow.screens.dialogs import ConfirmDialog
from task_flow.stats import archive_summary
from task_flow.store import Stores
from task_flow.widgets.task_list import TaskListItem

logger = logging.getLogger(__name__)


class ArchiveList(ListView):
    """ListView of archived tasks."""

    BINDINGS = [
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
    ]

    DEFAULT_CSS = """
    ArchiveList {
        height: 1fr;
    }

    ArchiveList > TaskListItem {
        height: auto;
        padding: 0 1;
    }
    """

    def load_tasks(self, tasks: list[Task]) -> None:
        self.clear()
        for task in tasks:
            self.append(TaskListItem(task))

    def get_selected_task(self) -> Task | None:
        if self.highlighted_child and isinstance(self.highlighted_child, TaskListItem):
            return self.highlighted_child.task_data
        return None


class ArchiveScreen(Screen):
    """Archived tasks with a summary line and search."""

    BINDINGS = [
        Binding("u", "restore", "Restore"),
        Binding("d", "delete_press", "Delete"),
        Binding("C", "clear_all", "Clear all"),
        Binding("/", "focus_search", "Search"),
        Binding("escape", "back", "Back"),
    ]

    CSS = """
    ArchiveScreen #archive-title {
        text-style: bold;
        padding: 0 1;
    }

    ArchiveScreen #archive-summary {
        color: $text-muted;
        padding: 0 1;
    }

    ArchiveScreen #archive-status {
        color: $warning;
        padding: 0 1;
        height: 1;
    }
    """

    def __init__(self, stores: Stores) -> None:
        super().__init__()
        self.stores = stores
        self.archived: list[Task] = []
        self.search_term = ""
        self._delete_pending = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            yield Static("Archive", id="archive-title")
            yield Static("", id="archive-summary")
            yield Input(placeholder="Search archived tasks...", id="archive-search")
            yield ArchiveList(id="archive-list")
            yield Static("", id="archive-status")
        yield Footer()

    async def on_mount(self) -> None:
        await self.reload()
        self.query_one(ArchiveList).focus()

    async def reload(self) -> None:
        """Fetch archived tasks and redraw the list and summary."""
        try:
            self.archived = await self.stores.tasks.list(archived=True)
        except TaskFlowError as e:
            logger.warning("Loading the archive failed: %s", e)
            self.notify(f"Failed to load archive: {e}", severity="error")
            return
        self.render_archive()

    def visible_tasks(self) -> list[Task]:
        return [task for task in self.archived if matches_search(task, self.search_term)]

    def render_archive(self) -> None:
        summary = archive_summary(self.archived)
        self.query_one("#archive-summary", Static).update(
            f"{summary.total} archived: {summary.completed} completed, "
            f"{summary.incomplete} incomplete"
        )
        self.query_one(ArchiveList).load_tasks(self.visible_tasks())

    def _set_status(self, text: str) -> None:
        self.query_one("#archive-status", Static).update(text)

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "archive-search":
            self.search_term = event.value
            self.render_archive()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.query_one(ArchiveList).focus()

    def action_focus_search(self) -> None:
        self.query_one("#archive-search", Input).focus()

    async def action_restore(self) -> None:
        task = self.query_one(ArchiveList).get_selected_task()
        if task is None:
            return
        try:
            await self.stores.tasks.unarchive(task.id)
        except TaskFlowError as e:
            self.notify(f"Failed to restore task: {e}", severity="error")
            return
        self.notify(f"Restored {task.title!r}")
        await self.reload()

    async def action_delete_press(self) -> None:
        """Delete the highlighted task on the second 'd' press."""
        task = self.query_one(ArchiveList).get_selected_task()
        if task is None:
            return
        if not self._delete_pending:
            self._delete_pending = True
            self._set_status("Press d again to delete permanently, Escape to cancel")
            return

        self._delete_pending = False
        self._set_status("")
        try:
            await self.stores.tasks.delete(task.id)
        except TaskFlowError as e:
            self.notify(f"Failed to delete task: {e}", severity="error")
            return
        await self.reload()

    def action_clear_all(self) -> None:
        if not self.archived:
            return
        self.app.push_screen(
            ConfirmDialog(
                "Clear Archive",
                f"Permanently delete all {len(self.archived)} archived tasks?",
                confirm_label="Delete all",
            ),
            self._on_clear_confirmed,
        )

    async def _on_clear_confirmed(self, confirmed: bool) -> None:
        if not confirmed:
            return
        try:
            removed = await self.stores.tasks.clear_archive()
        except TaskFlowError as e:
            self.notify(f"Failed to clear archive: {e}", severity="error")
        else:
            self.notify(f"Deleted {len(removed)} archived tasks")
        await self.reload()

    def action_back(self) -> None:
        if self._delete_pending:
            self._delete_pending = False
            self._set_status("")
            return
        self.app.pop_screen()
