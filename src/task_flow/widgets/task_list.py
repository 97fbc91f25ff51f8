"""Task list widget."""

from datetime import date

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import ListItem, ListView, Static

from task_flow.models import Priority, Task, local_date
from task_flow.query import due_status

PRIORITY_STYLES = {
    Priority.HIGH: ("!!!", "bold red"),
    Priority.MEDIUM: ("!! ", "yellow"),
    Priority.LOW: ("!  ", "green"),
}

DUE_STYLES = {
    "overdue": "bold red",
    "today": "yellow",
    "upcoming": "",
    "past": "dim",
}


class TaskToggled(Message):
    """Message sent when a task's completion is toggled."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__()


class TaskArchiveRequested(Message):
    """Message sent when a task should be archived or restored."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__()


class TaskDeleted(Message):
    """Message sent when a task is deleted."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__()


class TaskEditRequested(Message):
    """Message sent when the highlighted task should be edited."""

    def __init__(self, task: Task) -> None:
        self.task = task
        super().__init__()


class StatusBarUpdate(Message):
    """Message sent to update the status bar text."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__()


def format_due(value: date) -> str:
    """Format a due date as "Today" or e.g. "Jun 20"."""
    if value == date.today():
        return "Today"
    return f"{value:%b} {value.day}"


def task_label(task: Task, show_category: bool = True) -> Text:
    """Build the rich text for one task row."""
    marker, marker_style = PRIORITY_STYLES[task.priority]
    label = Text()
    label.append("[x] " if task.completed else "[ ] ")
    label.append(marker + " ", style=marker_style)
    label.append(task.title, style="strike dim" if task.completed else "")
    if show_category:
        label.append(f"  #{task.category_id}", style="cyan")
    status = due_status(task)
    if status is not None:
        label.append(f"  due {format_due(local_date(task.due_date))}", style=DUE_STYLES[status])
    return label


class TaskListItem(ListItem):
    """A single task row display as a ListItem."""

    def __init__(self, task: Task, show_category: bool = True) -> None:
        self._task_data = task
        self._show_category = show_category
        super().__init__()
        if task.completed:
            self.add_class("-completed")

    @property
    def task_data(self) -> Task:
        return self._task_data

    def compose(self) -> ComposeResult:
        yield Static(task_label(self._task_data, self._show_category))


class TaskList(ListView):
    """ListView for displaying tasks with j/k navigation."""

    BINDINGS = [
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("space", "toggle_status", "Toggle done", show=True),
        Binding("e", "edit", "Edit", show=True),
        Binding("A", "archive", "Archive", show=True),
        Binding("d", "delete_press", "Delete", show=True),
        Binding("escape", "cancel_delete", "Cancel", show=False),
    ]

    DEFAULT_CSS = """
    TaskList {
        height: 1fr;
    }

    TaskList:focus > TaskListItem.-highlight {
        background: $accent;
    }

    TaskList > TaskListItem.-highlight {
        background: $surface;
    }

    TaskList > TaskListItem {
        height: auto;
        padding: 0 1;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._delete_pending: bool = False
        self._task_ids: list[int] = []

    def load_tasks(self, tasks: list[Task], show_category: bool = True) -> None:
        """Replace the rows, keeping the highlighted task when it is still listed."""
        selected = self.get_selected_task()
        self.clear()
        self._task_ids = [task.id for task in tasks]
        for task in tasks:
            self.append(TaskListItem(task, show_category=show_category))
        if selected is not None and selected.id in self._task_ids:
            self.call_after_refresh(self.select_task_by_id, selected.id)
        elif self._task_ids:
            self.call_after_refresh(self.select_task_by_id, self._task_ids[0])

    def select_task_by_id(self, task_id: int | None) -> None:
        """Highlight a task by its ID if it is listed."""
        if task_id is not None and task_id in self._task_ids:
            self.index = self._task_ids.index(task_id)

    def get_selected_task(self) -> Task | None:
        """Return the currently highlighted task, or None if no task is selected."""
        if self.highlighted_child and isinstance(self.highlighted_child, TaskListItem):
            return self.highlighted_child.task_data
        return None

    def action_toggle_status(self) -> None:
        """Toggle the highlighted task between done and not done."""
        task = self.get_selected_task()
        if task is not None:
            self.post_message(TaskToggled(task.id))

    def action_edit(self) -> None:
        task = self.get_selected_task()
        if task is not None:
            self.post_message(TaskEditRequested(task))

    def action_archive(self) -> None:
        task = self.get_selected_task()
        if task is not None:
            self.post_message(TaskArchiveRequested(task.id))

    def action_delete_press(self) -> None:
        """Handle 'd' key press for vim-style delete."""
        task = self.get_selected_task()
        if task is None:
            return

        if not self._delete_pending:
            self._delete_pending = True
            self.post_message(StatusBarUpdate("Press d again to delete, Escape to cancel"))
        else:
            self._delete_pending = False
            self.post_message(StatusBarUpdate(""))
            self.post_message(TaskDeleted(task.id))

    def action_cancel_delete(self) -> None:
        """Cancel pending delete operation."""
        if self._delete_pending:
            self._delete_pending = False
            self.post_message(StatusBarUpdate(""))
